"""
Metrics Pipeline

Assembles the full metric set from the income, valuation, debt and return
calculators. Evaluation order is income -> NOI -> valuation -> debt service
-> returns.
"""

from dealkpi.calculations.amortization import (
    calculate_deal_loan_payment,
    calculate_payment,
    calculate_remaining_balance,
    select_active_loan,
)
from dealkpi.calculations.income import (
    calculate_deal_expenses,
    calculate_deal_income,
    calculate_effective_gross_income,
    calculate_operating_expense_ratio,
)
from dealkpi.calculations.returns import (
    assess_risk,
    calculate_approximate_annualized_return,
    calculate_break_even_occupancy,
    calculate_cap_rate,
    calculate_cash_flow,
    calculate_cash_on_cash_return,
    calculate_dscr,
    calculate_equity_multiple,
)
from dealkpi.calculations.types import (
    BasicMetrics,
    CalculatedMetrics,
    Deal,
    DealKPIs,
    PropertyFinancials,
)
from dealkpi.calculations.valuation import (
    calculate_all_in_cost,
    calculate_arv,
    calculate_current_equity,
    calculate_initial_capital,
    calculate_ltc,
    calculate_ltv,
)

# Hold period behind the approximate annualized return on deals
KPI_HOLD_YEARS = 5

# Months of holding costs and loan seasoning assumed when a deal has no
# stabilization timeline
DEFAULT_STABILIZATION_MONTHS = 12


def compute_metrics(financials: PropertyFinancials) -> CalculatedMetrics:
    """
    Calculate the full metric set for a property snapshot.

    Args:
        financials: Property financial snapshot

    Returns:
        CalculatedMetrics with every field populated
    """
    all_in_cost = calculate_all_in_cost(
        financials.purchase_price,
        financials.rehab_costs,
        financials.closing_costs,
        financials.holding_costs,
    )

    # Income
    effective_gross_income = calculate_effective_gross_income(
        financials.gross_rental_income,
        financials.vacancy_rate,
        financials.other_income,
    )
    noi = effective_gross_income - financials.operating_expenses

    # Valuation
    arv = calculate_arv(noi, financials.market_cap_rate)

    # Debt service
    monthly_debt_service = calculate_payment(
        financials.loan_amount,
        financials.interest_rate,
        financials.loan_term_years,
        financials.payment_type,
    )
    annual_debt_service = monthly_debt_service * 12

    # Returns
    annual_cash_flow = calculate_cash_flow(noi, annual_debt_service)
    initial_capital_required = calculate_initial_capital(
        all_in_cost, financials.loan_amount
    )
    cash_on_cash_return = calculate_cash_on_cash_return(
        annual_cash_flow, initial_capital_required
    )

    return CalculatedMetrics(
        all_in_cost=all_in_cost,
        arv=arv,
        initial_capital_required=initial_capital_required,
        effective_gross_income=effective_gross_income,
        net_operating_income=noi,
        monthly_debt_service=monthly_debt_service,
        annual_debt_service=annual_debt_service,
        annual_cash_flow=annual_cash_flow,
        cap_rate=calculate_cap_rate(noi, financials.purchase_price),
        cash_on_cash_return=cash_on_cash_return,
        equity_multiple=calculate_equity_multiple(
            arv, all_in_cost, initial_capital_required
        ),
        dscr=calculate_dscr(noi, annual_debt_service),
        current_equity=calculate_current_equity(arv, financials.loan_amount),
        loan_to_value=calculate_ltv(financials.loan_amount, arv),
        loan_to_cost=calculate_ltc(financials.loan_amount, all_in_cost),
        break_even_occupancy=calculate_break_even_occupancy(
            financials.operating_expenses,
            annual_debt_service,
            financials.gross_rental_income,
        ),
        operating_expense_ratio=calculate_operating_expense_ratio(
            financials.operating_expenses, effective_gross_income
        ),
        total_return=arv - all_in_cost,
        # Year-one cash yield stands in for an annualized return here
        annualized_return=cash_on_cash_return,
    )


def compute_kpis(deal: Deal) -> DealKPIs:
    """
    Calculate KPIs for a deal with a unit rent roll and itemized costs.

    Debt service comes from the active loan only. Capital required is sized
    from the deal's loan percentage of purchase price plus rehab.
    """
    stabilization_months = (
        deal.start_to_stabilization_months or DEFAULT_STABILIZATION_MONTHS
    )

    # Costs
    total_rehab = sum(item.total_cost for item in deal.rehab_items)
    total_closing_costs = sum(item.amount for item in deal.closing_costs)
    total_holding_costs = (
        sum(item.monthly_amount for item in deal.holding_costs) * stabilization_months
    )
    all_in_cost = calculate_all_in_cost(
        deal.purchase_price, total_rehab, total_closing_costs, total_holding_costs
    )

    # Income and expenses
    income = calculate_deal_income(deal)
    expenses = calculate_deal_expenses(deal, income)
    noi = expenses.net_operating_income

    # Debt service
    initial_loan_amount = (deal.purchase_price + total_rehab) * deal.loan_percentage
    active_loan = select_active_loan(deal.loans)
    monthly_debt_service = calculate_deal_loan_payment(active_loan)
    annual_debt_service = monthly_debt_service * 12

    # Valuation and returns
    arv = calculate_arv(noi, deal.market_cap_rate)
    cash_flow = calculate_cash_flow(noi, annual_debt_service)
    capital_required = calculate_initial_capital(all_in_cost, initial_loan_amount)
    dscr = calculate_dscr(noi, annual_debt_service)

    if deal.units > 0:
        average_rent_per_unit = income.gross_rental_income / deal.units
        break_even_occupancy = calculate_break_even_occupancy(
            expenses.item_expenses,
            annual_debt_service,
            average_rent_per_unit * deal.units,
        )
    else:
        break_even_occupancy = 0.0

    # Exit at the end of a fixed hold for the approximate annualized return
    exit_cap_rate = deal.exit_cap_rate or deal.market_cap_rate
    future_noi = noi * (1 + deal.annual_rent_growth) ** KPI_HOLD_YEARS
    exit_value = calculate_arv(future_noi, exit_cap_rate)
    total_return = exit_value - all_in_cost + cash_flow * KPI_HOLD_YEARS

    # Refinance against ARV
    new_loan_amount = arv * deal.refinance_ltv
    if active_loan is not None:
        existing_loan_balance = calculate_remaining_balance(
            active_loan, stabilization_months
        )
    else:
        existing_loan_balance = initial_loan_amount
    cash_out = max(0.0, new_loan_amount - existing_loan_balance)

    risk = assess_risk(
        dscr, break_even_occupancy, deal.market_cap_rate, deal.exit_cap_rate
    )

    return DealKPIs(
        total_rehab=total_rehab,
        total_closing_costs=total_closing_costs,
        total_holding_costs=total_holding_costs,
        all_in_cost=all_in_cost,
        gross_rental_income=income.gross_rental_income,
        total_other_income=income.total_other_income,
        vacancy_loss=income.vacancy_loss,
        bad_debt_loss=income.bad_debt_loss,
        effective_gross_income=income.effective_gross_income,
        total_operating_expenses=expenses.total_operating_expenses,
        capex_reserve=expenses.capex_reserve,
        operating_reserve=expenses.operating_reserve,
        net_operating_income=noi,
        monthly_debt_service=monthly_debt_service,
        annual_debt_service=annual_debt_service,
        arv=arv,
        cash_flow=cash_flow,
        cash_on_cash_return=calculate_cash_on_cash_return(cash_flow, capital_required),
        cap_rate=calculate_cap_rate(noi, deal.purchase_price),
        dscr=dscr,
        ltc=calculate_ltc(initial_loan_amount, all_in_cost),
        ltv=calculate_ltv(initial_loan_amount, arv),
        capital_required=capital_required,
        total_cash_invested=capital_required + total_holding_costs,
        initial_loan_amount=initial_loan_amount,
        current_equity=calculate_current_equity(arv, initial_loan_amount),
        break_even_occupancy=break_even_occupancy,
        approximate_annualized_return=calculate_approximate_annualized_return(
            total_return, capital_required, KPI_HOLD_YEARS
        ),
        equity_multiple=calculate_equity_multiple(arv, all_in_cost, capital_required),
        new_loan_amount=new_loan_amount,
        cash_out=cash_out,
        total_profit=arv - all_in_cost + cash_out,
        is_speculative=risk.is_speculative,
        dscr_warning=risk.dscr_warning,
        occupancy_risk=risk.occupancy_risk,
    )


def compute_basic_metrics(
    purchase_price: float,
    gross_rental_income: float,
    operating_expenses: float,
    market_cap_rate: float,
    annual_debt_service: float = 0.0,
) -> BasicMetrics:
    """
    Reduced metric set for records whose detailed data cannot be read.

    No vacancy, financing structure or cost basis is assumed.
    """
    noi = gross_rental_income - operating_expenses

    return BasicMetrics(
        gross_rental_income=gross_rental_income,
        operating_expenses=operating_expenses,
        net_operating_income=noi,
        annual_debt_service=annual_debt_service,
        cash_flow=calculate_cash_flow(noi, annual_debt_service),
        cap_rate=calculate_cap_rate(noi, purchase_price),
        dscr=calculate_dscr(noi, annual_debt_service),
        arv=calculate_arv(noi, market_cap_rate),
    )
