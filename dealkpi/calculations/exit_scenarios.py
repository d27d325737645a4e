"""
Exit Scenario Modeling

Projects NOI forward over a hold period and compares holding, refinancing
and selling. All three dispositions share the same projected NOI and sale
price.
"""

from dealkpi.calculations.amortization import calculate_payment
from dealkpi.calculations.income import calculate_noi
from dealkpi.calculations.metrics import compute_metrics
from dealkpi.calculations.types import ExitScenario, ExitScenarios, PropertyFinancials
from dealkpi.calculations.valuation import (
    calculate_all_in_cost,
    calculate_arv,
    calculate_initial_capital,
)

DEFAULT_REFINANCE_LTV = 0.75
DEFAULT_REFINANCE_RATE = 0.065


def calculate_growth_factor(annual_rate: float, years: float) -> float:
    """Compound growth factor after a number of years."""
    return (1 + annual_rate) ** years


def _per_capital(amount: float, capital: float) -> float:
    if capital <= 0:
        return 0.0
    return amount / capital


def project(
    base: PropertyFinancials,
    hold_period_years: int = 3,
    annual_rent_growth: float = 0.03,
    annual_expense_growth: float = 0.025,
    sale_costs_percent: float = 0.06,
) -> ExitScenarios:
    """
    Project hold, refinance and sale outcomes at the end of the hold period.

    Args:
        base: Property snapshot at acquisition
        hold_period_years: Years until the disposition
        annual_rent_growth: Annual growth of gross rental income
        annual_expense_growth: Annual growth of operating expenses
        sale_costs_percent: Selling costs as a share of the sale price

    Returns:
        ExitScenarios with hold, refinance and sale outcomes

    Raises:
        ValueError: If the hold period is negative
    """
    if hold_period_years < 0:
        raise ValueError("Hold period cannot be negative")

    future_gross_income = base.gross_rental_income * calculate_growth_factor(
        annual_rent_growth, hold_period_years
    )
    future_expenses = base.operating_expenses * calculate_growth_factor(
        annual_expense_growth, hold_period_years
    )
    future_noi = calculate_noi(
        future_gross_income, base.vacancy_rate, base.other_income, future_expenses
    )

    exit_cap_rate = base.exit_cap_rate or base.market_cap_rate
    projected_sale_price = calculate_arv(future_noi, exit_cap_rate)

    all_in_cost = calculate_all_in_cost(
        base.purchase_price, base.rehab_costs, base.closing_costs, base.holding_costs
    )
    initial_capital = calculate_initial_capital(all_in_cost, base.loan_amount)

    # Hold: keep the existing loan, serviced interest-only
    hold_debt_service = base.loan_amount * base.interest_rate
    hold = ExitScenario(
        hold_period_years=hold_period_years,
        projected_noi=future_noi,
        projected_sale_price=0.0,
        sale_costs=0.0,
        net_sale_proceeds=0.0,
        annual_debt_service=hold_debt_service,
        total_cash_flow=future_noi - hold_debt_service,
        total_return=future_noi * hold_period_years,
        annualized_return=_per_capital(future_noi, initial_capital),
        equity_multiple=_per_capital(
            projected_sale_price - base.loan_amount, initial_capital
        ),
    )

    # Refinance: new loan sized on projected value, excess pays out
    refinance_ltv = (
        DEFAULT_REFINANCE_LTV if base.refinance_ltv is None else base.refinance_ltv
    )
    refinance_rate = (
        DEFAULT_REFINANCE_RATE if base.refinance_rate is None else base.refinance_rate
    )
    refinance_amount = projected_sale_price * refinance_ltv
    cash_out_amount = refinance_amount - base.loan_amount
    refinance_debt_service = (
        calculate_payment(
            refinance_amount, refinance_rate, base.loan_term_years, base.payment_type
        )
        * 12
    )
    refinance = ExitScenario(
        hold_period_years=hold_period_years,
        projected_noi=future_noi,
        projected_sale_price=projected_sale_price,
        sale_costs=0.0,
        net_sale_proceeds=cash_out_amount,
        annual_debt_service=refinance_debt_service,
        total_cash_flow=future_noi - refinance_debt_service,
        total_return=cash_out_amount + future_noi * hold_period_years,
        annualized_return=_per_capital(cash_out_amount + future_noi, initial_capital),
        equity_multiple=_per_capital(
            projected_sale_price - refinance_amount + cash_out_amount, initial_capital
        ),
    )

    # Sale: pay selling costs and retire the loan
    sale_costs = projected_sale_price * sale_costs_percent
    net_sale_proceeds = projected_sale_price - sale_costs - base.loan_amount
    baseline_cash_flow = compute_metrics(base).annual_cash_flow
    if hold_period_years > 0:
        sale_annualized_return = _per_capital(
            net_sale_proceeds / hold_period_years, initial_capital
        )
    else:
        sale_annualized_return = 0.0
    sale = ExitScenario(
        hold_period_years=hold_period_years,
        projected_noi=future_noi,
        projected_sale_price=projected_sale_price,
        sale_costs=sale_costs,
        net_sale_proceeds=net_sale_proceeds,
        annual_debt_service=0.0,
        total_cash_flow=0.0,
        total_return=net_sale_proceeds + baseline_cash_flow * hold_period_years,
        annualized_return=sale_annualized_return,
        equity_multiple=_per_capital(net_sale_proceeds, initial_capital),
    )

    return ExitScenarios(hold=hold, refinance=refinance, sale=sale)
