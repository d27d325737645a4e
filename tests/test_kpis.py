"""
Tests for deal KPIs and portfolio roll-up.
"""

import pytest
from dataclasses import replace

from dealkpi.calculations.amortization import calculate_payment, calculate_remaining_balance
from dealkpi.calculations.metrics import KPI_HOLD_YEARS, compute_kpis
from dealkpi.calculations.portfolio import summarize_portfolio
from dealkpi.calculations.returns import calculate_approximate_annualized_return
from dealkpi.calculations.types import (
    ClosingCostItem,
    Deal,
    ExpenseItem,
    HoldingCostItem,
    LoanRecord,
    OtherIncomeItem,
    RehabItem,
    UnitRecord,
)


@pytest.fixture
def fourplex():
    """Four units, two occupied and two vacant, with one acquisition loan."""
    return Deal(
        purchase_price=400_000,
        units=4,
        vacancy_rate=0.05,
        bad_debt_rate=0.02,
        capex_reserve_per_unit=250,
        operating_reserve_months=6,
        start_to_stabilization_months=6,
        loan_percentage=0.75,
        refinance_ltv=0.75,
        market_cap_rate=0.06,
        annual_rent_growth=0.03,
        rehab_items=[RehabItem(total_cost=30_000), RehabItem(total_cost=20_000)],
        unit_records=[
            UnitRecord(is_occupied=True, current_rent=1_000, market_rent=1_100),
            UnitRecord(is_occupied=True, current_rent=1_000, market_rent=1_100),
            UnitRecord(is_occupied=False, current_rent=0, market_rent=1_200),
            UnitRecord(is_occupied=False, current_rent=0, market_rent=1_200),
        ],
        expenses=[
            ExpenseItem(monthly_amount=500),
            ExpenseItem(is_percent_of_rent=True, percentage=0.08),
        ],
        closing_costs=[ClosingCostItem(amount=8_000), ClosingCostItem(amount=2_000)],
        holding_costs=[HoldingCostItem(monthly_amount=1_000)],
        loans=[LoanRecord(loan_amount=300_000, interest_rate=0.07)],
        other_income=[OtherIncomeItem(monthly_amount=100)],
    )


class TestDealIncome:
    """Rent roll, losses and expenses."""

    def test_gross_rent_from_rent_roll(self, fourplex):
        """Occupied units use in-place rent, vacant units use market rent."""
        kpis = compute_kpis(fourplex)
        assert kpis.gross_rental_income == 52_800
        assert kpis.total_other_income == 1_200

    def test_losses_and_egi(self, fourplex):
        kpis = compute_kpis(fourplex)
        assert abs(kpis.vacancy_loss - 2_640) < 0.01
        assert abs(kpis.bad_debt_loss - 1_056) < 0.01
        assert abs(kpis.effective_gross_income - 50_304) < 0.01

    def test_expenses_and_noi(self, fourplex):
        kpis = compute_kpis(fourplex)
        assert kpis.capex_reserve == 1_000
        assert abs(kpis.total_operating_expenses - 11_224) < 0.01
        assert abs(kpis.net_operating_income - 39_080) < 0.01

    def test_operating_reserve_not_in_noi(self, fourplex):
        kpis = compute_kpis(fourplex)
        assert abs(kpis.operating_reserve - 20_040) < 0.01
        with_more_reserve = compute_kpis(replace(fourplex, operating_reserve_months=12))
        assert with_more_reserve.net_operating_income == kpis.net_operating_income
        assert abs(with_more_reserve.operating_reserve - 40_080) < 0.01

    def test_default_operating_reserve_months(self, fourplex):
        kpis = compute_kpis(replace(fourplex, operating_reserve_months=None))
        assert abs(kpis.operating_reserve - 20_040) < 0.01


class TestDealCosts:
    """Cost basis and capital."""

    def test_cost_totals(self, fourplex):
        kpis = compute_kpis(fourplex)
        assert kpis.total_rehab == 50_000
        assert kpis.total_closing_costs == 10_000
        assert kpis.total_holding_costs == 6_000
        assert kpis.all_in_cost == 466_000

    def test_default_stabilization_months(self, fourplex):
        kpis = compute_kpis(replace(fourplex, start_to_stabilization_months=None))
        assert kpis.total_holding_costs == 12_000

    def test_capital_from_loan_percentage(self, fourplex):
        kpis = compute_kpis(fourplex)
        assert kpis.initial_loan_amount == 337_500
        assert kpis.capital_required == 128_500
        assert kpis.total_cash_invested == 134_500


class TestDealReturns:
    """Debt service, valuation and returns."""

    def test_debt_service_from_active_loan(self, fourplex):
        kpis = compute_kpis(fourplex)
        expected = calculate_payment(300_000, 0.07, 30)
        assert abs(kpis.monthly_debt_service - expected) < 0.01
        assert abs(kpis.annual_debt_service - expected * 12) < 0.01

    def test_no_loans(self, fourplex):
        kpis = compute_kpis(replace(fourplex, loans=[]))
        assert kpis.annual_debt_service == 0
        assert kpis.dscr == 0
        assert kpis.dscr_warning

    def test_valuation_and_returns(self, fourplex):
        kpis = compute_kpis(fourplex)
        assert abs(kpis.arv - 39_080 / 0.06) < 0.01
        assert abs(kpis.cash_flow - (39_080 - kpis.annual_debt_service)) < 0.01
        assert abs(kpis.cash_on_cash_return - kpis.cash_flow / 128_500) < 0.0001
        assert abs(kpis.cap_rate - 39_080 / 400_000) < 0.0001
        assert abs(kpis.ltc - 337_500 / 466_000) < 0.0001
        assert abs(kpis.ltv - 337_500 / kpis.arv) < 0.0001
        assert abs(kpis.current_equity - (kpis.arv - 337_500)) < 0.01

    def test_break_even_occupancy(self, fourplex):
        kpis = compute_kpis(fourplex)
        expected = (10_224 + kpis.annual_debt_service) / 52_800
        assert abs(kpis.break_even_occupancy - expected) < 0.0001

    def test_break_even_without_units(self, fourplex):
        kpis = compute_kpis(replace(fourplex, units=0))
        assert kpis.break_even_occupancy == 0
        assert kpis.capex_reserve == 0

    def test_approximate_annualized_return(self, fourplex):
        kpis = compute_kpis(fourplex)
        exit_value = 39_080 * 1.03 ** KPI_HOLD_YEARS / 0.06
        total_return = exit_value - 466_000 + kpis.cash_flow * KPI_HOLD_YEARS
        expected = calculate_approximate_annualized_return(
            total_return, 128_500, KPI_HOLD_YEARS
        )
        assert abs(kpis.approximate_annualized_return - expected) < 0.0001
        assert kpis.approximate_annualized_return > 0

    def test_refinance(self, fourplex):
        kpis = compute_kpis(fourplex)
        assert abs(kpis.new_loan_amount - kpis.arv * 0.75) < 0.01

        balance = calculate_remaining_balance(fourplex.loans[0], 6)
        assert abs(kpis.cash_out - (kpis.new_loan_amount - balance)) < 0.01
        assert abs(kpis.total_profit - (kpis.arv - 466_000 + kpis.cash_out)) < 0.01

    def test_refinance_pays_off_full_balance_of_zero_rate_loan(self, fourplex):
        """A loan with no scheduled payments still owes its principal."""
        seller_note = LoanRecord(loan_amount=300_000, interest_rate=0.0)
        kpis = compute_kpis(replace(fourplex, loans=[seller_note]))
        assert kpis.annual_debt_service == 0
        assert abs(kpis.cash_out - max(0.0, kpis.new_loan_amount - 300_000)) < 0.01

    def test_cash_out_floored_at_zero(self, fourplex):
        kpis = compute_kpis(replace(fourplex, refinance_ltv=0.1))
        assert kpis.cash_out == 0

    def test_risk_flags(self, fourplex):
        kpis = compute_kpis(fourplex)
        assert not kpis.is_speculative
        assert not kpis.dscr_warning
        assert not kpis.occupancy_risk

        speculative = compute_kpis(replace(fourplex, exit_cap_rate=0.05))
        assert speculative.is_speculative

    def test_empty_deal(self):
        kpis = compute_kpis(Deal(purchase_price=0))
        assert kpis.all_in_cost == 0
        assert kpis.arv == 0
        assert kpis.cash_on_cash_return == 0
        assert kpis.approximate_annualized_return == 0


class TestDealSnapshot:
    def test_collections_are_frozen(self, fourplex):
        assert isinstance(fourplex.loans, tuple)
        assert isinstance(fourplex.unit_records, tuple)


class TestPortfolio:
    """Portfolio roll-up."""

    def test_summary(self, base_financials):
        all_cash = replace(base_financials, loan_amount=0)
        summary = summarize_portfolio([(base_financials, 10), (all_cash, 6)])

        assert summary.property_count == 2
        assert summary.total_units == 16
        assert abs(summary.total_value - 2 * 1_215_384.62) < 0.02
        assert abs(summary.total_noi - 158_000) < 0.01
        assert abs(summary.total_cash_flow - (48_660.76 + 79_000)) < 0.1
        assert abs(summary.total_equity - (815_384.62 + 1_215_384.62)) < 0.02
        assert abs(summary.weighted_cap_rate - 0.158) < 0.0001

    def test_empty_portfolio(self):
        summary = summarize_portfolio([])
        assert summary.property_count == 0
        assert summary.total_value == 0
        assert summary.weighted_cap_rate == 0
