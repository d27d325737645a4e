"""
Tests for sensitivity analysis and exit scenario modeling.
"""

import pytest
from dataclasses import replace

from dealkpi.calculations.amortization import calculate_payment
from dealkpi.calculations.exit_scenarios import (
    DEFAULT_REFINANCE_LTV,
    DEFAULT_REFINANCE_RATE,
    calculate_growth_factor,
    project,
)
from dealkpi.calculations.metrics import compute_metrics
from dealkpi.calculations.sensitivity import RATE_SHOCKS, RENT_SHOCKS, sweep


class TestSensitivity:
    """Test the sensitivity sweep."""

    def test_base_case_matches_pipeline(self, base_financials):
        result = sweep(base_financials)
        assert result.base_case == compute_metrics(base_financials)

    def test_all_cells_present(self, base_financials):
        result = sweep(base_financials)
        assert set(result.rent_sensitivity) == set(RENT_SHOCKS)
        assert set(result.cap_rate_sensitivity) == set(RATE_SHOCKS)
        assert set(result.interest_rate_sensitivity) == set(RATE_SHOCKS)

    def test_rent_cells_use_same_pipeline(self, base_financials):
        """A shocked cell equals the pipeline run on the shocked input."""
        result = sweep(base_financials)
        expected = compute_metrics(
            replace(base_financials, gross_rental_income=120_000 * 0.90)
        )
        assert result.rent_sensitivity["minus10"] == expected

    def test_rent_direction(self, base_financials):
        result = sweep(base_financials)
        base_noi = result.base_case.net_operating_income
        assert result.rent_sensitivity["minus10"].net_operating_income < base_noi
        assert result.rent_sensitivity["minus5"].net_operating_income < base_noi
        assert result.rent_sensitivity["plus5"].net_operating_income > base_noi
        assert result.rent_sensitivity["plus10"].net_operating_income > base_noi

    def test_cap_rate_direction(self, base_financials):
        result = sweep(base_financials)
        base_arv = result.base_case.arv
        assert result.cap_rate_sensitivity["minus1"].arv > base_arv
        assert result.cap_rate_sensitivity["plus1"].arv < base_arv

    def test_interest_rate_direction(self, base_financials):
        result = sweep(base_financials)
        base_ads = result.base_case.annual_debt_service
        assert result.interest_rate_sensitivity["minus_half"].annual_debt_service < base_ads
        assert result.interest_rate_sensitivity["plus_half"].annual_debt_service > base_ads

    def test_shock_to_non_positive_cap_rate(self, base_financials):
        """A shock that drives the cap rate to zero or below yields no value."""
        result = sweep(replace(base_financials, market_cap_rate=0.005))
        assert result.cap_rate_sensitivity["minus1"].arv == 0
        assert result.cap_rate_sensitivity["minus_half"].arv == 0

    def test_shock_to_non_positive_interest_rate(self, base_financials):
        result = sweep(replace(base_financials, interest_rate=0.005))
        assert result.interest_rate_sensitivity["minus1"].annual_debt_service == 0

    def test_base_not_mutated(self, base_financials):
        before = replace(base_financials)
        sweep(base_financials)
        assert base_financials == before


class TestExitScenarios:
    """Test hold, refinance and sale projections."""

    def test_growth_factor(self):
        assert calculate_growth_factor(0.03, 0) == 1
        assert abs(calculate_growth_factor(0.10, 2) - 1.21) < 1e-9

    def test_shared_projection(self, base_financials):
        result = project(base_financials)
        assert result.hold.projected_noi == result.refinance.projected_noi
        assert result.refinance.projected_noi == result.sale.projected_noi
        assert result.refinance.projected_sale_price == result.sale.projected_sale_price

    def test_zero_hold_uses_current_noi(self, base_financials):
        result = project(base_financials, hold_period_years=0)
        assert abs(result.sale.projected_noi - 79_000) < 0.01
        assert abs(result.sale.projected_sale_price - 1_215_384.62) < 0.01
        assert result.sale.annualized_return == 0

    def test_projected_noi(self, base_financials):
        result = project(
            base_financials,
            hold_period_years=3,
            annual_rent_growth=0.03,
            annual_expense_growth=0.025,
        )
        future_rent = 120_000 * 1.03 ** 3
        future_expenses = 40_000 * 1.025 ** 3
        expected = future_rent * 0.95 + 5_000 - future_expenses
        assert abs(result.hold.projected_noi - expected) < 0.01

    def test_exit_cap_rate_preferred(self, base_financials):
        result = project(replace(base_financials, exit_cap_rate=0.07))
        assert abs(
            result.sale.projected_sale_price - result.sale.projected_noi / 0.07
        ) < 0.01

    def test_hold(self, base_financials):
        result = project(base_financials, hold_period_years=3)
        hold = result.hold
        assert abs(hold.annual_debt_service - 26_000) < 0.01
        assert abs(hold.total_cash_flow - (hold.projected_noi - 26_000)) < 0.01
        assert abs(hold.total_return - hold.projected_noi * 3) < 0.01
        assert hold.sale_costs == 0

    def test_hold_returns_on_capital(self, base_financials):
        """Three-year hold against 230,000 of contributed capital."""
        hold = project(base_financials, hold_period_years=3).hold
        # 120,000 * 1.03^3 * 0.95 + 5,000 - 40,000 * 1.025^3
        assert abs(hold.projected_noi - 86_495.253) < 0.001
        assert abs(hold.annualized_return - 86_495.253 / 230_000) < 0.0001
        # Sale price 86,495.253 / 0.065 = 1,330,696.20 less the 400,000 loan
        assert abs(hold.equity_multiple - 930_696.20 / 230_000) < 0.0001
        assert abs(hold.equity_multiple - 4.0465) < 0.0001

    def test_refinance_returns_on_capital(self, base_financials):
        refinance = project(base_financials, hold_period_years=3).refinance
        assert abs(refinance.projected_sale_price - 1_330_696.20) < 0.01

        # 75% of 1,330,696.20 is 998,022.15; 598,022.15 pays out over the loan
        assert abs(refinance.net_sale_proceeds - 598_022.15) < 0.01
        assert abs(refinance.total_return - (598_022.15 + 86_495.253 * 3)) < 0.01
        assert abs(refinance.total_return - 857_507.91) < 0.01
        assert abs(
            refinance.annualized_return - (598_022.15 + 86_495.253) / 230_000
        ) < 0.0001
        assert abs(refinance.annualized_return - 2.9762) < 0.0001
        # Retained equity plus the cash paid out
        expected_multiple = (1_330_696.20 - 998_022.15 + 598_022.15) / 230_000
        assert abs(refinance.equity_multiple - expected_multiple) < 0.0001

    def test_refinance_defaults(self, base_financials):
        result = project(base_financials)
        refinance = result.refinance
        refinance_amount = refinance.projected_sale_price * DEFAULT_REFINANCE_LTV
        assert abs(refinance.net_sale_proceeds - (refinance_amount - 400_000)) < 0.01

        expected_ads = calculate_payment(refinance_amount, DEFAULT_REFINANCE_RATE, 30) * 12
        assert abs(refinance.annual_debt_service - expected_ads) < 0.01

    def test_refinance_explicit_zero_ltv(self, base_financials):
        """An explicit zero is honored rather than replaced by the default."""
        result = project(replace(base_financials, refinance_ltv=0.0))
        assert result.refinance.net_sale_proceeds == -400_000
        assert result.refinance.annual_debt_service == 0

    def test_sale_identity(self, base_financials):
        sale = project(base_financials, sale_costs_percent=0.06).sale
        assert sale.net_sale_proceeds == (
            sale.projected_sale_price - sale.sale_costs - 400_000
        )
        assert abs(sale.sale_costs - sale.projected_sale_price * 0.06) < 0.01

    def test_sale_total_return(self, base_financials):
        sale = project(base_financials, hold_period_years=3).sale
        expected = sale.net_sale_proceeds + 48_660.76 * 3
        assert abs(sale.total_return - expected) < 1
        assert abs(
            sale.annualized_return - (sale.net_sale_proceeds / 3) / 230_000
        ) < 0.0001

    def test_no_capital_returns_zero(self, base_financials):
        result = project(replace(base_financials, loan_amount=630_000))
        assert result.hold.annualized_return == 0
        assert result.sale.equity_multiple == 0

    def test_negative_hold_rejected(self, base_financials):
        with pytest.raises(ValueError):
            project(base_financials, hold_period_years=-1)
