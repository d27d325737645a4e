"""
Return Metric Calculations

Cash flow, return ratios, coverage, break-even occupancy and risk flags.

Every ratio resolves to 0 when its denominator is not positive so that a
metrics record can always be produced.
"""

from dataclasses import dataclass
from typing import Optional

DSCR_WARNING_THRESHOLD = 1.15
OCCUPANCY_RISK_THRESHOLD = 0.90


@dataclass(frozen=True)
class RiskFlags:
    is_speculative: bool
    dscr_warning: bool
    occupancy_risk: bool


def calculate_cash_flow(noi: float, annual_debt_service: float) -> float:
    """Annual cash flow after debt service."""
    return noi - annual_debt_service


def calculate_cash_on_cash_return(
    annual_cash_flow: float, capital_required: float
) -> float:
    """Annual cash flow over the equity actually contributed."""
    if capital_required <= 0:
        return 0.0
    return annual_cash_flow / capital_required


def calculate_equity_multiple(
    arv: float, all_in_cost: float, capital_required: float
) -> float:
    """
    Equity value over invested capital.

    The portion of the all-in cost financed by others is
    ``all_in_cost - capital_required``; what remains of ARV after repaying
    it is the investor's equity.
    """
    if capital_required <= 0:
        return 0.0
    total_equity = arv - (all_in_cost - capital_required)
    return total_equity / capital_required


def calculate_dscr(noi: float, annual_debt_service: float) -> float:
    """
    Calculate Debt Service Coverage Ratio (DSCR).

    Returns 0, not infinity, when there is no debt service.
    """
    if annual_debt_service <= 0:
        return 0.0
    return noi / annual_debt_service


def calculate_cap_rate(noi: float, purchase_price: float) -> float:
    """Going-in cap rate on the purchase price."""
    if purchase_price <= 0:
        return 0.0
    return noi / purchase_price


def calculate_break_even_occupancy(
    operating_expenses: float, annual_debt_service: float, gross_rental_income: float
) -> float:
    """Occupancy at which rent covers operating expenses and debt service."""
    if gross_rental_income <= 0:
        return 0.0
    return (operating_expenses + annual_debt_service) / gross_rental_income


def calculate_approximate_annualized_return(
    total_return: float, capital_required: float, hold_years: float
) -> float:
    """
    Single-period geometric approximation of an annualized return.

    ``(total_return / capital_required) ** (1 / hold_years) - 1``. This is not
    an IRR solve: interim cash flow timing is ignored. Returns 0 when the
    growth base is not positive.
    """
    if capital_required <= 0 or hold_years <= 0:
        return 0.0

    growth = total_return / capital_required
    if growth <= 0:
        return 0.0

    return growth ** (1 / hold_years) - 1


def assess_risk(
    dscr: float,
    break_even_occupancy: float,
    market_cap_rate: float,
    exit_cap_rate: Optional[float] = None,
) -> RiskFlags:
    """
    Flag thin coverage, high break-even occupancy, and exits that rely on
    cap-rate compression.
    """
    effective_exit_cap_rate = exit_cap_rate or market_cap_rate

    return RiskFlags(
        is_speculative=effective_exit_cap_rate < market_cap_rate,
        dscr_warning=dscr < DSCR_WARNING_THRESHOLD,
        occupancy_risk=break_even_occupancy > OCCUPANCY_RISK_THRESHOLD,
    )
