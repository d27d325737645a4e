"""
Portfolio Roll-up

Aggregates per-property metrics into portfolio totals.
"""

from typing import Iterable, Tuple

from dealkpi.calculations.metrics import compute_metrics
from dealkpi.calculations.types import PortfolioSummary, PropertyFinancials


def summarize_portfolio(
    holdings: Iterable[Tuple[PropertyFinancials, int]],
) -> PortfolioSummary:
    """
    Summarize a portfolio.

    Args:
        holdings: (financials, unit count) pairs, one per property

    Returns:
        PortfolioSummary; the cap rate is weighted by each property's value
    """
    property_count = 0
    total_units = 0
    total_value = 0.0
    total_cash_flow = 0.0
    total_equity = 0.0
    total_noi = 0.0
    weighted_cap_rate_sum = 0.0

    for financials, units in holdings:
        metrics = compute_metrics(financials)

        property_count += 1
        total_units += units or 0
        total_value += metrics.arv
        total_cash_flow += metrics.annual_cash_flow
        total_equity += metrics.current_equity
        total_noi += metrics.net_operating_income
        weighted_cap_rate_sum += metrics.cap_rate * metrics.arv

    weighted_cap_rate = weighted_cap_rate_sum / total_value if total_value > 0 else 0.0

    return PortfolioSummary(
        property_count=property_count,
        total_units=total_units,
        total_value=total_value,
        total_cash_flow=total_cash_flow,
        total_equity=total_equity,
        total_noi=total_noi,
        weighted_cap_rate=weighted_cap_rate,
    )
