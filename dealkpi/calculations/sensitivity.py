"""
Sensitivity Analysis

Re-runs the full metrics pipeline under perturbed rent, cap rate and interest
rate. Each cell is an independent computation on a modified copy of the base
snapshot.
"""

from dataclasses import replace

from dealkpi.calculations.metrics import compute_metrics
from dealkpi.calculations.types import PropertyFinancials, SensitivityResult

# Multiplicative shocks to gross rental income
RENT_SHOCKS = {
    "minus10": 0.90,
    "minus5": 0.95,
    "plus5": 1.05,
    "plus10": 1.10,
}

# Additive shocks in decimal-fraction units (0.01 = 100bp)
RATE_SHOCKS = {
    "minus1": -0.01,
    "minus_half": -0.005,
    "plus_half": 0.005,
    "plus1": 0.01,
}


def sweep(base: PropertyFinancials) -> SensitivityResult:
    """Calculate metrics for the base case and every shocked input."""
    rent_sensitivity = {
        key: compute_metrics(
            replace(base, gross_rental_income=base.gross_rental_income * factor)
        )
        for key, factor in RENT_SHOCKS.items()
    }

    cap_rate_sensitivity = {
        key: compute_metrics(
            replace(base, market_cap_rate=base.market_cap_rate + shock)
        )
        for key, shock in RATE_SHOCKS.items()
    }

    interest_rate_sensitivity = {
        key: compute_metrics(replace(base, interest_rate=base.interest_rate + shock))
        for key, shock in RATE_SHOCKS.items()
    }

    return SensitivityResult(
        base_case=compute_metrics(base),
        rent_sensitivity=rent_sensitivity,
        cap_rate_sensitivity=cap_rate_sensitivity,
        interest_rate_sensitivity=interest_rate_sensitivity,
    )
