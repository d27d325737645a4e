"""
Financial Calculation Engine

Pure calculation modules for real estate investment analysis. No I/O and no
module-level mutable state: every call works on its own input snapshot.
"""

from dealkpi.calculations import (
    amortization,
    income,
    valuation,
    returns,
    metrics,
    sensitivity,
    exit_scenarios,
    portfolio,
)
from dealkpi.calculations.metrics import compute_basic_metrics, compute_kpis, compute_metrics
from dealkpi.calculations.sensitivity import sweep
from dealkpi.calculations.exit_scenarios import project
from dealkpi.calculations.portfolio import summarize_portfolio

__all__ = [
    "amortization",
    "income",
    "valuation",
    "returns",
    "metrics",
    "sensitivity",
    "exit_scenarios",
    "portfolio",
    "compute_metrics",
    "compute_kpis",
    "compute_basic_metrics",
    "sweep",
    "project",
    "summarize_portfolio",
]
