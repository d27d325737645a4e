"""
Financial calculation API endpoints.

Stateless endpoints: each accepts a full input snapshot and returns freshly
calculated results. Nothing is persisted.
"""

from fastapi import APIRouter, HTTPException

from dealkpi.api.schemas import (
    DealInput,
    ExitScenarioInput,
    GrowthAssumptions,
    PropertyFinancialsInput,
)
from dealkpi.calculations import exit_scenarios
from dealkpi.calculations.metrics import compute_kpis, compute_metrics
from dealkpi.calculations.sensitivity import sweep
from dealkpi.calculations.types import (
    CalculatedMetrics,
    DealKPIs,
    ExitScenarios,
    PropertyFinancials,
    SensitivityResult,
)
from dealkpi.config import get_settings

router = APIRouter()
settings = get_settings()


def run_exit_projection(
    financials: PropertyFinancials, assumptions: GrowthAssumptions
) -> ExitScenarios:
    """
    Project exit scenarios, filling unset assumptions from settings.

    Raises:
        HTTPException: 400 if the projection inputs are invalid
    """

    def pick(value, default):
        return default if value is None else value

    try:
        return exit_scenarios.project(
            financials,
            hold_period_years=pick(
                assumptions.hold_period_years, settings.default_hold_period_years
            ),
            annual_rent_growth=pick(
                assumptions.annual_rent_growth, settings.default_annual_rent_growth
            ),
            annual_expense_growth=pick(
                assumptions.annual_expense_growth,
                settings.default_annual_expense_growth,
            ),
            sale_costs_percent=pick(
                assumptions.sale_costs_percent, settings.default_sale_costs_percent
            ),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/metrics", response_model=CalculatedMetrics)
async def calculate_metrics(inputs: PropertyFinancialsInput):
    """Calculate the full metric set for a property snapshot."""
    return compute_metrics(inputs.to_financials())


@router.post("/sensitivity", response_model=SensitivityResult)
async def calculate_sensitivity(inputs: PropertyFinancialsInput):
    """Recalculate metrics under rent, cap rate and interest rate shocks."""
    return sweep(inputs.to_financials())


@router.post("/exit-scenarios", response_model=ExitScenarios)
async def calculate_exit_scenarios(inputs: ExitScenarioInput):
    """Compare hold, refinance and sale at the end of the hold period."""
    return run_exit_projection(inputs.financials.to_financials(), inputs)


@router.post("/kpis", response_model=DealKPIs)
async def calculate_deal_kpis(inputs: DealInput):
    """Calculate KPIs for an unsaved deal."""
    return compute_kpis(inputs.to_deal())

