"""
Property management API endpoints.
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from dealkpi.api.calculations import run_exit_projection
from dealkpi.api.schemas import GrowthAssumptions, PropertyFinancialsInput
from dealkpi.calculations.amortization import calculate_payment
from dealkpi.calculations.metrics import compute_basic_metrics, compute_metrics
from dealkpi.calculations.portfolio import summarize_portfolio
from dealkpi.calculations.sensitivity import sweep
from dealkpi.calculations.types import (
    BasicMetrics,
    CalculatedMetrics,
    ExitScenarios,
    PaymentType,
    PortfolioSummary,
    PropertyFinancials,
    SensitivityResult,
)
from dealkpi.db.database import get_db
from dealkpi.db.models import Property
from dealkpi.services.legacy_adapter import (
    LegacyDataError,
    property_financials_from_legacy,
)
from dealkpi.services.snapshots import get_property_row, property_to_financials

logger = logging.getLogger(__name__)

router = APIRouter()


class PropertyCreate(PropertyFinancialsInput):
    """Schema for creating a property."""

    name: str
    address_street: Optional[str] = None
    address_city: Optional[str] = None
    address_state: Optional[str] = None
    address_zip: Optional[str] = None
    units: int = 0
    deal_analyzer_data: Optional[str] = None


class PropertyUpdate(BaseModel):
    """Schema for updating a property."""

    name: Optional[str] = None
    address_street: Optional[str] = None
    address_city: Optional[str] = None
    address_state: Optional[str] = None
    address_zip: Optional[str] = None
    units: Optional[int] = None
    purchase_price: Optional[float] = None
    rehab_costs: Optional[float] = None
    closing_costs: Optional[float] = None
    holding_costs: Optional[float] = None
    gross_rental_income: Optional[float] = None
    vacancy_rate: Optional[float] = None
    other_income: Optional[float] = None
    operating_expenses: Optional[float] = None
    loan_amount: Optional[float] = None
    interest_rate: Optional[float] = None
    loan_term_years: Optional[int] = None
    payment_type: Optional[PaymentType] = None
    market_cap_rate: Optional[float] = None
    exit_cap_rate: Optional[float] = None
    refinance_ltv: Optional[float] = None
    refinance_rate: Optional[float] = None
    deal_analyzer_data: Optional[str] = None


class PropertyResponse(BaseModel):
    """Schema for property response."""

    id: str
    name: str
    address_street: Optional[str]
    address_city: Optional[str]
    address_state: Optional[str]
    address_zip: Optional[str]
    units: Optional[int]
    purchase_price: Optional[float]
    rehab_costs: Optional[float]
    closing_costs: Optional[float]
    holding_costs: Optional[float]
    gross_rental_income: Optional[float]
    vacancy_rate: Optional[float]
    other_income: Optional[float]
    operating_expenses: Optional[float]
    loan_amount: Optional[float]
    interest_rate: Optional[float]
    loan_term_years: Optional[int]
    payment_type: Optional[str]
    market_cap_rate: Optional[float]
    exit_cap_rate: Optional[float]
    refinance_ltv: Optional[float]
    refinance_rate: Optional[float]
    has_legacy_data: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PropertyListResponse(BaseModel):
    """Response for listing properties."""

    properties: List[PropertyResponse]
    total: int


class PropertyMetricsResponse(BaseModel):
    """
    Metrics for a property.

    ``source`` is ``columns`` or ``legacy`` when the full metric set was
    calculated, and ``basic`` when the legacy blob was unreadable and only
    the reduced set is available.
    """

    property_id: str
    source: str
    metrics: Optional[CalculatedMetrics] = None
    basic_metrics: Optional[BasicMetrics] = None


def property_to_response(prop: Property) -> PropertyResponse:
    """Convert Property model to response schema."""
    response = PropertyResponse.model_validate(prop)
    response.has_legacy_data = bool(prop.deal_analyzer_data)
    return response


def resolve_financials(prop: Property) -> PropertyFinancials:
    """
    Build the snapshot for a property.

    Properties carrying a legacy blob are mapped through the legacy adapter;
    all others use their columns.

    Raises:
        LegacyDataError: If the legacy blob cannot be mapped
    """
    if prop.deal_analyzer_data:
        return property_financials_from_legacy(
            prop.deal_analyzer_data, purchase_price=prop.purchase_price
        )
    return property_to_financials(prop)


def get_property_or_404(db: Session, property_id: str) -> Property:
    db_property = get_property_row(db, property_id)
    if not db_property:
        raise HTTPException(status_code=404, detail="Property not found")
    return db_property


def resolve_financials_or_422(prop: Property) -> PropertyFinancials:
    try:
        return resolve_financials(prop)
    except LegacyDataError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/", response_model=PropertyListResponse)
async def list_properties(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    """List all properties."""
    query = db.query(Property).filter(Property.is_deleted == False)

    total = query.count()
    properties = query.offset(skip).limit(limit).all()

    return PropertyListResponse(
        properties=[property_to_response(p) for p in properties],
        total=total,
    )


@router.post("/", response_model=PropertyResponse, status_code=201)
async def create_property(
    property_data: PropertyCreate,
    db: Session = Depends(get_db),
):
    """Create a new property."""
    values = property_data.model_dump()
    values["payment_type"] = property_data.payment_type.value
    db_property = Property(**values)

    db.add(db_property)
    db.commit()
    db.refresh(db_property)

    return property_to_response(db_property)


@router.get("/portfolio/summary", response_model=PortfolioSummary)
async def get_portfolio_summary(db: Session = Depends(get_db)):
    """Roll up metrics across all properties whose data can be read."""
    holdings = []
    for prop in db.query(Property).filter(Property.is_deleted == False).all():
        try:
            holdings.append((resolve_financials(prop), prop.units or 0))
        except LegacyDataError as e:
            logger.warning(f"Excluding property {prop.id} from portfolio: {str(e)}")

    return summarize_portfolio(holdings)


@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(
    property_id: str,
    db: Session = Depends(get_db),
):
    """Get a property by ID."""
    return property_to_response(get_property_or_404(db, property_id))


@router.put("/{property_id}", response_model=PropertyResponse)
async def update_property(
    property_id: str,
    property_data: PropertyUpdate,
    db: Session = Depends(get_db),
):
    """Update a property."""
    db_property = get_property_or_404(db, property_id)

    # Update only provided fields
    update_data = property_data.model_dump(exclude_unset=True)
    if update_data.get("payment_type") is not None:
        update_data["payment_type"] = update_data["payment_type"].value
    for field, value in update_data.items():
        setattr(db_property, field, value)

    db.commit()
    db.refresh(db_property)

    return property_to_response(db_property)


@router.delete("/{property_id}")
async def delete_property(
    property_id: str,
    db: Session = Depends(get_db),
):
    """Soft delete a property."""
    db_property = get_property_or_404(db, property_id)

    db_property.is_deleted = True
    db.commit()

    return {"deleted": True, "id": property_id}


@router.get("/{property_id}/metrics", response_model=PropertyMetricsResponse)
async def get_property_metrics(
    property_id: str,
    db: Session = Depends(get_db),
):
    """Calculate metrics, falling back to the reduced set on unreadable data."""
    db_property = get_property_or_404(db, property_id)

    try:
        financials = resolve_financials(db_property)
    except LegacyDataError as e:
        logger.warning(
            f"Unreadable deal data on property {property_id}, "
            f"using basic metrics: {str(e)}"
        )
        annual_debt_service = 12 * calculate_payment(
            db_property.loan_amount or 0.0,
            db_property.interest_rate or 0.0,
            db_property.loan_term_years or 0,
            PaymentType(db_property.payment_type or PaymentType.principal_and_interest),
        )
        basic = compute_basic_metrics(
            purchase_price=db_property.purchase_price or 0.0,
            gross_rental_income=db_property.gross_rental_income or 0.0,
            operating_expenses=db_property.operating_expenses or 0.0,
            market_cap_rate=db_property.market_cap_rate or 0.0,
            annual_debt_service=annual_debt_service,
        )
        return PropertyMetricsResponse(
            property_id=property_id, source="basic", basic_metrics=basic
        )

    return PropertyMetricsResponse(
        property_id=property_id,
        source="legacy" if db_property.deal_analyzer_data else "columns",
        metrics=compute_metrics(financials),
    )


@router.get("/{property_id}/sensitivity", response_model=SensitivityResult)
async def get_property_sensitivity(
    property_id: str,
    db: Session = Depends(get_db),
):
    """Sensitivity table for a stored property."""
    db_property = get_property_or_404(db, property_id)
    return sweep(resolve_financials_or_422(db_property))


@router.get("/{property_id}/exit-scenarios", response_model=ExitScenarios)
async def get_property_exit_scenarios(
    property_id: str,
    hold_period_years: Optional[int] = None,
    annual_rent_growth: Optional[float] = None,
    annual_expense_growth: Optional[float] = None,
    sale_costs_percent: Optional[float] = None,
    db: Session = Depends(get_db),
):
    """Exit scenarios for a stored property."""
    db_property = get_property_or_404(db, property_id)
    financials = resolve_financials_or_422(db_property)

    return run_exit_projection(
        financials,
        GrowthAssumptions(
            hold_period_years=hold_period_years,
            annual_rent_growth=annual_rent_growth,
            annual_expense_growth=annual_expense_growth,
            sale_costs_percent=sale_costs_percent,
        ),
    )
