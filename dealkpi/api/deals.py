"""
Deal management API endpoints.

Every mutation of a deal or one of its child collections is followed by a
KPI push to the deal's WebSocket subscribers.
"""

import logging
from dataclasses import asdict
from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from dealkpi.api.schemas import (
    ClosingCostInput,
    DealInput,
    ExpenseInput,
    HoldingCostInput,
    LoanInput,
    OtherIncomeInput,
    RehabItemInput,
    UnitInput,
)
from dealkpi.calculations.amortization import build_loan_schedule, calculate_payment
from dealkpi.calculations.metrics import compute_kpis
from dealkpi.db.database import get_db
from dealkpi.db.models import (
    Deal,
    DealClosingCost,
    DealExpense,
    DealHoldingCost,
    DealLoan,
    DealOtherIncome,
    DealRehabItem,
    DealUnit,
)
from dealkpi.services.notifications import get_broadcaster
from dealkpi.services.snapshots import (
    deal_to_snapshot,
    get_deal_row,
    load_deal,
    loan_to_record,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# URL segment -> (relationship attribute, model, input schema)
CHILD_COLLECTIONS = {
    "rehab-items": ("rehab_items", DealRehabItem, RehabItemInput),
    "units": ("unit_records", DealUnit, UnitInput),
    "expenses": ("expenses", DealExpense, ExpenseInput),
    "closing-costs": ("closing_costs", DealClosingCost, ClosingCostInput),
    "holding-costs": ("holding_costs", DealHoldingCost, HoldingCostInput),
    "loans": ("loans", DealLoan, LoanInput),
    "other-income": ("other_income", DealOtherIncome, OtherIncomeInput),
}


class DealCreate(DealInput):
    """Schema for creating a deal, optionally with its line items."""

    name: str
    address: Optional[str] = None


class DealUpdate(BaseModel):
    """Schema for updating deal-level assumptions."""

    name: Optional[str] = None
    address: Optional[str] = None
    purchase_price: Optional[float] = None
    units: Optional[int] = None
    vacancy_rate: Optional[float] = None
    bad_debt_rate: Optional[float] = None
    capex_reserve_per_unit: Optional[float] = None
    operating_reserve_months: Optional[int] = None
    start_to_stabilization_months: Optional[int] = None
    loan_percentage: Optional[float] = None
    refinance_ltv: Optional[float] = None
    market_cap_rate: Optional[float] = None
    exit_cap_rate: Optional[float] = None
    annual_rent_growth: Optional[float] = None


def row_to_dict(row) -> dict:
    """Column values of an ORM row."""
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}


def deal_to_response(deal: Deal) -> dict:
    """Deal row, its live line items and freshly calculated KPIs."""
    response = row_to_dict(deal)
    for attribute, _, _ in CHILD_COLLECTIONS.values():
        response[attribute] = [
            row_to_dict(row) for row in getattr(deal, attribute) if not row.is_deleted
        ]
    response["kpis"] = asdict(compute_kpis(deal_to_snapshot(deal)))
    return response


def get_deal_or_404(db: Session, deal_id: str) -> Deal:
    deal = get_deal_row(db, deal_id)
    if not deal:
        raise HTTPException(status_code=404, detail="Deal not found")
    return deal


async def notify_deal_changed(db: Session, deal_id: str) -> None:
    """
    Push fresh KPIs to the deal's subscribers.

    Failures are logged and never propagate to the mutation that triggered
    the push.
    """
    broadcaster = get_broadcaster()
    if not broadcaster.has_subscribers(deal_id):
        return

    try:
        snapshot = load_deal(db, deal_id)
        if snapshot is None:
            return
        await broadcaster.broadcast(deal_id, compute_kpis(snapshot))
    except Exception as e:
        logger.error(f"Failed to push KPI update for deal {deal_id}: {str(e)}")


@router.get("/")
async def list_deals(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    """List all deals."""
    query = db.query(Deal).filter(Deal.is_deleted == False)

    total = query.count()
    deals = query.offset(skip).limit(limit).all()

    return {"deals": [row_to_dict(d) for d in deals], "total": total}


@router.post("/", status_code=201)
async def create_deal(
    deal_data: DealCreate,
    db: Session = Depends(get_db),
):
    """Create a deal together with any line items supplied."""
    fields = deal_data.model_dump(
        exclude={attribute for attribute, _, _ in CHILD_COLLECTIONS.values()}
    )
    deal = Deal(**fields)

    for attribute, model, _ in CHILD_COLLECTIONS.values():
        for item in getattr(deal_data, attribute):
            getattr(deal, attribute).append(model(**item.model_dump()))

    db.add(deal)
    db.commit()
    db.refresh(deal)

    logger.info(f"Created deal {deal.id}")
    return deal_to_response(deal)


@router.get("/{deal_id}")
async def get_deal(
    deal_id: str,
    db: Session = Depends(get_db),
):
    """Get a deal with its line items and current KPIs."""
    return deal_to_response(get_deal_or_404(db, deal_id))


@router.get("/{deal_id}/kpis")
async def get_deal_kpis(
    deal_id: str,
    db: Session = Depends(get_db),
):
    """Calculate KPIs for a stored deal."""
    snapshot = load_deal(db, deal_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="Deal not found")
    return asdict(compute_kpis(snapshot))


@router.put("/{deal_id}")
async def update_deal(
    deal_id: str,
    deal_data: DealUpdate,
    db: Session = Depends(get_db),
):
    """Update deal-level assumptions."""
    deal = get_deal_or_404(db, deal_id)

    # Update only provided fields
    update_data = deal_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(deal, field, value)

    db.commit()
    db.refresh(deal)

    await notify_deal_changed(db, deal_id)
    return deal_to_response(deal)


@router.delete("/{deal_id}")
async def delete_deal(
    deal_id: str,
    db: Session = Depends(get_db),
):
    """Soft delete a deal."""
    deal = get_deal_or_404(db, deal_id)

    deal.is_deleted = True
    db.commit()

    return {"deleted": True, "id": deal_id}


@router.post("/{deal_id}/loans/{loan_id}/activate")
async def activate_loan(
    deal_id: str,
    loan_id: str,
    db: Session = Depends(get_db),
):
    """Make one loan the active loan of a deal."""
    deal = get_deal_or_404(db, deal_id)

    loans = [loan for loan in deal.loans if not loan.is_deleted]
    if not any(loan.id == loan_id for loan in loans):
        raise HTTPException(status_code=404, detail="Loan not found")

    for loan in loans:
        loan.is_active = loan.id == loan_id

    db.commit()
    db.refresh(deal)

    await notify_deal_changed(db, deal_id)
    return deal_to_response(deal)


@router.get("/{deal_id}/loans/{loan_id}/schedule")
async def get_loan_schedule(
    deal_id: str,
    loan_id: str,
    months: Optional[int] = Query(None, ge=1),
    first_payment: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """Month-by-month servicing of one deal loan."""
    deal = get_deal_or_404(db, deal_id)

    loan = next(
        (row for row in deal.loans if row.id == loan_id and not row.is_deleted),
        None,
    )
    if loan is None:
        raise HTTPException(status_code=404, detail="Loan not found")

    record = loan_to_record(loan)
    schedule = build_loan_schedule(record, months=months, first_payment=first_payment)

    return {
        "loan_id": loan_id,
        "level_payment": round(
            calculate_payment(
                record.loan_amount, record.interest_rate, record.amortization_years
            ),
            2,
        ),
        "total_interest": round(sum(row.interest for row in schedule), 2),
        "total_principal": round(sum(row.principal for row in schedule), 2),
        "closing_balance": round(
            schedule[-1].closing_balance if schedule else max(0.0, record.loan_amount),
            2,
        ),
        "schedule": [asdict(row) for row in schedule],
    }


def register_child_routes(segment: str, attribute: str, model, schema) -> None:
    """Add create and delete routes for one child collection."""

    async def create_child(
        deal_id: str,
        item: schema,
        db: Session = Depends(get_db),
    ):
        deal = get_deal_or_404(db, deal_id)

        row = model(**item.model_dump())
        getattr(deal, attribute).append(row)
        db.commit()
        db.refresh(row)

        await notify_deal_changed(db, deal_id)
        return row_to_dict(row)

    async def delete_child(
        deal_id: str,
        item_id: str,
        db: Session = Depends(get_db),
    ):
        get_deal_or_404(db, deal_id)

        row = (
            db.query(model)
            .filter(
                model.id == item_id,
                model.deal_id == deal_id,
                model.is_deleted == False,
            )
            .first()
        )
        if not row:
            raise HTTPException(status_code=404, detail="Item not found")

        row.is_deleted = True
        db.commit()

        await notify_deal_changed(db, deal_id)
        return {"deleted": True, "id": item_id}

    name = attribute.rstrip("s")
    router.add_api_route(
        f"/{{deal_id}}/{segment}",
        create_child,
        methods=["POST"],
        status_code=201,
        name=f"create_{name}",
    )
    router.add_api_route(
        f"/{{deal_id}}/{segment}/{{item_id}}",
        delete_child,
        methods=["DELETE"],
        name=f"delete_{name}",
    )


for segment, (attribute, model, schema) in CHILD_COLLECTIONS.items():
    register_child_routes(segment, attribute, model, schema)
