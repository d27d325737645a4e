"""
Snapshot loading.

Reads ORM rows and copies them into immutable calculation inputs, so the
engine never holds a reference to a live session object.
"""

from typing import Optional

from sqlalchemy.orm import Session

from dealkpi.calculations.types import (
    ClosingCostItem,
    Deal,
    ExpenseItem,
    HoldingCostItem,
    LoanRecord,
    OtherIncomeItem,
    PaymentType,
    PropertyFinancials,
    RehabItem,
    UnitRecord,
)
from dealkpi.db import models


def get_deal_row(db: Session, deal_id: str) -> Optional[models.Deal]:
    """Fetch a non-deleted deal row."""
    return (
        db.query(models.Deal)
        .filter(models.Deal.id == deal_id, models.Deal.is_deleted == False)
        .first()
    )


def get_property_row(db: Session, property_id: str) -> Optional[models.Property]:
    """Fetch a non-deleted property row."""
    return (
        db.query(models.Property)
        .filter(models.Property.id == property_id, models.Property.is_deleted == False)
        .first()
    )


def loan_to_record(loan: models.DealLoan) -> LoanRecord:
    """Copy a loan row into a LoanRecord."""
    return LoanRecord(
        loan_amount=loan.loan_amount or 0.0,
        interest_rate=loan.interest_rate or 0.0,
        amortization_years=loan.amortization_years or 0,
        io_months=loan.io_months or 0,
        is_active=bool(loan.is_active),
        loan_type=loan.loan_type or "",
    )


def deal_to_snapshot(deal: models.Deal) -> Deal:
    """Copy a deal row and its live child rows into a Deal snapshot."""

    def live(rows):
        return [row for row in rows if not row.is_deleted]

    return Deal(
        purchase_price=deal.purchase_price or 0.0,
        units=deal.units or 0,
        vacancy_rate=deal.vacancy_rate or 0.0,
        bad_debt_rate=deal.bad_debt_rate or 0.0,
        capex_reserve_per_unit=deal.capex_reserve_per_unit or 0.0,
        operating_reserve_months=deal.operating_reserve_months,
        start_to_stabilization_months=deal.start_to_stabilization_months,
        loan_percentage=deal.loan_percentage or 0.0,
        refinance_ltv=deal.refinance_ltv or 0.0,
        market_cap_rate=deal.market_cap_rate or 0.0,
        exit_cap_rate=deal.exit_cap_rate,
        annual_rent_growth=deal.annual_rent_growth or 0.0,
        rehab_items=[
            RehabItem(total_cost=item.total_cost or 0.0)
            for item in live(deal.rehab_items)
        ],
        unit_records=[
            UnitRecord(
                is_occupied=bool(unit.is_occupied),
                current_rent=unit.current_rent or 0.0,
                market_rent=unit.market_rent or 0.0,
            )
            for unit in live(deal.unit_records)
        ],
        expenses=[
            ExpenseItem(
                monthly_amount=expense.monthly_amount or 0.0,
                is_percent_of_rent=bool(expense.is_percent_of_rent),
                percentage=expense.percentage,
            )
            for expense in live(deal.expenses)
        ],
        closing_costs=[
            ClosingCostItem(amount=cost.amount or 0.0)
            for cost in live(deal.closing_costs)
        ],
        holding_costs=[
            HoldingCostItem(monthly_amount=cost.monthly_amount or 0.0)
            for cost in live(deal.holding_costs)
        ],
        loans=[loan_to_record(loan) for loan in live(deal.loans)],
        other_income=[
            OtherIncomeItem(monthly_amount=income.monthly_amount or 0.0)
            for income in live(deal.other_income)
        ],
    )


def load_deal(db: Session, deal_id: str) -> Optional[Deal]:
    """Fetch a fresh Deal snapshot, or None if the deal does not exist."""
    deal = get_deal_row(db, deal_id)
    if deal is None:
        return None
    return deal_to_snapshot(deal)


def property_to_financials(prop: models.Property) -> PropertyFinancials:
    """Copy the flat financial columns of a property into a snapshot."""
    return PropertyFinancials(
        purchase_price=prop.purchase_price or 0.0,
        rehab_costs=prop.rehab_costs or 0.0,
        closing_costs=prop.closing_costs or 0.0,
        holding_costs=prop.holding_costs or 0.0,
        gross_rental_income=prop.gross_rental_income or 0.0,
        vacancy_rate=prop.vacancy_rate or 0.0,
        other_income=prop.other_income or 0.0,
        operating_expenses=prop.operating_expenses or 0.0,
        loan_amount=prop.loan_amount or 0.0,
        interest_rate=prop.interest_rate or 0.0,
        loan_term_years=prop.loan_term_years or 0,
        payment_type=PaymentType(prop.payment_type or PaymentType.principal_and_interest),
        market_cap_rate=prop.market_cap_rate or 0.0,
        exit_cap_rate=prop.exit_cap_rate,
        refinance_ltv=prop.refinance_ltv,
        refinance_rate=prop.refinance_rate,
    )
