"""
SQLAlchemy ORM models for properties and deals.

These rows are the source of truth for inputs only. Calculated metrics are
never stored; they are recomputed from a fresh snapshot on every request.
"""

from datetime import datetime
from sqlalchemy import (
    Column,
    String,
    Float,
    Integer,
    Boolean,
    DateTime,
    ForeignKey,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship
import uuid

Base = declarative_base()


def generate_uuid():
    return str(uuid.uuid4())


class AuditMixin:
    """Mixin for audit fields on all models."""

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )
    created_by = Column(String(255), nullable=True)
    updated_by = Column(String(255), nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False)


class Property(AuditMixin, Base):
    """Property model with a flat financial snapshot."""

    __tablename__ = "properties"

    id = Column(String, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)

    # Address
    address_street = Column(String(255))
    address_city = Column(String(100))
    address_state = Column(String(50))
    address_zip = Column(String(20))
    units = Column(Integer, default=0)

    # Acquisition
    purchase_price = Column(Float, default=0)
    rehab_costs = Column(Float, default=0)
    closing_costs = Column(Float, default=0)
    holding_costs = Column(Float, default=0)

    # Income and expenses (annual)
    gross_rental_income = Column(Float, default=0)
    vacancy_rate = Column(Float, default=0)
    other_income = Column(Float, default=0)
    operating_expenses = Column(Float, default=0)

    # Financing
    loan_amount = Column(Float, default=0)
    interest_rate = Column(Float, default=0)
    loan_term_years = Column(Integer, default=30)
    payment_type = Column(String(30), default="principal_and_interest")

    # Market assumptions
    market_cap_rate = Column(Float, default=0)
    exit_cap_rate = Column(Float)
    refinance_ltv = Column(Float)
    refinance_rate = Column(Float)

    # Legacy deal analyzer JSON blob, mapped through the legacy adapter
    deal_analyzer_data = Column(Text)


class Deal(AuditMixin, Base):
    """Deal under analysis, with itemized child collections."""

    __tablename__ = "deals"

    id = Column(String, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    address = Column(String(255))

    purchase_price = Column(Float, default=0)
    units = Column(Integer, default=0)

    # Operating assumptions
    vacancy_rate = Column(Float, default=0.05)
    bad_debt_rate = Column(Float, default=0.02)
    capex_reserve_per_unit = Column(Float, default=0)
    operating_reserve_months = Column(Integer, default=6)
    start_to_stabilization_months = Column(Integer, default=12)
    annual_rent_growth = Column(Float, default=0.03)

    # Financing and exit assumptions
    loan_percentage = Column(Float, default=0.75)
    refinance_ltv = Column(Float, default=0.75)
    market_cap_rate = Column(Float, default=0.055)
    exit_cap_rate = Column(Float)

    # Relationships
    rehab_items = relationship(
        "DealRehabItem", back_populates="deal", cascade="all, delete-orphan"
    )
    unit_records = relationship(
        "DealUnit", back_populates="deal", cascade="all, delete-orphan"
    )
    expenses = relationship(
        "DealExpense", back_populates="deal", cascade="all, delete-orphan"
    )
    closing_costs = relationship(
        "DealClosingCost", back_populates="deal", cascade="all, delete-orphan"
    )
    holding_costs = relationship(
        "DealHoldingCost", back_populates="deal", cascade="all, delete-orphan"
    )
    loans = relationship(
        "DealLoan",
        back_populates="deal",
        cascade="all, delete-orphan",
        order_by="DealLoan.created_at",
    )
    other_income = relationship(
        "DealOtherIncome", back_populates="deal", cascade="all, delete-orphan"
    )


class DealRehabItem(AuditMixin, Base):
    """Rehab budget line item."""

    __tablename__ = "deal_rehab_items"

    id = Column(String, primary_key=True, default=generate_uuid)
    deal_id = Column(String, ForeignKey("deals.id"), nullable=False, index=True)
    category = Column(String(100))
    description = Column(String(255))
    total_cost = Column(Float, default=0)

    deal = relationship("Deal", back_populates="rehab_items")


class DealUnit(AuditMixin, Base):
    """Rent roll entry for a single unit."""

    __tablename__ = "deal_units"

    id = Column(String, primary_key=True, default=generate_uuid)
    deal_id = Column(String, ForeignKey("deals.id"), nullable=False, index=True)
    unit_number = Column(String(50))
    bedrooms = Column(Integer)
    is_occupied = Column(Boolean, default=False)
    current_rent = Column(Float, default=0)  # Monthly
    market_rent = Column(Float, default=0)  # Monthly
    tenant_name = Column(String(255))

    deal = relationship("Deal", back_populates="unit_records")


class DealExpense(AuditMixin, Base):
    """Operating expense line, flat monthly or percent of gross rent."""

    __tablename__ = "deal_expenses"

    id = Column(String, primary_key=True, default=generate_uuid)
    deal_id = Column(String, ForeignKey("deals.id"), nullable=False, index=True)
    expense_name = Column(String(255))
    monthly_amount = Column(Float, default=0)
    is_percent_of_rent = Column(Boolean, default=False)
    percentage = Column(Float)

    deal = relationship("Deal", back_populates="expenses")


class DealClosingCost(AuditMixin, Base):
    __tablename__ = "deal_closing_costs"

    id = Column(String, primary_key=True, default=generate_uuid)
    deal_id = Column(String, ForeignKey("deals.id"), nullable=False, index=True)
    description = Column(String(255))
    amount = Column(Float, default=0)

    deal = relationship("Deal", back_populates="closing_costs")


class DealHoldingCost(AuditMixin, Base):
    __tablename__ = "deal_holding_costs"

    id = Column(String, primary_key=True, default=generate_uuid)
    deal_id = Column(String, ForeignKey("deals.id"), nullable=False, index=True)
    description = Column(String(255))
    monthly_amount = Column(Float, default=0)

    deal = relationship("Deal", back_populates="holding_costs")


class DealLoan(AuditMixin, Base):
    """Loan model for deal financing."""

    __tablename__ = "deal_loans"

    id = Column(String, primary_key=True, default=generate_uuid)
    deal_id = Column(String, ForeignKey("deals.id"), nullable=False, index=True)

    name = Column(String(255))
    loan_type = Column(String(50), default="acquisition")
    loan_amount = Column(Float, default=0)
    interest_rate = Column(Float, default=0)
    amortization_years = Column(Integer, default=30)
    io_months = Column(Integer, default=0)
    is_active = Column(Boolean, default=False)

    deal = relationship("Deal", back_populates="loans")


class DealOtherIncome(AuditMixin, Base):
    __tablename__ = "deal_other_income"

    id = Column(String, primary_key=True, default=generate_uuid)
    deal_id = Column(String, ForeignKey("deals.id"), nullable=False, index=True)
    description = Column(String(255))
    monthly_amount = Column(Float, default=0)

    deal = relationship("Deal", back_populates="other_income")
