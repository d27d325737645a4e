"""
Request schemas shared by the API routers.

Each schema converts itself into the matching immutable calculation input.
"""

from typing import List, Optional

from pydantic import BaseModel

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


class PropertyFinancialsInput(BaseModel):
    """Flat property financial snapshot."""

    # Acquisition
    purchase_price: float
    rehab_costs: float = 0.0
    closing_costs: float = 0.0
    holding_costs: float = 0.0

    # Income (annual)
    gross_rental_income: float = 0.0
    vacancy_rate: float = 0.0
    other_income: float = 0.0

    # Expenses (annual)
    operating_expenses: float = 0.0

    # Financing
    loan_amount: float = 0.0
    interest_rate: float = 0.0
    loan_term_years: int = 30
    payment_type: PaymentType = PaymentType.principal_and_interest

    # Market
    market_cap_rate: float = 0.0
    exit_cap_rate: Optional[float] = None
    refinance_ltv: Optional[float] = None
    refinance_rate: Optional[float] = None

    def to_financials(self) -> PropertyFinancials:
        return PropertyFinancials(**self.model_dump())


class GrowthAssumptions(BaseModel):
    """Exit projection assumptions; unset fields use configured defaults."""

    hold_period_years: Optional[int] = None
    annual_rent_growth: Optional[float] = None
    annual_expense_growth: Optional[float] = None
    sale_costs_percent: Optional[float] = None


class ExitScenarioInput(GrowthAssumptions):
    financials: PropertyFinancialsInput


class RehabItemInput(BaseModel):
    category: Optional[str] = None
    description: Optional[str] = None
    total_cost: float


class UnitInput(BaseModel):
    unit_number: Optional[str] = None
    bedrooms: Optional[int] = None
    is_occupied: bool = False
    current_rent: float = 0.0
    market_rent: float = 0.0
    tenant_name: Optional[str] = None


class ExpenseInput(BaseModel):
    expense_name: Optional[str] = None
    monthly_amount: float = 0.0
    is_percent_of_rent: bool = False
    percentage: Optional[float] = None


class ClosingCostInput(BaseModel):
    description: Optional[str] = None
    amount: float


class HoldingCostInput(BaseModel):
    description: Optional[str] = None
    monthly_amount: float


class LoanInput(BaseModel):
    """Loan input schema."""

    name: Optional[str] = None
    loan_type: str = "acquisition"
    loan_amount: float
    interest_rate: float
    amortization_years: int = 30
    io_months: int = 0
    is_active: bool = False


class OtherIncomeInput(BaseModel):
    description: Optional[str] = None
    monthly_amount: float


class DealAssumptions(BaseModel):
    """Deal-level assumptions shared by create and stateless KPI requests."""

    purchase_price: float
    units: int = 0
    vacancy_rate: float = 0.05
    bad_debt_rate: float = 0.02
    capex_reserve_per_unit: float = 0.0
    operating_reserve_months: Optional[int] = 6
    start_to_stabilization_months: Optional[int] = 12
    loan_percentage: float = 0.75
    refinance_ltv: float = 0.75
    market_cap_rate: float = 0.055
    exit_cap_rate: Optional[float] = None
    annual_rent_growth: float = 0.03


class DealInput(DealAssumptions):
    """Complete deal with child collections."""

    rehab_items: List[RehabItemInput] = []
    unit_records: List[UnitInput] = []
    expenses: List[ExpenseInput] = []
    closing_costs: List[ClosingCostInput] = []
    holding_costs: List[HoldingCostInput] = []
    loans: List[LoanInput] = []
    other_income: List[OtherIncomeInput] = []

    def to_deal(self) -> Deal:
        return Deal(
            purchase_price=self.purchase_price,
            units=self.units,
            vacancy_rate=self.vacancy_rate,
            bad_debt_rate=self.bad_debt_rate,
            capex_reserve_per_unit=self.capex_reserve_per_unit,
            operating_reserve_months=self.operating_reserve_months,
            start_to_stabilization_months=self.start_to_stabilization_months,
            loan_percentage=self.loan_percentage,
            refinance_ltv=self.refinance_ltv,
            market_cap_rate=self.market_cap_rate,
            exit_cap_rate=self.exit_cap_rate,
            annual_rent_growth=self.annual_rent_growth,
            rehab_items=[RehabItem(total_cost=i.total_cost) for i in self.rehab_items],
            unit_records=[
                UnitRecord(
                    is_occupied=u.is_occupied,
                    current_rent=u.current_rent,
                    market_rent=u.market_rent,
                )
                for u in self.unit_records
            ],
            expenses=[
                ExpenseItem(
                    monthly_amount=e.monthly_amount,
                    is_percent_of_rent=e.is_percent_of_rent,
                    percentage=e.percentage,
                )
                for e in self.expenses
            ],
            closing_costs=[ClosingCostItem(amount=c.amount) for c in self.closing_costs],
            holding_costs=[
                HoldingCostItem(monthly_amount=h.monthly_amount)
                for h in self.holding_costs
            ],
            loans=[
                LoanRecord(
                    loan_amount=loan.loan_amount,
                    interest_rate=loan.interest_rate,
                    amortization_years=loan.amortization_years,
                    io_months=loan.io_months,
                    is_active=loan.is_active,
                    loan_type=loan.loan_type,
                )
                for loan in self.loans
            ],
            other_income=[
                OtherIncomeItem(monthly_amount=o.monthly_amount)
                for o in self.other_income
            ],
        )
