"""
Calculation Engine Data Model

Immutable input snapshots and derived output records.

All rates are decimal fractions (0.065 for 6.5%). All currency amounts are
annual unless the field name says monthly.
"""

import enum
from datetime import date
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


class PaymentType(str, enum.Enum):
    """Loan servicing regime."""

    principal_and_interest = "principal_and_interest"
    interest_only = "interest_only"


@dataclass(frozen=True)
class PropertyFinancials:
    """Normalized financial snapshot of a single property."""

    purchase_price: float
    rehab_costs: float = 0.0
    closing_costs: float = 0.0
    holding_costs: float = 0.0

    # Income
    gross_rental_income: float = 0.0
    vacancy_rate: float = 0.0
    other_income: float = 0.0

    # Flat annual operating expenses
    operating_expenses: float = 0.0

    # Financing
    loan_amount: float = 0.0
    interest_rate: float = 0.0
    loan_term_years: int = 30
    payment_type: PaymentType = PaymentType.principal_and_interest

    # Market assumptions
    market_cap_rate: float = 0.0
    exit_cap_rate: Optional[float] = None
    refinance_ltv: Optional[float] = None
    refinance_rate: Optional[float] = None


@dataclass(frozen=True)
class RehabItem:
    total_cost: float


@dataclass(frozen=True)
class UnitRecord:
    """A single rentable unit in the rent roll."""

    is_occupied: bool
    current_rent: float  # Monthly
    market_rent: float  # Monthly


@dataclass(frozen=True)
class ExpenseItem:
    """Operating expense line, flat monthly or a share of gross rent."""

    monthly_amount: float = 0.0
    is_percent_of_rent: bool = False
    percentage: Optional[float] = None


@dataclass(frozen=True)
class ClosingCostItem:
    amount: float


@dataclass(frozen=True)
class HoldingCostItem:
    monthly_amount: float


@dataclass(frozen=True)
class LoanRecord:
    """A loan attached to a deal."""

    loan_amount: float
    interest_rate: float
    amortization_years: int = 30
    io_months: int = 0
    is_active: bool = False
    loan_type: str = "acquisition"


@dataclass(frozen=True)
class ScheduleRow:
    """One monthly payment on a loan schedule."""

    month: int
    payment_date: Optional[date]
    opening_balance: float
    payment: float
    interest: float
    principal: float
    closing_balance: float
    interest_only: bool


@dataclass(frozen=True)
class OtherIncomeItem:
    monthly_amount: float


@dataclass(frozen=True)
class Deal:
    """
    Deal snapshot with unit-level rent roll, itemized costs and several loans.

    Child collections are tuples so a snapshot never shares a list with the
    caller that built it.
    """

    purchase_price: float
    units: int = 0
    vacancy_rate: float = 0.0
    bad_debt_rate: float = 0.0
    capex_reserve_per_unit: float = 0.0
    operating_reserve_months: Optional[int] = None
    start_to_stabilization_months: Optional[int] = None
    loan_percentage: float = 0.0
    refinance_ltv: float = 0.0
    market_cap_rate: float = 0.0
    exit_cap_rate: Optional[float] = None
    annual_rent_growth: float = 0.0

    rehab_items: Tuple[RehabItem, ...] = ()
    unit_records: Tuple[UnitRecord, ...] = ()
    expenses: Tuple[ExpenseItem, ...] = ()
    closing_costs: Tuple[ClosingCostItem, ...] = ()
    holding_costs: Tuple[HoldingCostItem, ...] = ()
    loans: Tuple[LoanRecord, ...] = ()
    other_income: Tuple[OtherIncomeItem, ...] = ()

    def __post_init__(self):
        # Freeze any list the caller passed in
        for name in (
            "rehab_items",
            "unit_records",
            "expenses",
            "closing_costs",
            "holding_costs",
            "loans",
            "other_income",
        ):
            object.__setattr__(self, name, tuple(getattr(self, name)))


@dataclass(frozen=True)
class CalculatedMetrics:
    """Metrics for a PropertyFinancials snapshot."""

    all_in_cost: float
    arv: float
    initial_capital_required: float
    effective_gross_income: float
    net_operating_income: float
    monthly_debt_service: float
    annual_debt_service: float
    annual_cash_flow: float

    # Investment ratios
    cap_rate: float
    cash_on_cash_return: float
    equity_multiple: float
    dscr: float

    # Valuation
    current_equity: float
    loan_to_value: float
    loan_to_cost: float

    # Risk
    break_even_occupancy: float
    operating_expense_ratio: float

    # Returns
    total_return: float
    annualized_return: float


@dataclass(frozen=True)
class DealKPIs:
    """KPIs for a multi-unit, multi-loan Deal snapshot."""

    # Costs
    total_rehab: float
    total_closing_costs: float
    total_holding_costs: float
    all_in_cost: float

    # Income
    gross_rental_income: float
    total_other_income: float
    vacancy_loss: float
    bad_debt_loss: float
    effective_gross_income: float

    # Expenses
    total_operating_expenses: float
    capex_reserve: float
    operating_reserve: float
    net_operating_income: float

    # Debt service
    monthly_debt_service: float
    annual_debt_service: float

    # Key ratios
    arv: float
    cash_flow: float
    cash_on_cash_return: float
    cap_rate: float
    dscr: float
    ltc: float
    ltv: float

    # Capital
    capital_required: float
    total_cash_invested: float
    initial_loan_amount: float
    current_equity: float

    break_even_occupancy: float

    # Returns
    approximate_annualized_return: float
    equity_multiple: float

    # Refinance
    new_loan_amount: float
    cash_out: float
    total_profit: float

    # Risk indicators
    is_speculative: bool
    dscr_warning: bool
    occupancy_risk: bool


@dataclass(frozen=True)
class BasicMetrics:
    """Reduced metric set used when a full snapshot cannot be assembled."""

    gross_rental_income: float
    operating_expenses: float
    net_operating_income: float
    annual_debt_service: float
    cash_flow: float
    cap_rate: float
    dscr: float
    arv: float


@dataclass(frozen=True)
class SensitivityResult:
    """Metrics recomputed under perturbed rent, cap rate and interest rate."""

    base_case: CalculatedMetrics
    rent_sensitivity: Dict[str, CalculatedMetrics] = field(default_factory=dict)
    cap_rate_sensitivity: Dict[str, CalculatedMetrics] = field(default_factory=dict)
    interest_rate_sensitivity: Dict[str, CalculatedMetrics] = field(
        default_factory=dict
    )


@dataclass(frozen=True)
class ExitScenario:
    """Outcome of one disposition strategy at the end of the hold period."""

    hold_period_years: int
    projected_noi: float
    projected_sale_price: float
    sale_costs: float
    net_sale_proceeds: float
    annual_debt_service: float
    total_cash_flow: float
    total_return: float
    annualized_return: float
    equity_multiple: float


@dataclass(frozen=True)
class ExitScenarios:
    hold: ExitScenario
    refinance: ExitScenario
    sale: ExitScenario


@dataclass(frozen=True)
class PortfolioSummary:
    """Roll-up of property metrics across a portfolio."""

    property_count: int
    total_units: int
    total_value: float
    total_cash_flow: float
    total_equity: float
    total_noi: float
    weighted_cap_rate: float
