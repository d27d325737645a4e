"""
Income and Operating Expense Calculations

Effective gross income and NOI for flat property snapshots and for deals with
a unit-level rent roll and itemized expenses.
"""

from dataclasses import dataclass

from dealkpi.calculations.types import Deal

DEFAULT_OPERATING_RESERVE_MONTHS = 6


@dataclass(frozen=True)
class DealIncome:
    """Annual income lines for a deal."""

    gross_rental_income: float
    total_other_income: float
    vacancy_loss: float
    bad_debt_loss: float
    effective_gross_income: float


@dataclass(frozen=True)
class DealExpenses:
    """Annual expense lines for a deal."""

    item_expenses: float  # Itemized operating expenses, before reserves
    capex_reserve: float
    total_operating_expenses: float  # Item expenses plus capex reserve
    operating_reserve: float  # Reported only, never subtracted from NOI
    net_operating_income: float


def calculate_effective_gross_income(
    gross_rental_income: float, vacancy_rate: float, other_income: float
) -> float:
    """Gross rent net of vacancy plus other income."""
    return gross_rental_income * (1 - vacancy_rate) + other_income


def calculate_noi(
    gross_rental_income: float,
    vacancy_rate: float,
    other_income: float,
    operating_expenses: float,
) -> float:
    """Calculate annual Net Operating Income."""
    effective_gross_income = calculate_effective_gross_income(
        gross_rental_income, vacancy_rate, other_income
    )
    return effective_gross_income - operating_expenses


def calculate_operating_expense_ratio(
    operating_expenses: float, effective_gross_income: float
) -> float:
    """Share of effective gross income consumed by operating expenses."""
    if effective_gross_income <= 0:
        return 0.0
    return operating_expenses / effective_gross_income


def calculate_deal_income(deal: Deal) -> DealIncome:
    """
    Annual income for a deal.

    Occupied units contribute in-place rent, vacant units contribute market
    rent. Vacancy and bad-debt losses are both charged against gross rent.
    """
    gross_rental_income = sum(
        (unit.current_rent if unit.is_occupied else unit.market_rent) * 12
        for unit in deal.unit_records
    )
    total_other_income = sum(item.monthly_amount * 12 for item in deal.other_income)

    vacancy_loss = gross_rental_income * deal.vacancy_rate
    bad_debt_loss = gross_rental_income * deal.bad_debt_rate
    effective_gross_income = (
        gross_rental_income + total_other_income - vacancy_loss - bad_debt_loss
    )

    return DealIncome(
        gross_rental_income=gross_rental_income,
        total_other_income=total_other_income,
        vacancy_loss=vacancy_loss,
        bad_debt_loss=bad_debt_loss,
        effective_gross_income=effective_gross_income,
    )


def calculate_deal_expenses(deal: Deal, income: DealIncome) -> DealExpenses:
    """
    Annual operating expenses and NOI for a deal.

    Percent-of-rent items are charged on gross rental income. The capex
    reserve is an expense; the operating reserve is sized from post-expense
    cash and tracked separately.
    """
    item_expenses = 0.0
    for expense in deal.expenses:
        if expense.is_percent_of_rent and expense.percentage:
            item_expenses += income.gross_rental_income * expense.percentage
        else:
            item_expenses += expense.monthly_amount * 12

    capex_reserve = deal.capex_reserve_per_unit * deal.units

    reserve_months = deal.operating_reserve_months or DEFAULT_OPERATING_RESERVE_MONTHS
    operating_reserve = (
        (income.effective_gross_income - item_expenses) / 12 * reserve_months
    )

    total_operating_expenses = item_expenses + capex_reserve

    return DealExpenses(
        item_expenses=item_expenses,
        capex_reserve=capex_reserve,
        total_operating_expenses=total_operating_expenses,
        operating_reserve=operating_reserve,
        net_operating_income=income.effective_gross_income - total_operating_expenses,
    )
