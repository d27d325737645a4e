"""
Legacy deal analyzer data adapter.

Older property records carry a loose JSON blob ("deal analyzer data") whose
shape drifted over time: numbers stored as formatted strings, rates stored as
either fractions or percents, rent given as a rent roll or as unit types.
This module maps that blob into a typed PropertyFinancials snapshot so the
calculation engine never sees the raw shape.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Union

from dealkpi.calculations.types import PaymentType, PropertyFinancials

logger = logging.getLogger(__name__)

LEGACY_SCHEMA_VERSION = 1

DEFAULT_VACANCY_RATE = 0.05
DEFAULT_MARKET_CAP_RATE = 0.055
DEFAULT_LOAN_TERM_YEARS = 30
DEFAULT_HOLDING_MONTHS = 12
DEFAULT_EXPENSE_RATIO = 0.45
DEFAULT_MANAGEMENT_FEE_RATE = 0.08

MANAGEMENT_EXPENSE_KEYWORDS = ("management", "mgmt")

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


class LegacyDataError(ValueError):
    """Raised when a legacy blob cannot be mapped to a snapshot."""


def parse_number(value: Any) -> float:
    """
    Parse a loosely formatted number.

    Currency symbols and thousands separators are stripped. Empty or
    unparseable values become 0.
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = _NON_NUMERIC.sub("", value)
        try:
            return float(cleaned)
        except ValueError:
            return 0.0
    return 0.0


def normalize_rate(value: Any, default: Optional[float] = None) -> Optional[float]:
    """Convert a rate to a decimal fraction; values above 1 are percents."""
    if value is None or value == "":
        return default
    rate = parse_number(value)
    return rate / 100 if rate > 1 else rate


def is_management_expense(name: str) -> bool:
    """Whether a legacy expense line is a property management charge."""
    lowered = str(name).lower()
    return any(keyword in lowered for keyword in MANAGEMENT_EXPENSE_KEYWORDS)


def _first_present(record: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value not in (None, "", 0, "0"):
            return value
    return None


def _load_blob(data: Union[str, bytes, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise LegacyDataError(f"Deal data is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise LegacyDataError("Deal data must be a JSON object")

    # Older writers stored the version as a string
    version = data.get("schemaVersion", LEGACY_SCHEMA_VERSION)
    if parse_number(version) != LEGACY_SCHEMA_VERSION:
        raise LegacyDataError(f"Unsupported deal data schema version: {version}")

    return data


def _list_of_dicts(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    items = data.get(key) or []
    if not isinstance(items, list):
        raise LegacyDataError(f"'{key}' must be a list")
    return [item for item in items if isinstance(item, dict)]


def _monthly_gross_rent(data: Dict[str, Any]) -> float:
    """Monthly rent from the rent roll, falling back to unit types."""
    rent_roll = _list_of_dicts(data, "rentRoll")
    if rent_roll:
        return sum(
            parse_number(_first_present(unit, "currentRent", "marketRent", "rent"))
            for unit in rent_roll
        )

    unit_types = _list_of_dicts(data, "unitTypes")
    return sum(
        parse_number(_first_present(unit_type, "units", "count") or 1)
        * parse_number(_first_present(unit_type, "marketRent", "rent"))
        for unit_type in unit_types
    )


def _select_loan(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    loans = _list_of_dicts(data, "loans")
    for loan in loans:
        if loan.get("isActive"):
            return loan
    return loans[0] if loans else None


def property_financials_from_legacy(
    data: Union[str, bytes, Dict[str, Any]],
    purchase_price: Optional[float] = None,
) -> PropertyFinancials:
    """
    Map a legacy deal analyzer blob to PropertyFinancials.

    Args:
        data: JSON string or already-decoded dict
        purchase_price: Fallback when the blob has no purchase price

    Returns:
        PropertyFinancials snapshot

    Raises:
        LegacyDataError: If the blob is not valid JSON, not an object, has an
            unsupported schema version or malformed sections
    """
    blob = _load_blob(data)

    assumptions = blob.get("assumptions") or {}
    if not isinstance(assumptions, dict):
        raise LegacyDataError("'assumptions' must be an object")

    price = parse_number(assumptions.get("purchasePrice")) or (purchase_price or 0.0)

    # Income
    gross_rental_income = _monthly_gross_rent(blob) * 12
    vacancy_rate = normalize_rate(assumptions.get("vacancyRate"), DEFAULT_VACANCY_RATE)
    other_income = sum(
        parse_number(item.get("monthlyAmount")) * 12
        for item in _list_of_dicts(blob, "otherIncome")
    )
    effective_gross_income = gross_rental_income * (1 - vacancy_rate) + other_income

    # Expenses: monthly line items, else an expense ratio on effective income.
    # Line items without a management entry are charged the management fee;
    # the ratio already covers management.
    expenses = blob.get("expenses")
    if isinstance(expenses, dict) and expenses:
        operating_expenses = sum(parse_number(v) * 12 for v in expenses.values())
        management_expenses = sum(
            parse_number(amount) * 12
            for name, amount in expenses.items()
            if is_management_expense(name)
        )
        if management_expenses == 0:
            management_fee_rate = normalize_rate(
                assumptions.get("managementFee"), DEFAULT_MANAGEMENT_FEE_RATE
            )
            operating_expenses += effective_gross_income * management_fee_rate
    else:
        expense_ratio = normalize_rate(
            assumptions.get("expenseRatio"), DEFAULT_EXPENSE_RATIO
        )
        operating_expenses = effective_gross_income * expense_ratio

    # Costs
    rehab_costs = sum(
        parse_number(item.get("totalCost"))
        for item in _list_of_dicts(blob, "rehabBudget")
    )
    closing_costs = sum(
        parse_number(item.get("amount")) for item in _list_of_dicts(blob, "closingCosts")
    )
    holding_months = (
        parse_number(assumptions.get("holdingMonths")) or DEFAULT_HOLDING_MONTHS
    )
    holding_costs = holding_months * sum(
        parse_number(item.get("monthlyAmount"))
        for item in _list_of_dicts(blob, "holdingCosts")
    )

    # Financing: an explicit loan, else a loan percentage; never a default loan
    loan = _select_loan(blob)
    if loan is not None:
        loan_amount = parse_number(_first_present(loan, "loanAmount", "amount"))
        interest_rate = normalize_rate(loan.get("interestRate"), 0.0)
        loan_term_years = int(
            parse_number(_first_present(loan, "termYears", "amortizationYears"))
            or DEFAULT_LOAN_TERM_YEARS
        )
        raw_payment_type = loan.get("paymentType")
    else:
        loan_amount = price * normalize_rate(assumptions.get("loanPercentage"), 0.0)
        interest_rate = normalize_rate(assumptions.get("interestRate"), 0.0)
        loan_term_years = int(
            parse_number(assumptions.get("loanTermYears")) or DEFAULT_LOAN_TERM_YEARS
        )
        raw_payment_type = assumptions.get("paymentType")

    payment_type = (
        PaymentType.interest_only
        if raw_payment_type == PaymentType.interest_only.value
        else PaymentType.principal_and_interest
    )

    logger.debug(
        f"Mapped legacy deal data: rent={gross_rental_income:.2f}, "
        f"loan={loan_amount:.2f}"
    )

    return PropertyFinancials(
        purchase_price=price,
        rehab_costs=rehab_costs,
        closing_costs=closing_costs,
        holding_costs=holding_costs,
        gross_rental_income=gross_rental_income,
        vacancy_rate=vacancy_rate,
        other_income=other_income,
        operating_expenses=operating_expenses,
        loan_amount=loan_amount,
        interest_rate=interest_rate,
        loan_term_years=loan_term_years,
        payment_type=payment_type,
        market_cap_rate=normalize_rate(
            assumptions.get("marketCapRate"), DEFAULT_MARKET_CAP_RATE
        ),
        exit_cap_rate=normalize_rate(assumptions.get("exitCapRate")),
        refinance_ltv=normalize_rate(assumptions.get("refinanceLTV")),
        refinance_rate=normalize_rate(assumptions.get("refinanceRate")),
    )
