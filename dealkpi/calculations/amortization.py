"""
Loan Amortization Calculations

Periodic debt service for the three servicing regimes (amortizing,
interest-only, no loan), active-loan selection for deals with several loans,
and the month-by-month schedule of a deal loan.
"""

from typing import List, Optional, Sequence
from datetime import date
from dateutil.relativedelta import relativedelta

from dealkpi.calculations.types import LoanRecord, PaymentType, ScheduleRow

ACQUISITION_LOAN_TYPE = "acquisition"


def _annuity_payment(principal: float, monthly_rate: float, months: int) -> float:
    """Level payment that retires principal over the given number of months."""
    growth = (1 + monthly_rate) ** months
    return principal * (monthly_rate * growth) / (growth - 1)


def calculate_payment(
    principal: float,
    annual_rate: float,
    term_years: float,
    payment_type: PaymentType = PaymentType.principal_and_interest,
) -> float:
    """
    Calculate monthly loan payment.

    Args:
        principal: Loan principal amount
        annual_rate: Annual interest rate as decimal (e.g., 0.065 for 6.5%)
        term_years: Amortization term in years
        payment_type: Amortizing or interest-only servicing

    Returns:
        Monthly payment, or 0 when there is no principal, no positive rate
        or no amortization term
    """
    if principal <= 0 or annual_rate <= 0:
        return 0.0

    monthly_rate = annual_rate / 12

    if PaymentType(payment_type) == PaymentType.interest_only:
        return principal * monthly_rate

    months = int(round(term_years * 12))
    if months <= 0:
        return 0.0

    return _annuity_payment(principal, monthly_rate, months)


def calculate_deal_loan_payment(loan: Optional[LoanRecord]) -> float:
    """
    Monthly payment for a deal loan record.

    A loan with an interest-only window is serviced as interest-only for the
    whole evaluation; the switch to amortization is not modeled month by month.
    """
    if loan is None:
        return 0.0

    if loan.io_months and loan.io_months > 0:
        payment_type = PaymentType.interest_only
    else:
        payment_type = PaymentType.principal_and_interest

    return calculate_payment(
        loan.loan_amount, loan.interest_rate, loan.amortization_years, payment_type
    )


def select_active_loan(loans: Sequence[LoanRecord]) -> Optional[LoanRecord]:
    """
    Pick the loan that services a deal.

    Priority: first loan flagged active, then first acquisition loan, then
    the first loan. Returns None when there are no loans.
    """
    for loan in loans:
        if loan.is_active:
            return loan

    for loan in loans:
        if loan.loan_type == ACQUISITION_LOAN_TYPE:
            return loan

    return loans[0] if loans else None


def build_loan_schedule(
    loan: LoanRecord,
    months: Optional[int] = None,
    first_payment: Optional[date] = None,
) -> List[ScheduleRow]:
    """
    Month-by-month servicing of a deal loan.

    The interest-only window comes first, then the level payment retires the
    original principal over the amortization term. Payments follow
    calculate_payment, so a loan with no principal or no positive rate has no
    scheduled payments and the schedule is empty.

    Args:
        loan: Deal loan record
        months: Number of rows to produce; defaults to the full term
        first_payment: Date of the first payment; rows are undated when omitted

    Returns:
        Schedule rows, stopping early once the balance is retired
    """
    schedule: List[ScheduleRow] = []

    if loan.loan_amount <= 0 or loan.interest_rate <= 0:
        return schedule

    io_months = max(0, loan.io_months or 0)
    amortization_months = max(0, int(round(loan.amortization_years * 12)))
    term_months = io_months + amortization_months
    if months is None:
        months = term_months
    months = min(months, term_months)

    monthly_rate = loan.interest_rate / 12
    level_payment = calculate_payment(
        loan.loan_amount, loan.interest_rate, loan.amortization_years
    )
    balance = loan.loan_amount

    for month in range(1, months + 1):
        interest = balance * monthly_rate
        interest_only = month <= io_months

        if interest_only:
            principal_paid = 0.0
        else:
            principal_paid = min(level_payment - interest, balance)
            # Final payment clears whatever rounding leaves behind
            if month == term_months:
                principal_paid = balance

        closing_balance = max(0.0, balance - principal_paid)
        payment_date = None
        if first_payment is not None:
            payment_date = first_payment + relativedelta(months=month - 1)

        schedule.append(
            ScheduleRow(
                month=month,
                payment_date=payment_date,
                opening_balance=balance,
                payment=interest + principal_paid,
                interest=interest,
                principal=principal_paid,
                closing_balance=closing_balance,
                interest_only=interest_only,
            )
        )

        balance = closing_balance
        if balance == 0:
            break

    return schedule


def calculate_remaining_balance(loan: LoanRecord, months_elapsed: int) -> float:
    """
    Balance left on a deal loan after a number of scheduled payments.

    Read off the loan's schedule, so a loan without scheduled payments keeps
    its full principal.
    """
    principal = max(0.0, loan.loan_amount)
    if months_elapsed <= 0:
        return principal

    schedule = build_loan_schedule(loan, months=months_elapsed)
    if not schedule:
        return principal

    return schedule[-1].closing_balance
