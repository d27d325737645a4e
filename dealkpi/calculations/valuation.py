"""
Valuation Calculations

Cost basis, capitalized value and leverage ratios.
"""


def calculate_all_in_cost(
    purchase_price: float,
    rehab_costs: float,
    closing_costs: float,
    holding_costs: float,
) -> float:
    """Total project cost."""
    return purchase_price + rehab_costs + closing_costs + holding_costs


def calculate_initial_capital(all_in_cost: float, loan_amount: float) -> float:
    """Equity the investor contributes. Not clamped at zero."""
    return all_in_cost - loan_amount


def calculate_arv(noi: float, market_cap_rate: float) -> float:
    """
    After-repair value by direct capitalization of NOI.

    Returns 0 when the cap rate is not positive, meaning the value is
    undefined rather than an error.
    """
    if market_cap_rate <= 0:
        return 0.0
    return noi / market_cap_rate


def calculate_ltv(loan_amount: float, property_value: float) -> float:
    """Loan-to-value ratio."""
    if property_value <= 0:
        return 0.0
    return loan_amount / property_value


def calculate_ltc(loan_amount: float, all_in_cost: float) -> float:
    """Loan-to-cost ratio."""
    if all_in_cost <= 0:
        return 0.0
    return loan_amount / all_in_cost


def calculate_current_equity(value: float, outstanding_loan_balance: float) -> float:
    return value - outstanding_loan_balance
