"""
Tests for the legacy deal analyzer data adapter.
"""

import json

import pytest

from dealkpi.calculations.metrics import compute_metrics
from dealkpi.calculations.types import PaymentType
from dealkpi.services.legacy_adapter import (
    DEFAULT_EXPENSE_RATIO,
    DEFAULT_MARKET_CAP_RATE,
    DEFAULT_VACANCY_RATE,
    LegacyDataError,
    is_management_expense,
    normalize_rate,
    parse_number,
    property_financials_from_legacy,
)


@pytest.fixture
def legacy_blob():
    """Blob with formatted strings, percent rates and two loans."""
    return {
        "schemaVersion": 1,
        "assumptions": {
            "purchasePrice": "$500,000",
            "vacancyRate": "5",
            "marketCapRate": 6.5,
            "exitCapRate": "7%",
            "refinanceLTV": 75,
        },
        "rentRoll": [
            {"currentRent": "$1,250"},
            {"currentRent": 0, "marketRent": 1_300},
            {"rent": "1,200"},
        ],
        "otherIncome": [{"monthlyAmount": 50}],
        "expenses": {"taxes": "400", "insurance": 150},
        "rehabBudget": [{"totalCost": "25,000"}],
        "closingCosts": [{"amount": 5_000}],
        "holdingCosts": [{"monthlyAmount": 800}],
        "loans": [
            {"loanAmount": "300000", "interestRate": 7, "termYears": 30},
            {
                "amount": 100_000,
                "isActive": True,
                "interestRate": 0.08,
                "paymentType": "interest_only",
            },
        ],
    }


class TestParsing:
    """Loose number and rate parsing."""

    def test_parse_number(self):
        assert parse_number("$1,250.50") == 1_250.50
        assert parse_number(42) == 42.0
        assert parse_number("-3") == -3.0
        assert parse_number("") == 0
        assert parse_number("n/a") == 0
        assert parse_number(None) == 0
        assert parse_number(True) == 1.0

    def test_normalize_rate(self):
        assert normalize_rate(5) == 0.05
        assert normalize_rate("6.5%") == 0.065
        assert normalize_rate(0.07) == 0.07
        assert normalize_rate(None) is None
        assert normalize_rate("", default=0.05) == 0.05

    def test_management_expense_names(self):
        assert is_management_expense("management")
        assert is_management_expense("Property Mgmt")
        assert is_management_expense("Property Management Fee")
        assert not is_management_expense("taxes")
        assert not is_management_expense("maintenance")


class TestMapping:
    """Blob to PropertyFinancials mapping."""

    def test_acquisition(self, legacy_blob):
        financials = property_financials_from_legacy(legacy_blob)
        assert financials.purchase_price == 500_000
        assert financials.rehab_costs == 25_000
        assert financials.closing_costs == 5_000
        assert financials.holding_costs == 800 * 12

    def test_income_and_expenses(self, legacy_blob):
        financials = property_financials_from_legacy(legacy_blob)
        assert financials.gross_rental_income == 3_750 * 12
        assert financials.vacancy_rate == 0.05
        assert financials.other_income == 600
        # No management line, so the default 8% fee on effective income applies
        effective_gross_income = 3_750 * 12 * 0.95 + 600
        expected = 550 * 12 + effective_gross_income * 0.08
        assert abs(financials.operating_expenses - expected) < 0.01

    def test_active_loan(self, legacy_blob):
        financials = property_financials_from_legacy(legacy_blob)
        assert financials.loan_amount == 100_000
        assert financials.interest_rate == 0.08
        assert financials.loan_term_years == 30
        assert financials.payment_type == PaymentType.interest_only

    def test_first_loan_without_active_flag(self, legacy_blob):
        legacy_blob["loans"][1]["isActive"] = False
        financials = property_financials_from_legacy(legacy_blob)
        assert financials.loan_amount == 300_000
        assert financials.interest_rate == 0.07
        assert financials.payment_type == PaymentType.principal_and_interest

    def test_market_assumptions(self, legacy_blob):
        financials = property_financials_from_legacy(legacy_blob)
        assert financials.market_cap_rate == 0.065
        assert financials.exit_cap_rate == 0.07
        assert financials.refinance_ltv == 0.75
        assert financials.refinance_rate is None

    def test_accepts_json_string(self, legacy_blob):
        from_string = property_financials_from_legacy(json.dumps(legacy_blob))
        assert from_string == property_financials_from_legacy(legacy_blob)

    def test_unit_types_fallback(self):
        financials = property_financials_from_legacy(
            {
                "unitTypes": [
                    {"units": 2, "marketRent": 1_000},
                    {"count": "3", "rent": "900"},
                    {"marketRent": 500},
                ]
            },
            purchase_price=300_000,
        )
        assert financials.gross_rental_income == (2_000 + 2_700 + 500) * 12
        assert financials.purchase_price == 300_000

    def test_expense_ratio_fallback(self):
        financials = property_financials_from_legacy(
            {
                "assumptions": {"vacancyRate": 0, "expenseRatio": 40},
                "rentRoll": [{"rent": 1_000}],
            }
        )
        assert abs(financials.operating_expenses - 12_000 * 0.4) < 0.01

    def test_default_expense_ratio(self):
        """Without line items or a ratio, 45% of effective income is expense."""
        financials = property_financials_from_legacy(
            {
                "assumptions": {"purchasePrice": 500_000},
                "rentRoll": [{"currentRent": 1_000}] * 10,
            }
        )
        assert abs(financials.operating_expenses - 114_000 * DEFAULT_EXPENSE_RATIO) < 0.01

        metrics = compute_metrics(financials)
        assert abs(metrics.effective_gross_income - 114_000) < 0.01
        assert abs(metrics.net_operating_income - 62_700) < 0.01

    def test_management_fee_from_assumptions(self):
        financials = property_financials_from_legacy(
            {
                "assumptions": {"vacancyRate": 0, "managementFee": "10"},
                "rentRoll": [{"rent": 1_000}],
                "expenses": {"taxes": 200},
            }
        )
        assert abs(financials.operating_expenses - (2_400 + 1_200)) < 0.01

    def test_listed_management_expense_replaces_fee(self):
        financials = property_financials_from_legacy(
            {
                "assumptions": {"vacancyRate": 0},
                "rentRoll": [{"rent": 1_000}],
                "expenses": {"taxes": 200, "Property Mgmt": 90},
            }
        )
        assert financials.operating_expenses == 290 * 12

    def test_self_managed(self):
        financials = property_financials_from_legacy(
            {
                "assumptions": {"vacancyRate": 0, "managementFee": 0},
                "rentRoll": [{"rent": 1_000}],
                "expenses": {"taxes": 200},
            }
        )
        assert financials.operating_expenses == 2_400

    @pytest.mark.parametrize("version", [1, "1", 1.0])
    def test_schema_version_forms(self, version):
        financials = property_financials_from_legacy(
            {"schemaVersion": version, "rentRoll": [{"rent": 1_000}]}
        )
        assert financials.gross_rental_income == 12_000

    def test_loan_percentage_fallback(self):
        financials = property_financials_from_legacy(
            {
                "assumptions": {
                    "purchasePrice": 400_000,
                    "loanPercentage": 80,
                    "interestRate": 6.5,
                }
            }
        )
        assert abs(financials.loan_amount - 320_000) < 0.01
        assert financials.interest_rate == 0.065

    def test_defaults(self):
        financials = property_financials_from_legacy({}, purchase_price=250_000)
        assert financials.purchase_price == 250_000
        assert financials.vacancy_rate == DEFAULT_VACANCY_RATE
        assert financials.market_cap_rate == DEFAULT_MARKET_CAP_RATE
        assert financials.loan_amount == 0
        assert financials.exit_cap_rate is None

    def test_mapped_snapshot_is_computable(self, legacy_blob):
        metrics = compute_metrics(property_financials_from_legacy(legacy_blob))
        assert metrics.all_in_cost == 500_000 + 25_000 + 5_000 + 9_600
        assert metrics.net_operating_income > 0


class TestRejection:
    """Unreadable blobs raise LegacyDataError."""

    @pytest.mark.parametrize(
        "blob",
        [
            "not json",
            "[1, 2, 3]",
            json.dumps({"schemaVersion": 2}),
            {"schemaVersion": "2"},
            {"schemaVersion": None},
            {"assumptions": "cheap"},
            {"rentRoll": "four units"},
            {"loans": {"loanAmount": 1}},
        ],
    )
    def test_rejected(self, blob):
        with pytest.raises(LegacyDataError):
            property_financials_from_legacy(blob)

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            property_financials_from_legacy("{")
