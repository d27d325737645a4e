"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Keep the application's own engine off disk
os.environ.setdefault("DATABASE_URL", "sqlite://")

from sqlalchemy.orm import sessionmaker

from dealkpi.main import app
from dealkpi.db.database import create_db_engine, get_db, init_db
# Import all models to ensure all tables are created
from dealkpi.db.models import (
    Base, Property, Deal, DealRehabItem, DealUnit, DealExpense,
    DealClosingCost, DealHoldingCost, DealLoan, DealOtherIncome
)
from dealkpi.calculations.types import PropertyFinancials


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")


@pytest.fixture(scope="session")
def anyio_backend():
    """Backend for async tests."""
    return "asyncio"


# Create a shared test database engine
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_db_engine(SQLALCHEMY_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Override the dependency globally for all tests
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and drop after."""
    init_db(test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db_session():
    """Create database session for test setup."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def base_financials():
    """
    Reference property: 500k purchase, 400k loan at 6.5% over 30 years.

    All-in cost 630,000; EGI 119,000; NOI 79,000.
    """
    return PropertyFinancials(
        purchase_price=500_000,
        rehab_costs=100_000,
        closing_costs=20_000,
        holding_costs=10_000,
        gross_rental_income=120_000,
        vacancy_rate=0.05,
        other_income=5_000,
        operating_expenses=40_000,
        loan_amount=400_000,
        interest_rate=0.065,
        loan_term_years=30,
        market_cap_rate=0.065,
    )
