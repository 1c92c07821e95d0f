"""
Shared test fixtures.

Sets up an isolated test database so tests never touch
the real database. Tables are created before each test and
dropped afterwards, so every test starts from an empty ledger.
"""

import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from personal_ledger.main import app
from personal_ledger.models import Account, Category, CategoryScope
from personal_ledger.models.base import Base, get_db


# SQLite keeps the tests free of external database infrastructure.
TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def other_session():
    """A second, independent session, as a concurrent request would have."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db_session):
    """
    Provide a test client with the test database.

    The get_db dependency is overridden so the FastAPI app
    uses the test session instead of the real database.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user_id():
    return uuid.uuid4()


@pytest.fixture
def make_account(db_session, user_id):
    """
    Factory for accounts.

    Account management is outside the ledger, so tests insert
    rows directly. The opening balance is both the initial and
    the cached balance, as the account screens would set it.
    """
    def _make(
        name="Wallet",
        currency="ARS",
        balance="0",
        is_active=True,
        owner=None,
    ):
        opening = Decimal(balance)
        account = Account(
            user_id=owner or user_id,
            name=name,
            currency=currency,
            initial_balance=opening,
            balance=opening,
            is_active=is_active,
        )
        db_session.add(account)
        db_session.commit()
        return account

    return _make


@pytest.fixture
def make_category(db_session, user_id):
    """Factory for categories (expenses scope unless told otherwise)."""
    def _make(name="Comida", scope=CategoryScope.EXPENSES, owner=None):
        category = Category(
            user_id=owner or user_id,
            name=name,
            icon="utensils",
            color="#F97316",
            scope=scope,
        )
        db_session.add(category)
        db_session.commit()
        return category

    return _make
