"""
Shared test fixtures.

Sets up an isolated SQLite database so tests never touch the real
ledger. Tables are created before each test and dropped after, so
every test starts empty even though the store commits each write.
"""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("STORE_RETRY_BASE_DELAY", "0")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from church_ledger.main import app
from church_ledger.models import Base
from church_ledger.models.base import get_db
from church_ledger.schemas.accounts import AccountCreate
from church_ledger.services.account_service import AccountService


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
def client(db_session):
    """Test client whose requests share the test session."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_account(db_session):
    """Factory for accounts: make_account(opening_balance="500")."""
    counter = {"n": 0}

    def _make(opening_balance="0", name=None):
        counter["n"] += 1
        return AccountService(db_session).create_account(AccountCreate(
            name=name or f"Account {counter['n']}",
            opening_balance=Decimal(opening_balance),
        ))

    return _make
