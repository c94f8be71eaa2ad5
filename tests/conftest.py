"""Pytest configuration and fixtures."""

from datetime import date
from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ledgerly.api.main import app
from ledgerly.api.dependencies import get_db
from ledgerly.domain.services.auth_service import AuthService
from ledgerly.infrastructure.database.base import Base
from ledgerly.infrastructure.database.models import Business, User
from ledgerly.infrastructure.database.finance import Account, Category, Transaction


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a test database session using SQLite in-memory."""
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # Single connection pool for shared in-memory DB
    )

    Base.metadata.create_all(engine)

    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()

    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """FastAPI TestClient with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# Business / User Fixtures
# =============================================================================

@pytest.fixture
def business(db_session: Session) -> Business:
    """Create a VAT-registered business."""
    biz = Business(name="Test Studio", business_type="osek_murshe", vat_rate=Decimal("17"))
    db_session.add(biz)
    db_session.commit()
    db_session.refresh(biz)
    return biz


@pytest.fixture
def user(db_session: Session, business: Business) -> User:
    """Create the business owner."""
    owner = User(
        email="owner@test.com",
        hashed_password=AuthService.get_password_hash("Owner@123"),
        full_name="Owner User",
        is_active=True,
        business_id=business.id,
    )
    db_session.add(owner)
    db_session.commit()
    db_session.refresh(owner)
    return owner


@pytest.fixture
def other_user(db_session: Session) -> User:
    """Create a user of a different business."""
    other_business = Business(name="Other Business", vat_rate=Decimal("17"))
    db_session.add(other_business)
    db_session.flush()
    other = User(
        email="other@test.com",
        hashed_password=AuthService.get_password_hash("Other@123"),
        full_name="Other User",
        is_active=True,
        business_id=other_business.id,
    )
    db_session.add(other)
    db_session.commit()
    db_session.refresh(other)
    return other


@pytest.fixture
def inactive_user(db_session: Session, business: Business) -> User:
    """Create an inactive user."""
    inactive = User(
        email="inactive@test.com",
        hashed_password=AuthService.get_password_hash("Inactive@123"),
        full_name="Inactive User",
        is_active=False,
        business_id=business.id,
    )
    db_session.add(inactive)
    db_session.commit()
    db_session.refresh(inactive)
    return inactive


# =============================================================================
# Token Fixtures
# =============================================================================

@pytest.fixture
def token(user: User) -> str:
    """Generate JWT token for the owner."""
    return AuthService.create_access_token(data={"sub": str(user.id)})


@pytest.fixture
def other_token(other_user: User) -> str:
    """Generate JWT token for the user of another business."""
    return AuthService.create_access_token(data={"sub": str(other_user.id)})


def auth_headers(token: str) -> dict:
    """Helper to create authorization headers."""
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# Finance Fixtures
# =============================================================================

@pytest.fixture
def sample_account(db_session: Session, business: Business) -> Account:
    """Create a bank account with a snapshot balance."""
    account = Account(
        business_id=business.id,
        name="Main Bank",
        type="BANK",
        provider="Bank Leumi",
        balance=Decimal("1000.00"),
        balance_date=date(2024, 1, 1),
        currency="ILS",
    )
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account


@pytest.fixture
def expense_category(db_session: Session, business: Business) -> Category:
    """Create an expense category."""
    category = Category(
        business_id=business.id,
        name="Software",
        slug="software",
        is_income=False,
        is_tax_deductible=True,
        deduction_rate=Decimal("100"),
    )
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def income_category(db_session: Session, business: Business) -> Category:
    """Create an income category."""
    category = Category(business_id=business.id, name="Sales", slug="sales", is_income=True)
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def make_transaction(db_session: Session, business: Business, sample_account: Account):
    """Factory creating transactions on the sample account."""

    def _make(amount, on: date, description: str = "Payment", **fields) -> Transaction:
        tx = Transaction(
            business_id=business.id,
            account_id=fields.pop("account_id", sample_account.id),
            date=on,
            description=description,
            amount=Decimal(str(amount)),
            **fields,
        )
        db_session.add(tx)
        db_session.commit()
        db_session.refresh(tx)
        return tx

    return _make
