# tests/conftest.py
"""
Pytest configuration for the ServiceHub test suite.

Tests run against an in-memory SQLite database. Settings are forced into
testing mode BEFORE any application import, the realtime publisher is
patched for every test, and Stripe calls are patched per test.
"""

import os
import tempfile

# CRITICAL: Set testing mode BEFORE any app imports!
os.environ["IS_TESTING"] = "true"
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["BROADCAST_URL"] = "memory://"
os.environ["SECRET_KEY"] = "test-secret-key-for-servicehub-suite-0123456789"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_servicehub"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_servicehub"
os.environ.setdefault("UPLOADS_DIR", tempfile.mkdtemp(prefix="servicehub-uploads-"))

from datetime import timedelta
from decimal import Decimal
from typing import Iterator
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from servicehub.api.dependencies import get_db
from servicehub.auth import create_access_token, get_password_hash
from servicehub.core.config import settings
from servicehub.core.enums import BookingStatus, RoleName
from servicehub.core.timezone_utils import utc_now
from servicehub.database import Base, SessionLocal, engine
from servicehub.main import app
from servicehub.models.booking import Booking
from servicehub.models.user import User

settings.is_testing = True
settings.rate_limit_enabled = False


@pytest.fixture(scope="function")
def db() -> Iterator[Session]:
    """Fresh schema and session for each test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> Iterator[TestClient]:
    """Create a test client with the test database."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    # Don't use context manager - the lifespan (Broadcaster) is not started
    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


@pytest.fixture(autouse=True)
def mock_publish() -> Iterator[AsyncMock]:
    """Capture realtime publishes instead of touching a Broadcaster."""
    with patch(
        "servicehub.services.realtime.publisher.publish_to_room",
        new_callable=AsyncMock,
        return_value=True,
    ) as mocked:
        yield mocked


@pytest.fixture(autouse=True)
def mock_publish_sync() -> Iterator:
    with patch(
        "servicehub.services.realtime.publisher.publish_sync", return_value=True
    ) as mocked:
        yield mocked


@pytest.fixture
def test_password() -> str:
    """Standard test password for all test users."""
    return "TestPassword123!"


def _make_user(db: Session, password: str, **fields) -> User:
    user = User(hashed_password=get_password_hash(password), **fields)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def test_customer(db: Session, test_password: str) -> User:
    return _make_user(
        db,
        test_password,
        email="test.customer@example.com",
        name="Test Customer",
        phone_number="5550000001",
        role=RoleName.CUSTOMER.value,
        address="12 Elm Street",
        city="Springfield",
        pincode="560001",
    )


@pytest.fixture
def test_provider(db: Session, test_password: str) -> User:
    return _make_user(
        db,
        test_password,
        email="test.provider@example.com",
        name="Test Provider",
        phone_number="5550000002",
        role=RoleName.PROVIDER.value,
        service_type="Plumbing",
        location="Springfield North",
        hourly_rate=Decimal("25.00"),
        experience=5,
        skills=["pipes", "leaks"],
    )


@pytest.fixture
def test_provider_2(db: Session, test_password: str) -> User:
    return _make_user(
        db,
        test_password,
        email="second.provider@example.com",
        name="Second Provider",
        phone_number="5550000003",
        role=RoleName.PROVIDER.value,
        service_type="Electrical",
        location="Shelbyville",
        hourly_rate=Decimal("40.00"),
    )


@pytest.fixture
def test_admin(db: Session, test_password: str) -> User:
    return _make_user(
        db,
        test_password,
        email="test.admin@example.com",
        name="Test Admin",
        phone_number="5550000009",
        role=RoleName.ADMIN.value,
    )


def make_booking(
    db: Session,
    customer: User,
    provider: User,
    *,
    status: str = BookingStatus.PENDING.value,
    hours_ahead: float = 72,
    total_cost: str = "100.00",
) -> Booking:
    scheduled = (utc_now() + timedelta(hours=hours_ahead)).replace(second=0, microsecond=0)
    booking = Booking(
        customer_id=customer.id,
        provider_id=provider.id,
        service_type=provider.service_type or "Plumbing",
        description="Kitchen sink is leaking",
        scheduled_date=scheduled,
        scheduled_time=scheduled.strftime("%H:%M"),
        estimated_hours=Decimal("2"),
        address="12 Elm Street",
        total_cost=Decimal(total_cost),
        status=status,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


@pytest.fixture
def test_booking(db: Session, test_customer: User, test_provider: User) -> Booking:
    return make_booking(db, test_customer, test_provider)


def _headers(user: User) -> dict:
    token = create_access_token(data={"sub": user.email, "user_id": user.id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers_customer(test_customer: User) -> dict:
    return _headers(test_customer)


@pytest.fixture
def auth_headers_provider(test_provider: User) -> dict:
    return _headers(test_provider)


@pytest.fixture
def auth_headers_provider_2(test_provider_2: User) -> dict:
    return _headers(test_provider_2)


@pytest.fixture
def auth_headers_admin(test_admin: User) -> dict:
    return _headers(test_admin)
