"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, schema rebuilt for every test
- Company, users, client, address and team member rows
- Booking factory for hand-built series
- FastAPI TestClient with database and auth dependencies overridden
"""
import os
from datetime import datetime
from typing import Generator

# Must be set before the app modules create their engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("FIREBASE_PROJECT_ID", "cleanday-test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.auth import get_current_user
from app.database import Base, SessionLocal, engine, get_db
from app.enums import BookingStatus, RecurrenceFrequency, Role, SeriesState
from app.main import app
from app.models import Address, Booking, Client, Company, TeamMember, User


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema per test; app code is free to commit."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def company(db: Session) -> Company:
    company = Company(name="Sparkle Cleaning Co")
    db.add(company)
    db.flush()
    return company


@pytest.fixture(scope="function")
def other_company(db: Session) -> Company:
    company = Company(name="Rival Maids")
    db.add(company)
    db.flush()
    return company


@pytest.fixture(scope="function")
def owner(db: Session, company: Company) -> User:
    user = User(
        firebase_uid="owner-uid",
        company_id=company.id,
        full_name="Olivia Owner",
        email="owner@sparkle.test",
        role=Role.OWNER.value,
    )
    db.add(user)
    db.flush()
    return user


@pytest.fixture(scope="function")
def cleaner_user(db: Session, company: Company) -> User:
    user = User(
        firebase_uid="cleaner-uid",
        company_id=company.id,
        full_name="Carl Cleaner",
        email="carl@sparkle.test",
        role=Role.CLEANER.value,
    )
    db.add(user)
    db.flush()
    return user


@pytest.fixture(scope="function")
def team_member(db: Session, company: Company, cleaner_user: User) -> TeamMember:
    member = TeamMember(company_id=company.id, user_id=cleaner_user.id, is_active=True)
    db.add(member)
    db.flush()
    return member


@pytest.fixture(scope="function")
def client_record(db: Session, company: Company) -> Client:
    client = Client(company_id=company.id, name="Jane Homeowner", email="jane@example.com")
    db.add(client)
    db.flush()
    return client


@pytest.fixture(scope="function")
def address(db: Session, client_record: Client) -> Address:
    address = Address(client_id=client_record.id, street="12 Elm Street", city="Austin")
    db.add(address)
    db.commit()
    return address


@pytest.fixture(scope="function")
def make_booking(db: Session, company: Company, client_record: Client, address: Address):
    """Factory for bookings inserted directly, bypassing the services."""

    def _make(scheduled_at: datetime, parent: Booking = None, **overrides) -> Booking:
        fields = dict(
            company_id=company.id,
            client_id=client_record.id,
            address_id=address.id,
            scheduled_at=scheduled_at,
            duration_minutes=120,
            service_type="STANDARD",
            price=100.0,
            is_recurring=True,
            recurrence_frequency=RecurrenceFrequency.WEEKLY.value,
            recurrence_parent_id=parent.id if parent else None,
            series_state=SeriesState.ACTIVE.value,
            status=BookingStatus.SCHEDULED.value,
            is_paid=False,
        )
        fields.update(overrides)
        booking = Booking(**fields)
        db.add(booking)
        db.commit()
        return booking

    return _make


# =============================================================================
# API Fixtures
# =============================================================================


def _client_for(db: Session, user: User) -> TestClient:
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_current_user] = lambda: user
    return TestClient(app)


@pytest.fixture(scope="function")
def api_client(db: Session, owner: User, address: Address) -> Generator[TestClient, None, None]:
    """Client authenticated as the company owner."""
    yield _client_for(db, owner)
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def cleaner_client(
    db: Session, cleaner_user: User, address: Address
) -> Generator[TestClient, None, None]:
    """Client authenticated as a cleaner without series permissions."""
    yield _client_for(db, cleaner_user)
    app.dependency_overrides.clear()
