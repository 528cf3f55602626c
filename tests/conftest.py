"""Pytest configuration for tests - in-memory SQLite per test."""

import os

# Set test database URL BEFORE any imports from src
# This ensures the SessionLocal and engine never touch a real database file
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from src.models import Base, ContributionPeriod, ContributionType, MemberRole  # noqa: E402
from src.services.unit_service import UnitService  # noqa: E402


@pytest.fixture
def db_session():
    """Create test database session."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def unit_service(db_session):
    return UnitService(db_session)


@pytest.fixture
def shared_unit(unit_service):
    """Unit with rent 1000: master tenant Alice (60% share), Bob (fixed 200/mo), Carol (25% share).

    Returns:
        (unit, {"alice": member, "bob": member, "carol": member})
    """
    unit_service.get_or_create_profile(1, "Alice")
    unit = unit_service.create_unit(
        creator_id=1,
        name="Marina Bay",
        monthly_rent=Decimal("1000"),
        country="SG",
    )
    alice = unit_service.get_members(unit.id)[0]
    alice = unit_service.update_member(
        unit.id, alice.id, contribution_type=ContributionType.SHARE, share_percentage=Decimal("60")
    )
    bob = unit_service.add_member(
        unit.id,
        2,
        name="Bob",
        role=MemberRole.CO_TENANT,
        contribution_type=ContributionType.FIXED,
        fixed_amount=Decimal("200"),
        contribution_period=ContributionPeriod.MONTHLY,
    )
    carol = unit_service.add_member(
        unit.id,
        3,
        name="Carol",
        contribution_type=ContributionType.SHARE,
        share_percentage=Decimal("25"),
    )
    return unit, {"alice": alice, "bob": bob, "carol": carol}


@pytest.fixture
def contract_unit(unit_service):
    """Unit with rent 1000 and a Jan 15 - Mar 3 2025 contract; Alice is the sole master tenant."""
    unit_service.get_or_create_profile(1, "Alice")
    return unit_service.create_unit(
        creator_id=1,
        name="Tiong Bahru",
        monthly_rent=Decimal("1000"),
        country="Singapore",
        contract_start_date=date(2025, 1, 15),
        contract_end_date=date(2025, 3, 3),
        payment_due_day=5,
    )
