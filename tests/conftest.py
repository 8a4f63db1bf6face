from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from yacht_maintenance.config.settings import get_settings
from yacht_maintenance.models.orm import (
    Base,
    Booking,
    User,
    Yacht,
    YachtComponent,
)

NOW = datetime(2025, 6, 1, 12, 0, 0)


@pytest.fixture(scope="session")
def engine():
    eng = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(eng)
    return eng


@pytest.fixture
def session(engine):
    connection = engine.connect()
    transaction = connection.begin()
    sess = Session(bind=connection)
    yield sess
    sess.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Each test sees settings built from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def owner(session):
    user = User(
        username="owner-test",
        email="owner@test.example",
        full_name="Test Owner",
        role="yacht_owner",
    )
    session.add(user)
    session.flush()
    return user


@pytest.fixture
def staff_user(session):
    user = User(
        username="staff-test",
        email="staff@test.example",
        full_name="Test Staff",
        role="staff",
        permissions=["yachts", "maintenance", "trips", "analytics"],
    )
    session.add(user)
    session.flush()
    return user


@pytest.fixture
def sample_yacht(session, owner):
    """A 2015 motor yacht bought for 500k."""
    yacht = Yacht(
        name="Test Breeze",
        location="Marina Bay",
        size=42,
        capacity=10,
        owner_id=owner.id,
        year_made=2015,
        purchase_price=Decimal("500000.00"),
        price_per_hour=Decimal("400.00"),
    )
    session.add(yacht)
    session.flush()
    return yacht


@pytest.fixture
def other_yacht(session):
    yacht = Yacht(
        name="Other Star",
        location="Harbor Point",
        year_made=2019,
        purchase_price=Decimal("300000.00"),
    )
    session.add(yacht)
    session.flush()
    return yacht


@pytest.fixture
def sample_booking(session, sample_yacht, owner):
    booking = Booking(
        user_id=owner.id,
        yacht_id=sample_yacht.id,
        start_time=NOW - timedelta(days=3),
        end_time=NOW - timedelta(days=3) + timedelta(hours=6),
        guest_count=6,
        total_price=Decimal("2400.00"),
        status="confirmed",
    )
    session.add(booking)
    session.flush()
    return booking


@pytest.fixture
def sample_components(session, sample_yacht):
    """Engine (critical, 80) and interior (low, 40) with scores; hull unscored."""
    engine_part = YachtComponent(
        yacht_id=sample_yacht.id,
        component_type="engine",
        component_name="Main Engine",
        criticality="critical",
        current_condition=Decimal("80"),
        maintenance_interval_days=180,
        last_inspection_date=datetime(2025, 1, 10),
        next_maintenance_date=datetime(2025, 7, 9),
    )
    interior = YachtComponent(
        yacht_id=sample_yacht.id,
        component_type="interior",
        component_name="Interior",
        criticality="low",
        current_condition=Decimal("40"),
    )
    hull = YachtComponent(
        yacht_id=sample_yacht.id,
        component_type="hull",
        component_name="Hull",
        criticality="critical",
    )
    session.add_all([engine_part, interior, hull])
    session.flush()
    return {"engine": engine_part, "interior": interior, "hull": hull}
