"""Shared test fixtures and helpers."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("REDIS_URL", None)

from datetime import date, datetime, timezone  # noqa: E402
from typing import Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from artistbook.database import get_db  # noqa: E402
from artistbook.dependencies import get_now  # noqa: E402
from artistbook.main import app  # noqa: E402
from artistbook.models import Base, Bookings  # noqa: E402
from artistbook.redis_client import get_redis  # noqa: E402
from artistbook.services.slots.config import DaySchedule, ProviderSettings  # noqa: E402

ARTIST_ID = "3f2b8c1e-5a4d-4e6f-9b7a-1c2d3e4f5a6b"

# Sunday 08:00 UTC, the day before MONDAY
FIXED_NOW = datetime(2026, 10, 18, 8, 0, tzinfo=timezone.utc)
MONDAY = date(2026, 10, 19)
SATURDAY = date(2026, 10, 24)
SUNDAY = date(2026, 10, 25)


def utc(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


def make_settings(
    start: str = "09:00",
    end: str = "18:00",
    slot_interval: int = 30,
    buffer_minutes: int = 0,
    min_advance_hours: float = 0,
    max_advance_days: int = 60,
    sunday_enabled: bool = False,
) -> ProviderSettings:
    """Same hours every day; Sunday disabled unless asked otherwise."""
    days = [DaySchedule(start, end, enabled=True) for _ in range(7)]
    days[0] = DaySchedule(start, end, enabled=sunday_enabled)
    return ProviderSettings(
        working_hours=tuple(days),
        slot_interval=slot_interval,
        buffer_minutes=buffer_minutes,
        timezone="America/Santiago",
        min_advance_hours=min_advance_hours,
        max_advance_days=max_advance_days,
    )


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def redis_override():
    """Set to a Redis-like object to enable caching in API tests."""
    return {"client": None}


@pytest.fixture
def client(db, redis_override):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: FIXED_NOW
    app.dependency_overrides[get_redis] = lambda: redis_override["client"]
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def add_booking(
    db,
    start: datetime,
    end: datetime,
    status: str = "CONFIRMED",
    artist_id: str = ARTIST_ID,
    client_name: str = "Test Client",
    service_id: Optional[int] = None,
) -> Bookings:
    """Insert a booking row directly."""
    obj = Bookings(
        artist_id=artist_id,
        service_id=service_id,
        client_name=client_name,
        start_time=start.isoformat(),
        end_time=end.isoformat(),
        status=status,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj
