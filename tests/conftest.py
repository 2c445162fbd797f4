"""Shared test fixtures and helpers."""

import json
import os
from datetime import date, datetime
from typing import Optional

os.environ.setdefault("DATABASE_URL", "sqlite:///./test-bookingcore.db")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

import pytest
from sqlalchemy.orm import sessionmaker

from bookingcore.database import build_engine
from bookingcore.models.generated import (
    Base,
    BlockedSlots,
    Bookings,
    ScheduleSettings,
    Services,
    Tenants,
)
from bookingcore.services import events

# 2026-03-16 is a Monday
TODAY = date(2026, 3, 16)
NOW = datetime(2026, 3, 16, 8, 50)
ALL_DAYS = [0, 1, 2, 3, 4, 5, 6]


class RecordingRedis:
    """Stands in for the Redis client: keeps pushed events in memory."""

    def __init__(self):
        self.pushed: list[tuple[str, dict]] = []

    def rpush(self, queue: str, value: str):
        self.pushed.append((queue, json.loads(value)))
        return len(self.pushed)

    def types(self) -> list[str]:
        return [event["type"] for _, event in self.pushed]


@pytest.fixture(autouse=True)
def event_queue(monkeypatch):
    fake = RecordingRedis()
    monkeypatch.setattr(events, "redis_client", fake)
    return fake


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test.db"


@pytest.fixture
def engine(db_path):
    engine = build_engine(f"sqlite:///{db_path}", lock_timeout=10)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# ── Data helpers ─────────────────────────────────────────────────────────


def make_tenant(
    db,
    name: str = "Studio",
    working_days: Optional[list[int]] = None,
    start: str = "09:00",
    end: str = "18:00",
    step: int = 30,
    min_advance_hours: int = 2,
    max_advance_days: int = 30,
    timezone: str = "UTC",
    with_settings: bool = True,
) -> Tenants:
    tenant = Tenants(name=name)
    db.add(tenant)
    db.flush()
    if with_settings:
        db.add(ScheduleSettings(
            tenant_id=tenant.id,
            working_days=json.dumps(ALL_DAYS if working_days is None else working_days),
            working_hours_start=start,
            working_hours_end=end,
            slot_duration_min=step,
            min_advance_hours=min_advance_hours,
            max_advance_days=max_advance_days,
            timezone=timezone,
        ))
    db.commit()
    return tenant


def make_service(db, tenant, duration: int = 60, name: str = "Consultation", is_active: int = 1) -> Services:
    service = Services(tenant_id=tenant.id, name=name, duration_min=duration, is_active=is_active)
    db.add(service)
    db.commit()
    return service


_booking_seq = iter(range(1, 1_000_000))


def make_booking(
    db,
    tenant,
    service,
    day: date,
    time: str,
    duration: Optional[int] = None,
    status: str = "confirmed",
) -> Bookings:
    booking = Bookings(
        tenant_id=tenant.id,
        service_id=service.id,
        booking_date=day.isoformat(),
        booking_time=time,
        duration_minutes=duration if duration is not None else service.duration_min,
        status=status,
        customer_name="Dana Levi",
        customer_phone="0501234567",
        idempotency_key=f"seed-{next(_booking_seq)}",
    )
    db.add(booking)
    db.commit()
    return booking


def make_block(db, tenant, day: date, start: str, end: str, reason: Optional[str] = None) -> BlockedSlots:
    block = BlockedSlots(
        tenant_id=tenant.id,
        blocked_date=day.isoformat(),
        start_time=start,
        end_time=end,
        reason=reason,
    )
    db.add(block)
    db.commit()
    return block


@pytest.fixture
def tenant(db):
    return make_tenant(db)


@pytest.fixture
def service(db, tenant):
    return make_service(db, tenant, duration=60)


# ── HTTP ─────────────────────────────────────────────────────────────────


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient

    from bookingcore.database import get_db
    from bookingcore.dependencies import get_now
    from bookingcore.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: NOW
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
