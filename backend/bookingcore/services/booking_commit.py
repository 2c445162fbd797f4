# backend/bookingcore/services/booking_commit.py
"""
BookingCommitter: race-safe reservation of a slot.

The read path (services/slots) is advisory and may be stale by the time a
write arrives. Here every rule is re-checked inside one transaction that
holds the (tenant, date) lock row:

1. Lock (tenant, date)
   SQLite:     PRAGMA busy_timeout, BEGIN IMMEDIATE (single writer), lock row upsert
   PostgreSQL: SET LOCAL lock_timeout, lock row upsert + UPDATE (row lock)
2. Idempotency key replay → return the existing booking
3. Service, schedule, working day, date window, opening/closing time
4. Notice window, active bookings, blocked ranges → SlotConflict
5. Insert booking + audit, bump lock version, commit
6. Emit booking_created

Two overlapping attempts for the same tenant/date serialize on the lock
row: the second one sees the first booking and fails with SlotConflict.
No lock is shared across tenants or dates.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from time import monotonic
from typing import Optional

from sqlalchemy import update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from ..config import settings
from ..exceptions import CommitTimeout, SlotConflict, ValidationError
from ..models.generated import (
    BookingDayLocks as DBBookingDayLocks,
    Bookings as DBBookings,
)
from ..schemas.bookings import CustomerPayload
from .audit import write_audit
from .events import booking_event_payload, emit_event
from .slots.availability import (
    get_active_bookings,
    get_blocked_ranges,
    get_service,
    validate_requested_date,
)
from .slots.calculator import REASON_AFTER_CLOSING, REASON_NOTICE_WINDOW
from .slots.config import (
    ScheduleConfig,
    get_schedule_config,
    minutes_to_time_str,
    time_str_to_minutes,
)
from .slots.conflicts import blocked_intervals, booking_intervals, find_conflicts

logger = logging.getLogger(__name__)

INITIAL_STATUSES = ("pending", "confirmed")


@dataclass(frozen=True)
class CommitResult:
    booking: DBBookings
    created: bool  # False → idempotent replay of an earlier commit


def commit_booking(
    db: Session,
    tenant_id: Optional[int],
    service_id: int,
    target_date: date,
    start_time: str,
    customer: CustomerPayload,
    idempotency_key: Optional[str],
    status: str = "pending",
    now: Optional[datetime] = None,
    timeout: Optional[float] = None,
) -> CommitResult:
    """
    Reserve [start_time, start_time + service duration) on target_date.

    start_time is stored normalized to "HH:MM". timeout bounds the lock
    wait and the whole attempt (defaults to settings.commit_timeout_seconds).

    Raises:
        ValidationError: malformed request, unknown service, date or time
            outside the schedule, idempotency key reused for another request.
        ConfigMissing: tenant has no schedule settings.
        SlotConflict: the slot is no longer free. Re-query availability.
        CommitTimeout: lock wait or commit exceeded the bound. Nothing was
            written; retry with the same idempotency key.
    """
    if not tenant_id:
        raise ValidationError("Tenant is required")
    if not idempotency_key or not idempotency_key.strip():
        raise ValidationError("Idempotency key is required")
    if status not in INITIAL_STATUSES:
        raise ValidationError(f"Booking cannot be created with status {status!r}")
    try:
        start_min = time_str_to_minutes(start_time)
    except ValueError:
        raise ValidationError(f"Invalid time: {start_time!r}") from None
    start_time = minutes_to_time_str(start_min)

    timeout = settings.commit_timeout_seconds if timeout is None else timeout
    deadline = monotonic() + timeout
    idempotency_key = idempotency_key.strip()

    try:
        _acquire_day_lock(db, tenant_id, target_date, timeout)

        existing = _find_by_idempotency_key(db, tenant_id, idempotency_key)
        if existing is not None:
            _ensure_same_request(existing, service_id, target_date, start_time)
            db.rollback()
            logger.info(f"Idempotent replay: booking {existing.id} (tenant {tenant_id})")
            return CommitResult(booking=existing, created=False)

        config = get_schedule_config(db, tenant_id)
        service = get_service(db, tenant_id, service_id)
        if not service:
            raise ValidationError(f"Service {service_id} not found")

        end_min = start_min + service.duration_min
        _validate_against_schedule(config, target_date, start_min, end_min, now)
        _ensure_no_conflicts(db, tenant_id, target_date, start_min, end_min)

        booking = DBBookings(
            tenant_id=tenant_id,
            service_id=service.id,
            booking_date=target_date.isoformat(),
            booking_time=start_time,
            duration_minutes=service.duration_min,
            status=status,
            customer_name=customer.name,
            customer_phone=customer.phone,
            customer_email=customer.email,
            notes=customer.notes,
            idempotency_key=idempotency_key,
        )
        db.add(booking)
        db.flush()

        write_audit(db, tenant_id, "booking_created", booking.id, {
            "date": booking.booking_date,
            "time": booking.booking_time,
            "duration_minutes": booking.duration_minutes,
            "status": status,
        })

        if monotonic() > deadline:
            raise CommitTimeout("Commit exceeded time bound")

        db.commit()

    except IntegrityError:
        # Lost a race on (tenant_id, idempotency_key) outside the day lock
        db.rollback()
        winner = _find_by_idempotency_key(db, tenant_id, idempotency_key)
        if winner is None:
            raise
        _ensure_same_request(winner, service_id, target_date, start_time)
        return CommitResult(booking=winner, created=False)

    except OperationalError as e:
        db.rollback()
        logger.warning(f"Commit timed out for tenant {tenant_id} on {target_date}: {e}")
        raise CommitTimeout("Store unavailable or lock wait exceeded") from e

    except Exception:
        db.rollback()
        raise

    db.refresh(booking)
    logger.info(
        f"Booking {booking.id} committed: tenant {tenant_id}, "
        f"{booking.booking_date} {booking.booking_time} ({booking.duration_minutes} min)"
    )
    emit_event("booking_created", booking_event_payload(booking))
    return CommitResult(booking=booking, created=True)


# ── Lock ─────────────────────────────────────────────────────────────────


def _acquire_day_lock(db: Session, tenant_id: int, target_date: date, timeout: float) -> None:
    """Serialize writers of one (tenant, date) for the rest of the transaction."""
    conn = db.connection()
    dialect = conn.dialect.name
    values = {"tenant_id": tenant_id, "lock_date": target_date.isoformat(), "version": 0}

    if dialect == "sqlite":
        # Per-call lock wait; the pool restores the engine default on checkout
        conn.exec_driver_sql(f"PRAGMA busy_timeout = {int(timeout * 1000)}")
        raw = conn.connection.driver_connection
        if not raw.in_transaction:
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        db.execute(sqlite_insert(DBBookingDayLocks).values(**values).on_conflict_do_nothing())
    elif dialect == "postgresql":
        conn.exec_driver_sql(f"SET LOCAL lock_timeout = '{int(timeout * 1000)}ms'")
        db.execute(pg_insert(DBBookingDayLocks).values(**values).on_conflict_do_nothing())
    else:
        raise RuntimeError(f"Unsupported database dialect: {dialect}")

    db.execute(
        update(DBBookingDayLocks)
        .where(
            DBBookingDayLocks.tenant_id == tenant_id,
            DBBookingDayLocks.lock_date == target_date.isoformat(),
        )
        .values(version=DBBookingDayLocks.version + 1)
    )


# ── Checks ───────────────────────────────────────────────────────────────


def _find_by_idempotency_key(db: Session, tenant_id: int, key: str) -> Optional[DBBookings]:
    return (
        db.query(DBBookings)
        .filter(DBBookings.tenant_id == tenant_id, DBBookings.idempotency_key == key)
        .first()
    )


def _ensure_same_request(
    booking: DBBookings,
    service_id: int,
    target_date: date,
    start_time: str,
) -> None:
    if (
        booking.service_id != service_id
        or booking.booking_date != target_date.isoformat()
        or booking.booking_time != start_time
    ):
        raise ValidationError("Idempotency key was already used for a different booking")


def _validate_against_schedule(
    config: ScheduleConfig,
    target_date: date,
    start_min: int,
    end_min: int,
    now: Optional[datetime],
) -> None:
    local_now = config.local_now(now)
    validate_requested_date(config, target_date, local_now)

    if not config.is_working_day(target_date):
        raise ValidationError("Not a working day")
    if start_min < config.start_minutes:
        raise ValidationError("Time is before opening hours")
    if end_min > config.end_minutes:
        raise ValidationError(f"Service {REASON_AFTER_CLOSING}")

    if target_date == local_now.date():
        slot_dt = datetime.combine(target_date, datetime.min.time()) + timedelta(minutes=start_min)
        if slot_dt < local_now + timedelta(hours=config.min_advance_hours):
            raise SlotConflict(f"Slot is {REASON_NOTICE_WINDOW}")


def _ensure_no_conflicts(
    db: Session,
    tenant_id: int,
    target_date: date,
    start_min: int,
    end_min: int,
) -> None:
    hits = find_conflicts(start_min, end_min, booking_intervals(get_active_bookings(db, tenant_id, target_date)))
    if hits:
        raise SlotConflict(f"Slot {hits[0].reason}", conflicting_time=hits[0].start_time)

    hits = find_conflicts(start_min, end_min, blocked_intervals(get_blocked_ranges(db, tenant_id, target_date)))
    if hits:
        raise SlotConflict(f"Slot is blocked: {hits[0].reason}", conflicting_time=hits[0].start_time)
