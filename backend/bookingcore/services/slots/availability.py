# backend/bookingcore/services/slots/availability.py
"""
Available time slots for a service on a specific day.

Pipeline:
  schedule config → grid → closing time → bookings → blocked ranges → notice window

Takes into account:
- Tenant schedule (working days, hours, grid step, notice, horizon)
- Service duration
- Active bookings (pending / confirmed) of the tenant on that date
- Administrator blocked ranges

The result is advisory. BookingCommitter re-checks everything at commit time.
"""

import logging
from datetime import date, datetime, timedelta

from sqlalchemy.orm import Session

from ...exceptions import ConfigMissing, ValidationError
from .calculator import (
    TimeSlot,
    generate_time_slots,
    mark_after_closing,
    mark_inside_notice_window,
)
from .config import ScheduleConfig, get_schedule_config
from .conflicts import ACTIVE_STATUSES, mark_blocked_ranges, mark_booking_conflicts

logger = logging.getLogger(__name__)


def get_available_slots(
    db: Session,
    tenant_id: int | None,
    service_id: int,
    target_date: date,
    now: datetime | None = None,
) -> list[TimeSlot]:
    """
    Calculate the slot list for one date.

    Returns:
        Ordered TimeSlots. Empty list = tenant unknown, not configured,
        or a non-working day. A fully booked day still lists every slot
        with available=False.

    Raises:
        ValidationError: unknown service, date in the past or beyond the horizon.
    """
    if not tenant_id:
        return []

    # Step 1: Schedule config
    try:
        config = get_schedule_config(db, tenant_id)
    except ConfigMissing as e:
        logger.info(f"No availability for tenant {tenant_id}: {e}")
        return []

    local_now = config.local_now(now)
    validate_requested_date(config, target_date, local_now)

    # Step 2: Service
    service = get_service(db, tenant_id, service_id)
    if not service:
        raise ValidationError(f"Service {service_id} not found")

    if not config.is_working_day(target_date):
        return []

    # Step 3: Day data
    bookings = get_active_bookings(db, tenant_id, target_date)
    blocked = get_blocked_ranges(db, tenant_id, target_date)

    return build_day_slots(
        config,
        target_date,
        service.duration_min,
        bookings,
        blocked,
        local_now,
    )


def build_day_slots(
    config: ScheduleConfig,
    target_date: date,
    service_duration_min: int,
    bookings,
    blocked_ranges,
    local_now: datetime,
) -> list[TimeSlot]:
    """Pure part of the pipeline: no I/O, same input → same output."""
    slots = generate_time_slots(
        target_date,
        config.start_time,
        config.end_time,
        config.slot_duration_min,
    )
    slots = mark_after_closing(slots, service_duration_min, config.end_time)
    slots = mark_booking_conflicts(slots, bookings, service_duration_min)
    slots = mark_blocked_ranges(slots, blocked_ranges, service_duration_min)
    slots = mark_inside_notice_window(slots, target_date, local_now, config.min_advance_hours)
    return slots


def validate_requested_date(
    config: ScheduleConfig,
    target_date: date,
    local_now: datetime,
) -> None:
    """Reject dates before tenant-local today or beyond max_advance_days."""
    today = local_now.date()
    max_date = today + timedelta(days=config.max_advance_days)

    if target_date < today:
        raise ValidationError("Date cannot be in the past")

    if target_date > max_date:
        raise ValidationError(f"Date cannot be more than {config.max_advance_days} days ahead")


# ── Database helpers ─────────────────────────────────────────────────────


def get_service(db: Session, tenant_id: int, service_id: int):
    """Get active service of the tenant."""
    from ...models.generated import Services
    return db.query(Services).filter(
        Services.id == service_id,
        Services.tenant_id == tenant_id,
        Services.is_active == 1,
    ).first()


def get_active_bookings(db: Session, tenant_id: int, target_date: date) -> list:
    """Get pending/confirmed bookings of the tenant on date."""
    from ...models.generated import Bookings

    return (
        db.query(Bookings)
        .filter(
            Bookings.tenant_id == tenant_id,
            Bookings.booking_date == target_date.isoformat(),
            Bookings.status.in_(ACTIVE_STATUSES),
        )
        .order_by(Bookings.booking_time)
        .all()
    )


def get_blocked_ranges(db: Session, tenant_id: int, target_date: date) -> list:
    """Get administrator blocks of the tenant on date."""
    from ...models.generated import BlockedSlots

    return (
        db.query(BlockedSlots)
        .filter(
            BlockedSlots.tenant_id == tenant_id,
            BlockedSlots.blocked_date == target_date.isoformat(),
        )
        .order_by(BlockedSlots.start_time)
        .all()
    )
