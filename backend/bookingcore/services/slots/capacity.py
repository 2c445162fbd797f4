# backend/bookingcore/services/slots/capacity.py
"""
Calendar-level day capacity.

A date is "full" when its count of active bookings reaches the ceiling.
This is a coarse, count-based signal for greying out calendar days: it does
not look at slots, so a full date may still have a technically open slot
when service durations vary, and a date with no open slot may not be full.
Per-slot truth comes from availability.get_available_slots.
"""

import logging
from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...config import settings
from ...exceptions import ValidationError
from .conflicts import ACTIVE_STATUSES

logger = logging.getLogger(__name__)


def count_active_bookings_by_date(
    db: Session,
    tenant_id: int | None,
    start_date: date,
    end_date: date,
) -> dict[date, int]:
    """
    Count pending/confirmed bookings per date in [start_date, end_date].

    Dates without bookings are absent. Missing tenant → empty mapping,
    never an unscoped aggregate.
    """
    if not tenant_id:
        return {}

    if end_date < start_date:
        raise ValidationError("end_date cannot be before start_date")

    from ...models.generated import Bookings

    rows = (
        db.query(Bookings.booking_date, func.count(Bookings.id))
        .filter(
            Bookings.tenant_id == tenant_id,
            Bookings.booking_date >= start_date.isoformat(),
            Bookings.booking_date <= end_date.isoformat(),
            Bookings.status.in_(ACTIVE_STATUSES),
        )
        .group_by(Bookings.booking_date)
        .all()
    )

    return {date.fromisoformat(day): count for day, count in rows}


def get_full_dates_in_range(
    db: Session,
    tenant_id: int | None,
    start_date: date,
    end_date: date,
    ceiling: int | None = None,
) -> set[date]:
    """
    Dates in range whose active booking count is >= ceiling.

    ceiling defaults to settings.daily_capacity_ceiling.
    """
    ceiling = settings.daily_capacity_ceiling if ceiling is None else ceiling
    if ceiling <= 0:
        raise ValidationError(f"Capacity ceiling must be > 0, got {ceiling}")

    counts = count_active_bookings_by_date(db, tenant_id, start_date, end_date)
    full = {day for day, count in counts.items() if count >= ceiling}

    if full:
        logger.debug(f"Tenant {tenant_id}: {len(full)} full dates in {start_date}..{end_date}")
    return full
