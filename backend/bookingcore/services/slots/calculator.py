# backend/bookingcore/services/slots/calculator.py
"""
Slot grid for one calendar date.

Produces TimeSlot values and annotates them:
  ✓ grid from opening time, every slot_duration_min, strictly before closing
  ✓ closing time (service must finish by closing)
  ✓ minimum notice window (same-day requests only)

Does NOT contain:
  ✗ Bookings and blocked ranges (see conflicts.py)
  ✗ Database access
"""

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from math import ceil

from .config import time_str_to_minutes, minutes_to_time_str

REASON_AFTER_CLOSING = "would finish after closing"
REASON_NOTICE_WINDOW = "inside minimum notice window"


@dataclass(frozen=True)
class TimeSlot:
    """Candidate start time. Derived, never persisted."""
    time: str  # "HH:MM"
    date: date
    available: bool = True
    reason: str | None = None

    @property
    def minutes(self) -> int:
        return time_str_to_minutes(self.time)

    def unavailable(self, reason: str) -> "TimeSlot":
        return replace(self, available=False, reason=reason)


def generate_time_slots(
    target_date: date,
    start_time: str,
    end_time: str,
    slot_duration_min: int,
) -> list[TimeSlot]:
    """
    Evenly spaced grid [start_time, end_time).

    Empty when the config is malformed (start >= end, step <= 0).
    """
    start_min = time_str_to_minutes(start_time)
    end_min = time_str_to_minutes(end_time)

    if slot_duration_min <= 0 or start_min >= end_min:
        return []

    count = ceil((end_min - start_min) / slot_duration_min)
    return [
        TimeSlot(time=minutes_to_time_str(start_min + i * slot_duration_min), date=target_date)
        for i in range(count)
    ]


def mark_after_closing(
    slots: list[TimeSlot],
    service_duration_min: int,
    end_time: str,
) -> list[TimeSlot]:
    """Mark slots whose service would end after closing time."""
    end_min = time_str_to_minutes(end_time)
    result = []
    for slot in slots:
        if slot.available and slot.minutes + service_duration_min > end_min:
            slot = slot.unavailable(REASON_AFTER_CLOSING)
        result.append(slot)
    return result


def mark_inside_notice_window(
    slots: list[TimeSlot],
    target_date: date,
    local_now: datetime,
    min_advance_hours: int,
) -> list[TimeSlot]:
    """
    Mark same-day slots starting before now + min_advance_hours.

    local_now is tenant wall-clock time. No-op for any other date.
    """
    if target_date != local_now.date():
        return list(slots)

    min_bookable = local_now + timedelta(hours=min_advance_hours)
    midnight = datetime.combine(target_date, datetime.min.time())

    result = []
    for slot in slots:
        slot_dt = midnight + timedelta(minutes=slot.minutes)
        if slot.available and slot_dt < min_bookable:
            slot = slot.unavailable(REASON_NOTICE_WINDOW)
        result.append(slot)
    return result
