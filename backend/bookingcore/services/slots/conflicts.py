# backend/bookingcore/services/slots/conflicts.py
"""
Conflict detection against active bookings and blocked ranges.

All intervals are half-open [start, end) in minutes since midnight:
a slot ending exactly when a booking starts is not a conflict.

Used by both the read path (annotating TimeSlots) and BookingCommitter
(re-check inside the commit lock), so the two can never disagree.
"""

from dataclasses import dataclass

from .calculator import TimeSlot
from .config import time_str_to_minutes, minutes_to_time_str

ACTIVE_STATUSES = ("pending", "confirmed")


@dataclass(frozen=True)
class Interval:
    """Occupied [start, end) window with a human-readable reason."""
    start: int
    end: int
    reason: str

    @property
    def start_time(self) -> str:
        return minutes_to_time_str(self.start)


def overlaps(start: int, end: int, other_start: int, other_end: int) -> bool:
    """Half-open interval intersection."""
    return start < other_end and end > other_start


def booking_intervals(bookings) -> list[Interval]:
    """
    Intervals occupied by bookings.

    Cancelled bookings never occupy time and are skipped here,
    whatever the caller passed in.
    """
    intervals = []
    for booking in bookings:
        if booking.status not in ACTIVE_STATUSES:
            continue
        start = time_str_to_minutes(booking.booking_time)
        intervals.append(Interval(
            start=start,
            end=start + booking.duration_minutes,
            reason=f"conflicts with booking at {minutes_to_time_str(start)}",
        ))
    return intervals


def blocked_intervals(blocked_ranges) -> list[Interval]:
    """Intervals closed by administrator blocks."""
    intervals = []
    for block in blocked_ranges:
        start = time_str_to_minutes(block.start_time)
        end = time_str_to_minutes(block.end_time)
        if start >= end:
            continue
        intervals.append(Interval(start=start, end=end, reason=block.reason or "blocked"))
    return intervals


def find_conflicts(start: int, end: int, intervals: list[Interval]) -> list[Interval]:
    """Intervals that intersect [start, end)."""
    return [i for i in intervals if overlaps(start, end, i.start, i.end)]


def mark_conflicts(
    slots: list[TimeSlot],
    intervals: list[Interval],
    service_duration_min: int,
) -> list[TimeSlot]:
    """
    Mark slots whose service window [time, time + duration) hits any interval.

    Slots that are already unavailable keep their first reason.
    """
    result = []
    for slot in slots:
        if slot.available:
            start = slot.minutes
            hits = find_conflicts(start, start + service_duration_min, intervals)
            if hits:
                slot = slot.unavailable(hits[0].reason)
        result.append(slot)
    return result


def mark_booking_conflicts(
    slots: list[TimeSlot],
    bookings,
    service_duration_min: int,
) -> list[TimeSlot]:
    return mark_conflicts(slots, booking_intervals(bookings), service_duration_min)


def mark_blocked_ranges(
    slots: list[TimeSlot],
    blocked_ranges,
    service_duration_min: int,
) -> list[TimeSlot]:
    return mark_conflicts(slots, blocked_intervals(blocked_ranges), service_duration_min)
