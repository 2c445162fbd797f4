# backend/bookingcore/services/slots/__init__.py
"""
Slots calculation module.

Read path: grid → closing time → bookings / blocked ranges → notice window
(calculated on-the-fly per request, no shared state)
Calendar: count-based "full" dates per tenant
"""

from .config import ScheduleConfig, get_schedule_config
from .calculator import TimeSlot, generate_time_slots
from .availability import get_available_slots, validate_requested_date
from .capacity import count_active_bookings_by_date, get_full_dates_in_range

__all__ = [
    "ScheduleConfig",
    "get_schedule_config",
    "TimeSlot",
    "generate_time_slots",
    "get_available_slots",
    "validate_requested_date",
    "count_active_bookings_by_date",
    "get_full_dates_in_range",
]
