# backend/bookingcore/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from datetime import date
from pydantic import BaseModel, Field


class SlotInfo(BaseModel):
    """Information about a single slot."""
    time: str  # "HH:MM"
    available: bool
    reason: str | None = None

    model_config = {"from_attributes": True}


class SlotsDayResponse(BaseModel):
    """Slot list for one service on one day."""
    tenant_id: int | None
    service_id: int
    date: date
    slots: list[SlotInfo]
    has_openings: bool = Field(description="False = day has no openings (normal result, not an error)")

    model_config = {"from_attributes": True}


class FullDatesResponse(BaseModel):
    """Dates to grey out on a month calendar."""
    tenant_id: int | None
    start_date: date
    end_date: date
    capacity_ceiling: int
    full_dates: list[date] = Field(
        description=(
            "Dates whose count of active bookings is >= capacity_ceiling. "
            "Count-based, not slot-based: a listed date may still have an open slot "
            "and an unlisted date may have none. Use /slots/day for per-slot truth."
        )
    )

    model_config = {"from_attributes": True}


class DayCount(BaseModel):
    date: date
    active_bookings: int


class DayCountsResponse(BaseModel):
    """Active booking counts per date (dates without bookings omitted)."""
    tenant_id: int | None
    start_date: date
    end_date: date
    days: list[DayCount]

    model_config = {"from_attributes": True}
