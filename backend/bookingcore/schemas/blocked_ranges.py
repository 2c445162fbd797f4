# backend/bookingcore/schemas/blocked_ranges.py

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field

from .bookings import BookingRead


class BlockedRangeCreate(BaseModel):
    date: date
    start_time: str = Field(pattern=r"^\d{2}:\d{2}$")
    end_time: str = Field(pattern=r"^\d{2}:\d{2}$")
    reason: Optional[str] = Field(None, max_length=200)

    model_config = {"from_attributes": True}


class BlockedRangeRead(BaseModel):
    id: int
    tenant_id: int

    blocked_date: date
    start_time: str
    end_time: str

    reason: Optional[str] = None
    created_at: Optional[str] = None

    model_config = {"from_attributes": True}


class BlockedRangeCreated(BaseModel):
    blocked: BlockedRangeRead
    # Active bookings inside the new block (they are not cancelled)
    conflicting_bookings: list[BookingRead] = []
