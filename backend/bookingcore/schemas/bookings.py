# backend/bookingcore/schemas/bookings.py

import re
from datetime import date
from typing import Optional
from pydantic import BaseModel, Field, field_validator

_NAME_RE = re.compile(r"^[^\W\d_]+(?:[\s'\"-][^\W\d_]+)*$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CustomerPayload(BaseModel):
    """Customer data attached to a booking."""
    name: str = Field(min_length=2, max_length=50)
    phone: str
    email: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = " ".join(v.split())
        if not _NAME_RE.match(v):
            raise ValueError("Name may contain letters, spaces, apostrophes and hyphens only")
        return v

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, v: str) -> str:
        """Keep digits and a leading +."""
        v = v.strip()
        digits = re.sub(r"\D", "", v)
        if not 7 <= len(digits) <= 15:
            raise ValueError("Phone number must contain 7 to 15 digits")
        return ("+" + digits) if v.startswith("+") else digits

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not _EMAIL_RE.match(v):
            raise ValueError("Invalid email address")
        return v


class BookingCreate(BaseModel):
    service_id: int
    date: date
    time: str = Field(description="Start time in HH:MM format")
    customer: CustomerPayload
    status: str = Field("pending", description="pending (default) or confirmed")

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        """Validate time format."""
        if not re.match(r"^\d{2}:\d{2}$", v):
            raise ValueError("Time must be in HH:MM format")
        return v


class BookingCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class BookingRead(BaseModel):
    id: int
    tenant_id: int
    service_id: int

    booking_date: date
    booking_time: str
    duration_minutes: int

    status: str
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None
    cancelled_at: Optional[str] = None

    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}
