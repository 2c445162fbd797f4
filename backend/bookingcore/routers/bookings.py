# backend/bookingcore/routers/bookings.py
# PATCH = 405, DELETE = 405 (bookings are only status-transitioned)

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_now, get_tenant_id
from ..schemas.bookings import (
    BookingCancel,
    BookingCreate,
    BookingRead,
)
from ..services.booking_commit import commit_booking
from ..services.booking_status import (
    cancel_booking,
    confirm_booking,
    get_booking,
    list_bookings,
)

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("/", response_model=list[BookingRead])
def list_tenant_bookings(
    target_date: Optional[date] = Query(None, alias="date"),
    booking_status: Optional[str] = Query(None, alias="status"),
    tenant_id: Optional[int] = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    return list_bookings(db, tenant_id, target_date, booking_status)


@router.get("/{id}", response_model=BookingRead)
def get_tenant_booking(
    id: int,
    tenant_id: Optional[int] = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    return get_booking(db, tenant_id, id)


@router.post("/", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    response: Response,
    idempotency_key: Optional[str] = Header(None),
    tenant_id: Optional[int] = Depends(get_tenant_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    """
    Reserve a slot.

    201: new booking, 200: replay of a request with the same Idempotency-Key.
    409: slot taken meanwhile: re-query /slots/day, do not retry blindly.
    503: commit timed out: retry with the same Idempotency-Key.
    """
    result = commit_booking(
        db,
        tenant_id=tenant_id,
        service_id=data.service_id,
        target_date=data.date,
        start_time=data.time,
        customer=data.customer,
        idempotency_key=idempotency_key,
        status=data.status,
        now=now,
    )
    if not result.created:
        response.status_code = status.HTTP_200_OK
    return result.booking


@router.post("/{id}/confirm", response_model=BookingRead)
def confirm_tenant_booking(
    id: int,
    tenant_id: Optional[int] = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    return confirm_booking(db, tenant_id, id)


@router.post("/{id}/cancel", response_model=BookingRead)
def cancel_tenant_booking(
    id: int,
    data: BookingCancel | None = None,
    tenant_id: Optional[int] = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    return cancel_booking(db, tenant_id, id, data.reason if data else None)


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}")
def delete_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )
