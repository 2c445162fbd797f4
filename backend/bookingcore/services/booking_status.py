# backend/bookingcore/services/booking_status.py
"""
Booking status transitions.

    pending ──► confirmed
       │            │
       └──► cancelled ◄┘

Nothing leaves cancelled. Bookings are never deleted; cancelled ones stay
for audit and simply stop occupying time.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ..exceptions import InvalidTransition, NotFound
from ..models.generated import Bookings as DBBookings
from .audit import utc_now_str, write_audit
from .events import booking_event_payload, emit_event

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"confirmed", "cancelled"}),
    "confirmed": frozenset({"cancelled"}),
    "cancelled": frozenset(),
}


def get_booking(db: Session, tenant_id: Optional[int], booking_id: int) -> DBBookings:
    """Get booking of the tenant or raise NotFound."""
    booking = None
    if tenant_id:
        booking = (
            db.query(DBBookings)
            .filter(DBBookings.id == booking_id, DBBookings.tenant_id == tenant_id)
            .first()
        )
    if booking is None:
        raise NotFound(f"Booking {booking_id} not found")
    return booking


def list_bookings(
    db: Session,
    tenant_id: Optional[int],
    target_date: Optional[date] = None,
    status: Optional[str] = None,
    limit: int = 200,
) -> list[DBBookings]:
    """Bookings of the tenant, newest date first. Missing tenant → []."""
    if not tenant_id:
        return []

    q = db.query(DBBookings).filter(DBBookings.tenant_id == tenant_id)
    if target_date is not None:
        q = q.filter(DBBookings.booking_date == target_date.isoformat())
    if status:
        q = q.filter(DBBookings.status == status)

    return (
        q.order_by(DBBookings.booking_date.desc(), DBBookings.booking_time)
        .limit(min(limit, 500))
        .all()
    )


def transition_booking(
    db: Session,
    tenant_id: Optional[int],
    booking_id: int,
    new_status: str,
    reason: Optional[str] = None,
) -> DBBookings:
    """
    Apply a status change allowed by ALLOWED_TRANSITIONS and commit it.

    The write is conditional on the status that was checked, so two
    concurrent transitions of one booking cannot both apply.
    """
    booking = get_booking(db, tenant_id, booking_id)
    old_status = booking.status

    if new_status not in ALLOWED_TRANSITIONS.get(old_status, frozenset()):
        raise InvalidTransition(f"Cannot change booking from {old_status} to {new_status}")

    now_str = utc_now_str()
    values = {DBBookings.status: new_status, DBBookings.updated_at: now_str}
    if new_status == "cancelled":
        values[DBBookings.cancel_reason] = reason
        values[DBBookings.cancelled_at] = now_str

    try:
        updated = (
            db.query(DBBookings)
            .filter(
                DBBookings.id == booking.id,
                DBBookings.tenant_id == booking.tenant_id,
                DBBookings.status == old_status,
            )
            .update(values, synchronize_session=False)
        )
        if updated == 0:
            raise InvalidTransition(
                f"Booking {booking.id} is no longer {old_status}, cannot change it to {new_status}"
            )

        write_audit(db, booking.tenant_id, f"booking_{new_status}", booking.id, {
            "from": old_status,
            "to": new_status,
            "reason": reason,
        })
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(booking)

    logger.info(f"Booking {booking.id}: {old_status} → {new_status}")
    emit_event(f"booking_{new_status}", booking_event_payload(booking))
    return booking


def confirm_booking(db: Session, tenant_id: Optional[int], booking_id: int) -> DBBookings:
    return transition_booking(db, tenant_id, booking_id, "confirmed")


def cancel_booking(
    db: Session,
    tenant_id: Optional[int],
    booking_id: int,
    reason: Optional[str] = None,
) -> DBBookings:
    return transition_booking(db, tenant_id, booking_id, "cancelled", reason)
