# backend/bookingcore/services/blocked_ranges.py
"""
Administrator blocked ranges (BlockRange / UnblockRange).

Blocks are independent of bookings: creating one does not cancel anything.
Active bookings that overlap the new block are returned so the caller can
warn the administrator.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ..exceptions import NotFound, ValidationError
from ..models.generated import BlockedSlots as DBBlockedSlots
from .slots.availability import get_active_bookings
from .slots.config import time_str_to_minutes, minutes_to_time_str
from .slots.conflicts import overlaps

logger = logging.getLogger(__name__)


@dataclass
class BlockResult:
    blocked: DBBlockedSlots
    conflicting_bookings: list = field(default_factory=list)


def block_range(
    db: Session,
    tenant_id: Optional[int],
    target_date: date,
    start_time: str,
    end_time: str,
    reason: Optional[str] = None,
) -> BlockResult:
    """Close [start_time, end_time) on target_date for new bookings."""
    if not tenant_id:
        raise ValidationError("Tenant is required")

    try:
        start_min = time_str_to_minutes(start_time)
        end_min = time_str_to_minutes(end_time)
    except ValueError as e:
        raise ValidationError(str(e)) from None

    if start_min >= end_min:
        raise ValidationError("start_time must be before end_time")

    conflicting = [
        b for b in get_active_bookings(db, tenant_id, target_date)
        if overlaps(
            start_min,
            end_min,
            time_str_to_minutes(b.booking_time),
            time_str_to_minutes(b.booking_time) + b.duration_minutes,
        )
    ]

    obj = DBBlockedSlots(
        tenant_id=tenant_id,
        blocked_date=target_date.isoformat(),
        start_time=minutes_to_time_str(start_min),
        end_time=minutes_to_time_str(end_min),
        reason=reason,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)

    if conflicting:
        logger.warning(
            f"Blocked range {obj.id} overlaps {len(conflicting)} active booking(s) "
            f"for tenant {tenant_id} on {target_date}"
        )
    return BlockResult(blocked=obj, conflicting_bookings=conflicting)


def unblock_range(db: Session, tenant_id: Optional[int], blocked_id: int) -> None:
    """Remove a block of the tenant (hard delete)."""
    obj = None
    if tenant_id:
        obj = (
            db.query(DBBlockedSlots)
            .filter(DBBlockedSlots.id == blocked_id, DBBlockedSlots.tenant_id == tenant_id)
            .first()
        )
    if obj is None:
        raise NotFound(f"Blocked range {blocked_id} not found")

    db.delete(obj)
    db.commit()
    logger.info(f"Blocked range {blocked_id} removed (tenant {tenant_id})")


def list_blocked_ranges(
    db: Session,
    tenant_id: Optional[int],
    from_date: Optional[date] = None,
) -> list[DBBlockedSlots]:
    """Blocks of the tenant ordered by date and start time. Missing tenant → []."""
    if not tenant_id:
        return []

    q = db.query(DBBlockedSlots).filter(DBBlockedSlots.tenant_id == tenant_id)
    if from_date is not None:
        q = q.filter(DBBlockedSlots.blocked_date >= from_date.isoformat())
    return q.order_by(DBBlockedSlots.blocked_date, DBBlockedSlots.start_time).all()
