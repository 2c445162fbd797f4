# backend/bookingcore/routers/blocked_ranges.py
# PATCH = 405, DELETE = ALLOWED (hard)

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_tenant_id
from ..schemas.blocked_ranges import (
    BlockedRangeCreate,
    BlockedRangeCreated,
    BlockedRangeRead,
)
from ..schemas.bookings import BookingRead
from ..services.blocked_ranges import (
    block_range,
    list_blocked_ranges,
    unblock_range,
)

router = APIRouter(prefix="/blocked_ranges", tags=["blocked_ranges"])


@router.get("/", response_model=list[BlockedRangeRead])
def list_tenant_blocked_ranges(
    from_date: Optional[date] = None,
    tenant_id: Optional[int] = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    return list_blocked_ranges(db, tenant_id, from_date)


@router.post(
    "/", response_model=BlockedRangeCreated, status_code=status.HTTP_201_CREATED
)
def create_blocked_range(
    data: BlockedRangeCreate,
    tenant_id: Optional[int] = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    result = block_range(db, tenant_id, data.date, data.start_time, data.end_time, data.reason)
    return BlockedRangeCreated(
        blocked=BlockedRangeRead.model_validate(result.blocked),
        conflicting_bookings=[BookingRead.model_validate(b) for b in result.conflicting_bookings],
    )


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_blocked_range(
    id: int,
    tenant_id: Optional[int] = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    unblock_range(db, tenant_id, id)
