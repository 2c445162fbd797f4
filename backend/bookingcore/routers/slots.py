# backend/bookingcore/routers/slots.py
"""
Slots API endpoints (read-only).

GET /slots/day        - Slot list for a service on one day
GET /slots/full-dates - Calendar days to grey out (count-based)
GET /slots/counts     - Active booking counts per day
"""

import calendar
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import get_now, get_tenant_id
from ..exceptions import ConfigMissing
from ..schemas.slots import (
    DayCount,
    DayCountsResponse,
    FullDatesResponse,
    SlotInfo,
    SlotsDayResponse,
)
from ..services.slots import (
    count_active_bookings_by_date,
    get_available_slots,
    get_full_dates_in_range,
    get_schedule_config,
)


router = APIRouter(prefix="/slots", tags=["slots"])


def _month_bounds(db: Session, tenant_id: Optional[int], now: datetime) -> tuple[date, date]:
    """Current month of the tenant (request clock when it has no schedule yet)."""
    config = None
    if tenant_id:
        try:
            config = get_schedule_config(db, tenant_id)
        except ConfigMissing:
            config = None
    today = config.local_now(now).date() if config else now.date()
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


@router.get("/day", response_model=SlotsDayResponse)
def get_slots_day(
    service_id: int,
    target_date: date = Query(..., alias="date"),
    tenant_id: Optional[int] = Depends(get_tenant_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    """Get time slots for a service on a specific day."""
    slots = get_available_slots(db, tenant_id, service_id, target_date, now=now)

    return SlotsDayResponse(
        tenant_id=tenant_id,
        service_id=service_id,
        date=target_date,
        slots=[SlotInfo(time=s.time, available=s.available, reason=s.reason) for s in slots],
        has_openings=any(s.available for s in slots),
    )


@router.get("/full-dates", response_model=FullDatesResponse)
def get_full_dates(
    start_date: date | None = None,
    end_date: date | None = None,
    tenant_id: Optional[int] = Depends(get_tenant_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    """Get dates at or above the daily capacity ceiling (defaults to the current month)."""
    month_start, month_end = _month_bounds(db, tenant_id, now)
    start_date = start_date or month_start
    end_date = end_date or month_end

    full = get_full_dates_in_range(db, tenant_id, start_date, end_date)

    return FullDatesResponse(
        tenant_id=tenant_id,
        start_date=start_date,
        end_date=end_date,
        capacity_ceiling=settings.daily_capacity_ceiling,
        full_dates=sorted(full),
    )


@router.get("/counts", response_model=DayCountsResponse)
def get_day_counts(
    start_date: date | None = None,
    end_date: date | None = None,
    tenant_id: Optional[int] = Depends(get_tenant_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    """Get active booking counts per day (defaults to the current month)."""
    month_start, month_end = _month_bounds(db, tenant_id, now)
    start_date = start_date or month_start
    end_date = end_date or month_end

    counts = count_active_bookings_by_date(db, tenant_id, start_date, end_date)

    return DayCountsResponse(
        tenant_id=tenant_id,
        start_date=start_date,
        end_date=end_date,
        days=[DayCount(date=d, active_bookings=c) for d, c in sorted(counts.items())],
    )
