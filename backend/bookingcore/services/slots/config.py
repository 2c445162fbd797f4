# backend/bookingcore/services/slots/config.py
"""
Schedule configuration for slots calculation.

ScheduleConfig is the per-tenant view of the schedule_settings row.
The engine only reads it; administrators edit it elsewhere.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.orm import Session

from ...exceptions import ConfigMissing

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" (or "HH:MM:SS") to minutes since midnight. "24:00" is allowed."""
    parts = str(value).strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time: {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    total = hour * 60 + minute
    if hour < 0 or not 0 <= minute < 60 or total > MINUTES_PER_DAY:
        raise ValueError(f"Invalid time: {value!r}")
    return total


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class ScheduleConfig:
    """
    Schedule of one tenant.

    Attributes:
        working_days: date.weekday() numbers the business is open (0 = Monday)
        start_time: Opening time "HH:MM"
        end_time: Closing time "HH:MM"
        slot_duration_min: Grid step in minutes
        min_advance_hours: Minimum notice before a same-day slot can be booked
        max_advance_days: How many days ahead bookings are accepted
        timezone: IANA name used to decide what "today" is for the tenant
    """
    working_days: frozenset[int] = field(default_factory=lambda: frozenset({6, 0, 1, 2, 3}))
    start_time: str = "09:00"
    end_time: str = "18:00"
    slot_duration_min: int = 15
    min_advance_hours: int = 2
    max_advance_days: int = 30
    timezone: str = "UTC"

    def __post_init__(self):
        """Validate what cannot be degraded to "no slots"."""
        time_str_to_minutes(self.start_time)
        time_str_to_minutes(self.end_time)
        if self.min_advance_hours < 0:
            raise ValueError(f"min_advance_hours must be >= 0, got {self.min_advance_hours}")
        if self.max_advance_days < 0:
            raise ValueError(f"max_advance_days must be >= 0, got {self.max_advance_days}")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {self.timezone!r}") from None

    @property
    def start_minutes(self) -> int:
        return time_str_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_str_to_minutes(self.end_time)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def is_working_day(self, target_date: date) -> bool:
        return target_date.weekday() in self.working_days

    def local_now(self, now: datetime | None = None) -> datetime:
        """
        Current wall-clock time of the tenant, without tzinfo.

        A naive `now` is taken as already being tenant-local.
        """
        if now is None:
            return datetime.now(self.tzinfo).replace(tzinfo=None)
        if now.tzinfo is None:
            return now
        return now.astimezone(self.tzinfo).replace(tzinfo=None)


def schedule_config_from_row(row) -> ScheduleConfig:
    """Build ScheduleConfig from a ScheduleSettings row."""
    try:
        days = json.loads(row.working_days) if row.working_days else []
    except json.JSONDecodeError:
        logger.warning(f"Malformed working_days for tenant {row.tenant_id}: {row.working_days!r}")
        days = []

    return ScheduleConfig(
        working_days=frozenset(int(d) for d in days),
        start_time=row.working_hours_start,
        end_time=row.working_hours_end,
        slot_duration_min=row.slot_duration_min,
        min_advance_hours=row.min_advance_hours,
        max_advance_days=row.max_advance_days,
        timezone=row.timezone or "UTC",
    )


def get_schedule_config(db: Session, tenant_id: int) -> ScheduleConfig:
    """
    Resolve the schedule of a tenant.

    Raises:
        ConfigMissing: tenant has no (usable) schedule settings.
    """
    from ...models.generated import ScheduleSettings

    row = (
        db.query(ScheduleSettings)
        .filter(ScheduleSettings.tenant_id == tenant_id)
        .first()
    )
    if row is None:
        raise ConfigMissing(f"Tenant {tenant_id} has no schedule settings")

    try:
        return schedule_config_from_row(row)
    except ValueError as e:
        logger.error(f"Unusable schedule settings for tenant {tenant_id}: {e}")
        raise ConfigMissing(f"Tenant {tenant_id} schedule settings are invalid") from e
