# backend/bookingcore/services/audit.py
"""Audit trail for booking lifecycle events (bookings are never deleted)."""

import json
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ..models.generated import AuditLog as DBAuditLog


def utc_now_str() -> str:
    """Timestamp in the same format as SQLite CURRENT_TIMESTAMP."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def write_audit(
    db: Session,
    tenant_id: int,
    event_type: str,
    booking_id: Optional[int] = None,
    payload: Optional[dict] = None,
) -> DBAuditLog:
    """Add an audit record to the current transaction (caller commits)."""
    entry = DBAuditLog(
        tenant_id=tenant_id,
        event_type=event_type,
        booking_id=booking_id,
        payload=json.dumps(payload, ensure_ascii=False) if payload is not None else None,
    )
    db.add(entry)
    return entry
