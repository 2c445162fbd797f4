# backend/bookingcore/dependencies.py
"""
Request-scoped inputs shared by routers.

The tenant is resolved upstream (gateway / session layer) and forwarded in
the X-Tenant-ID header. There is no default tenant: handlers receive None
and the engine answers with "no data" (reads) or a validation error (writes).
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import Header


def get_tenant_id(x_tenant_id: Optional[int] = Header(None)) -> Optional[int]:
    return x_tenant_id


def get_now() -> datetime:
    """Request clock (overridden in tests)."""
    return datetime.now(timezone.utc)
