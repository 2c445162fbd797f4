from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_tenant_id
from ..models.generated import AuditLog as DBAuditLog
from ..schemas.audit_log import AuditLogRead


router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("/", response_model=list[AuditLogRead])
def list_audit(
    event_type: Optional[str] = None,
    booking_id: Optional[int] = None,
    limit: int = 50,
    tenant_id: Optional[int] = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    """
    Read-only audit log of the tenant.

    Filters:
    - event_type (exact match)
    - booking_id
    - limit (default 50, max enforced here)
    """
    if not tenant_id:
        return []

    q = db.query(DBAuditLog).filter(DBAuditLog.tenant_id == tenant_id)

    if event_type:
        q = q.filter(DBAuditLog.event_type == event_type)

    if booking_id:
        q = q.filter(DBAuditLog.booking_id == booking_id)

    return (
        q.order_by(DBAuditLog.id.desc())
        .limit(min(limit, 200))
        .all()
    )
