from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class AuditLogRead(BaseModel):
    id: int
    tenant_id: int
    event_type: str

    booking_id: Optional[int] = None

    payload: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
