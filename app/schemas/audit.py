"""
Audit event schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.models.audit import AuditAction, AuditOutcome


class AuditEventResponse(BaseModel):
    id: int
    timestamp: datetime
    action: AuditAction
    outcome: AuditOutcome
    actor_id: Optional[int] = None
    target_user_id: Optional[int] = None
    details: Optional[str] = None

    model_config = {"from_attributes": True}
