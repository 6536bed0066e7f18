"""
Permission schemas.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from app.models.permission import Permission
from app.models.user import Role


class PermissionGrant(BaseModel):
    """Request to grant or revoke one explicit permission."""

    permission: str


class PermissionAssignmentResponse(BaseModel):
    """A stored explicit grant."""

    user_id: int
    permission: Permission
    granted_by_id: Optional[int] = None
    granted_at: datetime

    model_config = {"from_attributes": True}


class PermissionsResponse(BaseModel):
    """Breakdown of a user's permissions."""

    user_id: int
    role: Role
    role_defaults: List[Permission]
    explicit_grants: List[Permission]
    effective: List[Permission]
