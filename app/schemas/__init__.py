"""Pydantic schemas for request/response validation."""

from app.schemas.audit import AuditEventResponse
from app.schemas.permission import PermissionAssignmentResponse, PermissionGrant, PermissionsResponse
from app.schemas.token import Token, TokenPayload
from app.schemas.upgrade import (
    EligibilityResponse,
    UpgradeApplication,
    UpgradeDecision,
    UpgradeRejection,
    UpgradeRequestResponse,
)
from app.schemas.user import (
    AdminUserCreate,
    PasswordReset,
    PasswordUpdate,
    RoleUpdate,
    UserCreate,
    UserDetailsUpdate,
    UserLogin,
    UserResponse,
)

__all__ = [
    "AdminUserCreate",
    "AuditEventResponse",
    "EligibilityResponse",
    "PasswordReset",
    "PasswordUpdate",
    "PermissionAssignmentResponse",
    "PermissionGrant",
    "PermissionsResponse",
    "RoleUpdate",
    "Token",
    "TokenPayload",
    "UpgradeApplication",
    "UpgradeDecision",
    "UpgradeRejection",
    "UpgradeRequestResponse",
    "UserCreate",
    "UserDetailsUpdate",
    "UserLogin",
    "UserResponse",
]
