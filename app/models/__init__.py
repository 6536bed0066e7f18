"""SQLModel table models. Importing this package registers every table."""

from app.models.audit import AuditAction, AuditEvent, AuditOutcome
from app.models.permission import Permission, PermissionAssignment
from app.models.profiles import AdminProfile, ClientProfile, EmployeeProfile, GuestProfile
from app.models.upgrade_request import RiskTolerance, UpgradeRequest, UpgradeRequestStatus
from app.models.user import Role, User

__all__ = [
    "AdminProfile",
    "AuditAction",
    "AuditEvent",
    "AuditOutcome",
    "ClientProfile",
    "EmployeeProfile",
    "GuestProfile",
    "Permission",
    "PermissionAssignment",
    "RiskTolerance",
    "Role",
    "UpgradeRequest",
    "UpgradeRequestStatus",
    "User",
]
