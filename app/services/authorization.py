"""
Authorization decisions.

Effective permissions = role defaults ∪ explicit grants. Explicit grants only
ever add. Nothing is cached: every decision is computed from the principal
it is handed.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from app.core.exceptions import SecurityError
from app.core.logging import get_logger
from app.models.permission import Permission
from app.models.user import Role
from app.services.permission_registry import PermissionRegistry, permission_registry

logger = get_logger(__name__)


class Decision(str, Enum):
    ALLOW = "ALLOW"
    DENY = "DENY"


@dataclass(frozen=True)
class Principal:
    """The authenticated caller: account id, role and explicit grants."""

    user_id: int
    role: Role
    explicit_grants: frozenset[Permission] = field(default_factory=frozenset)


class AuthorizationService:
    """Answers allow/deny for a principal and a required permission."""

    def __init__(self, registry: PermissionRegistry = permission_registry):
        self.registry = registry

    def effective_permissions(self, principal: Principal) -> frozenset[Permission]:
        return self.registry.default_permissions(principal.role) | principal.explicit_grants

    def authorize(self, principal: Principal, permission: Permission) -> Decision:
        if permission in self.effective_permissions(principal):
            return Decision.ALLOW
        return Decision.DENY

    def is_allowed(self, principal: Principal, permission: Permission) -> bool:
        return self.authorize(principal, permission) is Decision.ALLOW

    def has_any(self, principal: Principal, permissions: Iterable[Permission]) -> bool:
        """True if at least one permission is allowed; False for an empty list."""
        effective = self.effective_permissions(principal)
        return any(p in effective for p in permissions)

    def has_all(self, principal: Principal, permissions: Iterable[Permission]) -> bool:
        """True if every permission is allowed; False for an empty list."""
        required = list(permissions)
        if not required:
            return False
        effective = self.effective_permissions(principal)
        return all(p in effective for p in required)

    def require(self, principal: Principal, permission: Permission) -> None:
        """
        Raise unless ``principal`` holds ``permission``.

        Raises:
            SecurityError: If the decision is DENY
        """
        if not self.is_allowed(principal, permission):
            logger.warning(
                f"User {principal.user_id} ({principal.role.value}) denied {permission.value}"
            )
            raise SecurityError(f"Missing required permission: {permission.value}")


authorization_service = AuthorizationService()
