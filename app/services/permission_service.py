"""
Explicit permission assignments and principal construction.
"""

from typing import List, Optional, Union

from sqlmodel import Session, select

from app.core.exceptions import ConflictError, EntityNotFoundError
from app.core.logging import get_logger
from app.db.unit_of_work import UnitOfWork
from app.models.audit import AuditAction
from app.models.permission import Permission, PermissionAssignment
from app.models.user import User
from app.services.audit_service import AuditService
from app.services.authorization import Principal
from app.services.permission_registry import PermissionRegistry, permission_registry

logger = get_logger(__name__)


class PermissionService:
    """
    Service for explicit grants on top of role defaults.
    """

    def __init__(self, session: Session, registry: PermissionRegistry = permission_registry):
        self.session = session
        self.registry = registry
        self.audit = AuditService(session)

    def assignments(self, user: User) -> List[PermissionAssignment]:
        statement = select(PermissionAssignment).where(PermissionAssignment.user_id == user.id)
        return list(self.session.exec(statement))

    def explicit_grants(self, user: User) -> frozenset[Permission]:
        return frozenset(a.permission for a in self.assignments(user))

    def principal_for(self, user: User) -> Principal:
        """
        Build a principal from the user's current role and grants.
        Always read fresh so role changes and revocations apply immediately.
        """
        return Principal(user_id=user.id, role=user.role, explicit_grants=self.explicit_grants(user))  # type: ignore[arg-type]

    def effective_permissions(self, user: User) -> frozenset[Permission]:
        return self.registry.default_permissions(user.role) | self.explicit_grants(user)

    def _find(self, user: User, permission: Permission) -> Optional[PermissionAssignment]:
        statement = select(PermissionAssignment).where(
            PermissionAssignment.user_id == user.id,
            PermissionAssignment.permission == permission,
        )
        return self.session.exec(statement).first()

    def _resolve(self, permission: Union[Permission, str]) -> Permission:
        try:
            return self.registry.resolve(permission)
        except LookupError:
            raise EntityNotFoundError("Permission", permission) from None

    def grant(
        self,
        user: User,
        permission: Union[Permission, str],
        granted_by: Optional[User] = None,
    ) -> PermissionAssignment:
        """
        Add an explicit grant.

        Raises:
            EntityNotFoundError: If the permission is not in the registry
            ConflictError: If the user already holds this explicit grant
        """
        resolved = self._resolve(permission)
        if self._find(user, resolved) is not None:
            raise ConflictError(f"Permission {resolved.value} already assigned to user {user.id}")

        with UnitOfWork(self.session):
            assignment = PermissionAssignment(
                user_id=user.id,  # type: ignore[arg-type]
                permission=resolved,
                granted_by_id=granted_by.id if granted_by else None,
            )
            self.session.add(assignment)
            self.audit.record(
                AuditAction.PERMISSION_GRANT,
                actor_id=granted_by.id if granted_by else None,
                target_user_id=user.id,
                details=resolved.value,
            )

        self.session.refresh(assignment)
        logger.info(f"Granted {resolved.value} to user {user.id}")
        return assignment

    def revoke(
        self,
        user: User,
        permission: Union[Permission, str],
        revoked_by: Optional[User] = None,
    ) -> None:
        """
        Remove an explicit grant. Role defaults are unaffected.

        Raises:
            EntityNotFoundError: If the permission is unknown or not assigned
        """
        resolved = self._resolve(permission)
        assignment = self._find(user, resolved)
        if assignment is None:
            raise EntityNotFoundError("Permission assignment", f"{user.id}/{resolved.value}")

        with UnitOfWork(self.session):
            self.session.delete(assignment)
            self.audit.record(
                AuditAction.PERMISSION_REVOKE,
                actor_id=revoked_by.id if revoked_by else None,
                target_user_id=user.id,
                details=resolved.value,
            )

        logger.info(f"Revoked {resolved.value} from user {user.id}")

    def clear(self, user: User) -> int:
        """
        Delete every explicit grant for a user inside the caller's unit of work.

        Returns:
            Number of assignments removed
        """
        removed = 0
        for assignment in self.assignments(user):
            self.session.delete(assignment)
            removed += 1
        return removed
