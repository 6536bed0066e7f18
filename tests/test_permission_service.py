"""
Tests for explicit permission grants.
"""

import pytest
from sqlmodel import Session

from app.core.exceptions import ConflictError, EntityNotFoundError
from app.models.audit import AuditAction
from app.models.permission import Permission
from app.models.user import User
from app.services.audit_service import AuditService
from app.services.authorization import authorization_service
from app.services.permission_service import PermissionService


@pytest.fixture(name="permissions")
def permissions_fixture(session: Session) -> PermissionService:
    return PermissionService(session)


def test_grant_adds_to_effective_set(permissions: PermissionService, guest: User, admin: User) -> None:
    assert Permission.VIEW_CLIENTS not in permissions.effective_permissions(guest)

    assignment = permissions.grant(guest, Permission.VIEW_CLIENTS, granted_by=admin)

    assert assignment.id is not None
    assert assignment.granted_by_id == admin.id
    assert permissions.explicit_grants(guest) == frozenset({Permission.VIEW_CLIENTS})
    assert Permission.VIEW_CLIENTS in permissions.effective_permissions(guest)


def test_grant_by_name(permissions: PermissionService, guest: User) -> None:
    permissions.grant(guest, "VIEW_EMPLOYEES")
    assert Permission.VIEW_EMPLOYEES in permissions.explicit_grants(guest)


def test_grant_unknown_permission(permissions: PermissionService, guest: User) -> None:
    with pytest.raises(EntityNotFoundError):
        permissions.grant(guest, "LAUNCH_ROCKETS")


def test_duplicate_grant_conflicts(permissions: PermissionService, guest: User) -> None:
    permissions.grant(guest, Permission.VIEW_CLIENTS)
    with pytest.raises(ConflictError):
        permissions.grant(guest, Permission.VIEW_CLIENTS)


def test_revoke_takes_effect_immediately(permissions: PermissionService, guest: User) -> None:
    """A fresh principal no longer carries a revoked grant."""
    permissions.grant(guest, Permission.VIEW_CLIENTS)
    principal = permissions.principal_for(guest)
    assert authorization_service.is_allowed(principal, Permission.VIEW_CLIENTS)

    permissions.revoke(guest, Permission.VIEW_CLIENTS)

    principal = permissions.principal_for(guest)
    assert not authorization_service.is_allowed(principal, Permission.VIEW_CLIENTS)


def test_revoke_never_removes_role_defaults(permissions: PermissionService, guest: User) -> None:
    with pytest.raises(EntityNotFoundError):
        permissions.revoke(guest, Permission.REQUEST_CLIENT_ACCOUNT)
    assert Permission.REQUEST_CLIENT_ACCOUNT in permissions.effective_permissions(guest)


def test_grant_and_revoke_are_audited(
    session: Session, permissions: PermissionService, guest: User, admin: User
) -> None:
    permissions.grant(guest, Permission.VIEW_CLIENTS, granted_by=admin)
    permissions.revoke(guest, Permission.VIEW_CLIENTS, revoked_by=admin)

    events = AuditService(session).list_events(target_user_id=guest.id)
    actions = [e.action for e in events]
    assert AuditAction.PERMISSION_GRANT in actions
    assert AuditAction.PERMISSION_REVOKE in actions
