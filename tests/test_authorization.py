"""
Tests for the authorization decision engine.
"""

import pytest

from app.core.exceptions import SecurityError
from app.models.permission import Permission
from app.models.user import Role
from app.services.authorization import AuthorizationService, Decision, Principal
from app.services.permission_registry import PermissionRegistry, permission_registry


@pytest.fixture(name="engine")
def engine_fixture() -> AuthorizationService:
    return AuthorizationService()


def test_decision_is_union_of_defaults_and_grants(engine: AuthorizationService) -> None:
    """Allow exactly when the permission is a role default or an explicit grant."""
    extra = frozenset({Permission.VIEW_CLIENTS, Permission.ASSIGN_CLIENT})
    for role in Role:
        defaults = permission_registry.default_permissions(role)
        for grants in (frozenset(), extra):
            principal = Principal(user_id=1, role=role, explicit_grants=grants)
            for permission in Permission:
                expected = Decision.ALLOW if permission in defaults | grants else Decision.DENY
                assert engine.authorize(principal, permission) is expected


def test_guest_denied_client_permission(engine: AuthorizationService) -> None:
    guest = Principal(user_id=1, role=Role.GUEST)
    assert engine.authorize(guest, Permission.VIEW_INVESTMENT) is Decision.DENY
    assert engine.authorize(guest, Permission.REQUEST_CLIENT_ACCOUNT) is Decision.ALLOW


def test_explicit_grant_extends_role(engine: AuthorizationService) -> None:
    guest = Principal(user_id=1, role=Role.GUEST, explicit_grants=frozenset({Permission.VIEW_INVESTMENT}))
    assert engine.is_allowed(guest, Permission.VIEW_INVESTMENT)
    assert Permission.VIEW_INVESTMENT in engine.effective_permissions(guest)


def test_has_any_and_has_all(engine: AuthorizationService) -> None:
    client = Principal(user_id=1, role=Role.CLIENT)
    assert engine.has_any(client, [Permission.DELETE_USER, Permission.VIEW_INVESTMENT])
    assert not engine.has_any(client, [Permission.DELETE_USER])
    assert engine.has_all(client, [Permission.VIEW_INVESTMENT, Permission.MESSAGE_PARTNER])
    assert not engine.has_all(client, [Permission.VIEW_INVESTMENT, Permission.DELETE_USER])


def test_empty_permission_lists_are_denied(engine: AuthorizationService) -> None:
    admin = Principal(user_id=1, role=Role.ADMIN)
    assert engine.has_any(admin, []) is False
    assert engine.has_all(admin, []) is False


def test_require_raises_security_error(engine: AuthorizationService) -> None:
    employee = Principal(user_id=7, role=Role.EMPLOYEE)
    engine.require(employee, Permission.REVIEW_UPGRADE_REQUESTS)

    with pytest.raises(SecurityError, match="DELETE_USER"):
        engine.require(employee, Permission.DELETE_USER)


def test_registry_is_injectable() -> None:
    """A substituted table drives the decisions."""
    registry = PermissionRegistry({role: frozenset() for role in Role})
    engine = AuthorizationService(registry)
    admin = Principal(user_id=1, role=Role.ADMIN)
    assert engine.authorize(admin, Permission.VIEW_ACCOUNT) is Decision.DENY
