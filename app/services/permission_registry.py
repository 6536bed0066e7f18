"""
Static role -> permission mapping.

The table is loaded once at import and never mutated. Components receive a
``PermissionRegistry`` instance so tests can substitute a smaller table.
"""

from typing import Iterable, Mapping, Union

from app.models.permission import Permission
from app.models.user import Role

BASE_PERMISSIONS: frozenset[Permission] = frozenset({
    Permission.VIEW_ACCOUNT,
    Permission.EDIT_MY_DETAILS,
    Permission.UPDATE_MY_PASSWORD,
    Permission.CREATE_USER,
})

DEFAULT_ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.GUEST: BASE_PERMISSIONS | {
        Permission.REQUEST_CLIENT_ACCOUNT,
    },
    Role.CLIENT: BASE_PERMISSIONS | {
        Permission.VIEW_INVESTMENT,
        Permission.MESSAGE_PARTNER,
    },
    Role.EMPLOYEE: BASE_PERMISSIONS | {
        Permission.CREATE_INVESTMENT,
        Permission.EDIT_INVESTMENT,
        Permission.CREATE_CLIENT,
        Permission.EDIT_CLIENT,
        Permission.VIEW_CLIENT,
        Permission.VIEW_CLIENTS,
        Permission.ASSIGN_CLIENT,
        Permission.VIEW_EMPLOYEE,
        Permission.VIEW_EMPLOYEES,
        Permission.REVIEW_UPGRADE_REQUESTS,
    },
    # Declared on its own, not derived from EMPLOYEE
    Role.ADMIN: frozenset(Permission),
}


class PermissionRegistry:
    """Lookup of default permissions per role over a closed permission set."""

    def __init__(
        self,
        table: Mapping[Role, Iterable[Permission]] = DEFAULT_ROLE_PERMISSIONS,
        permissions: Iterable[Permission] = Permission,
    ) -> None:
        self._permissions: frozenset[Permission] = frozenset(permissions)
        self._table: dict[Role, frozenset[Permission]] = {}
        for role, granted in table.items():
            granted = frozenset(granted)
            unknown = granted - self._permissions
            if unknown:
                names = ", ".join(sorted(p.value for p in unknown))
                raise ValueError(f"Role {role.value} references unregistered permissions: {names}")
            self._table[role] = granted

    def default_permissions(self, role: Role) -> frozenset[Permission]:
        """
        Default permissions for a role.

        Raises:
            LookupError: If the role has no entry in the table
        """
        try:
            return self._table[role]
        except KeyError:
            raise LookupError(f"No default permissions defined for role {role!r}") from None

    def exists(self, permission: Union[Permission, str]) -> bool:
        """Whether ``permission`` names a member of the registry."""
        if isinstance(permission, Permission):
            return permission in self._permissions
        try:
            return Permission(permission) in self._permissions
        except ValueError:
            return False

    def resolve(self, permission: Union[Permission, str]) -> Permission:
        """
        Turn a permission name into a registry member.

        Raises:
            LookupError: If the name is not registered
        """
        if not self.exists(permission):
            raise LookupError(f"Unknown permission: {permission}")
        return Permission(permission)

    def all_permissions(self) -> frozenset[Permission]:
        return self._permissions

    def roles(self) -> list[Role]:
        return list(self._table)


permission_registry = PermissionRegistry()
