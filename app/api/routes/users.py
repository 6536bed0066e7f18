"""
User routes for self-service and account administration.
Every route is gated by a permission, never by a role check.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import (
    SessionDep,
    enforce_permission,
    get_permission_service,
    get_user_service,
    require_permission,
)
from app.core.exceptions import SecurityError
from app.models.audit import AuditAction
from app.models.permission import Permission
from app.models.user import Role, User
from app.schemas.audit import AuditEventResponse
from app.schemas.permission import PermissionAssignmentResponse, PermissionGrant, PermissionsResponse
from app.schemas.user import (
    AdminUserCreate,
    PasswordReset,
    PasswordUpdate,
    RoleUpdate,
    UserDetailsUpdate,
    UserResponse,
)
from app.services.permission_service import PermissionService
from app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])

UserServiceDep = Annotated[UserService, Depends(get_user_service)]
PermissionServiceDep = Annotated[PermissionService, Depends(get_permission_service)]


def _permissions_response(permissions: PermissionService, user: User) -> PermissionsResponse:
    defaults = permissions.registry.default_permissions(user.role)
    explicit = permissions.explicit_grants(user)
    return PermissionsResponse(
        user_id=user.id,  # type: ignore[arg-type]
        role=user.role,
        role_defaults=sorted(defaults),
        explicit_grants=sorted(explicit),
        effective=sorted(defaults | explicit),
    )


# Self-service


@router.get("/me", response_model=UserResponse)
def get_current_user_profile(
    current_user: Annotated[User, Depends(require_permission(Permission.VIEW_ACCOUNT))],
) -> UserResponse:
    """
    Get current user's account.

    Args:
        current_user: Current authenticated user

    Returns:
        User data
    """
    return UserResponse.model_validate(current_user)


@router.patch("/me", response_model=UserResponse)
def update_my_details(
    details: UserDetailsUpdate,
    users: UserServiceDep,
    current_user: Annotated[User, Depends(require_permission(Permission.EDIT_MY_DETAILS))],
) -> UserResponse:
    """Update the caller's personal details."""
    user = users.update_details(current_user, **details.model_dump())
    return UserResponse.model_validate(user)


@router.post("/me/password", status_code=status.HTTP_204_NO_CONTENT)
def update_my_password(
    passwords: PasswordUpdate,
    users: UserServiceDep,
    current_user: Annotated[User, Depends(require_permission(Permission.UPDATE_MY_PASSWORD))],
) -> None:
    """
    Change the caller's password.

    Raises:
        AuthenticationError: Current password is wrong (401)
        ValidationError: Confirmation mismatch or policy violations (400)
    """
    users.update_password(
        current_user,
        current_password=passwords.current_password,
        new_password=passwords.new_password,
        confirm_password=passwords.confirm_password,
    )


@router.get("/me/permissions", response_model=PermissionsResponse)
def get_my_permissions(
    permissions: PermissionServiceDep,
    current_user: Annotated[User, Depends(require_permission(Permission.VIEW_ACCOUNT))],
) -> PermissionsResponse:
    """Role defaults, explicit grants and the effective set for the caller."""
    return _permissions_response(permissions, current_user)


# Administration


@router.get("/", response_model=List[UserResponse])
def list_users(
    users: UserServiceDep,
    _: Annotated[User, Depends(require_permission(Permission.VIEW_ACCOUNTS))],
    role: Optional[Role] = None,
    is_active: Optional[bool] = None,
    q: Optional[str] = Query(default=None, max_length=100),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> List[UserResponse]:
    """List accounts with optional filtering."""
    found = users.list_users(role=role, is_active=is_active, query=q, limit=limit, offset=offset)
    return [UserResponse.model_validate(u) for u in found]


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_in: AdminUserCreate,
    users: UserServiceDep,
    session: SessionDep,
    current_user: Annotated[User, Depends(require_permission(Permission.CREATE_USER))],
) -> UserResponse:
    """
    Create an account in any role.

    Guest accounts need CREATE_USER; any other role also needs CREATE_EMPLOYEE.
    """
    if user_in.role != Role.GUEST:
        enforce_permission(session, current_user, Permission.CREATE_EMPLOYEE)

    user = users.create_user(
        email=user_in.email,
        first_name=user_in.first_name,
        last_name=user_in.last_name,
        password=user_in.password,
        role=user_in.role,
        created_by=current_user,
    )
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    users: UserServiceDep,
    _: Annotated[User, Depends(require_permission(Permission.VIEW_ACCOUNTS))],
) -> UserResponse:
    return UserResponse.model_validate(users.get(user_id))


@router.put("/{user_id}/role", response_model=UserResponse)
def change_user_role(
    user_id: int,
    role_in: RoleUpdate,
    users: UserServiceDep,
    current_user: Annotated[User, Depends(require_permission(Permission.EDIT_USER))],
) -> UserResponse:
    """
    Move a user to another role. The profile is swapped and explicit grants
    are cleared in the same transaction.
    """
    user = users.get(user_id)
    if user.id == current_user.id:
        raise SecurityError("You cannot change your own role")
    return UserResponse.model_validate(users.change_role(user, role_in.role, actor=current_user))


@router.post("/{user_id}/activate", response_model=UserResponse)
def activate_user(
    user_id: int,
    users: UserServiceDep,
    current_user: Annotated[User, Depends(require_permission(Permission.EDIT_USER))],
) -> UserResponse:
    return UserResponse.model_validate(users.activate(users.get(user_id), actor=current_user))


@router.post("/{user_id}/deactivate", response_model=UserResponse)
def deactivate_user(
    user_id: int,
    users: UserServiceDep,
    current_user: Annotated[User, Depends(require_permission(Permission.EDIT_USER))],
) -> UserResponse:
    user = users.get(user_id)
    if user.id == current_user.id:
        raise SecurityError("You cannot deactivate your own account")
    return UserResponse.model_validate(users.deactivate(user, actor=current_user))


@router.post("/{user_id}/password", status_code=status.HTTP_204_NO_CONTENT)
def reset_user_password(
    user_id: int,
    reset: PasswordReset,
    users: UserServiceDep,
    current_user: Annotated[User, Depends(require_permission(Permission.UPDATE_OTHER_PASSWORD))],
) -> None:
    """Administrative password reset."""
    users.reset_password(users.get(user_id), reset.new_password, actor=current_user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    users: UserServiceDep,
    current_user: Annotated[User, Depends(require_permission(Permission.DELETE_USER))],
) -> None:
    user = users.get(user_id)
    if user.id == current_user.id:
        raise SecurityError("You cannot delete your own account")
    users.delete(user, actor=current_user)


# Permissions


@router.get("/{user_id}/permissions", response_model=PermissionsResponse)
def get_user_permissions(
    user_id: int,
    users: UserServiceDep,
    permissions: PermissionServiceDep,
    _: Annotated[User, Depends(require_permission(Permission.VIEW_ACCOUNTS))],
) -> PermissionsResponse:
    return _permissions_response(permissions, users.get(user_id))


@router.post(
    "/{user_id}/permissions",
    response_model=PermissionAssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
def grant_permission(
    user_id: int,
    grant: PermissionGrant,
    users: UserServiceDep,
    permissions: PermissionServiceDep,
    current_user: Annotated[User, Depends(require_permission(Permission.MANAGE_PERMISSIONS))],
) -> PermissionAssignmentResponse:
    """
    Grant an explicit permission.

    Raises:
        EntityNotFoundError: Unknown permission (404)
        ConflictError: Already granted explicitly (409)
    """
    assignment = permissions.grant(users.get(user_id), grant.permission, granted_by=current_user)
    return PermissionAssignmentResponse.model_validate(assignment)


@router.delete("/{user_id}/permissions/{permission}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_permission(
    user_id: int,
    permission: str,
    users: UserServiceDep,
    permissions: PermissionServiceDep,
    current_user: Annotated[User, Depends(require_permission(Permission.MANAGE_PERMISSIONS))],
) -> None:
    permissions.revoke(users.get(user_id), permission, revoked_by=current_user)


# Audit


@router.get("/{user_id}/audit", response_model=List[AuditEventResponse])
def get_user_audit_trail(
    user_id: int,
    users: UserServiceDep,
    _: Annotated[User, Depends(require_permission(Permission.VIEW_ACCOUNTS))],
    action: Optional[AuditAction] = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> List[AuditEventResponse]:
    """Audit events about one account, newest first."""
    user = users.get(user_id)
    events = users.audit.list_events(target_user_id=user.id, action=action, limit=limit, offset=offset)
    return [AuditEventResponse.model_validate(e) for e in events]
