"""
API dependencies for FastAPI dependency injection.
Provides reusable dependencies for authentication and authorization.
"""

from typing import Annotated, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from app.core.config import settings
from app.core.exceptions import SecurityError
from app.core.logging import get_logger
from app.core.security import decode_access_token
from app.db.session import get_session
from app.models.audit import AuditAction
from app.models.permission import Permission
from app.models.user import User
from app.services.audit_service import AuditService
from app.services.authorization import authorization_service
from app.services.permission_service import PermissionService
from app.services.upgrade_service import UpgradeService
from app.services.user_service import UserService

logger = get_logger(__name__)

# OAuth2 scheme for token authentication
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_PREFIX}/auth/login")

SessionDep = Annotated[Session, Depends(get_session)]


def get_user_service(session: SessionDep) -> UserService:
    return UserService(session)


def get_upgrade_service(session: SessionDep) -> UpgradeService:
    return UpgradeService(session)


def get_permission_service(session: SessionDep) -> PermissionService:
    return PermissionService(session)


def get_current_user(
    session: SessionDep,
    token: Annotated[str, Depends(oauth2_scheme)],
) -> User:
    """
    Dependency to get the current authenticated user from JWT token.

    Args:
        session: Database session
        token: JWT access token

    Returns:
        Current user

    Raises:
        HTTPException: If token is invalid or user not found
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = decode_access_token(token)
    if user_id is None:
        logger.warning("JWT validation failed")
        raise credentials_exception

    user = session.get(User, user_id)
    if user is None:
        logger.warning(f"User {user_id} not found")
        raise credentials_exception

    return user


def get_current_active_user(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """
    Dependency to ensure current user is active.

    Args:
        current_user: Current authenticated user

    Returns:
        Active user

    Raises:
        HTTPException: If user is inactive
    """
    if not current_user.is_active:
        logger.warning(f"Inactive user {current_user.id} attempted access")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")
    return current_user


CurrentUser = Annotated[User, Depends(get_current_active_user)]


def enforce_permission(session: Session, user: User, permission: Permission) -> None:
    """
    Check ``permission`` for ``user``, recording an AUTHORIZATION_DENIED
    audit event on denial.

    Raises:
        SecurityError: If the decision is DENY
    """
    principal = PermissionService(session).principal_for(user)
    try:
        authorization_service.require(principal, permission)
    except SecurityError:
        AuditService(session).record_failure(
            AuditAction.AUTHORIZATION_DENIED,
            actor_id=user.id,
            details=permission.value,
        )
        raise


def require_permission(permission: Permission) -> Callable[..., User]:
    """
    Build a dependency that admits only callers holding ``permission``.

    The caller's role and explicit grants are read on every request, so a
    role change or revocation takes effect on the next call.

    Usage:
        @router.get("/", dependencies=[Depends(require_permission(Permission.VIEW_ACCOUNTS))])

    Raises:
        SecurityError: If the decision is DENY (rendered as 403)
    """

    def dependency(session: SessionDep, current_user: CurrentUser) -> User:
        enforce_permission(session, current_user, permission)
        return current_user

    dependency.__name__ = f"require_{permission.value.lower()}"
    return dependency
