"""
User service layer implementing the account lifecycle.
Separates business logic from API routes and database operations.

Every operation that touches more than one record runs inside a
``UnitOfWork`` so it commits or rolls back as a whole.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlmodel import Session, col, or_, select

from app.core.exceptions import AuthenticationError, EntityNotFoundError, ValidationError
from app.core.logging import get_logger
from app.core.security import get_password_hash, verify_password
from app.db.unit_of_work import UnitOfWork
from app.models.audit import AuditAction
from app.models.profiles import ClientProfile
from app.models.upgrade_request import UpgradeRequest, UpgradeRequestStatus
from app.models.user import Role, User
from app.services.audit_service import AuditService
from app.services.permission_registry import PermissionRegistry, permission_registry
from app.services.permission_service import PermissionService
from app.services.profiles import RoleProfile, factory_for, find_all_profiles
from app.services.validators import (
    EmailValidator,
    PasswordValidator,
    get_email_validator,
    get_password_validator,
)

logger = get_logger(__name__)


class UserService:
    """Service class for user account operations."""

    def __init__(
        self,
        session: Session,
        password_validator: Optional[PasswordValidator] = None,
        email_validator: Optional[EmailValidator] = None,
        registry: PermissionRegistry = permission_registry,
    ):
        self.session = session
        self.password_validator = password_validator or get_password_validator()
        self.email_validator = email_validator or get_email_validator()
        self.permissions = PermissionService(session, registry)
        self.audit = AuditService(session)

    # Lookups

    def get_by_email(self, email: str) -> Optional[User]:
        """
        Retrieve a user by email address (case-insensitive).

        Args:
            email: Email address to search for

        Returns:
            User if found, None otherwise
        """
        statement = select(User).where(User.email == email.strip().lower())
        return self.session.exec(statement).first()

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def get(self, user_id: int) -> User:
        """
        Retrieve a user by ID.

        Raises:
            EntityNotFoundError: If no user has this ID
        """
        user = self.get_by_id(user_id)
        if user is None:
            raise EntityNotFoundError("User", user_id)
        return user

    def list_users(
        self,
        role: Optional[Role] = None,
        is_active: Optional[bool] = None,
        query: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[User]:
        """
        Get users with optional filtering.

        Args:
            role: Filter by role
            is_active: Filter by activation state
            query: Case-insensitive substring of email, first or last name
            limit: Maximum number of users to return
            offset: Number of users to skip

        Returns:
            List of users ordered by ID
        """
        statement = select(User)

        if role is not None:
            statement = statement.where(User.role == role)

        if is_active is not None:
            statement = statement.where(User.is_active == is_active)

        if query:
            pattern = f"%{query.strip().lower()}%"
            statement = statement.where(
                or_(
                    col(User.email).ilike(pattern),
                    col(User.first_name).ilike(pattern),
                    col(User.last_name).ilike(pattern),
                )
            )

        statement = statement.order_by(User.id).limit(limit).offset(offset)
        return list(self.session.exec(statement))

    # Creation

    def register(self, email: str, first_name: str, last_name: str, password: str) -> User:
        """
        Self-registration. New accounts are always active guests.

        Raises:
            ValidationError: Email or password policy violations (all of them),
                or the email is already registered
        """
        user = self._create(email, first_name, last_name, password, Role.default(), actor=None)
        logger.info(f"New user registered: {user.email} (ID: {user.id})")
        return user

    def create_user(
        self,
        email: str,
        first_name: str,
        last_name: str,
        password: str,
        role: Role = Role.GUEST,
        created_by: Optional[User] = None,
    ) -> User:
        """
        Administrative account creation in any role.

        Raises:
            ValidationError: Same rules as ``register``
        """
        user = self._create(email, first_name, last_name, password, role, actor=created_by)
        logger.info(f"Created {role.value} account {user.email} (ID: {user.id})")
        return user

    def _create(
        self,
        email: str,
        first_name: str,
        last_name: str,
        password: str,
        role: Role,
        actor: Optional[User],
    ) -> User:
        errors = self.email_validator.validate(email)
        if not first_name or not first_name.strip():
            errors.append("First name is required")
        if not last_name or not last_name.strip():
            errors.append("Last name is required")
        errors.extend(self.password_validator.validate(password))
        if errors:
            raise ValidationError.from_violations(errors)

        normalized_email = email.strip().lower()
        if self.get_by_email(normalized_email) is not None:
            logger.warning(f"Registration attempt with existing email: {normalized_email}")
            raise ValidationError("Email already registered")

        profile_factory = factory_for(role)

        with UnitOfWork(self.session) as uow:
            user = User(
                email=normalized_email,
                hashed_password=get_password_hash(password),
                first_name=first_name.strip(),
                last_name=last_name.strip(),
                role=role,
                is_active=True,
            )
            self.session.add(user)
            uow.flush()
            profile_factory.create(self.session, user)
            self.audit.record(
                AuditAction.REGISTER if actor is None else AuditAction.CREATE_USER,
                actor_id=actor.id if actor else user.id,
                target_user_id=user.id,
                details=role.value,
            )

        self.session.refresh(user)
        return user

    # Authentication

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate a user by email and password.

        Args:
            email: User's email
            password: Plain text password

        Returns:
            User if authentication successful, None otherwise
        """
        user = self.get_by_email(email)
        if user is None or not verify_password(password, user.hashed_password):
            self.audit.record_failure(
                AuditAction.LOGIN,
                target_user_id=user.id if user else None,
                details="invalid credentials",
            )
            return None
        if not user.is_active:
            self.audit.record_failure(
                AuditAction.LOGIN, actor_id=user.id, target_user_id=user.id, details="inactive account"
            )
            return None

        with UnitOfWork(self.session):
            user.last_login_at = datetime.now(timezone.utc)
            self.session.add(user)
            self.audit.record(AuditAction.LOGIN, actor_id=user.id, target_user_id=user.id)

        self.session.refresh(user)
        return user

    # Profile & credentials

    def update_details(
        self,
        user: User,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        phone_number: Optional[str] = None,
        address: Optional[str] = None,
        interest_area: Optional[str] = None,
        referral_source: Optional[str] = None,
    ) -> User:
        """
        Update personal details. ``None`` leaves a field unchanged.

        ``interest_area`` and ``referral_source`` live on the guest profile
        and are accepted for guests only.
        """
        errors: List[str] = []
        if first_name is not None and not first_name.strip():
            errors.append("First name cannot be blank")
        if last_name is not None and not last_name.strip():
            errors.append("Last name cannot be blank")
        guest_fields = interest_area is not None or referral_source is not None
        if guest_fields and user.role != Role.GUEST:
            errors.append("Interest area and referral source apply to guest accounts only")
        if errors:
            raise ValidationError.from_violations(errors)

        with UnitOfWork(self.session):
            if first_name is not None:
                user.first_name = first_name.strip()
            if last_name is not None:
                user.last_name = last_name.strip()
            if phone_number is not None:
                user.phone_number = phone_number.strip() or None
            if address is not None:
                user.address = address.strip() or None
            if guest_fields:
                profile = self.get_profile(user)
                if interest_area is not None:
                    profile.interest_area = interest_area.strip() or None  # type: ignore[union-attr]
                if referral_source is not None:
                    profile.referral_source = referral_source.strip() or None  # type: ignore[union-attr]
                self.session.add(profile)
            user.touch()
            self.session.add(user)

        self.session.refresh(user)
        return user

    def update_password(
        self,
        user: User,
        current_password: str,
        new_password: str,
        confirm_password: str,
    ) -> None:
        """
        Change the user's own password.

        Raises:
            AuthenticationError: If ``current_password`` does not match
            ValidationError: If confirmation differs or the policy rejects it
        """
        if not verify_password(current_password, user.hashed_password):
            self.audit.record_failure(
                AuditAction.PASSWORD_CHANGE,
                actor_id=user.id,
                target_user_id=user.id,
                details="current password mismatch",
            )
            raise AuthenticationError("Current password is incorrect")

        errors: List[str] = []
        if new_password != confirm_password:
            errors.append("New password and confirmation do not match")
        errors.extend(self.password_validator.validate(new_password))
        if errors:
            raise ValidationError.from_violations(errors)

        self._store_password(user, new_password, AuditAction.PASSWORD_CHANGE, actor=user)
        logger.info(f"Password updated for user {user.id}")

    def reset_password(self, user: User, new_password: str, actor: User) -> None:
        """
        Set another account's password (administrative reset).

        Raises:
            ValidationError: If the policy rejects the password
        """
        errors = self.password_validator.validate(new_password)
        if errors:
            raise ValidationError.from_violations(errors)

        self._store_password(user, new_password, AuditAction.PASSWORD_RESET, actor=actor)
        logger.info(f"Password for user {user.id} reset by user {actor.id}")

    def _store_password(self, user: User, new_password: str, action: AuditAction, actor: User) -> None:
        with UnitOfWork(self.session):
            user.hashed_password = get_password_hash(new_password)
            user.touch()
            self.session.add(user)
            self.audit.record(action, actor_id=actor.id, target_user_id=user.id)

    # Role transitions

    def change_role(self, user: User, new_role: Role, actor: Optional[User] = None) -> User:
        """
        Move an account to another role.

        The old profile is deleted, explicit grants are cleared, the role is
        updated and a new profile is created, all in one unit of work. If any
        step fails the account is left exactly as it was.

        Raises:
            ValidationError: If ``new_role`` is the current role
        """
        if new_role == user.role:
            raise ValidationError(f"User already has role: {new_role.value}")

        old_role = user.role
        old_factory = factory_for(old_role)
        new_factory = factory_for(new_role)

        with UnitOfWork(self.session) as uow:
            old_profile = old_factory.find(self.session, user)
            if old_profile is not None:
                old_factory.delete(self.session, old_profile)
            self.permissions.clear(user)
            uow.flush()
            if old_role == Role.GUEST:
                self._withdraw_pending_upgrades(user, actor, f"Account moved to role {new_role.value}")

            user.role = new_role
            user.touch()
            self.session.add(user)
            new_factory.create(self.session, user)

            self.audit.record(
                AuditAction.ROLE_CHANGE,
                actor_id=actor.id if actor else None,
                target_user_id=user.id,
                details=f"{old_role.value} -> {new_role.value}",
            )

        self.session.refresh(user)
        logger.info(f"Updated role for user {user.id}: {old_role.value} -> {new_role.value}")
        return user

    # Activation

    def activate(self, user: User, actor: Optional[User] = None) -> User:
        """
        Raises:
            ValidationError: If the user is already active
        """
        if user.is_active:
            raise ValidationError("User is already active")
        return self._set_active(user, True, AuditAction.ACTIVATE, actor)

    def deactivate(self, user: User, actor: Optional[User] = None) -> User:
        """
        Raises:
            ValidationError: If the user is already inactive
        """
        if not user.is_active:
            raise ValidationError("User is already inactive")
        return self._set_active(user, False, AuditAction.DEACTIVATE, actor)

    def _set_active(self, user: User, active: bool, action: AuditAction, actor: Optional[User]) -> User:
        with UnitOfWork(self.session):
            user.is_active = active
            user.touch()
            self.session.add(user)
            self.audit.record(action, actor_id=actor.id if actor else None, target_user_id=user.id)

        self.session.refresh(user)
        logger.info(f"{'Activated' if active else 'Deactivated'} user {user.id}")
        return user

    # Deletion

    def delete(self, user: User, actor: Optional[User] = None) -> None:
        """
        Permanently remove an account with its profile and explicit grants.
        Upgrade requests and audit events referencing it are kept; a pending
        request is closed as rejected.
        """
        user_id = user.id
        email = user.email

        with UnitOfWork(self.session) as uow:
            for profile in find_all_profiles(self.session, user):
                self.session.delete(profile)
            self.permissions.clear(user)
            self._withdraw_pending_upgrades(user, actor, "Account deleted")
            assigned = select(ClientProfile).where(ClientProfile.assigned_employee_id == user_id)
            for client_profile in list(self.session.exec(assigned)):
                client_profile.assigned_employee_id = None
                self.session.add(client_profile)
            uow.flush()
            self.session.delete(user)
            self.audit.record(
                AuditAction.DELETE_USER,
                actor_id=actor.id if actor else None,
                target_user_id=user_id,
                details=email,
            )

        logger.info(f"Deleted user {user_id}")

    def _withdraw_pending_upgrades(self, user: User, actor: Optional[User], reason: str) -> None:
        """Close the user's pending upgrade request, if any, as rejected."""
        pending = select(UpgradeRequest).where(
            UpgradeRequest.user_id == user.id,
            UpgradeRequest.status == UpgradeRequestStatus.PENDING,
        )
        for request in list(self.session.exec(pending)):
            request.status = UpgradeRequestStatus.REJECTED
            request.reviewer_id = actor.id if actor else None
            request.reviewed_at = datetime.now(timezone.utc)
            request.rejection_reason = reason
            self.session.add(request)
            self.audit.record(
                AuditAction.UPGRADE_REJECT,
                actor_id=actor.id if actor else None,
                target_user_id=user.id,
                details=f"request {request.id}: {reason}",
            )

    # Profiles

    def get_profile(self, user: User) -> Optional[RoleProfile]:
        """The profile record matching the user's current role."""
        return factory_for(user.role).find(self.session, user)

    def check_profile_consistency(self, user: User) -> bool:
        """True when exactly one profile exists and its type matches the role."""
        profiles = find_all_profiles(self.session, user)
        return len(profiles) == 1 and isinstance(profiles[0], factory_for(user.role).model)

    def profile_code(self, user: User) -> Optional[str]:
        profile = self.get_profile(user)
        if profile is None:
            return None
        return factory_for(user.role).code_of(profile)
