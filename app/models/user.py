"""
User account model and the role enumeration that drives access control.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


class Role(str, Enum):
    """
    Account role.

    Roles are not ordered by privilege; each one has its own default
    permission set in the permission registry.
    """

    GUEST = "GUEST"
    CLIENT = "CLIENT"
    EMPLOYEE = "EMPLOYEE"
    ADMIN = "ADMIN"

    @property
    def description(self) -> str:
        return _ROLE_DESCRIPTIONS[self]

    @property
    def can_review_upgrades(self) -> bool:
        """Employees and admins review guest upgrade requests."""
        return self in (Role.EMPLOYEE, Role.ADMIN)

    @classmethod
    def default(cls) -> "Role":
        """Role assigned on self-registration."""
        return cls.GUEST


_ROLE_DESCRIPTIONS = {
    Role.GUEST: "Guest user with limited access, can request account upgrade",
    Role.CLIENT: "Client user who can view their investments and account details",
    Role.EMPLOYEE: "Employee who can manage clients and create investments",
    Role.ADMIN: "Administrator with full system access and user management capabilities",
}


class User(SQLModel, table=True):
    """
    User account.

    Attributes:
        id: Primary key, assigned at creation
        email: Unique, lower-cased email address (used for login)
        hashed_password: Salted password hash; plaintext is never stored
        first_name: Given name
        last_name: Family name
        phone_number: Optional contact number
        address: Optional postal address
        role: Current role; always matches the attached role profile
        is_active: Whether the account may sign in
        created_at: Timestamp of account creation
        updated_at: Timestamp of last update
        last_login_at: Timestamp of last successful login
    """

    __tablename__ = "users"  # type: ignore

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=254)
    hashed_password: str
    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    phone_number: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = Field(default=None, max_length=500)
    role: Role = Field(default=Role.GUEST)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_login_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)
