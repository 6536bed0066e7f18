"""
Role-specific profile records.

Every user has exactly one of these, and its type matches ``User.role``.
The profile ``*_code`` is a human-readable identifier: a role prefix
followed by eight upper-case hex characters.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


def _now() -> datetime:
    return datetime.now(timezone.utc)


class GuestProfile(SQLModel, table=True):
    __tablename__ = "guest_profiles"  # type: ignore

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)
    guest_code: str = Field(unique=True, max_length=20)
    registration_date: datetime = Field(default_factory=_now)
    interest_area: Optional[str] = Field(default=None, max_length=200)
    referral_source: Optional[str] = Field(default=None, max_length=100)


class ClientProfile(SQLModel, table=True):
    __tablename__ = "client_profiles"  # type: ignore

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)
    client_code: str = Field(unique=True, max_length=20)
    registration_date: datetime = Field(default_factory=_now)
    assigned_employee_id: Optional[int] = Field(default=None, index=True)


class EmployeeProfile(SQLModel, table=True):
    __tablename__ = "employee_profiles"  # type: ignore

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)
    employee_code: str = Field(unique=True, max_length=20)
    department: str = Field(default="GENERAL", max_length=100)
    location_id: str = Field(default="HOMEBASE", max_length=50)
    hire_date: datetime = Field(default_factory=_now)


class AdminProfile(SQLModel, table=True):
    __tablename__ = "admin_profiles"  # type: ignore

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)
    admin_code: str = Field(unique=True, max_length=20)
    super_admin: bool = Field(default=False)
    system_access_level: str = Field(default="FULL", max_length=50)  # FULL, LIMITED, READONLY
    department: Optional[str] = Field(default=None, max_length=100)
