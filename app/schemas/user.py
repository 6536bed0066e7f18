"""
User schemas for API request/response validation.
Separates internal models from API contracts using Pydantic.

Email and password fields are plain strings here: the account service
applies the credential policy and reports every violation at once.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.models.user import Role


class UserBase(BaseModel):
    """Base user schema with common fields."""

    email: str
    first_name: str
    last_name: str


class UserCreate(UserBase):
    """Schema for self-registration. New accounts are always guests."""

    password: str


class AdminUserCreate(UserCreate):
    """Schema for administrative account creation."""

    role: Role = Role.GUEST


class UserLogin(BaseModel):
    """Schema for user login."""

    email: str
    password: str


class UserDetailsUpdate(BaseModel):
    """Schema for updating personal details. Omitted fields are unchanged."""

    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone_number: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = Field(default=None, max_length=500)
    interest_area: Optional[str] = Field(default=None, max_length=200)
    referral_source: Optional[str] = Field(default=None, max_length=100)


class PasswordUpdate(BaseModel):
    """Schema for changing one's own password."""

    current_password: str
    new_password: str
    confirm_password: str


class PasswordReset(BaseModel):
    """Schema for an administrative password reset."""

    new_password: str


class RoleUpdate(BaseModel):
    """Schema for moving a user to another role."""

    role: Role


class UserResponse(UserBase):
    """
    Schema for user data in API responses.
    Excludes sensitive information like hashed_password.
    """

    id: int
    full_name: str
    phone_number: Optional[str] = None
    address: Optional[str] = None
    role: Role
    is_active: bool
    created_at: datetime
    updated_at: datetime
    last_login_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
