"""
Role -> profile factory table.

Adding a role means adding a profile model and one entry to
``PROFILE_FACTORIES``; no call site switches on the role.
"""

from dataclasses import dataclass
from typing import Optional, Type, Union
from uuid import uuid4

from sqlmodel import Session, select

from app.models.profiles import AdminProfile, ClientProfile, EmployeeProfile, GuestProfile
from app.models.user import Role, User

RoleProfile = Union[GuestProfile, ClientProfile, EmployeeProfile, AdminProfile]


@dataclass(frozen=True)
class ProfileFactory:
    """
    Creates, finds and deletes the profile record paired with one role.

    Attributes:
        model: Profile table model
        code_field: Name of the human-readable identifier column
        prefix: Prefix for generated identifiers (e.g. ``CL``)
    """

    model: Type[RoleProfile]
    code_field: str
    prefix: str

    def generate_code(self) -> str:
        """Role prefix followed by eight upper-case hex characters."""
        return f"{self.prefix}{uuid4().hex[:8].upper()}"

    def create(self, session: Session, user: User) -> RoleProfile:
        profile = self.model(user_id=user.id, **{self.code_field: self.generate_code()})
        session.add(profile)
        return profile

    def find(self, session: Session, user: User) -> Optional[RoleProfile]:
        statement = select(self.model).where(self.model.user_id == user.id)
        return session.exec(statement).first()

    def delete(self, session: Session, profile: RoleProfile) -> None:
        session.delete(profile)

    def code_of(self, profile: RoleProfile) -> str:
        return getattr(profile, self.code_field)


PROFILE_FACTORIES: dict[Role, ProfileFactory] = {
    Role.GUEST: ProfileFactory(GuestProfile, "guest_code", "G"),
    Role.CLIENT: ProfileFactory(ClientProfile, "client_code", "CL"),
    Role.EMPLOYEE: ProfileFactory(EmployeeProfile, "employee_code", "EMP"),
    Role.ADMIN: ProfileFactory(AdminProfile, "admin_code", "ADM"),
}


def factory_for(role: Role) -> ProfileFactory:
    """
    Profile factory for a role.

    Raises:
        LookupError: If the role has no registered factory
    """
    try:
        return PROFILE_FACTORIES[role]
    except KeyError:
        raise LookupError(f"No profile factory registered for role {role!r}") from None


def find_all_profiles(session: Session, user: User) -> list[RoleProfile]:
    """Every profile attached to a user, across all profile tables."""
    profiles: list[RoleProfile] = []
    for factory in PROFILE_FACTORIES.values():
        profile = factory.find(session, user)
        if profile is not None:
            profiles.append(profile)
    return profiles
