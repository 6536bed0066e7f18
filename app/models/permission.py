"""
Permission registry enumeration and explicit per-account grants.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class Permission(str, Enum):
    """Closed set of capability tokens."""

    # Any account
    VIEW_ACCOUNT = "VIEW_ACCOUNT"
    EDIT_MY_DETAILS = "EDIT_MY_DETAILS"
    UPDATE_MY_PASSWORD = "UPDATE_MY_PASSWORD"
    CREATE_USER = "CREATE_USER"

    # Administration
    VIEW_ACCOUNTS = "VIEW_ACCOUNTS"
    EDIT_USER = "EDIT_USER"
    DELETE_USER = "DELETE_USER"
    EDIT_EMPLOYEE = "EDIT_EMPLOYEE"
    CREATE_EMPLOYEE = "CREATE_EMPLOYEE"
    UPDATE_OTHER_PASSWORD = "UPDATE_OTHER_PASSWORD"
    MANAGE_PERMISSIONS = "MANAGE_PERMISSIONS"

    # Employee
    CREATE_CLIENT = "CREATE_CLIENT"
    EDIT_CLIENT = "EDIT_CLIENT"
    VIEW_CLIENT = "VIEW_CLIENT"
    VIEW_CLIENTS = "VIEW_CLIENTS"
    ASSIGN_CLIENT = "ASSIGN_CLIENT"
    REVIEW_UPGRADE_REQUESTS = "REVIEW_UPGRADE_REQUESTS"
    CREATE_INVESTMENT = "CREATE_INVESTMENT"
    EDIT_INVESTMENT = "EDIT_INVESTMENT"
    VIEW_EMPLOYEES = "VIEW_EMPLOYEES"
    VIEW_EMPLOYEE = "VIEW_EMPLOYEE"

    # Client
    VIEW_INVESTMENT = "VIEW_INVESTMENT"
    MESSAGE_PARTNER = "MESSAGE_PARTNER"

    # Guest
    REQUEST_CLIENT_ACCOUNT = "REQUEST_CLIENT_ACCOUNT"

    @property
    def description(self) -> str:
        return PERMISSION_DESCRIPTIONS[self]


PERMISSION_DESCRIPTIONS: dict[Permission, str] = {
    Permission.VIEW_ACCOUNT: "View the details of your own account.",
    Permission.EDIT_MY_DETAILS: "Edit the details of your own account.",
    Permission.UPDATE_MY_PASSWORD: "Update the password of your own account.",
    Permission.CREATE_USER: "Create a new user account.",
    Permission.VIEW_ACCOUNTS: "View all user accounts and their details.",
    Permission.EDIT_USER: "Edit a specific user account, including role and activation.",
    Permission.DELETE_USER: "Remove a user account from the system.",
    Permission.EDIT_EMPLOYEE: "Edit the details of an employee account.",
    Permission.CREATE_EMPLOYEE: "Create accounts in a privileged role.",
    Permission.UPDATE_OTHER_PASSWORD: "Reset the password of another account.",
    Permission.MANAGE_PERMISSIONS: "Grant and revoke explicit permissions.",
    Permission.CREATE_CLIENT: "Create a client account by upgrading an existing guest.",
    Permission.EDIT_CLIENT: "Edit the details of an existing client account.",
    Permission.VIEW_CLIENT: "View the details of a specific client account.",
    Permission.VIEW_CLIENTS: "List all client accounts.",
    Permission.ASSIGN_CLIENT: "Assign a client to an employee partner.",
    Permission.REVIEW_UPGRADE_REQUESTS: "Approve or reject guest upgrade requests.",
    Permission.CREATE_INVESTMENT: "Create a new investment for a client.",
    Permission.EDIT_INVESTMENT: "Edit an existing investment for a client.",
    Permission.VIEW_EMPLOYEES: "List all employee accounts.",
    Permission.VIEW_EMPLOYEE: "View a specific employee account.",
    Permission.VIEW_INVESTMENT: "View an investment belonging to this client.",
    Permission.MESSAGE_PARTNER: "Message the assigned employee partner.",
    Permission.REQUEST_CLIENT_ACCOUNT: "Request an upgrade to client status.",
}


class PermissionAssignment(SQLModel, table=True):
    """
    Explicit permission grant on top of a user's role defaults.
    One row per (user, permission) pair.
    """

    __tablename__ = "permission_assignments"  # type: ignore
    __table_args__ = (UniqueConstraint("user_id", "permission", name="uq_permission_assignment"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    permission: Permission
    granted_by_id: Optional[int] = None
    granted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
