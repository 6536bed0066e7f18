"""
Audit trail of authentication and authorization-relevant events.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


class AuditAction(str, Enum):
    REGISTER = "REGISTER"
    CREATE_USER = "CREATE_USER"
    LOGIN = "LOGIN"
    PASSWORD_CHANGE = "PASSWORD_CHANGE"
    PASSWORD_RESET = "PASSWORD_RESET"
    ROLE_CHANGE = "ROLE_CHANGE"
    ACTIVATE = "ACTIVATE"
    DEACTIVATE = "DEACTIVATE"
    DELETE_USER = "DELETE_USER"
    PERMISSION_GRANT = "PERMISSION_GRANT"
    PERMISSION_REVOKE = "PERMISSION_REVOKE"
    UPGRADE_SUBMIT = "UPGRADE_SUBMIT"
    UPGRADE_APPROVE = "UPGRADE_APPROVE"
    UPGRADE_REJECT = "UPGRADE_REJECT"
    AUTHORIZATION_DENIED = "AUTHORIZATION_DENIED"


class AuditOutcome(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class AuditEvent(SQLModel, table=True):
    """
    Single audit record.

    ``target_user_id`` is a plain column, not a foreign key, so that the
    trail survives deletion of the account it describes.
    """

    __tablename__ = "audit_events"  # type: ignore

    id: Optional[int] = Field(default=None, primary_key=True)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
    action: AuditAction
    outcome: AuditOutcome = Field(default=AuditOutcome.SUCCESS)
    actor_id: Optional[int] = Field(default=None, index=True)
    target_user_id: Optional[int] = Field(default=None, index=True)
    details: Optional[str] = Field(default=None, max_length=2000)
