"""
Guest-to-client upgrade request model.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import Index, text
from sqlmodel import Field, SQLModel


class UpgradeRequestStatus(str, Enum):
    """
    Upgrade request status.

    PENDING -> APPROVED | REJECTED. Both outcomes are terminal.
    """

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    @property
    def is_terminal(self) -> bool:
        return self is not UpgradeRequestStatus.PENDING


class RiskTolerance(str, Enum):
    """Applicant's declared risk appetite."""

    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    AGGRESSIVE = "AGGRESSIVE"


class UpgradeRequest(SQLModel, table=True):
    """
    A guest's petition to become a client. Retained as an audit record;
    never deleted.
    """

    __tablename__ = "upgrade_requests"  # type: ignore
    # At most one pending request per guest, enforced by storage
    __table_args__ = (
        Index(
            "uq_upgrade_requests_one_pending",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'PENDING'"),
            postgresql_where=text("status = 'PENDING'"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    status: UpgradeRequestStatus = Field(default=UpgradeRequestStatus.PENDING)
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Applicant data
    phone_number: str = Field(max_length=20)
    address: str = Field(max_length=500)
    occupation: str = Field(max_length=100)
    annual_income: float
    investment_goals: str = Field(max_length=1000)
    risk_tolerance: RiskTolerance
    expected_investment_amount: float
    source_of_funds: str = Field(max_length=500)
    agree_to_identity_verification: bool
    accept_terms_and_conditions: bool

    # Review
    reviewer_id: Optional[int] = Field(default=None, index=True)
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = Field(default=None, max_length=1000)
    rejection_reason: Optional[str] = Field(default=None, max_length=500)
