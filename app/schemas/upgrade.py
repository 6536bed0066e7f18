"""
Upgrade request schemas.
"""

import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.models.upgrade_request import RiskTolerance, UpgradeRequestStatus


PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")


def _length_between(value: str, label: str, low: int, high: int) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{label} is required")
    if not low <= len(value) <= high:
        raise ValueError(f"{label} must be between {low} and {high} characters")
    return value


class UpgradeApplication(BaseModel):
    """
    Applicant data submitted with a guest's upgrade request.

    Both consent flags must be true. The minimum investment threshold is
    configurable and checked by the upgrade service, not here.
    """

    phone_number: str
    address: str
    occupation: str
    annual_income: float
    investment_goals: str
    risk_tolerance: RiskTolerance
    expected_investment_amount: float
    source_of_funds: str
    agree_to_identity_verification: bool
    accept_terms_and_conditions: bool

    @field_validator("phone_number")
    @classmethod
    def valid_phone(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Phone number is required")
        if not PHONE_PATTERN.match(v):
            raise ValueError("Invalid phone number format")
        return v

    @field_validator("address")
    @classmethod
    def valid_address(cls, v: str) -> str:
        return _length_between(v, "Address", 10, 500)

    @field_validator("occupation")
    @classmethod
    def valid_occupation(cls, v: str) -> str:
        return _length_between(v, "Occupation", 2, 100)

    @field_validator("investment_goals")
    @classmethod
    def valid_goals(cls, v: str) -> str:
        return _length_between(v, "Investment goals", 20, 1000)

    @field_validator("source_of_funds")
    @classmethod
    def valid_source_of_funds(cls, v: str) -> str:
        return _length_between(v, "Source of funds", 10, 500)

    @field_validator("annual_income")
    @classmethod
    def positive_income(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Annual income must be positive")
        return v

    @field_validator("expected_investment_amount")
    @classmethod
    def positive_investment(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Expected investment amount must be positive")
        return v

    @field_validator("agree_to_identity_verification")
    @classmethod
    def identity_consent(cls, v: bool) -> bool:
        if not v:
            raise ValueError("You must agree to identity verification")
        return v

    @field_validator("accept_terms_and_conditions")
    @classmethod
    def terms_accepted(cls, v: bool) -> bool:
        if not v:
            raise ValueError("You must accept the terms and conditions")
        return v


class UpgradeDecision(BaseModel):
    """Reviewer input for an approval."""

    notes: Optional[str] = Field(default=None, max_length=1000)


class UpgradeRejection(BaseModel):
    """Reviewer input for a rejection. A reason is mandatory."""

    reason: str = Field(min_length=1, max_length=500)
    notes: Optional[str] = Field(default=None, max_length=1000)


class UpgradeRequestResponse(BaseModel):
    """Upgrade request as returned by the API."""

    id: int
    user_id: int
    status: UpgradeRequestStatus
    submitted_at: datetime
    phone_number: str
    address: str
    occupation: str
    annual_income: float
    investment_goals: str
    risk_tolerance: RiskTolerance
    expected_investment_amount: float
    source_of_funds: str
    reviewer_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    rejection_reason: Optional[str] = None

    model_config = {"from_attributes": True}


class EligibilityResponse(BaseModel):
    """Whether the caller may submit an upgrade request now."""

    eligible: bool
    reasons: List[str] = Field(default_factory=list)
