"""
Tests for the guest -> client upgrade workflow.
"""

from unittest.mock import patch

import pytest
from sqlmodel import Session, select

from app.core.exceptions import ConflictError, SecurityError, ValidationError
from app.models.audit import AuditAction
from app.models.permission import Permission
from app.models.profiles import ClientProfile, GuestProfile
from app.models.upgrade_request import RiskTolerance, UpgradeRequest, UpgradeRequestStatus
from app.models.user import Role, User
from app.schemas.upgrade import UpgradeApplication
from app.services.authorization import Decision, authorization_service
from app.services.upgrade_service import UpgradeService
from app.services.user_service import UserService


@pytest.fixture(name="upgrades")
def upgrades_fixture(session: Session, user_service: UserService) -> UpgradeService:
    return UpgradeService(session, user_service=user_service)


@pytest.fixture(name="pending")
def pending_fixture(upgrades: UpgradeService, guest: User, application_data: dict) -> UpgradeRequest:
    return upgrades.submit(guest, application_data)


# Submission


def test_submit_creates_pending_request(upgrades: UpgradeService, guest: User, application_data: dict) -> None:
    request = upgrades.submit(guest, application_data)

    assert request.id is not None
    assert request.user_id == guest.id
    assert request.status == UpgradeRequestStatus.PENDING
    assert request.risk_tolerance == RiskTolerance.MODERATE
    assert request.reviewer_id is None
    # Submitting does not change the role
    assert guest.role == Role.GUEST


def test_submit_accepts_parsed_application(
    upgrades: UpgradeService, guest: User, application_data: dict
) -> None:
    request = upgrades.submit(guest, UpgradeApplication(**application_data))
    assert request.status == UpgradeRequestStatus.PENDING


def test_submit_below_investment_floor(
    session: Session, upgrades: UpgradeService, guest: User, application_data: dict
) -> None:
    application_data["expected_investment_amount"] = 5000

    with pytest.raises(ValidationError, match=r"Minimum investment amount is \$10,000"):
        upgrades.submit(guest, application_data)

    assert session.exec(select(UpgradeRequest)).all() == []


def test_investment_floor_is_configurable(
    session: Session, user_service: UserService, guest: User, application_data: dict
) -> None:
    upgrades = UpgradeService(session, user_service=user_service, min_investment=50000)
    with pytest.raises(ValidationError, match=r"\$50,000"):
        upgrades.submit(guest, application_data)


def test_submit_reports_all_field_violations(
    upgrades: UpgradeService, guest: User, application_data: dict
) -> None:
    application_data["phone_number"] = "not-a-phone"
    application_data["accept_terms_and_conditions"] = False
    del application_data["occupation"]

    with pytest.raises(ValidationError) as exc_info:
        upgrades.submit(guest, application_data)

    errors = exc_info.value.errors
    assert "Invalid phone number format" in errors
    assert "You must accept the terms and conditions" in errors
    assert any(e.startswith("occupation:") for e in errors)


def test_only_guests_can_submit(upgrades: UpgradeService, client_user: User, application_data: dict) -> None:
    with pytest.raises(ValidationError, match="Only guests can request upgrades"):
        upgrades.submit(client_user, application_data)


def test_second_pending_request_conflicts(
    upgrades: UpgradeService, guest: User, pending: UpgradeRequest, application_data: dict
) -> None:
    with pytest.raises(ConflictError, match="You already have a pending upgrade request"):
        upgrades.submit(guest, application_data)


def test_storage_rejects_second_pending_request(
    session: Session, upgrades: UpgradeService, guest: User, pending: UpgradeRequest, application_data: dict
) -> None:
    """Even when the pre-check is bypassed, storage keeps one pending request per guest."""
    with patch.object(UpgradeService, "pending_for", return_value=None):
        with pytest.raises(ConflictError, match="You already have a pending upgrade request"):
            upgrades.submit(guest, application_data)

    statement = select(UpgradeRequest).where(UpgradeRequest.user_id == guest.id)
    assert len(session.exec(statement).all()) == 1


# Approval


def test_approve_promotes_guest_to_client(
    session: Session,
    upgrades: UpgradeService,
    user_service: UserService,
    guest: User,
    employee: User,
    pending: UpgradeRequest,
) -> None:
    promoted = upgrades.approve(pending, employee, notes="Documents verified")

    assert pending.status == UpgradeRequestStatus.APPROVED
    assert pending.reviewer_id == employee.id
    assert pending.reviewed_at is not None
    assert pending.review_notes == "Documents verified"

    assert promoted.id == guest.id
    assert promoted.role == Role.CLIENT
    assert session.exec(select(GuestProfile).where(GuestProfile.user_id == guest.id)).first() is None
    profile = user_service.get_profile(promoted)
    assert isinstance(profile, ClientProfile)
    assert profile.client_code.startswith("CL")

    principal = user_service.permissions.principal_for(promoted)
    assert authorization_service.authorize(principal, Permission.VIEW_INVESTMENT) is Decision.ALLOW
    assert authorization_service.authorize(principal, Permission.REQUEST_CLIENT_ACCOUNT) is Decision.DENY


def test_approve_is_audited(
    upgrades: UpgradeService, user_service: UserService, guest: User, admin: User, pending: UpgradeRequest
) -> None:
    upgrades.approve(pending, admin)

    actions = [e.action for e in user_service.audit.list_events(target_user_id=guest.id)]
    assert AuditAction.UPGRADE_APPROVE in actions
    assert AuditAction.ROLE_CHANGE in actions


def test_approve_is_atomic(
    session: Session, upgrades: UpgradeService, guest: User, employee: User, pending: UpgradeRequest
) -> None:
    """If promotion fails the request stays pending."""
    with patch.object(UserService, "change_role", side_effect=RuntimeError("storage down")):
        with pytest.raises(RuntimeError):
            upgrades.approve(pending, employee)

    session.refresh(pending)
    session.refresh(guest)
    assert pending.status == UpgradeRequestStatus.PENDING
    assert pending.reviewer_id is None
    assert guest.role == Role.GUEST


def test_reviewed_request_is_terminal(
    upgrades: UpgradeService, employee: User, admin: User, pending: UpgradeRequest
) -> None:
    upgrades.approve(pending, employee)

    with pytest.raises(ValidationError, match="Request is not in pending status"):
        upgrades.approve(pending, admin)
    with pytest.raises(ValidationError, match="Request is not in pending status"):
        upgrades.reject(pending, admin, reason="Too late")


def test_non_reviewer_cannot_approve(
    upgrades: UpgradeService, guest: User, client_user: User, pending: UpgradeRequest
) -> None:
    with pytest.raises(SecurityError):
        upgrades.approve(pending, client_user)
    with pytest.raises(SecurityError):
        upgrades.approve(pending, guest)

    assert upgrades.get(pending.id).status == UpgradeRequestStatus.PENDING  # type: ignore[arg-type]


def test_inactive_employee_cannot_review(
    upgrades: UpgradeService, user_service: UserService, employee: User, pending: UpgradeRequest
) -> None:
    user_service.deactivate(employee)
    with pytest.raises(SecurityError):
        upgrades.reject(pending, employee, reason="Incomplete")


# Rejection


def test_reject_keeps_guest_and_allows_resubmission(
    upgrades: UpgradeService, guest: User, employee: User, pending: UpgradeRequest, application_data: dict
) -> None:
    rejected = upgrades.reject(pending, employee, reason="Source of funds unclear")

    assert rejected.status == UpgradeRequestStatus.REJECTED
    assert rejected.rejection_reason == "Source of funds unclear"
    assert guest.role == Role.GUEST

    assert upgrades.check_eligibility(guest)["eligible"] is True
    again = upgrades.submit(guest, application_data)
    assert again.status == UpgradeRequestStatus.PENDING
    assert upgrades.latest_for(guest).id == again.id  # type: ignore[union-attr]


def test_reject_requires_reason(upgrades: UpgradeService, employee: User, pending: UpgradeRequest) -> None:
    with pytest.raises(ValidationError, match="Rejection reason is required"):
        upgrades.reject(pending, employee, reason="   ")


def _stale_request(session: Session, user_id: int, application_data: dict) -> UpgradeRequest:
    """Store a pending request directly, bypassing submission checks."""
    request = UpgradeRequest(user_id=user_id, **UpgradeApplication(**application_data).model_dump())
    session.add(request)
    session.commit()
    session.refresh(request)
    return request


def test_role_change_closes_pending_request(
    upgrades: UpgradeService,
    user_service: UserService,
    guest: User,
    admin: User,
    pending: UpgradeRequest,
    application_data: dict,
) -> None:
    user_service.change_role(guest, Role.EMPLOYEE, actor=admin)

    closed = upgrades.get(pending.id)  # type: ignore[arg-type]
    assert closed.status == UpgradeRequestStatus.REJECTED
    assert closed.rejection_reason == "Account moved to role EMPLOYEE"
    assert closed.reviewer_id == admin.id

    # Back to guest: a fresh application is allowed
    user_service.change_role(guest, Role.GUEST, actor=admin)
    assert upgrades.check_eligibility(guest) == {"eligible": True, "reasons": []}
    assert upgrades.submit(guest, application_data).status == UpgradeRequestStatus.PENDING


def test_delete_closes_pending_request(
    upgrades: UpgradeService, user_service: UserService, guest: User, admin: User, pending: UpgradeRequest
) -> None:
    request_id = pending.id
    user_service.delete(guest, actor=admin)

    closed = upgrades.get(request_id)  # type: ignore[arg-type]
    assert closed.status == UpgradeRequestStatus.REJECTED
    assert closed.rejection_reason == "Account deleted"


def test_pending_request_of_non_guest_can_be_rejected(
    session: Session, upgrades: UpgradeService, client_user: User, employee: User, application_data: dict
) -> None:
    stale = _stale_request(session, client_user.id, application_data)  # type: ignore[arg-type]

    with pytest.raises(ValidationError, match="Requester is no longer a guest"):
        upgrades.approve(stale, employee)

    rejected = upgrades.reject(stale, employee, reason="Requester already a client")
    assert rejected.status == UpgradeRequestStatus.REJECTED
    assert client_user.role == Role.CLIENT


def test_pending_request_of_missing_user_can_be_rejected(
    session: Session, upgrades: UpgradeService, employee: User, application_data: dict
) -> None:
    stale = _stale_request(session, 9999, application_data)

    rejected = upgrades.reject(stale, employee, reason="Account no longer exists")
    assert rejected.status == UpgradeRequestStatus.REJECTED
    assert rejected.reviewer_id == employee.id


# Queries


def test_check_eligibility(
    upgrades: UpgradeService, guest: User, employee: User, application_data: dict
) -> None:
    assert upgrades.check_eligibility(guest) == {"eligible": True, "reasons": []}

    upgrades.submit(guest, application_data)
    assert upgrades.check_eligibility(guest) == {
        "eligible": False,
        "reasons": ["You already have a pending upgrade request"],
    }

    result = upgrades.check_eligibility(employee)
    assert result["eligible"] is False
    assert "Only guests can request upgrades" in result["reasons"]


def test_list_requests_by_status(
    upgrades: UpgradeService, make_user, employee: User, application_data: dict
) -> None:
    first = upgrades.submit(make_user("one@example.com"), application_data)
    second = upgrades.submit(make_user("two@example.com"), application_data)
    upgrades.reject(first, employee, reason="Incomplete")

    assert [r.id for r in upgrades.list_requests()] == [first.id, second.id]
    assert [r.id for r in upgrades.list_requests(status=UpgradeRequestStatus.PENDING)] == [second.id]
    assert [r.id for r in upgrades.list_requests(status=UpgradeRequestStatus.REJECTED)] == [first.id]
