"""
Guest -> Client upgrade workflow.

A guest submits one application at a time. An employee or admin reviews it;
approval promotes the guest to client in the same transaction that marks the
request approved. Approved and rejected requests are final.
"""

from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Union

import pydantic
from sqlmodel import Session, select

from app.core.config import settings
from app.core.exceptions import ConflictError, EntityNotFoundError, SecurityError, ValidationError
from app.core.logging import get_logger
from app.db.unit_of_work import UnitOfWork
from app.models.audit import AuditAction
from app.models.upgrade_request import UpgradeRequest, UpgradeRequestStatus
from app.models.user import Role, User
from app.schemas.upgrade import UpgradeApplication
from app.services.audit_service import AuditService
from app.services.user_service import UserService

logger = get_logger(__name__)

PENDING_EXISTS_MESSAGE = "You already have a pending upgrade request"


def _violations(error: pydantic.ValidationError) -> List[str]:
    """Flatten pydantic errors into readable messages, in field order."""
    messages = []
    for item in error.errors():
        message = item["msg"]
        if item["type"] == "value_error":
            message = message.removeprefix("Value error, ")
        else:
            field = ".".join(str(part) for part in item["loc"])
            message = f"{field}: {message}"
        messages.append(message)
    return messages


class UpgradeService:
    """Service class for upgrade request operations."""

    def __init__(
        self,
        session: Session,
        user_service: Optional[UserService] = None,
        min_investment: Optional[float] = None,
    ):
        self.session = session
        self.users = user_service or UserService(session)
        self.audit = AuditService(session)
        self.min_investment = settings.UPGRADE_MIN_INVESTMENT if min_investment is None else min_investment

    # Queries

    def get(self, request_id: int) -> UpgradeRequest:
        """
        Raises:
            EntityNotFoundError: If the request does not exist
        """
        request = self.session.get(UpgradeRequest, request_id)
        if request is None:
            raise EntityNotFoundError("Upgrade request", request_id)
        return request

    def pending_for(self, user: User) -> Optional[UpgradeRequest]:
        statement = select(UpgradeRequest).where(
            UpgradeRequest.user_id == user.id,
            UpgradeRequest.status == UpgradeRequestStatus.PENDING,
        )
        return self.session.exec(statement).first()

    def latest_for(self, user: User) -> Optional[UpgradeRequest]:
        """The user's most recent request in any status."""
        statement = (
            select(UpgradeRequest)
            .where(UpgradeRequest.user_id == user.id)
            .order_by(UpgradeRequest.submitted_at.desc(), UpgradeRequest.id.desc())
        )
        return self.session.exec(statement).first()

    def list_requests(
        self,
        status: Optional[UpgradeRequestStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[UpgradeRequest]:
        """
        Get requests, oldest first so reviewers work the queue in order.

        Args:
            status: Filter by status
            limit: Maximum number of requests to return
            offset: Number of requests to skip
        """
        statement = select(UpgradeRequest)
        if status is not None:
            statement = statement.where(UpgradeRequest.status == status)
        statement = statement.order_by(UpgradeRequest.submitted_at, UpgradeRequest.id)
        statement = statement.limit(limit).offset(offset)
        return list(self.session.exec(statement))

    def check_eligibility(self, user: User) -> dict[str, Any]:
        """
        Whether ``user`` may submit a request right now.

        Returns:
            ``{"eligible": bool, "reasons": [...]}`` with every blocking reason
        """
        reasons = self._eligibility_problems(user)
        if not reasons and self.pending_for(user) is not None:
            reasons.append(PENDING_EXISTS_MESSAGE)
        return {"eligible": not reasons, "reasons": reasons}

    def _eligibility_problems(self, user: User) -> List[str]:
        problems = []
        if user.role != Role.GUEST:
            problems.append("Only guests can request upgrades")
        if not user.is_active:
            problems.append("Account is not active")
        return problems

    # Submission

    def submit(
        self,
        user: User,
        application: Union[UpgradeApplication, Mapping[str, Any]],
    ) -> UpgradeRequest:
        """
        Submit an upgrade application for a guest.

        Raises:
            ValidationError: Requester is not an active guest, or the
                application breaks any field rule (all violations reported)
            ConflictError: The requester already has a pending request
        """
        problems = self._eligibility_problems(user)
        if problems:
            raise ValidationError.from_violations(problems)

        if not isinstance(application, UpgradeApplication):
            try:
                application = UpgradeApplication.model_validate(application)
            except pydantic.ValidationError as e:
                raise ValidationError.from_violations(_violations(e)) from e

        if application.expected_investment_amount < self.min_investment:
            raise ValidationError(f"Minimum investment amount is ${self.min_investment:,.0f}")

        if self.pending_for(user) is not None:
            raise ConflictError(PENDING_EXISTS_MESSAGE)

        try:
            with UnitOfWork(self.session):
                request = UpgradeRequest(user_id=user.id, **application.model_dump())  # type: ignore[arg-type]
                self.session.add(request)
                self.audit.record(
                    AuditAction.UPGRADE_SUBMIT,
                    actor_id=user.id,
                    target_user_id=user.id,
                    details=f"expected investment {application.expected_investment_amount:,.2f}",
                )
        except ConflictError as e:
            # Lost a race with a concurrent submission
            raise ConflictError(PENDING_EXISTS_MESSAGE) from e

        self.session.refresh(request)
        logger.info(f"Upgrade request {request.id} submitted by user {user.id}")
        return request

    # Review

    def approve(self, request: UpgradeRequest, reviewer: User, notes: Optional[str] = None) -> User:
        """
        Approve a pending request and promote the requester to client.

        Returns:
            The promoted user

        Raises:
            SecurityError: Reviewer is not an active employee or admin
            ValidationError: Request is not pending, or the requester is no
                longer a guest
        """
        self._check_reviewable(request, reviewer, AuditAction.UPGRADE_APPROVE)
        requester = self.users.get(request.user_id)
        if requester.role != Role.GUEST:
            raise ValidationError("Requester is no longer a guest")

        with UnitOfWork(self.session):
            self._mark_reviewed(request, reviewer, UpgradeRequestStatus.APPROVED, notes)
            self.users.change_role(requester, Role.CLIENT, actor=reviewer)
            self.audit.record(
                AuditAction.UPGRADE_APPROVE,
                actor_id=reviewer.id,
                target_user_id=requester.id,
                details=f"request {request.id}",
            )

        self.session.refresh(requester)
        logger.info(f"Upgrade request {request.id} approved by user {reviewer.id}")
        return requester

    def reject(
        self,
        request: UpgradeRequest,
        reviewer: User,
        reason: str,
        notes: Optional[str] = None,
    ) -> UpgradeRequest:
        """
        Reject a pending request. The requester stays a guest and may apply again.

        A request whose requester has since left the guest role, or no longer
        exists, can still be rejected.

        Raises:
            SecurityError: Reviewer is not an active employee or admin
            ValidationError: Request is not pending, or ``reason`` is empty
        """
        if not reason or not reason.strip():
            raise ValidationError("Rejection reason is required")

        self._check_reviewable(request, reviewer, AuditAction.UPGRADE_REJECT)

        with UnitOfWork(self.session):
            self._mark_reviewed(request, reviewer, UpgradeRequestStatus.REJECTED, notes)
            request.rejection_reason = reason.strip()
            self.audit.record(
                AuditAction.UPGRADE_REJECT,
                actor_id=reviewer.id,
                target_user_id=request.user_id,
                details=f"request {request.id}: {request.rejection_reason}",
            )

        self.session.refresh(request)
        logger.info(f"Upgrade request {request.id} rejected by user {reviewer.id}")
        return request

    def _check_reviewable(self, request: UpgradeRequest, reviewer: User, action: AuditAction) -> None:
        if not reviewer.is_active or not reviewer.role.can_review_upgrades:
            self.audit.record_failure(
                action,
                actor_id=reviewer.id,
                target_user_id=request.user_id,
                details="reviewer lacks review rights",
            )
            raise SecurityError("Only active employees or admins can review upgrade requests")

        if request.status != UpgradeRequestStatus.PENDING:
            raise ValidationError("Request is not in pending status")

    def _mark_reviewed(
        self,
        request: UpgradeRequest,
        reviewer: User,
        status: UpgradeRequestStatus,
        notes: Optional[str],
    ) -> None:
        request.status = status
        request.reviewer_id = reviewer.id
        request.reviewed_at = datetime.now(timezone.utc)
        request.review_notes = notes.strip() if notes else None
        self.session.add(request)
