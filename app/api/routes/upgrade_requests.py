"""
Upgrade request routes: guests apply, employees and admins review.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_upgrade_service, require_permission
from app.core.exceptions import EntityNotFoundError
from app.models.permission import Permission
from app.models.upgrade_request import UpgradeRequestStatus
from app.models.user import User
from app.schemas.upgrade import (
    EligibilityResponse,
    UpgradeApplication,
    UpgradeDecision,
    UpgradeRejection,
    UpgradeRequestResponse,
)
from app.schemas.user import UserResponse
from app.services.upgrade_service import UpgradeService

router = APIRouter(prefix="/upgrade-requests", tags=["upgrade-requests"])

UpgradeServiceDep = Annotated[UpgradeService, Depends(get_upgrade_service)]
Reviewer = Annotated[User, Depends(require_permission(Permission.REVIEW_UPGRADE_REQUESTS))]


@router.post("/", response_model=UpgradeRequestResponse, status_code=status.HTTP_201_CREATED)
def submit_upgrade_request(
    application: UpgradeApplication,
    upgrades: UpgradeServiceDep,
    current_user: Annotated[User, Depends(require_permission(Permission.REQUEST_CLIENT_ACCOUNT))],
) -> UpgradeRequestResponse:
    """
    Apply for a client account.

    Raises:
        ValidationError: Below the investment floor (400)
        ConflictError: A pending request already exists (409)
    """
    request = upgrades.submit(current_user, application)
    return UpgradeRequestResponse.model_validate(request)


@router.get("/me", response_model=UpgradeRequestResponse)
def get_my_latest_request(
    upgrades: UpgradeServiceDep,
    current_user: Annotated[User, Depends(require_permission(Permission.VIEW_ACCOUNT))],
) -> UpgradeRequestResponse:
    """The caller's most recent upgrade request in any status."""
    request = upgrades.latest_for(current_user)
    if request is None:
        raise EntityNotFoundError("Upgrade request")
    return UpgradeRequestResponse.model_validate(request)


@router.get("/eligibility", response_model=EligibilityResponse)
def check_eligibility(
    upgrades: UpgradeServiceDep,
    current_user: Annotated[User, Depends(require_permission(Permission.VIEW_ACCOUNT))],
) -> EligibilityResponse:
    return EligibilityResponse(**upgrades.check_eligibility(current_user))


@router.get("/", response_model=List[UpgradeRequestResponse])
def list_upgrade_requests(
    upgrades: UpgradeServiceDep,
    _: Reviewer,
    status_filter: Optional[UpgradeRequestStatus] = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> List[UpgradeRequestResponse]:
    """Review queue, oldest first."""
    requests = upgrades.list_requests(status=status_filter, limit=limit, offset=offset)
    return [UpgradeRequestResponse.model_validate(r) for r in requests]


@router.get("/{request_id}", response_model=UpgradeRequestResponse)
def get_upgrade_request(
    request_id: int,
    upgrades: UpgradeServiceDep,
    _: Reviewer,
) -> UpgradeRequestResponse:
    return UpgradeRequestResponse.model_validate(upgrades.get(request_id))


@router.post("/{request_id}/approve", response_model=UserResponse)
def approve_upgrade_request(
    request_id: int,
    upgrades: UpgradeServiceDep,
    reviewer: Reviewer,
    decision: Optional[UpgradeDecision] = None,
) -> UserResponse:
    """
    Approve a pending request. Returns the promoted account.

    Raises:
        ValidationError: Request already reviewed (400)
    """
    user = upgrades.approve(
        upgrades.get(request_id),
        reviewer,
        notes=decision.notes if decision else None,
    )
    return UserResponse.model_validate(user)


@router.post("/{request_id}/reject", response_model=UpgradeRequestResponse)
def reject_upgrade_request(
    request_id: int,
    rejection: UpgradeRejection,
    upgrades: UpgradeServiceDep,
    reviewer: Reviewer,
) -> UpgradeRequestResponse:
    request = upgrades.reject(
        upgrades.get(request_id),
        reviewer,
        reason=rejection.reason,
        notes=rejection.notes,
    )
    return UpgradeRequestResponse.model_validate(request)
