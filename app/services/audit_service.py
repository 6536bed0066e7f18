"""
Audit event sink.

Events are written to the ``audit_events`` table and mirrored to the
``app.audit`` logger for the external reporting pipeline.
"""

from typing import List, Optional

from sqlmodel import Session, select

from app.core.logging import get_audit_logger
from app.models.audit import AuditAction, AuditEvent, AuditOutcome

audit_logger = get_audit_logger()


class AuditService:
    """Records audit events in the caller's session."""

    def __init__(self, session: Session):
        self.session = session

    def record(
        self,
        action: AuditAction,
        actor_id: Optional[int] = None,
        target_user_id: Optional[int] = None,
        outcome: AuditOutcome = AuditOutcome.SUCCESS,
        details: Optional[str] = None,
    ) -> AuditEvent:
        """
        Add an audit event to the current transaction.

        The row commits or rolls back together with the surrounding unit of
        work, so a rolled-back change leaves no success record behind.
        """
        event = AuditEvent(
            action=action,
            outcome=outcome,
            actor_id=actor_id,
            target_user_id=target_user_id,
            details=details,
        )
        self.session.add(event)
        audit_logger.info(
            f"{action.value} {outcome.value}",
            extra={
                "audit_action": action.value,
                "audit_outcome": outcome.value,
                "actor_id": actor_id,
                "target_user_id": target_user_id,
                "details": details,
            },
        )
        return event

    def record_failure(
        self,
        action: AuditAction,
        actor_id: Optional[int] = None,
        target_user_id: Optional[int] = None,
        details: Optional[str] = None,
    ) -> AuditEvent:
        """
        Record and commit a failed attempt on its own.

        Only call this before any state change has been made in the session,
        since it commits whatever is pending.
        """
        event = self.record(
            action,
            actor_id=actor_id,
            target_user_id=target_user_id,
            outcome=AuditOutcome.FAILURE,
            details=details,
        )
        self.session.commit()
        return event

    def list_events(
        self,
        target_user_id: Optional[int] = None,
        action: Optional[AuditAction] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[AuditEvent]:
        """
        Get audit events, newest first.

        Args:
            target_user_id: Filter by the account the event describes
            action: Filter by action
            limit: Maximum number of events to return
            offset: Number of events to skip
        """
        query = select(AuditEvent)

        if target_user_id is not None:
            query = query.where(AuditEvent.target_user_id == target_user_id)

        if action is not None:
            query = query.where(AuditEvent.action == action)

        query = query.order_by(AuditEvent.timestamp.desc(), AuditEvent.id.desc())
        query = query.limit(limit).offset(offset)

        return list(self.session.exec(query))
