"""Parent approval of gated child actions."""

import logging
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth.models import User
from ..errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from ..models import ApprovalRequest, ApprovalRequestType, ApprovalStatus, ParentChildLink
from .base import store_errors, utcnow

logger = logging.getLogger(__name__)


def _parse_request_type(value: Union[str, ApprovalRequestType]) -> ApprovalRequestType:
    try:
        return ApprovalRequestType(value.value if isinstance(value, ApprovalRequestType) else value)
    except ValueError:
        allowed = ", ".join(t.value for t in ApprovalRequestType)
        raise ValidationError({"request_type": f"Request type must be one of: {allowed}"})


def _parse_decision(value: Union[str, ApprovalStatus]) -> ApprovalStatus:
    raw = value.value if isinstance(value, ApprovalStatus) else value
    if raw not in (ApprovalStatus.approved.value, ApprovalStatus.rejected.value):
        raise ValidationError({"decision": "Decision must be 'approved' or 'rejected'"})
    return ApprovalStatus(raw)


class ApprovalService:
    def __init__(self, db: Session):
        self.db = db

    def create_request(
        self,
        child_id: str,
        request_type: Union[str, ApprovalRequestType],
        request_data: Optional[Dict[str, Any]] = None,
        autocommit: bool = True,
    ) -> ApprovalRequest:
        """Insert a new pending request; there is no auto-approval path."""
        request_type = _parse_request_type(request_type)
        if request_data is not None and not isinstance(request_data, dict):
            raise ValidationError({"request_data": "Request data must be an object"})

        request = ApprovalRequest(
            child_id=child_id,
            request_type=request_type,
            request_data=dict(request_data or {}),
            status=ApprovalStatus.pending,
        )
        with store_errors(self.db, "create approval request"):
            self.db.add(request)
            if autocommit:
                self.db.commit()
                self.db.refresh(request)
            else:
                self.db.flush()
        logger.info(f"Approval request {request.id} ({request_type.value}) created for {child_id}")
        return request

    def get_request(self, request_id: str) -> ApprovalRequest:
        request = self.db.query(ApprovalRequest).filter(ApprovalRequest.id == request_id).first()
        if request is None:
            raise NotFoundError("Approval request", request_id)
        return request

    def list_pending(self, child_id: str) -> List[ApprovalRequest]:
        return (
            self.db.query(ApprovalRequest)
            .filter(ApprovalRequest.child_id == child_id, ApprovalRequest.status == ApprovalStatus.pending)
            .order_by(ApprovalRequest.created_at.desc())
            .all()
        )

    def list_for_child(self, child_id: str) -> List[ApprovalRequest]:
        return (
            self.db.query(ApprovalRequest)
            .filter(ApprovalRequest.child_id == child_id)
            .order_by(ApprovalRequest.created_at.desc())
            .all()
        )

    def is_parent_of(self, parent_id: str, child_id: str) -> bool:
        return (
            self.db.query(ParentChildLink.id)
            .filter(ParentChildLink.parent_id == parent_id, ParentChildLink.child_id == child_id)
            .first()
            is not None
        )

    def resolve(self, request_id: str, parent_id: str, decision: Union[str, ApprovalStatus]) -> ApprovalRequest:
        """
        Approve or reject a pending request, exactly once.

        The parent must be linked to the request's child. The status change
        is a conditional update on ``status = 'pending'``, so a second or
        concurrent resolution gets ``ConflictError`` instead of re-applying.
        """
        decision = _parse_decision(decision)
        request = self.get_request(request_id)
        if not self.is_parent_of(parent_id, request.child_id):
            raise PermissionDeniedError("Only a linked parent can review this request")

        with store_errors(self.db, "resolve approval request"):
            result = self.db.execute(
                update(ApprovalRequest)
                .where(ApprovalRequest.id == request_id, ApprovalRequest.status == ApprovalStatus.pending)
                .values(status=decision, parent_id=parent_id, reviewed_at=utcnow())
            )
            if result.rowcount != 1:
                self.db.rollback()
                raise ConflictError(f"Request has already been {request.status.value}")
            self.db.commit()

        self.db.refresh(request)
        logger.info(f"Approval request {request_id} {decision.value} by {parent_id}")
        return request

    def children_of(self, parent_id: str) -> List[str]:
        rows = (
            self.db.query(ParentChildLink.child_id)
            .filter(ParentChildLink.parent_id == parent_id)
            .order_by(ParentChildLink.linked_at)
            .all()
        )
        return [row.child_id for row in rows]

    def link_child(self, parent_id: str, child_email: str) -> ParentChildLink:
        """Link a parent to a student account by email; linking twice returns the first link."""
        child = self.db.query(User).filter(User.email == child_email).first()
        if child is None or not child.has_role("student"):
            raise NotFoundError("Student", child_email)
        if child.id == parent_id:
            raise ValidationError({"child_email": "You cannot link your own account"})

        existing = (
            self.db.query(ParentChildLink)
            .filter(ParentChildLink.parent_id == parent_id, ParentChildLink.child_id == child.id)
            .first()
        )
        if existing is not None:
            return existing

        link = ParentChildLink(parent_id=parent_id, child_id=child.id)
        try:
            self.db.add(link)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return (
                self.db.query(ParentChildLink)
                .filter(ParentChildLink.parent_id == parent_id, ParentChildLink.child_id == child.id)
                .one()
            )
        self.db.refresh(link)
        logger.info(f"Linked parent {parent_id} to child {child.id}")
        return link
