"""Approval request model."""

from sqlalchemy import Column, String, DateTime, ForeignKey, Enum as SQLEnum, JSON
from sqlalchemy.sql import func
import uuid

from ..database import Base
from .enums import ApprovalRequestType, ApprovalStatus


class ApprovalRequest(Base):
    """A gated action proposed by a child, reviewed once by a linked parent."""
    __tablename__ = "approval_requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    child_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_id = Column(String(36), ForeignKey("users.id"))
    request_type = Column(SQLEnum(ApprovalRequestType, name="approval_request_type"), nullable=False)
    request_data = Column(JSON, nullable=False, default=dict)
    status = Column(
        SQLEnum(ApprovalStatus, name="approval_status"),
        nullable=False,
        default=ApprovalStatus.pending,
        index=True,
    )
    reviewed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<ApprovalRequest(id={self.id}, type={self.request_type.value}, status={self.status.value})>"

    @property
    def is_pending(self):
        return self.status == ApprovalStatus.pending
