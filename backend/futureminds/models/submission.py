"""Submission model."""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum as SQLEnum, Integer, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from ..database import Base
from .enums import SubmissionStatus


class Submission(Base):
    """A student's attempt at one assignment."""
    __tablename__ = "assignment_submissions"
    __table_args__ = (UniqueConstraint("assignment_id", "student_id", name="uq_submission_assignment_student"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    assignment_id = Column(String(36), ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    status = Column(
        SQLEnum(SubmissionStatus, name="submission_status"),
        nullable=False,
        default=SubmissionStatus.in_progress,
    )
    submitted_at = Column(DateTime(timezone=True))
    graded_at = Column(DateTime(timezone=True))
    feedback = Column(Text)
    # Last amount credited to Progress.xp; re-grading applies only the difference
    xp_awarded = Column(Integer)
    file_urls = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    assignment = relationship("Assignment", back_populates="submissions")

    def __repr__(self):
        return f"<Submission(id={self.id}, status={self.status.value if self.status else None})>"

    @property
    def is_submitted(self):
        return self.status == SubmissionStatus.submitted

    @property
    def is_graded(self):
        return self.status == SubmissionStatus.graded

    @property
    def attachments(self):
        """Attachment keys in upload order."""
        return list(self.file_urls or [])
