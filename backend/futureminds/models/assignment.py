"""Assignment model."""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Integer, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from ..database import Base


class Assignment(Base):
    """Assignment model."""
    __tablename__ = "assignments"
    __table_args__ = (CheckConstraint("xp_reward >= 0", name="ck_assignment_xp_reward_nonneg"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    class_id = Column(String(36), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    educator_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    due_date = Column(DateTime(timezone=True))
    xp_reward = Column(Integer, nullable=False, default=100)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    klass = relationship("Class", back_populates="assignments")
    submissions = relationship("Submission", back_populates="assignment", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Assignment(id={self.id}, title='{self.title}')>"

    @property
    def submission_count(self):
        """Get count of submissions for this assignment."""
        return len(self.submissions)
