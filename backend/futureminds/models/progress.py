"""Progress aggregate and activity log models."""

from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, JSON, Enum as SQLEnum, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from datetime import datetime, UTC
import uuid

from ..database import Base
from .enums import ActivityType

XP_PER_LEVEL = 1000


class UserProgress(Base):
    """Additive counters for one user."""
    __tablename__ = "user_progress"
    __table_args__ = (
        CheckConstraint("xp >= 0", name="ck_progress_xp_nonneg"),
        CheckConstraint("coins >= 0", name="ck_progress_coins_nonneg"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    xp = Column(Integer, nullable=False, default=0)
    level = Column(Integer, nullable=False, default=1)
    coins = Column(Integer, nullable=False, default=0)
    lessons_completed = Column(Integer, nullable=False, default=0)
    projects_completed = Column(Integer, nullable=False, default=0)
    badges = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("futureminds.auth.models.User", back_populates="progress")

    def __repr__(self):
        return f"<UserProgress(user_id={self.user_id}, xp={self.xp}, level={self.level})>"

    @property
    def max_xp(self):
        """XP shown as the full bar for the current level."""
        return (self.level or 1) * XP_PER_LEVEL


class ActivityLog(Base):
    """Append-only event record, for display only."""
    __tablename__ = "activity_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    activity_type = Column(SQLEnum(ActivityType, name="activity_type"), nullable=False)
    activity_data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), index=True)

    def __repr__(self):
        return f"<ActivityLog(user_id={self.user_id}, activity_type={self.activity_type.value})>"
