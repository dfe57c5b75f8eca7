"""Profile, role and parent-child link models."""

from sqlalchemy import Column, String, DateTime, ForeignKey, Enum as SQLEnum, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from ..database import Base
from .enums import AppRole


class Profile(Base):
    """Public profile shown to classmates, educators and parents."""
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    display_name = Column(String(100), nullable=False)
    age_bracket = Column(String(20))
    avatar = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("futureminds.auth.models.User", back_populates="profile")

    def __repr__(self):
        return f"<Profile(user_id={self.user_id}, display_name='{self.display_name}')>"


class UserRole(Base):
    """One granted role; a user may hold several."""
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_role"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(SQLEnum(AppRole, name="app_role"), nullable=False)

    user = relationship("futureminds.auth.models.User", back_populates="roles")


class ParentChildLink(Base):
    """Authorizes a parent to review a child's approval requests."""
    __tablename__ = "parent_child_links"
    __table_args__ = (UniqueConstraint("parent_id", "child_id", name="uq_parent_child"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    parent_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    child_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    linked_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<ParentChildLink(parent_id={self.parent_id}, child_id={self.child_id})>"
