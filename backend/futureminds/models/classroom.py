"""Class and enrollment models."""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from ..database import Base


class Class(Base):
    """A class owned by one educator."""
    __tablename__ = "classes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    educator_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    subject = Column(String(100))
    grade_level = Column(String(50))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    enrollments = relationship("ClassEnrollment", back_populates="klass", cascade="all, delete-orphan")
    assignments = relationship("Assignment", back_populates="klass")

    def __repr__(self):
        return f"<Class(id={self.id}, name='{self.name}')>"

    @property
    def student_count(self):
        """Get count of enrolled students."""
        return len(self.enrollments)


class ClassEnrollment(Base):
    """Join row between a class and a student."""
    __tablename__ = "class_enrollments"
    __table_args__ = (UniqueConstraint("class_id", "student_id", name="uq_class_student"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    class_id = Column(String(36), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    enrolled_at = Column(DateTime(timezone=True), server_default=func.now())

    klass = relationship("Class", back_populates="enrollments")

    def __repr__(self):
        return f"<ClassEnrollment(class_id={self.class_id}, student_id={self.student_id})>"
