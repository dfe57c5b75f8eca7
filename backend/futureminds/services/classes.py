"""Classes and enrollments owned by educators."""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth.models import User
from ..errors import NotFoundError, PermissionDeniedError, ValidationError
from ..models import Class, ClassEnrollment
from .assignments import AssignmentService
from .base import store_errors

logger = logging.getLogger(__name__)


class ClassService:
    def __init__(self, db: Session, assignments: Optional[AssignmentService] = None):
        self.db = db
        self.assignments = assignments or AssignmentService(db)

    def create_class(
        self,
        educator_id: str,
        name: str,
        description: Optional[str] = None,
        subject: Optional[str] = None,
        grade_level: Optional[str] = None,
    ) -> Class:
        if not name or not name.strip():
            raise ValidationError({"name": "Class name is required"})
        klass = Class(
            educator_id=educator_id,
            name=name.strip(),
            description=description or None,
            subject=subject or None,
            grade_level=grade_level or None,
        )
        with store_errors(self.db, "create class"):
            self.db.add(klass)
            self.db.commit()
            self.db.refresh(klass)
        logger.info(f"Class {klass.id} created by {educator_id}")
        return klass

    def get_owned_class(self, class_id: str, educator_id: str) -> Class:
        klass = self.db.query(Class).filter(Class.id == class_id).first()
        if klass is None:
            raise NotFoundError("Class", class_id)
        if klass.educator_id != educator_id:
            raise PermissionDeniedError("Class belongs to another educator")
        return klass

    def list_classes(self, educator_id: str) -> List[Tuple[Class, int]]:
        """The educator's classes, newest first, each with its student count."""
        counts = (
            self.db.query(ClassEnrollment.class_id, func.count(ClassEnrollment.id).label("students"))
            .group_by(ClassEnrollment.class_id)
            .subquery()
        )
        rows = (
            self.db.query(Class, func.coalesce(counts.c.students, 0))
            .outerjoin(counts, counts.c.class_id == Class.id)
            .filter(Class.educator_id == educator_id)
            .order_by(Class.created_at.desc(), Class.name)
            .all()
        )
        return [(klass, int(count)) for klass, count in rows]

    def delete_class(self, class_id: str, educator_id: str) -> None:
        """Delete a class with its enrollments and assignments (and their submissions)."""
        klass = self.get_owned_class(class_id, educator_id)
        assignments = list(klass.assignments)
        keys = [key for assignment in assignments for key in self.assignments.attachment_keys(assignment)]
        # One commit: a failure keeps the class and everything under it.
        with store_errors(self.db, "delete class"):
            for assignment in assignments:
                self.db.delete(assignment)
            self.db.delete(klass)
            self.db.commit()
        logger.info(f"Class {class_id} deleted by {educator_id}")
        self.assignments.remove_blobs(keys)

    def enroll(self, class_id: str, student_id: str, educator_id: str) -> ClassEnrollment:
        """Enroll a student; enrolling twice returns the existing row."""
        self.get_owned_class(class_id, educator_id)
        student = self.db.query(User).filter(User.id == student_id).first()
        if student is None or not student.has_role("student"):
            raise NotFoundError("Student", student_id)

        existing = self._enrollment(class_id, student_id)
        if existing is not None:
            return existing
        enrollment = ClassEnrollment(class_id=class_id, student_id=student_id)
        try:
            self.db.add(enrollment)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return self._enrollment(class_id, student_id)
        self.db.refresh(enrollment)
        return enrollment

    def _enrollment(self, class_id: str, student_id: str) -> Optional[ClassEnrollment]:
        return (
            self.db.query(ClassEnrollment)
            .filter(ClassEnrollment.class_id == class_id, ClassEnrollment.student_id == student_id)
            .first()
        )

    def list_student_classes(self, student_id: str) -> List[Class]:
        return (
            self.db.query(Class)
            .join(ClassEnrollment, ClassEnrollment.class_id == Class.id)
            .filter(ClassEnrollment.student_id == student_id)
            .order_by(Class.name)
            .all()
        )
