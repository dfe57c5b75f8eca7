"""Assignments published to a class."""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..errors import NotFoundError, PermissionDeniedError, ValidationError
from ..models import Assignment, Class, ClassEnrollment, Submission
from ..storage import FileStore, ObjectNotFoundError, StorageError
from .base import store_errors

logger = logging.getLogger(__name__)

DEFAULT_XP_REWARD = 100
MAX_XP_REWARD = 10000


class AssignmentService:
    def __init__(self, db: Session, file_store: Optional[FileStore] = None):
        self.db = db
        self.file_store = file_store

    def create_assignment(
        self,
        educator_id: str,
        class_id: str,
        title: str,
        description: Optional[str] = None,
        due_date: Optional[datetime] = None,
        xp_reward: int = DEFAULT_XP_REWARD,
    ) -> Assignment:
        errors = {}
        if not title or not title.strip():
            errors["title"] = "Title is required"
        if not isinstance(xp_reward, int) or isinstance(xp_reward, bool) or not 0 <= xp_reward <= MAX_XP_REWARD:
            errors["xp_reward"] = f"XP reward must be between 0 and {MAX_XP_REWARD}"
        if errors:
            raise ValidationError(errors)

        klass = self.db.query(Class).filter(Class.id == class_id).first()
        if klass is None:
            raise NotFoundError("Class", class_id)
        if klass.educator_id != educator_id:
            raise PermissionDeniedError("Class belongs to another educator")

        assignment = Assignment(
            class_id=class_id,
            educator_id=educator_id,
            title=title.strip(),
            description=description or None,
            due_date=due_date,
            xp_reward=xp_reward,
        )
        with store_errors(self.db, "create assignment"):
            self.db.add(assignment)
            self.db.commit()
            self.db.refresh(assignment)
        logger.info(f"Assignment {assignment.id} created in class {class_id}")
        return assignment

    def get_assignment(self, assignment_id: str) -> Assignment:
        assignment = self.db.query(Assignment).filter(Assignment.id == assignment_id).first()
        if assignment is None:
            raise NotFoundError("Assignment", assignment_id)
        return assignment

    def list_educator_assignments(self, educator_id: str) -> List[Tuple[Assignment, str, int]]:
        """Newest first, as (assignment, class name, submission count)."""
        counts = (
            self.db.query(Submission.assignment_id, func.count(Submission.id).label("submissions"))
            .group_by(Submission.assignment_id)
            .subquery()
        )
        rows = (
            self.db.query(Assignment, Class.name, func.coalesce(counts.c.submissions, 0))
            .join(Class, Class.id == Assignment.class_id)
            .outerjoin(counts, counts.c.assignment_id == Assignment.id)
            .filter(Assignment.educator_id == educator_id)
            .order_by(Assignment.created_at.desc(), Assignment.title)
            .all()
        )
        return [(assignment, class_name, int(count)) for assignment, class_name, count in rows]

    def list_student_assignments(self, student_id: str) -> List[Tuple[Assignment, str, Optional[Submission]]]:
        """Assignments of the student's classes by due date (undated last), with the student's submission."""
        rows = (
            self.db.query(Assignment, Class.name)
            .join(Class, Class.id == Assignment.class_id)
            .join(ClassEnrollment, ClassEnrollment.class_id == Class.id)
            .filter(ClassEnrollment.student_id == student_id)
            .all()
        )
        submissions = {
            s.assignment_id: s
            for s in self.db.query(Submission).filter(Submission.student_id == student_id).all()
        }
        rows.sort(key=lambda row: (row[0].due_date is None, row[0].due_date or datetime.min, row[0].title))
        return [(assignment, class_name, submissions.get(assignment.id)) for assignment, class_name in rows]

    def delete_assignment(self, assignment_id: str, educator_id: str) -> None:
        """
        Delete an assignment and its submissions.

        Attachment blobs are removed after the rows are gone; a blob that
        cannot be removed is logged and left behind. XP already credited for
        graded submissions stays on the students' progress.
        """
        assignment = self.get_assignment(assignment_id)
        if assignment.educator_id != educator_id:
            raise PermissionDeniedError("Assignment belongs to another educator")

        keys = self.attachment_keys(assignment)
        with store_errors(self.db, "delete assignment"):
            self.db.delete(assignment)
            self.db.commit()
        logger.info(f"Assignment {assignment_id} deleted with its submissions")
        self.remove_blobs(keys)

    @staticmethod
    def attachment_keys(assignment: Assignment) -> List[str]:
        return [key for submission in assignment.submissions for key in submission.attachments]

    def remove_blobs(self, keys: List[str]) -> None:
        """Remove attachment blobs of deleted rows; failures are logged and skipped."""
        if self.file_store is None:
            return
        for key in keys:
            try:
                self.file_store.remove(key)
            except ObjectNotFoundError:
                pass
            except StorageError as e:
                logger.warning(f"Could not remove attachment {key} of deleted assignment: {e}")
