"""Educator grading of submissions."""

import logging
from datetime import datetime
from typing import List, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..errors import ConflictError, FutureMindsError, NotFoundError, PermissionDeniedError, ValidationError
from ..models import Assignment, Profile, Submission, SubmissionStatus
from .base import store_errors, utcnow
from .progress import ProgressService

logger = logging.getLogger(__name__)

MAX_FEEDBACK_LENGTH = 2000
MAX_XP_AWARD = 10000
UNKNOWN_STUDENT = "Unknown Student"


def validate_grade(feedback, xp_awarded) -> str:
    """Check both fields before any write; returns the trimmed feedback."""
    errors = {}
    if feedback is None:
        feedback = ""
    if not isinstance(feedback, str):
        errors["feedback"] = "Feedback must be text"
    elif len(feedback.strip()) > MAX_FEEDBACK_LENGTH:
        errors["feedback"] = f"Feedback must be less than {MAX_FEEDBACK_LENGTH} characters"

    if not isinstance(xp_awarded, int) or isinstance(xp_awarded, bool):
        errors["xp_awarded"] = "XP must be a whole number"
    elif xp_awarded < 0:
        errors["xp_awarded"] = "XP cannot be negative"
    elif xp_awarded > MAX_XP_AWARD:
        errors["xp_awarded"] = f"XP cannot exceed {MAX_XP_AWARD}"

    if errors:
        raise ValidationError(errors)
    return feedback.strip()


def _sort_key(submission: Submission):
    # Unsubmitted rows first (descending-with-nulls-first), then newest, ties by id
    submitted_at = submission.submitted_at
    if submitted_at is None:
        return (0, 0.0, submission.id)
    if isinstance(submitted_at, datetime):
        return (1, -submitted_at.timestamp(), submission.id)
    return (1, 0.0, submission.id)


class GradingService:
    def __init__(self, db: Session, progress: ProgressService = None):
        self.db = db
        self.progress = progress or ProgressService(db)

    def _owned_assignment(self, assignment_id: str, educator_id: str) -> Assignment:
        assignment = self.db.query(Assignment).filter(Assignment.id == assignment_id).first()
        if assignment is None:
            raise NotFoundError("Assignment", assignment_id)
        if assignment.educator_id != educator_id:
            raise PermissionDeniedError("Assignment belongs to another educator")
        return assignment

    def list_submissions(self, assignment_id: str, educator_id: str) -> List[Tuple[Submission, str]]:
        """
        Submissions for an assignment paired with each student's display name.

        Ordered by ``submitted_at`` descending. Rows never submitted come
        first, matching a descending sort that puts NULLs first; ``id``
        breaks ties.
        """
        self._owned_assignment(assignment_id, educator_id)
        submissions = self.db.query(Submission).filter(Submission.assignment_id == assignment_id).all()
        if not submissions:
            return []

        student_ids = {s.student_id for s in submissions}
        names = dict(
            self.db.query(Profile.user_id, Profile.display_name)
            .filter(Profile.user_id.in_(student_ids))
            .all()
        )
        ordered = sorted(submissions, key=_sort_key)
        return [(s, names.get(s.student_id, UNKNOWN_STUDENT)) for s in ordered]

    def grade(self, submission_id: str, feedback: str, xp_awarded: int, educator_id: str) -> Submission:
        """
        Record feedback, mark the submission graded and credit the student.

        The submission update and the progress increment commit together.
        Re-grading credits only the difference from the previous award, and
        the update is conditional on that previous award so two concurrent
        graders cannot both apply a difference.

        Raises:
            ValidationError: Feedback longer than 2000 characters or XP outside 0..10000.
            NotFoundError: Unknown submission or missing progress row.
            PermissionDeniedError: The educator does not own the assignment.
            ConflictError: The submission was graded concurrently.
            StoreError: The database failed; nothing was applied.
        """
        feedback = validate_grade(feedback, xp_awarded)

        submission = self.db.query(Submission).filter(Submission.id == submission_id).first()
        if submission is None:
            raise NotFoundError("Submission", submission_id)
        assignment = self._owned_assignment(submission.assignment_id, educator_id)

        previous = submission.xp_awarded
        delta = xp_awarded - (previous or 0)
        unchanged = Submission.xp_awarded.is_(None) if previous is None else Submission.xp_awarded == previous

        try:
            with store_errors(self.db, "grade submission"):
                result = self.db.execute(
                    update(Submission)
                    .where(Submission.id == submission.id, unchanged)
                    .values(
                        status=SubmissionStatus.graded,
                        feedback=feedback,
                        graded_at=utcnow(),
                        xp_awarded=xp_awarded,
                    )
                )
                if result.rowcount != 1:
                    raise ConflictError("Submission was graded by someone else; reload and try again")
                if delta:
                    self.progress.apply_delta(
                        submission.student_id,
                        xp=delta,
                        source={"source": "assignment_graded", "assignment_id": assignment.id},
                        autocommit=False,
                        allow_xp_decrease=True,
                    )
            self.progress.commit()
        except FutureMindsError:
            self.db.rollback()
            self.progress.discard()
            raise

        self.db.refresh(submission)
        logger.info(
            f"Graded submission {submission.id}: {xp_awarded} XP"
            + (f" (adjusted by {delta})" if previous is not None else "")
        )
        return submission
