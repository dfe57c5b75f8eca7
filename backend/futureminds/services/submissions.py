"""
Student submissions and their attachments.

One submission row exists per (assignment, student). It is created on the
first attachment or the first explicit submit, whichever comes first:
attachment-created rows start ``in_progress``, submit-created rows are
stored directly as ``submitted``.

Example:
    >>> service = SubmissionService(db, store)
    >>> service.attach_files(student_id, [("essay.pdf", data)], assignment_id=assignment_id)
    >>> service.submit(student_id, assignment_id=assignment_id)
"""

import logging
from typing import BinaryIO, List, Optional, Sequence, Tuple, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import (
    ConflictError, NotFoundError, PartialUploadError, PermissionDeniedError, StoreError, ValidationError,
)
from ..models import Assignment, ClassEnrollment, Submission, SubmissionStatus
from ..storage import FileStore, ObjectNotFoundError, StorageError, submission_file_key
from .base import store_errors, utcnow

logger = logging.getLogger(__name__)

UploadItem = Tuple[str, Union[bytes, BinaryIO]]


class SubmissionService:
    def __init__(self, db: Session, file_store: FileStore):
        self.db = db
        self.file_store = file_store

    # Lookups

    def get_submission(self, submission_id: str) -> Submission:
        submission = self.db.query(Submission).filter(Submission.id == submission_id).first()
        if submission is None:
            raise NotFoundError("Submission", submission_id)
        return submission

    def find_submission(self, assignment_id: str, student_id: str) -> Optional[Submission]:
        """Return the student's submission, or ``None`` when there is none yet."""
        return (
            self.db.query(Submission)
            .filter(Submission.assignment_id == assignment_id, Submission.student_id == student_id)
            .first()
        )

    def _assignment_for_student(self, assignment_id: str, student_id: str) -> Assignment:
        assignment = self.db.query(Assignment).filter(Assignment.id == assignment_id).first()
        if assignment is None:
            raise NotFoundError("Assignment", assignment_id)
        enrolled = (
            self.db.query(ClassEnrollment.id)
            .filter(ClassEnrollment.class_id == assignment.class_id, ClassEnrollment.student_id == student_id)
            .first()
        )
        if enrolled is None:
            raise PermissionDeniedError("Student is not enrolled in this assignment's class")
        return assignment

    def _owned_submission(self, submission_id: str, student_id: str) -> Submission:
        submission = self.get_submission(submission_id)
        if submission.student_id != student_id:
            raise PermissionDeniedError("Submission belongs to another student")
        return submission

    def get_or_create_submission(
        self,
        assignment_id: str,
        student_id: str,
        initial_status: SubmissionStatus = SubmissionStatus.in_progress,
    ) -> Submission:
        """
        Look up the student's submission, inserting it when absent.

        Two concurrent first calls race on the (assignment_id, student_id)
        unique constraint; the loser re-reads the winner's row.
        """
        self._assignment_for_student(assignment_id, student_id)
        existing = self.find_submission(assignment_id, student_id)
        if existing is not None:
            return existing

        submission = Submission(
            assignment_id=assignment_id,
            student_id=student_id,
            status=initial_status,
            file_urls=[],
        )
        if initial_status == SubmissionStatus.submitted:
            submission.submitted_at = utcnow()
        try:
            self.db.add(submission)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = self.find_submission(assignment_id, student_id)
            if existing is None:
                raise StoreError("Failed to create submission")
            return existing
        with store_errors(self.db, "create submission"):
            self.db.refresh(submission)
        logger.info(f"Created {initial_status.value} submission {submission.id} for assignment {assignment_id}")
        return submission

    def _resolve(self, student_id: str, submission_id: Optional[str], assignment_id: Optional[str],
                 initial_status: SubmissionStatus) -> Submission:
        if bool(submission_id) == bool(assignment_id):
            raise ValidationError({"submission": "Provide either a submission id or an assignment id"})
        if submission_id:
            return self._owned_submission(submission_id, student_id)
        return self.get_or_create_submission(assignment_id, student_id, initial_status=initial_status)

    # Attachments

    def attach_files(
        self,
        student_id: str,
        files: Sequence[UploadItem],
        submission_id: Optional[str] = None,
        assignment_id: Optional[str] = None,
    ) -> List[str]:
        """
        Upload each file and append its key to the submission in upload order.

        A file that fails to upload is skipped; files stored before and after
        it stay stored and referenced, and the caller gets a
        ``PartialUploadError`` naming both groups.

        Returns:
            The submission's full ``file_urls`` after the batch.
        """
        if not files:
            raise ValidationError({"files": "At least one file is required"})

        submission = self._resolve(student_id, submission_id, assignment_id, SubmissionStatus.in_progress)
        if submission.is_graded:
            raise ConflictError("Graded submissions cannot take new attachments")

        existing = submission.attachments
        uploaded: List[str] = []
        failed = {}
        for filename, data in files:
            key = self._unique_key(student_id, submission.id, filename, existing + uploaded)
            try:
                self.file_store.upload(key, data)
            except StorageError as e:
                logger.warning(f"Upload of {filename} to submission {submission.id} failed: {e}")
                failed[filename] = str(e)
                continue
            uploaded.append(key)

        if not uploaded:
            raise StoreError(f"None of the {len(failed)} files could be uploaded")

        submission.file_urls = existing + uploaded
        if submission.status == SubmissionStatus.not_started:
            submission.status = SubmissionStatus.in_progress
        try:
            with store_errors(self.db, "save attachments"):
                self.db.commit()
        except StoreError:
            self._discard_blobs(uploaded)
            raise
        self.db.refresh(submission)
        logger.info(f"Attached {len(uploaded)} file(s) to submission {submission.id}")

        if failed:
            raise PartialUploadError(uploaded=uploaded, failed=failed)
        return submission.attachments

    def _unique_key(self, student_id: str, submission_id: str, filename: str, taken: List[str]) -> str:
        key = submission_file_key(student_id, submission_id, filename)
        if key not in taken:
            return key
        stamp = int(key.split("/")[-1].split("_", 1)[0])
        while key in taken:
            stamp += 1
            key = submission_file_key(student_id, submission_id, filename, now_ms=stamp)
        return key

    def _discard_blobs(self, keys: List[str]) -> None:
        for key in keys:
            try:
                self.file_store.remove(key)
            except StorageError as e:
                logger.warning(f"Could not remove orphaned blob {key}: {e}")

    def remove_file(self, student_id: str, submission_id: str, file_url: str) -> List[str]:
        """
        Delete the blob, then drop its key from the submission.

        If the file store refuses the deletion the reference is kept. A blob
        that is already gone counts as deleted.
        """
        submission = self._owned_submission(submission_id, student_id)
        if submission.is_graded:
            raise ConflictError("Graded submissions cannot be changed")
        if file_url not in submission.attachments:
            raise NotFoundError("Attachment", file_url)

        try:
            self.file_store.remove(file_url)
        except ObjectNotFoundError:
            logger.warning(f"Blob {file_url} was already missing; dropping reference")
        except StorageError as e:
            raise StoreError(f"Failed to delete {file_url}") from e

        submission.file_urls = [key for key in submission.attachments if key != file_url]
        with store_errors(self.db, "remove attachment"):
            self.db.commit()
        self.db.refresh(submission)
        return submission.attachments

    def download_file(self, submission_id: str, file_url: str, requester_id: str) -> bytes:
        """Return an attachment to its student or to the educator who owns the assignment."""
        submission = self.get_submission(submission_id)
        if requester_id not in (submission.student_id, submission.assignment.educator_id):
            raise PermissionDeniedError("Not allowed to read this submission")
        if file_url not in submission.attachments:
            raise NotFoundError("Attachment", file_url)
        try:
            return self.file_store.download(file_url)
        except ObjectNotFoundError as e:
            raise NotFoundError("File", file_url) from e
        except StorageError as e:
            raise StoreError(f"Failed to read {file_url}") from e

    # Status

    def submit(self, student_id: str, submission_id: Optional[str] = None,
               assignment_id: Optional[str] = None) -> Submission:
        """Mark the submission ``submitted``; resubmitting is allowed until it is graded."""
        submission = self._resolve(student_id, submission_id, assignment_id, SubmissionStatus.submitted)
        if submission.is_graded:
            raise ConflictError("Submission has already been graded")

        submission.status = SubmissionStatus.submitted
        submission.submitted_at = utcnow()
        with store_errors(self.db, "submit assignment"):
            self.db.commit()
        self.db.refresh(submission)
        logger.info(f"Submission {submission.id} submitted")
        return submission
