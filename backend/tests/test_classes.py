"""Test cases for classes, enrollments and assignments."""

from datetime import datetime
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from futureminds.errors import NotFoundError, PermissionDeniedError, StoreError, ValidationError
from futureminds.models import AppRole, Assignment, Class, ClassEnrollment, Submission, SubmissionStatus
from futureminds.services.grading import GradingService

from conftest import make_user


class TestClassService:
    """Test cases for class management."""

    def test_create_and_list(self, class_service, educator, student):
        klass = class_service.create_class(educator.id, "  Coding Club ", subject="Computing")
        class_service.enroll(klass.id, student.id, educator.id)

        rows = class_service.list_classes(educator.id)

        assert [(c.name, count) for c, count in rows] == [("Coding Club", 1)]

    def test_name_required(self, class_service, educator):
        with pytest.raises(ValidationError):
            class_service.create_class(educator.id, "   ")

    def test_enroll_is_idempotent(self, db_session, class_service, sample_class, educator, student):
        first = class_service.enroll(sample_class.id, student.id, educator.id)
        second = class_service.enroll(sample_class.id, student.id, educator.id)

        assert first.id == second.id
        assert db_session.query(ClassEnrollment).count() == 1

    def test_enroll_requires_student_account(self, class_service, sample_class, educator, parent):
        with pytest.raises(NotFoundError):
            class_service.enroll(sample_class.id, parent.id, educator.id)

    def test_only_owner_manages_class(self, db_session, class_service, sample_class, student):
        stranger = make_user(db_session, "other.teacher@example.com", AppRole.educator)

        with pytest.raises(PermissionDeniedError):
            class_service.enroll(sample_class.id, student.id, stranger.id)
        with pytest.raises(PermissionDeniedError):
            class_service.delete_class(sample_class.id, stranger.id)

    def test_student_classes(self, class_service, sample_class, enrollment, student, other_student):
        assert [c.id for c in class_service.list_student_classes(student.id)] == [sample_class.id]
        assert class_service.list_student_classes(other_student.id) == []

    def test_delete_class_removes_everything(self, db_session, class_service, submitted, file_store,
                                             sample_class, educator):
        key = submitted.attachments[0]

        class_service.delete_class(sample_class.id, educator.id)

        assert db_session.query(Assignment).count() == 0
        assert db_session.query(Submission).count() == 0
        assert db_session.query(ClassEnrollment).count() == 0
        assert not file_store.exists(key)

    def test_failed_class_delete_keeps_assignments(self, db_session, class_service, submitted, file_store,
                                                   sample_class, sample_assignment, educator):
        key = submitted.attachments[0]
        real_commit = db_session.commit

        def fail_once_class_is_deleted():
            if any(isinstance(obj, Class) for obj in db_session.deleted):
                raise OperationalError("COMMIT", {}, Exception("disk full"))
            real_commit()

        with patch.object(db_session, "commit", side_effect=fail_once_class_is_deleted):
            with pytest.raises(StoreError):
                class_service.delete_class(sample_class.id, educator.id)

        db_session.expire_all()
        assert db_session.get(Class, sample_class.id) is not None
        assert db_session.get(Assignment, sample_assignment.id) is not None
        assert db_session.query(Submission).count() == 1
        assert db_session.query(ClassEnrollment).count() == 1
        assert file_store.exists(key)


class TestAssignmentService:
    """Test cases for assignment management."""

    def test_create_with_defaults(self, assignment_service, sample_class, educator):
        assignment = assignment_service.create_assignment(educator.id, sample_class.id, "Wire an LED")

        assert assignment.xp_reward == 100
        assert assignment.title == "Wire an LED"

    @pytest.mark.parametrize("title,xp,fields", [
        ("", 100, {"title"}),
        ("ok", -1, {"xp_reward"}),
        ("ok", 10001, {"xp_reward"}),
        (" ", 2.5, {"title", "xp_reward"}),
    ])
    def test_validation(self, assignment_service, sample_class, educator, title, xp, fields):
        with pytest.raises(ValidationError) as exc_info:
            assignment_service.create_assignment(educator.id, sample_class.id, title, xp_reward=xp)
        assert set(exc_info.value.errors) == fields

    def test_class_must_belong_to_educator(self, db_session, assignment_service, sample_class):
        stranger = make_user(db_session, "other.teacher@example.com", AppRole.educator)

        with pytest.raises(PermissionDeniedError):
            assignment_service.create_assignment(stranger.id, sample_class.id, "Nope")
        with pytest.raises(NotFoundError):
            assignment_service.create_assignment(stranger.id, "missing", "Nope")

    def test_educator_listing_counts_submissions(self, assignment_service, submitted, sample_assignment, educator):
        rows = assignment_service.list_educator_assignments(educator.id)

        assert [(a.id, name, count) for a, name, count in rows] == [(sample_assignment.id, "Robotics 101", 1)]

    def test_student_listing_orders_by_due_date(self, assignment_service, sample_assignment, sample_class,
                                                educator, student, submitted):
        soon = assignment_service.create_assignment(
            educator.id, sample_class.id, "Quiz", due_date=datetime(2026, 11, 1)
        )
        later = assignment_service.create_assignment(
            educator.id, sample_class.id, "Project", due_date=datetime(2026, 12, 1)
        )

        rows = assignment_service.list_student_assignments(student.id)

        assert [a.id for a, _, _ in rows] == [soon.id, later.id, sample_assignment.id]
        assert rows[2][2].id == submitted.id
        assert rows[0][2] is None

    def test_delete_keeps_awarded_xp(self, db_session, assignment_service, submitted, sample_assignment,
                                     educator, student, file_store):
        GradingService(db_session).grade(submitted.id, "Nice", 80, educator.id)
        key = submitted.attachments[0]

        assignment_service.delete_assignment(sample_assignment.id, educator.id)

        assert db_session.query(Submission).count() == 0
        assert not file_store.exists(key)
        db_session.refresh(student.progress)
        assert student.progress.xp == 80

    def test_delete_survives_missing_blob(self, db_session, assignment_service, submitted, sample_assignment,
                                          educator, file_store):
        file_store.remove(submitted.attachments[0])

        assignment_service.delete_assignment(sample_assignment.id, educator.id)

        assert db_session.query(Assignment).count() == 0

    def test_graded_status_visible_to_student(self, db_session, assignment_service, submitted, educator, student):
        GradingService(db_session).grade(submitted.id, "Nice", 10, educator.id)

        _, _, submission = assignment_service.list_student_assignments(student.id)[0]

        assert submission.status == SubmissionStatus.graded
