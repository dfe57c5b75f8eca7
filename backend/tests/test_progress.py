"""Test cases for progress counters and the activity log."""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from futureminds.errors import NotFoundError, StoreError, ValidationError
from futureminds.models import ActivityLog, ActivityType, ApprovalRequest, ApprovalStatus
from futureminds.services import ActivityLogService, ProgressService, ProjectService
from futureminds.services.progress import LESSON_XP_REWARD
from futureminds.services.projects import PROJECT_XP_REWARD


class TestApplyDelta:
    """Test cases for additive progress updates."""

    def test_deltas_add(self, progress_service, student):
        progress_service.apply_delta(student.id, xp=30, coins=5)
        progress = progress_service.apply_delta(student.id, xp=20, lessons_completed=1)

        assert progress.xp == 50
        assert progress.coins == 5
        assert progress.lessons_completed == 1
        assert progress.projects_completed == 0

    def test_level_is_replaced(self, progress_service, student):
        progress = progress_service.apply_delta(student.id, xp=10, level=4)
        assert progress.level == 4
        progress = progress_service.apply_delta(student.id, level=2)
        assert progress.level == 2
        assert progress.xp == 10

    def test_two_services_do_not_lose_updates(self, session_factory, student):
        first, second = session_factory(), session_factory()
        try:
            a, b = ProgressService(first), ProgressService(second)
            a.get(student.id)
            b.get(student.id)
            a.apply_delta(student.id, xp=40)
            progress = b.apply_delta(student.id, xp=60)
        finally:
            first.close()
            second.close()

        assert progress.xp == 100

    @pytest.mark.parametrize("field,value", [
        ("xp", -1), ("xp", 10001), ("coins", -5), ("lessons_completed", 1.5), ("projects_completed", "2"),
    ])
    def test_out_of_range_rejected(self, db_session, progress_service, student, field, value):
        with pytest.raises(ValidationError) as exc_info:
            progress_service.apply_delta(student.id, **{field: value})

        assert field in exc_info.value.errors
        db_session.expire_all()
        assert progress_service.get(student.id).xp == 0

    def test_every_bad_field_reported(self, progress_service, student):
        with pytest.raises(ValidationError) as exc_info:
            progress_service.apply_delta(student.id, xp=-1, coins=20000, level=0)
        assert set(exc_info.value.errors) == {"xp", "coins", "level"}

    def test_unknown_user(self, progress_service):
        with pytest.raises(NotFoundError):
            progress_service.apply_delta("nobody", xp=10)
        with pytest.raises(NotFoundError):
            progress_service.get("nobody")


class TestActivityEntries:
    """Test cases for the entries progress writes."""

    def test_xp_gain_logged_once(self, db_session, progress_service, student):
        progress_service.apply_delta(student.id, xp=25, source={"source": "lesson_completed", "lesson_id": "l-1"})

        entries = db_session.query(ActivityLog).all()
        assert len(entries) == 1
        assert entries[0].activity_type == ActivityType.xp_earned
        assert entries[0].activity_data == {"xp_gained": 25, "source": "lesson_completed", "lesson_id": "l-1"}

    def test_no_entry_without_xp(self, db_session, progress_service, student):
        progress_service.apply_delta(student.id, coins=3)
        assert db_session.query(ActivityLog).count() == 0

    def test_staged_entries_wait_for_commit(self, db_session, progress_service, student):
        assert progress_service.apply_delta(student.id, xp=10, autocommit=False) is None
        assert db_session.query(ActivityLog).count() == 0

        progress_service.commit()

        assert db_session.query(ActivityLog).count() == 1
        assert progress_service.get(student.id).xp == 10

    def test_discard_drops_staged_entries(self, db_session, progress_service, student):
        progress_service.apply_delta(student.id, xp=10, autocommit=False)
        db_session.rollback()
        progress_service.discard()
        progress_service.commit()

        assert db_session.query(ActivityLog).count() == 0
        assert progress_service.get(student.id).xp == 0

    def test_failed_commit_drops_staged_entries(self, db_session, progress_service, student):
        with patch.object(db_session, "commit", side_effect=OperationalError("COMMIT", {}, Exception("disk full"))):
            with pytest.raises(StoreError):
                progress_service.apply_delta(student.id, xp=10)

        progress_service.apply_delta(student.id, xp=5)

        entries = db_session.query(ActivityLog).all()
        assert [e.activity_data["xp_gained"] for e in entries] == [5]
        assert progress_service.get(student.id).xp == 5

    def test_log_failure_does_not_fail_award(self, db_session, student):
        activity = ActivityLogService(db_session)
        service = ProgressService(db_session, activity)
        real_commit = db_session.commit
        calls = []

        def commit_then_fail():
            calls.append(1)
            if len(calls) > 1:
                raise OperationalError("INSERT", {}, Exception("activity table locked"))
            real_commit()

        with patch.object(db_session, "commit", side_effect=commit_then_fail):
            progress = service.apply_delta(student.id, xp=15)

        assert progress.xp == 15
        assert db_session.query(ActivityLog).count() == 0


class TestActivityLog:
    """Test cases for reading the activity log."""

    def test_recent_newest_first_and_limited(self, activity_service, student):
        for i in range(12):
            activity_service.record(student.id, ActivityType.lesson_completed, {"lesson_id": f"l-{i}"})

        recent = activity_service.recent(student.id)

        assert len(recent) == 10
        assert recent[0].activity_data["lesson_id"] == "l-11"
        assert activity_service.recent(student.id, limit=3)[-1].activity_data["lesson_id"] == "l-9"

    def test_recent_is_per_user(self, activity_service, student, other_student):
        activity_service.record(other_student.id, ActivityType.badge_earned, {"badge": "first-circuit"})
        assert activity_service.recent(student.id) == []


class TestPublishProject:
    """Test cases for project publication requests."""

    def test_publish_creates_pending_request_and_rewards(self, db_session, student):
        service = ProjectService(db_session)

        request = service.publish_project(student.id, "Line Follower", "tmpl-robot", "Robot Starter")

        assert request.status == ApprovalStatus.pending
        assert request.request_data["project_name"] == "Line Follower"
        progress = service.progress.get(student.id)
        assert progress.xp == PROJECT_XP_REWARD
        assert progress.projects_completed == 1
        types = sorted(e.activity_type.value for e in db_session.query(ActivityLog).all())
        assert types == ["project_created", "xp_earned"]

    def test_publish_requires_name(self, db_session, student):
        with pytest.raises(ValidationError):
            ProjectService(db_session).publish_project(student.id, "  ", "tmpl-robot")

    def test_failed_reward_leaves_no_request(self, db_session, student):
        service = ProjectService(db_session)

        with patch.object(ProgressService, "apply_delta", side_effect=StoreError("Failed to update progress")):
            with pytest.raises(StoreError):
                service.publish_project(student.id, "Line Follower", "tmpl-robot")

        assert db_session.query(ApprovalRequest).count() == 0
        assert db_session.query(ActivityLog).count() == 0
        assert service.progress.get(student.id).projects_completed == 0

    def test_failed_commit_leaves_nothing(self, db_session, student):
        service = ProjectService(db_session)

        with patch.object(db_session, "commit", side_effect=OperationalError("COMMIT", {}, Exception("disk full"))):
            with pytest.raises(StoreError):
                service.publish_project(student.id, "Line Follower", "tmpl-robot")

        db_session.expire_all()
        assert db_session.query(ApprovalRequest).count() == 0
        assert db_session.query(ActivityLog).count() == 0
        assert service.progress.get(student.id).xp == 0


class TestCompleteLesson:
    """Test cases for lesson completion credit."""

    def test_lesson_credits_xp_and_counter(self, db_session, progress_service, student):
        progress = progress_service.complete_lesson(student.id, "circuits-1")

        assert progress.xp == LESSON_XP_REWARD
        assert progress.lessons_completed == 1
        entry = (
            db_session.query(ActivityLog)
            .filter(ActivityLog.activity_type == ActivityType.lesson_completed)
            .one()
        )
        assert entry.activity_data == {"lesson_id": "circuits-1"}

    def test_failed_credit_logs_nothing(self, db_session, progress_service, student):
        with patch.object(ProgressService, "apply_delta", side_effect=StoreError("Failed to update progress")):
            with pytest.raises(StoreError):
                progress_service.complete_lesson(student.id, "circuits-1")

        assert db_session.query(ActivityLog).count() == 0

    def test_unknown_user(self, db_session, progress_service):
        with pytest.raises(NotFoundError):
            progress_service.complete_lesson("missing", "circuits-1")

        assert db_session.query(ActivityLog).count() == 0
