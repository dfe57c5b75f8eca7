"""Test cases for parent approvals and family links."""

import pytest

from futureminds.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from futureminds.models import ApprovalRequestType, ApprovalStatus, AppRole, ParentChildLink

from conftest import make_user


@pytest.fixture
def pending_request(approval_service, student):
    return approval_service.create_request(
        student.id, ApprovalRequestType.publish_project, {"project_name": "Line Follower"}
    )


class TestCreateRequest:
    """Test cases for submitting a request."""

    def test_new_request_is_pending(self, pending_request, student):
        assert pending_request.status == ApprovalStatus.pending
        assert pending_request.child_id == student.id
        assert pending_request.parent_id is None
        assert pending_request.request_data == {"project_name": "Line Follower"}

    def test_accepts_type_names(self, approval_service, student):
        request = approval_service.create_request(student.id, "join_challenge")
        assert request.request_type == ApprovalRequestType.join_challenge
        assert request.request_data == {}

    def test_unknown_type_rejected(self, approval_service, student):
        with pytest.raises(ValidationError) as exc_info:
            approval_service.create_request(student.id, "buy_robot")
        assert "request_type" in exc_info.value.errors

    def test_payload_must_be_object(self, approval_service, student):
        with pytest.raises(ValidationError):
            approval_service.create_request(student.id, "share_content", ["not", "a", "dict"])

    def test_pending_listing(self, approval_service, pending_request, student, family_link, parent):
        approval_service.resolve(pending_request.id, parent.id, "approved")
        second = approval_service.create_request(student.id, ApprovalRequestType.share_content)

        assert [r.id for r in approval_service.list_pending(student.id)] == [second.id]
        assert len(approval_service.list_for_child(student.id)) == 2


class TestResolve:
    """Test cases for approving and rejecting."""

    def test_approve(self, approval_service, pending_request, family_link, parent):
        resolved = approval_service.resolve(pending_request.id, parent.id, "approved")

        assert resolved.status == ApprovalStatus.approved
        assert resolved.parent_id == parent.id
        assert resolved.reviewed_at is not None

    def test_reject(self, approval_service, pending_request, family_link, parent):
        resolved = approval_service.resolve(pending_request.id, parent.id, ApprovalStatus.rejected)
        assert resolved.status == ApprovalStatus.rejected

    def test_second_decision_conflicts(self, approval_service, pending_request, family_link, parent):
        approval_service.resolve(pending_request.id, parent.id, "approved")

        with pytest.raises(ConflictError):
            approval_service.resolve(pending_request.id, parent.id, "rejected")
        assert approval_service.get_request(pending_request.id).status == ApprovalStatus.approved

    def test_unlinked_parent_denied(self, db_session, approval_service, pending_request):
        stranger = make_user(db_session, "stranger@example.com", AppRole.parent)

        with pytest.raises(PermissionDeniedError):
            approval_service.resolve(pending_request.id, stranger.id, "approved")
        assert approval_service.get_request(pending_request.id).is_pending

    @pytest.mark.parametrize("decision", ["pending", "maybe", ""])
    def test_decision_must_be_terminal(self, approval_service, pending_request, family_link, parent, decision):
        with pytest.raises(ValidationError):
            approval_service.resolve(pending_request.id, parent.id, decision)

    def test_unknown_request(self, approval_service, parent):
        with pytest.raises(NotFoundError):
            approval_service.resolve("missing", parent.id, "approved")


class TestFamilyLinks:
    """Test cases for linking parents to children."""

    def test_link_by_email(self, db_session, approval_service, parent, student):
        link = approval_service.link_child(parent.id, "ada@example.com")

        assert link.child_id == student.id
        assert approval_service.is_parent_of(parent.id, student.id)
        assert approval_service.children_of(parent.id) == [student.id]

    def test_link_is_idempotent(self, db_session, approval_service, parent, student):
        first = approval_service.link_child(parent.id, "ada@example.com")
        second = approval_service.link_child(parent.id, "ada@example.com")

        assert first.id == second.id
        assert db_session.query(ParentChildLink).count() == 1

    def test_only_students_can_be_linked(self, approval_service, parent, educator):
        with pytest.raises(NotFoundError):
            approval_service.link_child(parent.id, educator.email)
        with pytest.raises(NotFoundError):
            approval_service.link_child(parent.id, "nobody@example.com")
