"""Test configuration and fixtures."""

import os

# The application engine is built at import time; keep it off PostgreSQL
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import bcrypt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from futureminds.database import build_engine, create_tables, drop_tables, get_db
from futureminds.auth import AuthService, User
from futureminds.models import (
    AppRole, Assignment, Class, ClassEnrollment, ParentChildLink, Profile, UserProgress, UserRole,
)
from futureminds.services import (
    ActivityLogService, ApprovalService, AssignmentService, ClassService, GradingService,
    ProgressService, SubmissionService,
)
from futureminds.storage import LocalFileStore, get_file_store


# Use in-memory SQLite for testing
TEST_DATABASE_URL = "sqlite://"


@pytest.fixture
def engine():
    """Create a fresh test database per test."""
    engine = build_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    create_tables(bind=engine)
    yield engine
    drop_tables(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    """Create test database session."""
    session = session_factory()
    yield session
    session.close()


TEST_PASSWORD = "Passw0rd!x"
# Low-cost hash so fixtures do not pay full bcrypt rounds per user
TEST_PASSWORD_HASH = bcrypt.hashpw(TEST_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


def make_user(db_session, email, role, display_name=None):
    """Create an account the way registration does."""
    user = User(email=email, hashed_password=TEST_PASSWORD_HASH)
    user.profile = Profile(display_name=display_name or email.split("@")[0].title())
    user.roles = [UserRole(role=role)]
    user.progress = UserProgress(xp=0, level=1, coins=0, lessons_completed=0, projects_completed=0)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def educator(db_session):
    return make_user(db_session, "teacher@example.com", AppRole.educator, "Ms. Rivera")


@pytest.fixture
def student(db_session):
    return make_user(db_session, "ada@example.com", AppRole.student, "Ada")


@pytest.fixture
def other_student(db_session):
    return make_user(db_session, "grace@example.com", AppRole.student, "Grace")


@pytest.fixture
def parent(db_session):
    return make_user(db_session, "parent@example.com", AppRole.parent, "Pat")


@pytest.fixture
def sample_class(db_session, educator):
    klass = Class(educator_id=educator.id, name="Robotics 101", subject="Science", grade_level="5")
    db_session.add(klass)
    db_session.commit()
    db_session.refresh(klass)
    return klass


@pytest.fixture
def enrollment(db_session, sample_class, student):
    row = ClassEnrollment(class_id=sample_class.id, student_id=student.id)
    db_session.add(row)
    db_session.commit()
    return row


@pytest.fixture
def sample_assignment(db_session, educator, sample_class, enrollment):
    assignment = Assignment(
        class_id=sample_class.id,
        educator_id=educator.id,
        title="Build a line follower",
        description="Upload your design notes and a photo.",
        xp_reward=100,
    )
    db_session.add(assignment)
    db_session.commit()
    db_session.refresh(assignment)
    return assignment


@pytest.fixture
def family_link(db_session, parent, student):
    link = ParentChildLink(parent_id=parent.id, child_id=student.id)
    db_session.add(link)
    db_session.commit()
    return link


@pytest.fixture
def file_store(tmp_path):
    return LocalFileStore(root=str(tmp_path), bucket="assignment-submissions", max_file_size=1024 * 1024)


@pytest.fixture
def activity_service(db_session):
    return ActivityLogService(db_session)


@pytest.fixture
def progress_service(db_session):
    return ProgressService(db_session)


@pytest.fixture
def submission_service(db_session, file_store):
    return SubmissionService(db_session, file_store)


@pytest.fixture
def grading_service(db_session, progress_service):
    return GradingService(db_session, progress_service)


@pytest.fixture
def approval_service(db_session):
    return ApprovalService(db_session)


@pytest.fixture
def assignment_service(db_session, file_store):
    return AssignmentService(db_session, file_store)


@pytest.fixture
def class_service(db_session, assignment_service):
    return ClassService(db_session, assignment_service)


@pytest.fixture
def submitted(submission_service, sample_assignment, student):
    """A submission with one attachment, submitted by the student."""
    submission_service.attach_files(student.id, [("notes.txt", b"design notes")], assignment_id=sample_assignment.id)
    return submission_service.submit(student.id, assignment_id=sample_assignment.id)


@pytest.fixture
def client(session_factory, file_store):
    """API client sharing the test database and file store."""
    from futureminds.main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_store] = lambda: file_store

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(db_session):
    """Build bearer headers for a user."""
    def _headers(user):
        token = AuthService(db_session).access_token_for(user)
        return {"Authorization": f"Bearer {token}"}
    return _headers
