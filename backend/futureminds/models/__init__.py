"""SQLAlchemy models for FutureMinds."""

from .enums import AppRole, SubmissionStatus, ApprovalRequestType, ApprovalStatus, ActivityType
from .user import Profile, UserRole, ParentChildLink
from .classroom import Class, ClassEnrollment
from .assignment import Assignment
from .submission import Submission
from .progress import UserProgress, ActivityLog, XP_PER_LEVEL
from .approval import ApprovalRequest

__all__ = [
    "AppRole",
    "SubmissionStatus",
    "ApprovalRequestType",
    "ApprovalStatus",
    "ActivityType",
    "Profile",
    "UserRole",
    "ParentChildLink",
    "Class",
    "ClassEnrollment",
    "Assignment",
    "Submission",
    "UserProgress",
    "ActivityLog",
    "XP_PER_LEVEL",
    "ApprovalRequest",
]

# Account tables referenced by the relationships above
from ..auth.models import User, RefreshToken  # noqa: E402,F401
