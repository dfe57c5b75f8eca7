"""Shared enums for models and auth."""
import enum


class AppRole(enum.Enum):
    student = "student"
    parent = "parent"
    educator = "educator"
    admin = "admin"


class SubmissionStatus(enum.Enum):
    not_started = "not_started"
    in_progress = "in_progress"
    submitted = "submitted"
    graded = "graded"


class ApprovalRequestType(enum.Enum):
    publish_project = "publish_project"
    share_content = "share_content"
    join_challenge = "join_challenge"


class ApprovalStatus(enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class ActivityType(enum.Enum):
    lesson_started = "lesson_started"
    lesson_completed = "lesson_completed"
    project_created = "project_created"
    project_published = "project_published"
    xp_earned = "xp_earned"
    xp_adjusted = "xp_adjusted"
    badge_earned = "badge_earned"
