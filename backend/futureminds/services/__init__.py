"""Domain services; each takes a SQLAlchemy session and owns one area of the workflow."""

from .activity import ActivityLogService
from .approvals import ApprovalService
from .assignments import AssignmentService
from .classes import ClassService
from .dashboards import DashboardService
from .grading import GradingService
from .progress import ProgressService
from .projects import ProjectService
from .submissions import SubmissionService

__all__ = [
    "ActivityLogService",
    "ApprovalService",
    "AssignmentService",
    "ClassService",
    "DashboardService",
    "GradingService",
    "ProgressService",
    "ProjectService",
    "SubmissionService",
]
