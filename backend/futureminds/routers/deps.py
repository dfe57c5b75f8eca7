"""Dependencies wiring sessions and the file store into the services."""
from fastapi import Depends
from sqlalchemy.orm import Session

from futureminds.database import get_db
from futureminds.storage import FileStore, get_file_store
from futureminds.services import (
    ApprovalService, AssignmentService, ClassService, DashboardService, GradingService,
    ProgressService, ProjectService, SubmissionService,
)


def get_assignment_service(
    db: Session = Depends(get_db),
    file_store: FileStore = Depends(get_file_store),
) -> AssignmentService:
    return AssignmentService(db, file_store)


def get_class_service(
    db: Session = Depends(get_db),
    assignments: AssignmentService = Depends(get_assignment_service),
) -> ClassService:
    return ClassService(db, assignments)


def get_submission_service(
    db: Session = Depends(get_db),
    file_store: FileStore = Depends(get_file_store),
) -> SubmissionService:
    return SubmissionService(db, file_store)


def get_progress_service(db: Session = Depends(get_db)) -> ProgressService:
    return ProgressService(db)


def get_grading_service(
    db: Session = Depends(get_db),
    progress: ProgressService = Depends(get_progress_service),
) -> GradingService:
    return GradingService(db, progress)


def get_approval_service(db: Session = Depends(get_db)) -> ApprovalService:
    return ApprovalService(db)


def get_project_service(
    db: Session = Depends(get_db),
    approvals: ApprovalService = Depends(get_approval_service),
    progress: ProgressService = Depends(get_progress_service),
) -> ProjectService:
    return ProjectService(db, approvals, progress)


def get_dashboard_service(db: Session = Depends(get_db)) -> DashboardService:
    return DashboardService(db)
