"""Student and educator dashboard endpoints."""
from fastapi import APIRouter, Depends

from futureminds.auth import User, require_role
from futureminds.models import AppRole
from futureminds.schemas import (
    AssignmentResponse, ClassResponse, EducatorOverview, ProfileResponse, ProgressResponse, StudentDashboard,
)
from futureminds.services import DashboardService
from .deps import get_dashboard_service

router = APIRouter(prefix="/dashboard", tags=["Dashboards"])


@router.get("/student", response_model=StudentDashboard)
async def student_dashboard(
    current_user: User = Depends(require_role(AppRole.student)),
    dashboards: DashboardService = Depends(get_dashboard_service),
):
    data = dashboards.student_dashboard(current_user.id)
    return StudentDashboard(
        profile=ProfileResponse.model_validate(data["profile"]),
        progress=ProgressResponse.model_validate(data["progress"]),
        classes=[ClassResponse.model_validate(klass) for klass in data["classes"]],
        assignments=[
            AssignmentResponse.model_validate(assignment).model_copy(
                update={
                    "class_name": class_name,
                    "submission_status": submission.status.value if submission else "not_started",
                }
            )
            for assignment, class_name, submission in data["assignments"]
        ],
    )


@router.get("/educator", response_model=EducatorOverview)
async def educator_overview(
    current_user: User = Depends(require_role(AppRole.educator)),
    dashboards: DashboardService = Depends(get_dashboard_service),
):
    return dashboards.educator_overview(current_user.id)
