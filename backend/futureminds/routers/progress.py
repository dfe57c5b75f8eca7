"""Progress, activity and project endpoints."""
from typing import List

from fastapi import APIRouter, Depends, Query, status

from futureminds.auth import User, get_current_active_user, require_role
from futureminds.models import AppRole
from futureminds.schemas import (
    ActivityResponse, ApprovalResponse, ProgressDelta, ProgressResponse, ProjectPublish,
)
from futureminds.services import ProgressService, ProjectService
from futureminds.services.activity import RECENT_ACTIVITY_LIMIT
from .deps import get_progress_service, get_project_service

router = APIRouter(tags=["Progress"])

student_only = require_role(AppRole.student)
admin_only = require_role(AppRole.admin)


@router.get("/progress/me", response_model=ProgressResponse)
async def my_progress(
    current_user: User = Depends(get_current_active_user),
    service: ProgressService = Depends(get_progress_service),
):
    return service.get(current_user.id)


@router.get("/progress/me/activity", response_model=List[ActivityResponse])
async def my_activity(
    limit: int = Query(RECENT_ACTIVITY_LIMIT, ge=1, le=100),
    current_user: User = Depends(get_current_active_user),
    service: ProgressService = Depends(get_progress_service),
):
    return [ActivityResponse.from_entry(a) for a in service.activity.recent(current_user.id, limit=limit)]


@router.post("/progress/me/lessons/{lesson_id}/complete", response_model=ProgressResponse)
async def complete_lesson(
    lesson_id: str,
    current_user: User = Depends(student_only),
    service: ProgressService = Depends(get_progress_service),
):
    """Credit a finished lesson."""
    return service.complete_lesson(current_user.id, lesson_id)


@router.post("/progress/{user_id}/adjust", response_model=ProgressResponse)
async def adjust_progress(
    user_id: str,
    body: ProgressDelta,
    current_user: User = Depends(admin_only),
    service: ProgressService = Depends(get_progress_service),
):
    """Apply a manual counter delta."""
    return service.apply_delta(user_id, source={"source": "manual_adjustment"}, **body.model_dump())


@router.post("/projects/publish", response_model=ApprovalResponse, status_code=status.HTTP_202_ACCEPTED)
async def publish_project(
    body: ProjectPublish,
    current_user: User = Depends(student_only),
    service: ProjectService = Depends(get_project_service),
):
    """Request parent approval to publish; the project stays private until approved."""
    request = service.publish_project(current_user.id, **body.model_dump())
    return ApprovalResponse.from_request(request)
