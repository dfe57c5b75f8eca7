"""Approval requests and the parent dashboard."""
from typing import List

from fastapi import APIRouter, Depends, status

from futureminds.auth import User, require_role
from futureminds.models import AppRole
from futureminds.schemas import (
    ActivityResponse, ApprovalCreate, ApprovalDecision, ApprovalResponse, ChildSummary, LinkChildRequest,
    LinkResponse, ProfileResponse, ProgressResponse,
)
from futureminds.services import ApprovalService, DashboardService
from .deps import get_approval_service, get_dashboard_service

router = APIRouter(tags=["Family"])

parent_only = require_role(AppRole.parent)
student_only = require_role(AppRole.student)


@router.post("/approval-requests", response_model=ApprovalResponse, status_code=status.HTTP_201_CREATED)
async def create_approval_request(
    body: ApprovalCreate,
    current_user: User = Depends(student_only),
    service: ApprovalService = Depends(get_approval_service),
):
    request = service.create_request(current_user.id, body.request_type, body.request_data)
    return ApprovalResponse.from_request(request)


@router.get("/approval-requests", response_model=List[ApprovalResponse])
async def list_my_requests(
    current_user: User = Depends(student_only),
    service: ApprovalService = Depends(get_approval_service),
):
    return [ApprovalResponse.from_request(r) for r in service.list_for_child(current_user.id)]


@router.post("/approval-requests/{request_id}/decision", response_model=ApprovalResponse)
async def resolve_approval_request(
    request_id: str,
    body: ApprovalDecision,
    current_user: User = Depends(parent_only),
    service: ApprovalService = Depends(get_approval_service),
):
    """Approve or reject a linked child's pending request; a second decision is a conflict."""
    request = service.resolve(request_id, current_user.id, body.decision)
    return ApprovalResponse.from_request(request)


@router.post("/parents/me/children", response_model=LinkResponse, status_code=status.HTTP_201_CREATED)
async def link_child(
    body: LinkChildRequest,
    current_user: User = Depends(parent_only),
    service: ApprovalService = Depends(get_approval_service),
):
    return service.link_child(current_user.id, body.child_email)


@router.get("/parents/me/dashboard", response_model=List[ChildSummary])
async def parent_dashboard(
    current_user: User = Depends(parent_only),
    dashboards: DashboardService = Depends(get_dashboard_service),
):
    """Profile, progress, pending requests and recent activity for each linked child."""
    return [
        ChildSummary(
            profile=ProfileResponse.model_validate(child["profile"]),
            progress=ProgressResponse.model_validate(child["progress"]),
            approval_requests=[ApprovalResponse.from_request(r) for r in child["approval_requests"]],
            recent_activity=[ActivityResponse.from_entry(a) for a in child["recent_activity"]],
        )
        for child in dashboards.parent_dashboard(current_user.id)
    ]
