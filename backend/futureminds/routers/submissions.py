"""Endpoints addressing a submission by id."""
from typing import List

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile

from futureminds.auth import User, get_current_active_user, require_role
from futureminds.errors import PermissionDeniedError
from futureminds.models import AppRole
from futureminds.schemas import AttachmentList, GradeRequest, SubmissionResponse
from futureminds.services import GradingService, SubmissionService
from futureminds.storage import original_filename
from .deps import get_grading_service, get_submission_service

router = APIRouter(prefix="/submissions", tags=["Submissions"])

educator_only = require_role(AppRole.educator)
student_only = require_role(AppRole.student)


@router.get("/{submission_id}", response_model=SubmissionResponse)
async def get_submission(
    submission_id: str,
    current_user: User = Depends(get_current_active_user),
    service: SubmissionService = Depends(get_submission_service),
):
    submission = service.get_submission(submission_id)
    if current_user.id not in (submission.student_id, submission.assignment.educator_id):
        raise PermissionDeniedError("Not allowed to read this submission")
    return SubmissionResponse.from_submission(submission)


@router.post("/{submission_id}/files", response_model=AttachmentList)
async def upload_files(
    submission_id: str,
    files: List[UploadFile] = File(...),
    current_user: User = Depends(student_only),
    service: SubmissionService = Depends(get_submission_service),
):
    batch = []
    for upload in files:
        batch.append((upload.filename, await upload.read()))
        await upload.close()
    file_urls = service.attach_files(current_user.id, batch, submission_id=submission_id)
    return AttachmentList(submission_id=submission_id, file_urls=file_urls)


@router.delete("/{submission_id}/files", response_model=AttachmentList)
async def remove_file(
    submission_id: str,
    file_url: str = Query(...),
    current_user: User = Depends(student_only),
    service: SubmissionService = Depends(get_submission_service),
):
    file_urls = service.remove_file(current_user.id, submission_id, file_url)
    return AttachmentList(submission_id=submission_id, file_urls=file_urls)


@router.get("/{submission_id}/files/download")
async def download_file(
    submission_id: str,
    file_url: str = Query(...),
    current_user: User = Depends(get_current_active_user),
    service: SubmissionService = Depends(get_submission_service),
):
    data = service.download_file(submission_id, file_url, current_user.id)
    return Response(
        content=data,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{original_filename(file_url)}"'},
    )


@router.post("/{submission_id}/submit", response_model=SubmissionResponse)
async def submit(
    submission_id: str,
    current_user: User = Depends(student_only),
    service: SubmissionService = Depends(get_submission_service),
):
    submission = service.submit(current_user.id, submission_id=submission_id)
    return SubmissionResponse.from_submission(submission)


@router.post("/{submission_id}/grade", response_model=SubmissionResponse)
async def grade(
    submission_id: str,
    body: GradeRequest,
    current_user: User = Depends(educator_only),
    service: GradingService = Depends(get_grading_service),
):
    """Record feedback and XP; re-grading credits only the difference."""
    submission = service.grade(submission_id, body.feedback, body.xp_awarded, current_user.id)
    return SubmissionResponse.from_submission(submission)
