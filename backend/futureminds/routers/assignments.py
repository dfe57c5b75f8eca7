"""Assignment endpoints: educator authoring and grading, student work."""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Response, UploadFile, status

from futureminds.auth import User, require_role
from futureminds.models import AppRole
from futureminds.schemas import (
    AssignmentCreate, AssignmentResponse, AttachmentList, GradingRow, SubmissionResponse,
)
from futureminds.services import AssignmentService, GradingService, SubmissionService
from .deps import get_assignment_service, get_grading_service, get_submission_service

router = APIRouter(prefix="/assignments", tags=["Assignments"])

educator_only = require_role(AppRole.educator)
student_only = require_role(AppRole.student)


@router.post("", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    body: AssignmentCreate,
    current_user: User = Depends(educator_only),
    service: AssignmentService = Depends(get_assignment_service),
):
    return service.create_assignment(current_user.id, **body.model_dump())


@router.get("", response_model=List[AssignmentResponse])
async def list_my_assignments(
    current_user: User = Depends(educator_only),
    service: AssignmentService = Depends(get_assignment_service),
):
    """Assignments the educator created, newest first, with submission counts."""
    return [
        AssignmentResponse.model_validate(assignment).model_copy(
            update={"class_name": class_name, "submission_count": count}
        )
        for assignment, class_name, count in service.list_educator_assignments(current_user.id)
    ]


@router.get("/assigned", response_model=List[AssignmentResponse])
async def list_assigned(
    current_user: User = Depends(student_only),
    service: AssignmentService = Depends(get_assignment_service),
):
    """Assignments of the student's classes by due date, with the student's submission status."""
    return [
        AssignmentResponse.model_validate(assignment).model_copy(
            update={
                "class_name": class_name,
                "submission_status": submission.status.value if submission else "not_started",
            }
        )
        for assignment, class_name, submission in service.list_student_assignments(current_user.id)
    ]


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assignment(
    assignment_id: str,
    current_user: User = Depends(educator_only),
    service: AssignmentService = Depends(get_assignment_service),
):
    service.delete_assignment(assignment_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{assignment_id}/submissions", response_model=List[GradingRow])
async def list_submissions(
    assignment_id: str,
    current_user: User = Depends(educator_only),
    service: GradingService = Depends(get_grading_service),
):
    """Submissions to grade, most recently submitted first."""
    return [
        GradingRow.from_submission(submission, student_name=name)
        for submission, name in service.list_submissions(assignment_id, current_user.id)
    ]


@router.get("/{assignment_id}/submission", response_model=Optional[SubmissionResponse])
async def get_my_submission(
    assignment_id: str,
    current_user: User = Depends(student_only),
    service: SubmissionService = Depends(get_submission_service),
):
    """The student's submission, or null when there is none yet."""
    submission = service.find_submission(assignment_id, current_user.id)
    return SubmissionResponse.from_submission(submission) if submission else None


@router.post("/{assignment_id}/submission/files", response_model=AttachmentList)
async def upload_files(
    assignment_id: str,
    files: List[UploadFile] = File(...),
    current_user: User = Depends(student_only),
    service: SubmissionService = Depends(get_submission_service),
):
    """Attach files, creating the submission on first upload."""
    batch = []
    for upload in files:
        batch.append((upload.filename, await upload.read()))
        await upload.close()
    file_urls = service.attach_files(current_user.id, batch, assignment_id=assignment_id)
    submission = service.find_submission(assignment_id, current_user.id)
    return AttachmentList(submission_id=submission.id, file_urls=file_urls)


@router.post("/{assignment_id}/submit", response_model=SubmissionResponse)
async def submit_assignment(
    assignment_id: str,
    current_user: User = Depends(student_only),
    service: SubmissionService = Depends(get_submission_service),
):
    submission = service.submit(current_user.id, assignment_id=assignment_id)
    return SubmissionResponse.from_submission(submission)
