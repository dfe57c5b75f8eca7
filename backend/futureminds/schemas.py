"""Request and response schemas for the FutureMinds API."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .models import XP_PER_LEVEL


class ClassCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    subject: Optional[str] = Field(None, max_length=100)
    grade_level: Optional[str] = Field(None, max_length=50)


class ClassResponse(BaseModel):
    id: str
    educator_id: str
    name: str
    description: Optional[str] = None
    subject: Optional[str] = None
    grade_level: Optional[str] = None
    student_count: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class EnrollmentCreate(BaseModel):
    student_id: str


class EnrollmentResponse(BaseModel):
    id: str
    class_id: str
    student_id: str
    enrolled_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AssignmentCreate(BaseModel):
    class_id: str
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    xp_reward: int = 100


class AssignmentResponse(BaseModel):
    id: str
    class_id: str
    educator_id: str
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    xp_reward: int
    class_name: Optional[str] = None
    submission_count: Optional[int] = None
    submission_status: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SubmissionResponse(BaseModel):
    id: str
    assignment_id: str
    student_id: str
    status: str
    submitted_at: Optional[datetime] = None
    graded_at: Optional[datetime] = None
    feedback: Optional[str] = None
    xp_awarded: Optional[int] = None
    file_urls: List[str] = []

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_submission(cls, submission, **extra) -> "SubmissionResponse":
        return cls(
            id=submission.id,
            assignment_id=submission.assignment_id,
            student_id=submission.student_id,
            status=submission.status.value,
            submitted_at=submission.submitted_at,
            graded_at=submission.graded_at,
            feedback=submission.feedback,
            xp_awarded=submission.xp_awarded,
            file_urls=submission.attachments,
            **extra,
        )


class GradingRow(SubmissionResponse):
    student_name: str


class AttachmentList(BaseModel):
    submission_id: str
    file_urls: List[str]


class GradeRequest(BaseModel):
    # Bounds are checked by the grading service so both fields report together
    feedback: Optional[str] = ""
    xp_awarded: int


class ProgressResponse(BaseModel):
    user_id: str
    xp: int
    level: int
    coins: int
    lessons_completed: int
    projects_completed: int
    max_xp: int = XP_PER_LEVEL

    model_config = ConfigDict(from_attributes=True)


class ProgressDelta(BaseModel):
    xp: int = 0
    coins: int = 0
    lessons_completed: int = 0
    projects_completed: int = 0
    level: Optional[int] = None


class ActivityResponse(BaseModel):
    id: str
    activity_type: str
    activity_data: Dict[str, Any] = {}
    created_at: Optional[datetime] = None

    @classmethod
    def from_entry(cls, entry) -> "ActivityResponse":
        return cls(
            id=entry.id,
            activity_type=entry.activity_type.value,
            activity_data=entry.activity_data or {},
            created_at=entry.created_at,
        )


class ApprovalCreate(BaseModel):
    request_type: str
    request_data: Dict[str, Any] = {}


class ApprovalDecision(BaseModel):
    decision: str


class ApprovalResponse(BaseModel):
    id: str
    child_id: str
    parent_id: Optional[str] = None
    request_type: str
    request_data: Dict[str, Any] = {}
    status: str
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_request(cls, request) -> "ApprovalResponse":
        return cls(
            id=request.id,
            child_id=request.child_id,
            parent_id=request.parent_id,
            request_type=request.request_type.value,
            request_data=request.request_data or {},
            status=request.status.value,
            reviewed_at=request.reviewed_at,
            created_at=request.created_at,
        )


class ProjectPublish(BaseModel):
    project_name: str
    template_id: str
    template_name: Optional[str] = None


class LinkChildRequest(BaseModel):
    child_email: EmailStr


class LinkResponse(BaseModel):
    id: str
    parent_id: str
    child_id: str

    model_config = ConfigDict(from_attributes=True)


class ProfileResponse(BaseModel):
    user_id: str
    display_name: str
    age_bracket: Optional[str] = None
    avatar: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class StudentDashboard(BaseModel):
    profile: ProfileResponse
    progress: ProgressResponse
    classes: List[ClassResponse]
    assignments: List[AssignmentResponse]


class EducatorOverview(BaseModel):
    class_count: int
    student_count: int
    assignment_count: int


class MonitoredStudent(BaseModel):
    student_id: str
    display_name: str
    class_name: str
    xp: int
    level: int


class ChildSummary(BaseModel):
    profile: ProfileResponse
    progress: ProgressResponse
    approval_requests: List[ApprovalResponse]
    recent_activity: List[ActivityResponse]
