"""Class management endpoints for educators."""
from typing import List

from fastapi import APIRouter, Depends, Response, status

from futureminds.auth import User, require_role
from futureminds.models import AppRole
from futureminds.schemas import ClassCreate, ClassResponse, EnrollmentCreate, EnrollmentResponse, MonitoredStudent
from futureminds.services import ClassService, DashboardService
from .deps import get_class_service, get_dashboard_service

router = APIRouter(prefix="/classes", tags=["Classes"])

educator_only = require_role(AppRole.educator)


@router.post("", response_model=ClassResponse, status_code=status.HTTP_201_CREATED)
async def create_class(
    body: ClassCreate,
    current_user: User = Depends(educator_only),
    service: ClassService = Depends(get_class_service),
):
    klass = service.create_class(current_user.id, **body.model_dump())
    return ClassResponse.model_validate(klass).model_copy(update={"student_count": 0})


@router.get("", response_model=List[ClassResponse])
async def list_classes(
    current_user: User = Depends(educator_only),
    service: ClassService = Depends(get_class_service),
):
    """The educator's classes, newest first, with student counts."""
    return [
        ClassResponse.model_validate(klass).model_copy(update={"student_count": count})
        for klass, count in service.list_classes(current_user.id)
    ]


@router.delete("/{class_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_class(
    class_id: str,
    current_user: User = Depends(educator_only),
    service: ClassService = Depends(get_class_service),
):
    service.delete_class(class_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{class_id}/enrollments", response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED)
async def enroll_student(
    class_id: str,
    body: EnrollmentCreate,
    current_user: User = Depends(educator_only),
    service: ClassService = Depends(get_class_service),
):
    return service.enroll(class_id, body.student_id, current_user.id)


@router.get("/{class_id}/students", response_model=List[MonitoredStudent])
async def monitor_students(
    class_id: str,
    current_user: User = Depends(educator_only),
    dashboards: DashboardService = Depends(get_dashboard_service),
):
    """Progress of every student in the class."""
    return dashboards.student_monitoring(current_user.id, class_id)
