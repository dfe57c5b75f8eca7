"""Read models behind the student, educator and parent dashboards."""

from typing import Any, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..errors import NotFoundError
from ..models import Assignment, Class, ClassEnrollment, Profile, UserProgress
from .activity import ActivityLogService
from .approvals import ApprovalService
from .assignments import AssignmentService
from .classes import ClassService
from .progress import ProgressService


class DashboardService:
    def __init__(self, db: Session):
        self.db = db
        self.progress = ProgressService(db)
        self.activity = ActivityLogService(db)
        self.approvals = ApprovalService(db)
        self.classes = ClassService(db)
        self.assignments = AssignmentService(db)

    def _profile(self, user_id: str) -> Profile:
        profile = self.db.query(Profile).filter(Profile.user_id == user_id).first()
        if profile is None:
            raise NotFoundError("Profile", user_id)
        return profile

    def student_dashboard(self, student_id: str) -> Dict[str, Any]:
        return {
            "profile": self._profile(student_id),
            "progress": self.progress.get(student_id),
            "classes": self.classes.list_student_classes(student_id),
            "assignments": self.assignments.list_student_assignments(student_id),
        }

    def educator_overview(self, educator_id: str) -> Dict[str, int]:
        class_count = self.db.query(func.count(Class.id)).filter(Class.educator_id == educator_id).scalar()
        student_count = (
            self.db.query(func.count(func.distinct(ClassEnrollment.student_id)))
            .join(Class, Class.id == ClassEnrollment.class_id)
            .filter(Class.educator_id == educator_id)
            .scalar()
        )
        assignment_count = (
            self.db.query(func.count(Assignment.id)).filter(Assignment.educator_id == educator_id).scalar()
        )
        return {
            "class_count": class_count or 0,
            "student_count": student_count or 0,
            "assignment_count": assignment_count or 0,
        }

    def student_monitoring(self, educator_id: str, class_id: str) -> List[Dict[str, Any]]:
        """Students of one class with their XP and level, highest XP first."""
        klass = self.classes.get_owned_class(class_id, educator_id)
        rows = (
            self.db.query(ClassEnrollment.student_id, Profile.display_name, UserProgress.xp, UserProgress.level)
            .outerjoin(Profile, Profile.user_id == ClassEnrollment.student_id)
            .outerjoin(UserProgress, UserProgress.user_id == ClassEnrollment.student_id)
            .filter(ClassEnrollment.class_id == klass.id)
            .all()
        )
        students = [
            {
                "student_id": student_id,
                "display_name": name or "Unknown Student",
                "class_name": klass.name,
                "xp": xp or 0,
                "level": level or 1,
            }
            for student_id, name, xp, level in rows
        ]
        students.sort(key=lambda s: (-s["xp"], s["display_name"]))
        return students

    def parent_dashboard(self, parent_id: str) -> List[Dict[str, Any]]:
        children = []
        for child_id in self.approvals.children_of(parent_id):
            children.append({
                "profile": self._profile(child_id),
                "progress": self.progress.get(child_id),
                "approval_requests": self.approvals.list_pending(child_id),
                "recent_activity": self.activity.recent(child_id),
            })
        return children
