"""Lab projects that a child asks a parent to publish."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..errors import FutureMindsError, ValidationError
from ..models import ActivityType, ApprovalRequest, ApprovalRequestType
from .approvals import ApprovalService
from .base import store_errors
from .progress import ProgressService

logger = logging.getLogger(__name__)

PROJECT_XP_REWARD = 100


class ProjectService:
    def __init__(self, db: Session, approvals: Optional[ApprovalService] = None,
                 progress: Optional[ProgressService] = None):
        self.db = db
        self.approvals = approvals or ApprovalService(db)
        self.progress = progress or ProgressService(db)
        self.activity = self.progress.activity

    def publish_project(self, child_id: str, project_name: str, template_id: str,
                        template_name: Optional[str] = None) -> ApprovalRequest:
        """
        Ask a parent to publish a project and reward the child for building it.

        The project only goes live once a linked parent approves the
        returned pending request.
        """
        if not project_name or not project_name.strip():
            raise ValidationError({"project_name": "Project name is required"})

        name = project_name.strip()
        try:
            with store_errors(self.db, "publish project"):
                request = self.approvals.create_request(
                    child_id,
                    ApprovalRequestType.publish_project,
                    {"project_name": name, "template_id": template_id, "template_name": template_name},
                    autocommit=False,
                )
                self.progress.apply_delta(
                    child_id,
                    xp=PROJECT_XP_REWARD,
                    projects_completed=1,
                    source={"source": "project_created", "template_id": template_id},
                    autocommit=False,
                )
            self.progress.commit()
        except FutureMindsError:
            self.db.rollback()
            self.progress.discard()
            raise

        self.activity.record(
            child_id,
            ActivityType.project_created,
            {"template_id": template_id, "project_name": name},
        )
        logger.info(f"Project '{name}' awaiting approval ({request.id})")
        return request
