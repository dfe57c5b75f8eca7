"""Append-only activity log used for dashboards."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import ActivityLog, ActivityType

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 10


class ActivityLogService:
    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        user_id: str,
        activity_type: ActivityType,
        activity_data: Optional[Dict[str, Any]] = None,
    ) -> Optional[ActivityLog]:
        """
        Append one entry in its own commit.

        A failing write is logged and swallowed so it never fails the
        operation it accompanies; callers must commit their own work first.
        """
        entry = ActivityLog(
            user_id=user_id,
            activity_type=activity_type,
            activity_data=dict(activity_data or {}),
        )
        try:
            self.db.add(entry)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Could not record {activity_type.value} for {user_id}: {e}")
            return None
        return entry

    def recent(self, user_id: str, limit: int = RECENT_ACTIVITY_LIMIT) -> List[ActivityLog]:
        """Newest entries first."""
        return (
            self.db.query(ActivityLog)
            .filter(ActivityLog.user_id == user_id)
            .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
            .limit(limit)
            .all()
        )
