"""
Progress aggregation.

Counters are changed with single ``UPDATE ... SET col = col + :delta``
statements so concurrent awards never overwrite each other. This service is
the only writer of ``xp_earned``/``xp_adjusted`` activity entries: callers
pass a ``source`` payload and never log the reward themselves.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..errors import NotFoundError, StoreError, ValidationError
from ..models import ActivityType, UserProgress
from .activity import ActivityLogService
from .base import store_errors

logger = logging.getLogger(__name__)

MAX_DELTA = 10000
LESSON_XP_REWARD = 50
COUNTERS = ("xp", "coins", "lessons_completed", "projects_completed")


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ProgressService:
    def __init__(self, db: Session, activity: Optional[ActivityLogService] = None):
        self.db = db
        self.activity = activity or ActivityLogService(db)
        self._staged: List[Tuple[str, int, Dict[str, Any]]] = []

    def get(self, user_id: str) -> UserProgress:
        progress = (
            self.db.query(UserProgress)
            .filter(UserProgress.user_id == user_id)
            .populate_existing()
            .first()
        )
        if progress is None:
            raise NotFoundError("Progress", user_id)
        return progress

    def validate_delta(self, deltas: Dict[str, int], level: Optional[int] = None, allow_xp_decrease: bool = False):
        """Collect one message per bad field; nothing is written if any are found."""
        errors = {}
        for name, value in deltas.items():
            if not _is_int(value):
                errors[name] = f"{name} must be a whole number"
            elif value > MAX_DELTA:
                errors[name] = f"{name} cannot exceed {MAX_DELTA}"
            elif value < 0 and not (name == "xp" and allow_xp_decrease and value >= -MAX_DELTA):
                errors[name] = f"{name} cannot be negative"
        if level is not None and (not _is_int(level) or level < 1):
            errors["level"] = "level must be a positive whole number"
        if errors:
            raise ValidationError(errors)

    def apply_delta(
        self,
        user_id: str,
        xp: int = 0,
        coins: int = 0,
        lessons_completed: int = 0,
        projects_completed: int = 0,
        level: Optional[int] = None,
        source: Optional[Dict[str, Any]] = None,
        autocommit: bool = True,
        allow_xp_decrease: bool = False,
    ) -> Optional[UserProgress]:
        """
        Add each delta to the user's counters; ``level`` replaces the stored level.

        With ``autocommit=False`` the increment joins the caller's transaction and
        its activity entry is held until the caller finishes with :meth:`commit`.

        Returns:
            The refreshed progress row when committed, else ``None``.

        Raises:
            ValidationError: A delta is not an integer within bounds.
            NotFoundError: The user has no progress row.
            StoreError: The update or commit failed.
        """
        deltas = {
            "xp": xp,
            "coins": coins,
            "lessons_completed": lessons_completed,
            "projects_completed": projects_completed,
        }
        self.validate_delta(deltas, level=level, allow_xp_decrease=allow_xp_decrease)

        values = {
            name: getattr(UserProgress, name) + amount
            for name, amount in deltas.items()
            if amount
        }
        if level is not None:
            values["level"] = level

        with store_errors(self.db, "update progress"):
            stmt = update(UserProgress).where(UserProgress.user_id == user_id)
            if values:
                result = self.db.execute(stmt.values(**values))
                found = result.rowcount > 0
            else:
                found = self.db.query(UserProgress.id).filter(UserProgress.user_id == user_id).first() is not None
            if not found:
                raise NotFoundError("Progress", user_id)

        if xp:
            self._staged.append((user_id, xp, dict(source or {})))

        if not autocommit:
            return None
        self.commit()
        logger.info(f"Applied progress delta {deltas} (level={level}) for {user_id}")
        return self.get(user_id)

    def commit(self) -> None:
        """Commit the unit of work, then write the activity entries for staged awards."""
        try:
            with store_errors(self.db, "commit progress"):
                self.db.commit()
        except StoreError:
            self.discard()
            raise
        staged, self._staged = self._staged, []
        for user_id, xp, source in staged:
            if xp > 0:
                self.activity.record(user_id, ActivityType.xp_earned, {"xp_gained": xp, **source})
            else:
                self.activity.record(user_id, ActivityType.xp_adjusted, {"xp_change": xp, **source})

    def discard(self) -> None:
        """Drop staged entries after the caller rolled back."""
        self._staged = []

    def complete_lesson(self, user_id: str, lesson_id: str) -> UserProgress:
        """Credit a finished lesson; ``lesson_completed`` is logged only once the award is stored."""
        progress = self.apply_delta(
            user_id,
            xp=LESSON_XP_REWARD,
            lessons_completed=1,
            source={"source": "lesson_completed", "lesson_id": lesson_id},
        )
        self.activity.record(user_id, ActivityType.lesson_completed, {"lesson_id": lesson_id})
        return progress
