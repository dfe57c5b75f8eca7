"""Helpers shared by the domain services."""

import logging
from contextlib import contextmanager
from datetime import datetime, UTC
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import StoreError

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(UTC)


@contextmanager
def store_errors(db: Session, action: str) -> Iterator[None]:
    """Roll back and re-raise database failures inside the block as StoreError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"Database error during {action}: {e}")
        db.rollback()
        raise StoreError(f"Failed to {action}") from e
