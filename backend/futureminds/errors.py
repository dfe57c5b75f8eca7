"""
Domain errors raised by the FutureMinds services.

Services raise these and never translate them to HTTP themselves; the
application registers a single handler that maps each class to a status
code (see ``futureminds.main``).
"""

from typing import Dict, List, Optional


class FutureMindsError(Exception):
    """Base exception for every domain failure."""
    status_code = 500

    def __init__(self, message: str = ""):
        self.message = message or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict:
        return {"detail": self.message}


class ValidationError(FutureMindsError):
    """Raised before any write when input is out of bounds, one message per field."""
    status_code = 422

    def __init__(self, errors: Dict[str, str], message: str = ""):
        self.errors = dict(errors)
        super().__init__(message or "Please fix validation errors")

    def to_dict(self) -> Dict:
        return {"detail": self.message, "errors": self.errors}


class NotFoundError(FutureMindsError):
    """Raised when an entity row is missing."""
    status_code = 404

    def __init__(self, entity: str, key: str = "", message: str = ""):
        self.entity = entity
        self.key = key
        if not message:
            message = f"{entity} not found: {key}" if key else f"{entity} not found"
        super().__init__(message)


class PermissionDeniedError(FutureMindsError):
    """Raised when the acting user does not own or is not linked to the target."""
    status_code = 403


class ConflictError(FutureMindsError):
    """Raised when a one-time transition has already happened."""
    status_code = 409


class StoreError(FutureMindsError):
    """Raised when the database or the file store fails."""
    status_code = 503


class PartialUploadError(FutureMindsError):
    """Some files of a batch were stored and referenced, others failed."""
    status_code = 502

    def __init__(self, uploaded: List[str], failed: Dict[str, str], message: Optional[str] = None):
        self.uploaded = list(uploaded)
        self.failed = dict(failed)
        super().__init__(
            message or f"{len(self.failed)} of {len(self.uploaded) + len(self.failed)} files failed to upload"
        )

    def to_dict(self) -> Dict:
        return {"detail": self.message, "uploaded": self.uploaded, "failed": self.failed}
