"""API routers, one per feature area."""
from .assignments import router as assignments_router
from .classes import router as classes_router
from .dashboards import router as dashboards_router
from .family import router as family_router
from .progress import router as progress_router
from .submissions import router as submissions_router

__all__ = [
    "assignments_router",
    "classes_router",
    "dashboards_router",
    "family_router",
    "progress_router",
    "submissions_router",
]
