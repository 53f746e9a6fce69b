"""API routes."""

from .challenges import router as challenges_router
from .scoring import router as scoring_router
from .progress import router as progress_router
from .admin import router as admin_router

__all__ = ["challenges_router", "scoring_router", "progress_router", "admin_router"]
