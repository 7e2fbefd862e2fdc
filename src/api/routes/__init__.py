"""API route modules."""

from .auth import router as auth_router
from .calendar import router as calendar_router
from .extract import router as extract_router
from .gmail import router as gmail_router
from .health import router as health_router

__all__ = ["auth_router", "calendar_router", "extract_router", "gmail_router", "health_router"]
