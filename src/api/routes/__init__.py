"""API route modules."""

from .calendar import router as calendar_router
from .events import router as events_router
from .festivals import router as festivals_router
from .health import router as health_router

__all__ = ["calendar_router", "events_router", "festivals_router", "health_router"]
