"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.models.responses import HealthResponse
from core.config import API_VERSION, EVENT_BACKEND

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Health check endpoint for monitoring.

    Returns 200 if healthy, 503 if the event store is not available.
    """
    store_available = getattr(request.app.state, "event_store", None) is not None
    timestamp = datetime.now(timezone.utc).isoformat()

    if store_available:
        return HealthResponse(
            status="healthy",
            version=API_VERSION,
            event_backend=EVENT_BACKEND,
            timestamp=timestamp,
        )
    else:
        return JSONResponse(
            status_code=503,
            content=HealthResponse(
                status="unhealthy",
                version=API_VERSION,
                event_backend=EVENT_BACKEND,
                timestamp=timestamp,
                error="Event store not initialized",
            ).model_dump(),
        )
