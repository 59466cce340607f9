"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.logging import configure_logging
from api.models.responses import ErrorCodes, ErrorResponse
from api.routes import calendar_router, events_router, festivals_router, health_router
from core.config import API_DEBUG, API_VERSION, DB_PATH, EVENT_BACKEND
from core.database import init_schema
from services.event_store import create_event_store
from services.holidays import HolidayService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the application-lifetime clients and tear them down on shutdown."""
    configure_logging()
    init_schema(DB_PATH)

    firestore_client = None
    if EVENT_BACKEND == "firestore":
        from core.firestore_client import create_firestore_client

        firestore_client = create_firestore_client()

    http_client = httpx.AsyncClient()
    app.state.event_store = create_event_store(
        EVENT_BACKEND, db_path=DB_PATH, firestore_client=firestore_client
    )
    app.state.holiday_service = HolidayService(http_client)
    logger.info("Calendar API started with %s event backend", EVENT_BACKEND)

    yield

    app.state.event_store.close()
    await http_client.aclose()
    if firestore_client is not None:
        firestore_client.close()


app = FastAPI(
    title="Tamil Calendar API",
    description="Personal calendar grid with events, Indian public holidays and Tamil festivals",
    version=API_VERSION,
    debug=API_DEBUG,
    lifespan=lifespan,
)

# CORS middleware (for development)
if API_DEBUG:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# Global exception handler for unexpected errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with standard error format."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal server error",
            code=ErrorCodes.INTERNAL_ERROR,
            details=[],
        ).model_dump(),
    )


# Include routers
app.include_router(health_router)
app.include_router(festivals_router)
app.include_router(calendar_router)
app.include_router(events_router)


# Entry point for uvicorn
if __name__ == "__main__":
    import uvicorn

    from core.config import API_HOST, API_PORT

    uvicorn.run(
        "api.main:app",
        host=API_HOST,
        port=API_PORT,
        reload=API_DEBUG,
    )
