"""API Pydantic models."""

from .responses import (
    CalendarCellResponse,
    CalendarResponse,
    CreateEventRequest,
    ErrorCodes,
    ErrorResponse,
    EventResponse,
    FestivalResponse,
    HealthResponse,
    HolidayResponse,
)

__all__ = [
    "CalendarCellResponse",
    "CalendarResponse",
    "CreateEventRequest",
    "ErrorCodes",
    "ErrorResponse",
    "EventResponse",
    "FestivalResponse",
    "HealthResponse",
    "HolidayResponse",
]
