"""Pydantic request/response models for API endpoints."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""

    status: str  # "healthy" or "unhealthy"
    version: str
    event_backend: str
    timestamp: str  # ISO 8601 UTC
    error: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    details: list[str] = []


class ErrorCodes:
    """Error code constants."""

    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    STORE_ERROR = "STORE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class FestivalResponse(BaseModel):
    """Local festival record."""

    date: str
    name: str
    icon: str | None = None


class HolidayResponse(BaseModel):
    name: str
    icon: str


class EventResponse(BaseModel):
    """Stored event."""

    id: str
    title: str
    time: str
    date: str
    created_at: str


class CreateEventRequest(BaseModel):
    """Editor submission for the selected date."""

    date: str = Field(description="Target day (YYYY-MM-DD)")
    title: str
    time: str = Field(default="", description="Optional time of day (HH:MM)")


class CalendarCellResponse(BaseModel):
    date: str
    day: int
    month_label: str
    holiday: HolidayResponse | None = None
    events: list[EventResponse] = []
    is_today: bool = False
    is_selected: bool = False


class CalendarResponse(BaseModel):
    """Rendered grid for one view."""

    view: str
    anchor: str
    title: str
    weekdays: list[str]
    cells: list[CalendarCellResponse]
