"""
Data models for events, holidays and calendar cells.

Using TypedDict for type hints on the plain dictionaries passed between
services; the API layer converts them to Pydantic responses.
"""

from typing import TypedDict


class Identity(TypedDict):
    """Signed-in user supplied by the authentication collaborator."""
    uid: str
    email: str
    display_name: str


class Event(TypedDict):
    """User event attached to a calendar day."""
    id: str
    title: str
    time: str  # "HH:MM" or "" when untimed
    date: str  # DateKey
    created_at: str  # ISO 8601 UTC


class Holiday(TypedDict):
    """Holiday badge for a calendar day."""
    name: str
    icon: str


class CalendarCell(TypedDict):
    """One rendered day of the grid."""
    date: str
    day: int
    month_label: str
    holiday: Holiday | None
    events: list[Event]
    is_today: bool
    is_selected: bool


EventsMap = dict[str, list[Event]]
HolidaysMap = dict[str, Holiday]
