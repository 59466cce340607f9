"""
Event input validation.
"""

import re

from core.errors import ValidationError

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_event_input(title: str | None, time: str | None) -> tuple[str, str]:
    """
    Normalize editor input into (title, time).

    Title is trimmed and must not be empty. Time is optional; when present it
    must be a 24-hour 'HH:MM' string.

    Raises:
        ValidationError: if the title is empty or the time is malformed
    """
    title = (title or "").strip()
    time = (time or "").strip()

    if not title:
        raise ValidationError("Event title is required")
    if time and not TIME_PATTERN.match(time):
        raise ValidationError(f"Invalid time '{time}', expected HH:MM")

    return title, time
