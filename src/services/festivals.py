"""
Local Tamil festival dates served at /festivals.

Dates are the typical (approximate) observances; festivals that follow the
lunar calendar can move, so this is a best-effort curated list.
"""

from datetime import date

FESTIVALS_BY_YEAR: dict[int, list[dict]] = {
    2024: [
        {"date": "2024-01-15", "name": "Pongal", "icon": "\U0001f33e"},
        {"date": "2024-04-14", "name": "Tamil New Year", "icon": "\U0001f389"},
    ],
    2025: [
        {"date": "2025-01-14", "name": "Pongal", "icon": "\U0001f33e"},
        {"date": "2025-04-14", "name": "Tamil New Year", "icon": "\U0001f389"},
    ],
    2026: [
        {"date": "2026-01-14", "name": "Pongal", "icon": "\U0001f33e"},
        {"date": "2026-04-14", "name": "Tamil New Year", "icon": "\U0001f389"},
    ],
}


def festivals_for_year(year: int | None, today: date | None = None) -> list[dict]:
    """
    Festival records for a year.

    Unknown years fall back to the current year's list, then to an empty list.
    """
    current_year = (today or date.today()).year
    if year is None:
        year = current_year
    festivals = FESTIVALS_BY_YEAR.get(year) or FESTIVALS_BY_YEAR.get(current_year) or []
    return [dict(f) for f in festivals]
