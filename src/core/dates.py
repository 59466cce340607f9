"""
Calendar arithmetic: date keys, visible ranges and Tamil month labels.

All dates are local wall-clock days; nothing here knows about timezones.
"""

from datetime import date, datetime, timedelta

from core.config import VIEW_MODES

DATE_KEY_FORMAT = "%Y-%m-%d"

# (name, (start_month, start_day), (end_month, end_day)), inclusive
TAMIL_MONTH_RANGES = [
    ("Thai", (1, 14), (2, 12)),
    ("Maasi", (2, 13), (3, 14)),
    ("Panguni", (3, 15), (4, 13)),
    ("Chithirai", (4, 14), (5, 14)),
    ("Vaikasi", (5, 15), (6, 14)),
    ("Aani", (6, 15), (7, 15)),
    ("Aadi", (7, 16), (8, 16)),
    ("Avani", (8, 17), (9, 16)),
    ("Purattasi", (9, 17), (10, 17)),
    ("Aippasi", (10, 18), (11, 16)),
    ("Karthigai", (11, 17), (12, 15)),
    ("Margazhi", (12, 16), (1, 13)),
]


def as_date(value: date | datetime) -> date:
    """Normalize a date or datetime to its calendar day."""
    if isinstance(value, datetime):
        return value.date()
    return value


def to_date_key(value: date | datetime) -> str:
    return as_date(value).strftime(DATE_KEY_FORMAT)


def parse_date_key(key: str) -> date:
    """Parse a 'YYYY-MM-DD' key. Raises ValueError on anything else."""
    return datetime.strptime(key, DATE_KEY_FORMAT).date()


def sunday_index(d: date) -> int:
    """Day of week with Sunday = 0 ... Saturday = 6."""
    return (d.weekday() + 1) % 7


def start_of_week(d: date) -> date:
    return d - timedelta(days=sunday_index(d))


def end_of_week(d: date) -> date:
    return d + timedelta(days=6 - sunday_index(d))


def end_of_month(d: date) -> date:
    first_of_next = (d.replace(day=28) + timedelta(days=4)).replace(day=1)
    return first_of_next - timedelta(days=1)


def shift_month(d: date, months: int) -> date:
    """First day of the month `months` away from `d`."""
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def compute_date_range(anchor: date | datetime, view: str) -> list[date]:
    """
    Dates covering the full calendar rows of `view` around `anchor`.

    month: Sunday on/before the 1st through Saturday on/after the last day.
    week:  the 7 days starting on the Sunday on/before the anchor.
    day:   just the anchor day.
    """
    if view not in VIEW_MODES:
        raise ValueError(f"Unknown view mode '{view}', expected one of {VIEW_MODES}")

    day = as_date(anchor)
    if view == "day":
        return [day]

    if view == "month":
        start = start_of_week(day.replace(day=1))
        end = end_of_week(end_of_month(day))
    else:
        start = start_of_week(day)
        end = start + timedelta(days=6)

    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def tamil_month_name(value: date | datetime) -> str:
    """Name of the fixed Tamil month range containing the day."""
    d = as_date(value)
    md = (d.month, d.day)
    for name, start, end in TAMIL_MONTH_RANGES:
        if start <= end:
            if start <= md <= end:
                return name
        elif md >= start or md <= end:
            # Range wraps the year end
            return name
    return ""
