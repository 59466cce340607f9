"""
Error taxonomy shared by the services and the API layer.
"""


class CalendarError(Exception):
    pass


class ValidationError(CalendarError, ValueError):
    """User input rejected before any write (e.g. empty event title)."""


class FetchError(CalendarError):
    """A holiday source could not be reached."""


class ParseError(CalendarError):
    """A holiday source answered with a body we cannot use."""


class StoreError(CalendarError):
    """An add/remove against the event backend failed."""


class StorageCorruption(CalendarError):
    """A persisted events blob could not be decoded."""
