"""
Calendar grid composition and the add-event editor.

CalendarView joins the visible date range with the events map (kept current by
an EventStore subscription) and the merged holidays map, producing one
CalendarCell per day. The two overlays update independently; each update
replaces its whole map in a single assignment before re-rendering.
"""

import logging
from collections.abc import Callable
from datetime import date

from core.config import VIEW_MODES
from core.dates import compute_date_range, parse_date_key, shift_month, tamil_month_name, to_date_key
from core.errors import StoreError, ValidationError
from models.events import CalendarCell, Event, EventsMap, HolidaysMap
from services.event_store import EventStore, Subscription, event_sort_key
from services.holidays import HolidayService

logger = logging.getLogger(__name__)


class EventEditor:
    """Modal state for adding an event to the selected day."""

    def __init__(self, store: EventStore, owner_id: str):
        self._store = store
        self._owner_id = owner_id
        self.date_key: str | None = None
        self.error: str | None = None

    @property
    def is_open(self) -> bool:
        return self.date_key is not None

    def open(self, date_key: str) -> None:
        parse_date_key(date_key)
        self.date_key = date_key
        self.error = None

    def close(self) -> None:
        self.date_key = None
        self.error = None

    def confirm(self, title: str, time: str = "") -> Event:
        """
        Add the event to the open date and close.

        On invalid input the editor stays open with `error` set and the
        ValidationError propagates; nothing is written.
        """
        if self.date_key is None:
            raise ValidationError("No date selected")

        try:
            event = self._store.add(self._owner_id, self.date_key, title, time)
        except ValidationError as e:
            self.error = str(e)
            raise
        except StoreError:
            self.close()
            raise

        self.close()
        return event

    def cancel(self) -> None:
        self.close()

    def dismiss(self) -> None:
        """Click on the overlay outside the card: close without saving."""
        self.close()


class CalendarView:
    """Month/week/day grid for one owner."""

    def __init__(
        self,
        store: EventStore,
        holidays: HolidayService,
        owner_id: str,
        *,
        view: str = "month",
        today: date | None = None,
        on_render: Callable[["CalendarView"], None] | None = None,
    ):
        if view not in VIEW_MODES:
            raise ValueError(f"Unknown view mode '{view}'")

        self._store = store
        self._holiday_service = holidays
        self.owner_id = owner_id
        self._today = today
        self._on_render = on_render

        self.view = view
        self.current_month = self.today.replace(day=1)
        self.selected_date: date | None = None
        # day the week and day views are built around
        self.focus_date: date | None = None
        self.events: EventsMap = {}
        self.holidays: HolidaysMap = {}
        self.editor = EventEditor(store, owner_id)

        self._subscription: Subscription | None = None
        self._holiday_generation = 0
        self._closed = False

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def open(self) -> None:
        """Start following the owner's events."""
        if self._subscription is None:
            self._subscription = self._store.subscribe(self.owner_id, self._on_events)

    def close(self) -> None:
        """Stop deliveries and drop any holiday load still in flight."""
        self._closed = True
        self._holiday_generation += 1
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def load_events(self) -> None:
        """One-shot read of the owner's events, for request/response callers."""
        self._on_events(self._store.snapshot(self.owner_id))

    def _on_events(self, events_map: EventsMap) -> None:
        self.events = events_map
        self._render()

    async def refresh_holidays(self) -> bool:
        """
        Load holidays for the visible range.

        Returns False when the result was discarded because the view closed or
        a newer load started while this one was waiting.
        """
        self._holiday_generation += 1
        generation = self._holiday_generation

        holidays = await self._holiday_service.holidays_for_range(self.dates())

        if self._closed or generation != self._holiday_generation:
            logger.debug("Discarding stale holiday load for %s", self.owner_id)
            return False

        self.holidays = holidays
        self._render()
        return True

    def _render(self) -> None:
        if self._on_render is not None and not self._closed:
            self._on_render(self)

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    @property
    def today(self) -> date:
        return self._today or date.today()

    @property
    def anchor(self) -> date:
        if self.view == "month":
            return self.current_month
        return self.focus_date or self.today

    @property
    def title(self) -> str:
        return self.current_month.strftime("%B %Y")

    def set_view(self, view: str) -> None:
        if view not in VIEW_MODES:
            raise ValueError(f"Unknown view mode '{view}'")
        self.view = view

    def go_to(self, d: date) -> None:
        self.current_month = d.replace(day=1)
        self.focus_date = d
        self.selected_date = d

    def go_today(self) -> None:
        self.go_to(self.today)

    def previous(self) -> None:
        self.current_month = shift_month(self.current_month, -1)

    def next(self) -> None:
        self.current_month = shift_month(self.current_month, 1)

    # -------------------------------------------------------------------------
    # Cells
    # -------------------------------------------------------------------------

    def dates(self) -> list[date]:
        return compute_date_range(self.anchor, self.view)

    def cell(self, d: date) -> CalendarCell:
        key = to_date_key(d)
        return {
            "date": key,
            "day": d.day,
            "month_label": tamil_month_name(d),
            "holiday": self.holidays.get(key),
            "events": sorted(self.events.get(key, []), key=event_sort_key),
            "is_today": d == self.today,
            "is_selected": d == self.selected_date,
        }

    def cells(self) -> list[CalendarCell]:
        return [self.cell(d) for d in self.dates()]

    # -------------------------------------------------------------------------
    # Interaction
    # -------------------------------------------------------------------------

    def select(self, date_key: str) -> None:
        """Click on a day: make it the editor's target."""
        self.selected_date = parse_date_key(date_key)
        self.focus_date = self.selected_date
        self.editor.open(date_key)

    def delete_event(self, date_key: str, event_id: str) -> None:
        """Delete affordance on an event; the selection is left alone."""
        self._store.remove(self.owner_id, date_key, event_id)
