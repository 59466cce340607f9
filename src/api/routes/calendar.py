"""Calendar grid endpoints: one-shot render and live stream."""

import asyncio
import logging
from datetime import date

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    WebSocket,
    WebSocketDisconnect,
    status,
)

from api.dependencies import (
    current_identity,
    get_event_store,
    get_holiday_service,
    websocket_identity,
)
from api.models.responses import CalendarResponse, ErrorCodes
from core.config import VIEW_MODES, WEEKDAY_HEADERS
from core.dates import parse_date_key, to_date_key
from core.errors import StoreError
from models.events import Identity
from services.calendar_view import CalendarView
from services.event_store import EventStore
from services.holidays import HolidayService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")


def parse_query_date(value: str | None, name: str) -> date | None:
    """Parse an optional YYYY-MM-DD query parameter."""
    if not value:
        return None
    try:
        return parse_date_key(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": f"Invalid {name} format",
                "code": ErrorCodes.INVALID_REQUEST,
                "details": ["Expected format: YYYY-MM-DD"],
            },
        )


def check_view(view: str) -> str:
    if view not in VIEW_MODES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": f"Unknown view '{view}'",
                "code": ErrorCodes.INVALID_REQUEST,
                "details": [f"Expected one of: {', '.join(VIEW_MODES)}"],
            },
        )
    return view


def render_calendar(calendar: CalendarView) -> CalendarResponse:
    """Convert the view's current cells into the API response."""
    return CalendarResponse(
        view=calendar.view,
        anchor=to_date_key(calendar.anchor),
        title=calendar.title,
        weekdays=WEEKDAY_HEADERS if calendar.view != "day" else [],
        cells=calendar.cells(),
    )


@router.get("/calendar", response_model=CalendarResponse)
async def get_calendar(
    view: str = "month",
    anchor: str | None = None,
    selected: str | None = None,
    identity: Identity = Depends(current_identity),
    store: EventStore = Depends(get_event_store),
    holidays: HolidayService = Depends(get_holiday_service),
):
    """
    Render the grid for a view.

    `anchor` picks the month (month view) or the day the week/day is built
    around; defaults to today. `selected` highlights a cell without moving
    the grid.
    """
    check_view(view)
    anchor_date = parse_query_date(anchor, "anchor")
    selected_date = parse_query_date(selected, "selected")

    calendar = CalendarView(store, holidays, identity["uid"], view=view)
    calendar.go_to(anchor_date or calendar.today)
    if selected_date:
        calendar.selected_date = selected_date

    try:
        await asyncio.to_thread(calendar.load_events)
    except StoreError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "error": "Could not load events",
                "code": ErrorCodes.STORE_ERROR,
                "details": [str(e)],
            },
        )

    await calendar.refresh_holidays()
    return render_calendar(calendar)


@router.websocket("/calendar/stream")
async def stream_calendar(websocket: WebSocket, view: str = "month", anchor: str | None = None):
    """
    Push the rendered grid on every events or holidays update.

    Store callbacks may come from another thread (Firestore watch, or a write
    handled in the thread pool), so renders are handed to the loop.
    """
    identity = websocket_identity(websocket)
    if identity is None or view not in VIEW_MODES:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    try:
        anchor_date = parse_date_key(anchor) if anchor else None
    except ValueError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    loop = asyncio.get_running_loop()
    updates: asyncio.Queue = asyncio.Queue()

    def on_render(calendar: CalendarView) -> None:
        loop.call_soon_threadsafe(updates.put_nowait, render_calendar(calendar).model_dump())

    calendar = CalendarView(
        websocket.app.state.event_store,
        websocket.app.state.holiday_service,
        identity["uid"],
        view=view,
        on_render=on_render,
    )
    calendar.go_to(anchor_date or calendar.today)

    async def pump():
        while True:
            payload = await updates.get()
            await websocket.send_json(payload)

    pump_task = asyncio.create_task(pump())
    try:
        calendar.open()
        await calendar.refresh_holidays()
        # Incoming messages are ignored; receiving detects the disconnect
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Calendar stream closed for %s", identity["uid"])
    finally:
        calendar.close()
        pump_task.cancel()
        await asyncio.gather(pump_task, return_exceptions=True)
