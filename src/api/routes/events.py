"""Event add/remove endpoints."""

import asyncio
import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from api.dependencies import current_identity, get_event_store
from api.logging import RequestLog, record_request
from api.models.responses import CreateEventRequest, ErrorCodes, EventResponse
from core.dates import parse_date_key
from core.errors import StoreError, ValidationError
from models.events import Identity
from services.calendar_view import EventEditor
from services.event_store import EventStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def check_date_key(date_key: str) -> None:
    try:
        parse_date_key(date_key)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Invalid date format",
                "code": ErrorCodes.INVALID_REQUEST,
                "details": ["Expected format: YYYY-MM-DD"],
            },
        )


def store_error(e: StoreError, action: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={
            "error": f"Failed to {action} event",
            "code": ErrorCodes.STORE_ERROR,
            "details": [str(e)],
        },
    )


def fail_request(request_log: RequestLog, e: HTTPException) -> None:
    request_log.status_code = e.status_code
    if isinstance(e.detail, dict):
        request_log.error_code = e.detail.get("code")
        request_log.error_message = e.detail.get("error")
    else:
        request_log.error_message = str(e.detail)


@router.post("/events", status_code=status.HTTP_201_CREATED, response_model=EventResponse)
async def add_event(
    request: Request,
    body: CreateEventRequest,
    identity: Identity = Depends(current_identity),
    store: EventStore = Depends(get_event_store),
):
    """
    Add an event to a day.

    The title is trimmed and required; time is optional HH:MM.
    """
    start_time = time.time()
    request_log = RequestLog(
        endpoint="/v1/events",
        method="POST",
        client_ip=get_client_ip(request),
        owner_id=identity["uid"],
        date_key=body.date,
    )

    try:
        check_date_key(body.date)

        editor = EventEditor(store, identity["uid"])
        editor.open(body.date)
        try:
            event = await asyncio.to_thread(editor.confirm, body.title, body.time)
        except ValidationError as e:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={
                    "error": "Event validation failed",
                    "code": ErrorCodes.VALIDATION_ERROR,
                    "details": [str(e)],
                },
            )
        except StoreError as e:
            logger.error("Add event failed for %s: %s", identity["uid"], e)
            raise store_error(e, "add")

        request_log.status_code = status.HTTP_201_CREATED
        request_log.event_id = event["id"]
        return event

    except HTTPException as e:
        fail_request(request_log, e)
        raise

    except Exception as e:
        request_log.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        request_log.error_code = ErrorCodes.INTERNAL_ERROR
        request_log.error_message = str(e)
        raise

    finally:
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)
        record_request(request_log)


@router.delete("/events/{date_key}/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_event(
    request: Request,
    date_key: str,
    event_id: str,
    identity: Identity = Depends(current_identity),
    store: EventStore = Depends(get_event_store),
):
    """Remove an event. Removing an unknown id succeeds."""
    start_time = time.time()
    request_log = RequestLog(
        endpoint="/v1/events",
        method="DELETE",
        client_ip=get_client_ip(request),
        owner_id=identity["uid"],
        date_key=date_key,
        event_id=event_id,
    )

    try:
        check_date_key(date_key)
        try:
            await asyncio.to_thread(store.remove, identity["uid"], date_key, event_id)
        except StoreError as e:
            logger.error("Remove event failed for %s: %s", identity["uid"], e)
            raise store_error(e, "delete")

        request_log.status_code = status.HTTP_204_NO_CONTENT
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    except HTTPException as e:
        fail_request(request_log, e)
        raise

    except Exception as e:
        request_log.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        request_log.error_code = ErrorCodes.INTERNAL_ERROR
        request_log.error_message = str(e)
        raise

    finally:
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)
        record_request(request_log)
