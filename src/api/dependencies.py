"""FastAPI dependencies for authentication and shared resources."""

import secrets

from fastapi import Depends, Header, HTTPException, Request, WebSocket, status

from api.models.responses import ErrorCodes
from core.config import CALENDAR_API_KEY
from models.events import Identity
from services.event_store import EventStore
from services.holidays import HolidayService


async def verify_api_key(x_api_key: str = Header(..., alias="X-API-Key")) -> str:
    """
    Verify API key from X-API-Key header.

    Raises:
        HTTPException: 401 if key is missing or invalid
    """
    if not CALENDAR_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "API key not configured on server",
                "code": ErrorCodes.INTERNAL_ERROR,
                "details": [],
            },
        )

    # Use constant-time comparison to prevent timing attacks
    if not secrets.compare_digest(x_api_key, CALENDAR_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Invalid or missing API key",
                "code": ErrorCodes.UNAUTHORIZED,
                "details": [],
            },
        )

    return x_api_key


async def current_identity(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    x_user_email: str = Header("", alias="X-User-Email"),
    x_user_name: str = Header("", alias="X-User-Name"),
    _api_key: str = Depends(verify_api_key),
) -> Identity:
    """
    Identity forwarded by the authentication collaborator.

    Raises:
        HTTPException: 401 if no user id was supplied
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Not signed in",
                "code": ErrorCodes.UNAUTHORIZED,
                "details": [],
            },
        )
    return {"uid": x_user_id.strip(), "email": x_user_email, "display_name": x_user_name}


def websocket_identity(websocket: WebSocket) -> Identity | None:
    """Same checks as current_identity, for WebSocket handshakes."""
    api_key = websocket.headers.get("X-API-Key", "")
    user_id = websocket.headers.get("X-User-Id", "").strip()
    if not CALENDAR_API_KEY or not secrets.compare_digest(api_key, CALENDAR_API_KEY):
        return None
    if not user_id:
        return None
    return {
        "uid": user_id,
        "email": websocket.headers.get("X-User-Email", ""),
        "display_name": websocket.headers.get("X-User-Name", ""),
    }


def get_event_store(request: Request) -> EventStore:
    store = getattr(request.app.state, "event_store", None)
    if store is None:
        raise HTTPException(status_code=500, detail="Event store not initialized")
    return store


def get_holiday_service(request: Request) -> HolidayService:
    service = getattr(request.app.state, "holiday_service", None)
    if service is None:
        raise HTTPException(status_code=500, detail="Holiday service not initialized")
    return service
