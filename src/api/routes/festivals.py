"""Local festival source endpoint."""

from fastapi import APIRouter

from api.models.responses import FestivalResponse
from services.festivals import festivals_for_year

router = APIRouter()


@router.get("/festivals", response_model=list[FestivalResponse])
async def list_festivals(year: str | None = None):
    """
    Tamil festival dates for a year.

    Always answers; an unknown or unparseable year gets the current year's list.
    """
    try:
        parsed_year = int(year) if year else None
    except ValueError:
        parsed_year = None
    return festivals_for_year(parsed_year)
