"""
Holiday fetching and merging.

Three date-keyed sources are combined into one DateKey -> {name, icon} map:
national (primary), regional (secondary) and the local festival list. The
national and regional lists are deduplicated with "first one wins"; the
festival list is applied on top and always wins its dates.
"""

import asyncio
import logging
from collections import OrderedDict
from collections.abc import Iterable, Sequence
from datetime import date

import httpx

from core.config import (
    DEFAULT_HOLIDAY_ICON,
    FESTIVALS_URL,
    HOLIDAY_API_BASE,
    HOLIDAY_CACHE_YEARS,
    HOLIDAY_COUNTRY_CODE,
    HOLIDAY_ICON_RULES,
    HOLIDAY_REGION_CODE,
)
from core.dates import parse_date_key
from core.errors import FetchError, ParseError
from models.events import Holiday, HolidaysMap
from services.festivals import festivals_for_year

logger = logging.getLogger(__name__)


def classify_icon(name: str) -> str:
    """Pick a display icon from the holiday name (first matching rule wins)."""
    lower = (name or "").lower()
    for needles, icon in HOLIDAY_ICON_RULES:
        if any(needle in lower for needle in needles):
            return icon
    return DEFAULT_HOLIDAY_ICON


def coerce_holiday(record) -> tuple[str, Holiday] | None:
    """
    Turn a raw source record into (date_key, Holiday).

    Accepts {date, name, localName?, icon?}. Returns None for records that
    are not usable (no valid date or no name).
    """
    if not isinstance(record, dict):
        return None

    date_key = record.get("date")
    if not isinstance(date_key, str):
        return None
    try:
        parse_date_key(date_key)
    except ValueError:
        return None

    name = record.get("localName") or record.get("name") or ""
    if not isinstance(name, str) or not name.strip():
        return None

    icon = record.get("icon")
    if not isinstance(icon, str) or not icon:
        icon = classify_icon(name)

    return date_key, {"name": name, "icon": icon}


def merge_holidays(
    primary: Iterable[dict] = (),
    secondary: Iterable[dict] = (),
    *overlays: Iterable[dict],
) -> HolidaysMap:
    """
    Merge holiday sources in priority order (low to high).

    Secondary records are only added on dates the primary list does not
    already claim. Each overlay then replaces whatever its dates held.
    """
    national: list[tuple[str, Holiday]] = []
    claimed: set[str] = set()

    for record in primary:
        coerced = coerce_holiday(record)
        if coerced:
            national.append(coerced)
            claimed.add(coerced[0])

    for record in secondary:
        coerced = coerce_holiday(record)
        if coerced and coerced[0] not in claimed:
            national.append(coerced)
            claimed.add(coerced[0])

    merged: HolidaysMap = dict(national)

    for overlay in overlays:
        for record in overlay:
            coerced = coerce_holiday(record)
            if coerced:
                date_key, holiday = coerced
                merged[date_key] = holiday

    return merged


class HolidayService:
    """Fetches the three holiday sources for a year and caches the merged map."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        api_base: str = HOLIDAY_API_BASE,
        country_code: str = HOLIDAY_COUNTRY_CODE,
        region_code: str = HOLIDAY_REGION_CODE,
        festivals_url: str = FESTIVALS_URL,
        cache_years: int = HOLIDAY_CACHE_YEARS,
    ):
        self._http = http_client
        self._api_base = api_base.rstrip("/")
        self._country_code = country_code
        self._region_code = region_code
        self._festivals_url = festivals_url
        self._cache_years = cache_years
        self._cache: OrderedDict[int, HolidaysMap] = OrderedDict()

    async def _get_json(self, url: str, params: dict | None = None) -> list:
        try:
            response = await self._http.get(url, params=params)
        except httpx.HTTPError as e:
            raise FetchError(f"Request to {url} failed: {e}") from e

        if response.status_code < 200 or response.status_code >= 300:
            raise FetchError(f"{url} returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ParseError(f"{url} returned malformed JSON") from e

        if not isinstance(payload, list):
            raise ParseError(f"{url} returned {type(payload).__name__}, expected a list")
        return payload

    async def _fetch_tolerant(self, url: str, params: dict | None = None) -> tuple[list, bool]:
        try:
            return await self._get_json(url, params), True
        except (FetchError, ParseError) as e:
            logger.warning("Holiday source degraded to empty list: %s", e)
            return [], False

    async def fetch_source(self, url: str, params: dict | None = None) -> list:
        """Fetch one source; any failure yields an empty list."""
        records, _ = await self._fetch_tolerant(url, params)
        return records

    async def _fetch_festivals(self, year: int) -> tuple[list, bool]:
        if not self._festivals_url:
            return festivals_for_year(year), True
        return await self._fetch_tolerant(self._festivals_url, {"year": year})

    async def holidays_for_year(self, year: int) -> HolidaysMap:
        """
        Merged holidays for a year.

        Only complete results are cached, and only the most recently used
        `cache_years` years are kept.
        """
        if year in self._cache:
            self._cache.move_to_end(year)
            return self._cache[year]

        results = await asyncio.gather(
            self._fetch_tolerant(f"{self._api_base}/{year}/{self._country_code}"),
            self._fetch_tolerant(f"{self._api_base}/{year}/{self._region_code}"),
            self._fetch_festivals(year),
        )
        (primary, _), (secondary, _), (festivals, _) = results
        merged = merge_holidays(primary, secondary, festivals)

        if all(ok for _, ok in results):
            self._cache[year] = merged
            while len(self._cache) > self._cache_years:
                self._cache.popitem(last=False)
        logger.debug("Loaded %d holidays for %d", len(merged), year)
        return merged

    async def holidays_for_range(self, dates: Sequence[date]) -> HolidaysMap:
        """Merged holidays for every year the date range touches."""
        merged: HolidaysMap = {}
        for year in sorted({d.year for d in dates}):
            merged.update(await self.holidays_for_year(year))
        return merged

    def clear_cache(self) -> None:
        self._cache.clear()
