"""Twilight lookup layer — sunrise-sunset.org client, freshness cache, and batch fetching."""

import asyncio
import logging
import threading
import time
from collections.abc import Awaitable, Callable, Sequence
from datetime import date, datetime, timedelta

import httpx
from pytz import timezone
from timezonefinder import TimezoneFinder

from solarsymmetry.dates import date_key
from solarsymmetry.models import TwilightRecord

logger = logging.getLogger(__name__)

_tf = TimezoneFinder()

TwilightLookup = Callable[[date, float, float], Awaitable[TwilightRecord]]

API_ERROR = "API Error"
NOT_AVAILABLE = "N/A"
GOLDEN_HOUR = timedelta(hours=1)
DEFAULT_URL = "https://api.sunrise-sunset.org/json"


class TwilightError(Exception):
    """Unusable upstream response. Converted to an error record, never raised to callers."""


def cache_key(day: date, lat: float, lng: float) -> str:
    return f"{date_key(day)}-{lat:.4f},{lng:.4f}"


def timezone_for(lat: float, lng: float) -> str:
    """IANA zone name for a coordinate; "UTC" over open ocean or when unknown."""
    return _tf.timezone_at(lat=lat, lng=lng) or "UTC"


def fallback_records(count: int, error: str = "Batch fetch failed") -> list[TwilightRecord]:
    return [TwilightRecord.failure(error, sentinel=NOT_AVAILABLE) for _ in range(count)]


def golden_hours(sunrise: datetime, sunset: datetime) -> tuple[str, str, str, str]:
    """Morning and evening golden hour as (am_start, am_end, pm_start, pm_end).

    Approximated as the hour after sunrise and the hour before sunset.
    """
    return (
        sunrise.strftime("%H:%M"),
        (sunrise + GOLDEN_HOUR).strftime("%H:%M"),
        (sunset - GOLDEN_HOUR).strftime("%H:%M"),
        sunset.strftime("%H:%M"),
    )


class TwilightCache:
    """Records keyed by ``cache_key``, each valid for ``max_age`` after it was stored.

    Shared by every Streamlit session of a server process, so access is locked.
    Entries stay in write order; each ``put`` drops expired entries from the
    front, and the oldest ones beyond ``max_entries``.
    """

    def __init__(
        self,
        max_age: timedelta = timedelta(hours=24),
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = 10_000,
    ):
        self.max_age = max_age
        self.max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[float, TwilightRecord]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _expired(self, stored_at: float) -> bool:
        return self._clock() - stored_at >= self.max_age.total_seconds()

    def get(self, key: str) -> TwilightRecord | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, record = entry
            if self._expired(stored_at):
                self._entries.pop(key, None)
                return None
            return record

    def put(self, key: str, record: TwilightRecord) -> None:
        with self._lock:
            # Re-insert so write order matches age order.
            self._entries.pop(key, None)
            self._entries[key] = (self._clock(), record)
            self._evict_oldest()

    def _evict_oldest(self) -> None:
        while self._entries:
            key, (stored_at, _) = next(iter(self._entries.items()))
            if len(self._entries) <= self.max_entries and not self._expired(stored_at):
                break
            del self._entries[key]

    def clean(self) -> int:
        """Drop expired entries. Returns how many were removed."""
        with self._lock:
            stale = [k for k, (stored_at, _) in self._entries.items() if self._expired(stored_at)]
            for key in stale:
                del self._entries[key]
            return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict:
        with self._lock:
            return {
                "size": len(self._entries),
                "max_age_seconds": self.max_age.total_seconds(),
                "max_entries": self.max_entries,
                "entries": list(self._entries),
            }


class TwilightClient:
    """Civil twilight lookups against the sunrise-sunset.org JSON API.

    ``get_twilight_times`` never raises: upstream failures come back as a
    TwilightRecord with ``error`` set. Only successful records are cached, so a
    rate-limited key is retried on the next request instead of sticking for a day.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_URL,
        cache: TwilightCache | None = None,
        timeout: float = 10.0,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.cache = cache if cache is not None else TwilightCache()
        self.timeout = timeout
        self._headers = {"User-Agent": user_agent} if user_agent else {}
        self._transport = transport

    async def get_twilight_times(self, day: date, lat: float, lng: float) -> TwilightRecord:
        """Twilight record for one date and location, from cache when fresh.

        Args:
            day: Calendar date to look up.
            lat: Latitude (decimal degrees).
            lng: Longitude (decimal degrees).

        Returns:
            TwilightRecord with local "HH:MM" times, or an error record with
            "API Error" in every time field.
        """
        key = cache_key(day, lat, lng)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        try:
            record = await self._fetch(day, lat, lng)
        except (httpx.HTTPError, TwilightError) as e:
            logger.warning("Twilight lookup failed for %s: %s", key, e)
            return TwilightRecord.failure(str(e) or type(e).__name__, sentinel=API_ERROR)

        self.cache.put(key, record)
        return record

    async def is_data_available(self, lat: float, lng: float) -> bool:
        record = await self.get_twilight_times(date.today(), lat, lng)
        return record.available

    async def _fetch(self, day: date, lat: float, lng: float) -> TwilightRecord:
        params = {
            "lat": str(lat),
            "lng": str(lng),
            "date": date_key(day),
            "formatted": "0",  # ISO 8601 UTC instants
        }
        async with httpx.AsyncClient(
            timeout=self.timeout, headers=self._headers, transport=self._transport
        ) as client:
            resp = await client.get(self.base_url, params=params)

        if resp.status_code == 429:
            raise TwilightError("API rate limit reached - please wait a few minutes")
        if resp.is_error:
            raise TwilightError(f"HTTP error! status: {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as e:
            raise TwilightError("Malformed response") from e
        if not isinstance(data, dict):
            raise TwilightError("Malformed response")
        if data.get("status") != "OK":
            raise TwilightError(f"API error: {data.get('status')}")
        return _process(data.get("results"), lat, lng)


def _process(results: object, lat: float, lng: float) -> TwilightRecord:
    """Convert the API's UTC instants into local display times for the location."""
    if not isinstance(results, dict):
        raise TwilightError("Malformed response: missing results")
    try:
        dawn_iso = results["civil_twilight_begin"]
        sunrise_iso = results["sunrise"]
        sunset_iso = results["sunset"]
        dusk_iso = results["civil_twilight_end"]
        tz_name = timezone_for(lat, lng)
        local_tz = timezone(tz_name)
        dawn, sunrise, sunset, dusk = (
            datetime.fromisoformat(v).astimezone(local_tz)
            for v in (dawn_iso, sunrise_iso, sunset_iso, dusk_iso)
        )
    except (KeyError, TypeError, ValueError) as e:
        raise TwilightError(f"Malformed response: {e}") from e

    am_start, am_end, pm_start, pm_end = golden_hours(sunrise, sunset)
    return TwilightRecord(
        dawn=dawn.strftime("%H:%M"),
        sunrise=sunrise.strftime("%H:%M"),
        sunset=sunset.strftime("%H:%M"),
        dusk=dusk.strftime("%H:%M"),
        golden_hour_morning_start=am_start,
        golden_hour_morning_end=am_end,
        golden_hour_evening_start=pm_start,
        golden_hour_evening_end=pm_end,
        dawn_iso=dawn_iso,
        sunrise_iso=sunrise_iso,
        sunset_iso=sunset_iso,
        dusk_iso=dusk_iso,
        timezone=tz_name,
    )


async def fetch_batch(
    dates: Sequence[date],
    lat: float,
    lng: float,
    lookup: TwilightLookup,
    batch_size: int = 2,
    pause: float = 0.2,
) -> list[TwilightRecord]:
    """Twilight records for many dates at one location, one lookup per distinct day.

    Distinct dates are looked up ``batch_size`` at a time with ``pause`` seconds
    between batches. Every input position holding the same calendar day gets the
    same record object.

    Args:
        dates: Dates in display order; repeats are expected.
        lat: Latitude (decimal degrees).
        lng: Longitude (decimal degrees).
        lookup: Async single-date lookup, e.g. ``TwilightClient.get_twilight_times``.
        batch_size: Concurrent lookups per batch.
        pause: Seconds to wait between batches.

    Returns:
        Records aligned with ``dates``. If the batch as a whole fails, a
        same-length list of "N/A" fallback records.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    if not dates:
        return []

    positions: dict[str, list[int]] = {}
    unique: list[date] = []
    for index, day in enumerate(dates):
        key = date_key(day)
        if key not in positions:
            positions[key] = []
            unique.append(day)
        positions[key].append(index)
    logger.debug("Batch request: %d dates -> %d unique lookups", len(dates), len(unique))

    try:
        results: list[TwilightRecord] = []
        for start in range(0, len(unique), batch_size):
            batch = unique[start : start + batch_size]
            results.extend(await asyncio.gather(*(lookup(d, lat, lng) for d in batch)))
            if pause and start + batch_size < len(unique):
                await asyncio.sleep(pause)
    except Exception:
        logger.exception("Batch twilight fetch failed (%d dates)", len(dates))
        return fallback_records(len(dates))

    output: list[TwilightRecord] = [None] * len(dates)  # type: ignore[list-item]
    for indices, record in zip(positions.values(), results):
        for index in indices:
            output[index] = record
    return output
