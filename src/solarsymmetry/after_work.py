"""Light after work — the next day the sun sets after the end of the workday."""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, time, timedelta

from solarsymmetry.models import LocationPoint, TwilightRecord
from solarsymmetry.twilight import TwilightLookup

logger = logging.getLogger(__name__)

WORKDAY_END = time(17, 0)
SEARCH_HORIZON_DAYS = 365


@dataclass(frozen=True)
class LightAfterWork:
    has_light_now: bool  # today's sunset is already after the workday ends
    target_date: date  # today, or the first checked day with light after work
    sunset: str  # local "HH:MM" on target_date
    days_until: int  # 0 when has_light_now


def _sunset_minutes(record: TwilightRecord) -> int | None:
    if not record.available:
        return None
    try:
        hours, minutes = record.sunset.split(":")
        return int(hours) * 60 + int(minutes)
    except ValueError:
        return None


def search_offsets(horizon: int = SEARCH_HORIZON_DAYS) -> Iterator[int]:
    """Days ahead to check: weekly for the first month, fortnightly after."""
    offset = 1
    while offset < horizon:
        yield offset
        offset += 7 if offset < 30 else 14


async def light_after_work(
    lookup: TwilightLookup,
    location: LocationPoint,
    today: date | None = None,
    after: time = WORKDAY_END,
    horizon: int = SEARCH_HORIZON_DAYS,
) -> LightAfterWork | None:
    """Find whether there is daylight after ``after`` today, or when it returns.

    Args:
        lookup: Async twilight lookup (shares the pipeline's cache).
        location: Where to look.
        today: Starting date; ``date.today()`` when omitted.
        after: End of the workday, local time.
        horizon: Stop searching this many days ahead.

    Returns:
        LightAfterWork, or None when today's data is unavailable or no checked
        day within the horizon qualifies.
    """
    if today is None:
        today = date.today()
    target = after.hour * 60 + after.minute

    record = await lookup(today, location.lat, location.lng)
    minutes = _sunset_minutes(record)
    if minutes is None:
        logger.warning("No sunset for %s on %s: %s", location.name, today, record.error)
        return None
    if minutes > target:
        return LightAfterWork(has_light_now=True, target_date=today, sunset=record.sunset, days_until=0)

    for offset in search_offsets(horizon):
        day = today + timedelta(days=offset)
        record = await lookup(day, location.lat, location.lng)
        minutes = _sunset_minutes(record)
        if minutes is not None and minutes > target:
            return LightAfterWork(
                has_light_now=False, target_date=day, sunset=record.sunset, days_until=offset
            )
    return None
