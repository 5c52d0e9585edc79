"""
Light after work: today's sunset vs. the end of the workday, and when it comes back.
Run:  python -m pytest tests/test_after_work.py -v
"""
from datetime import date, time

import pytest

from solarsymmetry.after_work import light_after_work, search_offsets
from solarsymmetry.models import LocationPoint, TwilightRecord

MONTREAL = LocationPoint(lat=45.5017, lng=-73.5673, name="Montreal, Quebec, Canada")


def _sunset(value):
    return TwilightRecord(dawn="06:50", sunrise="07:25", sunset=value, dusk="17:30")


class SunsetTable:
    """Sunset "16:45" before ``returns_on``, "17:05" from then on."""

    def __init__(self, returns_on):
        self.returns_on = returns_on
        self.asked = []

    async def __call__(self, day, lat, lng):
        self.asked.append(day)
        return _sunset("17:05" if day >= self.returns_on else "16:45")


class TestSearchOffsets:

    def test_weekly_then_fortnightly(self):
        assert list(search_offsets())[:9] == [1, 8, 15, 22, 29, 36, 50, 64, 78]

    def test_stays_under_horizon(self):
        offsets = list(search_offsets(365))
        assert offsets[-1] < 365
        assert list(search_offsets(10)) == [1, 8]


@pytest.mark.asyncio
async def test_light_now():
    async def lookup(day, lat, lng):
        return _sunset("19:32")

    result = await light_after_work(lookup, MONTREAL, today=date(2025, 5, 1))
    assert result.has_light_now
    assert result.target_date == date(2025, 5, 1)
    assert result.sunset == "19:32"
    assert result.days_until == 0


@pytest.mark.asyncio
async def test_light_returns_on_first_qualifying_day():
    lookup = SunsetTable(returns_on=date(2025, 1, 30))
    result = await light_after_work(lookup, MONTREAL, today=date(2025, 1, 10))

    # Checks land on Jan 11, 18, 25, Feb 1: the first after Jan 30 is Feb 1.
    assert not result.has_light_now
    assert result.target_date == date(2025, 2, 1)
    assert result.days_until == 22
    assert result.sunset == "17:05"
    assert lookup.asked[0] == date(2025, 1, 10)


@pytest.mark.asyncio
async def test_sunset_exactly_at_workday_end_does_not_count():
    async def lookup(day, lat, lng):
        return _sunset("17:00")

    assert await light_after_work(lookup, MONTREAL, today=date(2025, 1, 10), horizon=40) is None


@pytest.mark.asyncio
async def test_custom_workday_end():
    async def lookup(day, lat, lng):
        return _sunset("16:45")

    result = await light_after_work(lookup, MONTREAL, today=date(2025, 1, 10), after=time(16, 30))
    assert result.has_light_now


@pytest.mark.asyncio
async def test_unavailable_today():
    async def lookup(day, lat, lng):
        return TwilightRecord.failure("API rate limit reached")

    assert await light_after_work(lookup, MONTREAL, today=date(2025, 1, 10)) is None


@pytest.mark.asyncio
async def test_failed_lookups_are_skipped():
    async def lookup(day, lat, lng):
        if day == date(2025, 1, 10):
            return _sunset("16:45")
        if day == date(2025, 1, 11):
            return TwilightRecord.failure("HTTP error! status: 500")
        return _sunset("17:10")

    result = await light_after_work(lookup, MONTREAL, today=date(2025, 1, 10))
    assert result.target_date == date(2025, 1, 18)
    assert result.days_until == 8
