"""
Month pipeline: progressive rendering, comparison mode, supersession and failure.
Run:  python -m pytest tests/test_pipeline.py -v
"""
import asyncio
from datetime import date

import pytest

from solarsymmetry.models import LocationPoint, PipelineState, TwilightRecord, ViewMode
from solarsymmetry.pipeline import MonthPipeline, PipelineOptions

MONTREAL = LocationPoint(lat=45.5017, lng=-73.5673, name="Montreal, Quebec, Canada")
PARIS = LocationPoint(lat=48.8566, lng=2.3522, name="Paris, Ile-de-France, France")

FAST = PipelineOptions(chunk_pause=0, batch_pause=0)


def _record(day):
    return TwilightRecord(dawn="05:00", sunrise="05:30", sunset="20:00", dusk=day.isoformat())


class Recorder:
    def __init__(self):
        self.snapshots = []

    def __call__(self, dataset):
        self.snapshots.append(dataset)


class CountingLookup:
    def __init__(self, fail_for_lng=None):
        self.calls = []
        self.fail_for_lng = fail_for_lng

    async def __call__(self, day, lat, lng):
        self.calls.append((day, lng))
        if lng == self.fail_for_lng:
            raise RuntimeError("upstream unreachable")
        return _record(day)


def _pipeline(lookup, render, options=FAST):
    return MonthPipeline(lookup, render, options, today=lambda: date(2025, 9, 11))


# ─────────────────────────────────────────────────────────────────────────────
# 1. SYMMETRY VIEW
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_thirty_days_render_seven_times():
    render = Recorder()
    pipeline = _pipeline(CountingLookup(), render)

    request = pipeline.begin(2025, 9, ViewMode.SYMMETRY, [MONTREAL])
    final = await pipeline.run(request)

    assert len(render.snapshots) == 7
    first = render.snapshots[0]
    assert first.state is PipelineState.ASSEMBLING
    assert len(first.rows) == 30
    assert all(r.current_twilight is None and r.mirrored_twilight is None for r in first.rows)

    assert [s.chunks_done for s in render.snapshots] == [0, 1, 2, 3, 4, 5, 6]
    assert all(s.chunks_total == 6 for s in render.snapshots)
    assert [s.state for s in render.snapshots[1:-1]] == [PipelineState.RENDERING] * 5

    assert final is render.snapshots[-1]
    assert final.state is PipelineState.SETTLED
    assert final.settled and not final.failed
    assert pipeline.state is PipelineState.SETTLED
    for row in final.rows:
        assert row.current_twilight.dusk == row.current.isoformat()
        assert row.mirrored_twilight.dusk == row.mirrored.isoformat()


@pytest.mark.asyncio
async def test_progressive_snapshots_fill_in_order():
    render = Recorder()
    pipeline = _pipeline(CountingLookup(), render)
    await pipeline.run(pipeline.begin(2025, 9, ViewMode.SYMMETRY, [MONTREAL]))

    second = render.snapshots[1]
    assert all(r.current_twilight is not None for r in second.rows[:5])
    assert all(r.current_twilight is None for r in second.rows[5:])


@pytest.mark.asyncio
async def test_today_flag_only_on_current_day():
    render = Recorder()
    pipeline = _pipeline(CountingLookup(), render)
    final = await pipeline.run(pipeline.begin(2025, 9, ViewMode.SYMMETRY, [MONTREAL]))
    assert [r.current.day for r in final.rows if r.is_today] == [11]


@pytest.mark.asyncio
async def test_chunk_shares_lookup_when_dates_coincide():
    lookup = CountingLookup()
    pipeline = _pipeline(lookup, Recorder())
    final = await pipeline.run(pipeline.begin(2025, 6, ViewMode.SYMMETRY, [MONTREAL]))

    # The June 21-25 chunk mirrors onto June 17-21: nine distinct days, not ten.
    assert len(lookup.calls) == 59
    solstice = final.rows[20]
    assert solstice.current == solstice.mirrored == date(2025, 6, 21)
    assert solstice.current_twilight is solstice.mirrored_twilight


@pytest.mark.asyncio
async def test_failed_lookups_still_settle():
    async def lookup(day, lat, lng):
        return TwilightRecord.failure("HTTP error! status: 500")

    render = Recorder()
    pipeline = _pipeline(lookup, render)
    final = await pipeline.run(pipeline.begin(2025, 9, ViewMode.SYMMETRY, [MONTREAL]))

    assert final.state is PipelineState.SETTLED
    assert all(r.current_twilight.error for r in final.rows)


# ─────────────────────────────────────────────────────────────────────────────
# 2. CITIES VIEW
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_comparison_isolates_failing_location():
    render = Recorder()
    pipeline = _pipeline(CountingLookup(fail_for_lng=PARIS.lng), render)

    final = await pipeline.run(pipeline.begin(2025, 9, ViewMode.CITIES, [MONTREAL, PARIS]))

    # 30 days in chunks of 10, plus the initial render
    assert len(render.snapshots) == 4
    assert final.state is PipelineState.SETTLED
    assert all(r.city1_twilight.available for r in final.rows)
    assert all(r.city2_twilight.error is not None for r in final.rows)
    assert final.rows[0].city1_twilight.dusk == "2025-09-01"


@pytest.mark.asyncio
async def test_comparison_both_succeed():
    lookup = CountingLookup()
    pipeline = _pipeline(lookup, Recorder())
    final = await pipeline.run(pipeline.begin(2024, 2, ViewMode.CITIES, [MONTREAL, PARIS]))

    assert len(final.rows) == 29
    assert len(lookup.calls) == 58
    assert all(r.city1_twilight.available and r.city2_twilight.available for r in final.rows)


# ─────────────────────────────────────────────────────────────────────────────
# 3. REQUESTS, SUPERSESSION, FAILURE
# ─────────────────────────────────────────────────────────────────────────────

class TestBegin:

    def test_location_count_must_match_view(self):
        pipeline = _pipeline(CountingLookup(), Recorder())
        with pytest.raises(ValueError):
            pipeline.begin(2025, 9, ViewMode.SYMMETRY, [MONTREAL, PARIS])
        with pytest.raises(ValueError):
            pipeline.begin(2025, 9, ViewMode.CITIES, [MONTREAL])
        with pytest.raises(ValueError):
            pipeline.begin(2025, 9, ViewMode.SYMMETRY, [])

    def test_bad_month(self):
        pipeline = _pipeline(CountingLookup(), Recorder())
        with pytest.raises(ValueError):
            pipeline.begin(2025, 13, ViewMode.SYMMETRY, [MONTREAL])
        assert pipeline.generation == 0

    def test_generations_increase(self):
        pipeline = _pipeline(CountingLookup(), Recorder())
        first = pipeline.begin(2025, 9, ViewMode.SYMMETRY, [MONTREAL])
        second = pipeline.begin(2025, 10, ViewMode.SYMMETRY, [MONTREAL])
        assert second.generation == first.generation + 1
        assert not pipeline.is_current(first)
        assert pipeline.is_current(second)
        assert second.locations == (MONTREAL,)

    def test_chunk_size_per_view(self):
        assert FAST.chunk_size(ViewMode.SYMMETRY) == 5
        assert FAST.chunk_size(ViewMode.CITIES) == 10


@pytest.mark.asyncio
async def test_superseded_request_stops_rendering():
    render = Recorder()
    pipeline = _pipeline(CountingLookup(), render)
    stale = pipeline.begin(2025, 9, ViewMode.SYMMETRY, [MONTREAL])

    def navigate_away(dataset):
        render(dataset)
        if len(render.snapshots) == 2:
            pipeline.begin(2025, 10, ViewMode.SYMMETRY, [MONTREAL])

    pipeline.render = navigate_away
    assert await pipeline.run(stale) is None
    assert len(render.snapshots) == 2
    assert all(s.request.generation == stale.generation for s in render.snapshots)


@pytest.mark.asyncio
async def test_stale_request_never_renders():
    render = Recorder()
    pipeline = _pipeline(CountingLookup(), render)
    stale = pipeline.begin(2025, 9, ViewMode.SYMMETRY, [MONTREAL])
    pipeline.begin(2025, 10, ViewMode.SYMMETRY, [MONTREAL])

    assert await pipeline.run(stale) is None
    assert render.snapshots == []


@pytest.mark.asyncio
async def test_submit_cancels_in_flight_request():
    async def slow_lookup(day, lat, lng):
        await asyncio.sleep(0.001)
        return _record(day)

    render = Recorder()
    pipeline = _pipeline(slow_lookup, render)

    first = pipeline.submit(2025, 9, ViewMode.SYMMETRY, [MONTREAL])
    second = pipeline.submit(2025, 10, ViewMode.SYMMETRY, [MONTREAL])
    final = await second

    await asyncio.gather(first, return_exceptions=True)
    assert first.cancelled()
    assert final.request.month == 10
    assert final.state is PipelineState.SETTLED
    assert {s.request.generation for s in render.snapshots} == {pipeline.generation}


@pytest.mark.asyncio
async def test_unexpected_error_marks_dataset_failed():
    render = Recorder()
    pipeline = _pipeline(CountingLookup(), render)

    async def broken(days, location):
        raise RuntimeError("boom")

    pipeline._fetch = broken
    final = await pipeline.run(pipeline.begin(2025, 9, ViewMode.SYMMETRY, [MONTREAL]))

    assert final.state is PipelineState.FAILED
    assert final.failed and final.settled
    assert final.errors == ("boom",)
    assert final.chunks_done == 0
    assert len(render.snapshots) == 2
    assert pipeline.state is PipelineState.FAILED


# ─────────────────────────────────────────────────────────────────────────────
# 4. PACING
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def pauses(monkeypatch):
    recorded = []

    async def record_sleep(seconds):
        recorded.append(seconds)

    monkeypatch.setattr(asyncio, "sleep", record_sleep)
    return recorded


@pytest.mark.asyncio
async def test_chunk_pause_between_chunks_only(pauses):
    options = PipelineOptions(chunk_pause=0.1, batch_pause=0)
    pipeline = _pipeline(CountingLookup(), Recorder(), options)
    await pipeline.run(pipeline.begin(2025, 9, ViewMode.SYMMETRY, [MONTREAL]))

    # six chunks, no pause after the last
    assert pauses == [0.1] * 5


@pytest.mark.asyncio
async def test_cities_chunk_pauses(pauses):
    options = PipelineOptions(chunk_pause=0.1, batch_pause=0)
    pipeline = _pipeline(CountingLookup(), Recorder(), options)
    await pipeline.run(pipeline.begin(2025, 9, ViewMode.CITIES, [MONTREAL, PARIS]))
    assert pauses == [0.1, 0.1]


@pytest.mark.asyncio
async def test_default_pacing_interleaves_batch_and_chunk_pauses(pauses):
    pipeline = _pipeline(CountingLookup(), Recorder(), PipelineOptions())
    await pipeline.run(pipeline.begin(2025, 9, ViewMode.SYMMETRY, [MONTREAL]))

    # each chunk: 10 distinct dates in batches of 2 -> four 0.2 s pauses
    per_chunk = [0.2] * 4
    assert pauses == (per_chunk + [0.1]) * 5 + per_chunk


@pytest.mark.asyncio
async def test_no_pause_after_failure(pauses):
    pipeline = _pipeline(CountingLookup(), Recorder(), PipelineOptions(chunk_pause=0.1))

    async def broken(days, location):
        raise RuntimeError("boom")

    pipeline._fetch = broken
    await pipeline.run(pipeline.begin(2025, 9, ViewMode.SYMMETRY, [MONTREAL]))
    assert pauses == []
