"""Month pipeline — assemble a month, enrich it chunk by chunk, render after every step.

Each request carries a generation number. Only the newest generation may render;
older runs stop at their next checkpoint and their results are dropped.
"""

import asyncio
import logging
import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import date

from solarsymmetry.dates import (
    date_key,
    get_month_for_comparison,
    get_month_with_mirrors,
)
from solarsymmetry.models import (
    ComparisonDay,
    LocationPoint,
    MirrorPair,
    MonthDataset,
    MonthRequest,
    NavigationPolicy,
    PipelineState,
    TwilightRecord,
    ViewMode,
)
from solarsymmetry.twilight import TwilightLookup, fallback_records, fetch_batch

logger = logging.getLogger(__name__)

RenderSink = Callable[[MonthDataset], None]


@dataclass(frozen=True)
class PipelineOptions:
    mirror_chunk_size: int = 5
    comparison_chunk_size: int = 10  # comparison rows need one date each, not two
    chunk_pause: float = 0.1
    batch_size: int = 2
    batch_pause: float = 0.2
    navigation: NavigationPolicy = NavigationPolicy.SINGLE_YEAR

    def chunk_size(self, mode: ViewMode) -> int:
        if mode is ViewMode.SYMMETRY:
            return self.mirror_chunk_size
        return self.comparison_chunk_size


class MonthPipeline:
    """Drives one month at a time through twilight lookups with progressive rendering.

    Args:
        lookup: Async single-date twilight lookup (never raises by contract).
        render: Called with every snapshot; may be called many times per request.
        options: Chunking and pacing parameters.
        today: Returns the calendar date used for ``is_today`` flags.
    """

    def __init__(
        self,
        lookup: TwilightLookup,
        render: RenderSink,
        options: PipelineOptions | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.lookup = lookup
        self.render = render
        self.options = options or PipelineOptions()
        self.state = PipelineState.IDLE
        self._today = today
        self._generation = 0
        self._task: asyncio.Task | None = None

    @property
    def generation(self) -> int:
        return self._generation

    def begin(
        self,
        year: int,
        month: int,
        mode: ViewMode,
        locations: Iterable[LocationPoint],
    ) -> MonthRequest:
        """Create the next request. Any earlier request becomes stale."""
        locations = tuple(locations)
        expected = 1 if mode is ViewMode.SYMMETRY else 2
        if len(locations) != expected:
            raise ValueError(
                f"{mode.value} view needs {expected} location(s), got {len(locations)}"
            )
        if not 1 <= month <= 12:
            raise ValueError(f"month must be in 1..12, got {month}")
        self._generation += 1
        return MonthRequest(
            year=year,
            month=month,
            mode=mode,
            locations=locations,
            generation=self._generation,
        )

    def is_current(self, request: MonthRequest) -> bool:
        return request.generation == self._generation

    def submit(
        self,
        year: int,
        month: int,
        mode: ViewMode,
        locations: Iterable[LocationPoint],
    ) -> asyncio.Task:
        """Begin a request and run it as a task, cancelling the previous one.

        Must be called from inside a running event loop.
        """
        request = self.begin(year, month, mode, locations)
        if self._task is not None and not self._task.done():
            logger.debug("Cancelling in-flight generation %d", request.generation - 1)
            self._task.cancel()
        self._task = asyncio.create_task(self.run(request))
        return self._task

    async def run(self, request: MonthRequest) -> MonthDataset | None:
        """Assemble, render, then enrich and re-render chunk by chunk.

        Returns:
            The last rendered snapshot, or None if a newer request superseded this one.
        """
        if not self.is_current(request):
            return None

        self.state = PipelineState.ASSEMBLING
        today = self._today()
        rows: list[MirrorPair | ComparisonDay]
        if request.mode is ViewMode.SYMMETRY:
            rows = list(get_month_with_mirrors(request.year, request.month, today))
        else:
            rows = list(get_month_for_comparison(request.year, request.month, today))

        chunk_size = self.options.chunk_size(request.mode)
        chunks_total = math.ceil(len(rows) / chunk_size)
        dataset = MonthDataset(
            request=request,
            rows=tuple(rows),
            state=PipelineState.ASSEMBLING,
            chunks_total=chunks_total,
        )
        if not self._emit(dataset):
            return None

        for index, start in enumerate(range(0, len(rows), chunk_size)):
            if not self.is_current(request):
                logger.debug("Generation %d superseded before chunk %d", request.generation, index)
                return None

            self.state = PipelineState.FETCHING
            try:
                if request.mode is ViewMode.SYMMETRY:
                    await self._enrich_mirror_chunk(request, rows, start, chunk_size)
                else:
                    await self._enrich_comparison_chunk(request, rows, start, chunk_size)
            except Exception as e:
                logger.exception(
                    "Failed to load twilight data for %04d-%02d (chunk %d/%d)",
                    request.year,
                    request.month,
                    index + 1,
                    chunks_total,
                )
                dataset = MonthDataset(
                    request=request,
                    rows=tuple(rows),
                    state=PipelineState.FAILED,
                    chunks_done=index,
                    chunks_total=chunks_total,
                    errors=(str(e) or type(e).__name__,),
                )
                return dataset if self._emit(dataset) else None

            done = index + 1
            last = done == chunks_total
            dataset = MonthDataset(
                request=request,
                rows=tuple(rows),
                state=PipelineState.SETTLED if last else PipelineState.RENDERING,
                chunks_done=done,
                chunks_total=chunks_total,
            )
            if not self._emit(dataset):
                return None
            if not last and self.options.chunk_pause:
                await asyncio.sleep(self.options.chunk_pause)

        return dataset

    def _emit(self, dataset: MonthDataset) -> bool:
        if not self.is_current(dataset.request):
            logger.debug("Dropping stale render for generation %d", dataset.request.generation)
            return False
        self.state = dataset.state
        self.render(dataset)
        return True

    async def _fetch(self, days: list[date], location: LocationPoint) -> list[TwilightRecord]:
        return await fetch_batch(
            days,
            location.lat,
            location.lng,
            self.lookup,
            batch_size=self.options.batch_size,
            pause=self.options.batch_pause,
        )

    async def _enrich_mirror_chunk(
        self, request: MonthRequest, rows: list, start: int, size: int
    ) -> None:
        chunk: list[MirrorPair] = rows[start : start + size]

        # Current and mirrored days share one lookup when they coincide.
        unique: dict[str, date] = {}
        for pair in chunk:
            unique.setdefault(date_key(pair.current), pair.current)
            unique.setdefault(date_key(pair.mirrored), pair.mirrored)

        records = await self._fetch(list(unique.values()), request.locations[0])
        by_key = dict(zip(unique, records))

        for offset, pair in enumerate(chunk):
            rows[start + offset] = replace(
                pair,
                current_twilight=by_key[date_key(pair.current)],
                mirrored_twilight=by_key[date_key(pair.mirrored)],
            )

    async def _enrich_comparison_chunk(
        self, request: MonthRequest, rows: list, start: int, size: int
    ) -> None:
        chunk: list[ComparisonDay] = rows[start : start + size]
        days = [row.day for row in chunk]
        city1, city2 = request.locations

        results = await asyncio.gather(
            self._fetch(days, city1),
            self._fetch(days, city2),
            return_exceptions=True,
        )
        city1_records, city2_records = (
            _side_or_fallback(result, len(days), location)
            for result, location in zip(results, (city1, city2))
        )

        for offset, row in enumerate(chunk):
            rows[start + offset] = replace(
                row,
                city1_twilight=city1_records[offset],
                city2_twilight=city2_records[offset],
            )


def _side_or_fallback(
    result: list[TwilightRecord] | BaseException, count: int, location: LocationPoint
) -> list[TwilightRecord]:
    """One location's records, or fallbacks if that side blew up."""
    if isinstance(result, Exception):
        logger.error("Twilight fetch failed for %s: %s", location.name, result)
        return fallback_records(count)
    if isinstance(result, BaseException):
        raise result
    return result
