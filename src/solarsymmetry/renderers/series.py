"""Per-day sunrise/sunset series extracted from a MonthDataset, for the chart renderers."""

from dataclasses import dataclass

from solarsymmetry.dates import format_month_year
from solarsymmetry.models import MonthDataset, TwilightRecord, ViewMode


@dataclass(frozen=True)
class DaylightSeries:
    label: str
    days: tuple[int, ...]  # Day of the requested month (x axis)
    sunrise: tuple[float | None, ...]  # Local clock hours, e.g. 6.5 = 06:30
    sunset: tuple[float | None, ...]


def clock_hours(value: str | None) -> float | None:
    """``"06:30"`` → 6.5. Sentinels and missing values → None."""
    if not value:
        return None
    try:
        hours, minutes = value.split(":")
        return int(hours) + int(minutes) / 60
    except ValueError:
        return None


def _times(record: TwilightRecord | None) -> tuple[float | None, float | None]:
    if record is None or not record.available:
        return None, None
    return clock_hours(record.sunrise), clock_hours(record.sunset)


def _series(label: str, days: list[int], records: list[TwilightRecord | None]) -> DaylightSeries:
    pairs = [_times(r) for r in records]
    return DaylightSeries(
        label=label,
        days=tuple(days),
        sunrise=tuple(p[0] for p in pairs),
        sunset=tuple(p[1] for p in pairs),
    )


def daylight_series(
    dataset: MonthDataset, labels: tuple[str, str] | None = None
) -> tuple[DaylightSeries, DaylightSeries]:
    """Two series aligned on the requested month's days.

    Symmetry view: this month vs. each day's mirror date.
    Cities view: city 1 vs. city 2.
    """
    request = dataset.request
    if request.mode is ViewMode.SYMMETRY:
        days = [row.current.day for row in dataset.rows]
        first = [row.current_twilight for row in dataset.rows]
        second = [row.mirrored_twilight for row in dataset.rows]
        default_labels = (format_month_year(request.year, request.month), "Mirror dates")
    else:
        days = [row.day.day for row in dataset.rows]
        first = [row.city1_twilight for row in dataset.rows]
        second = [row.city2_twilight for row in dataset.rows]
        default_labels = (request.locations[0].name, request.locations[1].name)

    label1, label2 = labels or default_labels
    return _series(label1, days, first), _series(label2, days, second)
