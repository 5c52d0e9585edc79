"""Date math — nearest solstice, mirror dates, and month assembly.

Solstices are pinned to June 21 and December 21. They are calendar anchors,
not the astronomical instants, which drift by a day or so from year to year.
"""

import calendar
from datetime import date, timedelta

from solarsymmetry.models import ComparisonDay, MirrorPair, NavigationPolicy

SUMMER_SOLSTICE = (6, 21)
WINTER_SOLSTICE = (12, 21)


def date_key(day: date) -> str:
    """Return the ``YYYY-MM-DD`` key used for API requests and deduplication."""
    return day.isoformat()


def get_nearest_solstice(day: date) -> date:
    """Return the solstice anchor closest to ``day``.

    Candidates are, in order: June 21 and December 21 of the same year, then
    December 21 of the previous and of the next year. On an exact tie the
    earlier candidate in that order wins (e.g. March 22 resolves to June 21,
    not to the previous December 21).

    Args:
        day: Any calendar date.

    Returns:
        The solstice date with the smallest absolute day distance.
    """
    year = day.year
    candidates = (
        date(year, *SUMMER_SOLSTICE),
        date(year, *WINTER_SOLSTICE),
        date(year - 1, *WINTER_SOLSTICE),
        date(year + 1, *WINTER_SOLSTICE),
    )
    nearest = candidates[0]
    for candidate in candidates[1:]:
        if abs((day - candidate).days) < abs((day - nearest).days):
            nearest = candidate
    return nearest


def calculate_mirror_date(day: date) -> date:
    """Reflect ``day`` across its nearest solstice.

    A date ``d`` days after the solstice maps to the date ``d`` days before it,
    and vice versa. Arithmetic is on whole days, so month and year boundaries
    are crossed naturally (2025-01-05 → 2024-12-06).
    """
    solstice = get_nearest_solstice(day)
    offset = (day - solstice).days
    return solstice - timedelta(days=offset)


def _check_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}")


def get_month_dates(year: int, month: int) -> list[date]:
    """Every calendar day of the month, ascending."""
    _check_month(month)
    _, days_in_month = calendar.monthrange(year, month)
    return [date(year, month, d) for d in range(1, days_in_month + 1)]


def is_today(day: date, today: date | None = None) -> bool:
    """Calendar-day equality with ``today`` (``date.today()`` when omitted)."""
    if today is None:
        today = date.today()
    return day == today


def get_month_with_mirrors(
    year: int, month: int, today: date | None = None
) -> tuple[MirrorPair, ...]:
    """Pair each day of the month with its mirror date.

    Args:
        year: Calendar year.
        month: Month number, 1-12.
        today: The caller's notion of "now" as a calendar date. Defaults to
            ``date.today()`` evaluated once for the whole month.

    Returns:
        One un-enriched MirrorPair per day, in calendar order.
    """
    if today is None:
        today = date.today()
    return tuple(
        MirrorPair(
            current=day,
            mirrored=calculate_mirror_date(day),
            is_today=is_today(day, today),
        )
        for day in get_month_dates(year, month)
    )


def get_month_for_comparison(
    year: int, month: int, today: date | None = None
) -> tuple[ComparisonDay, ...]:
    """Each day of the month, unpaired, for the two-location comparison view."""
    if today is None:
        today = date.today()
    return tuple(
        ComparisonDay(day=day, is_today=is_today(day, today))
        for day in get_month_dates(year, month)
    )


# --- Month navigation ---


def previous_month(year: int, month: int) -> tuple[int, int]:
    _check_month(month)
    if month == 1:
        return year - 1, 12
    return year, month - 1


def next_month(year: int, month: int) -> tuple[int, int]:
    _check_month(month)
    if month == 12:
        return year + 1, 1
    return year, month + 1


def can_go_to_previous_month(
    month: int, policy: NavigationPolicy = NavigationPolicy.SINGLE_YEAR
) -> bool:
    """Single-year navigation stops at January; unbounded never stops."""
    _check_month(month)
    if policy is NavigationPolicy.UNBOUNDED:
        return True
    return month > 1


def can_go_to_next_month(
    month: int, policy: NavigationPolicy = NavigationPolicy.SINGLE_YEAR
) -> bool:
    """Single-year navigation stops at December; unbounded never stops."""
    _check_month(month)
    if policy is NavigationPolicy.UNBOUNDED:
        return True
    return month < 12


# --- Display formatting (en-US) ---


def format_day(day: date) -> str:
    """``Sep 11``"""
    return f"{calendar.month_abbr[day.month]} {day.day}"


def format_month_year(year: int, month: int) -> str:
    """``September 2025``"""
    _check_month(month)
    return f"{calendar.month_name[month]} {year}"
