"""HTML month columns — one card per day with twilight and sun times.

Produces a self-contained HTML string for ``st.markdown(..., unsafe_allow_html=True)``.
A cell still waiting on data shows the loading marker; a cell whose lookup
failed shows the unavailable marker, with the upstream error as its tooltip.
"""

from __future__ import annotations

import html
from datetime import date

from solarsymmetry.dates import format_day
from solarsymmetry.i18n import t
from solarsymmetry.models import MonthDataset, TwilightRecord, ViewMode

_CARD_BG = "rgba(255,255,255,0.04)"
_TEXT = "#e8d5a3"
_MUTED = "#8899aa"
_ACCENT = "#c9a96e"
_ERROR = "#ff9999"

_CSS = f"""
<style>
.ss-month {{ display: flex; gap: 1.2rem; width: 100%; }}
.ss-column {{ flex: 1 1 0; min-width: 0; }}
.ss-column h4 {{ color: {_ACCENT}; font-weight: 600; margin: 0 0 0.6rem; }}
.ss-card {{
    background: {_CARD_BG};
    border: 1px solid rgba(201,169,110,0.12);
    border-radius: 8px;
    padding: 0.5rem 0.8rem;
    margin-bottom: 0.45rem;
    color: {_TEXT};
}}
.ss-card.today {{ border-color: {_ACCENT}; box-shadow: 0 0 0 1px {_ACCENT} inset; }}
.ss-date {{ font-weight: 600; margin-bottom: 0.25rem; }}
.ss-times {{ display: grid; grid-template-columns: repeat(4, 1fr); gap: 0.3rem; font-size: 0.85rem; }}
.ss-times.golden {{ grid-template-columns: repeat(2, 1fr); margin-top: 0.25rem; }}
.ss-label {{ color: {_MUTED}; font-size: 0.72rem; }}
.ss-loading {{ color: {_MUTED}; font-style: italic; font-size: 0.85rem; }}
.ss-unavailable {{ color: {_ERROR}; font-size: 0.85rem; }}
</style>
"""


def _time_cell(label: str, value: str) -> str:
    return (
        f"<div><div class='ss-label'>{html.escape(label)}</div>"
        f"<div>{html.escape(value)}</div></div>"
    )


def _twilight_block(record: TwilightRecord | None, lang: str, show_golden_hour: bool) -> str:
    if record is None:
        return f"<div class='ss-loading'>{t('cell_loading', lang)}</div>"
    if not record.available:
        return (
            f"<div class='ss-unavailable' title='{html.escape(record.error or '')}'>"
            f"{t('cell_unavailable', lang)}</div>"
        )

    cells = [
        _time_cell(t("time_dawn", lang), record.dawn),
        _time_cell(t("time_sunrise", lang), record.sunrise),
        _time_cell(t("time_sunset", lang), record.sunset),
        _time_cell(t("time_dusk", lang), record.dusk),
    ]
    block = f"<div class='ss-times'>{''.join(cells)}</div>"
    if show_golden_hour:
        am = f"{record.golden_hour_morning_start or 'N/A'} – {record.golden_hour_morning_end or 'N/A'}"
        pm = f"{record.golden_hour_evening_start or 'N/A'} – {record.golden_hour_evening_end or 'N/A'}"
        block += (
            "<div class='ss-times golden'>"
            f"{_time_cell(t('time_golden_am', lang), am)}"
            f"{_time_cell(t('time_golden_pm', lang), pm)}"
            "</div>"
        )
    return block


def date_card(
    day: date,
    record: TwilightRecord | None,
    is_today: bool = False,
    lang: str = "en",
    show_golden_hour: bool = False,
) -> str:
    css_class = "ss-card today" if is_today else "ss-card"
    return (
        f"<div class='{css_class}'>"
        f"<div class='ss-date'>{format_day(day)}</div>"
        f"{_twilight_block(record, lang, show_golden_hour)}"
        "</div>"
    )


def _column(title: str, cards: list[str]) -> str:
    return f"<div class='ss-column'><h4>{html.escape(title)}</h4>{''.join(cards)}</div>"


def render_month_html(
    dataset: MonthDataset, lang: str = "en", show_golden_hour: bool = False
) -> str:
    """Return the two month columns for the dataset's view as one HTML string.

    Args:
        dataset: Any snapshot from the pipeline, enriched or not.
        lang: Language code for labels.
        show_golden_hour: Add golden hour rows under each available cell.

    Returns:
        HTML string (styles included).
    """
    request = dataset.request
    if request.mode is ViewMode.SYMMETRY:
        left = [
            date_card(r.current, r.current_twilight, r.is_today, lang, show_golden_hour)
            for r in dataset.rows
        ]
        # Only the current column highlights today.
        right = [
            date_card(r.mirrored, r.mirrored_twilight, False, lang, show_golden_hour)
            for r in dataset.rows
        ]
        titles = (t("col_current", lang), t("col_mirrored", lang))
    else:
        left = [
            date_card(r.day, r.city1_twilight, r.is_today, lang, show_golden_hour)
            for r in dataset.rows
        ]
        right = [
            date_card(r.day, r.city2_twilight, r.is_today, lang, show_golden_hour)
            for r in dataset.rows
        ]
        titles = (request.locations[0].name, request.locations[1].name)

    return (
        _CSS
        + "<div class='ss-month'>"
        + _column(titles[0], left)
        + _column(titles[1], right)
        + "</div>"
    )
