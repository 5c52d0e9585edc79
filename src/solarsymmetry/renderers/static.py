"""Matplotlib static PNG renderer for a month's daylight."""

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure

from solarsymmetry.dates import format_month_year
from solarsymmetry.models import MonthDataset, ViewMode
from solarsymmetry.renderers.series import daylight_series

_ROOT = Path(__file__).parent.parent.parent.parent
_BG = "#0d1b35"
_COLORS = ("#c9a96e", "#7ec8e3")


def _as_array(values: tuple[float | None, ...]) -> np.ndarray:
    return np.array([np.nan if v is None else v for v in values], dtype=float)


def render_static_chart(dataset: MonthDataset, chart_size: tuple[int, int] = (10, 5)) -> Figure:
    """Render a MonthDataset as a static daylight chart.

    Args:
        dataset: Pipeline snapshot, normally the settled one.
        chart_size: Output image size in inches (width, height).

    Returns:
        matplotlib Figure object.
    """
    fig, ax = plt.subplots(figsize=chart_size)
    fig.patch.set_facecolor(_BG)
    ax.set_facecolor(_BG)

    for series, color in zip(daylight_series(dataset), _COLORS):
        days = np.array(series.days)
        sunrise = _as_array(series.sunrise)
        sunset = _as_array(series.sunset)
        ax.fill_between(days, sunrise, sunset, color=color, alpha=0.18, linewidth=0)
        ax.plot(days, sunrise, color=color, linewidth=1, linestyle=":")
        ax.plot(days, sunset, color=color, linewidth=1.5, label=series.label)

    ax.set_ylim(0, 24)
    ax.set_yticks(range(0, 25, 3))
    ax.set_xlabel("Day", color="#e8d5a3")
    ax.set_ylabel("Local time (h)", color="#e8d5a3")
    ax.tick_params(colors="#8899aa")
    for spine in ax.spines.values():
        spine.set_color("#334466")
    ax.grid(color="#ffffff", alpha=0.06)
    ax.legend(facecolor=_BG, edgecolor="#334466", labelcolor="#e8d5a3")

    return fig


def save_static_chart(dataset: MonthDataset, output_path: Path | None = None) -> Path:
    """Save a MonthDataset daylight chart as a PNG file.

    Args:
        dataset: Pipeline snapshot.
        output_path: Destination path. Auto-generated under results/ if None.

    Returns:
        Path to the saved file.
    """
    if output_path is None:
        request = dataset.request
        names = "__".join(loc.name for loc in request.locations)
        prefix = "mirror" if request.mode is ViewMode.SYMMETRY else "cities"
        month = format_month_year(request.year, request.month)
        filename = f"{prefix}__{names}__{month}.png".replace(" ", "_").replace(",", "")
        output_path = _ROOT / "results" / filename

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig = render_static_chart(dataset)
    fig.savefig(output_path, facecolor=_BG)
    plt.close(fig)
    return output_path
