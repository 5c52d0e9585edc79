"""Plotly daylight chart — sunrise and sunset across the month, two series overlaid.

Symmetry view compares each day with its mirror date; if the mirror really is
symmetric the two daylight bands nearly coincide. Cities view compares places.
"""

import plotly.graph_objects as go

from solarsymmetry.models import MonthDataset
from solarsymmetry.renderers.series import DaylightSeries, daylight_series

_BG = "#0d1b35"
_GRID = "rgba(255,255,255,0.08)"
_COLORS = ("#c9a96e", "#7ec8e3")
_FILLS = ("rgba(201,169,110,0.18)", "rgba(126,200,227,0.14)")


def _band(series: DaylightSeries, color: str, fill: str) -> list[go.Scatter]:
    """Sunrise line + sunset line filled down to it. Gaps stay gaps."""
    sunrise = go.Scatter(
        x=list(series.days),
        y=list(series.sunrise),
        mode="lines",
        line=dict(color=color, width=1.5, dash="dot"),
        name=f"{series.label} sunrise",
        hovertemplate="Day %{x}: sunrise %{y:.2f}h<extra></extra>",
        connectgaps=False,
    )
    sunset = go.Scatter(
        x=list(series.days),
        y=list(series.sunset),
        mode="lines",
        line=dict(color=color, width=2),
        fill="tonexty",
        fillcolor=fill,
        name=f"{series.label} sunset",
        hovertemplate="Day %{x}: sunset %{y:.2f}h<extra></extra>",
        connectgaps=False,
    )
    return [sunrise, sunset]


def render_daylight_chart(
    dataset: MonthDataset, labels: tuple[str, str] | None = None
) -> go.Figure:
    """Render a MonthDataset as an interactive daylight chart.

    Days still loading or unavailable leave gaps rather than being interpolated.

    Args:
        dataset: Any pipeline snapshot.
        labels: Legend names for the two series. Derived from the view if omitted.

    Returns:
        Plotly Figure object.
    """
    first, second = daylight_series(dataset, labels)
    traces = _band(first, _COLORS[0], _FILLS[0]) + _band(second, _COLORS[1], _FILLS[1])
    fig = go.Figure(data=traces)

    fig.update_layout(
        paper_bgcolor=_BG,
        plot_bgcolor=_BG,
        font=dict(color="#e8d5a3"),
        margin=dict(l=40, r=10, t=10, b=40),
        height=320,
        legend=dict(orientation="h", y=-0.2),
        xaxis=dict(title="Day", gridcolor=_GRID, dtick=5),
        yaxis=dict(
            title="Local time (h)",
            gridcolor=_GRID,
            range=[0, 24],
            dtick=3,
        ),
    )
    fig._config = {"displayModeBar": False}  # type: ignore[attr-defined]

    return fig
