"""Price samples → renderable chart series.

The renderer consumes a RenderableSeries: labels and values aligned by index,
one dataset with display settings, and chart-level options. The dataset fill
is not a colour but a style provider. It needs the chart's pixel area, which
only exists once the renderer has laid the chart out, so the renderer calls
it at paint time with a ChartArea (or None before layout).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any, Callable, Sequence

from blockscope.models import PricePoint

DATASET_LABEL = "Bitcoin Price (USD)"
LINE_COLOR = "rgba(255, 99, 132, 1)"
FILL_TOP_COLOR = "rgba(255, 99, 132, 0.5)"
FILL_BOTTOM_COLOR = "rgba(255, 99, 132, 0)"


@dataclass(frozen=True)
class ChartArea:
    """Pixel bounds of the plot area, known only after layout."""

    left: float
    top: float
    right: float
    bottom: float

    @property
    def height(self) -> float:
        return self.bottom - self.top


@dataclass(frozen=True)
class LinearGradient:
    """Vertical gradient: colour stops at offsets 0.0 (y0) to 1.0 (y1)."""

    x0: float
    y0: float
    x1: float
    y1: float
    stops: tuple[tuple[float, str], ...]

    def color_at(self, offset: float) -> str:
        """Colour of the nearest stop at or below offset."""
        chosen = self.stops[0][1]
        for stop, color in self.stops:
            if stop <= offset:
                chosen = color
        return chosen


StyleProvider = Callable[[ChartArea | None], LinearGradient | None]


def gradient_fill(area: ChartArea | None) -> LinearGradient | None:
    """Fill under the price line: fades from translucent red to transparent."""
    if area is None:
        return None
    return LinearGradient(
        x0=0,
        y0=area.top,
        x1=0,
        y1=area.bottom,
        stops=((0.0, FILL_TOP_COLOR), (1.0, FILL_BOTTOM_COLOR)),
    )


@dataclass(frozen=True)
class Dataset:
    label: str
    data: tuple[float, ...]
    background: StyleProvider = gradient_fill
    border_color: str = LINE_COLOR
    border_width: int = 2
    point_radius: int = 0
    fill: bool = True


@dataclass(frozen=True)
class LegendEntry:
    text: str
    fill_style: str
    stroke_style: str
    line_width: int
    hidden: bool
    dataset_index: int


@dataclass(frozen=True)
class RenderableSeries:
    labels: tuple[str, ...]
    values: tuple[float, ...]
    datasets: tuple[Dataset, ...]
    options: dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.values)


def legend_labels(
    datasets: Sequence[Dataset], visible: Callable[[int], bool] = lambda i: True
) -> list[LegendEntry]:
    """Legend entries drawn in each dataset's line colour."""
    return [
        LegendEntry(
            text=ds.label,
            fill_style=ds.border_color,
            stroke_style=ds.border_color,
            line_width=ds.border_width,
            hidden=not visible(i),
            dataset_index=i,
        )
        for i, ds in enumerate(datasets)
    ]


def chart_options() -> dict[str, Any]:
    """Axes and grid hidden; legend top-left with line-coloured swatches."""
    return {
        "scales": {
            "x": {"grid": {"display": False}, "display": False},
            "y": {"grid": {"display": False}, "display": False},
        },
        "plugins": {
            "legend": {
                "display": True,
                "position": "top",
                "align": "start",
                "labels": {
                    "generate_labels": legend_labels,
                    "box_width": 40,
                    "box_height": 1,
                    "padding": 20,
                },
            },
        },
    }


def format_date_label(timestamp_ms: int, tz: tzinfo | None = None) -> str:
    """M/D/YYYY date of an epoch-ms timestamp, local time unless tz is given."""
    if tz is None:
        dt = datetime.fromtimestamp(timestamp_ms / 1000).astimezone()
    else:
        dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=tz)
    return f"{dt.month}/{dt.day}/{dt.year}"


def to_series(points: Sequence[PricePoint], tz: tzinfo | None = None) -> RenderableSeries:
    """
    Convert price samples to a renderable series.

    Pure: order is preserved, labels[i] and values[i] describe points[i].
    """
    labels = tuple(format_date_label(p.timestamp_ms, tz) for p in points)
    values = tuple(p.price for p in points)
    dataset = Dataset(label=DATASET_LABEL, data=values)
    return RenderableSeries(
        labels=labels,
        values=values,
        datasets=(dataset,),
        options=chart_options(),
    )

