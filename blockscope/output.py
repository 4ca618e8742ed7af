"""Rendering for blockscope.

Two surfaces:
- format_output(): one-shot command results as json or a Rich table string
- render_dashboard(): the live view of a ViewState, as a Rich renderable

Display formats follow the web dashboard: price "$%.2f", sent today
"%.2f BTC", hashrate "%.2f H/s", chain size "%.8f GB", hash shown as its
last six characters.
"""

from __future__ import annotations

import io
import json
import re
from typing import Any

from rich.console import Console, Group, RenderableType
from rich.table import Table
from rich.text import Text

from blockscope.chart import ChartArea, RenderableSeries, legend_labels
from blockscope.models import BlockSnapshot
from blockscope.state import FetchState, ViewState

VALID_FORMATS = {"json", "table"}

NO_BLOCKS_TEXT = "No blocks available"
TOAST_TEXT = "Copied to clipboard!"
LOADING_TEXT = "Loading..."

SPARK_CHARS = "▁▂▃▄▅▆▇█"
CHART_HEIGHT = 8

_RGBA_RE = re.compile(r"rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)")


def format_output(data: Any, fmt: str) -> str:
    """
    Format a command result for stdout.

    Raises:
        ValueError: If fmt is not a recognised format.
    """
    fmt = fmt.lower()
    if fmt not in VALID_FORMATS:
        raise ValueError(f"Unknown format {fmt!r}. Valid: {sorted(VALID_FORMATS)}")
    if fmt == "table":
        return format_table(data)
    return format_json(data)


def format_json(data: Any) -> str:
    """Pretty-print data as JSON (2-space indent)."""
    return json.dumps(data, indent=2, ensure_ascii=False)


def format_table(data: Any) -> str:
    """
    Format as a Rich terminal table.

    Handles:
    - Block detail (dict with 'block_height')
    - Block list (dict with 'blocks')
    - Price series (dict with 'labels' and 'values')
    - Generic fallback: JSON
    """
    buf = io.StringIO()
    console = Console(file=buf, highlight=False, markup=True, width=120)

    if isinstance(data, dict) and "block_height" in data:
        console.print(metrics_table(BlockSnapshot.from_dict(data), title=f"Block {data['block_height']}"))
    elif isinstance(data, dict) and "blocks" in data:
        console.print(_heights_table(data["blocks"]) if data["blocks"] else Text(NO_BLOCKS_TEXT))
    elif isinstance(data, dict) and "labels" in data and "values" in data:
        table = Table(title="Bitcoin Price (USD)", header_style="bold blue")
        table.add_column("Date")
        table.add_column("Price", justify="right")
        for label, value in zip(data["labels"], data["values"]):
            table.add_row(label, f"${value:,.2f}")
        console.print(table)
    else:
        console.print_json(json.dumps(data))

    return buf.getvalue()


def series_to_dict(series: RenderableSeries) -> dict[str, Any]:
    return {
        "label": series.datasets[0].label if series.datasets else "",
        "labels": list(series.labels),
        "values": list(series.values),
    }


# ── Metrics ──────────────────────────────────────────────────────────────────


def _fmt(value: Any, pattern: str) -> str:
    return "—" if value is None else pattern % value


def metric_rows(snapshot: BlockSnapshot) -> list[tuple[str, str]]:
    """(label, display value) pairs in dashboard order."""
    rows = [
        ("Block Height", str(snapshot.block_height)),
        ("Block Hash", snapshot.short_hash()),
        ("Transaction Count", _fmt(snapshot.transaction_count, "%d")),
        ("Market Price (USD)", _fmt(snapshot.market_price, "$%.2f")),
        ("Total Sent Today", _fmt(snapshot.total_sent_today, "%.2f BTC")),
        ("Network Hashrate", _fmt(snapshot.network_hashrate, "%.2f H/s")),
        ("Blockchain Size", _fmt(snapshot.blockchain_size, "%.8f GB")),
    ]
    optional = [
        ("Size", snapshot.size, "%d bytes"),
        ("Weight", snapshot.weight, "%d WU"),
        ("Difficulty", snapshot.difficulty, "%.2f"),
        ("Merkle Root", snapshot.merkle_root, "%s"),
        ("Nonce", snapshot.nonce, "%d"),
        ("Miner", snapshot.miner, "%s"),
        ("Value", snapshot.value, "%.8f BTC"),
        ("Value Today", snapshot.value_today, "%.8f BTC"),
        ("Average Value", snapshot.average_value, "%.8f BTC"),
        ("Median Value", snapshot.median_value, "%.8f BTC"),
    ]
    rows.extend((label, pattern % value) for label, value, pattern in optional if value is not None)
    return rows


def metrics_table(snapshot: BlockSnapshot, title: str = "Block Metrics") -> Table:
    table = Table(title=title, show_header=False, header_style="bold blue")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right", style="cyan")
    for label, value in metric_rows(snapshot):
        table.add_row(label, value)
    return table


def _heights_table(heights: Any, selected: int | None = None) -> Table:
    table = Table(title="Latest Blocks", header_style="bold blue")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Height", justify="right")
    for i, height in enumerate(heights, start=1):
        style = "bold reverse" if height == selected else ""
        table.add_row(str(i), Text(str(height), style=style))
    return table


# ── Chart ────────────────────────────────────────────────────────────────────


def sparkline(values: tuple[float, ...] | list[float], width: int) -> str:
    """Down-sample values to `width` columns of block characters."""
    if not values or width <= 0:
        return ""
    step = max(len(values) / width, 1.0)
    sampled = [values[int(i * step)] for i in range(min(width, len(values)))]
    lo, hi = min(sampled), max(sampled)
    span = hi - lo
    top = len(SPARK_CHARS) - 1
    if span == 0:
        return SPARK_CHARS[top // 2] * len(sampled)
    return "".join(SPARK_CHARS[round((v - lo) / span * top)] for v in sampled)


def _rich_color(css: str | None, fallback: str = "red") -> str:
    match = _RGBA_RE.match(css or "")
    if not match:
        return fallback
    return "rgb({},{},{})".format(*match.groups())


def render_chart(series: RenderableSeries, width: int) -> RenderableType:
    """
    Draw the price series as a sparkline.

    The dataset fill is resolved here, at paint time, from the area the
    chart will occupy.
    """
    dataset = series.datasets[0]
    area = ChartArea(left=0, top=0, right=width, bottom=CHART_HEIGHT)
    gradient = dataset.background(area)
    fill_color = _rich_color(gradient.color_at(0.0) if gradient else None)

    legend = Text()
    for entry in legend_labels(series.datasets):
        legend.append("── ", style=_rich_color(entry.stroke_style))
        legend.append(entry.text)

    line = Text(sparkline(series.values, width), style=fill_color)
    caption = Text()
    if series.labels:
        caption.append(f"{series.labels[0]} → {series.labels[-1]}", style="dim")
        caption.append(f"   last ${series.values[-1]:,.2f}", style="bold")
    return Group(legend, line, caption)


# ── Dashboard ────────────────────────────────────────────────────────────────


def _status_line(state: FetchState) -> Text | None:
    if state.is_loading and state.data is None:
        return Text(LOADING_TEXT, style="dim")
    if state.is_failed:
        return Text(state.error or "", style="red")
    return None


def render_dashboard(state: ViewState, width: int = 80) -> RenderableType:
    """Compose the whole dashboard from the current view state."""
    parts: list[RenderableType] = [Text("Bitcoin Explorer", style="bold")]

    snap = state.snapshot.state
    status = _status_line(snap)
    if status is not None:
        parts.append(status)
    if snap.data is not None:
        if state.chart is not None:
            parts.append(render_chart(state.chart, width))
        parts.append(metrics_table(snap.data))

    heights = state.selectable_heights
    blocks_status = _status_line(state.blocks.state)
    if blocks_status is not None and state.blocks.state.is_loading:
        parts.append(blocks_status)
    elif heights:
        parts.append(_heights_table(heights, selected=state.selected_height))
    else:
        if state.blocks.state.is_failed:
            parts.append(blocks_status)
        parts.append(Text(NO_BLOCKS_TEXT, style="dim"))

    if state.selected_height is not None:
        detail = state.detail.state
        detail_status = _status_line(detail)
        if detail_status is not None:
            parts.append(detail_status)
        if detail.data is not None:
            parts.append(metrics_table(detail.data, title=f"Block {detail.data.block_height}"))

    if state.toast.visible:
        parts.append(Text(TOAST_TEXT, style="bold green"))

    return Group(*parts)
