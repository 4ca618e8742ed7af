"""Click CLI entry point for blockscope.

Commands are thin orchestration wrappers: fetching lives in fetchers and
streams, state in controller/state, rendering in output.

Exit codes:
  0 — success
  1 — generic error
  3 — network error (timeout, connection refused, non-2xx)
  4 — response could not be parsed
  5 — config error (e.g. no backend URL)
  130 — watch interrupted with Ctrl-C
"""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any

import click
from rich.console import Console
from rich.live import Live

from blockscope import __version__
from blockscope.chart import to_series
from blockscope.config import BlockscopeConfig, load_config
from blockscope.controller import ViewController
from blockscope.exceptions import BlockscopeError
from blockscope.fetchers import get_backend_client, get_price_client
from blockscope.log import configure_logging
from blockscope.output import format_output, render_dashboard, series_to_dict

FORMATS = ["json", "table"]


# ── Error handler ─────────────────────────────────────────────────────────────


def _output_error(err: BlockscopeError | Exception) -> None:
    """Write error JSON to stderr and exit with the error's code."""
    if isinstance(err, BlockscopeError):
        payload = err.to_dict()
        exit_code = err.exit_code
    else:
        payload = {"error": "unknown_error", "message": str(err), "details": {}}
        exit_code = 1
    sys.stderr.write(json.dumps(payload) + "\n")
    sys.stderr.flush()
    sys.exit(exit_code)


def _config(ctx: click.Context) -> BlockscopeConfig:
    """Return the loaded config, or exit if loading failed at startup."""
    err = ctx.obj.get("config_error")
    if err is not None:
        _output_error(err)
    return ctx.obj["config"]


# ── Root group ────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    envvar="BLOCKSCOPE_CONFIG",
    default=None,
    help="Config file path (default: ~/.blockscope/config.toml)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (overrides config)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, log_level: str | None) -> None:
    """blockscope — live Bitcoin block explorer."""
    ctx.ensure_object(dict)
    try:
        config = load_config(config_path)
        ctx.obj["config"] = config
        configure_logging(log_level or config.logging.level)
    except BlockscopeError as e:
        # Reported by the command that needs it, so --help still works
        ctx.obj["config_error"] = e
        configure_logging(log_level or "WARNING")


# ── Dashboard ─────────────────────────────────────────────────────────────────


@cli.command("watch")
@click.option("--interval", type=click.FloatRange(min=1.0), default=None, help="Poll interval in seconds")
@click.option("--block", "block_height", type=click.IntRange(min=0), default=None, help="Show details for this height")
@click.option("--copy-hash", is_flag=True, help="Copy each new block hash to the clipboard")
@click.pass_context
def watch_command(
    ctx: click.Context,
    interval: float | None,
    block_height: int | None,
    copy_hash: bool,
) -> None:
    """Live dashboard: latest block, recent blocks and 24h price chart."""
    config = _config(ctx)
    if interval is not None:
        config.poll.interval_seconds = interval

    console = Console()

    async def _run() -> None:
        async with ViewController.from_config(config) as view:
            with Live(render_dashboard(view.state, console.width), console=console) as live:
                copied_height: int | None = None

                def on_change(name: str) -> None:
                    nonlocal copied_height
                    snap = view.state.snapshot.state.data
                    if copy_hash and name == "snapshot" and snap is not None:
                        if snap.block_height != copied_height:
                            copied_height = snap.block_height
                            view.copy(snap.block_hash)
                    live.update(render_dashboard(view.state, console.width))

                view.state.subscribe(on_change)
                if block_height is not None:
                    view.select_block(block_height)
                await asyncio.Event().wait()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        sys.exit(130)


# ── One-shot commands ─────────────────────────────────────────────────────────


@cli.command("block")
@click.argument("height", type=click.IntRange(min=0))
@click.option("--format", "fmt", type=click.Choice(FORMATS), default="json", show_default=True)
@click.pass_context
def block_command(ctx: click.Context, height: int, fmt: str) -> None:
    """Print full metrics for one block height."""
    config = _config(ctx)

    async def _run() -> dict[str, Any]:
        async with get_backend_client(config) as backend:
            snapshot = await backend.block(height)
        return snapshot.to_dict()

    _run_and_print(_run, fmt)


@cli.command("blocks")
@click.option("--format", "fmt", type=click.Choice(FORMATS), default="json", show_default=True)
@click.pass_context
def blocks_command(ctx: click.Context, fmt: str) -> None:
    """Print the most recent block heights."""
    config = _config(ctx)

    async def _run() -> dict[str, Any]:
        async with get_backend_client(config) as backend:
            heights = await backend.latest_blocks()
        return {"blocks": list(heights), "count": len(heights)}

    _run_and_print(_run, fmt)


@cli.command("prices")
@click.option("--format", "fmt", type=click.Choice(FORMATS), default="json", show_default=True)
@click.pass_context
def prices_command(ctx: click.Context, fmt: str) -> None:
    """Print the 24h price series as chart labels and values."""
    config = _config(ctx)

    async def _run() -> dict[str, Any]:
        async with get_price_client(config) as prices:
            points = await prices.market_chart()
        return series_to_dict(to_series(points))

    _run_and_print(_run, fmt)


def _run_and_print(run: Any, fmt: str) -> None:
    try:
        result = asyncio.run(run())
    except BlockscopeError as e:
        _output_error(e)
        return
    click.echo(format_output(result, fmt))
