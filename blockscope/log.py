"""Logging setup: one RichHandler on stderr, shared by CLI and dashboard."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

stderr_console = Console(stderr=True)


def configure_logging(level: str = "WARNING") -> None:
    """Route all blockscope and httpx logging through Rich on stderr."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[
            RichHandler(
                console=stderr_console, rich_tracebacks=True, show_time=True, show_path=False
            )
        ],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(logging.WARNING, logging.getLogger().level))
