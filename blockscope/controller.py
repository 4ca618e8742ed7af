"""ViewController: composes the fetch streams into one ViewState.

Lifecycle:
    mount()    start the poller; fetch block list and price history once,
               concurrently
    select_block(h)   schedule a detail fetch for height h
    copy(text)        clipboard write (worker thread) + toast
    unmount()  cancel the poller timer, outstanding fetches and the toast
               timer; close the HTTP clients

Usage:
    async with ViewController.from_config(config) as view:
        view.state.subscribe(redraw)
        await asyncio.Event().wait()
"""

from __future__ import annotations

import asyncio
import logging
from datetime import tzinfo
from typing import Callable

from blockscope.clipboard import DEFAULT_TOAST_SECONDS, ClipboardNotifier
from blockscope.config import BlockscopeConfig
from blockscope.fetchers import BlockSource, PriceSource, get_backend_client, get_price_client
from blockscope.state import ViewState
from blockscope.streams import (
    DEFAULT_POLL_INTERVAL,
    BlockListFetcher,
    DetailFetcher,
    MetricsPoller,
    PriceHistoryFetcher,
)

logger = logging.getLogger(__name__)


class ViewController:
    def __init__(
        self,
        backend: BlockSource,
        prices: PriceSource,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        toast_seconds: float = DEFAULT_TOAST_SECONDS,
        clipboard_writer: Callable[[str], None] | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self.backend = backend
        self.prices = prices
        self.state = ViewState()

        self.poller = MetricsPoller(backend, self.state.snapshot, interval=poll_interval)
        self.block_list = BlockListFetcher(backend, self.state.blocks)
        self.details = DetailFetcher(backend, self.state.detail)
        self.price_history = PriceHistoryFetcher(prices, self.state.prices, tz=tz)

        self.notifier = ClipboardNotifier(
            on_change=self.state.set_toast, duration=toast_seconds, writer=clipboard_writer
        )

        self.mounted = False
        self._poll_handle: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    @classmethod
    def from_config(cls, config: BlockscopeConfig, **kwargs) -> ViewController:
        return cls(
            backend=get_backend_client(config),
            prices=get_price_client(config),
            poll_interval=config.poll.interval_seconds,
            toast_seconds=config.toast.duration_seconds,
            **kwargs,
        )

    # ── Lifecycle ────────────────────────────────────────────────────────────

    def mount(self) -> None:
        if self.mounted:
            return
        self.mounted = True
        logger.info("Mounting dashboard (poll every %ss)", self.poller.interval)
        self._poll_handle = self.poller.start()
        self._spawn(self.block_list.fetch(), "block-list")
        self._spawn(self.price_history.fetch(), "price-history")

    async def unmount(self) -> None:
        if not self.mounted:
            return
        self.mounted = False
        if self._poll_handle is not None:
            self.poller.stop(self._poll_handle)
            self._poll_handle = None
        for task in list(self._tasks):
            task.cancel()
        self.notifier.close()
        self.state.close()
        await asyncio.gather(self.backend.close(), self.prices.close())
        logger.info("Dashboard unmounted")

    async def __aenter__(self) -> ViewController:
        self.mount()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.unmount()

    # ── User actions ─────────────────────────────────────────────────────────

    def select_block(self, height: int) -> asyncio.Task:
        """Show details for `height`; supersedes any earlier selection."""
        self.state.selected_height = height
        return self._spawn(self.details.fetch_detail(height), f"detail-{height}")

    def copy(self, text: str) -> asyncio.Task:
        """Copy `text` off the event loop; the toast shows when the write returns."""
        return self._spawn(self.notifier.copy(text), "clipboard")

    async def wait_pending(self) -> None:
        """Wait for outstanding one-shot and detail fetches."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    # ── Internals ────────────────────────────────────────────────────────────

    def _spawn(self, coro, name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
