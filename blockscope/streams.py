"""Fetch streams: the poller and the three one-shot/on-demand fetchers.

Each stream reads one upstream and writes one ViewState slot. Errors never
leave a stream: a BlockscopeError is logged and turned into the slot's
static error message, so one failing upstream cannot hide another's data.

Ordering: every request takes a generation number from its slot. For the
poller a tick is dropped only if a later tick has already been applied, so
ticks that each outlive the interval still land in order. For block detail
only the newest selection may write (clicking A then B shows B even if A's
response arrives last).
"""

from __future__ import annotations

import asyncio
import logging
from datetime import tzinfo
from typing import Generic, TypeVar

from blockscope.chart import RenderableSeries, to_series
from blockscope.exceptions import BlockscopeError
from blockscope.fetchers import BlockSource, PriceSource
from blockscope.models import BlockSnapshot
from blockscope.state import StreamSlot

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 30.0

T = TypeVar("T")


class _Stream(Generic[T]):
    slot: StreamSlot[T]

    def _fail(self, generation: int, err: BlockscopeError) -> None:
        logger.warning("%s stream failed: %s", self.slot.name, err)
        self.slot.fail(generation)


class MetricsPoller(_Stream[BlockSnapshot]):
    """
    Refresh the latest block snapshot every `interval` seconds.

    start() fetches immediately and returns the timer task; stop(handle)
    cancels the timer and any tick still in flight. Ticks run as their own
    tasks, so a hung request does not delay the next tick. Only the first
    tick shows a loading state; failures keep the previous snapshot.
    """

    def __init__(
        self,
        source: BlockSource,
        slot: StreamSlot[BlockSnapshot],
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self.source = source
        self.slot = slot
        self.interval = interval
        self.ticks_issued = 0
        self._in_flight: set[asyncio.Task] = set()

    def start(self) -> asyncio.Task:
        return asyncio.create_task(self._run(), name="metrics-poller")

    def stop(self, handle: asyncio.Task) -> None:
        handle.cancel()
        for task in list(self._in_flight):
            task.cancel()

    async def _run(self) -> None:
        while True:
            task = asyncio.create_task(self.tick())
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)
            await asyncio.sleep(self.interval)

    async def tick(self) -> BlockSnapshot | None:
        """One fetch of the latest snapshot."""
        first = self.ticks_issued == 0
        self.ticks_issued += 1
        generation = self.slot.issue(show_loading=first)
        try:
            snapshot = await self.source.latest_block_metrics()
        except BlockscopeError as e:
            self._fail(generation, e)
            return None
        if self.slot.resolve(generation, snapshot):
            logger.info("Block %d received", snapshot.block_height)
        return snapshot


class BlockListFetcher(_Stream[tuple[int, ...]]):
    """Fetch the most recent block heights once. Not retried."""

    def __init__(self, source: BlockSource, slot: StreamSlot[tuple[int, ...]]) -> None:
        self.source = source
        self.slot = slot

    async def fetch(self) -> tuple[int, ...] | None:
        generation = self.slot.issue()
        try:
            heights = await self.source.latest_blocks()
        except BlockscopeError as e:
            self._fail(generation, e)
            return None
        self.slot.resolve(generation, heights)
        return heights


class DetailFetcher(_Stream[BlockSnapshot]):
    """Fetch one block's metrics per selection; the newest selection wins."""

    def __init__(self, source: BlockSource, slot: StreamSlot[BlockSnapshot]) -> None:
        self.source = source
        self.slot = slot

    async def fetch_detail(self, height: int) -> BlockSnapshot | None:
        """
        Fetch metrics for `height` and show them if no newer selection exists.

        Returns the fetched snapshot (even if superseded), or None on failure.
        """
        generation = self.slot.issue(clear=True)
        try:
            detail = await self.source.block(height)
        except BlockscopeError as e:
            self._fail(generation, e)
            return None
        self.slot.resolve(generation, detail)
        return detail


class PriceHistoryFetcher(_Stream[RenderableSeries]):
    """Fetch the 1-day price history once and store it as a chart series."""

    def __init__(
        self,
        source: PriceSource,
        slot: StreamSlot[RenderableSeries],
        tz: tzinfo | None = None,
    ) -> None:
        self.source = source
        self.slot = slot
        self.tz = tz

    async def fetch(self) -> RenderableSeries | None:
        generation = self.slot.issue()
        try:
            points = await self.source.market_chart()
        except BlockscopeError as e:
            self._fail(generation, e)
            return None
        series = to_series(points, tz=self.tz)
        self.slot.resolve(generation, series)
        return series
