"""
View state container for blockscope.

ViewState owns one StreamSlot per fetch stream plus the toast state. Each
stream writes only to its own slot. A slot hands out a generation number
for every request it issues and uses it to drop results that resolve out of
order: the detail slot keeps only the newest selection
(last-requested-wins), the snapshot slot keeps any poll newer than the last
one applied.

Observers registered with ViewState.subscribe() are called after every
applied change; the live renderer uses this to redraw.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Generic, TypeVar

from blockscope.chart import RenderableSeries
from blockscope.models import BlockSnapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")

IDLE = "idle"
LOADING = "loading"
READY = "ready"
FAILED = "failed"

# Result ordering per slot
LATEST_ISSUED = "latest-issued"  # only the newest request may write
LATEST_APPLIED = "latest-applied"  # any request newer than the last write may write


@dataclass(frozen=True)
class FetchState(Generic[T]):
    """
    Status of one stream.

    `data` is the last successfully applied payload. A failed poll keeps it
    (the dashboard goes on showing the previous block); streams that must not
    show stale data clear it when they issue a new request.
    """

    status: str = IDLE
    data: T | None = None
    error: str | None = None

    @property
    def is_loading(self) -> bool:
        return self.status == LOADING

    @property
    def is_ready(self) -> bool:
        return self.status == READY

    @property
    def is_failed(self) -> bool:
        return self.status == FAILED


class StreamSlot(Generic[T]):
    """
    One named state slot with generation-token ordering.

    With LATEST_ISSUED ordering a result is applied only if no newer request
    has been issued (a user selection replaces the one before it). With
    LATEST_APPLIED ordering a result is applied unless a newer one has
    already been applied, so overlapping polls keep landing even when every
    request outlives the poll interval.
    """

    def __init__(
        self,
        name: str,
        error_message: str,
        notify: Callable[[str], None] | None = None,
        ordering: str = LATEST_ISSUED,
    ) -> None:
        if ordering not in (LATEST_ISSUED, LATEST_APPLIED):
            raise ValueError(f"Unknown ordering {ordering!r}")
        self.name = name
        self.error_message = error_message
        self.ordering = ordering
        self.state: FetchState[T] = FetchState()
        self.closed = False
        self._issued = 0
        self._applied = 0
        self._notify = notify or (lambda _name: None)

    @property
    def latest_generation(self) -> int:
        return self._issued

    def issue(self, show_loading: bool = True, clear: bool = False) -> int:
        """Start a request and return its generation number."""
        self._issued += 1
        if show_loading or clear:
            self.state = replace(
                self.state,
                status=LOADING if show_loading else self.state.status,
                data=None if clear else self.state.data,
                error=None,
            )
            self._notify(self.name)
        return self._issued

    @property
    def applied_generation(self) -> int:
        return self._applied

    def is_current(self, generation: int) -> bool:
        if self.closed:
            return False
        if self.ordering == LATEST_APPLIED:
            return generation > self._applied
        return generation == self._issued

    def resolve(self, generation: int, data: T) -> bool:
        """Apply a successful result. Returns False if it was superseded."""
        if not self.is_current(generation):
            logger.debug("%s: dropping superseded result (gen %d)", self.name, generation)
            return False
        self._applied = generation
        self.state = FetchState(status=READY, data=data, error=None)
        self._notify(self.name)
        return True

    def fail(self, generation: int) -> bool:
        """Record a failure with the slot's static message, keeping prior data."""
        if not self.is_current(generation):
            logger.debug("%s: dropping superseded failure (gen %d)", self.name, generation)
            return False
        self._applied = generation
        self.state = FetchState(status=FAILED, data=self.state.data, error=self.error_message)
        self._notify(self.name)
        return True

    def close(self) -> None:
        """Stop accepting results; later resolutions are ignored."""
        self.closed = True


@dataclass(frozen=True)
class ToastState:
    visible: bool = False
    expires_at: float | None = None  # event-loop clock
    text: str = ""
    write_failed: bool = False


@dataclass
class ViewState:
    """Everything the dashboard shows. Owned by ViewController."""

    snapshot: StreamSlot[BlockSnapshot] = field(init=False)
    blocks: StreamSlot[tuple[int, ...]] = field(init=False)
    detail: StreamSlot[BlockSnapshot] = field(init=False)
    prices: StreamSlot[RenderableSeries] = field(init=False)
    toast: ToastState = field(default_factory=ToastState)
    selected_height: int | None = None
    _observers: list[Callable[[str], Any]] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        self.snapshot = StreamSlot(
            "snapshot", "Failed to fetch block metrics.", self.notify, ordering=LATEST_APPLIED
        )
        self.blocks = StreamSlot("blocks", "Failed to fetch recent blocks.", self.notify)
        self.detail = StreamSlot("detail", "Failed to fetch block details.", self.notify)
        self.prices = StreamSlot("prices", "Failed to fetch price history.", self.notify)

    def slots(self) -> list[StreamSlot]:
        return [self.snapshot, self.blocks, self.detail, self.prices]

    def subscribe(self, observer: Callable[[str], Any]) -> Callable[[], None]:
        """Register observer(slot_name); returns an unsubscribe function."""
        self._observers.append(observer)
        return lambda: self._observers.remove(observer)

    def notify(self, name: str) -> None:
        for observer in list(self._observers):
            observer(name)

    def set_toast(self, toast: ToastState) -> None:
        self.toast = toast
        self.notify("toast")

    @property
    def selectable_heights(self) -> tuple[int, ...]:
        """Heights the user may pick; empty unless the block list loaded."""
        if not self.blocks.state.is_ready:
            return ()
        return self.blocks.state.data or ()

    @property
    def chart(self) -> RenderableSeries | None:
        return self.prices.state.data

    def close(self) -> None:
        for slot in self.slots():
            slot.close()
