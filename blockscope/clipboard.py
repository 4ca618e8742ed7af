"""Copy-to-clipboard with a transient "copied" toast.

States: hidden → (copy) → visible → (duration elapsed) → hidden.
Copying while visible cancels the pending hide and schedules a new one, so
the toast stays up for a full duration after the latest copy.

copy() never raises. The clipboard write runs in a worker thread (pyperclip
shells out to xclip/xsel/wl-copy on Linux) and the toast is shown once it
returns. A failed write is logged and flagged on the toast state; the toast
is still shown.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

import pyperclip

from blockscope.state import ToastState

logger = logging.getLogger(__name__)

DEFAULT_TOAST_SECONDS = 2.0


class ClipboardNotifier:
    def __init__(
        self,
        on_change: Callable[[ToastState], None] | None = None,
        duration: float = DEFAULT_TOAST_SECONDS,
        writer: Callable[[str], None] | None = None,
    ) -> None:
        self.duration = duration
        self.state = ToastState()
        self._on_change = on_change or (lambda _state: None)
        self._writer = writer or pyperclip.copy
        self._hide_handle: asyncio.TimerHandle | None = None
        self.closed = False

    @property
    def visible(self) -> bool:
        return self.state.visible

    async def copy(self, text: str) -> None:
        """Write text to the clipboard and (re)start the toast timer."""
        write_failed = False
        try:
            await asyncio.to_thread(self._writer, text)
        except Exception as e:
            write_failed = True
            logger.warning("Clipboard write failed: %s", e)
        if self.closed:
            return

        loop = asyncio.get_running_loop()
        if self._hide_handle is not None:
            self._hide_handle.cancel()
        self._hide_handle = loop.call_later(self.duration, self._hide)
        self._set(
            ToastState(
                visible=True,
                expires_at=loop.time() + self.duration,
                text=text,
                write_failed=write_failed,
            )
        )

    def close(self) -> None:
        """Cancel any pending hide; copies finishing afterwards show nothing."""
        self.closed = True
        if self._hide_handle is not None:
            self._hide_handle.cancel()
            self._hide_handle = None

    def _hide(self) -> None:
        self._hide_handle = None
        self._set(ToastState())

    def _set(self, state: ToastState) -> None:
        self.state = state
        self._on_change(state)
