"""Trailing-edge debouncer: holds the latest value and emits it once arrivals pause."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class Debouncer(Generic[T]):
    def __init__(self, delay: float, callback: Callable[[T], None]) -> None:
        self._delay = max(0.0, float(delay))
        self._callback = callback
        self._handle: asyncio.TimerHandle | None = None
        self._latest: T | None = None
        self._pending = False
        self.emitted_total = 0

    @property
    def pending(self) -> bool:
        return self._pending

    def push(self, value: T) -> None:
        """Replace the held value and restart the quiet-period timer."""
        self._latest = value
        self._pending = True
        if self._handle is not None:
            self._handle.cancel()
        self._handle = asyncio.get_running_loop().call_later(self._delay, self._emit)

    def flush(self) -> bool:
        """Emit the held value immediately. Returns False when nothing was pending."""
        if not self._pending:
            return False
        if self._handle is not None:
            self._handle.cancel()
        self._emit()
        return True

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending = False
        self._latest = None

    def _emit(self) -> None:
        self._handle = None
        if not self._pending:
            return
        value = self._latest
        self._pending = False
        self._latest = None
        self.emitted_total += 1
        self._callback(value)
