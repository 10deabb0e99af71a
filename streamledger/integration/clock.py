"""
Clock implementations.

The engine reads time only through `Clock.now()` (integer seconds). Hosts that
already have an agreed-upon timestamp (block time) should adapt it to this
interface; `SystemClock` is for local use.
"""

from __future__ import annotations

import time


class SystemClock:
    """Wall clock, whole seconds since the unix epoch, never goes backwards."""

    def __init__(self) -> None:
        self._last = 0

    def now(self) -> int:
        self._last = max(self._last, int(time.time()))
        return self._last


class ManualClock:
    """Settable clock for tests and simulations."""

    def __init__(self, start: int = 0) -> None:
        if start < 0:
            raise ValueError(f"start must be non-negative: {start}")
        self._now = start

    def now(self) -> int:
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValueError(f"clock cannot go backwards: {timestamp} < {self._now}")
        self._now = timestamp

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError(f"seconds must be non-negative: {seconds}")
        self._now += seconds
        return self._now
