"""Millisecond clocks for the engine's debounce timing."""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> float:
        """Current time in milliseconds."""
        ...


class MonotonicClock:
    def now(self) -> float:
        return time.monotonic() * 1000.0


class ManualClock:
    """A clock that only moves when told to. Used for replay and tests."""

    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def now(self) -> float:
        return self._now

    def set(self, value: float):
        self._now = float(value)

    def advance(self, ms: float) -> float:
        self._now += ms
        return self._now
