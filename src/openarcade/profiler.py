"""Per-stage timing for the frame pipeline.

The engine has a per-frame budget, so each stage (remap, key hit-testing,
stroke scoring, sequencing) is timed separately and summarized over a
rolling window.
"""

from __future__ import annotations

import time
from collections import deque
from contextlib import contextmanager
from typing import Iterator, Optional

import numpy as np


class PipelineProfiler:
    """Times named stages with ``time.perf_counter``.

    Usage:
        profiler = PipelineProfiler()
        with profiler.stage("remap"):
            person = remapper.remap(person)
        print(profiler.summary())
    """

    STAGES = ["remap", "keys", "strokes", "sequencer", "total"]

    def __init__(self, window_size: int = 120, enabled: bool = True):
        self._window_size = window_size
        self._timings: dict[str, deque[float]] = {s: deque(maxlen=window_size) for s in self.STAGES}
        self._counts: dict[str, int] = {s: 0 for s in self.STAGES}
        self.enabled = enabled

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        if not self.enabled:
            yield
            return

        t0 = time.perf_counter()
        try:
            yield
        finally:
            self.record(name, (time.perf_counter() - t0) * 1000.0)

    def record(self, name: str, elapsed_ms: float):
        """Add a measurement taken outside ``stage()``."""
        if not self.enabled:
            return
        if name not in self._timings:
            self._timings[name] = deque(maxlen=self._window_size)
            self._counts[name] = 0
        self._timings[name].append(elapsed_ms)
        self._counts[name] += 1

    def stage_summary(self, name: str) -> Optional[dict]:
        """Rolling-window timings of one stage in ms, or None before its first sample."""
        window = self._timings.get(name)
        if not window:
            return None
        samples = np.fromiter(window, dtype=np.float64)
        return {
            "avg_ms": round(float(samples.mean()), 3),
            "min_ms": round(float(samples.min()), 3),
            "max_ms": round(float(samples.max()), 3),
            "p95_ms": round(float(np.percentile(samples, 95)), 3),
            "calls": self._counts[name],
        }

    def summary(self) -> dict[str, dict]:
        """Every stage that has samples, in pipeline order."""
        stages = (self.stage_summary(name) for name in self._timings)
        return {name: s for name, s in zip(self._timings, stages) if s is not None}

    def reset(self):
        for timings in self._timings.values():
            timings.clear()
        for name in self._counts:
            self._counts[name] = 0
