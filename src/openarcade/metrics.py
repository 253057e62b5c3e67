"""Session metrics in Prometheus text exposition format.

Tracked:
- openarcade_key_triggers_total (counter, by key)
- openarcade_notes_total (counter, by result: matched / missed)
- openarcade_rounds_total (counter)
- openarcade_strokes_total (counter, by direction)
- openarcade_frames_total (counter)
- openarcade_frames_without_person_total (counter)
- openarcade_frame_latency_seconds (histogram)
"""

from __future__ import annotations

import threading
import time
from collections import Counter


class _Histogram:
    def __init__(self, buckets: list[float]):
        self.buckets = sorted(buckets)
        self.bucket_counts = [0] * len(self.buckets)
        self.count = 0
        self.sum = 0.0

    def observe(self, value: float):
        self.count += 1
        self.sum += value
        for i, bound in enumerate(self.buckets):
            if value <= bound:
                self.bucket_counts[i] += 1
                break

    def render(self, name: str, help_text: str) -> list[str]:
        lines = [f"# HELP {name} {help_text}", f"# TYPE {name} histogram"]
        cumulative = 0
        for bound, count in zip(self.buckets, self.bucket_counts):
            cumulative += count
            lines.append(f'{name}_bucket{{le="{bound}"}} {cumulative}')
        lines.append(f'{name}_bucket{{le="+Inf"}} {self.count}')
        lines.append(f"{name}_sum {self.sum:.6f}")
        lines.append(f"{name}_count {self.count}")
        return lines


class MetricsCollector:
    """Counts game events. Safe to render from a different thread than the engine's."""

    def __init__(self):
        self._lock = threading.Lock()
        self._key_triggers: Counter = Counter()
        self._notes: Counter = Counter()
        self._strokes: Counter = Counter()
        self._rounds = 0
        self._frames = 0
        self._empty_frames = 0
        # 1ms .. 100ms; a 30 fps budget is ~33ms
        self._latency = _Histogram([0.001, 0.002, 0.005, 0.010, 0.020, 0.033, 0.050, 0.100])
        self._start_time = time.time()

    def record_trigger(self, key_index: int, matched: bool):
        with self._lock:
            self._key_triggers[key_index] += 1
            self._notes["matched" if matched else "missed"] += 1

    def record_round(self):
        with self._lock:
            self._rounds += 1

    def record_stroke(self, direction: str):
        with self._lock:
            self._strokes[direction] += 1

    def record_frame(self, latency_seconds: float, person_found: bool):
        with self._lock:
            self._frames += 1
            if not person_found:
                self._empty_frames += 1
            self._latency.observe(latency_seconds)

    @property
    def key_triggers(self) -> dict[int, int]:
        with self._lock:
            return dict(self._key_triggers)

    @property
    def notes(self) -> dict[str, int]:
        with self._lock:
            return dict(self._notes)

    @property
    def rounds(self) -> int:
        return self._rounds

    @property
    def frames(self) -> int:
        return self._frames

    def _counter(self, lines: list[str], name: str, help_text: str, label: str, counts: Counter):
        lines.append(f"# HELP {name} {help_text}")
        lines.append(f"# TYPE {name} counter")
        for key, count in sorted(counts.items()):
            lines.append(f'{name}{{{label}="{key}"}} {count}')
        lines.append("")

    def render(self) -> str:
        lines: list[str] = [
            "# HELP openarcade_uptime_seconds Time since the session started",
            "# TYPE openarcade_uptime_seconds gauge",
            f"openarcade_uptime_seconds {time.time() - self._start_time:.1f}",
            "",
        ]
        with self._lock:
            self._counter(lines, "openarcade_key_triggers_total", "Key presses by key index",
                          "key", self._key_triggers)
            self._counter(lines, "openarcade_notes_total", "Key presses by melody result",
                          "result", self._notes)
            self._counter(lines, "openarcade_strokes_total", "Detected strokes by direction",
                          "direction", self._strokes)

            for name, help_text, value in (
                ("openarcade_rounds_total", "Completed melody rounds", self._rounds),
                ("openarcade_frames_total", "Frames processed", self._frames),
                ("openarcade_frames_without_person_total", "Frames with no usable person",
                 self._empty_frames),
            ):
                lines.append(f"# HELP {name} {help_text}")
                lines.append(f"# TYPE {name} counter")
                lines.append(f"{name} {value}")
                lines.append("")

            lines.extend(self._latency.render(
                "openarcade_frame_latency_seconds", "Frame processing latency in seconds"
            ))
        return "\n".join(lines) + "\n"
