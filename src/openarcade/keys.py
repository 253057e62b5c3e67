"""The seven on-screen piano keys and their hit-testing.

Keys sit side by side on one row of a grid laid over the display. A key
is "struck" when a wrist's movement between two frames crosses the key's
top edge. A struck key stays active for a debounce interval; while active
its top edge is raised so a hand hovering over it keeps hitting it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from openarcade.pose import Point

logger = logging.getLogger("openarcade.keys")

KEY_COUNT = 7
NOTE_LABELS = ["Do", "Re", "Mi", "Fa", "Sol", "La", "Si"]


@dataclass
class KeyGeometry:
    """Grid placement and margins of the key row, as fractions of a cell."""
    row: int = 6  # 1-based row of the grid holding the keys
    rows: int = 11
    margin_x: float = 0.05
    margin_y: float = 0.05
    active_margin_multiplier: float = -2.0

    def validate(self):
        if self.rows < 1 or not 1 <= self.row <= self.rows:
            raise ValueError(f"Key row {self.row} outside grid of {self.rows} rows")
        if not 0.0 <= self.margin_x < 0.5:
            raise ValueError(f"margin_x must be in [0, 0.5), got {self.margin_x}")
        if not 0.0 <= self.margin_y < 0.5:
            raise ValueError(f"margin_y must be in [0, 0.5), got {self.margin_y}")


def segments_intersect(p1: Point, p2: Point, p3: Point, p4: Point) -> bool:
    """Parametric test for segment p1-p2 meeting segment p3-p4.

    Touching endpoints count as an intersection. Parallel or collinear
    segments never intersect.
    """
    denom = (p4.y - p3.y) * (p2.x - p1.x) - (p4.x - p3.x) * (p2.y - p1.y)
    if denom == 0:
        return False
    ua = ((p4.x - p3.x) * (p1.y - p3.y) - (p4.y - p3.y) * (p1.x - p3.x)) / denom
    ub = ((p2.x - p1.x) * (p1.y - p3.y) - (p2.y - p1.y) * (p1.x - p3.x)) / denom
    return 0.0 <= ua <= 1.0 and 0.0 <= ub <= 1.0


@dataclass
class KeyRegion:
    """One key: a horizontal band with a top boundary line."""
    index: int
    left: float
    right: float
    boundary_y: float
    active_boundary_y: float
    bottom: float
    label: str = ""
    active: bool = False
    last_activated_at: float = 0.0

    @property
    def note(self) -> int:
        return self.index + 1

    @property
    def top(self) -> float:
        """Current top edge; raised while the key is active."""
        return self.active_boundary_y if self.active else self.boundary_y

    def crossed(self, a: Point, b: Point) -> bool:
        """Does the movement a→b cross this key's top edge?"""
        # Canonical order keeps the float arithmetic identical for a→b and b→a
        if (b.x, b.y) < (a.x, a.y):
            a, b = b, a
        top = self.top
        return segments_intersect(a, b, Point(self.left, top), Point(self.right, top))

    def crossed_from_above(self, a: Point, b: Point) -> bool:
        return a.y < self.top and self.crossed(a, b)

    def activate(self, now: float):
        self.active = True
        self.last_activated_at = now

    def expire(self, now: float, debounce_ms: float) -> bool:
        """Deactivate if the debounce window has elapsed. Returns True if it did."""
        if self.active and now - self.last_activated_at >= debounce_ms:
            self.active = False
            return True
        return False


class PianoKeys:
    """The fixed 7-key layout spanning the display width.

    Usage:
        keys = PianoKeys((1920, 1080))
        # In frame loop:
        keys.expire(now)
        hit = keys.strike(prev_wrist, wrist, now)
    """

    def __init__(
        self,
        display_size: tuple[float, float],
        geometry: Optional[KeyGeometry] = None,
        debounce_ms: float = 200.0,
        downward_only: bool = False,
        labels: Optional[list[str]] = None,
    ):
        self.geometry = geometry or KeyGeometry()
        self.geometry.validate()
        if debounce_ms <= 0:
            raise ValueError(f"debounce_ms must be positive, got {debounce_ms}")
        self.debounce_ms = debounce_ms
        self.downward_only = downward_only
        self._labels = labels or NOTE_LABELS
        if len(self._labels) != KEY_COUNT:
            raise ValueError(f"Need {KEY_COUNT} key labels, got {len(self._labels)}")
        self._keys: list[KeyRegion] = []
        self.relayout(display_size)

    def relayout(self, display_size: tuple[float, float]):
        """Recompute key rectangles for a new display size, keeping key state."""
        width, height = display_size
        if width <= 0 or height <= 0:
            raise ValueError(f"Display size must be positive, got {display_size}")

        g = self.geometry
        cell_w = width / KEY_COUNT
        cell_h = height / g.rows
        margin_x = cell_w * g.margin_x
        margin_y = cell_h * g.margin_y
        row_top = (g.row - 1) * cell_h

        previous = self._keys
        self._keys = []
        for i in range(KEY_COUNT):
            key = KeyRegion(
                index=i,
                left=i * cell_w + margin_x,
                right=(i + 1) * cell_w - margin_x,
                boundary_y=row_top + margin_y,
                active_boundary_y=row_top + margin_y * g.active_margin_multiplier,
                bottom=g.row * cell_h - margin_y,
                label=self._labels[i],
            )
            if previous:
                key.active = previous[i].active
                key.last_activated_at = previous[i].last_activated_at
            self._keys.append(key)

        self.display_size = (float(width), float(height))
        logger.debug("Laid out %d keys for display %sx%s", KEY_COUNT, width, height)

    @property
    def regions(self) -> list[KeyRegion]:
        return list(self._keys)

    def __getitem__(self, index: int) -> KeyRegion:
        return self._keys[index]

    def __len__(self) -> int:
        return len(self._keys)

    def hit_test(self, prev: Point, new: Point) -> Optional[int]:
        """Index of the first key crossed by prev→new, without changing state."""
        for key in self._keys:
            hit = key.crossed_from_above(prev, new) if self.downward_only else key.crossed(prev, new)
            if hit:
                return key.index
        return None

    def strike(self, prev: Point, new: Point, now: float) -> Optional[int]:
        """Test a movement against all keys in order and activate the first hit.

        At most one key triggers per movement.
        """
        index = self.hit_test(prev, new)
        if index is not None:
            self._keys[index].activate(now)
        return index

    def expire(self, now: float) -> list[int]:
        """Deactivate every key whose debounce window has passed."""
        return [key.index for key in self._keys if key.expire(now, self.debounce_ms)]

    def active_keys(self) -> list[int]:
        return [key.index for key in self._keys if key.active]

    def reset(self):
        for key in self._keys:
            key.active = False
            key.last_activated_at = 0.0
