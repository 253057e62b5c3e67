"""Directional stroke scoring over short wrist trajectories.

A stroke is a quick, roughly straight hand movement. Scores are signed
floats in [-1, 1]: the sign gives the direction along the tested axis and
the magnitude the confidence. Distances are judged against a threshold
derived from the player's own arm lengths, so the same motion scores the
same whether the player stands near or far from the camera.

Usage:
    threshold = stroke_threshold(person)
    classifier = StrokeClassifier(confidence=0.7)
    result = classifier.classify(points, threshold)
    if result:
        direction, score = result
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from openarcade.pose import BodyPart, Person, Point

# Floor for degenerate skeletons (all reference joints on one pixel)
MIN_STROKE_THRESHOLD = 1e-3

THRESHOLD_SEGMENTS = [
    (BodyPart.LEFT_SHOULDER, BodyPart.LEFT_ELBOW),
    (BodyPart.RIGHT_SHOULDER, BodyPart.RIGHT_ELBOW),
    (BodyPart.LEFT_ELBOW, BodyPart.LEFT_WRIST),
    (BodyPart.RIGHT_ELBOW, BodyPart.RIGHT_WRIST),
    (BodyPart.LEFT_SHOULDER, BodyPart.RIGHT_SHOULDER),
]


class StrokeDirection(Enum):
    RIGHT = "right"
    LEFT = "left"
    DOWN = "down"
    UP = "up"
    DOWN_RIGHT = "down_right"
    UP_LEFT = "up_left"
    UP_RIGHT = "up_right"
    DOWN_LEFT = "down_left"


# angle → (direction for positive score, direction for negative score)
DIAGONALS: dict[float, tuple[StrokeDirection, StrokeDirection]] = {
    -45.0: (StrokeDirection.DOWN_RIGHT, StrokeDirection.UP_LEFT),
    45.0: (StrokeDirection.UP_RIGHT, StrokeDirection.DOWN_LEFT),
}


def stroke_threshold(person: Person, min_score: float = 0.0) -> Optional[float]:
    """Average length of the upper-arm, forearm and shoulder segments.

    Returns None when any of the reference joints is missing.
    """
    distances = []
    for a, b in THRESHOLD_SEGMENTS:
        pa = person.coordinate(a, min_score)
        pb = person.coordinate(b, min_score)
        if pa is None or pb is None:
            return None
        distances.append(pa.distance_to(pb))
    return max(float(np.mean(distances)), MIN_STROKE_THRESHOLD)


def _as_array(points: Sequence[Point]) -> np.ndarray:
    return np.array([[p.x, p.y] for p in points], dtype=np.float64).reshape(-1, 2)


def x_score(distance: float, threshold: float) -> float:
    """0 below T/2, 0→0.5 up to T, 0.5→1 up to 2T, then saturated."""
    d = abs(distance)
    t = threshold
    if d < t * 0.5:
        return 0.0
    if d < t:
        return (d - t * 0.5) / t
    if d < t * 2:
        return (d - t) / (t * 2) + 0.5
    return 1.0


def y_score(distance: float, threshold: float) -> float:
    """Penalty for drift across the stroke axis: 1 up to T/5, 0 past T/3."""
    d = abs(distance)
    t = threshold
    if d <= t / 5:
        return 1.0
    if d <= t / 4:
        return 1.0 - 0.5 * (d - t / 5) / (t / 4 - t / 5)
    if d <= t / 3:
        return 0.5 * (t / 3 - d) / (t / 3 - t / 4)
    return 0.0


def _endpoint_score(start: np.ndarray, end: np.ndarray, threshold: float) -> float:
    dx = float(end[0] - start[0])
    dy = float(end[1] - start[1])
    xs = x_score(dx, threshold)
    ys = y_score(dy, threshold)
    return float(np.sign(dx)) * math.sqrt(xs * ys)


def _score_array(pts: np.ndarray, threshold: float) -> float:
    if len(pts) < 2:
        return 0.0
    threshold = max(threshold, MIN_STROKE_THRESHOLD)

    score = _endpoint_score(pts[0], pts[-1], threshold)
    if len(pts) == 2 or score == 0.0:
        return score

    # Interior points must stay near the trajectory's mean line
    average = pts.mean(axis=0)
    interior = [y_score(float(p[1] - average[1]), threshold) for p in pts[1:-1]]
    consistency = float(np.prod(interior)) ** (1.0 / len(interior))
    return consistency * score


def horizontal_score(points: Sequence[Point], threshold: float) -> float:
    """Positive for a left-to-right stroke, negative for right-to-left."""
    return _score_array(_as_array(points), threshold)


def vertical_score(points: Sequence[Point], threshold: float) -> float:
    """Positive for a downward stroke (display y grows downward)."""
    return _score_array(_as_array(points)[:, ::-1], threshold)


def _rotate(pts: np.ndarray, angle_degrees: float) -> np.ndarray:
    rad = math.radians(angle_degrees)
    cos_a, sin_a = math.cos(rad), math.sin(rad)
    rot = np.array([[cos_a, -sin_a], [sin_a, cos_a]])
    return pts @ rot.T


def diagonal_score(points: Sequence[Point], threshold: float, angle_degrees: float) -> float:
    """Horizontal score after rotating all points by ``angle_degrees``."""
    return _score_array(_rotate(_as_array(points), angle_degrees), threshold)


class StrokeClassifier:
    """Picks the first stroke direction whose score clears the confidence bar.

    Horizontal is tested before vertical, then each diagonal in order.
    """

    def __init__(
        self,
        confidence: float = 0.7,
        diagonal_angles: Sequence[float] = (-45.0, 45.0),
    ):
        if not 0.0 < confidence <= 1.0:
            raise ValueError(f"confidence must be in (0, 1], got {confidence}")
        unknown = [a for a in diagonal_angles if a not in DIAGONALS]
        if unknown:
            raise ValueError(f"Unsupported diagonal angles: {unknown}")
        self.confidence = confidence
        self.diagonal_angles = list(diagonal_angles)

    def scores(self, points: Sequence[Point], threshold: float) -> dict[str, float]:
        """All raw scores, keyed by axis name. Handy for debugging overlays."""
        result = {
            "horizontal": horizontal_score(points, threshold),
            "vertical": vertical_score(points, threshold),
        }
        for angle in self.diagonal_angles:
            result[f"diagonal_{angle:+.0f}"] = diagonal_score(points, threshold, angle)
        return result

    def classify(
        self, points: Sequence[Point], threshold: float
    ) -> Optional[tuple[StrokeDirection, float]]:
        if len(points) < 2:
            return None

        score = horizontal_score(points, threshold)
        if abs(score) > self.confidence:
            return (StrokeDirection.RIGHT if score > 0 else StrokeDirection.LEFT), score

        score = vertical_score(points, threshold)
        if abs(score) > self.confidence:
            return (StrokeDirection.DOWN if score > 0 else StrokeDirection.UP), score

        for angle in self.diagonal_angles:
            score = diagonal_score(points, threshold, angle)
            if abs(score) > self.confidence:
                positive, negative = DIAGONALS[angle]
                return (positive if score > 0 else negative), score

        return None
