"""Tests for stroke scoring and classification."""

import numpy as np
import pytest

from openarcade.pose import BodyPart, Point, make_person
from openarcade.strokes import (
    MIN_STROKE_THRESHOLD,
    StrokeClassifier,
    StrokeDirection,
    diagonal_score,
    horizontal_score,
    stroke_threshold,
    vertical_score,
    x_score,
    y_score,
)

T = 100.0


def arm_person(scale=1.0):
    return make_person({
        BodyPart.LEFT_SHOULDER: (0, 0),
        BodyPart.RIGHT_SHOULDER: (100 * scale, 0),
        BodyPart.LEFT_ELBOW: (0, 100 * scale),
        BodyPart.RIGHT_ELBOW: (100 * scale, 100 * scale),
        BodyPart.LEFT_WRIST: (0, 200 * scale),
        BodyPart.RIGHT_WRIST: (100 * scale, 200 * scale),
    })


class TestThreshold:
    def test_average_of_segments(self):
        assert stroke_threshold(arm_person()) == pytest.approx(100.0)

    def test_scales_with_subject_size(self):
        assert stroke_threshold(arm_person(2.0)) == pytest.approx(200.0)

    def test_missing_joint_gives_none(self):
        person = make_person({BodyPart.LEFT_SHOULDER: (0, 0)})
        assert stroke_threshold(person, min_score=0.2) is None

    def test_degenerate_skeleton_is_floored(self):
        assert stroke_threshold(arm_person(0.0)) == MIN_STROKE_THRESHOLD


class TestComponentScores:
    def test_x_score_ramps(self):
        assert x_score(0.4 * T, T) == 0.0
        assert x_score(0.5 * T, T) == pytest.approx(0.0)
        assert x_score(0.75 * T, T) == pytest.approx(0.25)
        assert x_score(T, T) == pytest.approx(0.5)
        assert x_score(1.5 * T, T) == pytest.approx(0.75)
        assert x_score(2 * T, T) == 1.0
        assert x_score(-3 * T, T) == 1.0

    def test_y_score_penalizes_drift(self):
        assert y_score(0.0, T) == 1.0
        assert y_score(T / 5, T) == 1.0
        assert y_score(T / 4, T) == pytest.approx(0.5)
        assert y_score(T / 3, T) == pytest.approx(0.0)
        assert y_score(T / 2, T) == 0.0

    def test_y_score_is_monotonic(self):
        values = [y_score(d, T) for d in np.linspace(0, T / 2, 200)]
        assert all(a >= b for a, b in zip(values, values[1:]))
        assert all(0.0 <= v <= 1.0 for v in values)


class TestHorizontalScore:
    def test_zero_below_half_threshold(self):
        assert horizontal_score([Point(0, 0), Point(0.49 * T, 0)], T) == 0.0

    def test_saturates_at_twice_threshold(self):
        assert horizontal_score([Point(0, 0), Point(2 * T, 0)], T) == 1.0
        assert horizontal_score([Point(0, 0), Point(5 * T, 0)], T) == 1.0

    def test_monotonic_in_x_distance(self):
        distances = np.linspace(0, 3 * T, 301)
        scores = [abs(horizontal_score([Point(0, 0), Point(d, 0)], T)) for d in distances]
        assert all(b >= a for a, b in zip(scores, scores[1:]))
        for d, s in zip(distances, scores):
            if d < 0.5 * T:
                assert s == 0.0
            if d >= 2 * T:
                assert s == 1.0

    def test_sign_encodes_direction(self):
        assert horizontal_score([Point(0, 0), Point(3 * T, 0)], T) > 0
        assert horizontal_score([Point(3 * T, 0), Point(0, 0)], T) < 0

    def test_vertical_drift_kills_score(self):
        assert horizontal_score([Point(0, 0), Point(3 * T, T)], T) == 0.0

    def test_single_point_is_not_a_stroke(self):
        assert horizontal_score([Point(0, 0)], T) == 0.0

    def test_straight_multi_point_keeps_full_score(self):
        pts = [Point(x, 0) for x in (0, 100, 200, 300)]
        assert horizontal_score(pts, T) == pytest.approx(1.0)

    def test_wobbly_interior_is_penalized(self):
        straight = [Point(0, 0), Point(100, 0), Point(200, 0), Point(300, 0)]
        wobbly = [Point(0, 0), Point(100, 28), Point(200, -28), Point(300, 0)]
        assert abs(horizontal_score(wobbly, T)) < abs(horizontal_score(straight, T))

    def test_interior_far_from_average_zeroes_score(self):
        pts = [Point(0, 0), Point(150, 80), Point(300, 0)]
        assert horizontal_score(pts, T) == 0.0

    def test_zero_threshold_does_not_produce_nan(self):
        score = horizontal_score([Point(0, 0), Point(1, 0)], 0.0)
        assert not np.isnan(score)
        assert score == 1.0


class TestOtherAxes:
    def test_vertical_downward_is_positive(self):
        assert vertical_score([Point(0, 0), Point(0, 3 * T)], T) == 1.0
        assert vertical_score([Point(0, 3 * T), Point(0, 0)], T) == -1.0

    def test_vertical_equals_swapped_horizontal(self):
        pts = [Point(1, 5), Point(30, 120), Point(-4, 210)]
        swapped = [Point(p.y, p.x) for p in pts]
        assert vertical_score(pts, T) == pytest.approx(horizontal_score(swapped, T))

    def test_diagonal_detects_rotated_stroke(self):
        # Rotating by +45 degrees maps an up-right move (y grows downward) onto +x
        d = 3 * T / np.sqrt(2)
        pts = [Point(0, 0), Point(d, -d)]
        assert diagonal_score(pts, T, 45.0) == pytest.approx(1.0)


class TestStrokeClassifier:
    def test_horizontal_first(self):
        clf = StrokeClassifier()
        direction, score = clf.classify([Point(0, 0), Point(100, 0), Point(300, 0)], T)
        assert direction == StrokeDirection.RIGHT
        assert score > 0.7

    def test_left(self):
        direction, _ = StrokeClassifier().classify([Point(300, 0), Point(0, 0)], T)
        assert direction == StrokeDirection.LEFT

    def test_up(self):
        direction, _ = StrokeClassifier().classify([Point(0, 300), Point(0, 150), Point(0, 0)], T)
        assert direction == StrokeDirection.UP

    def test_diagonal(self):
        d = 3 * T / np.sqrt(2)
        result = StrokeClassifier().classify([Point(0, 0), Point(d, d)], T)
        assert result is not None
        assert result[0] in (StrokeDirection.DOWN_RIGHT, StrokeDirection.UP_LEFT)

    def test_small_motion_is_none(self):
        assert StrokeClassifier().classify([Point(0, 0), Point(10, 10)], T) is None

    def test_rejects_bad_confidence(self):
        with pytest.raises(ValueError):
            StrokeClassifier(confidence=0.0)

    def test_scores_dict(self):
        scores = StrokeClassifier().scores([Point(0, 0), Point(300, 0)], T)
        assert set(scores) == {"horizontal", "vertical", "diagonal_-45", "diagonal_+45"}
