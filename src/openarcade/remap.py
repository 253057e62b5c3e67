"""Detector-space to display-space coordinate remapping.

The detector runs on a (possibly rotated) camera image whose size and
aspect ratio differ from the screen. Points are aspect-fit (letterboxed)
into the display, and optionally mirrored so the player sees themself
as in a mirror.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from openarcade.pose import BoundingBox, Keypoint, Person, Point


@dataclass(frozen=True)
class FitTransform:
    """Scale and offsets of an aspect-fit mapping."""
    detect_width: float
    detect_height: float
    scale: float
    x_offset: float
    y_offset: float

    @property
    def center_x(self) -> float:
        return self.detect_width / 2

    def apply(self, x: float, y: float, flip: bool) -> Point:
        if flip:
            x = self.center_x + (x - self.center_x) * -1.0
        return Point(x * self.scale + self.x_offset, y * self.scale + self.y_offset)


def fit_transform(
    detect_size: tuple[float, float],
    display_size: tuple[float, float],
    rotation_degrees: float = 0.0,
) -> FitTransform:
    """Compute the letterbox scale/offsets for a detect rect inside a display rect.

    A rotation of +/-90 or 270 degrees swaps the detect width and height
    because the detector saw the rotated image.
    """
    detect_w, detect_h = detect_size
    if rotation_degrees % 180 != 0:
        detect_w, detect_h = detect_h, detect_w

    display_w, display_h = display_size
    if detect_w <= 0 or detect_h <= 0 or display_w <= 0 or display_h <= 0:
        raise ValueError(f"Sizes must be positive: detect={detect_size}, display={display_size}")

    if detect_w / detect_h < display_w / display_h:
        # Detect rect is narrower: fill the width, centre vertically
        scale = display_w / detect_w
        x_offset = 0.0
        y_offset = (display_h - detect_h * scale) / 2
    else:
        scale = display_h / detect_h
        x_offset = (display_w - detect_w * scale) / 2
        y_offset = 0.0

    return FitTransform(detect_w, detect_h, scale, x_offset, y_offset)


def _remap_box(box: Optional[BoundingBox], tf: FitTransform, flip: bool) -> Optional[BoundingBox]:
    if box is None:
        return None
    a = tf.apply(box.left, box.top, flip)
    b = tf.apply(box.right, box.bottom, flip)
    return BoundingBox(min(a.x, b.x), min(a.y, b.y), max(a.x, b.x), max(a.y, b.y))


def apply_transform(person: Person, tf: FitTransform, flip: bool) -> Person:
    """Map every keypoint of ``person`` through a precomputed transform.

    Keypoint count and order are preserved. With ``flip`` the x coordinates
    are mirrored about the centre of the detect rect; without it the
    BodyPart tags are mirrored instead so that "left" keeps meaning the
    player's left hand on screen.
    """
    keypoints = []
    for kp in person.keypoints:
        coord = tf.apply(kp.coordinate.x, kp.coordinate.y, flip)
        part = kp.body_part if flip else kp.body_part.mirror()
        keypoints.append(Keypoint(part, coord, kp.score))

    return person.with_keypoints(keypoints, _remap_box(person.bounding_box, tf, flip))


def remap_person(
    person: Person,
    detect_size: tuple[float, float],
    display_size: tuple[float, float],
    flip: bool,
    rotation_degrees: float = 0.0,
) -> Person:
    """Map every keypoint of ``person`` into display space."""
    return apply_transform(person, fit_transform(detect_size, display_size, rotation_degrees), flip)


class CoordinateRemapper:
    """Holds the current camera/display geometry and remaps persons with it.

    The geometry changes when the device rotates or the preview size is
    renegotiated; call ``configure`` then.
    """

    def __init__(
        self,
        detect_size: tuple[float, float],
        display_size: tuple[float, float],
        flip: bool = True,
        rotation_degrees: float = 0.0,
    ):
        self.configure(detect_size, display_size, flip, rotation_degrees)

    def configure(
        self,
        detect_size: tuple[float, float],
        display_size: tuple[float, float],
        flip: bool,
        rotation_degrees: float,
    ):
        self._transform = fit_transform(detect_size, display_size, rotation_degrees)
        self.detect_size = (float(detect_size[0]), float(detect_size[1]))
        self.display_size = (float(display_size[0]), float(display_size[1]))
        self.flip = flip
        self.rotation_degrees = rotation_degrees

    @property
    def transform(self) -> FitTransform:
        return self._transform

    def remap(self, person: Person) -> Person:
        return apply_transform(person, self._transform, self.flip)
