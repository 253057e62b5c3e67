"""Pose data types delivered by the keypoint detector.

A Frame holds every Person found in one camera image. Each Person carries
the 17 body keypoints in a fixed order (nose first, ankles last), so a
keypoint's index never changes even when its BodyPart tag is mirrored.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Point:
    """A 2D coordinate in detector or display space."""
    x: float
    y: float

    def distance_to(self, other: Point) -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        return (dx * dx + dy * dy) ** 0.5

    def to_list(self) -> list[float]:
        return [self.x, self.y]


class BodyPart(Enum):
    NOSE = 0
    LEFT_EYE = 1
    RIGHT_EYE = 2
    LEFT_EAR = 3
    RIGHT_EAR = 4
    LEFT_SHOULDER = 5
    RIGHT_SHOULDER = 6
    LEFT_ELBOW = 7
    RIGHT_ELBOW = 8
    LEFT_WRIST = 9
    RIGHT_WRIST = 10
    LEFT_HIP = 11
    RIGHT_HIP = 12
    LEFT_KNEE = 13
    RIGHT_KNEE = 14
    LEFT_ANKLE = 15
    RIGHT_ANKLE = 16

    @property
    def position(self) -> int:
        return self.value

    def mirror(self) -> BodyPart:
        """Return the anatomical counterpart on the other side of the body."""
        name = self.name
        if name.startswith("LEFT_"):
            return BodyPart["RIGHT_" + name[5:]]
        if name.startswith("RIGHT_"):
            return BodyPart["LEFT_" + name[6:]]
        return self


@dataclass(frozen=True)
class BoundingBox:
    left: float
    top: float
    right: float
    bottom: float


@dataclass(frozen=True)
class Keypoint:
    """One tracked landmark with position and detector confidence."""
    body_part: BodyPart
    coordinate: Point
    score: float = 1.0


@dataclass
class Person:
    """A single detected person."""
    id: int
    keypoints: list[Keypoint]
    bounding_box: Optional[BoundingBox] = None
    score: float = 1.0

    def keypoint(self, part: BodyPart) -> Optional[Keypoint]:
        """Find a keypoint by tag. Tags can be mirrored, so this searches."""
        for kp in self.keypoints:
            if kp.body_part == part:
                return kp
        return None

    def coordinate(self, part: BodyPart, min_score: float = 0.0) -> Optional[Point]:
        kp = self.keypoint(part)
        if kp is None or kp.score < min_score:
            return None
        return kp.coordinate

    def with_keypoints(self, keypoints: list[Keypoint], bounding_box: Optional[BoundingBox] = None) -> Person:
        return replace(self, keypoints=keypoints, bounding_box=bounding_box)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "score": self.score,
            "keypoints": [
                [kp.body_part.name.lower(), kp.coordinate.x, kp.coordinate.y, kp.score]
                for kp in self.keypoints
            ],
        }
        if self.bounding_box is not None:
            bb = self.bounding_box
            data["bounding_box"] = [bb.left, bb.top, bb.right, bb.bottom]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Person:
        keypoints = []
        for name, x, y, score in data["keypoints"]:
            part = BodyPart.__members__.get(str(name).upper())
            if part is None:
                raise ValueError(f"Unknown body part {name!r}")
            keypoints.append(Keypoint(part, Point(float(x), float(y)), float(score)))
        bbox = data.get("bounding_box")
        return cls(
            id=data.get("id", 0),
            keypoints=keypoints,
            bounding_box=BoundingBox(*bbox) if bbox else None,
            score=data.get("score", 1.0),
        )


@dataclass
class Frame:
    """Everything the detector reported for one image.

    Frames are delivered whole; the engine never sees a partially
    updated set of keypoints.
    """
    persons: list[Person] = field(default_factory=list)
    timestamp: Optional[float] = None  # milliseconds, as reported by the capture side
    fps: Optional[float] = None


def make_person(
    coords: dict[BodyPart, tuple[float, float]],
    score: float = 1.0,
    person_id: int = 0,
    default: tuple[float, float] = (0.0, 0.0),
    missing_score: float = 0.0,
) -> Person:
    """Build a full 17-keypoint Person from a partial coordinate map.

    Parts not in ``coords`` are placed at ``default`` with ``missing_score``.
    """
    keypoints = []
    for part in BodyPart:
        if part in coords:
            x, y = coords[part]
            keypoints.append(Keypoint(part, Point(float(x), float(y)), 1.0))
        else:
            keypoints.append(Keypoint(part, Point(*default), missing_score))
    return Person(id=person_id, keypoints=keypoints, score=score)
