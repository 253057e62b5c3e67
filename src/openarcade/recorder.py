"""Keypoint recording and replay.

Recorded sessions let the game logic run without a camera or a pose
model: in CI, when tuning thresholds, or to reproduce a bug report.

File format (JSON):
    {"version": 1, "detect_size": [w, h], "frame_count": N, "duration": s,
     "frames": [{"timestamp": ms, "fps": f, "persons": [...]}, ...]}
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from openarcade.pose import Frame, Person

logger = logging.getLogger("openarcade.recorder")

FORMAT_VERSION = 1


@dataclass
class RecordedFrame:
    timestamp: float  # milliseconds from recording start
    persons: list[Person]
    fps: Optional[float] = None

    def to_frame(self) -> Frame:
        return Frame(persons=list(self.persons), timestamp=self.timestamp, fps=self.fps)


class FrameRecorder:
    """Collects frames as they arrive from the detector.

    Usage:
        recorder = FrameRecorder(detect_size=(1280, 720))
        recorder.start()
        # In your frame loop:
        recorder.add_frame(frame)
        recorder.save("session.json")
    """

    def __init__(self, detect_size: Optional[tuple[float, float]] = None):
        self.detect_size = detect_size
        self._frames: list[RecordedFrame] = []
        self._start_time: Optional[float] = None
        self._recording = False

    def start(self):
        self._frames = []
        self._start_time = time.monotonic()
        self._recording = True

    def stop(self) -> int:
        self._recording = False
        return len(self._frames)

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        """Recording length in seconds."""
        if not self._frames:
            return 0.0
        return self._frames[-1].timestamp / 1000.0

    def add_frame(self, frame: Frame, timestamp: Optional[float] = None):
        """Append a frame; ``timestamp`` (ms) defaults to time since ``start()``."""
        if not self._recording:
            return
        if timestamp is None:
            timestamp = (time.monotonic() - self._start_time) * 1000.0
        self._frames.append(RecordedFrame(timestamp=timestamp, persons=list(frame.persons), fps=frame.fps))

    def to_dict(self) -> dict:
        return {
            "version": FORMAT_VERSION,
            "detect_size": list(self.detect_size) if self.detect_size else None,
            "frame_count": len(self._frames),
            "duration": self.duration,
            "frames": [
                {
                    "timestamp": f.timestamp,
                    "fps": f.fps,
                    "persons": [p.to_dict() for p in f.persons],
                }
                for f in self._frames
            ],
        }

    def save(self, path: str | Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f)
        logger.info("Saved %d frames to %s", len(self._frames), path)


class FramePlayer:
    """Replays a recorded session.

    Usage:
        player = FramePlayer.load("session.json")
        for frame in player.play():
            engine.process_frame(frame)
    """

    def __init__(self, frames: list[RecordedFrame], detect_size: Optional[tuple[float, float]] = None):
        self._frames = frames
        self.detect_size = detect_size

    @classmethod
    def load(cls, path: str | Path) -> FramePlayer:
        with open(path) as f:
            data = json.load(f)

        version = data.get("version", FORMAT_VERSION)
        if version != FORMAT_VERSION:
            raise ValueError(f"Unsupported recording version {version} in {path}")

        try:
            frames = [
                RecordedFrame(
                    timestamp=float(f["timestamp"]),
                    persons=[Person.from_dict(p) for p in f.get("persons", [])],
                    fps=f.get("fps"),
                )
                for f in data["frames"]
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Malformed recording {path}: {e}") from e
        detect_size = data.get("detect_size")
        return cls(frames, tuple(detect_size) if detect_size else None)

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        if not self._frames:
            return 0.0
        return self._frames[-1].timestamp / 1000.0

    def play(self) -> Iterator[Frame]:
        """Yield every frame immediately."""
        for recorded in self._frames:
            yield recorded.to_frame()

    def play_realtime(self, speed: float = 1.0) -> Iterator[Frame]:
        """Yield frames at their recorded pace (scaled by ``speed``)."""
        if not self._frames:
            return

        start = time.monotonic()
        first = self._frames[0].timestamp
        for frame in self.play():
            target = (frame.timestamp - first) / 1000.0 / speed
            elapsed = time.monotonic() - start
            if target > elapsed:
                time.sleep(target - elapsed)
            yield frame
