"""Engine configuration, loadable from YAML.

Example file:

    debounce_interval_ms: 200
    hint_group_size: 4
    melody: [1, 1, 5, 5, 6, 6, 5, 0]
    display:
      detect_width: 720
      detect_height: 1280
      display_width: 1920
      display_height: 1080
      flip: true
      rotation_degrees: 0
    geometry:
      row: 6
      rows: 11
    audio:
      type: osc
      port: 57120
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from openarcade.keys import KeyGeometry
from openarcade.pose import BodyPart
from openarcade.sequencer import DEFAULT_MELODY, validate_melody, whole_number

logger = logging.getLogger("openarcade.config")


@dataclass
class DisplayConfig:
    """Camera (detect) and screen (display) geometry."""
    detect_width: float = 1280.0
    detect_height: float = 720.0
    display_width: float = 1920.0
    display_height: float = 1080.0
    flip: bool = True
    rotation_degrees: float = 0.0

    @property
    def detect_size(self) -> tuple[float, float]:
        return (self.detect_width, self.detect_height)

    @property
    def display_size(self) -> tuple[float, float]:
        return (self.display_width, self.display_height)

    def validate(self):
        for name in ("detect_width", "detect_height", "display_width", "display_height"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")


@dataclass
class EngineConfig:
    debounce_interval_ms: float = 200.0
    stroke_confidence_threshold: float = 0.7
    trajectory_window_size: int = 5
    melody: list[int] = field(default_factory=lambda: list(DEFAULT_MELODY))
    hint_group_size: int = 4
    min_person_score: float = 0.4
    min_keypoint_score: float = 0.2
    enable_strokes: bool = False
    downward_only: bool = False
    tracked_limbs: list[str] = field(default_factory=lambda: ["left_wrist", "right_wrist"])
    geometry: KeyGeometry = field(default_factory=KeyGeometry)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    audio: dict[str, Any] = field(default_factory=lambda: {"type": "log"})

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Reject bad settings up front instead of failing mid-session."""
        self.melody = validate_melody(self.melody)
        if self.debounce_interval_ms <= 0:
            raise ValueError(f"debounce_interval_ms must be positive, got {self.debounce_interval_ms}")
        if not 0.0 < self.stroke_confidence_threshold <= 1.0:
            raise ValueError(
                f"stroke_confidence_threshold must be in (0, 1], got {self.stroke_confidence_threshold}"
            )
        self.trajectory_window_size = whole_number("trajectory_window_size", self.trajectory_window_size)
        self.hint_group_size = whole_number("hint_group_size", self.hint_group_size)
        if self.trajectory_window_size < 2:
            raise ValueError(f"trajectory_window_size must be >= 2, got {self.trajectory_window_size}")
        if self.hint_group_size < 1:
            raise ValueError(f"hint_group_size must be >= 1, got {self.hint_group_size}")
        if not self.tracked_limbs:
            raise ValueError("At least one tracked limb is required")
        for name in self.tracked_limbs:
            if name.upper() not in BodyPart.__members__:
                raise ValueError(f"Unknown body part in tracked_limbs: {name}")
        self.geometry.validate()
        self.display.validate()

    @property
    def limbs(self) -> list[BodyPart]:
        return [BodyPart[name.upper()] for name in self.tracked_limbs]

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> EngineConfig:
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        for key in list(data):
            if key not in known:
                logger.warning("Ignoring unknown config key: %s", key)
                data.pop(key)

        if "geometry" in data:
            data["geometry"] = _build(KeyGeometry, data["geometry"], "geometry")
        if "display" in data:
            data["display"] = _build(DisplayConfig, data["display"], "display")
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> EngineConfig:
        """Load a config file. Missing keys keep their defaults."""
        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Malformed config file {path}: {e}") from e

        if data is not None and not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        config = cls.from_dict(data)
        logger.info("Loaded config from %s", path)
        return config

    def to_yaml(self, path: str | Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=None, sort_keys=False)


def _build(cls, data: Any, section: str):
    if not isinstance(data, dict):
        raise ValueError(f"Config section '{section}' must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = [k for k in data if k not in known]
    for key in unknown:
        logger.warning("Ignoring unknown %s key: %s", section, key)
    return cls(**{k: v for k, v in data.items() if k in known})
