"""Frame-by-frame orchestration: keypoints in, key presses and game state out.

Per frame the engine:
- expires keys whose debounce window has passed
- picks the primary person and remaps it into display space
- feeds each tracked wrist into its trajectory buffer and hit-tests the
  latest movement against the keys
- advances the melody on a match and fires the audio trigger
- optionally scores the trajectories for directional strokes
- returns a RenderSnapshot for the drawing side

All state lives on the engine and is only touched inside ``process_frame``.
Callers feeding frames from several threads must serialize the calls.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import asdict, dataclass, field
from typing import Callable, Optional

from openarcade.audio import AudioTrigger, audio_trigger_from_config
from openarcade.clock import Clock, MonotonicClock
from openarcade.config import EngineConfig
from openarcade.keys import PianoKeys
from openarcade.metrics import MetricsCollector
from openarcade.pose import BodyPart, Frame, Person, Point
from openarcade.profiler import PipelineProfiler
from openarcade.remap import CoordinateRemapper
from openarcade.sequencer import HintEntry, NoteSequencer
from openarcade.strokes import StrokeClassifier, StrokeDirection, stroke_threshold

logger = logging.getLogger("openarcade.engine")


@dataclass
class TriggerEvent:
    """A key struck by a wrist."""
    key_index: int
    label: str
    limb: BodyPart
    matched: bool  # was it the note the melody expected
    expected_note: int  # expected note at the moment of the strike
    timestamp: float


@dataclass
class StrokeEvent:
    direction: StrokeDirection
    score: float
    limb: BodyPart
    timestamp: float


@dataclass
class KeyState:
    index: int
    label: str
    active: bool
    left: float
    top: float
    right: float
    bottom: float


@dataclass
class DebugInfo:
    """Typed debug values for the on-screen overlay."""
    display_size: tuple[float, float]
    detect_size: tuple[float, float]
    rotation_degrees: float
    flip: bool
    fps: Optional[float] = None
    person_score: Optional[float] = None
    stroke_threshold: Optional[float] = None


@dataclass
class RenderSnapshot:
    """Everything the renderer needs to draw one frame."""
    keys: list[KeyState]
    hints: list[HintEntry]
    hints_by_key: dict[int, list[HintEntry]]
    expected_note: int
    note_index: int
    round: int
    triggers: list[TriggerEvent] = field(default_factory=list)
    strokes: list[StrokeEvent] = field(default_factory=list)
    traces: dict[str, list[Point]] = field(default_factory=dict)
    debug: Optional[DebugInfo] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        for trig in data["triggers"]:
            trig["limb"] = trig["limb"].name.lower()
        for stroke in data["strokes"]:
            stroke["direction"] = stroke["direction"].value
            stroke["limb"] = stroke["limb"].name.lower()
        data["traces"] = {name: [p.to_list() for p in pts] for name, pts in self.traces.items()}
        return data


@dataclass
class EngineStats:
    total_frames: int
    total_triggers: int
    total_matches: int
    total_strokes: int
    profiler_summary: dict = field(default_factory=dict)


def select_primary(persons: list[Person], min_score: float) -> Optional[Person]:
    """Highest-scoring person above ``min_score``; the first wins ties."""
    best: Optional[Person] = None
    for person in persons:
        if person.score <= min_score:
            continue
        if best is None or person.score > best.score:
            best = person
    return best


class GestureEngine:
    """Turns pose frames into key presses and melody progress.

    Usage:
        engine = GestureEngine(EngineConfig(), audio=LogAudioTrigger())
        engine.on_trigger(lambda e: print(e.label, e.matched))
        # In frame loop:
        snapshot = engine.process_frame(frame)
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        audio: Optional[AudioTrigger] = None,
        clock: Optional[Clock] = None,
        metrics: Optional[MetricsCollector] = None,
        enable_profiling: bool = True,
    ):
        self.config = config or EngineConfig()
        self.audio = audio if audio is not None else audio_trigger_from_config(self.config.audio)
        self.clock = clock or MonotonicClock()
        self.metrics = metrics

        display = self.config.display
        self.remapper = CoordinateRemapper(
            display.detect_size, display.display_size, display.flip, display.rotation_degrees
        )
        self.keys = PianoKeys(
            display.display_size,
            geometry=self.config.geometry,
            debounce_ms=self.config.debounce_interval_ms,
            downward_only=self.config.downward_only,
        )
        self.sequencer = NoteSequencer(self.config.melody, self.config.hint_group_size)
        self.stroke_classifier = StrokeClassifier(self.config.stroke_confidence_threshold)
        self.profiler = PipelineProfiler(enabled=enable_profiling)

        self._limbs = self.config.limbs
        self._buffers: dict[BodyPart, deque] = {
            limb: deque(maxlen=self.config.trajectory_window_size) for limb in self._limbs
        }
        self._trigger_callbacks: list[Callable[[TriggerEvent], None]] = []
        self._stroke_callbacks: list[Callable[[StrokeEvent], None]] = []
        self._total_frames = 0
        self._total_triggers = 0
        self._total_matches = 0
        self._total_strokes = 0

    def on_trigger(self, callback: Callable[[TriggerEvent], None]):
        """Register a callback for key presses."""
        self._trigger_callbacks.append(callback)

    def on_stroke(self, callback: Callable[[StrokeEvent], None]):
        """Register a callback for detected strokes (stroke mode only)."""
        self._stroke_callbacks.append(callback)

    def configure_display(
        self,
        detect_size: tuple[float, float],
        display_size: tuple[float, float],
        flip: Optional[bool] = None,
        rotation_degrees: Optional[float] = None,
    ):
        """Apply a new camera/screen geometry, e.g. after the device rotated.

        Trajectories are dropped because old points are in the old space.
        """
        flip = self.remapper.flip if flip is None else flip
        rotation = self.remapper.rotation_degrees if rotation_degrees is None else rotation_degrees
        self.remapper.configure(detect_size, display_size, flip, rotation)
        self.keys.relayout(display_size)
        for buffer in self._buffers.values():
            buffer.clear()
        logger.info(
            "Display reconfigured: detect=%s display=%s flip=%s rotation=%s",
            detect_size, display_size, flip, rotation,
        )

    def process_frame(self, frame: Frame) -> RenderSnapshot:
        """Run one frame through the pipeline and return what to draw."""
        t_start = time.perf_counter()
        self._total_frames += 1
        now = self.clock.now()

        # Debounce is polled here rather than with timers
        for index in self.keys.expire(now):
            logger.debug("Key %d released", index)

        triggers: list[TriggerEvent] = []
        strokes: list[StrokeEvent] = []
        threshold: Optional[float] = None

        person = select_primary(frame.persons, self.config.min_person_score)
        if person is not None:
            with self.profiler.stage("remap"):
                person = self.remapper.remap(person)

            for limb in self._limbs:
                point = person.coordinate(limb, self.config.min_keypoint_score)
                if point is None:
                    continue

                buffer = self._buffers[limb]
                buffer.append(point)

                event = self._strike(limb, buffer, now)
                if event is not None:
                    triggers.append(event)
                    continue

                if self.config.enable_strokes and len(buffer) > 2:
                    with self.profiler.stage("strokes"):
                        if threshold is None:
                            threshold = stroke_threshold(person, self.config.min_keypoint_score)
                        stroke = self._classify_stroke(limb, buffer, threshold, now)
                    if stroke is not None:
                        strokes.append(stroke)

        elapsed = time.perf_counter() - t_start
        self.profiler.record("total", elapsed * 1000.0)
        if self.metrics is not None:
            self.metrics.record_frame(elapsed, person is not None)

        return self._snapshot(frame, person, triggers, strokes, threshold)

    def _strike(self, limb: BodyPart, buffer: deque, now: float) -> Optional[TriggerEvent]:
        if len(buffer) < 2:
            return None

        with self.profiler.stage("keys"):
            key_index = self.keys.strike(buffer[-2], buffer[-1], now)
        if key_index is None:
            return None

        expected = self.sequencer.current_expected_note()
        round_before = self.sequencer.current_round
        with self.profiler.stage("sequencer"):
            matched = self.sequencer.on_key_triggered(key_index)

        self._fire_audio(key_index)
        buffer.clear()

        event = TriggerEvent(
            key_index=key_index,
            label=self.keys[key_index].label,
            limb=limb,
            matched=matched,
            expected_note=expected,
            timestamp=now,
        )
        self._total_triggers += 1
        if matched:
            self._total_matches += 1
        logger.debug(
            "%s struck key %d (%s), expected note %d, matched=%s",
            limb.name.lower(), key_index, event.label, expected, matched,
        )

        if self.metrics is not None:
            self.metrics.record_trigger(key_index, matched)
            if self.sequencer.current_round != round_before:
                self.metrics.record_round()

        for cb in self._trigger_callbacks:
            cb(event)
        return event

    def _fire_audio(self, key_index: int):
        # Sound is best effort; a broken synth must not stall the game
        try:
            self.audio.trigger(key_index)
        except Exception as e:
            logger.error("Audio trigger for key %d failed: %s", key_index, e)

    def _classify_stroke(
        self, limb: BodyPart, buffer: deque, threshold: Optional[float], now: float
    ) -> Optional[StrokeEvent]:
        if threshold is None:
            return None

        result = self.stroke_classifier.classify(list(buffer), threshold)
        if result is None:
            return None

        direction, score = result
        # Keep the newest point so the next stroke starts where this one ended
        last = buffer[-1]
        buffer.clear()
        buffer.append(last)

        event = StrokeEvent(direction=direction, score=score, limb=limb, timestamp=now)
        self._total_strokes += 1
        logger.debug("%s stroke %s (score=%.2f)", limb.name.lower(), direction.value, score)

        if self.metrics is not None:
            self.metrics.record_stroke(direction.value)
        for cb in self._stroke_callbacks:
            cb(event)
        return event

    def _snapshot(
        self,
        frame: Frame,
        person: Optional[Person],
        triggers: list[TriggerEvent],
        strokes: list[StrokeEvent],
        threshold: Optional[float],
    ) -> RenderSnapshot:
        keys = [
            KeyState(k.index, k.label, k.active, k.left, k.top, k.right, k.bottom)
            for k in self.keys.regions
        ]
        seq = self.sequencer
        return RenderSnapshot(
            keys=keys,
            hints=seq.hint_window(),
            hints_by_key=seq.hints_by_key(),
            expected_note=seq.current_expected_note(),
            note_index=seq.current_note_index,
            round=seq.current_round,
            triggers=triggers,
            strokes=strokes,
            traces={limb.name.lower(): list(buf) for limb, buf in self._buffers.items()},
            debug=DebugInfo(
                display_size=self.remapper.display_size,
                detect_size=self.remapper.detect_size,
                rotation_degrees=self.remapper.rotation_degrees,
                flip=self.remapper.flip,
                fps=frame.fps,
                person_score=person.score if person is not None else None,
                stroke_threshold=threshold,
            ),
        )

    def trajectory(self, limb: BodyPart) -> list[Point]:
        return list(self._buffers.get(limb, ()))

    @property
    def stats(self) -> EngineStats:
        return EngineStats(
            total_frames=self._total_frames,
            total_triggers=self._total_triggers,
            total_matches=self._total_matches,
            total_strokes=self._total_strokes,
            profiler_summary=self.profiler.summary(),
        )

    def reset(self):
        """Start a new game: melody back to the first note, keys released."""
        self.sequencer.reset()
        self.keys.reset()
        for buffer in self._buffers.values():
            buffer.clear()
        self._total_frames = 0
        self._total_triggers = 0
        self._total_matches = 0
        self._total_strokes = 0
        self.profiler.reset()
