"""OpenArcade - body-tracked virtual piano and melody game."""

__version__ = "0.1.0"

from openarcade.pose import BodyPart, BoundingBox, Frame, Keypoint, Person, Point
from openarcade.remap import CoordinateRemapper, remap_person
from openarcade.strokes import StrokeClassifier, StrokeDirection, stroke_threshold
from openarcade.keys import KeyGeometry, KeyRegion, PianoKeys
from openarcade.sequencer import DEFAULT_MELODY, HintEntry, NoteSequencer
from openarcade.config import DisplayConfig, EngineConfig
from openarcade.clock import ManualClock, MonotonicClock
from openarcade.audio import AudioTrigger, LogAudioTrigger, NullAudioTrigger, OscAudioTrigger
from openarcade.engine import GestureEngine, RenderSnapshot, StrokeEvent, TriggerEvent
from openarcade.recorder import FramePlayer, FrameRecorder
from openarcade.profiler import PipelineProfiler
from openarcade.metrics import MetricsCollector
