"""OpenArcade CLI.

Usage:
    openarcade replay       Run a recorded keypoint session through the game
    openarcade benchmark    Measure per-frame engine latency on synthetic input
    openarcade init-config  Write a default YAML config
    openarcade hints        Show how a melody is split into hint groups
"""

from __future__ import annotations

import logging
import random
import time
from pathlib import Path
from typing import Optional

import typer

from openarcade.audio import NullAudioTrigger, audio_trigger_from_config
from openarcade.clock import ManualClock
from openarcade.config import EngineConfig
from openarcade.engine import GestureEngine, TriggerEvent
from openarcade.keys import NOTE_LABELS
from openarcade.metrics import MetricsCollector
from openarcade.pose import BodyPart, Frame, make_person
from openarcade.recorder import FramePlayer
from openarcade.sequencer import NoteSequencer

app = typer.Typer(
    name="openarcade",
    help="🎹 Play a virtual piano with your wrists.",
    add_completion=False,
)


def _load_config(path: Optional[str]) -> EngineConfig:
    if path is None:
        return EngineConfig()
    try:
        return EngineConfig.from_yaml(path)
    except (OSError, ValueError) as e:
        typer.echo(f"❌ Could not load config {path}: {e}", err=True)
        raise typer.Exit(1)


@app.callback()
def main_options(log_level: str = typer.Option("warning", help="Log level")):
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


@app.command()
def replay(
    recording: str = typer.Argument(..., help="Path to a recorded session (.json)"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to engine YAML config"),
    realtime: bool = typer.Option(False, help="Play at the recorded pace"),
    speed: float = typer.Option(1.0, help="Playback speed multiplier for --realtime"),
    mute: bool = typer.Option(False, help="Do not fire audio triggers"),
    metrics: bool = typer.Option(False, help="Print Prometheus metrics at the end"),
):
    """Feed a recorded session through the engine and report key presses."""
    path = Path(recording)
    if not path.exists():
        typer.echo(f"❌ Recording not found: {recording}", err=True)
        raise typer.Exit(1)

    cfg = _load_config(config)
    try:
        player = FramePlayer.load(path)
    except ValueError as e:
        typer.echo(f"❌ Could not load recording: {e}", err=True)
        raise typer.Exit(1)
    if player.detect_size:
        cfg.display.detect_width, cfg.display.detect_height = player.detect_size

    clock = ManualClock()
    collector = MetricsCollector()
    audio = NullAudioTrigger() if mute else audio_trigger_from_config(cfg.audio)
    engine = GestureEngine(cfg, audio=audio, clock=clock, metrics=collector)

    def on_trigger(event: TriggerEvent):
        mark = "✅" if event.matched else "·"
        typer.echo(
            f"   {mark} {event.timestamp:9.0f} ms  {event.limb.name.lower():<11s} "
            f"key {event.key_index} ({event.label})"
        )

    engine.on_trigger(on_trigger)

    typer.echo(f"▶️  Replaying {path.name} ({player.frame_count} frames, {player.duration:.1f}s)")
    frames = player.play_realtime(speed=speed) if realtime else player.play()
    for frame in frames:
        clock.set(frame.timestamp or 0.0)
        engine.process_frame(frame)

    stats = engine.stats
    seq = engine.sequencer
    typer.echo(
        f"\n✅ {stats.total_triggers} key presses, {stats.total_matches} matched, "
        f"round {seq.current_round}, note {seq.current_note_index + 1}/{len(seq.melody)}"
    )
    if metrics:
        typer.echo(collector.render())


def _synthetic_frame(rng: random.Random, t: float, width: float, height: float) -> Frame:
    """A person swinging both wrists up and down across the key row."""
    phase = (t % 1000.0) / 1000.0
    wrist_y = height * (0.3 + 0.4 * abs(2 * phase - 1))
    coords = {
        BodyPart.NOSE: (width * 0.5, height * 0.15),
        BodyPart.LEFT_SHOULDER: (width * 0.4, height * 0.3),
        BodyPart.RIGHT_SHOULDER: (width * 0.6, height * 0.3),
        BodyPart.LEFT_ELBOW: (width * 0.35, height * 0.4),
        BodyPart.RIGHT_ELBOW: (width * 0.65, height * 0.4),
        BodyPart.LEFT_WRIST: (width * rng.uniform(0.05, 0.95), wrist_y),
        BodyPart.RIGHT_WRIST: (width * rng.uniform(0.05, 0.95), wrist_y),
    }
    return Frame(persons=[make_person(coords, score=0.9)])


@app.command()
def benchmark(
    iterations: int = typer.Option(5000, help="Number of frames"),
    strokes: bool = typer.Option(True, help="Enable stroke scoring"),
    seed: int = typer.Option(42, help="Random seed"),
):
    """Run the engine on synthetic frames and report latency."""
    cfg = EngineConfig(enable_strokes=strokes)
    clock = ManualClock()
    engine = GestureEngine(cfg, audio=NullAudioTrigger(), clock=clock)
    rng = random.Random(seed)
    width, height = cfg.display.detect_size

    typer.echo(f"⚡ Running benchmark: {iterations} frames, strokes={'on' if strokes else 'off'}")
    frames = [_synthetic_frame(rng, i * 33.0, width, height) for i in range(iterations)]

    times = []
    for i, frame in enumerate(frames):
        clock.set(i * 33.0)
        t0 = time.perf_counter()
        engine.process_frame(frame)
        times.append(time.perf_counter() - t0)

    avg_ms = sum(times) / len(times) * 1000
    p95_ms = sorted(times)[int(len(times) * 0.95)] * 1000
    typer.echo("\n📊 Results:")
    typer.echo(f"   Average latency: {avg_ms:.3f} ms")
    typer.echo(f"   P95 latency:     {p95_ms:.3f} ms")
    typer.echo(f"   Throughput:      {1000 / avg_ms if avg_ms > 0 else 0:.0f} FPS")
    typer.echo(f"   Key presses:     {engine.stats.total_triggers}")

    typer.echo("\n📈 Stage breakdown:")
    for name, stats in engine.profiler.summary().items():
        typer.echo(f"   {name:12s} avg={stats['avg_ms']:.3f}ms  p95={stats['p95_ms']:.3f}ms")


@app.command("init-config")
def init_config(
    output: str = typer.Argument("openarcade.yml", help="Where to write the config"),
    force: bool = typer.Option(False, help="Overwrite an existing file"),
):
    """Write the default configuration as YAML."""
    path = Path(output)
    if path.exists() and not force:
        typer.echo(f"❌ {output} already exists (use --force to overwrite)", err=True)
        raise typer.Exit(1)
    EngineConfig().to_yaml(path)
    typer.echo(f"💾 Wrote default config to {output}")


@app.command()
def hints(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to engine YAML config"),
):
    """Print the melody split into the hint groups shown to the player."""
    cfg = _load_config(config)
    seq = NoteSequencer(cfg.melody, cfg.hint_group_size)
    group = cfg.hint_group_size
    for start in range(0, len(seq.melody), group):
        notes = seq.melody[start:start + group]
        names = [NOTE_LABELS[n - 1] if n else "-" for n in notes]
        typer.echo(f"   {start + 1:4d}: {' '.join(f'{n:>3s}' for n in names)}")


def main():
    app()


if __name__ == "__main__":
    main()
