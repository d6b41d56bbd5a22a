"""gesture-eye CLI.

Usage:
    gesture-eye serve       - Start the HTTP/WebSocket service
    gesture-eye watch       - Run gestures live from the camera
    gesture-eye record      - Record landmark frames from the camera
    gesture-eye replay      - Replay a recorded session through the dispatcher
    gesture-eye profiles    - List sensitivity profiles
    gesture-eye benchmark   - Time the per-frame path on synthetic frames
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional

import typer

from gesture_eye.config import EngineConfig, load_config
from gesture_eye.profiles import ProfileRegistry, SensitivityProfile

app = typer.Typer(
    name="gesture-eye",
    help="Hands-free gesture events from eye and hand landmarks.",
    add_completion=False,
)


def _setup(config_path: Optional[str], log_level: Optional[str] = None) -> EngineConfig:
    try:
        config = load_config(config_path)
    except (OSError, ValueError) as e:
        typer.echo(f"Could not load config: {e}", err=True)
        raise typer.Exit(1)

    if log_level:
        config.log_level = log_level
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    return config


def _registry(config: EngineConfig) -> ProfileRegistry:
    registry = ProfileRegistry.with_defaults()
    if config.profiles_file:
        try:
            registry.load_from_file(config.profiles_file)
        except (OSError, KeyError, ValueError) as e:
            typer.echo(f"Could not load profiles from {config.profiles_file}: {e}", err=True)
            raise typer.Exit(1)
    return registry


def _profile(registry: ProfileRegistry, name: str) -> SensitivityProfile:
    profile = registry.find(name)
    if profile is None:
        typer.echo(f"Unknown profile '{name}'. Known: {', '.join(registry.names)}", err=True)
        raise typer.Exit(1)
    return profile


@app.command()
def serve(
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to YAML config"),
    host: Optional[str] = typer.Option(None, help="Bind address"),
    port: Optional[int] = typer.Option(None, help="Port"),
    profile: Optional[str] = typer.Option(None, help="Sensitivity profile"),
    actions_config: Optional[str] = typer.Option(None, "--actions", help="Path to actions YAML config"),
    log_level: Optional[str] = typer.Option(None, help="Log level"),
):
    """Start the gesture service and wait for a frame feed."""
    import uvicorn

    from gesture_eye.actions import ActionMapper
    from gesture_eye.dispatcher import GestureDispatcher
    from gesture_eye.server import app as fastapi_app, state

    config = _setup(config_path, log_level)
    registry = _registry(config)
    dispatcher = GestureDispatcher(
        profile=_profile(registry, profile or config.profile),
        calibration_frames=config.calibration_frames,
        face_timeout=config.face_timeout,
    )

    mapper = None
    actions_path = actions_config or config.actions_file
    if actions_path:
        mapper = ActionMapper.from_yaml(actions_path)
        typer.echo(f"Loaded action mappings: {actions_path}")

    state.configure(dispatcher=dispatcher, profiles=registry, action_mapper=mapper)

    host = host or config.host
    port = port or config.port
    typer.echo(f"Starting gesture-eye on {host}:{port} (profile: {dispatcher.profile.name})")
    uvicorn.run(fastapi_app, host=host, port=port, log_level=config.log_level.lower())


@app.command()
def watch(
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to YAML config"),
    profile: Optional[str] = typer.Option(None, help="Sensitivity profile"),
    camera: Optional[int] = typer.Option(None, help="Camera device index"),
    actions: bool = typer.Option(False, help="Run the default media-control actions"),
    actions_config: Optional[str] = typer.Option(None, "--actions", help="Path to actions YAML config"),
    log_level: Optional[str] = typer.Option(None, help="Log level"),
):
    """Detect gestures live from the camera."""
    import cv2

    from gesture_eye.actions import ActionMapper
    from gesture_eye.detector import LandmarkDetector
    from gesture_eye.dispatcher import GestureDispatcher
    from gesture_eye.runner import FrameRunner
    from gesture_eye.sinks import QueueSink

    config = _setup(config_path, log_level)
    registry = _registry(config)
    camera_index = config.camera_index if camera is None else camera

    cap = cv2.VideoCapture(camera_index)
    if not cap.isOpened():
        typer.echo(f"Could not open camera {camera_index}", err=True)
        raise typer.Exit(1)
    cap.set(cv2.CAP_PROP_FPS, config.camera_fps)

    mapper = None
    if actions_config or config.actions_file:
        mapper = ActionMapper.from_yaml(actions_config or config.actions_file)
    elif actions:
        mapper = ActionMapper.with_defaults()

    sink = QueueSink()
    dispatcher = GestureDispatcher(
        profile=_profile(registry, profile or config.profile),
        sink=sink,
        calibration_frames=config.calibration_frames,
        face_timeout=config.face_timeout,
    )
    detector = LandmarkDetector()
    dispatcher.activate()

    typer.echo(f"Watching camera {camera_index} (profile: {dispatcher.profile.name})")
    typer.echo("   Look at the camera with eyes open to calibrate. Ctrl+C to stop")

    loop = asyncio.new_event_loop()
    calibrated = False
    try:
        with FrameRunner(dispatcher) as runner:
            while dispatcher.is_active:
                ret, frame = cap.read()
                if not ret:
                    continue

                frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
                runner.submit(*detector.detect(frame_rgb, time.monotonic()))

                snapshot = dispatcher.snapshot()
                if not calibrated and snapshot.is_calibrated:
                    calibrated = True
                    typer.echo(f"   Calibrated (baseline EAR {snapshot.baseline:.3f})")

                for event in sink.drain():
                    typer.echo(f"   {event.kind.value} (#{event.sequence})")
                    if mapper is not None:
                        loop.run_until_complete(mapper.on_gesture(event))

            if not dispatcher.is_active:
                typer.echo("\nNo face for too long, stopped.")
    except KeyboardInterrupt:
        pass
    finally:
        dispatcher.deactivate()
        cap.release()
        detector.close()
        if mapper is not None:
            loop.run_until_complete(mapper.close())
        loop.close()


@app.command()
def record(
    output: str = typer.Option("session.json", "-o", help="Output file path"),
    duration: float = typer.Option(0, help="Recording duration in seconds (0 = until Ctrl+C)"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to YAML config"),
    camera: Optional[int] = typer.Option(None, help="Camera device index"),
    profile: Optional[str] = typer.Option(None, help="Sensitivity profile for live labels"),
    log_level: Optional[str] = typer.Option(None, help="Log level"),
):
    """Record landmark frames (and the gestures they produce) from the camera."""
    config = _setup(config_path, log_level)
    registry = _registry(config)
    selected = _profile(registry, profile or config.profile)
    camera_index = config.camera_index if camera is None else camera

    import cv2

    from gesture_eye.detector import LandmarkDetector
    from gesture_eye.dispatcher import GestureDispatcher
    from gesture_eye.recorder import SessionRecorder

    cap = cv2.VideoCapture(camera_index)
    if not cap.isOpened():
        typer.echo(f"Could not open camera {camera_index}", err=True)
        raise typer.Exit(1)
    cap.set(cv2.CAP_PROP_FPS, config.camera_fps)

    detector = LandmarkDetector()
    dispatcher = GestureDispatcher(
        profile=selected,
        calibration_frames=config.calibration_frames,
        face_timeout=config.face_timeout,
    )
    recorder = SessionRecorder()

    typer.echo(f"Recording from camera {camera_index}...")
    typer.echo("   Press Ctrl+C to stop")
    dispatcher.activate()
    recorder.start()
    start = time.monotonic()

    try:
        while True:
            ret, frame = cap.read()
            if not ret:
                continue

            face, hand = detector.detect(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB), time.monotonic())
            event = dispatcher.push_frame(face, hand)
            recorder.add_frame(face, hand, event)
            if event is not None:
                typer.echo(f"\n   {event.kind.value}")

            if recorder.frame_count % 15 == 0:
                typer.echo(
                    f"\r   Frames: {recorder.frame_count} | Duration: {recorder.duration:.1f}s",
                    nl=False,
                )

            if dispatcher.check_face_timeout():
                typer.echo("\n   No face for too long, stopping.")
                break
            if duration > 0 and (time.monotonic() - start) >= duration:
                break
    except KeyboardInterrupt:
        pass
    finally:
        dispatcher.deactivate()
        recorder.stop()
        cap.release()
        detector.close()

    recorder.save(output)
    typer.echo(f"\n\nSaved {recorder.frame_count} frames ({recorder.duration:.1f}s) to {output}")


@app.command()
def replay(
    recording: str = typer.Argument(..., help="Path to recording file"),
    profile: str = typer.Option("normal", help="Sensitivity profile"),
    calibration_frames: int = typer.Option(30, help="Calibration window in frames"),
):
    """Replay a recorded session through a fresh dispatcher."""
    from gesture_eye.dispatcher import GestureDispatcher
    from gesture_eye.recorder import SessionPlayer

    path = Path(recording)
    if not path.exists():
        typer.echo(f"Recording not found: {recording}", err=True)
        raise typer.Exit(1)

    try:
        player = SessionPlayer.load(path)
    except (KeyError, ValueError) as e:
        typer.echo(f"Could not read {recording}: {e}", err=True)
        raise typer.Exit(1)

    dispatcher = GestureDispatcher(calibration_frames=calibration_frames)
    selected = _profile(ProfileRegistry.with_defaults(), profile)
    typer.echo(f"Replaying {path.name} ({player.frame_count} frames, {player.duration:.1f}s)")

    events = player.replay(dispatcher, selected)
    for event in events:
        typer.echo(f"   {event.timestamp:10.3f}  {event.kind.value}")

    recorded = player.recorded_gestures
    typer.echo(f"\nReplay complete: {len(events)} gestures ({len(recorded)} when recorded).")


@app.command()
def profiles(
    profiles_file: Optional[str] = typer.Option(None, "--file", help="Extra profiles YAML"),
):
    """List sensitivity profiles."""
    registry = ProfileRegistry.with_defaults()
    if profiles_file:
        registry.load_from_file(profiles_file)

    typer.echo(f"{'name':12s} {'winkMin':>8s} {'winkMax':>8s} {'blinkMin':>9s} {'cooldown':>9s} {'closed':>7s}")
    for p in registry:
        typer.echo(
            f"{p.name:12s} {p.wink_min:8.2f} {p.wink_max:8.2f} {p.blink_min:9.2f} "
            f"{p.cooldown:9.2f} {p.closed_ratio:7.2f}"
        )


@app.command()
def benchmark(
    iterations: int = typer.Option(3000, help="Number of frames"),
    fps: float = typer.Option(15.0, help="Simulated camera rate"),
):
    """Time the per-frame path on synthetic frames."""
    from gesture_eye.dispatcher import GestureDispatcher
    from gesture_eye.synthetic import face_frame, hand_frame

    typer.echo(f"Running benchmark: {iterations} frames")

    dispatcher = GestureDispatcher()
    dispatcher.profiler.budget_ms = 1000.0 / fps
    dispatcher.activate()

    # Blink every ~4s, pinch every ~5s
    dt = 1.0 / fps
    events = 0
    for i in range(iterations):
        t = i * dt
        ear = 0.08 if (t % 4.0) < 0.6 else 0.30
        pinch = 0.02 if (t % 5.0) < 0.3 else 0.15
        if dispatcher.push_frame(face_frame(t, ear, ear), hand_frame(t, pinch)) is not None:
            events += 1

    summary = dispatcher.profiler.summary()
    frame = summary["frame"]

    typer.echo("\nResults:")
    typer.echo(f"   Average latency: {frame['avg_ms']:.3f} ms")
    typer.echo(f"   P95 latency:     {frame['p95_ms']:.3f} ms")
    typer.echo(f"   Frame budget:    {summary['budget_ms']:.1f} ms")
    typer.echo(f"   Over budget:     {summary['over_budget']} of {summary['frames']} frames")
    typer.echo(f"   Gestures fired:  {events}")

    typer.echo("\nStage breakdown:")
    for name, stats in summary["stages"].items():
        typer.echo(f"   {name:25s} avg={stats['avg_ms']:.3f}ms  p95={stats['p95_ms']:.3f}ms")


def main():
    app()


if __name__ == "__main__":
    main()
