"""Gesture dispatcher: owns the session state and drives the classifiers frame by frame."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from gesture_eye.calibration import DEFAULT_CALIBRATION_FRAMES, Calibrator
from gesture_eye.cooldown import CooldownClock
from gesture_eye.ear import compute_ear
from gesture_eye.events import GestureEvent, GestureKind
from gesture_eye.eye import EyeGestureClassifier
from gesture_eye.frames import FaceFrame, HandFrame
from gesture_eye.hand import HandGestureClassifier
from gesture_eye.profiler import FrameProfiler
from gesture_eye.profiles import NORMAL, SensitivityProfile
from gesture_eye.sinks import FanoutSink, GestureSink
from gesture_eye.watchdog import DEFAULT_FACE_TIMEOUT, FaceWatchdog

logger = logging.getLogger("gesture_eye.dispatcher")

# Consecutive faceless frames before `face_detected` drops (~3s at 15 Hz).
FACE_LOST_FRAMES = 45
EAR_TRACE_INTERVAL = 90


@dataclass(frozen=True)
class DispatcherSnapshot:
    """Read-only copy of the dispatcher state for UI and API consumers."""
    is_active: bool
    is_calibrated: bool
    calibration_progress: float
    face_detected: bool
    gesture_count: int
    cooldown_remaining: float
    profile: str
    baseline: Optional[float] = None
    last_event: Optional[GestureEvent] = None

    def to_dict(self) -> dict:
        return {
            "active": self.is_active,
            "calibrated": self.is_calibrated,
            "calibration_progress": round(self.calibration_progress, 3),
            "face_detected": self.face_detected,
            "gesture_count": self.gesture_count,
            "cooldown_remaining": round(self.cooldown_remaining, 3),
            "profile": self.profile,
            "baseline": None if self.baseline is None else round(self.baseline, 4),
            "last_event": self.last_event.to_dict() if self.last_event else None,
        }


class GestureDispatcher:
    """Runs EAR -> calibration -> eye classifier -> hand classifier per frame.

    One instance per camera session, constructed and owned by the caller.
    All state lives behind a single lock: `push_frame` is meant to be called
    from one frame-processing context, while `snapshot` and the
    `activate`/`deactivate`/`set_sensitivity` controls may come from any
    thread.

    Sinks are invoked while the lock is held. Once `deactivate()` returns,
    no frame can produce another event, including a frame that was already
    being processed when it was called.

    Usage:
        sink = QueueSink()
        dispatcher = GestureDispatcher(sink=sink)
        dispatcher.activate(NORMAL)

        for face, hand in frames:
            event = dispatcher.push_frame(face, hand)
    """

    def __init__(
        self,
        profile: SensitivityProfile = NORMAL,
        sink: Optional[GestureSink] = None,
        calibration_frames: int = DEFAULT_CALIBRATION_FRAMES,
        face_timeout: float = DEFAULT_FACE_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        hand_classifier: Optional[HandGestureClassifier] = None,
        enable_profiling: bool = True,
    ):
        self._lock = threading.Lock()
        self._profile = profile
        self._sinks = FanoutSink()
        if sink is not None:
            self._sinks.add(sink)

        self._calibrator = Calibrator(calibration_frames)
        self._eye = EyeGestureClassifier()
        self._hand = hand_classifier or HandGestureClassifier()
        self._cooldown = CooldownClock()
        self.watchdog = FaceWatchdog(face_timeout, clock)
        self.profiler = FrameProfiler()
        self.profiler.enabled = enable_profiling

        self._active = False
        self._session = 0
        self._timeout_reported = False
        self._reset_session_state()

    def _reset_session_state(self):
        self._calibrator.reset()
        self._eye.reset()
        self._hand.reset()
        self._cooldown.reset()
        self.watchdog.reset()
        self._gesture_count = 0
        self._last_event: Optional[GestureEvent] = None
        self._last_timestamp: Optional[float] = None
        self._face_detected = False
        self._no_face_frames = 0
        self._frames = 0
        self._timeout_reported = False

    # --- Session control ---

    def activate(self, profile: Optional[SensitivityProfile] = None) -> int:
        """Reset everything and start calibrating.

        Returns the new session number; frames tagged with an older one are
        ignored by `push_frame`.
        """
        with self._lock:
            if profile is not None:
                self._profile = profile
            self._reset_session_state()
            self._session += 1
            self._active = True
            self.watchdog.mark_seen()
            logger.info(
                "Activated session %d (profile=%s, calibrating over %d frames)",
                self._session, self._profile.name, self._calibrator.state.target,
            )
            return self._session

    def deactivate(self):
        """Hard reset of all state. Safe to call repeatedly."""
        with self._lock:
            was_active = self._active
            self._active = False
            self._session += 1
            self._reset_session_state()
        if was_active:
            logger.info("Deactivated")

    def set_sensitivity(self, profile: SensitivityProfile):
        """Swap thresholds without touching calibration or running timers."""
        with self._lock:
            if profile != self._profile:
                logger.info("Sensitivity %s -> %s", self._profile.name, profile.name)
            self._profile = profile

    def subscribe(self, sink: GestureSink):
        with self._lock:
            self._sinks.add(sink)

    def unsubscribe(self, sink: GestureSink):
        with self._lock:
            self._sinks.remove(sink)

    # --- Frame path ---

    def push_frame(
        self,
        face: FaceFrame,
        hand: Optional[HandFrame] = None,
        session: Optional[int] = None,
    ) -> Optional[GestureEvent]:
        """Feed one camera tick. Returns the gesture it produced, if any."""
        with self._lock:
            if not self._active:
                return None
            if session is not None and session != self._session:
                return None
            with self.profiler.frame():
                return self._process(face, hand)

    def _process(self, face: FaceFrame, hand: Optional[HandFrame]) -> Optional[GestureEvent]:
        """Frame path proper; called with the lock held."""
        self._frames += 1
        self._last_timestamp = face.timestamp
        self._track_face(face)

        if not face.has_both_eyes:
            if not self._calibrator.is_calibrated or hand is None:
                return None
            return self._classify_hand(hand)

        with self.profiler.stage("ear"):
            left_ear = compute_ear(face.left_eye)
            right_ear = compute_ear(face.right_eye)

        if not self._calibrator.is_calibrated:
            with self.profiler.stage("calibration"):
                self._calibrator.add(left_ear, right_ear)
            return None

        if self._frames % EAR_TRACE_INTERVAL == 0:
            logger.debug(
                "EAR L=%.3f R=%.3f (baseline=%.3f)",
                left_ear, right_ear, self._calibrator.baseline,
            )

        with self.profiler.stage("eye_classification"):
            result = self._eye.update(
                left_ear, right_ear, face.timestamp,
                self._calibrator.baseline, self._profile, self._cooldown,
            )

        event = None
        if result is not None:
            kind, duration = result
            event = self._emit(kind, face.timestamp, duration)

        if hand is not None:
            # Hand state still advances when the eye already fired
            hand_event = self._classify_hand(hand, emit=event is None)
            event = event or hand_event
        return event

    def _classify_hand(self, hand: HandFrame, emit: bool = True) -> Optional[GestureEvent]:
        with self.profiler.stage("hand_classification"):
            kind = self._hand.update(
                hand, self._cooldown, self._profile.cooldown if emit else None
            )
        if kind is None:
            return None
        return self._emit(kind, hand.timestamp)

    def _track_face(self, face: FaceFrame):
        if face.has_face:
            self.watchdog.mark_seen()
            self._timeout_reported = False
            self._no_face_frames = 0
            self._face_detected = True
        else:
            self._no_face_frames += 1
            if self._no_face_frames > FACE_LOST_FRAMES:
                self._face_detected = False

    def _emit(
        self,
        kind: GestureKind,
        timestamp: float,
        duration: Optional[float] = None,
    ) -> GestureEvent:
        self._cooldown.mark(timestamp)
        self._gesture_count += 1
        event = GestureEvent(
            kind=kind,
            timestamp=timestamp,
            sequence=self._gesture_count,
            duration=duration,
            profile=self._profile.name,
        )
        self._last_event = event
        logger.info("Fired %s (#%d)", kind.value, self._gesture_count)
        with self.profiler.stage("dispatch"):
            self._sinks.push(event)
        return event

    # --- Observers ---

    def cooldown_remaining(self, now: Optional[float] = None) -> float:
        """Seconds until another gesture may fire.

        `now` is on the frame timestamp clock and defaults to the timestamp
        of the latest frame.
        """
        with self._lock:
            return self._cooldown_remaining(now)

    def _cooldown_remaining(self, now: Optional[float]) -> float:
        if now is None:
            now = self._last_timestamp
        if now is None:
            return 0.0
        return self._cooldown.remaining(now, self._profile.cooldown)

    def snapshot(self, now: Optional[float] = None) -> DispatcherSnapshot:
        with self._lock:
            return DispatcherSnapshot(
                is_active=self._active,
                is_calibrated=self._calibrator.is_calibrated,
                calibration_progress=self._calibrator.progress,
                face_detected=self._face_detected,
                gesture_count=self._gesture_count,
                cooldown_remaining=self._cooldown_remaining(now),
                profile=self._profile.name,
                baseline=self._calibrator.baseline,
                last_event=self._last_event,
            )

    def check_face_timeout(self, now: Optional[float] = None) -> bool:
        """True when an active session has gone `face_timeout` seconds without a face.

        The caller is expected to deactivate in response; resuming takes a
        fresh `activate()` and a full recalibration.
        """
        with self._lock:
            if not self._active or not self.watchdog.expired(now):
                return False
            if not self._timeout_reported:
                self._timeout_reported = True
                logger.warning(
                    "No face for %.0fs, requesting deactivation",
                    self.watchdog.seconds_since_face(now),
                )
            return True

    @property
    def profile(self) -> SensitivityProfile:
        return self._profile

    @property
    def session(self) -> int:
        return self._session

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def frames_processed(self) -> int:
        return self._frames
