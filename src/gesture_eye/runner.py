"""Frame runner: a single worker thread that feeds the dispatcher.

The camera callback submits frames and returns immediately. The worker
always processes the newest frame; anything it could not get to in time is
dropped rather than queued, so latency stays bounded by one frame.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from gesture_eye.dispatcher import GestureDispatcher
from gesture_eye.frames import FaceFrame, HandFrame

logger = logging.getLogger("gesture_eye.runner")

_Pending = tuple[FaceFrame, Optional[HandFrame], int]


class FrameRunner:
    """Owns the frame-processing thread for one dispatcher.

    Usage:
        with FrameRunner(dispatcher) as runner:
            while capturing:
                runner.submit(*detector.detect(frame, time.monotonic()))
    """

    def __init__(
        self,
        dispatcher: GestureDispatcher,
        on_face_lost: Optional[Callable[[], None]] = None,
        watchdog_interval: float = 1.0,
    ):
        self.dispatcher = dispatcher
        self._on_face_lost = on_face_lost or dispatcher.deactivate
        self._watchdog_interval = watchdog_interval

        self._cond = threading.Condition()
        self._pending: Optional[_Pending] = None
        self._running = False
        self._thread: Optional[threading.Thread] = None
        self._last_watchdog_check = 0.0

        self.processed = 0
        self.dropped = 0

    def start(self):
        if self._running:
            return
        self._running = True
        self._thread = threading.Thread(
            target=self._run, name="gesture-eye-frames", daemon=True
        )
        self._thread.start()
        logger.debug("Frame runner started")

    def stop(self, timeout: float = 2.0):
        with self._cond:
            self._running = False
            self._pending = None
            self._cond.notify_all()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        logger.debug(
            "Frame runner stopped (%d processed, %d dropped)",
            self.processed, self.dropped,
        )

    def submit(self, face: FaceFrame, hand: Optional[HandFrame] = None):
        """Hand a frame to the worker, replacing one it has not picked up yet.

        Frames are tagged with the dispatcher's current session, so a frame
        submitted before a deactivate can never emit afterwards.
        """
        with self._cond:
            if self._pending is not None:
                self.dropped += 1
            self._pending = (face, hand, self.dispatcher.session)
            self._cond.notify()

    def _run(self):
        while True:
            with self._cond:
                while self._running and self._pending is None:
                    self._cond.wait(timeout=self._watchdog_interval)
                    if self._pending is None:
                        break
                if not self._running:
                    return
                pending, self._pending = self._pending, None

            if pending is not None:
                face, hand, session = pending
                try:
                    self.dispatcher.push_frame(face, hand, session=session)
                except Exception:
                    logger.exception("Frame processing failed")
                self.processed += 1

            self._check_watchdog()

    def _check_watchdog(self):
        now = time.monotonic()
        if now - self._last_watchdog_check < self._watchdog_interval:
            return
        self._last_watchdog_check = now
        if self.dispatcher.check_face_timeout():
            self._on_face_lost()

    @property
    def is_running(self) -> bool:
        return self._running

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *args):
        self.stop()
