"""No-face watchdog: asks for deactivation after sustained face loss."""

from __future__ import annotations

import time
from typing import Callable, Optional

DEFAULT_FACE_TIMEOUT = 30.0


class FaceWatchdog:
    """Tracks wall-clock time since a face was last seen.

    Driven by the clock, not by frame counts, so a stalled camera still
    times out.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_FACE_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.timeout = timeout
        self._clock = clock
        self._last_seen: Optional[float] = None

    def mark_seen(self, now: Optional[float] = None):
        self._last_seen = self._clock() if now is None else now

    def seconds_since_face(self, now: Optional[float] = None) -> float:
        if self._last_seen is None:
            return 0.0
        now = self._clock() if now is None else now
        return max(0.0, now - self._last_seen)

    def expired(self, now: Optional[float] = None) -> bool:
        if self._last_seen is None:
            return False
        return self.seconds_since_face(now) > self.timeout

    def reset(self):
        self._last_seen = None
