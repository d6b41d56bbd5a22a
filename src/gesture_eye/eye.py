"""Eye gesture classification: winks and blinks from per-eye EAR.

Each eye is read as CLOSED below the profile's closed threshold and OPEN
above a fixed 70%-of-baseline threshold. Between the two it keeps its last
reading, so an eye drifting through the dead zone neither starts nor
resolves a timer.

Rules, evaluated in order every frame:

1. Both eyes closed: start the both-closed timer. Single-eye timers are left
   running; a sloppy wink often reads as both-closed for a frame or two.
2. Both eyes reopen after a both-closed timer: resolve a long or slow blink.
3. Any other state while the both-closed timer runs: drop the timer.
4. Right wink: right closed with left open, resolved when right reopens.
5. Left wink: the mirror image of rule 4.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from gesture_eye.cooldown import CooldownClock
from gesture_eye.events import GestureKind
from gesture_eye.profiles import SensitivityProfile

logger = logging.getLogger("gesture_eye.eye")

OPEN_RATIO = 0.70
LONG_BLINK_THRESHOLD = 1.2
# Closures longer than this are not gestures (dozing off, looking down).
SLOW_BLINK_MAX_DURATION = 2.0


class EyeReading(Enum):
    UNKNOWN = "unknown"
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class EyeThresholds:
    closed: float
    open: float

    @classmethod
    def from_baseline(cls, baseline: float, profile: SensitivityProfile) -> EyeThresholds:
        return cls(
            closed=baseline * profile.closed_ratio,
            open=baseline * OPEN_RATIO,
        )

    def read(self, ear: float, previous: EyeReading) -> EyeReading:
        if ear < self.closed:
            return EyeReading.CLOSED
        if ear > self.open:
            return EyeReading.OPEN
        return previous


@dataclass
class EyeState:
    """Latched reading of one eye and when its current closure began."""
    closed_since: Optional[float] = None
    reading: EyeReading = EyeReading.UNKNOWN

    @property
    def closed(self) -> bool:
        return self.reading is EyeReading.CLOSED

    @property
    def open(self) -> bool:
        return self.reading is EyeReading.OPEN


Classification = tuple[GestureKind, float]


class EyeGestureClassifier:
    """Two independent eye channels plus a both-eyes channel.

    The classifier only decides; the caller owns the cooldown clock and marks
    it when a classification is returned.
    """

    def __init__(self):
        self.left = EyeState()
        self.right = EyeState()
        self.both_closed_since: Optional[float] = None

    def reset(self):
        self.left = EyeState()
        self.right = EyeState()
        self.both_closed_since = None

    def update(
        self,
        left_ear: float,
        right_ear: float,
        now: float,
        baseline: float,
        profile: SensitivityProfile,
        cooldown: CooldownClock,
    ) -> Optional[Classification]:
        """Advance both eye state machines by one frame.

        Returns:
            (kind, closure_duration) when a gesture is classified, else None.
        """
        thresholds = EyeThresholds.from_baseline(baseline, profile)
        self.left.reading = thresholds.read(left_ear, self.left.reading)
        self.right.reading = thresholds.read(right_ear, self.right.reading)
        left, right = self.left, self.right

        # 1. Both closed
        if left.closed and right.closed:
            if self.both_closed_since is None:
                self.both_closed_since = now
            return None

        # 2. Both reopened
        if self.both_closed_since is not None and left.open and right.open:
            duration = now - self.both_closed_since
            self.both_closed_since = None
            return self._resolve_blink(duration, now, profile, cooldown)

        # 3. Mixed state
        self.both_closed_since = None

        # 4 and 5. Winks
        result = self._track_wink(
            right, left, GestureKind.RIGHT_WINK, now, profile, cooldown
        )
        second = self._track_wink(
            left, right, GestureKind.LEFT_WINK, now, profile,
            cooldown if result is None else None,
        )
        return result or second

    def _resolve_blink(
        self,
        duration: float,
        now: float,
        profile: SensitivityProfile,
        cooldown: CooldownClock,
    ) -> Optional[Classification]:
        if duration < profile.blink_min:
            return None

        if duration > LONG_BLINK_THRESHOLD:
            kind = GestureKind.LONG_BLINK
            if duration > SLOW_BLINK_MAX_DURATION:
                logger.debug("Ignoring %.2fs closure (too long for a gesture)", duration)
                return None
        else:
            kind = GestureKind.SLOW_BLINK

        if not cooldown.ready(now, profile.cooldown):
            return None
        return kind, duration

    def _track_wink(
        self,
        eye: EyeState,
        other: EyeState,
        kind: GestureKind,
        now: float,
        profile: SensitivityProfile,
        cooldown: Optional[CooldownClock],
    ) -> Optional[Classification]:
        """One wink channel. A None cooldown means a gesture already fired this frame."""
        if eye.closed and other.open:
            if eye.closed_since is None:
                eye.closed_since = now
            other.closed_since = None
            return None

        if eye.closed_since is not None and eye.open:
            duration = now - eye.closed_since
            eye.closed_since = None
            if (
                cooldown is not None
                and profile.wink_min <= duration <= profile.wink_max
                and cooldown.ready(now, profile.cooldown)
            ):
                return kind, duration
        return None
