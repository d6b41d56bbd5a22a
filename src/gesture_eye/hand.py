"""Hand gesture classification: thumb-index pinch and horizontal wrist swipes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from gesture_eye.cooldown import CooldownClock
from gesture_eye.events import GestureKind
from gesture_eye.frames import HandFrame, Point2D, distance

logger = logging.getLogger("gesture_eye.hand")


@dataclass
class HandMotionState:
    """Velocity anchor for swipes and the pinch latch."""
    last_wrist: Optional[Point2D] = None
    last_time: Optional[float] = None
    pinching: bool = False


class HandGestureClassifier:
    """Detects pinch and left/right swipes from one hand's keypoints.

    Pinch uses a hysteresis band: it latches below `pinch_close` and only
    re-arms once the fingertips separate beyond `pinch_release`.

    Swipes use the wrist velocity between samples at least `swipe_min_dt`
    apart. After a swipe the anchor is dropped so the next sample starts a
    fresh velocity measurement instead of reading overshoot as a new swipe.

    Each gesture has its own debounce on top of the shared cooldown: both
    must have elapsed before the gesture fires.
    """

    def __init__(
        self,
        min_confidence: float = 0.3,
        pinch_close: float = 0.04,
        pinch_release: float = 0.08,
        pinch_debounce: float = 1.0,
        swipe_min_dt: float = 0.05,
        swipe_min_velocity: float = 0.7,
        swipe_axis_ratio: float = 1.5,
        swipe_debounce: float = 1.2,
    ):
        if pinch_release < pinch_close:
            raise ValueError("pinch_release must not be below pinch_close")
        self.min_confidence = min_confidence
        self.pinch_close = pinch_close
        self.pinch_release = pinch_release
        self.pinch_debounce = pinch_debounce
        self.swipe_min_dt = swipe_min_dt
        self.swipe_min_velocity = swipe_min_velocity
        self.swipe_axis_ratio = swipe_axis_ratio
        self.swipe_debounce = swipe_debounce
        self.state = HandMotionState()

    def reset(self):
        self.state = HandMotionState()

    def update(
        self,
        hand: HandFrame,
        cooldown: CooldownClock,
        cooldown_seconds: Optional[float],
    ) -> Optional[GestureKind]:
        """Advance the hand channel by one frame. Returns at most one gesture.

        A None `cooldown_seconds` means another classifier already fired this
        frame: the pinch latch and swipe anchor still move, nothing is emitted.
        """
        thumb, index = hand.thumb_tip, hand.index_tip
        if thumb is None or index is None:
            return None
        if thumb.confidence <= self.min_confidence or index.confidence <= self.min_confidence:
            return None

        now = hand.timestamp
        result = self._update_pinch(
            distance(thumb.point, index.point), now, cooldown, cooldown_seconds
        )

        if hand.wrist is not None:
            swipe = self._update_swipe(
                hand.wrist, now, cooldown,
                cooldown_seconds if result is None else None,
            )
            result = result or swipe

        return result

    def _ready(self, now: float, cooldown: CooldownClock, debounce: float, cooldown_seconds: float) -> bool:
        return cooldown.elapsed(now) > debounce and cooldown.ready(now, cooldown_seconds)

    def _update_pinch(
        self,
        gap: float,
        now: float,
        cooldown: CooldownClock,
        cooldown_seconds: Optional[float],
    ) -> Optional[GestureKind]:
        state = self.state
        if gap < self.pinch_close:
            if (
                not state.pinching
                and cooldown_seconds is not None
                and self._ready(now, cooldown, self.pinch_debounce, cooldown_seconds)
            ):
                state.pinching = True
                return GestureKind.HAND_PINCH
        elif gap > self.pinch_release:
            state.pinching = False
        return None

    def _update_swipe(
        self,
        wrist: Point2D,
        now: float,
        cooldown: CooldownClock,
        cooldown_seconds: Optional[float],
    ) -> Optional[GestureKind]:
        """Wrist velocity check. A None cooldown_seconds means a gesture already fired."""
        state = self.state
        if state.last_wrist is None or state.last_time is None:
            state.last_wrist = wrist
            state.last_time = now
            return None

        dt = now - state.last_time
        if dt <= self.swipe_min_dt:
            return None

        vx = (wrist.x - state.last_wrist.x) / dt
        vy = (wrist.y - state.last_wrist.y) / dt

        if (
            cooldown_seconds is not None
            and abs(vx) > self.swipe_min_velocity
            and abs(vx) > self.swipe_axis_ratio * abs(vy)
            and self._ready(now, cooldown, self.swipe_debounce, cooldown_seconds)
        ):
            state.last_wrist = None
            state.last_time = None
            logger.debug("Swipe vx=%.2f vy=%.2f dt=%.3f", vx, vy, dt)
            return GestureKind.HAND_SWIPE_RIGHT if vx > 0 else GestureKind.HAND_SWIPE_LEFT

        state.last_wrist = wrist
        state.last_time = now
        return None
