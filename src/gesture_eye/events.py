"""Gesture kinds and the events emitted for them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class GestureKind(Enum):
    RIGHT_WINK = "right_wink"
    LEFT_WINK = "left_wink"
    SLOW_BLINK = "slow_blink"
    LONG_BLINK = "long_blink"
    HAND_PINCH = "hand_pinch"
    HAND_SWIPE_LEFT = "hand_swipe_left"
    HAND_SWIPE_RIGHT = "hand_swipe_right"

    @property
    def is_eye(self) -> bool:
        return self in _EYE_KINDS

    @property
    def is_hand(self) -> bool:
        return not self.is_eye


_EYE_KINDS = frozenset({
    GestureKind.RIGHT_WINK,
    GestureKind.LEFT_WINK,
    GestureKind.SLOW_BLINK,
    GestureKind.LONG_BLINK,
})


@dataclass(frozen=True)
class GestureEvent:
    """A classified gesture.

    `sequence` is the dispatcher's gesture counter after this event, so the
    first event of a session has sequence 1. `duration` is the eye closure
    time for eye gestures and None for hand gestures.
    """
    kind: GestureKind
    timestamp: float
    sequence: int
    duration: Optional[float] = None
    profile: str = "normal"

    def to_dict(self) -> dict:
        return {
            "type": "gesture",
            "gesture": self.kind.value,
            "timestamp": self.timestamp,
            "sequence": self.sequence,
            "duration": None if self.duration is None else round(self.duration, 3),
            "profile": self.profile,
        }
