"""Shared cooldown clock for all gesture classifiers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional


@dataclass
class CooldownClock:
    """Timestamp of the last emitted gesture, shared by eye and hand classifiers.

    `last_fired` is None until the first gesture of a session, which makes
    the elapsed time infinite.
    """
    last_fired: Optional[float] = None

    def elapsed(self, now: float) -> float:
        if self.last_fired is None:
            return math.inf
        return now - self.last_fired

    def ready(self, now: float, cooldown: float) -> bool:
        return self.elapsed(now) >= cooldown

    def remaining(self, now: float, cooldown: float) -> float:
        """Seconds until the next gesture may fire, never negative."""
        return max(0.0, cooldown - self.elapsed(now))

    def mark(self, now: float):
        self.last_fired = now

    def reset(self):
        self.last_fired = None
