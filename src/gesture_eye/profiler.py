"""Frame-budget profiling for `GestureDispatcher.push_frame`.

At ~15 Hz a frame has to be fully processed within ~66 ms or the runner
starts dropping frames. `FrameProfiler` times each whole frame against that
budget and breaks the cost down by stage (`ear`, `calibration`,
`eye_classification`, `hand_classification`, `dispatch`).
"""

from __future__ import annotations

import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional

import numpy as np

CAMERA_FPS = 15
FRAME_BUDGET_MS = 1000.0 / CAMERA_FPS


@dataclass
class TimingWindow:
    """Recent samples (ms) for one measured span plus its lifetime count."""
    samples: deque = field(default_factory=lambda: deque(maxlen=120))
    count: int = 0

    def add(self, ms: float):
        self.samples.append(ms)
        self.count += 1

    def stats(self) -> Optional[dict]:
        if not self.samples:
            return None
        arr = np.fromiter(self.samples, dtype=np.float64)
        return {
            "avg_ms": round(float(arr.mean()), 3),
            "p95_ms": round(float(np.percentile(arr, 95)), 3),
            "max_ms": round(float(arr.max()), 3),
            "calls": self.count,
        }


class FrameProfiler:
    """Times frames against the inter-frame budget.

    Usage:
        profiler = FrameProfiler()

        with profiler.frame():
            with profiler.stage("ear"):
                left = compute_ear(face.left_eye)

        profiler.over_budget  # frames slower than budget_ms
    """

    def __init__(
        self,
        budget_ms: float = FRAME_BUDGET_MS,
        window_size: int = 120,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.budget_ms = budget_ms
        self.enabled = True
        self._window_size = window_size
        self._clock = clock
        self._frames = self._window()
        self._stages: dict[str, TimingWindow] = {}
        self.over_budget = 0

    def _window(self) -> TimingWindow:
        return TimingWindow(samples=deque(maxlen=self._window_size))

    @contextmanager
    def _timed(self, window: TimingWindow) -> Iterator[None]:
        t0 = self._clock()
        try:
            yield
        finally:
            window.add((self._clock() - t0) * 1000.0)

    @contextmanager
    def frame(self) -> Iterator[None]:
        """Time one whole frame; frames over `budget_ms` are counted."""
        if not self.enabled:
            yield
            return
        with self._timed(self._frames):
            yield
        if self._frames.samples[-1] > self.budget_ms:
            self.over_budget += 1

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        if not self.enabled:
            yield
            return
        window = self._stages.get(name)
        if window is None:
            window = self._stages[name] = self._window()
        with self._timed(window):
            yield

    @property
    def frames(self) -> int:
        return self._frames.count

    def stage_stats(self, name: str) -> Optional[dict]:
        window = self._stages.get(name)
        return window.stats() if window else None

    def summary(self) -> dict:
        """Frame totals and per-stage stats for every stage that has run."""
        stages = {}
        for name, window in self._stages.items():
            stats = window.stats()
            if stats:
                stages[name] = stats
        return {
            "frames": self.frames,
            "over_budget": self.over_budget,
            "budget_ms": round(self.budget_ms, 1),
            "frame": self._frames.stats(),
            "stages": stages,
        }

    def reset(self):
        self._frames = self._window()
        self._stages.clear()
        self.over_budget = 0
