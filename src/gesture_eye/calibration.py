"""Per-session baseline EAR calibration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from gesture_eye.ear import mean_ear

logger = logging.getLogger("gesture_eye.calibration")

DEFAULT_CALIBRATION_FRAMES = 30


@dataclass
class CalibrationState:
    total: float = 0.0
    frames: int = 0
    target: int = DEFAULT_CALIBRATION_FRAMES
    baseline: Optional[float] = None
    is_calibrated: bool = False


class Calibrator:
    """Averages the open-eye EAR over a warm-up window.

    Every frame with both eyes present contributes the mean of the two EARs.
    Once `target` frames have been seen the baseline is fixed for the rest of
    the session; there is no incremental re-baselining.
    """

    def __init__(self, target: int = DEFAULT_CALIBRATION_FRAMES):
        if target < 1:
            raise ValueError("calibration target must be at least 1 frame")
        self._target = target
        self.state = CalibrationState(target=target)

    def add(self, left_ear: float, right_ear: float) -> bool:
        """Accumulate one frame. Returns True on the frame that completes calibration."""
        state = self.state
        if state.is_calibrated:
            return False

        state.total += mean_ear(left_ear, right_ear)
        state.frames += 1

        if state.frames >= state.target:
            state.baseline = state.total / state.target
            state.is_calibrated = True
            logger.info(
                "EAR calibrated over %d frames: baseline=%.3f",
                state.target, state.baseline,
            )
            return True
        return False

    @property
    def progress(self) -> float:
        return min(1.0, self.state.frames / self.state.target)

    @property
    def is_calibrated(self) -> bool:
        return self.state.is_calibrated

    @property
    def baseline(self) -> Optional[float]:
        return self.state.baseline

    def reset(self):
        self.state = CalibrationState(target=self._target)
