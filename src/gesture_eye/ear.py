"""Eye Aspect Ratio (EAR) from an eye contour."""

from __future__ import annotations

import numpy as np

from gesture_eye.frames import EyeContour

MIN_CONTOUR_POINTS = 6
DEGENERATE_SPAN = 1e-4

# Returned whenever the contour cannot be measured. A spurious "closed"
# reading would fire a gesture, a spurious "open" one only misses a frame.
FAIL_SAFE_OPEN = 1.0


def compute_ear(contour: EyeContour) -> float:
    """Compute the eye aspect ratio of a contour.

    The contour runs counter-clockwise from the inner corner, so point 0 and
    point n/2 are the two corners and points i and n-i face each other across
    the lids.

    Args:
        contour: Sequence of >= 6 (x, y) points or an array of shape (n, 2).

    Returns:
        Mean lid separation divided by corner-to-corner span. Not clamped.
    """
    points = np.asarray(contour, dtype=np.float64)
    n = len(points)
    if n < MIN_CONTOUR_POINTS:
        return FAIL_SAFE_OPEN

    half = n // 2
    horizontal = float(np.linalg.norm(points[half] - points[0]))
    if not horizontal >= DEGENERATE_SPAN:
        return FAIL_SAFE_OPEN

    upper = points[1:half]
    lower = points[n - 1:n - half:-1]
    vertical = float(np.mean(np.linalg.norm(upper - lower, axis=1)))
    return vertical / horizontal


def mean_ear(left: float, right: float) -> float:
    return (left + right) / 2.0
