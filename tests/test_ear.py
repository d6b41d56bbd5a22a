"""Tests for eye aspect ratio computation."""

import math

import numpy as np
import pytest

from gesture_eye.ear import FAIL_SAFE_OPEN, compute_ear, mean_ear
from gesture_eye.frames import FaceFrame, Point2D
from gesture_eye.synthetic import eye_contour


def make_ellipse(n=6, rx=0.05, ry=0.05, center=(0.5, 0.5)):
    """Contour sampled counter-clockwise from the inner corner at angle 0."""
    angles = [2 * math.pi * i / n for i in range(n)]
    return [Point2D(center[0] + rx * math.cos(a), center[1] - ry * math.sin(a)) for a in angles]


class TestComputeEar:
    def test_circle_vs_flat(self):
        circle = compute_ear(make_ellipse(ry=0.05))
        flat = compute_ear(make_ellipse(ry=0.005))
        assert circle == pytest.approx(math.sqrt(3) / 2, rel=1e-6)
        assert flat == pytest.approx(circle / 10, rel=1e-6)
        assert circle > flat

    def test_synthetic_contour_is_exact(self):
        for ear in (0.05, 0.18, 0.30):
            assert compute_ear(eye_contour(ear)) == pytest.approx(ear)

    def test_eight_point_contour(self):
        assert compute_ear(make_ellipse(n=8)) == pytest.approx(
            (2 * math.sin(math.pi / 4) * 2 + 2) / 3 / 2, rel=1e-6
        )

    def test_zero_width_is_fail_safe_open(self):
        contour = [Point2D(0.5, 0.5 + 0.01 * i) for i in range(6)]
        contour[3] = contour[0]
        assert compute_ear(contour) == FAIL_SAFE_OPEN == 1.0

    def test_too_few_points(self):
        assert compute_ear(make_ellipse(n=6)[:5]) == 1.0

    def test_nan_points(self):
        contour = np.full((6, 2), np.nan)
        assert compute_ear(contour) == 1.0

    def test_accepts_numpy_and_sequences(self):
        points = make_ellipse()
        assert compute_ear(np.array(points)) == pytest.approx(compute_ear(points))

    def test_not_clamped(self):
        tall = make_ellipse(rx=0.01, ry=0.05)
        assert compute_ear(tall) > 1.0


class TestHelpers:
    def test_mean_ear(self):
        assert mean_ear(0.2, 0.4) == pytest.approx(0.3)

    def test_face_frame_presence(self):
        assert not FaceFrame(1.0).has_face
        half = FaceFrame(1.0, left_eye=eye_contour(0.3))
        assert half.has_face
        assert not half.has_both_eyes

    def test_face_frame_dict(self):
        frame = FaceFrame(2.5, left_eye=eye_contour(0.3), right_eye=None)
        restored = FaceFrame.from_dict(frame.to_dict())
        assert restored.timestamp == 2.5
        assert restored.right_eye is None
        assert compute_ear(restored.left_eye) == pytest.approx(0.3)
