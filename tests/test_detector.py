"""Tests for the landmark-to-frame conversion (no MediaPipe needed)."""

import numpy as np
import pytest

from gesture_eye.detector import (
    INDEX_TIP,
    LEFT_EYE_CONTOUR,
    RIGHT_EYE_CONTOUR,
    THUMB_TIP,
    WRIST,
    face_frame_from_mesh,
    hand_frame_from_landmarks,
)
from gesture_eye.ear import compute_ear
from gesture_eye.frames import HandFrame
from gesture_eye.synthetic import LEFT_EYE_CENTER, RIGHT_EYE_CENTER, eye_contour


def make_mesh(left_ear=0.3, right_ear=0.3):
    """A 468-point mesh with synthetic eyes placed at the contour indices."""
    mesh = np.random.RandomState(0).rand(468, 3)
    mesh[LEFT_EYE_CONTOUR, :2] = eye_contour(left_ear, LEFT_EYE_CENTER)
    mesh[RIGHT_EYE_CONTOUR, :2] = eye_contour(right_ear, RIGHT_EYE_CENTER)
    return mesh


class TestFaceMesh:
    def test_no_face(self):
        frame = face_frame_from_mesh(None, 1.0)
        assert not frame.has_face
        assert frame.timestamp == 1.0

    def test_contours_extracted(self):
        frame = face_frame_from_mesh(make_mesh(left_ear=0.1, right_ear=0.3), 2.0)
        assert frame.has_both_eyes
        assert frame.left_eye.shape == (6, 2)
        assert compute_ear(frame.left_eye) == pytest.approx(0.1)
        assert compute_ear(frame.right_eye) == pytest.approx(0.3)

    def test_contour_indices_distinct(self):
        assert len(set(LEFT_EYE_CONTOUR) | set(RIGHT_EYE_CONTOUR)) == 12


class TestHandLandmarks:
    def test_no_hand(self):
        frame = hand_frame_from_landmarks(None, 0.0, 1.0)
        assert not frame.has_hand

    def test_keypoints(self):
        lm = np.zeros((21, 3))
        lm[WRIST] = [0.5, 0.8, 0.0]
        lm[THUMB_TIP] = [0.4, 0.6, 0.0]
        lm[INDEX_TIP] = [0.45, 0.55, 0.0]

        frame = hand_frame_from_landmarks(lm, 0.92, 3.0)
        assert frame.wrist == (0.5, 0.8)
        assert frame.thumb_tip.point == (0.4, 0.6)
        assert frame.index_tip.confidence == pytest.approx(0.92)

    def test_dict_roundtrip(self):
        lm = np.random.RandomState(1).rand(21, 3)
        frame = hand_frame_from_landmarks(lm, 0.8, 3.0)
        assert HandFrame.from_dict(frame.to_dict()) == frame
