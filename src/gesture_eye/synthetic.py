"""Synthetic landmark frames for benchmarks, demos and golden-sequence tests."""

from __future__ import annotations

from typing import Optional

import numpy as np

from gesture_eye.frames import FaceFrame, HandFrame, Keypoint, Point2D

LEFT_EYE_CENTER = (0.62, 0.42)
RIGHT_EYE_CENTER = (0.38, 0.42)
EYE_WIDTH = 0.10


def eye_contour(
    ear: float,
    center: tuple[float, float] = (0.5, 0.5),
    width: float = EYE_WIDTH,
) -> np.ndarray:
    """Six-point contour whose eye aspect ratio is exactly `ear`.

    Points start at the inner corner and run counter-clockwise, with both lid
    pairs separated by `ear * width`.
    """
    cx, cy = center
    half_w = width / 2.0
    half_h = ear * width / 2.0
    x0 = cx - half_w
    return np.array([
        [x0, cy],
        [x0 + width / 3.0, cy - half_h],
        [x0 + 2.0 * width / 3.0, cy - half_h],
        [x0 + width, cy],
        [x0 + 2.0 * width / 3.0, cy + half_h],
        [x0 + width / 3.0, cy + half_h],
    ], dtype=np.float64)


def face_frame(
    timestamp: float,
    left_ear: Optional[float] = 0.30,
    right_ear: Optional[float] = 0.30,
) -> FaceFrame:
    """A face frame with the given per-eye EAR; None drops that eye."""
    return FaceFrame(
        timestamp=timestamp,
        left_eye=None if left_ear is None else eye_contour(left_ear, LEFT_EYE_CENTER),
        right_eye=None if right_ear is None else eye_contour(right_ear, RIGHT_EYE_CENTER),
    )


def no_face(timestamp: float) -> FaceFrame:
    return FaceFrame(timestamp=timestamp)


def hand_frame(
    timestamp: float,
    pinch_distance: float = 0.15,
    wrist: Optional[tuple[float, float]] = (0.5, 0.7),
    confidence: float = 0.9,
) -> HandFrame:
    """A hand with thumb and index tips `pinch_distance` apart, above the wrist."""
    wx, wy = wrist if wrist is not None else (0.5, 0.7)
    thumb = Point2D(wx, wy - 0.15)
    index = Point2D(wx + pinch_distance, wy - 0.15)
    return HandFrame(
        timestamp=timestamp,
        thumb_tip=Keypoint(thumb, confidence),
        index_tip=Keypoint(index, confidence),
        wrist=None if wrist is None else Point2D(*wrist),
    )
