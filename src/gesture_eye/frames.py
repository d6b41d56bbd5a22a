"""Per-tick landmark frames pushed by the perception collaborator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Optional, Sequence, Union

import numpy as np


class Point2D(NamedTuple):
    """Normalized image coordinate in [0, 1] x [0, 1]."""
    x: float
    y: float


class Keypoint(NamedTuple):
    """A hand keypoint with the detector's confidence for it."""
    point: Point2D
    confidence: float


# Ordered >= 6 points, counter-clockwise from the inner corner.
EyeContour = Union[Sequence[Point2D], np.ndarray]


def _contour_to_list(contour: Optional[EyeContour]) -> Optional[list[list[float]]]:
    if contour is None:
        return None
    return [[float(p[0]), float(p[1])] for p in contour]


def _contour_from_list(data: Optional[list]) -> Optional[list[Point2D]]:
    if data is None:
        return None
    return [Point2D(float(x), float(y)) for x, y in data]


@dataclass(frozen=True)
class FaceFrame:
    """Eye contours seen in one camera tick.

    Both contours absent means no face was found this frame.
    """
    timestamp: float
    left_eye: Optional[EyeContour] = None
    right_eye: Optional[EyeContour] = None

    @property
    def has_face(self) -> bool:
        return self.left_eye is not None or self.right_eye is not None

    @property
    def has_both_eyes(self) -> bool:
        return self.left_eye is not None and self.right_eye is not None

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "left_eye": _contour_to_list(self.left_eye),
            "right_eye": _contour_to_list(self.right_eye),
        }

    @classmethod
    def from_dict(cls, data: dict) -> FaceFrame:
        return cls(
            timestamp=float(data["timestamp"]),
            left_eye=_contour_from_list(data.get("left_eye")),
            right_eye=_contour_from_list(data.get("right_eye")),
        )


def _keypoint_to_dict(kp: Optional[Keypoint]) -> Optional[dict]:
    if kp is None:
        return None
    return {"x": kp.point.x, "y": kp.point.y, "confidence": kp.confidence}


def _keypoint_from_dict(data: Optional[dict]) -> Optional[Keypoint]:
    if data is None:
        return None
    return Keypoint(
        Point2D(float(data["x"]), float(data["y"])),
        float(data.get("confidence", 1.0)),
    )


@dataclass(frozen=True)
class HandFrame:
    """Thumb, index and wrist keypoints of the single tracked hand."""
    timestamp: float
    thumb_tip: Optional[Keypoint] = None
    index_tip: Optional[Keypoint] = None
    wrist: Optional[Point2D] = None

    @property
    def has_hand(self) -> bool:
        return (
            self.thumb_tip is not None
            or self.index_tip is not None
            or self.wrist is not None
        )

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "thumb_tip": _keypoint_to_dict(self.thumb_tip),
            "index_tip": _keypoint_to_dict(self.index_tip),
            "wrist": None if self.wrist is None else [self.wrist.x, self.wrist.y],
        }

    @classmethod
    def from_dict(cls, data: dict) -> HandFrame:
        wrist = data.get("wrist")
        return cls(
            timestamp=float(data["timestamp"]),
            thumb_tip=_keypoint_from_dict(data.get("thumb_tip")),
            index_tip=_keypoint_from_dict(data.get("index_tip")),
            wrist=None if wrist is None else Point2D(float(wrist[0]), float(wrist[1])),
        )


def distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Euclidean distance between two 2D points."""
    return float(np.hypot(a[0] - b[0], a[1] - b[1]))
