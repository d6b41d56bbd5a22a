"""Perception adapter: MediaPipe face mesh and hand landmarks to gesture frames."""

from __future__ import annotations

from typing import Optional

import numpy as np

from gesture_eye.frames import FaceFrame, HandFrame, Keypoint, Point2D

try:
    import mediapipe as mp
except ImportError:
    mp = None


# Face mesh indices for six-point eye contours, inner corner first, upper lid
# inner-to-outer, outer corner, lower lid outer-to-inner. "Left" and "right"
# are the subject's own eyes.
RIGHT_EYE_CONTOUR = [133, 158, 160, 33, 144, 153]
LEFT_EYE_CONTOUR = [362, 385, 387, 263, 373, 380]

# Hand landmark indices
WRIST = 0
THUMB_TIP = 4
INDEX_TIP = 8


def face_frame_from_mesh(landmarks: Optional[np.ndarray], timestamp: float) -> FaceFrame:
    """Build a FaceFrame from face mesh landmarks.

    Args:
        landmarks: Array of shape (468, 2+) with normalized coordinates, or
            None when no face was found.
        timestamp: Capture time of the frame in seconds.
    """
    if landmarks is None:
        return FaceFrame(timestamp=timestamp)

    points = np.asarray(landmarks, dtype=np.float64)[:, :2]
    return FaceFrame(
        timestamp=timestamp,
        left_eye=points[LEFT_EYE_CONTOUR],
        right_eye=points[RIGHT_EYE_CONTOUR],
    )


def hand_frame_from_landmarks(
    landmarks: Optional[np.ndarray],
    score: float,
    timestamp: float,
) -> HandFrame:
    """Build a HandFrame from the 21 hand landmarks.

    MediaPipe reports one confidence for the whole hand; it is used for
    both fingertips.
    """
    if landmarks is None:
        return HandFrame(timestamp=timestamp)

    points = np.asarray(landmarks, dtype=np.float64)

    def point(idx: int) -> Point2D:
        return Point2D(float(points[idx, 0]), float(points[idx, 1]))

    return HandFrame(
        timestamp=timestamp,
        thumb_tip=Keypoint(point(THUMB_TIP), float(score)),
        index_tip=Keypoint(point(INDEX_TIP), float(score)),
        wrist=point(WRIST),
    )


class LandmarkDetector:
    """Runs MediaPipe FaceMesh and Hands on RGB frames.

    Tracks a single face and a single hand; the gesture core never looks at
    more than one of each.
    """

    def __init__(
        self,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
    ):
        if mp is None:
            raise ImportError(
                "mediapipe is required. Install with: pip install gesture-eye[camera]"
            )

        self._face_mesh = mp.solutions.face_mesh.FaceMesh(
            static_image_mode=False,
            max_num_faces=1,
            refine_landmarks=False,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )
        self._hands = mp.solutions.hands.Hands(
            static_image_mode=False,
            max_num_hands=1,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )

    def detect(self, frame_rgb: np.ndarray, timestamp: float) -> tuple[FaceFrame, HandFrame]:
        """Detect eyes and hand keypoints in one RGB frame (H, W, 3), uint8."""
        face_results = self._face_mesh.process(frame_rgb)
        face_landmarks = None
        if face_results.multi_face_landmarks:
            face_landmarks = np.array(
                [[lm.x, lm.y] for lm in face_results.multi_face_landmarks[0].landmark],
                dtype=np.float64,
            )

        hand_results = self._hands.process(frame_rgb)
        hand_landmarks = None
        score = 0.0
        if hand_results.multi_hand_landmarks:
            hand_landmarks = np.array(
                [[lm.x, lm.y] for lm in hand_results.multi_hand_landmarks[0].landmark],
                dtype=np.float64,
            )
            if hand_results.multi_handedness:
                score = hand_results.multi_handedness[0].classification[0].score

        return (
            face_frame_from_mesh(face_landmarks, timestamp),
            hand_frame_from_landmarks(hand_landmarks, score, timestamp),
        )

    def close(self):
        """Release MediaPipe resources."""
        self._face_mesh.close()
        self._hands.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
