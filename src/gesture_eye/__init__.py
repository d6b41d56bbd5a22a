"""gesture-eye - Hands-free gesture events from eye and hand landmarks."""

__version__ = "0.1.0"

from gesture_eye.frames import Point2D, Keypoint, FaceFrame, HandFrame
from gesture_eye.ear import compute_ear
from gesture_eye.calibration import Calibrator
from gesture_eye.profiles import SensitivityProfile, ProfileRegistry, SENSITIVE, NORMAL, RELAXED, get_profile
from gesture_eye.events import GestureKind, GestureEvent
from gesture_eye.eye import EyeGestureClassifier
from gesture_eye.hand import HandGestureClassifier
from gesture_eye.dispatcher import GestureDispatcher, DispatcherSnapshot
from gesture_eye.sinks import GestureSink, QueueSink, CallbackSink
from gesture_eye.runner import FrameRunner
from gesture_eye.recorder import SessionRecorder, SessionPlayer
from gesture_eye.actions import ActionMapper, Action, ActionType
from gesture_eye.metrics import MetricsCollector
