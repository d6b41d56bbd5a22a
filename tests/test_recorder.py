"""Tests for session recording and replay."""

import json

import pytest

from gesture_eye.dispatcher import GestureDispatcher
from gesture_eye.events import GestureKind
from gesture_eye.profiles import RELAXED
from gesture_eye.recorder import RecordedFrame, SessionPlayer, SessionRecorder
from gesture_eye.synthetic import face_frame, hand_frame

DT = 1.0 / 15


def make_session(dispatcher=None):
    """Calibration, a right wink and a pinch, recorded through a live dispatcher."""
    dispatcher = dispatcher or GestureDispatcher(calibration_frames=5)
    dispatcher.activate()
    rec = SessionRecorder()
    rec.start()

    frames = [(face_frame(i * DT), None) for i in range(5)]
    frames += [
        (face_frame(1.0), hand_frame(1.0)),
        (face_frame(1.1, 0.30, 0.05), hand_frame(1.1)),
        (face_frame(1.4), hand_frame(1.4)),
        (face_frame(3.5), hand_frame(3.5, 0.02)),
    ]
    for face, hand in frames:
        rec.add_frame(face, hand, dispatcher.push_frame(face, hand))
    rec.stop()
    return rec


class TestRecorder:
    def test_record_and_count(self):
        rec = make_session()
        assert rec.frame_count == 9
        assert not rec.is_recording
        assert rec.duration == pytest.approx(3.5)

    def test_not_recording_ignores_frames(self):
        rec = SessionRecorder()
        rec.add_frame(face_frame(0.0))
        assert rec.frame_count == 0

    def test_save_format(self, tmp_path):
        path = tmp_path / "nested" / "session.json"
        make_session().save(path)

        data = json.loads(path.read_text())
        assert data["version"] == 1
        assert data["frame_count"] == 9
        assert data["frames"][0]["hand"] is None


class TestPlayer:
    def test_load_and_recorded_gestures(self, tmp_path):
        path = tmp_path / "session.json"
        make_session().save(path)

        player = SessionPlayer.load(path)
        assert player.frame_count == 9
        assert player.recorded_gestures == ["right_wink", "hand_pinch"]

    def test_replay_matches_recording(self, tmp_path):
        path = tmp_path / "session.json"
        make_session().save(path)

        player = SessionPlayer.load(path)
        events = player.replay(GestureDispatcher(calibration_frames=5))
        assert [e.kind for e in events] == [GestureKind.RIGHT_WINK, GestureKind.HAND_PINCH]
        assert [e.sequence for e in events] == [1, 2]

    def test_replay_with_other_profile(self, tmp_path):
        path = tmp_path / "session.json"
        make_session().save(path)

        # 0.3s wink is inside the relaxed window; the pinch lands after its 2s cooldown
        events = SessionPlayer.load(path).replay(GestureDispatcher(calibration_frames=5), RELAXED)
        assert [e.profile for e in events] == ["relaxed", "relaxed"]

    def test_unsupported_version(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text(json.dumps({"version": 99, "frames": []}))
        with pytest.raises(ValueError):
            SessionPlayer.load(path)

    def test_get_frame(self):
        player = SessionPlayer([RecordedFrame(face_frame(0.0)), RecordedFrame(face_frame(0.5))])
        assert player.get_frame(1).timestamp == 0.5
        assert player.get_frame(5) is None
        assert player.duration == 0.5
        assert len(list(player.play())) == 2

    def test_play_realtime(self):
        player = SessionPlayer([RecordedFrame(face_frame(0.0)), RecordedFrame(face_frame(0.02))])
        assert [f.timestamp for f in player.play_realtime(speed=10.0)] == [0.0, 0.02]
