"""Tests for the gesture-eye CLI commands that need no camera."""

from typer.testing import CliRunner

from gesture_eye.cli import app
from gesture_eye.dispatcher import GestureDispatcher
from gesture_eye.recorder import SessionRecorder
from gesture_eye.synthetic import face_frame

runner = CliRunner()


def make_recording(path):
    dispatcher = GestureDispatcher(calibration_frames=30)
    dispatcher.activate()
    rec = SessionRecorder()
    rec.start()
    frames = [face_frame(i / 15) for i in range(30)]
    frames += [face_frame(2.0), face_frame(2.1, 0.30, 0.05), face_frame(2.4)]
    for face in frames:
        rec.add_frame(face, None, dispatcher.push_frame(face))
    rec.save(path)


class TestCli:
    def test_profiles(self):
        result = runner.invoke(app, ["profiles"])
        assert result.exit_code == 0
        assert "sensitive" in result.output
        assert "relaxed" in result.output

    def test_replay(self, tmp_path):
        path = tmp_path / "session.json"
        make_recording(path)
        result = runner.invoke(app, ["replay", str(path)])
        assert result.exit_code == 0
        assert "right_wink" in result.output
        assert "1 gestures (1 when recorded)" in result.output

    def test_replay_missing_file(self, tmp_path):
        result = runner.invoke(app, ["replay", str(tmp_path / "nope.json")])
        assert result.exit_code == 1

    def test_replay_unknown_profile(self, tmp_path):
        path = tmp_path / "session.json"
        make_recording(path)
        result = runner.invoke(app, ["replay", str(path), "--profile", "turbo"])
        assert result.exit_code == 1

    def test_benchmark(self):
        result = runner.invoke(app, ["benchmark", "--iterations", "200"])
        assert result.exit_code == 0
        assert "Gestures fired" in result.output
        assert "eye_classification" in result.output
        assert "Over budget" in result.output

    def test_record_bad_config(self, tmp_path):
        result = runner.invoke(app, ["record", "--config", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 1
        assert "Could not load config" in result.output

    def test_record_unknown_profile_from_config(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("profile: turbo\n")
        result = runner.invoke(app, ["record", "--config", str(path)])
        assert result.exit_code == 1
        assert "Unknown profile 'turbo'" in result.output
