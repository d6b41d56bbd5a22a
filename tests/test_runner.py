"""Tests for the frame runner thread."""

import threading
import time

from gesture_eye.dispatcher import GestureDispatcher
from gesture_eye.runner import FrameRunner
from gesture_eye.synthetic import face_frame


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


class TestFrameRunner:
    def test_processes_submitted_frames(self):
        d = GestureDispatcher()
        d.activate()
        with FrameRunner(d) as runner:
            runner.submit(face_frame(0.0))
            assert wait_for(lambda: runner.processed == 1)
        assert d.frames_processed == 1
        assert not runner.is_running

    def test_newest_frame_replaces_pending(self):
        d = GestureDispatcher()
        d.activate()
        runner = FrameRunner(d)
        runner.submit(face_frame(0.0))
        runner.submit(face_frame(0.1))
        runner.submit(face_frame(0.2))
        assert runner.dropped == 2

        runner.start()
        assert wait_for(lambda: runner.processed == 1)
        runner.stop()
        assert d.frames_processed == 1
        assert d.snapshot().calibration_progress > 0

    def test_frames_from_previous_session_ignored(self):
        d = GestureDispatcher()
        d.activate()
        runner = FrameRunner(d)
        runner.submit(face_frame(0.0))
        d.deactivate()
        d.activate()

        runner.start()
        assert wait_for(lambda: runner.processed == 1)
        runner.stop()
        assert d.frames_processed == 0

    def test_watchdog_requests_deactivation(self):
        now = [0.0]
        d = GestureDispatcher(face_timeout=1.0, clock=lambda: now[0])
        d.activate()
        now[0] = 5.0

        lost = threading.Event()
        with FrameRunner(d, on_face_lost=lost.set, watchdog_interval=0.01):
            assert lost.wait(timeout=2.0)

    def test_default_face_lost_deactivates(self):
        now = [0.0]
        d = GestureDispatcher(face_timeout=1.0, clock=lambda: now[0])
        d.activate()
        now[0] = 5.0

        with FrameRunner(d, watchdog_interval=0.01):
            assert wait_for(lambda: not d.is_active)

    def test_processing_error_does_not_kill_thread(self):
        d = GestureDispatcher()
        d.activate()
        with FrameRunner(d) as runner:
            runner.submit(None)
            assert wait_for(lambda: runner.processed == 1)
            runner.submit(face_frame(0.0))
            assert wait_for(lambda: runner.processed == 2)
        assert d.snapshot().calibration_progress > 0
