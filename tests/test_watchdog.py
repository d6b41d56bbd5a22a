"""Tests for the no-face watchdog."""

from gesture_eye.cooldown import CooldownClock
from gesture_eye.watchdog import FaceWatchdog


class TestFaceWatchdog:
    def test_never_seen(self):
        wd = FaceWatchdog(timeout=30.0, clock=lambda: 1000.0)
        assert not wd.expired()
        assert wd.seconds_since_face() == 0.0

    def test_expires_after_timeout(self):
        now = [0.0]
        wd = FaceWatchdog(timeout=30.0, clock=lambda: now[0])
        wd.mark_seen()
        now[0] = 30.0
        assert not wd.expired()
        now[0] = 30.1
        assert wd.expired()
        assert wd.seconds_since_face() == 30.1

    def test_explicit_times(self):
        wd = FaceWatchdog(timeout=5.0)
        wd.mark_seen(10.0)
        assert wd.expired(16.0)
        assert not wd.expired(14.0)

    def test_reset(self):
        wd = FaceWatchdog(timeout=1.0)
        wd.mark_seen(0.0)
        wd.reset()
        assert not wd.expired(100.0)


class TestCooldownClock:
    def test_unset_is_ready(self):
        clock = CooldownClock()
        assert clock.ready(0.0, 1.5)
        assert clock.remaining(0.0, 1.5) == 0.0

    def test_boundary_inclusive(self):
        clock = CooldownClock()
        clock.mark(1.0)
        assert not clock.ready(2.0, 1.5)
        assert clock.ready(2.5, 1.5)
        assert clock.remaining(2.0, 1.5) == 0.5
