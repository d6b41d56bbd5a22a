"""Session recording and replay: capture landmark frames to disk.

Recorded sessions give:
- Reproducible golden sequences without a camera
- Regression checks when thresholds or profiles change
- Demo recordings that replay deterministically
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

from gesture_eye.dispatcher import GestureDispatcher
from gesture_eye.events import GestureEvent
from gesture_eye.frames import FaceFrame, HandFrame
from gesture_eye.profiles import SensitivityProfile

FORMAT_VERSION = 1


@dataclass
class RecordedFrame:
    """One camera tick and the gestures it produced when recorded."""
    face: FaceFrame
    hand: Optional[HandFrame] = None
    gestures: list[str] = field(default_factory=list)

    @property
    def timestamp(self) -> float:
        return self.face.timestamp

    def to_dict(self) -> dict:
        return {
            "face": self.face.to_dict(),
            "hand": self.hand.to_dict() if self.hand else None,
            "gestures": self.gestures,
        }

    @classmethod
    def from_dict(cls, data: dict) -> RecordedFrame:
        hand = data.get("hand")
        return cls(
            face=FaceFrame.from_dict(data["face"]),
            hand=HandFrame.from_dict(hand) if hand else None,
            gestures=list(data.get("gestures", [])),
        )


class SessionRecorder:
    """Records frame pairs and gesture events to a JSON file.

    Usage:
        recorder = SessionRecorder()
        recorder.start()
        # In your frame loop:
        event = dispatcher.push_frame(face, hand)
        recorder.add_frame(face, hand, event)
        # When done:
        recorder.save("session.json")
    """

    def __init__(self):
        self._frames: list[RecordedFrame] = []
        self._recording = False
        self._started_at: Optional[float] = None

    def start(self):
        self._frames = []
        self._recording = True
        self._started_at = time.time()

    def stop(self) -> int:
        """Stop recording. Returns number of frames captured."""
        self._recording = False
        return len(self._frames)

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        if len(self._frames) < 2:
            return 0.0
        return self._frames[-1].timestamp - self._frames[0].timestamp

    def add_frame(
        self,
        face: FaceFrame,
        hand: Optional[HandFrame] = None,
        event: Optional[GestureEvent] = None,
    ):
        if not self._recording:
            return
        self._frames.append(RecordedFrame(
            face=face,
            hand=hand,
            gestures=[event.kind.value] if event else [],
        ))

    def save(self, path: str | Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "version": FORMAT_VERSION,
            "recorded_at": self._started_at,
            "frame_count": len(self._frames),
            "duration": self.duration,
            "frames": [f.to_dict() for f in self._frames],
        }

        with open(path, "w") as f:
            json.dump(data, f)


class SessionPlayer:
    """Replays a recorded session.

    Usage:
        player = SessionPlayer.load("session.json")
        events = player.replay(GestureDispatcher(), NORMAL)
    """

    def __init__(self, frames: list[RecordedFrame]):
        self._frames = frames

    @classmethod
    def load(cls, path: str | Path) -> SessionPlayer:
        with open(path) as f:
            data = json.load(f)

        version = data.get("version", FORMAT_VERSION)
        if version != FORMAT_VERSION:
            raise ValueError(f"Unsupported recording version {version}")

        return cls([RecordedFrame.from_dict(f) for f in data["frames"]])

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        if len(self._frames) < 2:
            return 0.0
        return self._frames[-1].timestamp - self._frames[0].timestamp

    @property
    def recorded_gestures(self) -> list[str]:
        return [g for f in self._frames for g in f.gestures]

    def play(self) -> Iterator[RecordedFrame]:
        """Iterate through all frames instantly (no timing)."""
        yield from self._frames

    def play_realtime(self, speed: float = 1.0) -> Iterator[RecordedFrame]:
        """Replay at original timing (or scaled by speed factor)."""
        if not self._frames:
            return

        start = time.monotonic()
        first = self._frames[0].timestamp

        for frame in self._frames:
            target_time = (frame.timestamp - first) / speed
            elapsed = time.monotonic() - start
            if target_time > elapsed:
                time.sleep(target_time - elapsed)
            yield frame

    def replay(
        self,
        dispatcher: GestureDispatcher,
        profile: Optional[SensitivityProfile] = None,
    ) -> list[GestureEvent]:
        """Run every frame through a freshly activated dispatcher.

        Frame timestamps drive all gesture timing, so the result does not
        depend on playback speed.
        """
        dispatcher.activate(profile)
        events = []
        for frame in self._frames:
            event = dispatcher.push_frame(frame.face, frame.hand)
            if event is not None:
                events.append(event)
        return events

    def get_frame(self, index: int) -> Optional[RecordedFrame]:
        if 0 <= index < len(self._frames):
            return self._frames[index]
        return None
