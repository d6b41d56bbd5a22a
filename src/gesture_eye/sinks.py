"""Event sinks: where the dispatcher delivers gesture events.

Sinks are called from the frame-processing context while the dispatcher
holds its lock, so `push` must return quickly. Hand events to a queue or
another thread for anything slow (actions, network I/O).
"""

from __future__ import annotations

import logging
import queue
from typing import Callable, Protocol, runtime_checkable

from gesture_eye.events import GestureEvent

logger = logging.getLogger("gesture_eye.sinks")


@runtime_checkable
class GestureSink(Protocol):
    def push(self, event: GestureEvent) -> None: ...


class QueueSink:
    """Bounded channel of events. Drops the oldest event when full."""

    def __init__(self, maxsize: int = 64):
        self.queue: queue.Queue[GestureEvent] = queue.Queue(maxsize=maxsize)
        self.dropped = 0

    def push(self, event: GestureEvent) -> None:
        while True:
            try:
                self.queue.put_nowait(event)
                return
            except queue.Full:
                try:
                    self.queue.get_nowait()
                    self.dropped += 1
                except queue.Empty:
                    pass

    def get(self, timeout: float | None = None) -> GestureEvent:
        return self.queue.get(timeout=timeout)

    def drain(self) -> list[GestureEvent]:
        """Remove and return every queued event, oldest first."""
        events = []
        while True:
            try:
                events.append(self.queue.get_nowait())
            except queue.Empty:
                return events


class CallbackSink:
    """Adapts a plain function to the sink interface."""

    def __init__(self, callback: Callable[[GestureEvent], None]):
        self._callback = callback

    def push(self, event: GestureEvent) -> None:
        self._callback(event)


class FanoutSink:
    """Delivers each event to several sinks; one failing sink does not stop the rest."""

    def __init__(self, *sinks: GestureSink):
        self._sinks: list[GestureSink] = list(sinks)

    def add(self, sink: GestureSink):
        self._sinks.append(sink)

    def remove(self, sink: GestureSink):
        if sink in self._sinks:
            self._sinks.remove(sink)

    def push(self, event: GestureEvent) -> None:
        for sink in list(self._sinks):
            try:
                sink.push(event)
            except Exception as e:
                logger.error("Sink %r failed on %s: %s", sink, event.kind.value, e)

    def __len__(self) -> int:
        return len(self._sinks)
