"""Prometheus-compatible metrics for gesture-eye.

Rendered in Prometheus text exposition format without a client library.

Tracked metrics:
- gesture_eye_gestures_total (counter, by gesture kind)
- gesture_eye_frames_total (counter)
- gesture_eye_frames_dropped_total (counter)
- gesture_eye_frames_over_budget_total (counter)
- gesture_eye_frame_latency_seconds (histogram)
- gesture_eye_calibrated (gauge)
- gesture_eye_face_detected (gauge)
- gesture_eye_active_connections (gauge)
"""

from __future__ import annotations

import threading
import time
from collections import Counter

from gesture_eye.dispatcher import DispatcherSnapshot
from gesture_eye.events import GestureEvent


class _Histogram:
    def __init__(self, buckets: list[float]):
        self.buckets = sorted(buckets)
        self.bucket_counts = [0] * len(self.buckets)
        self.count = 0
        self.sum = 0.0
        self._lock = threading.Lock()

    def observe(self, value: float):
        with self._lock:
            self.count += 1
            self.sum += value
            for i, b in enumerate(self.buckets):
                if value <= b:
                    self.bucket_counts[i] += 1
                    break

    def render(self, name: str, help_text: str) -> list[str]:
        lines = [
            f"# HELP {name} {help_text}",
            f"# TYPE {name} histogram",
        ]
        with self._lock:
            cumulative = 0
            for b, count in zip(self.buckets, self.bucket_counts):
                cumulative += count
                lines.append(f'{name}_bucket{{le="{b}"}} {cumulative}')
            lines.append(f'{name}_bucket{{le="+Inf"}} {self.count}')
            lines.append(f"{name}_sum {self.sum:.6f}")
            lines.append(f"{name}_count {self.count}")
        return lines


def _gauge(name: str, help_text: str, value: float | int) -> list[str]:
    return [
        f"# HELP {name} {help_text}",
        f"# TYPE {name} gauge",
        f"{name} {value}",
    ]


class MetricsCollector:
    """Collects counters and gauges for the /metrics endpoint."""

    def __init__(self):
        self._gesture_counts: Counter = Counter()
        self._frames_total = 0
        self._frames_dropped = 0
        self._frames_over_budget = 0
        self._active_connections = 0
        self._calibrated = False
        self._face_detected = False
        self._lock = threading.Lock()

        # Budget at 15 Hz is ~66ms per frame
        self._latency = _Histogram(
            [0.001, 0.002, 0.005, 0.010, 0.020, 0.033, 0.066, 0.100]
        )
        self._start_time = time.time()

    def record_gesture(self, event: GestureEvent):
        with self._lock:
            self._gesture_counts[event.kind.value] += 1

    def record_frame(self, latency_seconds: float):
        with self._lock:
            self._frames_total += 1
        self._latency.observe(latency_seconds)

    def record_dropped(self, count: int = 1):
        with self._lock:
            self._frames_dropped += count

    def set_over_budget(self, count: int):
        """Frames the dispatcher took longer than the frame budget to process."""
        with self._lock:
            self._frames_over_budget = count

    def update_state(self, snapshot: DispatcherSnapshot):
        with self._lock:
            self._calibrated = snapshot.is_calibrated
            self._face_detected = snapshot.face_detected

    def set_connections(self, count: int):
        self._active_connections = count

    def render(self) -> str:
        """Render all metrics in Prometheus text exposition format."""
        lines: list[str] = []

        lines += _gauge(
            "gesture_eye_uptime_seconds", "Time since start",
            f"{time.time() - self._start_time:.1f}",
        )
        lines.append("")

        lines.append("# HELP gesture_eye_gestures_total Gestures emitted by kind")
        lines.append("# TYPE gesture_eye_gestures_total counter")
        with self._lock:
            for name, count in sorted(self._gesture_counts.items()):
                lines.append(f'gesture_eye_gestures_total{{gesture="{name}"}} {count}')
            frames_total = self._frames_total
            frames_dropped = self._frames_dropped
            over_budget = self._frames_over_budget
            calibrated = int(self._calibrated)
            face_detected = int(self._face_detected)
        lines.append("")

        lines.append("# HELP gesture_eye_frames_total Frames processed")
        lines.append("# TYPE gesture_eye_frames_total counter")
        lines.append(f"gesture_eye_frames_total {frames_total}")
        lines.append("")

        lines.append("# HELP gesture_eye_frames_dropped_total Frames dropped to bound latency")
        lines.append("# TYPE gesture_eye_frames_dropped_total counter")
        lines.append(f"gesture_eye_frames_dropped_total {frames_dropped}")
        lines.append("")

        lines.append("# HELP gesture_eye_frames_over_budget_total Frames slower than the per-frame budget")
        lines.append("# TYPE gesture_eye_frames_over_budget_total counter")
        lines.append(f"gesture_eye_frames_over_budget_total {over_budget}")
        lines.append("")

        lines += self._latency.render(
            "gesture_eye_frame_latency_seconds",
            "Frame processing latency in seconds",
        )
        lines.append("")

        lines += _gauge("gesture_eye_calibrated", "1 once the EAR baseline is calibrated", calibrated)
        lines.append("")
        lines += _gauge("gesture_eye_face_detected", "1 while a face is tracked", face_detected)
        lines.append("")
        lines += _gauge(
            "gesture_eye_active_connections", "Current WebSocket connections",
            self._active_connections,
        )
        lines.append("")

        return "\n".join(lines) + "\n"

    @property
    def gesture_counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._gesture_counts)

    @property
    def frames_total(self) -> int:
        with self._lock:
            return self._frames_total
