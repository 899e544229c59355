"""In-process counters for the danmaku client.

The session and the event channel bump counters as they work; nothing is
pushed anywhere. ``export_prometheus`` renders the current values in the
Prometheus text exposition format for ad-hoc scraping or debugging.

Example:
    >>> metrics = get_metrics()
    >>> metrics.increment_counter("danmaku_messages_received_total")
    >>> metrics.get_counter("danmaku_messages_received_total")
    1.0
"""

from __future__ import annotations

import threading
import time
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import ClassVar

LabelKey = tuple[tuple[str, str], ...]


def _label_key(labels: dict[str, str] | None) -> LabelKey:
    return tuple(sorted((labels or {}).items()))


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _render_labels(key: LabelKey) -> str:
    if not key:
        return ""
    return "{" + ",".join(f'{name}="{_escape(value)}"' for name, value in key) + "}"


@dataclass
class Counter:
    """A monotonically increasing value per label set.

    Attributes:
        name: Metric name
        help_text: Description shown in the ``# HELP`` line
        values: Current value for each label combination seen so far
    """

    name: str
    help_text: str
    values: dict[LabelKey, float] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def increment(self, labels: dict[str, str] | None = None, value: float = 1.0) -> None:
        key = _label_key(labels)
        with self._lock:
            self.values[key] = self.values.get(key, 0.0) + value

    def get(self, labels: dict[str, str] | None = None) -> float:
        with self._lock:
            return self.values.get(_label_key(labels), 0.0)

    def render(self) -> Iterator[str]:
        yield f"# HELP {self.name} {self.help_text}"
        yield f"# TYPE {self.name} counter"
        with self._lock:
            samples = list(self.values.items())
        if not samples:
            yield f"{self.name} 0"
        for key, value in samples:
            yield f"{self.name}{_render_labels(key)} {value}"


class MetricsCollector:
    """Registry of the client's counters.

    Incrementing a name that was never registered is a no-op, so call
    sites never fail on a typo'd or removed metric.
    """

    DEFAULT_COUNTERS: ClassVar[dict[str, str]] = {
        "danmaku_messages_received_total": "WebSocket messages received",
        "danmaku_events_forwarded_total": "Decoded events handed to the consumer",
        "danmaku_events_dropped_total": "Events discarded by a bounded event channel",
        "danmaku_decode_errors_total": "Messages dropped because a frame failed to decode",
        "danmaku_heartbeats_sent_total": "Heartbeat frames enqueued",
        "danmaku_send_errors_total": "Socket writes that failed",
        "danmaku_session_transitions_total": "Session state transitions",
    }

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._started = time.monotonic()
        self._counters = {
            name: Counter(name=name, help_text=help_text)
            for name, help_text in self.DEFAULT_COUNTERS.items()
        }

    def register_counter(self, name: str, help_text: str) -> None:
        with self._lock:
            self._counters.setdefault(name, Counter(name=name, help_text=help_text))

    def _lookup(self, name: str) -> Counter | None:
        with self._lock:
            return self._counters.get(name)

    def increment_counter(
        self, name: str, labels: dict[str, str] | None = None, value: float = 1.0
    ) -> None:
        counter = self._lookup(name)
        if counter is not None:
            counter.increment(labels, value)

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> float:
        counter = self._lookup(name)
        return counter.get(labels) if counter is not None else 0.0

    def export_prometheus(self) -> str:
        """Render every counter plus the collector uptime gauge."""
        with self._lock:
            counters = list(self._counters.values())
        lines = [line for counter in counters for line in counter.render()]
        lines += [
            "# HELP danmaku_process_uptime_seconds Seconds since the collector was created",
            "# TYPE danmaku_process_uptime_seconds gauge",
            f"danmaku_process_uptime_seconds {time.monotonic() - self._started:.3f}",
        ]
        return "\n".join(lines) + "\n"

    def reset(self) -> None:
        """Zero every counter; registrations are kept."""
        with self._lock:
            counters = list(self._counters.values())
        for counter in counters:
            with counter._lock:
                counter.values.clear()


_collector: MetricsCollector | None = None
_collector_lock = threading.Lock()


def get_metrics() -> MetricsCollector:
    """Return the process-wide collector, creating it on first use."""
    global _collector
    with _collector_lock:
        if _collector is None:
            _collector = MetricsCollector()
        return _collector


def reset_metrics() -> None:
    """Zero the process-wide collector's counters (for tests)."""
    with _collector_lock:
        if _collector is not None:
            _collector.reset()
