"""
Telemetry and metrics collection
"""
import threading
import time
from collections import Counter, deque
from typing import Dict, Any, Optional
from dataclasses import dataclass, field

from .constants import DEFAULT_TELEMETRY_CAPACITY


@dataclass
class Metric:
    """Single metric value"""
    name: str
    value: float
    timestamp: float = field(default_factory=time.time)
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass
class Event:
    """Event record"""
    name: str
    timestamp: float = field(default_factory=time.time)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class MetricSummary:
    """Running aggregate of every value recorded under one metric name"""
    count: int = 0
    total: float = 0.0
    minimum: float = float("inf")
    maximum: float = float("-inf")

    @property
    def mean(self) -> float:
        return self.total / self.count if self.count else 0.0

    def add(self, value: float) -> None:
        self.count += 1
        self.total += value
        self.minimum = min(self.minimum, value)
        self.maximum = max(self.maximum, value)


class Telemetry:
    """
    Telemetry collector.

    Keeps the most recent ``capacity`` metrics and events, plus totals per
    name that survive eviction. Handshakes may run on worker threads, so
    recording is serialized.
    """

    def __init__(self, capacity: int = DEFAULT_TELEMETRY_CAPACITY):
        self._metrics: deque[Metric] = deque(maxlen=capacity)
        self._events: deque[Event] = deque(maxlen=capacity)
        self._summaries: Dict[str, MetricSummary] = {}
        self._event_counts: Counter = Counter()
        self._lock = threading.Lock()

    def record_metric(self, name: str, value: float, tags: Optional[Dict[str, str]] = None) -> None:
        """Record a metric"""
        with self._lock:
            self._metrics.append(Metric(name=name, value=value, tags=tags or {}))
            self._summaries.setdefault(name, MetricSummary()).add(value)

    def record_event(self, name: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Record an event"""
        with self._lock:
            self._events.append(Event(name=name, metadata=metadata or {}))
            self._event_counts[name] += 1

    def get_metrics(self) -> list[Metric]:
        """Get the most recent metrics"""
        with self._lock:
            return list(self._metrics)

    def get_events(self) -> list[Event]:
        """Get the most recent events"""
        with self._lock:
            return list(self._events)

    def get_summary(self, name: str) -> Optional[MetricSummary]:
        """Get the aggregate for one metric name"""
        with self._lock:
            summary = self._summaries.get(name)
            return MetricSummary(**vars(summary)) if summary else None

    def event_counts(self) -> Dict[str, int]:
        """Get how often each event was recorded"""
        with self._lock:
            return dict(self._event_counts)

    def clear(self) -> None:
        """Clear all metrics and events"""
        with self._lock:
            self._metrics.clear()
            self._events.clear()
            self._summaries.clear()
            self._event_counts.clear()


# Global telemetry instance
_telemetry = Telemetry()


def get_telemetry() -> Telemetry:
    """Get global telemetry instance"""
    return _telemetry
