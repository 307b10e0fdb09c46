"""
Telemetry and metrics collection for fetch batches
"""
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
import time


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


class Telemetry:
    """Collects per-fetch events and transfer metrics"""

    def __init__(self):
        self._metrics: list[Metric] = []
        self._events: list[Event] = []

    def record_metric(self, name: str, value: float, tags: Optional[Dict[str, str]] = None) -> None:
        self._metrics.append(Metric(name=name, value=value, tags=tags or {}))

    def record_event(self, name: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._events.append(Event(name=name, metadata=metadata or {}))

    def get_metrics(self, name: Optional[str] = None) -> list[Metric]:
        """Get recorded metrics, optionally filtered by name"""
        if name is None:
            return self._metrics.copy()
        return [m for m in self._metrics if m.name == name]

    def get_events(self, name: Optional[str] = None) -> list[Event]:
        """Get recorded events, optionally filtered by name"""
        if name is None:
            return self._events.copy()
        return [e for e in self._events if e.name == name]

    def total(self, name: str) -> float:
        """Sum of all values recorded under a metric name"""
        return sum(m.value for m in self._metrics if m.name == name)

    def clear(self) -> None:
        self._metrics.clear()
        self._events.clear()


# Global telemetry instance
_telemetry = Telemetry()


def get_telemetry() -> Telemetry:
    """Get global telemetry instance"""
    return _telemetry
