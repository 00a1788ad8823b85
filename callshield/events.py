"""
callshield/events.py
=====================
Outbound events — CallShield

Events delivered to the host through an ``EventSink`` (any callable taking
one event). Every event is an immutable dataclass and is emitted only after
the state change it reports has been applied.

Events:
    - RiskLevelChanged        a raised or surfaced risk score
    - RecordingStatusChanged  capture started or stopped
    - CallStateChanged        telephony state transition observed
    - StatusMessage           user-visible status line
    - RiskAlert               threshold alert or end-of-call summary
"""

import logging
import threading
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable, Union

logger = logging.getLogger("callshield.events")


class AlertTier(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    SUSPICIOUS = "SUSPICIOUS"
    SUMMARY = "SUMMARY"


@dataclass(frozen=True)
class RiskLevelChanged:
    score: int
    analysis_text: str
    generation: int


@dataclass(frozen=True)
class RecordingStatusChanged:
    is_recording: bool
    path: str | None = None
    strategy_label: str | None = None


@dataclass(frozen=True)
class CallStateChanged:
    number: str
    state: str


@dataclass(frozen=True)
class StatusMessage:
    message: str


@dataclass(frozen=True)
class RiskAlert:
    tier: AlertTier
    message: str
    score: int


Event = Union[
    RiskLevelChanged, RecordingStatusChanged, CallStateChanged,
    StatusMessage, RiskAlert,
]
EventSink = Callable[[Event], None]


def event_to_dict(event: Event) -> dict[str, Any]:
    """JSON-ready form of an event, tagged with its type name."""
    payload = asdict(event)
    for key, value in payload.items():
        if isinstance(value, Enum):
            payload[key] = value.value
    payload["type"] = type(event).__name__
    return payload


class FanOutSink:
    """
    Deliver each event to several sinks in order.

    A failing sink is logged and skipped so one broken consumer cannot stop
    risk updates reaching the others.
    """

    def __init__(self, *sinks: EventSink) -> None:
        self._sinks = list(sinks)

    def add(self, sink: EventSink) -> None:
        self._sinks.append(sink)

    def __call__(self, event: Event) -> None:
        for sink in self._sinks:
            try:
                sink(event)
            except Exception as exc:
                logger.error(
                    "Event sink %r failed on %s: %s",
                    sink, type(event).__name__, exc,
                )


class EventLog:
    """Bounded in-memory record of recent events, newest last."""

    def __init__(self, capacity: int = 200) -> None:
        self._capacity = capacity
        self._events: list[Event] = []
        self._lock = threading.Lock()

    def __call__(self, event: Event) -> None:
        with self._lock:
            self._events.append(event)
            if len(self._events) > self._capacity:
                del self._events[: len(self._events) - self._capacity]

    def recent(self, limit: int | None = None) -> list[Event]:
        with self._lock:
            events = list(self._events)
        return events if limit is None else events[-limit:]

    def of_type(self, event_type: type) -> list[Event]:
        return [e for e in self.recent() if isinstance(e, event_type)]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
