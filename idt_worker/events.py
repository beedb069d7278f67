"""Diagnostic events emitted by the ingestion pipeline.

The pipeline never logs directly: it hands a ``PipelineEvent`` to an
injected callback and the service decides where it ends up.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    TOPIC_REJECTED = "topic_rejected"
    PAYLOAD_REJECTED = "payload_rejected"
    TIME_SUBSTITUTED = "time_substituted"
    SINK_WRITE_FAILED = "sink_write_failed"


@dataclass(frozen=True)
class PipelineEvent:
    kind: EventKind
    topic: str
    reason: str
    details: Dict[str, Any] = field(default_factory=dict)


EventCallback = Callable[[PipelineEvent], None]

_LEVELS = {
    EventKind.TOPIC_REJECTED: logging.WARNING,
    EventKind.PAYLOAD_REJECTED: logging.WARNING,
    EventKind.TIME_SUBSTITUTED: logging.WARNING,
    EventKind.SINK_WRITE_FAILED: logging.ERROR,
}


def log_event(event: PipelineEvent) -> None:
    """Default event callback: one log line per event."""
    details = " ".join(f"{key}={value}" for key, value in event.details.items())
    logger.log(
        _LEVELS.get(event.kind, logging.INFO),
        f"{event.kind.value} topic={event.topic} reason={event.reason} {details}".rstrip(),
    )


class CountingEventSink:
    """Counts events per kind, then forwards them to ``delegate``."""

    def __init__(self, delegate: EventCallback = log_event):
        self._delegate = delegate
        self._counts: Dict[EventKind, int] = {kind: 0 for kind in EventKind}

    def __call__(self, event: PipelineEvent) -> None:
        self._counts[event.kind] = self._counts.get(event.kind, 0) + 1
        self._delegate(event)

    @property
    def counts(self) -> Dict[str, int]:
        return {kind.value: count for kind, count in self._counts.items()}
