"""
Dispatcher — drives one inbound message through the normalization pipeline.

topic -> payload -> time resolution -> reading -> sink write.
Holds no per-message state, so concurrent calls are safe.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

from idt_worker.errors import MalformedPayload
from idt_worker.events import EventCallback, EventKind, PipelineEvent, log_event
from idt_worker.ingestion.topic_parser import parse_topic
from idt_worker.models import NormalizedReading, RawMessage
from idt_worker.normalization.assembler import assemble_reading
from idt_worker.normalization.payload import normalize_payload
from idt_worker.normalization.time_resolver import resolve_time

logger = logging.getLogger(__name__)


class ReadingSink(Protocol):
    async def write(self, reading: NormalizedReading) -> None:
        ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Dispatcher:
    def __init__(
        self,
        sink: ReadingSink,
        on_event: EventCallback = log_event,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._sink = sink
        self._on_event = on_event
        self._clock = clock

    async def handle(self, topic: str, payload: bytes) -> None:
        """Process one message; never raises for bad input or sink failure."""
        message = RawMessage(topic=topic, payload=payload)

        parsed = parse_topic(message.topic)
        if parsed is None:
            self._emit(EventKind.TOPIC_REJECTED, message, "unexpected topic shape")
            return

        try:
            fields = normalize_payload(message.payload)
        except MalformedPayload as exc:
            self._emit(EventKind.PAYLOAD_REJECTED, message, exc.reason)
            return

        ingested_at = self._clock()
        reading = assemble_reading(
            parsed.machine_id,
            fields,
            time=self._resolve(message, "time", fields.time_text, ingested_at),
            timestamp=self._resolve(message, "timestamp", fields.timestamp_text, ingested_at),
        )

        try:
            await self._sink.write(reading)
        except Exception as exc:
            self._emit(
                EventKind.SINK_WRITE_FAILED,
                message,
                str(exc),
                machine_id=reading.machine_id,
            )
            return

        logger.debug(f"Forwarded reading for machine {reading.machine_id}")

    def _resolve(
        self, message: RawMessage, field_name: str, raw: str, ingested_at: datetime
    ) -> datetime:
        resolved: Optional[datetime] = resolve_time(raw)
        if resolved is not None:
            return resolved
        self._emit(
            EventKind.TIME_SUBSTITUTED,
            message,
            "missing" if raw == "" else "unparseable",
            field=field_name,
            value=repr(raw),
            substituted=ingested_at.isoformat(),
        )
        return ingested_at

    def _emit(self, kind: EventKind, message: RawMessage, reason: str, **details) -> None:
        details.setdefault("payload_len", message.size)
        self._on_event(PipelineEvent(kind=kind, topic=message.topic, reason=reason, details=details))
