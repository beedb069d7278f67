from datetime import datetime, timezone
from typing import List

import pytest

from idt_worker.events import PipelineEvent
from idt_worker.ingestion.dispatcher import Dispatcher
from idt_worker.models import NormalizedReading

INGESTED_AT = datetime(2025, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


class RecordingSink:
    """In-memory sink that keeps every reading written to it."""

    def __init__(self, fail_with: Exception = None):
        self.readings: List[NormalizedReading] = []
        self._fail_with = fail_with

    async def write(self, reading: NormalizedReading) -> None:
        if self._fail_with is not None:
            raise self._fail_with
        self.readings.append(reading)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def events() -> List[PipelineEvent]:
    return []


@pytest.fixture
def dispatcher(sink, events) -> Dispatcher:
    return Dispatcher(sink=sink, on_event=events.append, clock=lambda: INGESTED_AT)
