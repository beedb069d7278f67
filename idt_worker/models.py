from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class RawMessage:
    """One inbound MQTT message, alive for a single handler call."""

    topic: str
    payload: bytes

    @property
    def size(self) -> int:
        return len(self.payload)


@dataclass(frozen=True)
class NormalizedReading:
    """Realtime machine reading in canonical form, ready for the sink."""

    machine_id: str
    serial: str
    person: str
    man_power: int
    job_id: str
    sub_job: str
    stroke: int
    volt: float
    amp: float
    pf: float
    wh: float
    time: datetime
    timestamp: datetime
    status: bool
