import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from pymongo.errors import CollectionInvalid, PyMongoError

from idt_worker.errors import SinkWriteFailure
from idt_worker.models import NormalizedReading

logger = logging.getLogger(__name__)

MEASUREMENT = "machine_realtime"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def unix_ms(instant: datetime) -> int:
    return (instant - _EPOCH) // timedelta(milliseconds=1)


def to_document(reading: NormalizedReading) -> Dict[str, Any]:
    """Map a reading onto the time-series document layout.

    ``ts`` is the point time (the reading's ``timestamp``); ``time`` and
    ``timestamp`` are also stored on their own so neither is lost.
    """
    return {
        "ts": reading.timestamp,
        "meta": {
            "machineId": reading.machine_id,
            "serial": reading.serial,
            "person": reading.person,
            "jobId": reading.job_id,
            "subJob": reading.sub_job,
        },
        "manPower": reading.man_power,
        "stroke": reading.stroke,
        "volt": reading.volt,
        "amp": reading.amp,
        "pf": reading.pf,
        "wh": reading.wh,
        "status": reading.status,
        "time": reading.time,
        "timestamp": reading.timestamp,
        "time_ms": unix_ms(reading.time),
        "timestamp_ms": unix_ms(reading.timestamp),
    }


class TelemetryWriter:
    """Writes normalized machine readings to a MongoDB time-series collection."""

    def __init__(self, db, collection_name: str = MEASUREMENT):
        self.db = db
        self.collection_name = collection_name

    async def ensure_collection(self) -> None:
        try:
            await self.db.create_collection(
                self.collection_name,
                timeseries={"timeField": "ts", "metaField": "meta", "granularity": "seconds"},
            )
            logger.info(f"Created time-series collection: {self.collection_name}")
        except CollectionInvalid:
            logger.debug(f"Collection {self.collection_name} already exists")

    async def write(self, reading: NormalizedReading) -> None:
        try:
            await self.db[self.collection_name].insert_one(to_document(reading))
        except PyMongoError as exc:
            raise SinkWriteFailure(reading.machine_id, str(exc)) from exc
        logger.debug(f"Stored reading for machine: {reading.machine_id}")

    async def health(self) -> bool:
        """True if MongoDB answers a ping."""
        try:
            await self.db.command("ping")
            return True
        except PyMongoError as e:
            logger.warning(f"MongoDB health check failed: {e}")
            return False
