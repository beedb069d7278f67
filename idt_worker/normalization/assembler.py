from datetime import datetime

from idt_worker.models import NormalizedReading
from idt_worker.normalization.payload import NormalizedFields


def assemble_reading(
    machine_id: str,
    fields: NormalizedFields,
    time: datetime,
    timestamp: datetime,
) -> NormalizedReading:
    """Combine topic, payload fields and resolved instants into one reading."""
    return NormalizedReading(
        machine_id=machine_id,
        serial=fields.serial,
        person=fields.person,
        man_power=fields.man_power,
        job_id=fields.job_id,
        sub_job=fields.sub_job,
        stroke=fields.stroke,
        volt=fields.volt,
        amp=fields.amp,
        pf=fields.pf,
        wh=fields.wh,
        time=time,
        timestamp=timestamp,
        status=fields.status,
    )
