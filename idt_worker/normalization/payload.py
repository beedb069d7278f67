"""Payload normalizer for machine realtime messages.

Producers disagree on key casing and on value types (``"220.5"`` vs
``220.5``, ``"1"`` vs ``true``), so every target field is looked up
through an ordered alias group and coerced with a per-kind rule.
Adding an alias is an edit to ``FIELD_SPECS``.
"""

import json
import math
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, Mapping, Tuple

from idt_worker.errors import MalformedPayload
from idt_worker.normalization.coercion import (
    to_bool,
    to_int,
    to_rounded_float,
    to_str,
    to_time_text,
)
from idt_worker.normalization.values import JsonValue, classify_object

READING_DECIMALS = 2


@dataclass(frozen=True)
class FieldSpec:
    name: str
    aliases: Tuple[str, ...]
    coerce: Callable[[JsonValue], Any]
    default: Any


_rounded = partial(to_rounded_float, decimals=READING_DECIMALS)

FIELD_SPECS: Tuple[FieldSpec, ...] = (
    FieldSpec("serial", ("serial", "Serial", "SERIAL"), to_str, ""),
    FieldSpec("person", ("person", "PERSON", "Person"), to_str, ""),
    FieldSpec("man_power", ("manPower", "Man Power", "man_power", "MAN_POWER"), to_int, 0),
    FieldSpec("job_id", ("jobId", "JOB_ID", "JobId", "job_id"), to_str, ""),
    FieldSpec("sub_job", ("subJob", "SUB_JOB", "SubJob", "sub_job"), to_str, ""),
    # STOKE is a misspelling some PLC firmware publishes
    FieldSpec("stroke", ("stroke", "Stroke", "STOKE", "STROKE"), to_int, 0),
    FieldSpec("volt", ("volt", "Volt", "VOLT"), _rounded, 0.0),
    FieldSpec("amp", ("amp", "Amp", "AMP"), _rounded, 0.0),
    FieldSpec("pf", ("pf", "PF", "Pf"), _rounded, 0.0),
    FieldSpec("wh", ("wh", "Wh", "WH"), _rounded, 0.0),
    # time and timestamp groups must stay disjoint
    FieldSpec("time_text", ("time", "TIME", "Time"), to_time_text, ""),
    FieldSpec("timestamp_text", ("timestamp", "Timestamp", "TIMESTAMP"), to_time_text, ""),
    FieldSpec("status", ("status", "Status", "STATUS"), to_bool, False),
)


@dataclass(frozen=True)
class NormalizedFields:
    """Payload fields in canonical form, time values still unparsed."""

    serial: str = ""
    person: str = ""
    man_power: int = 0
    job_id: str = ""
    sub_job: str = ""
    stroke: int = 0
    volt: float = 0.0
    amp: float = 0.0
    pf: float = 0.0
    wh: float = 0.0
    time_text: str = ""
    timestamp_text: str = ""
    status: bool = False


def resolve_field(values: Mapping[str, JsonValue], spec: FieldSpec) -> Any:
    """Coerce the first non-null alias of ``spec``; the rest are ignored."""
    for alias in spec.aliases:
        candidate = values.get(alias)
        if candidate is not None and not candidate.is_null:
            return spec.coerce(candidate)
    return spec.default


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number out of range: {text}")
    return value


def decode_object(payload: bytes) -> Dict[str, Any]:
    try:
        decoded = json.loads(payload, parse_float=_finite_float, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        raise MalformedPayload(str(exc)) from exc
    if not isinstance(decoded, dict):
        raise MalformedPayload(f"expected a JSON object, got {type(decoded).__name__}")
    return decoded


def normalize_payload(payload: bytes) -> NormalizedFields:
    """Decode ``payload`` and map it onto the fixed reading schema.

    Raises MalformedPayload if the payload is not a JSON object. Missing
    or uninterpretable fields resolve to zero values, never to errors.
    """
    values = classify_object(decode_object(payload))
    return NormalizedFields(**{spec.name: resolve_field(values, spec) for spec in FIELD_SPECS})
