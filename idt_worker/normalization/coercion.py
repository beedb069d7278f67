"""Coercion of tagged JSON values into the reading's target types.

Every coercer is total: a value it cannot interpret yields the target
type's zero value instead of raising.
"""

import json
import math
import re

from idt_worker.normalization.values import JsonValue, ValueKind

_INT_TEXT = re.compile(r"[+-]?[0-9]+")
_FLOAT_TEXT = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def _round_half_away_int(x: float) -> float:
    truncated = math.trunc(x)
    if abs(x - truncated) >= 0.5:
        truncated += 1 if x > 0 else -1
    return float(truncated)


def round_half_away(value: float, decimals: int = 2) -> float:
    """Round to ``decimals`` places, halves away from zero.

    ``decimals <= 0`` rounds to the nearest integer.
    """
    if not math.isfinite(value):
        return value
    if decimals <= 0:
        return _round_half_away_int(value)
    mult = 10.0 ** decimals
    scaled = value * mult
    # scaling overflows near the float limit; return such values unrounded
    if not math.isfinite(scaled):
        return value
    return _round_half_away_int(scaled) / mult


def parse_int_text(text: str) -> int:
    if not _INT_TEXT.fullmatch(text):
        return 0
    return int(text)


def parse_float_text(text: str) -> float:
    if not _FLOAT_TEXT.fullmatch(text):
        return 0.0
    parsed = float(text)
    return parsed if math.isfinite(parsed) else 0.0


def to_str(v: JsonValue) -> str:
    if v.kind is ValueKind.STRING:
        return v.value
    if v.kind is ValueKind.NULL:
        return ""
    return json.dumps(v.value, separators=(",", ":"), ensure_ascii=False)


def _is_finite_number(v: JsonValue) -> bool:
    return isinstance(v.value, int) or math.isfinite(v.value)


def to_int(v: JsonValue) -> int:
    if v.kind is ValueKind.NUMBER:
        return math.trunc(v.value) if _is_finite_number(v) else 0
    if v.kind is ValueKind.STRING:
        return parse_int_text(v.value)
    return 0


def to_float(v: JsonValue) -> float:
    if v.kind is ValueKind.NUMBER:
        try:
            return float(v.value)
        except OverflowError:
            return 0.0
    if v.kind is ValueKind.STRING:
        return parse_float_text(v.value)
    return 0.0


def to_rounded_float(v: JsonValue, decimals: int = 2) -> float:
    return round_half_away(to_float(v), decimals)


def to_bool(v: JsonValue) -> bool:
    if v.kind is ValueKind.BOOL:
        return v.value
    if v.kind is ValueKind.STRING:
        return v.value.lower() == "true" or v.value == "1"
    if v.kind is ValueKind.NUMBER:
        return v.value != 0
    return False


def to_time_text(v: JsonValue) -> str:
    """Keep a time value as text; parsing happens in the time resolver."""
    if v.kind is ValueKind.STRING:
        return v.value
    if v.kind is ValueKind.NUMBER:
        return str(math.trunc(v.value)) if _is_finite_number(v) else ""
    return ""
