"""Tagged representation of decoded JSON values.

Payload values are classified once at the decode boundary; coercion
functions then dispatch on ``JsonValue.kind`` instead of inspecting
Python types again.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class ValueKind(Enum):
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    OTHER = "other"  # arrays and nested objects


@dataclass(frozen=True)
class JsonValue:
    kind: ValueKind
    value: Any = None

    @classmethod
    def of(cls, raw: Any) -> "JsonValue":
        if raw is None:
            return cls(ValueKind.NULL)
        # bool before number: bool is a subclass of int
        if isinstance(raw, bool):
            return cls(ValueKind.BOOL, raw)
        if isinstance(raw, (int, float)):
            return cls(ValueKind.NUMBER, raw)
        if isinstance(raw, str):
            return cls(ValueKind.STRING, raw)
        return cls(ValueKind.OTHER, raw)

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL


def classify_object(obj: Dict[str, Any]) -> Dict[str, JsonValue]:
    """Classify every top-level value of a decoded JSON object."""
    return {key: JsonValue.of(raw) for key, raw in obj.items()}
