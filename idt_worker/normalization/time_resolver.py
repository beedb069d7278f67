import re
from datetime import datetime, timedelta, timezone
from typing import Optional

_RFC3339 = re.compile(
    r"(?P<date>\d{4}-\d{2}-\d{2})T(?P<clock>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d+))?"
    r"(?P<offset>Z|[+-]\d{2}:\d{2})",
    re.ASCII,
)
_EPOCH_SECONDS = re.compile(r"[+-]?[0-9]+")


def _offset(text: str) -> timezone:
    if text == "Z":
        return timezone.utc
    sign = -1 if text[0] == "-" else 1
    hours, minutes = int(text[1:3]), int(text[4:6])
    if hours > 23 or minutes > 59:
        raise ValueError(f"offset out of range: {text}")
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def parse_rfc3339(raw: str) -> Optional[datetime]:
    """Parse ``YYYY-MM-DDTHH:MM:SS[.frac](Z|+HH:MM)``; the offset is required."""
    match = _RFC3339.fullmatch(raw)
    if match is None:
        return None
    # digits past microseconds are truncated
    micro = int((match["frac"] or "0")[:6].ljust(6, "0"))
    try:
        naive = datetime.strptime(f"{match['date']}T{match['clock']}", "%Y-%m-%dT%H:%M:%S")
        return naive.replace(microsecond=micro, tzinfo=_offset(match["offset"]))
    except ValueError:
        return None


def parse_epoch_seconds(raw: str) -> Optional[datetime]:
    if not _EPOCH_SECONDS.fullmatch(raw):
        return None
    try:
        return datetime.fromtimestamp(int(raw), tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def resolve_time(raw: str) -> Optional[datetime]:
    """Resolve a payload time value to an aware datetime.

    Tries RFC 3339 first, then whole Unix seconds. Returns None for empty
    or unparseable input; the caller decides on the fallback instant.
    """
    if not raw:
        return None
    parsed = parse_rfc3339(raw)
    if parsed is not None:
        return parsed
    return parse_epoch_seconds(raw)
