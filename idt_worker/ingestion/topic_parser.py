from dataclasses import dataclass
from typing import Optional

TOPIC_REALTIME = "machine/+/realtime"


@dataclass(frozen=True)
class ParsedTopic:
    """Result of parsing an MQTT topic."""

    machine_id: str
    raw_topic: str


def parse_topic(topic: str) -> Optional[ParsedTopic]:
    """
    Parse an MQTT topic to extract the machine identifier.

    Handles:
        machine/{machine_id}/realtime  -> machine_id

    Returns None if the topic has any other shape. Mismatches are routine
    (stray publishers on a shared broker), so no exception is raised.
    """
    parts = topic.split("/")

    if len(parts) == 3 and parts[0] == "machine" and parts[2] == "realtime" and parts[1]:
        return ParsedTopic(machine_id=parts[1], raw_topic=topic)

    return None
