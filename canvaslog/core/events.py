"""
Event model for the canvas log.

Events are immutable records of a change to the workspace. An event built by
the envelope has no ``seq``; the log assigns one on append, and the stored
copy is what every reader sees.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Optional

from .canonical import format_timestamp, parse_timestamp
from .payload import JsonValue

AGGREGATE_ID_KEY = "aggregateId"


@dataclass(frozen=True)
class Event:
    """
    Immutable event record.

    Fields:
        type: Event type token (e.g., "ADD_NODE"), matches ``^[A-Z0-9_]+$``
        payload: Validated JSON payload (``None`` is a valid payload)
        timestamp: When the event logically occurred (display/filtering only)
        id: Optional external identifier, stable across storage migrations
        actor_id: Optional attribution
        seq: Sequence number (assigned by the EventStore)
    """
    type: str
    payload: JsonValue
    timestamp: datetime
    id: Optional[str] = None
    actor_id: Optional[str] = None
    seq: Optional[int] = None

    def require_seq(self) -> int:
        """
        Get sequence number or raise error if not assigned.

        Raises:
            ValueError: If seq is None
        """
        if self.seq is None:
            raise ValueError("Event.seq is required but None")
        return self.seq

    @property
    def is_stored(self) -> bool:
        return self.seq is not None

    @property
    def aggregate_id(self) -> Optional[str]:
        """Aggregate id embedded in the payload under ``aggregateId``, if any."""
        if isinstance(self.payload, dict):
            value = self.payload.get(AGGREGATE_ID_KEY)
            if isinstance(value, str):
                return value
        return None

    def with_seq(self, seq: int) -> "Event":
        return replace(self, seq=seq)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seq": self.seq,
            "id": self.id,
            "type": self.type,
            "payload": self.payload,
            "timestamp": format_timestamp(self.timestamp),
            "actor_id": self.actor_id,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Event":
        return Event(
            type=data["type"],
            payload=data.get("payload"),
            timestamp=parse_timestamp(data["timestamp"]),
            id=data.get("id"),
            actor_id=data.get("actor_id"),
            seq=data.get("seq"),
        )


# Events returned by the log always carry a sequence number.
StoredEvent = Event
