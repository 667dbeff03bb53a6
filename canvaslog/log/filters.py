"""
Event filters and pagination.

Filters only narrow the set of events; they never reorder it. Results are
always in sequence order (ascending unless ``Pagination.order == "desc"``).
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from ..core.canonical import canonical_json_str
from ..core.events import Event
from ..core.payload import MISSING, get_path

ORDERS = ("asc", "desc")
MAX_PAGE_LIMIT = 100


@dataclass(frozen=True)
class EventFilter:
    """
    Conjunctive event filter. ``None`` fields do not constrain.

    Fields:
        type: exact event type
        type_prefix: event type prefix (e.g. "CHAIN_")
        types: allow-list of event types
        actor_id: exact actor id
        from_timestamp / to_timestamp: inclusive timestamp range
        has_payload: True -> payload is not null, False -> payload is null
        payload_contains: substring of the payload's canonical JSON
        payload_path / payload_value: dotted-path equality inside the payload
        aggregate_id: payload ``aggregateId``
        from_seq / to_seq: inclusive sequence range
    """
    type: Optional[str] = None
    type_prefix: Optional[str] = None
    types: Optional[Sequence[str]] = None
    actor_id: Optional[str] = None
    from_timestamp: Optional[datetime] = None
    to_timestamp: Optional[datetime] = None
    has_payload: Optional[bool] = None
    payload_contains: Optional[str] = None
    payload_path: Optional[str] = None
    payload_value: Any = MISSING
    aggregate_id: Optional[str] = None
    from_seq: Optional[int] = None
    to_seq: Optional[int] = None

    def __post_init__(self) -> None:
        # Naive bounds are taken as UTC so they compare with stored timestamps.
        for name in ("from_timestamp", "to_timestamp"):
            ts = getattr(self, name)
            if ts is not None and ts.tzinfo is None:
                object.__setattr__(self, name, ts.replace(tzinfo=timezone.utc))

    def matches(self, ev: Event) -> bool:
        if self.type is not None and ev.type != self.type:
            return False
        if self.type_prefix is not None and not ev.type.startswith(self.type_prefix):
            return False
        if self.types is not None and ev.type not in self.types:
            return False
        if self.actor_id is not None and ev.actor_id != self.actor_id:
            return False
        if self.from_timestamp is not None and ev.timestamp < self.from_timestamp:
            return False
        if self.to_timestamp is not None and ev.timestamp > self.to_timestamp:
            return False
        if self.has_payload is not None and (ev.payload is not None) != self.has_payload:
            return False
        if self.from_seq is not None and (ev.seq is None or ev.seq < self.from_seq):
            return False
        if self.to_seq is not None and (ev.seq is None or ev.seq > self.to_seq):
            return False
        if self.aggregate_id is not None and ev.aggregate_id != self.aggregate_id:
            return False
        if self.payload_contains is not None:
            if self.payload_contains not in canonical_json_str(ev.payload):
                return False
        if self.payload_path is not None:
            found = get_path(ev.payload, self.payload_path)
            if found is MISSING:
                return False
            if self.payload_value is not MISSING and found != self.payload_value:
                return False
        return True


ALL_EVENTS = EventFilter()


@dataclass(frozen=True)
class Pagination:
    page: int = 1
    limit: int = 20
    order: str = "asc"
    max_limit: int = field(default=MAX_PAGE_LIMIT, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if not 1 <= self.limit <= self.max_limit:
            raise ValueError(f"limit must be between 1 and {self.max_limit}")
        if self.order not in ORDERS:
            raise ValueError(f"order must be one of {ORDERS}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
