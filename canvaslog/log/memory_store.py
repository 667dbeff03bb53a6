"""
In-memory event store.

A single lock owns the tail counter; readers never take it. Readers capture
the list length when the read begins and iterate that prefix only, so
appends made during a read are simply not seen. Events go in and come out
as deep copies.
"""

import copy
import threading
from typing import Dict, Iterator, List, Optional

from ..core.errors import ConcurrentAppendConflict
from ..core.events import Event, StoredEvent
from .store import EventStore


class MemoryEventStore(EventStore):
    """Process-local append-only store, used for sessions, tests and late-joiner replays."""

    def __init__(self) -> None:
        self._events: List[StoredEvent] = []
        self._by_id: Dict[str, int] = {}
        self._lock = threading.Lock()

    def append(self, event: Event, expected_seq: Optional[int] = None) -> StoredEvent:
        with self._lock:
            tail = len(self._events)
            if expected_seq is not None and expected_seq != tail:
                raise ConcurrentAppendConflict(expected_seq, tail)
            stored = Event(
                type=event.type,
                payload=copy.deepcopy(event.payload),
                timestamp=event.timestamp,
                id=event.id,
                actor_id=event.actor_id,
                seq=tail + 1,
            )
            self._events.append(stored)
            if stored.id is not None:
                self._by_id.setdefault(stored.id, stored.seq)
            return copy.deepcopy(stored)

    def read(self, from_seq: int = 1, to_seq: Optional[int] = None) -> Iterator[StoredEvent]:
        end = len(self._events)
        if to_seq is not None:
            end = min(end, to_seq)
        start = max(from_seq, 1) - 1
        window = self._events[start:end]
        return (copy.deepcopy(ev) for ev in window)

    def last_seq(self) -> int:
        return len(self._events)

    def get(self, seq: int) -> Optional[StoredEvent]:
        if 1 <= seq <= len(self._events):
            return copy.deepcopy(self._events[seq - 1])
        return None

    def find_by_id(self, event_id: str) -> Optional[StoredEvent]:
        seq = self._by_id.get(event_id)
        return self.get(seq) if seq is not None else None
