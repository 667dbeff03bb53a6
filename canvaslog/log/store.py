"""
EventStore abstract interface.

The persistence contract the log is built on: atomic "assign next sequence
and durably store", and ordered reads by sequence.
"""

from abc import ABC, abstractmethod
from typing import Iterator, Optional

from ..core.errors import ConcurrentAppendConflict, EventStoreError
from ..core.events import Event, StoredEvent


class EventStore(ABC):
    """
    Abstract event storage interface.

    All implementations must guarantee:
    - Append-only (no updates, no deletes)
    - Sequences start at 1, strictly increasing, no gaps, never reused
    - Durability before ``append`` returns
    - Reads see a consistent prefix captured when the read began
    """

    @abstractmethod
    def append(self, event: Event, expected_seq: Optional[int] = None) -> StoredEvent:
        """
        Append event to log.

        Args:
            event: Event to append (seq will be assigned)
            expected_seq: Tail sequence the caller last observed (0 = empty log)

        Returns:
            The stored event, carrying its sequence number

        Raises:
            ConcurrentAppendConflict: if ``expected_seq`` is stale
            EventStoreError: if persistence fails
        """
        ...

    def append_with_retry(self, event: Event, max_retries: int = 3) -> StoredEvent:
        """
        Append with simple conflict retry.

        Re-reads the tail before every attempt. No merge: the event is appended
        as-is once its expected tail matches.
        """
        for _ in range(max_retries):
            try:
                return self.append(event, expected_seq=self.last_seq())
            except ConcurrentAppendConflict:
                continue
        raise EventStoreError("append failed after conflicts")

    @abstractmethod
    def read(self, from_seq: int = 1, to_seq: Optional[int] = None) -> Iterator[StoredEvent]:
        """
        Read events in sequence order.

        Args:
            from_seq: Start from this sequence number (inclusive)
            to_seq: Stop at this sequence number (inclusive, None = tail at read start)
        """
        ...

    @abstractmethod
    def last_seq(self) -> int:
        """Sequence of the newest event, 0 if the log is empty."""
        ...

    def get(self, seq: int) -> Optional[StoredEvent]:
        for ev in self.read(from_seq=seq, to_seq=seq):
            return ev
        return None

    def find_by_id(self, event_id: str) -> Optional[StoredEvent]:
        for ev in self.read():
            if ev.id == event_id:
                return ev
        return None
