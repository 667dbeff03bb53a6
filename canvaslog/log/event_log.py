"""
EventLog: the append-only log facade.

Wraps an EventStore with envelope validation, batch append with partial
success, filtered and paginated reads, lookup by id and subscriptions.
The store is the single serialization point; the log adds no locking of
its own on the append path.
"""

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from ..core.canonical import to_utc
from ..core.envelope import EventEnvelope
from ..core.errors import CanvasLogError, ConcurrentAppendConflict, EventStoreError, NotFound, PayloadRequired
from ..core.events import Event, StoredEvent
from ..core.payload import MISSING
from ..core.registry import check_type_grammar
from .. import metrics
from .filters import ALL_EVENTS, EventFilter, Pagination
from .store import EventStore

logger = logging.getLogger(__name__)

Listener = Callable[[StoredEvent], None]
Draft = Union[Event, Mapping[str, Any]]


@dataclass(frozen=True)
class BatchFailure:
    index: int
    reason: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"index": self.index, "reason": self.reason, "message": self.message}


@dataclass
class BatchResult:
    """Outcome of ``append_batch``: successes and failures side by side."""
    created: List[StoredEvent] = field(default_factory=list)
    failed: List[BatchFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class EventLog:
    """
    Append-only, totally ordered event log.

    Args:
        store: persistence collaborator (assigns sequences, stores durably)
        envelope: builds validated events from drafts
    """

    def __init__(self, store: EventStore, envelope: EventEnvelope) -> None:
        self.store = store
        self.envelope = envelope
        self._listeners: List[Tuple[Listener, EventFilter]] = []
        self._listeners_lock = threading.Lock()

    @property
    def registry(self):
        return self.envelope.registry

    def append(self, event: Event, expected_seq: Optional[int] = None) -> StoredEvent:
        """
        Append an event.

        The event is checked against the registry again before it is
        stored, so a hand-built Event gets the same validation and payload
        normalization as one from the envelope.

        Raises:
            TypeGrammarViolation, PayloadRequired, UnknownEventType,
            SchemaViolation: the event is not valid for this log
            ConcurrentAppendConflict: ``expected_seq`` does not match the tail
            EventStoreError: persistence failed (fatal, never swallowed)
        """
        if event.is_stored:
            raise ValueError(f"event already has seq {event.seq}")
        event = self._validated(event)
        try:
            stored = self.store.append(event, expected_seq=expected_seq)
        except ConcurrentAppendConflict as ex:
            metrics.track_conflict()
            logger.warning(
                "Append conflict for %s: expected tail %d, actual %d",
                event.type,
                ex.expected,
                ex.actual,
                extra={"event_type": event.type},
            )
            raise
        except EventStoreError:
            logger.error("Persistence failed appending %s", event.type, extra={"event_type": event.type})
            raise

        metrics.track_append(stored.type)
        logger.debug("Appended %s at seq %d", stored.type, stored.seq, extra={"seq": stored.seq})
        self._notify(stored)
        return stored

    def _validated(self, event: Event) -> Event:
        check_type_grammar(event.type)
        if event.payload is MISSING:
            raise PayloadRequired(event.type)
        payload = self.registry.validate(event.type, event.payload)
        return replace(event, payload=payload, timestamp=to_utc(event.timestamp))

    def create(
        self,
        type: str,
        payload: Any = MISSING,
        actor_id: Optional[str] = None,
        timestamp: Optional[datetime] = None,
        id: Optional[str] = None,
        expected_seq: Optional[int] = None,
    ) -> StoredEvent:
        """Construct through the envelope, then append."""
        event = self.envelope.construct(type, payload, actor_id=actor_id, timestamp=timestamp, id=id)
        return self.append(event, expected_seq=expected_seq)

    def append_batch(self, drafts: Sequence[Draft]) -> BatchResult:
        """
        Validate and append each draft independently.

        A draft is an Event or a mapping with ``type``, ``payload`` and
        optional ``actorId``/``actor_id``, ``timestamp``, ``id``. One draft's
        validation failure is recorded and does not stop the others.
        Persistence failure is still fatal and propagates.
        """
        result = BatchResult()
        for index, draft in enumerate(drafts):
            try:
                event = draft if isinstance(draft, Event) else self._from_draft(draft)
                result.created.append(self.append(event))
            except EventStoreError:
                raise
            except CanvasLogError as ex:
                metrics.track_batch_failure(ex.code)
                logger.warning("Batch item %d rejected: %s", index, ex, extra={"reason": ex.code})
                result.failed.append(BatchFailure(index=index, reason=ex.code, message=str(ex)))
        return result

    def _from_draft(self, draft: Mapping[str, Any]) -> Event:
        actor_id = draft.get("actorId", draft.get("actor_id"))
        return self.envelope.construct(
            draft.get("type"),
            draft.get("payload", MISSING),
            actor_id=actor_id,
            timestamp=draft.get("timestamp"),
            id=draft.get("id"),
        )

    def scan(self, event_filter: Optional[EventFilter] = None) -> Iterator[StoredEvent]:
        """Matching events in ascending sequence order, from one consistent read."""
        flt = event_filter or ALL_EVENTS
        for ev in self.store.read():
            if flt.matches(ev):
                yield ev

    def read(
        self,
        event_filter: Optional[EventFilter] = None,
        pagination: Optional[Pagination] = None,
    ) -> List[StoredEvent]:
        items, _ = self.read_page(event_filter, pagination)
        return items

    def read_page(
        self,
        event_filter: Optional[EventFilter] = None,
        pagination: Optional[Pagination] = None,
    ) -> Tuple[List[StoredEvent], int]:
        """
        Filtered page plus the total match count, from the same read.

        Filters narrow; they never reorder. ``order="desc"`` reverses the
        whole matching sequence before slicing.
        """
        matched = list(self.scan(event_filter))
        total = len(matched)
        if pagination is None:
            return matched, total
        if pagination.order == "desc":
            matched.reverse()
        start = pagination.offset
        return matched[start:start + pagination.limit], total

    def count(self, event_filter: Optional[EventFilter] = None) -> int:
        return sum(1 for _ in self.scan(event_filter))

    def get_by_id(self, event_id: Union[str, int]) -> StoredEvent:
        """
        Look up by external id, falling back to a sequence number.

        Raises:
            NotFound: no event with that id or sequence
        """
        if isinstance(event_id, int):
            found = self.store.get(event_id)
        else:
            found = self.store.find_by_id(event_id)
            if found is None and event_id.isdigit():
                found = self.store.get(int(event_id))
        if found is None:
            raise NotFound("event", event_id)
        return found

    def tail(self) -> int:
        """Sequence of the newest event (0 when empty)."""
        return self.store.last_seq()

    def subscribe(self, listener: Listener, event_filter: Optional[EventFilter] = None) -> Callable[[], None]:
        """
        Call ``listener`` after each append whose event matches the filter.

        Returns:
            A callable that removes the subscription
        """
        entry = (listener, event_filter or ALL_EVENTS)
        with self._listeners_lock:
            self._listeners.append(entry)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if entry in self._listeners:
                    self._listeners.remove(entry)

        return unsubscribe

    def _notify(self, stored: StoredEvent) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener, flt in listeners:
            if not flt.matches(stored):
                continue
            try:
                listener(stored)
            except Exception:
                logger.exception("Subscriber failed for seq %d", stored.seq)
