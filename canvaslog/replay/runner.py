"""
Replay runner: reconstruct state from the event log.

Replay is pure: it folds the reducer over a filtered subsequence of one
consistent read, always in sequence order. Cutoffs narrow the input set,
they never reorder it.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional, Sequence, Union

from ..core.errors import NotFound, ReplayCancelled
from ..core.events import StoredEvent
from ..core.reducer import Reducer
from ..log.filters import EventFilter
from ..log.store import EventStore
from .. import metrics

logger = logging.getLogger(__name__)

CancelToken = Union[threading.Event, Callable[[], bool], None]


@dataclass(frozen=True)
class ReplayResult:
    """
    Result of replay operation.

    Fields:
        state: Final state after applying events
        applied: Number of events applied
        last_seq: Sequence of the last applied event (None if nothing was applied)
    """
    state: Any
    applied: int
    last_seq: Optional[int] = None


def _cancelled(cancel: CancelToken) -> bool:
    if cancel is None:
        return False
    if isinstance(cancel, threading.Event):
        return cancel.is_set()
    return bool(cancel())


def replay_events(
    reducer: Reducer,
    initial_state: Any,
    events: Iterable[StoredEvent],
    cancel: CancelToken = None,
) -> ReplayResult:
    """
    Fold ``events`` through ``reducer`` starting from ``initial_state``.

    Raises:
        ReplayCancelled: ``cancel`` fired between fold steps; no partial state is returned
    """
    st = initial_state
    count = 0
    last_seq = None
    for ev in events:
        if _cancelled(cancel):
            raise ReplayCancelled(count, last_seq)
        st = reducer.apply(st, ev)
        count += 1
        last_seq = ev.seq
    return ReplayResult(state=st, applied=count, last_seq=last_seq)


def _store_of(source) -> EventStore:
    # Accept an EventLog facade as well as a bare store.
    return getattr(source, "store", source)


def _resolve_event_seq(store: EventStore, event_id: Union[str, int]) -> int:
    if isinstance(event_id, int):
        found = store.get(event_id)
    else:
        found = store.find_by_id(event_id)
        if found is None and event_id.isdigit():
            found = store.get(int(event_id))
    if found is None:
        raise NotFound("event", event_id)
    return found.require_seq()


def replay(
    source,
    reducer: Reducer,
    initial_state: Any,
    event_filter: Optional[EventFilter] = None,
    up_to_timestamp: Optional[datetime] = None,
    up_to_event_id: Union[str, int, None] = None,
    event_types: Optional[Sequence[str]] = None,
    aggregate_id: Optional[str] = None,
    snapshot=None,
    restore: Optional[Callable[[Any], Any]] = None,
    cancel: CancelToken = None,
) -> ReplayResult:
    """
    Replay events to reconstruct state.

    Same events always produce the same state.

    Args:
        source: EventLog or EventStore to read from
        reducer: Reducer with registered handlers
        initial_state: Empty aggregate state to fold from
        event_filter: Narrowing filter (any EventFilter)
        up_to_timestamp: Skip events whose timestamp is later (inclusive cutoff)
        up_to_event_id: Stop after this event (external id or sequence)
        event_types: Allow-list of event types
        aggregate_id: Only events whose payload carries this ``aggregateId``
        snapshot: Resume from this snapshot's state, reading only later events
        restore: Converts the snapshot's state dict into an aggregate state
        cancel: threading.Event or predicate checked between fold steps

    Returns:
        ReplayResult with final state and count

    Raises:
        NotFound: ``up_to_event_id`` is unknown, or ``aggregate_id`` matched no events
        ReplayCancelled: ``cancel`` fired
    """
    store = _store_of(source)
    to_seq = _resolve_event_seq(store, up_to_event_id) if up_to_event_id is not None else None

    if up_to_timestamp is not None and up_to_timestamp.tzinfo is None:
        up_to_timestamp = up_to_timestamp.replace(tzinfo=timezone.utc)
    cutoff = EventFilter(
        types=tuple(event_types) if event_types is not None else None,
        to_timestamp=up_to_timestamp,
        aggregate_id=aggregate_id,
    )

    st = initial_state
    from_seq = 1
    if snapshot is not None:
        if snapshot.aggregate_id != aggregate_id:
            raise ValueError(f"snapshot belongs to aggregate {snapshot.aggregate_id}, not {aggregate_id}")
        state_dict = snapshot.state()
        st = restore(state_dict) if restore is not None else state_dict
        from_seq = snapshot.seq + 1

    def selected() -> Iterable[StoredEvent]:
        for ev in store.read(from_seq=from_seq, to_seq=to_seq):
            if cutoff.matches(ev) and (event_filter is None or event_filter.matches(ev)):
                yield ev

    with metrics.track_replay():
        result = replay_events(reducer, st, selected(), cancel=cancel)

    if snapshot is not None and result.last_seq is None:
        result = ReplayResult(state=result.state, applied=0, last_seq=snapshot.seq)

    if aggregate_id is not None and result.applied == 0 and snapshot is None:
        raise NotFound("aggregate", aggregate_id)

    metrics.observe_replay_applied(result.applied)
    logger.info(
        "Replayed %d events (last seq %s)",
        result.applied,
        result.last_seq,
        extra={"applied": result.applied, "aggregate_id": aggregate_id},
    )
    return result
