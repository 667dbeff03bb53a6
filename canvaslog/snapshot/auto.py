"""
Periodic snapshots written as the log grows.
"""

import logging
import threading
from typing import Any, Callable

from ..core.events import StoredEvent
from ..core.reducer import Reducer
from ..replay.runner import replay
from .builder import create_snapshot
from .model import Snapshot
from .store import SnapshotStore

logger = logging.getLogger(__name__)


class AutoSnapshotter:
    """
    Log subscriber that snapshots the whole log every ``interval`` sequences.

    Each snapshot resumes from the newest earlier one, so only the events
    appended since then are folded.

    Args:
        source: EventLog or EventStore the snapshots are built from
        reducer: Reducer with registered handlers
        initial_state: Factory for the empty state
        restore: Converts a snapshot's state dict back into a state
        store: Where snapshots are written
        interval: Snapshot when ``seq`` is a multiple of this
    """

    def __init__(
        self,
        source,
        reducer: Reducer,
        initial_state: Callable[[], Any],
        restore: Callable[[Any], Any],
        store: SnapshotStore,
        interval: int,
        clock=None,
    ) -> None:
        if interval < 1:
            raise ValueError("interval must be >= 1")
        self.source = source
        self.reducer = reducer
        self.initial_state = initial_state
        self.restore = restore
        self.store = store
        self.interval = interval
        self.clock = clock
        self._lock = threading.Lock()

    def __call__(self, stored: StoredEvent) -> None:
        if stored.require_seq() % self.interval == 0:
            self.snapshot_at(stored.seq)

    def snapshot_at(self, seq: int) -> Snapshot:
        with self._lock:
            previous = self.store.find_at_or_before(seq)
            if previous is not None and previous.seq == seq:
                return previous
            result = replay(
                self.source,
                self.reducer,
                self.initial_state(),
                up_to_event_id=seq,
                snapshot=previous,
                restore=self.restore,
            )
            snap = create_snapshot(result.state, seq, clock=self.clock)
            path = self.store.save(snap)
        logger.info("Auto snapshot at seq %d: %s", seq, path, extra={"seq": seq})
        return snap

