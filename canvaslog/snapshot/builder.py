"""
Snapshot creation.
"""

import logging
from typing import Any, Optional

from ..core.canonical import format_timestamp
from ..core.clock import SystemClock
from ..core.reducer import Reducer
from ..replay.runner import replay
from .codec import compute_state_hash, state_to_base64
from .model import Snapshot
from .signer import SigningKey

logger = logging.getLogger(__name__)


def create_snapshot(
    state: Any,
    seq: int,
    aggregate_id: Optional[str] = None,
    signing_key: Optional[SigningKey] = None,
    clock=None,
) -> Snapshot:
    """
    Materialize ``state`` as folded up to ``seq``.

    Signs the snapshot when ``signing_key`` is given.
    """
    snap = Snapshot(
        seq=seq,
        aggregate_id=aggregate_id,
        state_hash=compute_state_hash(state),
        state_bytes=state_to_base64(state),
        created_at=format_timestamp((clock or SystemClock()).now()),
    )
    if signing_key is not None:
        snap.pubkey_id = signing_key.get_pubkey_id()
        snap.signature = signing_key.sign_base64(snap.signing_payload())
    logger.info("Created snapshot at seq %d", seq, extra={"seq": seq, "aggregate_id": aggregate_id})
    return snap


def snapshot_from_log(
    source,
    reducer: Reducer,
    initial_state: Any,
    aggregate_id: Optional[str] = None,
    up_to_seq: Optional[int] = None,
    signing_key: Optional[SigningKey] = None,
    clock=None,
) -> Snapshot:
    """
    Replay the log (optionally up to ``up_to_seq``) and snapshot the result.

    The snapshot's ``seq`` is the cutoff, not the last matching event, so a
    later replay never re-reads events the snapshot already covers.
    """
    store = getattr(source, "store", source)
    tail = store.last_seq()
    cutoff = tail if up_to_seq is None else min(up_to_seq, tail)
    if cutoff == 0:
        state = initial_state
    else:
        state = replay(
            store,
            reducer,
            initial_state,
            up_to_event_id=cutoff,
            aggregate_id=aggregate_id,
        ).state
    return create_snapshot(state, cutoff, aggregate_id=aggregate_id, signing_key=signing_key, clock=clock)
