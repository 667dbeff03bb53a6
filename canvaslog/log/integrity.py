"""
Hash chain integrity for file-backed logs.

Each stored record carries the hash of the previous record, so any edit to
history breaks every hash after it.
"""

import hashlib
import json
from typing import Any, Dict

from ..core.canonical import canonical_json_bytes
from ..core.errors import IntegrityError
from ..core.events import Event

ZERO_HASH = "0" * 64


def hash_event(prev_hash: str, event: Event) -> str:
    """
    Compute hash of event chained to previous hash.

    Hash input: prev_hash + canonical_json(event.to_dict())

    Args:
        prev_hash: Hash of previous event (or ZERO_HASH for genesis)
        event: Stored event (seq included)

    Returns:
        SHA-256 hash as hex string
    """
    b = prev_hash.encode("utf-8") + canonical_json_bytes(event.to_dict())
    return hashlib.sha256(b).hexdigest()


def chain_record(prev_hash: str, event: Event) -> Dict[str, Any]:
    """Record written as one JSONL line: ``{prev_hash, event_hash, event}``."""
    return {
        "prev_hash": prev_hash,
        "event_hash": hash_event(prev_hash, event),
        "event": event.to_dict(),
    }


def verify_chain(path: str) -> int:
    """
    Recompute the hash chain of a JSONL log.

    Returns:
        Number of records verified

    Raises:
        IntegrityError: on a broken link, a hash mismatch or a sequence gap
    """
    prev = ZERO_HASH
    expected_seq = 1
    count = 0
    with open(path, "rb") as f:
        for line in f:
            if not line.strip():
                continue
            rec = json.loads(line)
            ev = Event.from_dict(rec["event"])
            if ev.seq != expected_seq:
                raise IntegrityError(f"sequence gap: expected {expected_seq}, found {ev.seq}")
            if rec["prev_hash"] != prev:
                raise IntegrityError(f"broken chain link at seq {ev.seq}")
            computed = hash_event(prev, ev)
            if rec["event_hash"] != computed:
                raise IntegrityError(f"hash mismatch at seq {ev.seq}")
            prev = computed
            expected_seq += 1
            count += 1
    return count
