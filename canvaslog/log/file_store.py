"""
File-based event store using append-only JSONL format.

Each line is a hash chain record with prev_hash, event_hash and event data.
"""

import json
import os
from typing import Iterator, Optional, Tuple

from ..core.canonical import canonical_json_str
from ..core.errors import ConcurrentAppendConflict, EventStoreError
from ..core.events import Event, StoredEvent
from .integrity import ZERO_HASH, chain_record
from .store import EventStore

try:
    import fcntl
except ImportError:  # Windows or unsupported platform
    fcntl = None

_TAIL_CHUNK = 4096


class FileEventStore(EventStore):
    """
    File-based append-only event store.

    Storage format: JSONL (newline-delimited JSON)
    Each line: {"prev_hash": "...", "event_hash": "...", "event": {...}}

    Guarantees:
    - Append-only (no mutations)
    - Exclusive file lock around tail read + write (safe across processes)
    - Fsync after each append (durability)
    - Hash chain integrity
    """

    def __init__(self, path: str) -> None:
        """
        Initialize file event store.

        Args:
            path: Path to JSONL file (created if missing)
        """
        self.path = path
        try:
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
            if not os.path.exists(path):
                with open(path, "wb") as f:
                    f.write(b"")
        except OSError as ex:
            raise EventStoreError(str(ex)) from ex

    def _tail(self, f) -> Tuple[int, str]:
        """
        Read last sequence number and hash from the end of the log.

        Returns:
            (last_seq, last_hash), or (0, ZERO_HASH) if the log is empty
        """
        f.seek(0, os.SEEK_END)
        end = f.tell()
        if end == 0:
            return 0, ZERO_HASH

        buf = b""
        pos = end
        while pos > 0:
            step = min(_TAIL_CHUNK, pos)
            pos -= step
            f.seek(pos)
            buf = f.read(step) + buf
            lines = [ln for ln in buf.split(b"\n") if ln.strip()]
            if len(lines) >= 2 or (pos == 0 and lines):
                rec = json.loads(lines[-1])
                return rec["event"]["seq"], rec["event_hash"]
        return 0, ZERO_HASH

    def append(self, event: Event, expected_seq: Optional[int] = None) -> StoredEvent:
        try:
            with open(self.path, "a+b") as f:
                if fcntl:
                    fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                try:
                    last_seq, last_hash = self._tail(f)
                    if expected_seq is not None and expected_seq != last_seq:
                        raise ConcurrentAppendConflict(expected_seq, last_seq)

                    stored = event.with_seq(last_seq + 1)
                    line = canonical_json_str(chain_record(last_hash, stored)) + "\n"

                    f.seek(0, os.SEEK_END)
                    f.write(line.encode("utf-8"))
                    f.flush()
                    os.fsync(f.fileno())
                    return stored
                finally:
                    if fcntl:
                        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except OSError as ex:
            raise EventStoreError(str(ex)) from ex

    def read(self, from_seq: int = 1, to_seq: Optional[int] = None) -> Iterator[StoredEvent]:
        try:
            end = os.path.getsize(self.path)
        except OSError as ex:
            raise EventStoreError(str(ex)) from ex
        return self._scan(end, from_seq, to_seq)

    def _scan(self, end: int, from_seq: int, to_seq: Optional[int]) -> Iterator[StoredEvent]:
        with open(self.path, "rb") as f:
            offset = 0
            while offset < end:
                line = f.readline()
                if not line:
                    break
                offset += len(line)
                if not line.strip():
                    continue
                ev = json.loads(line)["event"]
                seq = ev["seq"]
                if seq < from_seq:
                    continue
                if to_seq is not None and seq > to_seq:
                    break
                yield Event.from_dict(ev)

    def last_seq(self) -> int:
        try:
            with open(self.path, "rb") as f:
                seq, _ = self._tail(f)
        except OSError as ex:
            raise EventStoreError(str(ex)) from ex
        return seq

    def last_hash(self) -> str:
        with open(self.path, "rb") as f:
            _, last_hash = self._tail(f)
        return last_hash
