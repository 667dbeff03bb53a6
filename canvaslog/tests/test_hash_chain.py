"""
Tests for hash chain integrity.

The chain must detect any edit to stored history.
"""

import json
from datetime import datetime, timezone

import pytest

from canvaslog.core.errors import IntegrityError
from canvaslog.core.events import Event
from canvaslog.log.file_store import FileEventStore
from canvaslog.log.integrity import ZERO_HASH, hash_event, verify_chain

TS = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _write(path, n=5):
    store = FileEventStore(path)
    for i in range(n):
        store.append(Event(type="CHAIN_STEP", payload={"val": i}, timestamp=TS))
    return store


def _lines(path):
    with open(path, "r") as f:
        return [json.loads(line) for line in f if line.strip()]


def test_genesis_chains_to_zero_hash(tmp_path):
    path = str(tmp_path / "events.log")
    _write(path, 1)
    assert _lines(path)[0]["prev_hash"] == ZERO_HASH


def test_links(tmp_path):
    path = str(tmp_path / "events.log")
    store = _write(path)
    records = _lines(path)
    for prev, cur in zip(records, records[1:]):
        assert cur["prev_hash"] == prev["event_hash"]
    assert store.last_hash() == records[-1]["event_hash"]
    assert verify_chain(path) == 5


def test_hash_determinism():
    e = Event(type="CHAIN_STEP", payload={"val": 42}, timestamp=TS, seq=1)
    assert hash_event(ZERO_HASH, e) == hash_event(ZERO_HASH, e)
    assert hash_event(ZERO_HASH, e) != hash_event("1" * 64, e)


def test_payload_tamper_detected(tmp_path):
    path = str(tmp_path / "events.log")
    _write(path)
    records = _lines(path)
    records[2]["event"]["payload"]["val"] = 999
    with open(path, "w") as f:
        for rec in records:
            f.write(json.dumps(rec) + "\n")
    with pytest.raises(IntegrityError):
        verify_chain(path)


def test_deleted_record_detected(tmp_path):
    path = str(tmp_path / "events.log")
    _write(path)
    records = _lines(path)
    del records[1]
    with open(path, "w") as f:
        for rec in records:
            f.write(json.dumps(rec) + "\n")
    with pytest.raises(IntegrityError):
        verify_chain(path)
