"""
Tests for event store adapters: monotonic sequences, optimistic
concurrency and consistent reads.
"""

import threading
from datetime import datetime, timezone

import pytest

from canvaslog.core.errors import ConcurrentAppendConflict, EventStoreError
from canvaslog.core.events import Event
from canvaslog.log.file_store import FileEventStore
from canvaslog.log.memory_store import MemoryEventStore

TS = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _ev(i=0, event_type="CHAIN_STEP", event_id=None):
    return Event(type=event_type, payload={"i": i}, timestamp=TS, id=event_id)


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryEventStore()
    return FileEventStore(str(tmp_path / "events.log"))


def test_sequences_start_at_one_and_have_no_gaps(store):
    assert store.last_seq() == 0
    seqs = [store.append(_ev(i)).seq for i in range(5)]
    assert seqs == [1, 2, 3, 4, 5]
    assert [ev.seq for ev in store.read()] == [1, 2, 3, 4, 5]
    assert store.last_seq() == 5


def test_expected_seq_conflict(store):
    store.append(_ev(0), expected_seq=0)
    with pytest.raises(ConcurrentAppendConflict) as exc:
        store.append(_ev(1), expected_seq=0)
    assert (exc.value.expected, exc.value.actual) == (0, 1)
    assert store.last_seq() == 1
    assert store.append(_ev(1), expected_seq=1).seq == 2


def test_append_with_retry_rereads_tail(store):
    store.append(_ev(0))
    assert store.append_with_retry(_ev(1)).seq == 2


def test_read_range_and_lookup(store):
    for i in range(6):
        store.append(_ev(i, event_id=f"ev-{i}"))
    assert [ev.seq for ev in store.read(from_seq=2, to_seq=4)] == [2, 3, 4]
    assert store.get(3).payload == {"i": 2}
    assert store.get(99) is None
    assert store.find_by_id("ev-5").seq == 6
    assert store.find_by_id("nope") is None


def test_read_is_a_consistent_prefix(store):
    for i in range(3):
        store.append(_ev(i))
    reader = store.read()
    store.append(_ev(3))
    assert [ev.seq for ev in reader] == [1, 2, 3]


def test_stored_payload_is_isolated_from_caller():
    store = MemoryEventStore()
    payload = {"i": 1}
    store.append(Event(type="CHAIN_STEP", payload=payload, timestamp=TS))
    payload["i"] = 2
    assert store.get(1).payload == {"i": 1}


def test_returned_events_do_not_alias_history(store):
    appended = store.append(Event(type="CHAIN_STEP", payload={"i": 1, "tags": ["a"]}, timestamp=TS))
    appended.payload["i"] = 99
    store.get(1).payload["tags"].append("b")
    for ev in store.read():
        ev.payload["i"] = -1
    assert store.get(1).payload == {"i": 1, "tags": ["a"]}
    assert [ev.payload for ev in store.read()] == [{"i": 1, "tags": ["a"]}]


def test_concurrent_appends_are_totally_ordered():
    store = MemoryEventStore()

    def writer(n):
        for i in range(50):
            store.append(_ev(n * 100 + i))

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    seqs = [ev.seq for ev in store.read()]
    assert seqs == list(range(1, 401))


def test_file_store_survives_reopen(tmp_path):
    path = str(tmp_path / "events.log")
    store = FileEventStore(path)
    store.append(_ev(0, event_id="first"))
    store.append(_ev(1))

    reopened = FileEventStore(path)
    assert reopened.last_seq() == 2
    ev = reopened.find_by_id("first")
    assert ev.seq == 1
    assert ev.timestamp == TS
    assert reopened.append(_ev(2)).seq == 3


def test_two_file_writers_share_one_order(tmp_path):
    path = str(tmp_path / "events.log")
    a = FileEventStore(path)
    b = FileEventStore(path)
    for i in range(10):
        tail = a.last_seq()
        a.append(_ev(i), expected_seq=tail)
        with pytest.raises(ConcurrentAppendConflict):
            b.append(_ev(i), expected_seq=tail)
        b.append_with_retry(_ev(i))
    assert [ev.seq for ev in a.read()] == list(range(1, 21))


def test_file_store_large_records(tmp_path):
    store = FileEventStore(str(tmp_path / "events.log"))
    big = "x" * 10000
    store.append(Event(type="CHAIN_BLOB", payload={"blob": big}, timestamp=TS))
    store.append(Event(type="CHAIN_BLOB", payload={"blob": big}, timestamp=TS))
    assert store.last_seq() == 2


def test_file_store_io_error_is_fatal(tmp_path):
    path = tmp_path / "events.log"
    store = FileEventStore(str(path))
    path.unlink()
    path.mkdir()
    with pytest.raises(EventStoreError):
        store.append(_ev(0))
