"""
Tests for replay determinism and cutoffs.
"""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from canvaslog.canvas.state import CanvasState
from canvaslog.core.errors import NotFound, ReplayCancelled
from canvaslog.core.events import Event
from canvaslog.log.memory_store import MemoryEventStore
from canvaslog.replay import replay
from canvaslog.snapshot import create_snapshot

from .conftest import add_node_payload, edge_payload


def _build(workspace, clock):
    log = workspace.log
    log.create("ADD_NODE", add_node_payload("a", 0, 0, aggregateId="ws-1"), id="first")
    clock.tick(10)
    log.create("ADD_NODE", add_node_payload("b", 200, 0, aggregateId="ws-1"))
    clock.tick(10)
    log.create("CREATE_EDGE", {**edge_payload("e1", "a", "b"), "aggregateId": "ws-1"})
    clock.tick(10)
    log.create("ADD_NODE", add_node_payload("x", 500, 500, aggregateId="ws-2"))
    clock.tick(10)
    log.create("CHAIN_NOTE", {"text": "unrelated"})
    clock.tick(10)
    log.create("MOVE_NODE", {"nodeId": "a", "toPosition": {"x": 40, "y": 40}, "aggregateId": "ws-1"})


def test_same_log_same_state(workspace, clock):
    _build(workspace, clock)
    r1 = replay(workspace.log, workspace.reducer, workspace.initial_state())
    r2 = replay(workspace.log, workspace.reducer, workspace.initial_state())
    assert r1.state == r2.state
    assert r1.applied == 6
    assert r1.last_seq == 6
    assert r1.state.nodes["a"]["position"] == {"x": 40, "y": 40}


def test_copied_log_replays_identically(workspace, clock):
    _build(workspace, clock)
    copy_store = MemoryEventStore()
    for ev in workspace.log.store.read():
        copy_store.append(Event(type=ev.type, payload=ev.payload, timestamp=ev.timestamp, id=ev.id, actor_id=ev.actor_id))
    original = replay(workspace.log, workspace.reducer, workspace.initial_state()).state
    copied = replay(copy_store, workspace.reducer, workspace.initial_state()).state
    assert original.to_dict() == copied.to_dict()


def test_up_to_event_id(workspace, clock):
    _build(workspace, clock)
    result = replay(workspace.log, workspace.reducer, workspace.initial_state(), up_to_event_id="first")
    assert result.applied == 1
    assert list(result.state.nodes) == ["a"]
    result = replay(workspace.log, workspace.reducer, workspace.initial_state(), up_to_event_id="3")
    assert "e1" in result.state.edges
    with pytest.raises(NotFound):
        replay(workspace.log, workspace.reducer, workspace.initial_state(), up_to_event_id="nope")


def test_up_to_timestamp_is_inclusive(workspace, clock):
    _build(workspace, clock)
    cutoff = datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=10)
    result = replay(workspace.log, workspace.reducer, workspace.initial_state(), up_to_timestamp=cutoff)
    assert result.applied == 2
    assert set(result.state.nodes) == {"a", "b"}


def test_event_types_allow_list(workspace, clock):
    _build(workspace, clock)
    result = replay(workspace.log, workspace.reducer, workspace.initial_state(), event_types=["ADD_NODE"])
    assert result.applied == 3
    assert result.state.edges == {}
    assert result.state.nodes["a"]["position"] == {"x": 0, "y": 0}


def test_aggregate_scope(workspace, clock):
    _build(workspace, clock)
    result = replay(workspace.log, workspace.reducer, workspace.initial_state(), aggregate_id="ws-2")
    assert result.applied == 1
    assert list(result.state.nodes) == ["x"]
    with pytest.raises(NotFound):
        replay(workspace.log, workspace.reducer, workspace.initial_state(), aggregate_id="ws-9")


def test_empty_log_replays_to_initial_state(workspace):
    result = replay(workspace.log, workspace.reducer, workspace.initial_state())
    assert result.applied == 0
    assert result.last_seq is None
    assert result.state == workspace.initial_state()


def test_cancel_raises_without_partial_state(workspace, clock):
    _build(workspace, clock)
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(ReplayCancelled) as exc:
        replay(workspace.log, workspace.reducer, workspace.initial_state(), cancel=cancel)
    assert exc.value.applied == 0

    calls = []

    def stop_after_two():
        calls.append(1)
        return len(calls) > 2

    with pytest.raises(ReplayCancelled) as exc:
        replay(workspace.log, workspace.reducer, workspace.initial_state(), cancel=stop_after_two)
    assert exc.value.applied == 2


def test_snapshot_resume_matches_full_replay(workspace, clock):
    _build(workspace, clock)
    partial = replay(workspace.log, workspace.reducer, workspace.initial_state(), up_to_event_id=3)
    snap = create_snapshot(partial.state, seq=3, clock=clock)

    resumed = replay(
        workspace.log,
        workspace.reducer,
        workspace.initial_state(),
        snapshot=snap,
        restore=CanvasState.from_dict,
    )
    full = replay(workspace.log, workspace.reducer, workspace.initial_state())
    assert resumed.applied == 3
    assert resumed.state.to_dict() == full.state.to_dict()


def test_snapshot_scope_must_match_replay_scope(workspace, clock):
    _build(workspace, clock)
    scoped = replay(workspace.log, workspace.reducer, workspace.initial_state(), aggregate_id="ws-1")
    snap = create_snapshot(scoped.state, seq=3, aggregate_id="ws-1", clock=clock)

    with pytest.raises(ValueError):
        replay(
            workspace.log,
            workspace.reducer,
            workspace.initial_state(),
            snapshot=snap,
            restore=CanvasState.from_dict,
        )
    with pytest.raises(ValueError):
        replay(
            workspace.log,
            workspace.reducer,
            workspace.initial_state(),
            aggregate_id="ws-2",
            snapshot=snap,
            restore=CanvasState.from_dict,
        )

    whole = create_snapshot(scoped.state, seq=3, clock=clock)
    with pytest.raises(ValueError):
        replay(
            workspace.log,
            workspace.reducer,
            workspace.initial_state(),
            aggregate_id="ws-1",
            snapshot=whole,
            restore=CanvasState.from_dict,
        )
