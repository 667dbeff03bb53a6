"""
Tests for the transport-facing EventService.
"""

from datetime import datetime, timedelta, timezone

import pytest

from canvaslog.config import Settings
from canvaslog.core.errors import NotFound, SchemaViolation
from canvaslog.log.memory_store import MemoryEventStore
from canvaslog.workspace import open_workspace

from .conftest import add_node_payload


def test_create_event_response(workspace):
    body = workspace.service.create_event({"type": "CHAIN_START", "payload": {"a": 1}, "userId": "alice", "id": "evt-1"})
    data = body["data"]
    assert data["sequence"] == 1
    assert data["id"] == "evt-1"
    assert data["userId"] == "alice"
    assert data["timestamp"] == "2024-01-01T00:00:00.000000Z"
    assert body["meta"]["timestamp"] == "2024-01-01T00:00:00.000000Z"


def test_create_event_rejects_bad_request(workspace):
    with pytest.raises(SchemaViolation):
        workspace.service.create_event({"type": "CHAIN_START", "payload": None, "bogus": True})
    with pytest.raises(SchemaViolation):
        workspace.service.create_event({"type": "ADD_NODE", "payload": {"nodeId": "n1"}})
    assert workspace.log.tail() == 0


def test_batch_reports_failures_by_index(workspace):
    body = workspace.service.create_events_batch({"events": [
        {"type": "CHAIN_A", "payload": 1},
        {"type": "lower", "payload": 2},
        {"type": "CHAIN_C"},
    ]})
    assert [e["sequence"] for e in body["data"]["created"]] == [1]
    assert [(f["index"], f["reason"]) for f in body["data"]["failed"]] == [
        (1, "TYPE_GRAMMAR_VIOLATION"),
        (2, "PAYLOAD_REQUIRED"),
    ]


def test_batch_size_limit(workspace):
    with pytest.raises(SchemaViolation):
        workspace.service.create_events_batch({"events": []})
    with pytest.raises(SchemaViolation):
        workspace.service.create_events_batch({"events": [{"type": "CHAIN_A", "payload": None}] * 101})


def test_limits_follow_settings(monkeypatch, clock):
    monkeypatch.setenv("CANVASLOG_BATCH_MAX", "2")
    monkeypatch.setenv("CANVASLOG_PAGE_LIMIT_MAX", "150")
    ws = open_workspace(Settings.from_env(), store=MemoryEventStore(), clock=clock)
    item = {"type": "CHAIN_A", "payload": None}

    with pytest.raises(SchemaViolation) as exc:
        ws.service.create_events_batch({"events": [item] * 3})
    assert exc.value.field == "events"
    assert ws.log.tail() == 0
    assert len(ws.service.create_events_batch({"events": [item] * 2})["data"]["created"]) == 2

    assert ws.service.list_events({"limit": 150})["pagination"]["limit"] == 150
    with pytest.raises(SchemaViolation) as exc:
        ws.service.list_events({"limit": 151})
    assert exc.value.field == "limit"


def test_list_and_get(workspace):
    for i in range(3):
        workspace.service.create_event({"type": "CHAIN_STEP", "payload": {"i": i}})
    body = workspace.service.list_events({"limit": 2, "order": "desc"})
    assert [e["sequence"] for e in body["data"]] == [3, 2]
    assert body["pagination"]["totalPages"] == 2
    assert workspace.service.get_event("2")["data"]["payload"] == {"i": 1}
    with pytest.raises(NotFound):
        workspace.service.get_event("missing")
    with pytest.raises(SchemaViolation):
        workspace.service.list_events({"limit": 500})


def test_statistics_envelope(workspace):
    workspace.service.create_event({"type": "CHAIN_A", "payload": None})
    body = workspace.service.statistics({"groupBy": "type"})
    assert body["data"]["total"] == 1
    assert body["data"]["groups"] == [{"key": "CHAIN_A", "count": 1, "percentage": 100.0}]


def test_replay_endpoint(workspace):
    workspace.service.create_event({"type": "ADD_NODE", "payload": add_node_payload("a", 3, 3, aggregateId="ws-1")})
    workspace.service.create_event({"type": "ADD_NODE", "payload": add_node_payload("b", 500, 3, aggregateId="ws-2")})
    body = workspace.service.replay({"aggregateId": "ws-1"})
    data = body["data"]
    assert data["aggregateId"] == "ws-1"
    assert data["eventsReplayed"] == 1
    assert list(data["finalState"]["nodes"]) == ["a"]
    assert data["finalState"]["nodes"]["a"]["position"] == {"x": 0, "y": 0}
    with pytest.raises(NotFound):
        workspace.service.replay({"aggregateId": "nobody"})


def test_validate_event(workspace, clock):
    ok = workspace.service.validate_event({"type": "ADD_NODE", "payload": add_node_payload("a", 0, 0)})["data"]
    assert ok == {"valid": True, "errors": [], "warnings": []}

    bad = workspace.service.validate_event({"type": "ADD_NODE", "payload": {"nodeId": "a"}})["data"]
    assert not bad["valid"]
    assert bad["errors"][0]["field"].startswith("payload.")

    grammar = workspace.service.validate_event({"type": "add-node", "payload": None})["data"]
    assert grammar["errors"][0]["field"] == "type"

    future = clock.now() + timedelta(days=1)
    warned = workspace.service.validate_event({"type": "CHAIN_A", "payload": None, "timestamp": future})["data"]
    assert warned["valid"]
    assert warned["warnings"][0]["field"] == "timestamp"
    assert workspace.log.tail() == 0


def test_validate_warns_for_permissive_unknown_type(clock):
    ws = open_workspace(Settings(permissive=True), store=MemoryEventStore(), clock=clock)
    data = ws.service.validate_event({"type": "SOMETHING_NEW", "payload": {"x": 1}})["data"]
    assert data["valid"]
    assert data["warnings"][0]["field"] == "type"


def test_timestamp_is_preserved(workspace):
    ts = datetime(2023, 6, 1, 12, 30, tzinfo=timezone.utc)
    body = workspace.service.create_event({"type": "CHAIN_A", "payload": None, "timestamp": ts.isoformat()})
    assert body["data"]["timestamp"] == "2023-06-01T12:30:00.000000Z"
