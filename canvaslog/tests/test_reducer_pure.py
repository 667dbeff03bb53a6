"""
Tests for reducer purity and the canvas handlers.
"""

import copy
import logging

import pytest

from canvaslog.canvas.handlers import build_canvas_reducer
from canvaslog.canvas.schemas import register_canvas_types
from canvaslog.canvas.state import CanvasState, LayoutSettings
from canvaslog.core.clock import ManualClock
from canvaslog.core.envelope import EventEnvelope
from canvaslog.core.errors import UnreducibleEventType
from canvaslog.core.events import Event
from canvaslog.core.reducer import Reducer
from canvaslog.core.registry import TypeRegistry

from .conftest import add_node_payload, edge_payload


@pytest.fixture
def env():
    return EventEnvelope(register_canvas_types(TypeRegistry()), clock=ManualClock())


@pytest.fixture
def reducer():
    return build_canvas_reducer(register_canvas_types(TypeRegistry()))


def _fold(reducer, env, *items):
    state = CanvasState.initial()
    for seq, (event_type, payload) in enumerate(items, start=1):
        state = reducer.apply(state, env.construct(event_type, payload).with_seq(seq))
    return state


def test_reducer_does_not_mutate_input(reducer, env):
    state = _fold(reducer, env, ("ADD_NODE", add_node_payload("n1", 0, 0)))
    before = copy.deepcopy(state.to_dict())
    reducer.apply(state, env.construct("MOVE_NODE", {"nodeId": "n1", "to": {"x": 300, "y": 300}}).with_seq(2))
    assert state.to_dict() == before


def test_same_events_same_state(reducer, env):
    items = [
        ("ADD_NODE", add_node_payload("a", 10, 10)),
        ("ADD_NODE", add_node_payload("b", 10, 10, node_type="agent")),
        ("CREATE_EDGE", edge_payload("e1", "a", "b")),
        ("ZOOM_CANVAS", {"toZoom": 2.5}),
    ]
    assert _fold(reducer, env, *items) == _fold(reducer, env, *items)


def test_add_node_snaps_and_titles(reducer, env):
    state = _fold(
        reducer,
        env,
        ("ADD_NODE", add_node_payload("n1", 103, 97)),
        ("ADD_NODE", add_node_payload("n2", 500, 500, node_type="agent")),
    )
    assert state.nodes["n1"]["position"] == {"x": 104, "y": 96}
    assert state.nodes["n1"]["title"] == "Document 1"
    assert state.nodes["n2"]["title"] == "Agent 2"


def test_duplicate_node_id_is_skipped(reducer, env):
    state = _fold(
        reducer,
        env,
        ("ADD_NODE", add_node_payload("n1", 0, 0, title="first")),
        ("ADD_NODE", add_node_payload("n1", 400, 400, title="second")),
    )
    assert state.nodes["n1"]["title"] == "first"


def test_move_scenario(reducer, env):
    state = _fold(
        reducer,
        env,
        ("ADD_NODE", add_node_payload("n1", 103, 97)),
        ("MOVE_NODE", {"nodeId": "n1", "to": {"x": 108, "y": 98}}),
    )
    assert state.nodes["n1"]["position"] == {"x": 104, "y": 96}


def test_create_edge_with_missing_endpoint_is_logged_not_applied(reducer, env, caplog):
    with caplog.at_level(logging.WARNING):
        state = _fold(
            reducer,
            env,
            ("ADD_NODE", add_node_payload("a", 0, 0)),
            ("CREATE_EDGE", edge_payload("e1", "a", "ghost")),
        )
    assert state.edges == {}
    assert "edge endpoint missing" in caplog.text


def test_delete_node_does_not_cascade(reducer, env):
    state = _fold(
        reducer,
        env,
        ("ADD_NODE", add_node_payload("a", 0, 0)),
        ("ADD_NODE", add_node_payload("b", 200, 0)),
        ("CREATE_EDGE", edge_payload("e1", "a", "b")),
        ("DELETE_NODE", {"nodeId": "a"}),
    )
    assert "a" not in state.nodes
    assert "e1" in state.edges


def test_update_edge_path(reducer, env):
    path = {"type": "straight", "start": {"x": 0, "y": 0}, "end": {"x": 200, "y": 0}}
    state = _fold(
        reducer,
        env,
        ("ADD_NODE", add_node_payload("a", 0, 0)),
        ("ADD_NODE", add_node_payload("b", 200, 0)),
        ("CREATE_EDGE", edge_payload("e1", "a", "b")),
        ("UPDATE_EDGE_PATH", {"edgeId": "e1", "newPath": path}),
    )
    assert state.edges["e1"]["edgeType"] == "straight"
    assert state.edges["e1"]["path"]["end"] == {"x": 200, "y": 0}


def test_selection(reducer, env):
    state = _fold(
        reducer,
        env,
        ("SELECT_ELEMENT", {"elementId": "a"}),
        ("SELECT_ELEMENT", {"elementId": "b", "multiSelect": True}),
    )
    assert state.selection == ("a", "b")
    state = reducer.apply(state, env.construct("SELECT_ELEMENT", {"elementId": None}).with_seq(3))
    assert state.selection == ()


def test_viewport_is_clamped_by_layout(env):
    layout = LayoutSettings(zoom_min=0.5, zoom_max=2.0, pan_limit=100)
    reducer = build_canvas_reducer(register_canvas_types(TypeRegistry()))
    state = CanvasState.initial(layout)
    state = reducer.apply(state, env.construct("ZOOM_CANVAS", {"toZoom": 4.0}).with_seq(1))
    assert state.viewport.zoom == 2.0
    pan = {"toViewBox": {"x": 5000, "y": -5000, "width": 1200, "height": 800}}
    state = reducer.apply(state, env.construct("PAN_CANVAS", pan).with_seq(2))
    assert (state.viewport.x, state.viewport.y) == (100, -100)
    reset = {"toViewBox": {"x": 0, "y": 0, "width": 1200, "height": 800}, "toZoom": 1.0}
    state = reducer.apply(state, env.construct("RESET_VIEW", reset).with_seq(3))
    assert (state.viewport.x, state.viewport.y, state.viewport.zoom) == (0, 0, 1.0)


def test_application_prefix_is_a_no_op(reducer, env):
    state = _fold(reducer, env, ("ADD_NODE", add_node_payload("a", 0, 0)))
    after = reducer.apply(state, env.construct("CHAIN_STEP", {"x": 1}).with_seq(2))
    assert after is state


def test_unknown_type_strict_and_permissive():
    ev = Event(type="FUTURE_THING", payload=None, timestamp=ManualClock().now(), seq=1)
    with pytest.raises(UnreducibleEventType):
        Reducer().apply({}, ev)
    state = {"untouched": True}
    assert Reducer(permissive=True).apply(state, ev) is state
