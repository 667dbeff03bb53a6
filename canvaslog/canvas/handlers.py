"""
Reducer handlers for canvas state.

All handlers are pure and deterministic: everything they need (grid unit,
node radius, zoom and pan bounds) comes from the state or the payload.
A handler never rejects an event that is already in the log; an event it
cannot apply is logged and leaves the state unchanged.
"""

import logging
from typing import Any, Dict, Optional

from ..core.errors import NoFreePositionFound
from ..core.events import Event
from ..core.reducer import Reducer
from ..core.registry import TypeRegistry
from . import schemas
from .placement import as_point, as_position, resolve_position
from .state import CanvasState, Viewport

logger = logging.getLogger(__name__)


def build_canvas_reducer(registry: Optional[TypeRegistry] = None, permissive: Optional[bool] = None) -> Reducer:
    """
    Build the canvas reducer.

    Registered application prefixes in ``registry`` become explicit
    pass-through arms. ``permissive`` defaults to the registry's mode.
    """
    if permissive is None:
        permissive = registry.permissive if registry is not None else False
    reducer = Reducer(permissive=permissive)
    register_handlers(reducer)
    if registry is not None:
        for prefix in registry.prefixes():
            reducer.passthrough(prefix)
    return reducer


def register_handlers(reducer: Reducer) -> None:
    reducer.register(schemas.ADD_NODE, on_add_node)
    reducer.register(schemas.MOVE_NODE, on_move_node)
    reducer.register(schemas.DELETE_NODE, on_delete_node)
    reducer.register(schemas.CREATE_EDGE, on_create_edge)
    reducer.register(schemas.DELETE_EDGE, on_delete_edge)
    reducer.register(schemas.UPDATE_EDGE_PATH, on_update_edge_path)
    reducer.register(schemas.SELECT_ELEMENT, on_select_element)
    reducer.register(schemas.PAN_CANVAS, on_pan_canvas)
    reducer.register(schemas.ZOOM_CANVAS, on_zoom_canvas)
    reducer.register(schemas.RESET_VIEW, on_reset_view)


def _load_state(cur) -> CanvasState:
    if isinstance(cur, CanvasState):
        return cur
    if isinstance(cur, dict):
        return CanvasState.from_dict(cur)
    return CanvasState.initial()


def _skip(ev: Event, reason: str, **fields: Any) -> None:
    logger.warning(
        "Skipping %s at seq %s: %s",
        ev.type,
        ev.seq,
        reason,
        extra={"event_type": ev.type, "seq": ev.seq, **fields},
    )


def _default_title(node_type: str, count: int) -> str:
    return f"{'Document' if node_type == 'document' else 'Agent'} {count + 1}"


def on_add_node(cur, ev: Event) -> CanvasState:
    state = _load_state(cur)
    payload: Dict[str, Any] = ev.payload or {}
    node_id = payload["nodeId"]

    if node_id in state.nodes:
        _skip(ev, "duplicate node id", node_id=node_id)
        return state

    try:
        point = resolve_position(as_point(payload["position"]), state.nodes, state.layout, node_id)
    except NoFreePositionFound:
        _skip(ev, "no free position", node_id=node_id)
        return state

    node = {
        "id": node_id,
        "nodeType": payload["nodeType"],
        "position": as_position(point),
        "title": payload.get("title") or _default_title(payload["nodeType"], len(state.nodes)),
        "data": dict(payload.get("data") or {}),
    }
    nodes = dict(state.nodes)
    nodes[node_id] = node
    return state.evolve(nodes=nodes)


def on_move_node(cur, ev: Event) -> CanvasState:
    state = _load_state(cur)
    payload: Dict[str, Any] = ev.payload or {}
    node_id = payload["nodeId"]

    node = state.nodes.get(node_id)
    if node is None:
        _skip(ev, "unknown node", node_id=node_id)
        return state

    try:
        point = resolve_position(as_point(payload["toPosition"]), state.nodes, state.layout, node_id)
    except NoFreePositionFound:
        _skip(ev, "no free position", node_id=node_id)
        return state

    nodes = dict(state.nodes)
    nodes[node_id] = {**node, "position": as_position(point)}
    return state.evolve(nodes=nodes)


def on_delete_node(cur, ev: Event) -> CanvasState:
    # No cascade: the writer appends DELETE_EDGE for attached edges first.
    state = _load_state(cur)
    node_id = (ev.payload or {})["nodeId"]
    if node_id not in state.nodes:
        _skip(ev, "unknown node", node_id=node_id)
        return state

    dangling = state.edges_touching(node_id)
    if dangling:
        _skip(ev, "node still has edges; deleting node only", node_id=node_id, edge_ids=list(dangling))

    nodes = dict(state.nodes)
    del nodes[node_id]
    selection = tuple(s for s in state.selection if s != node_id)
    return state.evolve(nodes=nodes, selection=selection)


def on_create_edge(cur, ev: Event) -> CanvasState:
    state = _load_state(cur)
    payload: Dict[str, Any] = ev.payload or {}
    edge_id = payload["edgeId"]
    source = payload["sourceConnection"]
    target = payload["targetConnection"]

    missing = [c["nodeId"] for c in (source, target) if c["nodeId"] not in state.nodes]
    if missing:
        _skip(ev, "edge endpoint missing", edge_id=edge_id, missing=missing)
        return state

    edge = {
        "id": edge_id,
        "source": source["nodeId"],
        "target": target["nodeId"],
        "sourceAnchor": source.get("anchorId", "center"),
        "targetAnchor": target.get("anchorId", "center"),
        "edgeType": payload.get("edgeType", "bezier"),
        "style": dict(payload.get("style") or {}),
        "path": payload.get("path"),
    }
    edges = dict(state.edges)
    edges[edge_id] = edge
    return state.evolve(edges=edges)


def on_delete_edge(cur, ev: Event) -> CanvasState:
    state = _load_state(cur)
    edge_id = (ev.payload or {})["edgeId"]
    if edge_id not in state.edges:
        _skip(ev, "unknown edge", edge_id=edge_id)
        return state
    edges = dict(state.edges)
    del edges[edge_id]
    selection = tuple(s for s in state.selection if s != edge_id)
    return state.evolve(edges=edges, selection=selection)


def on_update_edge_path(cur, ev: Event) -> CanvasState:
    state = _load_state(cur)
    payload: Dict[str, Any] = ev.payload or {}
    edge_id = payload["edgeId"]
    edge = state.edges.get(edge_id)
    if edge is None:
        _skip(ev, "unknown edge", edge_id=edge_id)
        return state
    edges = dict(state.edges)
    edges[edge_id] = {**edge, "path": payload["newPath"], "edgeType": payload["newPath"]["type"]}
    return state.evolve(edges=edges)


def on_select_element(cur, ev: Event) -> CanvasState:
    state = _load_state(cur)
    payload: Dict[str, Any] = ev.payload or {}
    element_id = payload.get("elementId")

    if element_id is None:
        return state.evolve(selection=())
    if payload.get("multiSelect"):
        if element_id in state.selection:
            return state
        return state.evolve(selection=state.selection + (element_id,))
    return state.evolve(selection=(element_id,))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _viewport_from_box(state: CanvasState, box: Dict[str, Any], zoom: float) -> Viewport:
    limit = state.layout.pan_limit
    return Viewport(
        x=_clamp(box["x"], -limit, limit),
        y=_clamp(box["y"], -limit, limit),
        width=box["width"],
        height=box["height"],
        zoom=_clamp(zoom, state.layout.zoom_min, state.layout.zoom_max),
    )


def on_pan_canvas(cur, ev: Event) -> CanvasState:
    state = _load_state(cur)
    box = (ev.payload or {})["toViewBox"]
    return state.evolve(viewport=_viewport_from_box(state, box, state.viewport.zoom))


def on_zoom_canvas(cur, ev: Event) -> CanvasState:
    state = _load_state(cur)
    payload: Dict[str, Any] = ev.payload or {}
    box = payload.get("toViewBox") or state.viewport.to_dict()
    return state.evolve(viewport=_viewport_from_box(state, box, payload["toZoom"]))


def on_reset_view(cur, ev: Event) -> CanvasState:
    state = _load_state(cur)
    payload: Dict[str, Any] = ev.payload or {}
    return state.evolve(viewport=_viewport_from_box(state, payload["toViewBox"], payload["toZoom"]))
