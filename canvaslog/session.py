"""
CanvasSession: one client's write path and local undo/redo.

Each gesture goes envelope -> log append -> fold into the live state ->
record in the undo cursor. Undo and redo only move the local view; they
never append to the shared log.
"""

from typing import Any, Dict, List, Optional, Tuple

from .canvas import schemas
from .canvas.placement import as_position, resolve_position
from .canvas.state import CanvasState
from .core.errors import NotFound
from .core.events import AGGREGATE_ID_KEY, StoredEvent
from .core.ids import new_edge_id, new_node_id
from .core.reducer import Reducer
from .log.event_log import EventLog
from .logging_config import get_logger
from .undo.cursor import UndoRedoCursor


class CanvasSession:
    """
    Args:
        log: Shared event log
        reducer: Canvas reducer
        state: Starting state (e.g. a late joiner's replay); empty canvas if None
        actor_id: Attribution stamped on every event
        aggregate_id: Added to payloads that do not carry one
        session_id: Trace id for logs
    """

    def __init__(
        self,
        log: EventLog,
        reducer: Reducer,
        state: Optional[CanvasState] = None,
        actor_id: Optional[str] = None,
        aggregate_id: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.log = log
        self.reducer = reducer
        self.actor_id = actor_id
        self.aggregate_id = aggregate_id
        self.cursor = UndoRedoCursor(reducer, state if state is not None else CanvasState.initial())
        self.logger = get_logger(__name__, trace_id=session_id or aggregate_id)

    @property
    def state(self) -> CanvasState:
        return self.cursor.state

    def dispatch(self, event_type: str, payload: Any, expected_seq: Optional[int] = None) -> StoredEvent:
        """Validate, append and apply one event."""
        if self.aggregate_id is not None and isinstance(payload, dict):
            payload = {AGGREGATE_ID_KEY: self.aggregate_id, **payload}
        event = self.log.envelope.construct(event_type, payload, actor_id=self.actor_id)
        stored = self.log.append(event, expected_seq=expected_seq)
        self.cursor.record(stored, self.reducer.apply(self.state, stored))
        self.logger.debug("Applied %s at seq %d", stored.type, stored.seq)
        return stored

    def _require_node(self, node_id: str) -> Dict[str, Any]:
        node = self.state.get_node(node_id)
        if node is None:
            raise NotFound("node", node_id)
        return node

    def add_node(
        self,
        node_type: str,
        position: Tuple[float, float],
        title: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        node_id: Optional[str] = None,
    ) -> StoredEvent:
        """
        Add a node near ``position``.

        Raises:
            NoFreePositionFound: before anything is appended
        """
        node_id = node_id or new_node_id()
        resolve_position(position, self.state.nodes, self.state.layout, node_id)
        payload: Dict[str, Any] = {
            "nodeId": node_id,
            "nodeType": node_type,
            "position": as_position(position),
        }
        if title is not None:
            payload["title"] = title
        if data is not None:
            payload["data"] = data
        return self.dispatch(schemas.ADD_NODE, payload)

    def move_node(self, node_id: str, to: Tuple[float, float], dragging: Optional[bool] = None) -> StoredEvent:
        node = self._require_node(node_id)
        resolve_position(to, self.state.nodes, self.state.layout, node_id)
        payload: Dict[str, Any] = {
            "nodeId": node_id,
            "toPosition": as_position(to),
            "fromPosition": dict(node["position"]),
        }
        if dragging is not None:
            payload["isDragging"] = dragging
        return self.dispatch(schemas.MOVE_NODE, payload)

    def delete_node(self, node_id: str) -> List[StoredEvent]:
        """
        Delete a node, first appending DELETE_EDGE for each attached edge.

        Returns:
            Every appended event, the DELETE_NODE last
        """
        node = self._require_node(node_id)
        appended = [self.delete_edge(edge_id) for edge_id in self.state.edges_touching(node_id)]
        payload = {
            "nodeId": node_id,
            "nodeType": node["nodeType"],
            "position": dict(node["position"]),
        }
        if node.get("data"):
            payload["data"] = node["data"]
        appended.append(self.dispatch(schemas.DELETE_NODE, payload))
        return appended

    def connect(
        self,
        source_id: str,
        target_id: str,
        edge_type: str = "bezier",
        style: Optional[Dict[str, Any]] = None,
        edge_id: Optional[str] = None,
        source_anchor: str = "center",
        target_anchor: str = "center",
    ) -> StoredEvent:
        self._require_node(source_id)
        self._require_node(target_id)
        payload: Dict[str, Any] = {
            "edgeId": edge_id or new_edge_id(),
            "sourceConnection": {"nodeId": source_id, "anchorId": source_anchor},
            "targetConnection": {"nodeId": target_id, "anchorId": target_anchor},
            "edgeType": edge_type,
        }
        if style is not None:
            payload["style"] = style
        return self.dispatch(schemas.CREATE_EDGE, payload)

    def delete_edge(self, edge_id: str) -> StoredEvent:
        edge = self.state.edges.get(edge_id)
        if edge is None:
            raise NotFound("edge", edge_id)
        return self.dispatch(schemas.DELETE_EDGE, {
            "edgeId": edge_id,
            "sourceConnection": {"nodeId": edge["source"], "anchorId": edge["sourceAnchor"]},
            "targetConnection": {"nodeId": edge["target"], "anchorId": edge["targetAnchor"]},
            "edgeType": edge["edgeType"],
        })

    def select(self, element_id: Optional[str], element_type: Optional[str] = None, multi: bool = False) -> StoredEvent:
        payload: Dict[str, Any] = {"elementId": element_id, "multiSelect": multi}
        if element_type is not None:
            payload["elementType"] = element_type
        if self.state.selection:
            payload["previousSelection"] = self.state.selection[-1]
        return self.dispatch(schemas.SELECT_ELEMENT, payload)

    def pan(self, x: float, y: float) -> StoredEvent:
        vp = self.state.viewport
        return self.dispatch(schemas.PAN_CANVAS, {
            "toViewBox": {"x": x, "y": y, "width": vp.width, "height": vp.height},
            "fromViewBox": {"x": vp.x, "y": vp.y, "width": vp.width, "height": vp.height},
            "deltaX": x - vp.x,
            "deltaY": y - vp.y,
        })

    def zoom(self, to_zoom: float) -> StoredEvent:
        vp = self.state.viewport
        return self.dispatch(schemas.ZOOM_CANVAS, {"toZoom": to_zoom, "fromZoom": vp.zoom})

    def reset_view(self, reset_type: str = "button") -> StoredEvent:
        default = CanvasState.initial(self.state.layout).viewport
        return self.dispatch(schemas.RESET_VIEW, {
            "toViewBox": {"x": default.x, "y": default.y, "width": default.width, "height": default.height},
            "toZoom": default.zoom,
            "resetType": reset_type,
        })

    def undo(self) -> CanvasState:
        """Raises NothingToUndo when there is nothing local to undo."""
        return self.cursor.undo()

    def redo(self) -> CanvasState:
        """Raises NothingToRedo when the redo tail is empty."""
        return self.cursor.redo()

    def can_undo(self) -> bool:
        return self.cursor.can_undo()

    def can_redo(self) -> bool:
        return self.cursor.can_redo()
