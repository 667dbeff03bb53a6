"""
Payload schemas for canvas events.

Each model validates one event type's payload. Field names are snake_case in
Python and camelCase on the wire; ``register_canvas_types`` wires them into a
TypeRegistry together with free-form application prefixes.
"""

import math
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..core.registry import TypeRegistry, any_json

ADD_NODE = "ADD_NODE"
MOVE_NODE = "MOVE_NODE"
DELETE_NODE = "DELETE_NODE"
CREATE_EDGE = "CREATE_EDGE"
DELETE_EDGE = "DELETE_EDGE"
UPDATE_EDGE_PATH = "UPDATE_EDGE_PATH"
SELECT_ELEMENT = "SELECT_ELEMENT"
PAN_CANVAS = "PAN_CANVAS"
ZOOM_CANVAS = "ZOOM_CANVAS"
RESET_VIEW = "RESET_VIEW"

CANVAS_EVENT_TYPES = (
    ADD_NODE,
    MOVE_NODE,
    DELETE_NODE,
    CREATE_EDGE,
    DELETE_EDGE,
    UPDATE_EDGE_PATH,
    SELECT_ELEMENT,
    PAN_CANVAS,
    ZOOM_CANVAS,
    RESET_VIEW,
)

# Free-form application events registered by default.
APPLICATION_PREFIXES = ("CHAIN_",)

ZOOM_LIMIT_MIN = 0.1
ZOOM_LIMIT_MAX = 5.0
MAX_TITLE_LENGTH = 100


class CanvasModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class Position(CanvasModel):
    x: float
    y: float

    @field_validator("x", "y")
    @classmethod
    def _finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("coordinate must be a finite number")
        return v


class ViewBox(CanvasModel):
    x: float
    y: float
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class ConnectionPoint(CanvasModel):
    node_id: str = Field(min_length=1)
    anchor_id: str = Field(default="center", min_length=1)
    position: Optional[Position] = None


class EdgeStyle(CanvasModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    stroke: Optional[str] = None
    stroke_width: Optional[float] = Field(default=None, gt=0)
    stroke_dasharray: Optional[str] = None
    opacity: Optional[float] = Field(default=None, ge=0, le=1)


class ControlPoints(CanvasModel):
    cp1: Position
    cp2: Position


EdgeType = Literal["bezier", "straight", "orthogonal"]


class EdgePath(CanvasModel):
    type: EdgeType
    start: Position
    end: Position
    control_points: Optional[ControlPoints] = None
    waypoints: Optional[List[Position]] = None


class CanvasPayload(CanvasModel):
    """Fields shared by every canvas payload."""
    aggregate_id: Optional[str] = Field(default=None, min_length=1)


class AddNodePayload(CanvasPayload):
    node_id: str = Field(min_length=1)
    node_type: Literal["document", "agent"]
    position: Position
    title: Optional[str] = Field(default=None, min_length=1, max_length=MAX_TITLE_LENGTH)
    data: Optional[Dict[str, Any]] = None


class MoveNodePayload(CanvasPayload):
    node_id: str = Field(min_length=1)
    to_position: Position = Field(
        validation_alias=AliasChoices("toPosition", "to", "to_position"),
        serialization_alias="toPosition",
    )
    from_position: Optional[Position] = Field(
        default=None,
        validation_alias=AliasChoices("fromPosition", "from", "from_position"),
        serialization_alias="fromPosition",
    )
    is_dragging: Optional[bool] = None


class DeleteNodePayload(CanvasPayload):
    node_id: str = Field(min_length=1)
    node_type: Optional[Literal["document", "agent"]] = None
    position: Optional[Position] = None
    data: Optional[Dict[str, Any]] = None


class CreateEdgePayload(CanvasPayload):
    edge_id: str = Field(min_length=1)
    source_connection: ConnectionPoint
    target_connection: ConnectionPoint
    edge_type: EdgeType = "bezier"
    style: Optional[EdgeStyle] = None
    path: Optional[EdgePath] = None


class DeleteEdgePayload(CanvasPayload):
    edge_id: str = Field(min_length=1)
    source_connection: Optional[ConnectionPoint] = None
    target_connection: Optional[ConnectionPoint] = None
    edge_type: Optional[EdgeType] = None


class UpdateEdgePathPayload(CanvasPayload):
    edge_id: str = Field(min_length=1)
    new_path: EdgePath
    old_path: Optional[EdgePath] = None
    reason: Optional[str] = None


class SelectElementPayload(CanvasPayload):
    element_id: Optional[str] = None
    element_type: Optional[Literal["node", "edge"]] = None
    previous_selection: Optional[str] = None
    multi_select: bool = False


class PanCanvasPayload(CanvasPayload):
    to_view_box: ViewBox
    from_view_box: Optional[ViewBox] = None
    delta_x: float = 0.0
    delta_y: float = 0.0
    is_panning: Optional[bool] = None


class ZoomCanvasPayload(CanvasPayload):
    to_zoom: float = Field(ge=ZOOM_LIMIT_MIN, le=ZOOM_LIMIT_MAX)
    from_zoom: Optional[float] = Field(default=None, ge=ZOOM_LIMIT_MIN, le=ZOOM_LIMIT_MAX)
    to_view_box: Optional[ViewBox] = None
    from_view_box: Optional[ViewBox] = None
    zoom_center: Optional[Position] = None
    zoom_delta: Optional[float] = None


class ResetViewPayload(CanvasPayload):
    to_view_box: ViewBox
    to_zoom: float = Field(ge=ZOOM_LIMIT_MIN, le=ZOOM_LIMIT_MAX)
    from_view_box: Optional[ViewBox] = None
    from_zoom: Optional[float] = Field(default=None, ge=ZOOM_LIMIT_MIN, le=ZOOM_LIMIT_MAX)
    reset_type: Literal["keyboard", "button", "auto"] = "keyboard"


PAYLOAD_MODELS = {
    ADD_NODE: AddNodePayload,
    MOVE_NODE: MoveNodePayload,
    DELETE_NODE: DeleteNodePayload,
    CREATE_EDGE: CreateEdgePayload,
    DELETE_EDGE: DeleteEdgePayload,
    UPDATE_EDGE_PATH: UpdateEdgePathPayload,
    SELECT_ELEMENT: SelectElementPayload,
    PAN_CANVAS: PanCanvasPayload,
    ZOOM_CANVAS: ZoomCanvasPayload,
    RESET_VIEW: ResetViewPayload,
}


def register_canvas_types(registry: TypeRegistry, prefixes=APPLICATION_PREFIXES) -> TypeRegistry:
    """Register every canvas payload model plus free-form application prefixes."""
    for event_type, model in PAYLOAD_MODELS.items():
        registry.register(event_type, model)
    for prefix in prefixes:
        registry.register_prefix(prefix, any_json)
    return registry
