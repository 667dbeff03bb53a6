"""
Canvas aggregate state.

Never persisted directly; always derived by folding events. The layout
settings travel inside the state so the reducer needs nothing else to
produce a deterministic result.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from ..config import Settings

DEFAULT_VIEW_WIDTH = 1200.0
DEFAULT_VIEW_HEIGHT = 800.0
DEFAULT_ZOOM = 1.0


@dataclass(frozen=True)
class LayoutSettings:
    grid_unit: int = 8
    node_radius: int = 30
    max_search_radius: int = 32
    zoom_min: float = 0.1
    zoom_max: float = 5.0
    pan_limit: float = 10000.0

    @staticmethod
    def from_settings(settings: Settings) -> "LayoutSettings":
        return LayoutSettings(
            grid_unit=settings.grid_unit,
            node_radius=settings.node_radius,
            max_search_radius=settings.max_search_radius,
            zoom_min=settings.zoom_min,
            zoom_max=settings.zoom_max,
            pan_limit=settings.pan_limit,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "grid_unit": self.grid_unit,
            "node_radius": self.node_radius,
            "max_search_radius": self.max_search_radius,
            "zoom_min": self.zoom_min,
            "zoom_max": self.zoom_max,
            "pan_limit": self.pan_limit,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "LayoutSettings":
        return LayoutSettings(**{k: v for k, v in (data or {}).items() if k in LayoutSettings.__dataclass_fields__})


@dataclass(frozen=True)
class Viewport:
    """Pan offset (x, y), visible size and zoom scale."""
    x: float = 0.0
    y: float = 0.0
    width: float = DEFAULT_VIEW_WIDTH
    height: float = DEFAULT_VIEW_HEIGHT
    zoom: float = DEFAULT_ZOOM

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height, "zoom": self.zoom}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Viewport":
        return Viewport(**{k: v for k, v in (data or {}).items() if k in Viewport.__dataclass_fields__})


@dataclass(frozen=True)
class CanvasState:
    """
    Workspace state: nodes, edges, viewport and selection.

    Fields:
        nodes: node id -> {"id", "nodeType", "position": {"x", "y"}, "title", "data"}
        edges: edge id -> {"id", "source", "target", "sourceAnchor", "targetAnchor",
               "edgeType", "style", "path"}
        viewport: current pan/zoom
        selection: selected element ids, in selection order
    """
    layout: LayoutSettings = field(default_factory=LayoutSettings)
    nodes: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    edges: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    viewport: Viewport = field(default_factory=Viewport)
    selection: Tuple[str, ...] = ()

    @staticmethod
    def initial(layout: Optional[LayoutSettings] = None) -> "CanvasState":
        return CanvasState(layout=layout or LayoutSettings())

    def evolve(self, **changes: Any) -> "CanvasState":
        return replace(self, **changes)

    def get_node(self, node_id: str) -> Optional[Dict[str, Any]]:
        return self.nodes.get(node_id)

    def edges_touching(self, node_id: str) -> Tuple[str, ...]:
        """Ids of edges whose source or target is ``node_id``, in insertion order."""
        return tuple(
            edge_id
            for edge_id, edge in self.edges.items()
            if edge.get("source") == node_id or edge.get("target") == node_id
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "layout": self.layout.to_dict(),
            "nodes": {k: dict(v) for k, v in self.nodes.items()},
            "edges": {k: dict(v) for k, v in self.edges.items()},
            "viewport": self.viewport.to_dict(),
            "selection": list(self.selection),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "CanvasState":
        data = data or {}
        return CanvasState(
            layout=LayoutSettings.from_dict(data.get("layout", {})),
            nodes={k: dict(v) for k, v in data.get("nodes", {}).items()},
            edges={k: dict(v) for k, v in data.get("edges", {}).items()},
            viewport=Viewport.from_dict(data.get("viewport", {})),
            selection=tuple(data.get("selection", [])),
        )
