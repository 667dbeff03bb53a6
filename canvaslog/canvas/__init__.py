"""
Canvas workspace domain: payload schemas, state, placement and reducer handlers.
"""

from .state import CanvasState, LayoutSettings, Viewport
from .schemas import CANVAS_EVENT_TYPES, PAYLOAD_MODELS, register_canvas_types
from .placement import snap, snap_value, resolve_position
from .handlers import build_canvas_reducer, register_handlers

__all__ = [
    "CanvasState",
    "LayoutSettings",
    "Viewport",
    "CANVAS_EVENT_TYPES",
    "PAYLOAD_MODELS",
    "register_canvas_types",
    "snap",
    "snap_value",
    "resolve_position",
    "build_canvas_reducer",
    "register_handlers",
]
