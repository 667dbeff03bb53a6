"""
Session-local undo/redo over a linear event buffer.
"""

from .cursor import UndoRedoCursor

__all__ = ["UndoRedoCursor"]
