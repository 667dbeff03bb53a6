"""
Undo/redo cursor.

The cursor is a pointer into a linear buffer of events this session applied.
``pointer`` counts the active entries. Recording while ``pointer`` is behind
the end of the buffer truncates the redo tail. Undo and redo never invert
an event: they refold ``buffer[0:pointer]`` from the base state.

Not thread-safe. One cursor belongs to one session.
"""

import logging
from typing import Any, List, Tuple

from ..core.errors import NothingToRedo, NothingToUndo
from ..core.events import StoredEvent
from ..core.reducer import Reducer
from ..replay.runner import replay_events

logger = logging.getLogger(__name__)


class UndoRedoCursor:
    def __init__(self, reducer: Reducer, base_state: Any) -> None:
        self.reducer = reducer
        self.base_state = base_state
        self._buffer: List[StoredEvent] = []
        self._pointer = 0
        self._state = base_state

    @property
    def pointer(self) -> int:
        return self._pointer

    @property
    def buffer(self) -> Tuple[StoredEvent, ...]:
        return tuple(self._buffer)

    @property
    def state(self) -> Any:
        """State of the active prefix ``buffer[0:pointer]``."""
        return self._state

    def can_undo(self) -> bool:
        return self._pointer > 0

    def can_redo(self) -> bool:
        return self._pointer < len(self._buffer)

    def record(self, event: StoredEvent, state: Any = None) -> None:
        """
        Append ``event`` at the pointer, dropping any redo tail.

        ``state`` is the already-folded result when the caller has it;
        otherwise the event is folded here.
        """
        if self._pointer < len(self._buffer):
            dropped = len(self._buffer) - self._pointer
            del self._buffer[self._pointer:]
            logger.debug("Truncated %d redo entries", dropped)
        self._buffer.append(event)
        self._pointer += 1
        self._state = state if state is not None else self.reducer.apply(self._state, event)

    def undo(self) -> Any:
        """
        Deactivate the newest active entry and refold.

        Raises:
            NothingToUndo: pointer is already 0 (nothing changes)
        """
        if self._pointer == 0:
            raise NothingToUndo("nothing to undo")
        self._pointer -= 1
        self._state = self._refold()
        return self._state

    def redo(self) -> Any:
        """
        Reactivate the next buffered entry and refold.

        Raises:
            NothingToRedo: pointer is at the end of the buffer (nothing changes)
        """
        if self._pointer == len(self._buffer):
            raise NothingToRedo("nothing to redo")
        self._pointer += 1
        self._state = self._refold()
        return self._state

    def _refold(self) -> Any:
        return replay_events(self.reducer, self.base_state, self._buffer[:self._pointer]).state
