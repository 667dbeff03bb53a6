"""
Reducer: pure state transition functions.

The reducer must be:
- Pure (no side effects, no I/O, no randomness, no clock reads)
- Deterministic (same state + event -> same state)

Every event type resolves to exactly one arm: a registered handler, an
explicit pass-through (registered free-form prefixes), or the default arm,
which is a no-op in permissive mode and ``UnreducibleEventType`` otherwise.
"""

from typing import Any, Callable, Dict, Iterable, Set

from .errors import UnreducibleEventType
from .events import Event

# Handler signature: (current_state, event) -> new_state
Handler = Callable[[Any, Event], Any]


class Reducer:
    """
    Registry of event handlers for state transitions.

    Usage:
        reducer = Reducer()
        reducer.register("ADD_NODE", on_add_node)
        new_state = reducer.apply(state, event)
    """

    def __init__(self, permissive: bool = False) -> None:
        self.permissive = permissive
        self._handlers: Dict[str, Handler] = {}
        self._passthrough: Set[str] = set()

    def register(self, event_type: str, handler: Handler) -> None:
        """
        Register event handler.

        Args:
            event_type: Event type string
            handler: Pure function (current_state, event) -> new_state
        """
        self._handlers[event_type] = handler

    def passthrough(self, prefix: str) -> None:
        """Treat every type starting with ``prefix`` as a deliberate no-op."""
        self._passthrough.add(prefix)

    def handles(self, event_type: str) -> bool:
        return event_type in self._handlers or self._is_passthrough(event_type)

    def _is_passthrough(self, event_type: str) -> bool:
        return any(event_type.startswith(p) for p in self._passthrough)

    def apply(self, state: Any, event: Event) -> Any:
        """
        Apply event to state using the registered handler.

        Raises:
            UnreducibleEventType: if no arm matches and the reducer is strict
        """
        handler = self._handlers.get(event.type)
        if handler is not None:
            return handler(state, event)
        if self._is_passthrough(event.type) or self.permissive:
            return state
        raise UnreducibleEventType(event.type)

    def fold(self, state: Any, events: Iterable[Event]) -> Any:
        """Apply ``events`` in order."""
        for ev in events:
            state = self.apply(state, ev)
        return state
