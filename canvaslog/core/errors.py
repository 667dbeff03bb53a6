"""
Exception types for the canvas event log.

Every domain error carries a stable ``code`` so batch results and transport
error bodies can report failures without leaking Python class names.
"""

from typing import Optional


class CanvasLogError(Exception):
    """Base class for all canvaslog errors."""

    code = "CANVASLOG_ERROR"


class TypeGrammarViolation(CanvasLogError):
    """Raised when an event type does not match ``^[A-Z0-9_]+$``."""

    code = "TYPE_GRAMMAR_VIOLATION"

    def __init__(self, event_type: object) -> None:
        super().__init__(
            f"Event type must contain only uppercase letters, numbers, and underscores: {event_type!r}"
        )
        self.event_type = event_type


class PayloadRequired(CanvasLogError):
    """Raised when an event is constructed without a payload (``None`` is allowed)."""

    code = "PAYLOAD_REQUIRED"

    def __init__(self, event_type: str) -> None:
        super().__init__(f"payload is required for event type {event_type}")
        self.event_type = event_type


class SchemaViolation(CanvasLogError):
    """Raised when a payload fails the schema registered for its type."""

    code = "SCHEMA_VIOLATION"

    def __init__(self, event_type: str, field: str, reason: str) -> None:
        super().__init__(f"{event_type}: {field or 'payload'}: {reason}")
        self.event_type = event_type
        self.field = field
        self.reason = reason


class UnknownEventType(CanvasLogError):
    """Raised by a strict registry for a type with no registered validator."""

    code = "UNKNOWN_EVENT_TYPE"

    def __init__(self, event_type: str) -> None:
        super().__init__(f"Unknown event type: {event_type}")
        self.event_type = event_type


class DuplicateTypeRegistration(CanvasLogError):
    """Raised when a type is registered twice with different validators."""

    code = "DUPLICATE_TYPE_REGISTRATION"

    def __init__(self, event_type: str) -> None:
        super().__init__(f"Event type already registered with a different validator: {event_type}")
        self.event_type = event_type


class UnreducibleEventType(CanvasLogError):
    """Raised when a strict reducer has no case for an event type."""

    code = "UNREDUCIBLE_EVENT_TYPE"

    def __init__(self, event_type: str) -> None:
        super().__init__(f"No handler for event type: {event_type}")
        self.event_type = event_type


class ConcurrentAppendConflict(CanvasLogError):
    """Raised when ``expected_seq`` does not match the current tail of the log."""

    code = "CONCURRENT_APPEND_CONFLICT"

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Append conflict: expected tail {expected}, found {actual}")
        self.expected = expected
        self.actual = actual


class NotFound(CanvasLogError):
    """Raised for an unknown event id or an aggregate with no events."""

    code = "NOT_FOUND"

    def __init__(self, kind: str, key: object) -> None:
        super().__init__(f"{kind} {key} not found")
        self.kind = kind
        self.key = key


class NothingToUndo(CanvasLogError):
    code = "NOTHING_TO_UNDO"


class NothingToRedo(CanvasLogError):
    code = "NOTHING_TO_REDO"


class NoFreePositionFound(CanvasLogError):
    """Raised when node placement exhausts its search radius."""

    code = "NO_FREE_POSITION_FOUND"

    def __init__(self, node_id: str, max_radius: int) -> None:
        super().__init__(f"No free position for node {node_id} within {max_radius} grid rings")
        self.node_id = node_id
        self.max_radius = max_radius


class ReplayCancelled(CanvasLogError):
    """Raised when a replay is cancelled between fold steps."""

    code = "REPLAY_CANCELLED"

    def __init__(self, applied: int, last_seq: Optional[int] = None) -> None:
        super().__init__(f"Replay cancelled after {applied} events")
        self.applied = applied
        self.last_seq = last_seq


class EventStoreError(CanvasLogError):
    """Raised when event store persistence fails. Always fatal to the caller."""

    code = "EVENT_STORE_ERROR"


class IntegrityError(CanvasLogError):
    """Raised when hash chain or snapshot verification fails."""

    code = "INTEGRITY_ERROR"
