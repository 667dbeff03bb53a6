"""
Core event-sourcing primitives.

- Event: immutable change record
- TypeRegistry: event type -> payload validator
- EventEnvelope: validated event construction
- Reducer: pure state transitions
- Canonical: deterministic serialization
"""

from .events import Event, StoredEvent
from .registry import TypeRegistry, any_json, is_valid_type
from .envelope import EventEnvelope
from .reducer import Reducer
from .payload import MISSING, to_json_value
from .canonical import canonicalize, canonical_json_bytes, canonical_json_str
from .clock import SystemClock, ManualClock
from .errors import (
    CanvasLogError,
    TypeGrammarViolation,
    PayloadRequired,
    SchemaViolation,
    UnknownEventType,
    DuplicateTypeRegistration,
    UnreducibleEventType,
    ConcurrentAppendConflict,
    NotFound,
    NothingToUndo,
    NothingToRedo,
    NoFreePositionFound,
    ReplayCancelled,
    EventStoreError,
    IntegrityError,
)

__all__ = [
    "Event",
    "StoredEvent",
    "TypeRegistry",
    "any_json",
    "is_valid_type",
    "EventEnvelope",
    "Reducer",
    "MISSING",
    "to_json_value",
    "canonicalize",
    "canonical_json_bytes",
    "canonical_json_str",
    "SystemClock",
    "ManualClock",
    "CanvasLogError",
    "TypeGrammarViolation",
    "PayloadRequired",
    "SchemaViolation",
    "UnknownEventType",
    "DuplicateTypeRegistration",
    "UnreducibleEventType",
    "ConcurrentAppendConflict",
    "NotFound",
    "NothingToUndo",
    "NothingToRedo",
    "NoFreePositionFound",
    "ReplayCancelled",
    "EventStoreError",
    "IntegrityError",
]
