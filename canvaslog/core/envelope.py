"""
Event envelope: the only way to build an Event that may enter the log.
"""

from datetime import datetime
from typing import Any, Optional

from .canonical import parse_timestamp, to_utc
from .clock import SystemClock
from .errors import PayloadRequired
from .events import Event
from .payload import MISSING
from .registry import TypeRegistry, check_type_grammar


class EventEnvelope:
    """
    Builds validated, immutable events.

    Steps:
    1. reject a type that fails ``^[A-Z0-9_]+$`` (TypeGrammarViolation)
    2. reject an absent payload (PayloadRequired); ``None`` is accepted
    3. validate the payload through the registry
    4. default the timestamp to ``clock.now()``; timestamps are stored in UTC

    The returned event has no ``seq``; only the log assigns one.
    """

    def __init__(self, registry: TypeRegistry, clock=None) -> None:
        self.registry = registry
        self.clock = clock or SystemClock()

    def construct(
        self,
        type: str,
        payload: Any = MISSING,
        actor_id: Optional[str] = None,
        timestamp: Optional[datetime] = None,
        id: Optional[str] = None,
    ) -> Event:
        check_type_grammar(type)
        if payload is MISSING:
            raise PayloadRequired(type)
        normalized = self.registry.validate(type, payload)
        if timestamp is None:
            timestamp = self.clock.now()
        elif isinstance(timestamp, str):
            timestamp = parse_timestamp(timestamp)
        timestamp = to_utc(timestamp)
        return Event(
            type=type,
            payload=normalized,
            timestamp=timestamp,
            id=id,
            actor_id=actor_id,
        )
