"""
EventService: transport-facing facade over the log, query service and replay.

Requests are pydantic models (dicts are accepted and validated); responses
are plain dicts in the ``{data, meta}`` or ``{data, pagination, meta}``
envelope. HTTP routing and authentication live outside this package.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Literal, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .canvas.state import CanvasState
from .core.canonical import format_timestamp
from .core.clock import SystemClock
from .core.errors import (
    CanvasLogError,
    PayloadRequired,
    SchemaViolation,
    TypeGrammarViolation,
    UnknownEventType,
)
from .core.events import StoredEvent
from .core.payload import MISSING
from .core.reducer import Reducer
from .core.registry import first_error
from .log.event_log import EventLog
from .log.filters import MAX_PAGE_LIMIT, EventFilter, Pagination
from .query import QueryService
from .replay.runner import replay

logger = logging.getLogger(__name__)

BATCH_MAX = 100

M = TypeVar("M", bound=BaseModel)


class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class CreateEventRequest(RequestModel):
    # type and payload are checked by the envelope so that batch items fail individually
    type: str
    payload: Any = None
    timestamp: Optional[datetime] = None
    user_id: Optional[str] = None
    id: Optional[str] = Field(default=None, min_length=1)
    expected_sequence: Optional[int] = Field(default=None, ge=0)

    def payload_or_missing(self) -> Any:
        return self.payload if "payload" in self.model_fields_set else MISSING


class CreateEventsBatchRequest(RequestModel):
    events: List[CreateEventRequest] = Field(min_length=1)


class ListEventsQuery(RequestModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1)
    order: Literal["asc", "desc"] = "asc"
    type: Optional[str] = None
    type_prefix: Optional[str] = None
    user_id: Optional[str] = None
    from_timestamp: Optional[datetime] = None
    to_timestamp: Optional[datetime] = None
    has_payload: Optional[bool] = None
    payload_contains: Optional[str] = None
    aggregate_id: Optional[str] = None

    def to_filter(self) -> EventFilter:
        return EventFilter(
            type=self.type,
            type_prefix=self.type_prefix,
            actor_id=self.user_id,
            from_timestamp=self.from_timestamp,
            to_timestamp=self.to_timestamp,
            has_payload=self.has_payload,
            payload_contains=self.payload_contains,
            aggregate_id=self.aggregate_id,
        )

    def to_pagination(self, max_limit: int = MAX_PAGE_LIMIT) -> Pagination:
        if self.limit > max_limit:
            raise SchemaViolation(type(self).__name__, "limit", f"must be at most {max_limit}")
        return Pagination(page=self.page, limit=self.limit, order=self.order, max_limit=max_limit)


class EventStatsQuery(RequestModel):
    group_by: Literal["type", "userId", "hour", "day", "week", "month"]
    from_timestamp: Optional[datetime] = None
    to_timestamp: Optional[datetime] = None
    types: Optional[List[str]] = None
    user_id: Optional[str] = None

    def to_filter(self) -> EventFilter:
        return EventFilter(
            types=tuple(self.types) if self.types is not None else None,
            actor_id=self.user_id,
            from_timestamp=self.from_timestamp,
            to_timestamp=self.to_timestamp,
        )


class ReplayQuery(RequestModel):
    aggregate_id: str = Field(min_length=1)
    up_to_timestamp: Optional[datetime] = None
    up_to_event_id: Optional[str] = Field(default=None, min_length=1)
    event_types: Optional[List[str]] = None


class ValidateEventRequest(RequestModel):
    type: str = Field(min_length=1)
    payload: Any = None
    timestamp: Optional[datetime] = None
    user_id: Optional[str] = None


def _parse(model: Type[M], request: Union[M, Dict[str, Any]]) -> M:
    if isinstance(request, model):
        return request
    try:
        return model.model_validate(request)
    except ValidationError as ex:
        field, reason = first_error(ex)
        raise SchemaViolation(model.__name__, field, reason) from ex


def event_to_response(ev: StoredEvent) -> Dict[str, Any]:
    return {
        "sequence": ev.seq,
        "id": ev.id,
        "type": ev.type,
        "payload": ev.payload,
        "timestamp": format_timestamp(ev.timestamp),
        "userId": ev.actor_id,
    }


class EventService:
    """
    Args:
        log: Event log
        reducer: Reducer used for replay requests
        initial_state: Factory for the empty aggregate state
        clock: Time source for response metadata and validation warnings
        batch_max: Most events accepted by one batch request
        page_limit_max: Largest page size a listing may ask for
    """

    def __init__(
        self,
        log: EventLog,
        reducer: Reducer,
        initial_state: Callable[[], Any] = CanvasState.initial,
        clock=None,
        batch_max: int = BATCH_MAX,
        page_limit_max: int = MAX_PAGE_LIMIT,
    ) -> None:
        self.log = log
        self.reducer = reducer
        self.initial_state = initial_state
        self.clock = clock or SystemClock()
        self.batch_max = batch_max
        self.page_limit_max = page_limit_max
        self.query = QueryService(log)

    def _meta(self) -> Dict[str, Any]:
        return {"timestamp": format_timestamp(self.clock.now())}

    def create_event(self, request: Union[CreateEventRequest, Dict[str, Any]]) -> Dict[str, Any]:
        req = _parse(CreateEventRequest, request)
        stored = self.log.create(
            req.type,
            req.payload_or_missing(),
            actor_id=req.user_id,
            timestamp=req.timestamp,
            id=req.id,
            expected_seq=req.expected_sequence,
        )
        return {"data": event_to_response(stored), "meta": self._meta()}

    def create_events_batch(self, request: Union[CreateEventsBatchRequest, Dict[str, Any]]) -> Dict[str, Any]:
        req = _parse(CreateEventsBatchRequest, request)
        if len(req.events) > self.batch_max:
            raise SchemaViolation(
                CreateEventsBatchRequest.__name__, "events", f"at most {self.batch_max} events per batch"
            )
        drafts = [
            {
                "type": item.type,
                "payload": item.payload_or_missing(),
                "actor_id": item.user_id,
                "timestamp": item.timestamp,
                "id": item.id,
            }
            for item in req.events
        ]
        result = self.log.append_batch(drafts)
        return {
            "data": {
                "created": [event_to_response(ev) for ev in result.created],
                "failed": [f.to_dict() for f in result.failed],
            },
            "meta": self._meta(),
        }

    def get_event(self, event_id: str) -> Dict[str, Any]:
        """Raises NotFound for an unknown id."""
        return {"data": event_to_response(self.log.get_by_id(event_id)), "meta": self._meta()}

    def list_events(self, query: Union[ListEventsQuery, Dict[str, Any], None] = None) -> Dict[str, Any]:
        q = _parse(ListEventsQuery, query or {})
        result = self.query.list_events(q.to_filter(), q.to_pagination(self.page_limit_max))
        return {
            "data": [event_to_response(ev) for ev in result.items],
            "pagination": result.pagination_dict(),
            "meta": self._meta(),
        }

    def statistics(self, query: Union[EventStatsQuery, Dict[str, Any]]) -> Dict[str, Any]:
        q = _parse(EventStatsQuery, query)
        stats = self.query.statistics(q.group_by, q.to_filter())
        return {"data": stats.to_dict(), "meta": self._meta()}

    def replay(self, query: Union[ReplayQuery, Dict[str, Any]]) -> Dict[str, Any]:
        """Raises NotFound when the aggregate has no events or the cutoff id is unknown."""
        q = _parse(ReplayQuery, query)
        result = replay(
            self.log,
            self.reducer,
            self.initial_state(),
            up_to_timestamp=q.up_to_timestamp,
            up_to_event_id=q.up_to_event_id,
            event_types=q.event_types,
            aggregate_id=q.aggregate_id,
        )
        state = result.state
        return {
            "data": {
                "aggregateId": q.aggregate_id,
                "eventsReplayed": result.applied,
                "finalState": state.to_dict() if hasattr(state, "to_dict") else state,
                "replayTimestamp": format_timestamp(self.clock.now()),
            },
            "meta": self._meta(),
        }

    def validate_event(self, request: Union[ValidateEventRequest, Dict[str, Any]]) -> Dict[str, Any]:
        """
        Run envelope construction without appending.

        Returns ``{valid, errors, warnings}``; errors and warnings are
        ``{field, message}`` entries.
        """
        req = _parse(ValidateEventRequest, request)
        payload = req.payload if "payload" in req.model_fields_set else MISSING
        errors: List[Dict[str, str]] = []
        warnings: List[Dict[str, str]] = []

        try:
            event = self.log.envelope.construct(req.type, payload, actor_id=req.user_id, timestamp=req.timestamp)
        except (TypeGrammarViolation, UnknownEventType) as ex:
            errors.append({"field": "type", "message": str(ex)})
        except PayloadRequired as ex:
            errors.append({"field": "payload", "message": str(ex)})
        except SchemaViolation as ex:
            field = f"payload.{ex.field}" if ex.field else "payload"
            errors.append({"field": field, "message": ex.reason})
        except CanvasLogError as ex:
            errors.append({"field": "", "message": str(ex)})
        else:
            registry = self.log.registry
            if registry.permissive and not registry.is_known(event.type):
                warnings.append({"field": "type", "message": f"Unknown event type {event.type} accepted in permissive mode"})
            if event.timestamp > self.clock.now():
                warnings.append({"field": "timestamp", "message": "Timestamp is in the future"})

        return {
            "data": {"valid": not errors, "errors": errors, "warnings": warnings},
            "meta": self._meta(),
        }
