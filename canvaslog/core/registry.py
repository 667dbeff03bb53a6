"""
Type registry: event type -> payload validator.

A registry is an explicit value built at startup and handed to the envelope,
the log and the reducer. Tests build their own, so nothing is process-global.

A validator is either a pydantic model class (the payload is validated with
``model_validate`` and re-dumped in JSON mode using field aliases) or a plain
callable ``payload -> normalized payload`` that raises ``SchemaViolation`` or
``ValueError``.
"""

import inspect
import re
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, Union

from pydantic import BaseModel, ValidationError

from .errors import DuplicateTypeRegistration, SchemaViolation, TypeGrammarViolation, UnknownEventType
from .payload import JsonValue, to_json_value

TYPE_GRAMMAR = re.compile(r"^[A-Z0-9_]+$")

PayloadValidator = Union[Type[BaseModel], Callable[[JsonValue], JsonValue]]


def is_valid_type(event_type: object) -> bool:
    return isinstance(event_type, str) and TYPE_GRAMMAR.fullmatch(event_type) is not None


def check_type_grammar(event_type: object) -> str:
    if not is_valid_type(event_type):
        raise TypeGrammarViolation(event_type)
    return event_type  # type: ignore[return-value]


def any_json(payload: JsonValue) -> JsonValue:
    """Validator for free-form application events: any JSON value, including null."""
    return payload


class TypeRegistry:
    """
    Registry of payload validators keyed by event type or type prefix.

    Usage:
        registry = TypeRegistry()
        registry.register("ADD_NODE", AddNodePayload)
        registry.register_prefix("CHAIN_", any_json)
        payload = registry.validate("ADD_NODE", {...})

    Exact registrations win over prefixes; among prefixes the longest match wins.
    """

    def __init__(self, permissive: bool = False) -> None:
        self.permissive = permissive
        self._validators: Dict[str, PayloadValidator] = {}
        self._prefixes: Dict[str, PayloadValidator] = {}

    def register(self, event_type: str, validator: PayloadValidator) -> None:
        """
        Register a payload validator for ``event_type``.

        Idempotent for the same validator object.

        Raises:
            TypeGrammarViolation: if ``event_type`` is not a valid type token
            DuplicateTypeRegistration: if a different validator is already registered
        """
        check_type_grammar(event_type)
        self._put(self._validators, event_type, validator)

    def register_prefix(self, prefix: str, validator: PayloadValidator) -> None:
        """Register a validator for every type starting with ``prefix`` (e.g. ``"CHAIN_"``)."""
        check_type_grammar(prefix)
        self._put(self._prefixes, prefix, validator)

    def _put(self, table: Dict[str, PayloadValidator], key: str, validator: PayloadValidator) -> None:
        existing = table.get(key)
        if existing is not None:
            if existing is validator:
                return
            raise DuplicateTypeRegistration(key)
        table[key] = validator

    def lookup(self, event_type: str) -> Optional[PayloadValidator]:
        validator = self._validators.get(event_type)
        if validator is not None:
            return validator
        matches = [p for p in self._prefixes if event_type.startswith(p)]
        if not matches:
            return None
        return self._prefixes[max(matches, key=len)]

    def is_known(self, event_type: str) -> bool:
        return self.lookup(event_type) is not None

    def types(self) -> List[str]:
        return sorted(self._validators)

    def prefixes(self) -> List[str]:
        return sorted(self._prefixes)

    def validate(self, event_type: str, payload: Any) -> JsonValue:
        """
        Validate and normalize ``payload`` for ``event_type``.

        Returns:
            The normalized JSON payload

        Raises:
            SchemaViolation: if the payload fails the registered schema
            UnknownEventType: if no validator matches and the registry is strict
        """
        normalized = to_json_value(payload, event_type)
        validator = self.lookup(event_type)
        if validator is None:
            if self.permissive:
                return normalized
            raise UnknownEventType(event_type)
        return self._run(event_type, validator, normalized)

    def _run(self, event_type: str, validator: PayloadValidator, payload: JsonValue) -> JsonValue:
        if inspect.isclass(validator) and issubclass(validator, BaseModel):
            try:
                model = validator.model_validate(payload)
            except ValidationError as ex:
                field, reason = first_error(ex)
                raise SchemaViolation(event_type, field, reason) from ex
            return to_json_value(model.model_dump(mode="json", by_alias=True, exclude_none=True), event_type)
        try:
            result = validator(payload)
        except SchemaViolation:
            raise
        except (ValueError, TypeError) as ex:
            raise SchemaViolation(event_type, "", str(ex)) from ex
        return to_json_value(result, event_type)


def first_error(ex: ValidationError) -> Tuple[str, str]:
    """Dotted location and message of the first pydantic error."""
    errors = ex.errors()
    if not errors:
        return "", str(ex)
    err = errors[0]
    field = ".".join(str(part) for part in err.get("loc", ()))
    return field, err.get("msg", "invalid value")
