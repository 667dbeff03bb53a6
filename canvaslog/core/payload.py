"""
JSON payload values.

A payload is a closed tree over null, bool, number, string, list and
string-keyed map. ``to_json_value`` normalizes an arbitrary Python value into
that tree (tuples become lists) and rejects anything else with the dotted path
of the offending field.
"""

import math
from typing import Any, Dict, List, Union

from .errors import SchemaViolation

JsonScalar = Union[None, bool, int, float, str]
JsonValue = Union[JsonScalar, List["JsonValue"], Dict[str, "JsonValue"]]


class _Missing:
    """Sentinel for an absent payload, distinct from ``None`` (JSON null)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def to_json_value(value: Any, event_type: str = "", path: str = "") -> JsonValue:
    """
    Normalize ``value`` into a JSON value tree.

    Raises:
        SchemaViolation: for non-finite floats, non-string map keys or
            unsupported Python types
    """
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise SchemaViolation(event_type, path, "number must be finite")
        return value
    if isinstance(value, (list, tuple)):
        return [to_json_value(v, event_type, _join(path, str(i))) for i, v in enumerate(value)]
    if isinstance(value, dict):
        out: Dict[str, JsonValue] = {}
        for k, v in value.items():
            if not isinstance(k, str):
                raise SchemaViolation(event_type, path, f"object key must be a string, got {type(k).__name__}")
            out[k] = to_json_value(v, event_type, _join(path, k))
        return out
    raise SchemaViolation(event_type, path, f"unsupported value type {type(value).__name__}")


def get_path(value: JsonValue, path: str) -> Any:
    """
    Resolve a dotted path (``"data.owner.id"``, list indexes allowed) inside a
    payload. Returns ``MISSING`` when any segment is absent.
    """
    cur: Any = value
    for part in path.split("."):
        if isinstance(cur, dict):
            if part not in cur:
                return MISSING
            cur = cur[part]
        elif isinstance(cur, list) and part.isdigit():
            idx = int(part)
            if idx >= len(cur):
                return MISSING
            cur = cur[idx]
        else:
            return MISSING
    return cur


def _join(path: str, part: str) -> str:
    return f"{path}.{part}" if path else part
