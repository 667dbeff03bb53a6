"""
Canonical serialization for deterministic hashing.

Event payloads, stored records and snapshot state all go through these
functions, so the same value always yields the same bytes on every machine.
"""

import json
from datetime import datetime, timezone
from typing import Any


def canonicalize(obj: Any) -> Any:
    """
    Convert a nested dict/list value to canonical form.

    Rules:
    - dict keys sorted
    - tuples converted to lists
    - datetimes rendered as UTC ISO-8601 strings
    """
    if isinstance(obj, dict):
        return {k: canonicalize(obj[k]) for k in sorted(obj.keys())}
    if isinstance(obj, (list, tuple)):
        return [canonicalize(x) for x in obj]
    if isinstance(obj, datetime):
        return format_timestamp(obj)
    return obj


def canonical_json_bytes(obj: Any) -> bytes:
    """
    Deterministic JSON bytes for hashing.

    Uses compact separators and ``ensure_ascii=False`` so UTF-8 output is stable.
    """
    canon = canonicalize(obj)
    s = json.dumps(canon, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    return s.encode("utf-8")


def canonical_json_str(obj: Any) -> str:
    return canonical_json_bytes(obj).decode("utf-8")


def to_utc(ts: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def format_timestamp(ts: datetime) -> str:
    """Render a datetime as UTC ISO-8601 with microseconds and a ``Z`` suffix."""
    return to_utc(ts).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed) into an aware UTC datetime."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return to_utc(datetime.fromisoformat(value))
