"""
Deterministic state serialization.

Same state always produces the same bytes, hence the same hash.
"""

import base64
import hashlib
import json
from typing import Any, Dict

from ..core.canonical import canonical_json_bytes


def _as_dict(state: Any) -> Any:
    to_dict = getattr(state, "to_dict", None)
    return to_dict() if callable(to_dict) else state


def serialize_state(state: Any) -> bytes:
    """
    Serialize state to canonical JSON bytes.

    Accepts any state with ``to_dict()`` (e.g. CanvasState) or a plain dict.
    """
    return canonical_json_bytes(_as_dict(state))


def compute_state_hash(state: Any) -> str:
    """SHA-256 of the canonical state bytes, as 64 hex characters."""
    return hashlib.sha256(serialize_state(state)).hexdigest()


def state_to_base64(state: Any) -> str:
    return base64.b64encode(serialize_state(state)).decode("ascii")


def state_from_base64(b64_str: str) -> Dict[str, Any]:
    return json.loads(base64.b64decode(b64_str))
