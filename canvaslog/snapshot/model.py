"""
Snapshot model: materialized aggregate state at a log sequence.

A snapshot lets replay resume from ``seq + 1`` instead of the start of the
log. It may be signed with Ed25519 so a reader can trust it without
refolding the prefix.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .codec import state_from_base64

SNAPSHOT_VERSION = 1


@dataclass
class Snapshot:
    """
    Snapshot record.

    Fields:
        seq: Sequence of the last event folded into the state (0 = empty log)
        state_hash: SHA-256 of the canonical state bytes
        state_bytes: Canonical serialized state (base64)
        created_at: UTC ISO-8601 creation time (informational)
        aggregate_id: Aggregate the state was scoped to (None = whole log)
        pubkey_id: SHA-256 prefix of the signing public key ("" if unsigned)
        signature: Ed25519 signature over ``signing_payload()`` (base64, "" if unsigned)
        version: Format version
        meta: Optional metadata (preserve-unknown)
    """
    seq: int
    state_hash: str
    state_bytes: str
    created_at: str
    aggregate_id: Optional[str] = None
    pubkey_id: str = ""
    signature: str = ""
    version: int = SNAPSHOT_VERSION
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_signed(self) -> bool:
        return bool(self.signature)

    def state(self) -> Dict[str, Any]:
        """Decode the stored state dict."""
        return state_from_base64(self.state_bytes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "seq": self.seq,
            "aggregate_id": self.aggregate_id,
            "state_hash": self.state_hash,
            "state_bytes": self.state_bytes,
            "created_at": self.created_at,
            "pubkey_id": self.pubkey_id,
            "signature": self.signature,
            "meta": self.meta,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Snapshot":
        return cls(
            version=data.get("version", SNAPSHOT_VERSION),
            seq=data["seq"],
            aggregate_id=data.get("aggregate_id"),
            state_hash=data["state_hash"],
            state_bytes=data["state_bytes"],
            created_at=data["created_at"],
            pubkey_id=data.get("pubkey_id", ""),
            signature=data.get("signature", ""),
            meta=data.get("meta", {}),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "Snapshot":
        return cls.from_dict(json.loads(json_str))

    def signing_payload(self) -> Dict[str, Any]:
        """
        Payload covered by the signature (everything but ``signature`` and ``meta``).

        ``state_hash`` binds the state bytes, so they are not repeated here.
        """
        return {
            "version": self.version,
            "seq": self.seq,
            "aggregate_id": self.aggregate_id,
            "state_hash": self.state_hash,
            "created_at": self.created_at,
            "pubkey_id": self.pubkey_id,
        }
