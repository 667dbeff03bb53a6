"""
Snapshots: materialized state at a sequence, so replay can resume mid-log.

Provides:
- Snapshot model with canonical serialization
- Ed25519 signing and verification
- Snapshot storage management
- Periodic snapshots as the log grows
"""

from .model import Snapshot
from .codec import compute_state_hash, serialize_state, state_from_base64, state_to_base64
from .signer import SigningKey, VerifyingKey, ensure_keypair
from .builder import create_snapshot, snapshot_from_log
from .store import SnapshotStore
from .auto import AutoSnapshotter
from .verify import VerificationResult, verify_full, verify_signature, verify_snapshot

__all__ = [
    "Snapshot",
    "compute_state_hash",
    "serialize_state",
    "state_from_base64",
    "state_to_base64",
    "SigningKey",
    "VerifyingKey",
    "ensure_keypair",
    "create_snapshot",
    "snapshot_from_log",
    "SnapshotStore",
    "AutoSnapshotter",
    "VerificationResult",
    "verify_full",
    "verify_signature",
    "verify_snapshot",
]
