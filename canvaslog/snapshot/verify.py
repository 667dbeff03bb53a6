"""
Snapshot verification.

Verification levels:
- signature: signature and pubkey id only (fast)
- full: signature (when signed) + state hash + replay of the log prefix
"""

import base64
import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..core.errors import IntegrityError
from ..core.reducer import Reducer
from ..replay.runner import replay
from .codec import compute_state_hash
from .model import Snapshot
from .signer import VerifyingKey

logger = logging.getLogger(__name__)


@dataclass
class VerificationResult:
    """
    Result of snapshot verification.

    Fields:
        valid: Overall validity (all performed checks passed)
        signature_valid: Signature verification passed
        state_hash_valid: ``state_hash`` matches ``state_bytes``
        replay_state_valid: Replayed state matches the snapshot
        error: Error message if verification failed
    """
    valid: bool
    signature_valid: bool = False
    state_hash_valid: bool = False
    replay_state_valid: bool = False
    error: Optional[str] = None

    def raise_for_invalid(self) -> None:
        if not self.valid:
            raise IntegrityError(self.error or "snapshot verification failed")


def verify_signature(snapshot: Snapshot, verifying_key: VerifyingKey) -> VerificationResult:
    if not snapshot.is_signed:
        return VerificationResult(valid=False, error="Snapshot is not signed")

    expected_pubkey_id = verifying_key.get_pubkey_id()
    if snapshot.pubkey_id != expected_pubkey_id:
        return VerificationResult(
            valid=False,
            error=f"Public key ID mismatch: expected {expected_pubkey_id}, got {snapshot.pubkey_id}",
        )

    if not verifying_key.verify_base64(snapshot.signing_payload(), snapshot.signature):
        return VerificationResult(valid=False, error="Invalid signature")

    return VerificationResult(valid=True, signature_valid=True)


def verify_full(
    snapshot: Snapshot,
    source,
    reducer: Reducer,
    initial_state: Any,
    verifying_key: Optional[VerifyingKey] = None,
) -> VerificationResult:
    """
    Verify signature (if a key is given), state hash and replayed state.

    The log prefix ``1..snapshot.seq`` is refolded and must hash to
    ``snapshot.state_hash``.
    """
    signature_valid = False
    if verifying_key is not None:
        sig = verify_signature(snapshot, verifying_key)
        if not sig.valid:
            return sig
        signature_valid = True

    computed = hashlib.sha256(base64.b64decode(snapshot.state_bytes)).hexdigest()
    if computed != snapshot.state_hash:
        return VerificationResult(
            valid=False,
            signature_valid=signature_valid,
            error=f"State hash mismatch: computed {computed}, expected {snapshot.state_hash}",
        )

    if snapshot.seq == 0:
        replayed = initial_state
    else:
        replayed = replay(
            source,
            reducer,
            initial_state,
            up_to_event_id=snapshot.seq,
            aggregate_id=snapshot.aggregate_id,
        ).state
    replayed_hash = compute_state_hash(replayed)
    if replayed_hash != snapshot.state_hash:
        logger.warning("Snapshot at seq %d does not match replay", snapshot.seq)
        return VerificationResult(
            valid=False,
            signature_valid=signature_valid,
            state_hash_valid=True,
            error=f"Replayed state hash mismatch: computed {replayed_hash}, expected {snapshot.state_hash}",
        )

    return VerificationResult(
        valid=True,
        signature_valid=signature_valid,
        state_hash_valid=True,
        replay_state_valid=True,
    )


def verify_snapshot(
    snapshot: Snapshot,
    verifying_key: Optional[VerifyingKey] = None,
    source=None,
    reducer: Optional[Reducer] = None,
    initial_state: Any = None,
    mode: str = "signature",
) -> VerificationResult:
    """
    Verify a snapshot at the requested level.

    Raises:
        ValueError: unknown mode, or missing inputs for the mode
    """
    if mode == "signature":
        if verifying_key is None:
            raise ValueError("Signature verification requires a verifying key")
        return verify_signature(snapshot, verifying_key)
    if mode == "full":
        if source is None or reducer is None:
            raise ValueError("Full verification requires a log source and reducer")
        return verify_full(snapshot, source, reducer, initial_state, verifying_key=verifying_key)
    raise ValueError(f"Unknown verification mode: {mode}")
