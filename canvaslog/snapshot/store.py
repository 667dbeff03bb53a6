"""
Snapshot storage.

Snapshots are JSON files in one directory.
Naming: snap_{seq}_{state_hash_prefix}.json
"""

import os
from pathlib import Path
from typing import List, Optional

from .model import Snapshot


def _seq_of(path: str) -> int:
    # snap_{seq}_{hash}.json
    return int(os.path.basename(path).split("_")[1])


class SnapshotStore:
    """Manage snapshot files on disk."""

    def __init__(self, directory: str = "snapshots"):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def save(self, snapshot: Snapshot) -> str:
        """Write ``snapshot`` and return its path."""
        filename = f"snap_{snapshot.seq}_{snapshot.state_hash[:8]}.json"
        filepath = self.directory / filename
        with open(filepath, "w") as f:
            f.write(snapshot.to_json())
        return str(filepath)

    def load(self, filepath: str) -> Snapshot:
        with open(filepath, "r") as f:
            return Snapshot.from_json(f.read())

    def list_snapshots(self) -> List[str]:
        """Snapshot file paths sorted by sequence."""
        return sorted((str(p) for p in self.directory.glob("snap_*.json")), key=_seq_of)

    def find_latest(self, aggregate_id: Optional[str] = None) -> Optional[Snapshot]:
        return self.find_at_or_before(None, aggregate_id=aggregate_id)

    def find_at_or_before(self, seq: Optional[int], aggregate_id: Optional[str] = None) -> Optional[Snapshot]:
        """
        Newest snapshot whose ``seq`` is at or before ``seq`` (None = any).

        Only snapshots scoped to ``aggregate_id`` are considered.
        """
        for path in reversed(self.list_snapshots()):
            if seq is not None and _seq_of(path) > seq:
                continue
            snap = self.load(path)
            if snap.aggregate_id == aggregate_id:
                return snap
        return None

    def delete(self, filepath: str) -> None:
        os.remove(filepath)

    def rotate(self, keep_count: int = 10) -> List[str]:
        """
        Keep only the newest ``keep_count`` snapshots.

        Returns:
            Paths that were deleted
        """
        snapshots = self.list_snapshots()
        to_delete = snapshots[: max(len(snapshots) - keep_count, 0)]
        for path in to_delete:
            self.delete(path)
        return to_delete
