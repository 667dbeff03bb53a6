"""
Clock sources for event timestamps.

The envelope is the only place that reads time; reducers never do.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone


class SystemClock:
    """Wall-clock source (UTC)."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


@dataclass
class ManualClock:
    """
    Deterministic time source for tests and scripted imports.

    ``now()`` returns the current instant without advancing; ``tick()`` moves
    it forward by ``step`` seconds.
    """
    current: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current

    def tick(self, step: float = 1.0) -> datetime:
        self.current = self.current + timedelta(seconds=step)
        return self.current
