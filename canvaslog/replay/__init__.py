"""
Replay engine: deterministic state reconstruction from the log.
"""

from .runner import ReplayResult, replay, replay_events

__all__ = ["ReplayResult", "replay", "replay_events"]
