"""
Append-only event log: storage contract, adapters, filters and the EventLog facade.
"""

from .store import EventStore
from .memory_store import MemoryEventStore
from .file_store import FileEventStore
from .integrity import ZERO_HASH, hash_event, verify_chain
from .filters import ALL_EVENTS, EventFilter, Pagination
from .event_log import BatchFailure, BatchResult, EventLog

__all__ = [
    "EventStore",
    "MemoryEventStore",
    "FileEventStore",
    "ZERO_HASH",
    "hash_event",
    "verify_chain",
    "ALL_EVENTS",
    "EventFilter",
    "Pagination",
    "BatchFailure",
    "BatchResult",
    "EventLog",
]
