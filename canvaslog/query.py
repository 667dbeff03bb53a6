"""
Query helpers over the event log: listings, statistics and counts.

Reads go straight to the log; the reducer is never involved.
"""

import math
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .core.canonical import format_timestamp, to_utc
from .core.events import StoredEvent
from .log.event_log import EventLog
from .log.filters import EventFilter, Pagination

ANONYMOUS = "anonymous"


def _hour(ev: StoredEvent) -> str:
    return to_utc(ev.timestamp).strftime("%Y-%m-%dT%H:00")


def _day(ev: StoredEvent) -> str:
    return to_utc(ev.timestamp).strftime("%Y-%m-%d")


def _week(ev: StoredEvent) -> str:
    year, week, _ = to_utc(ev.timestamp).isocalendar()
    return f"{year:04d}-W{week:02d}"


def _month(ev: StoredEvent) -> str:
    return to_utc(ev.timestamp).strftime("%Y-%m")


GROUP_KEYS: Dict[str, Callable[[StoredEvent], str]] = {
    "type": lambda ev: ev.type,
    "userId": lambda ev: ev.actor_id or ANONYMOUS,
    "hour": _hour,
    "day": _day,
    "week": _week,
    "month": _month,
}


@dataclass(frozen=True)
class ListResult:
    items: List[StoredEvent]
    total: int
    page: int
    limit: int
    total_pages: int
    has_next: bool
    has_prev: bool

    def pagination_dict(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }


@dataclass(frozen=True)
class StatsGroup:
    key: str
    count: int
    percentage: float


@dataclass(frozen=True)
class Statistics:
    """
    Grouped counts. ``sum(g.count for g in groups) == total`` always holds;
    percentages are rounded to 2 decimals and may not sum to exactly 100.
    """
    total: int
    groups: List[StatsGroup]
    period_from: Optional[datetime]
    period_to: Optional[datetime]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "groups": [{"key": g.key, "count": g.count, "percentage": g.percentage} for g in self.groups],
            "period": {
                "from": format_timestamp(self.period_from) if self.period_from else None,
                "to": format_timestamp(self.period_to) if self.period_to else None,
            },
        }


class QueryService:
    def __init__(self, log: EventLog) -> None:
        self.log = log

    def list_events(
        self,
        event_filter: Optional[EventFilter] = None,
        pagination: Optional[Pagination] = None,
    ) -> ListResult:
        page = pagination or Pagination()
        items, total = self.log.read_page(event_filter, page)
        total_pages = math.ceil(total / page.limit) if total else 0
        return ListResult(
            items=items,
            total=total,
            page=page.page,
            limit=page.limit,
            total_pages=total_pages,
            has_next=page.page < total_pages,
            has_prev=page.page > 1,
        )

    def statistics(self, group_by: str, event_filter: Optional[EventFilter] = None) -> Statistics:
        """
        Count matching events per group.

        ``group_by`` is one of type, userId, hour, day, week, month (UTC).
        Groups are ordered by count descending, then key.
        """
        key_of = GROUP_KEYS.get(group_by)
        if key_of is None:
            raise ValueError(f"group_by must be one of {sorted(GROUP_KEYS)}")

        counts: Counter = Counter()
        first = last = None
        for ev in self.log.scan(event_filter):
            counts[key_of(ev)] += 1
            if first is None or ev.timestamp < first:
                first = ev.timestamp
            if last is None or ev.timestamp > last:
                last = ev.timestamp

        total = sum(counts.values())
        groups = [
            StatsGroup(key=k, count=c, percentage=round(c / total * 100, 2))
            for k, c in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
        ]
        flt = event_filter or EventFilter()
        return Statistics(
            total=total,
            groups=groups,
            period_from=flt.from_timestamp or first,
            period_to=flt.to_timestamp or last,
        )

    def latest(self, limit: int = 10) -> List[StoredEvent]:
        """Newest events first (by sequence)."""
        return self.log.read(pagination=Pagination(page=1, limit=limit, order="desc"))

    def count_by_type(self, event_filter: Optional[EventFilter] = None) -> Dict[str, int]:
        counts: Counter = Counter(ev.type for ev in self.log.scan(event_filter))
        return dict(sorted(counts.items()))
