"""
Tests for listings, statistics and counts.
"""

from datetime import datetime, timedelta, timezone

import pytest

from canvaslog.config import Settings
from canvaslog.log.file_store import FileEventStore
from canvaslog.log.filters import EventFilter, Pagination
from canvaslog.workspace import open_workspace


def test_statistics_by_type(workspace):
    log = workspace.log
    for _ in range(7):
        log.create("CHAIN_A", None)
    for _ in range(3):
        log.create("CHAIN_B", None)

    stats = workspace.query.statistics("type")
    assert stats.total == 10
    assert [(g.key, g.count, g.percentage) for g in stats.groups] == [
        ("CHAIN_A", 7, 70.0),
        ("CHAIN_B", 3, 30.0),
    ]
    assert sum(g.count for g in stats.groups) == stats.total


def test_statistics_time_and_user_groups(workspace, clock):
    log = workspace.log
    log.create("CHAIN_A", None, actor_id="alice")
    clock.tick(3600)
    log.create("CHAIN_A", None)

    by_user = {g.key: g.count for g in workspace.query.statistics("userId").groups}
    assert by_user == {"alice": 1, "anonymous": 1}

    by_hour = [g.key for g in workspace.query.statistics("hour").groups]
    assert by_hour == ["2024-01-01T00:00", "2024-01-01T01:00"]

    assert [g.key for g in workspace.query.statistics("week").groups] == ["2024-W01"]
    assert [g.key for g in workspace.query.statistics("month").groups] == ["2024-01"]

    period = workspace.query.statistics("day").to_dict()["period"]
    assert period == {"from": "2024-01-01T00:00:00.000000Z", "to": "2024-01-01T01:00:00.000000Z"}


@pytest.mark.parametrize("backend", ["memory", "file"])
def test_time_groups_use_utc(backend, workspace, clock, tmp_path):
    if backend == "file":
        workspace = open_workspace(Settings(), store=FileEventStore(str(tmp_path / "events.log")), clock=clock)
    log = workspace.log
    plus_five = timezone(timedelta(hours=5))
    log.create("CHAIN_A", None, timestamp=datetime(2024, 1, 1, 2, 0, tzinfo=plus_five))
    log.create("CHAIN_A", None, timestamp="2024-01-01T02:30:00+05:00")

    stored = log.read()
    assert all(ev.timestamp.utcoffset() == timedelta(0) for ev in stored)
    assert [g.key for g in workspace.query.statistics("day").groups] == ["2023-12-31"]
    assert [g.key for g in workspace.query.statistics("hour").groups] == ["2023-12-31T21:00"]
    assert [g.key for g in workspace.query.statistics("month").groups] == ["2023-12"]


def test_statistics_empty_and_bad_group(workspace):
    stats = workspace.query.statistics("type")
    assert stats.total == 0
    assert stats.groups == []
    with pytest.raises(ValueError):
        workspace.query.statistics("colour")


def test_list_pagination_meta(workspace):
    for i in range(5):
        workspace.log.create("CHAIN_STEP", {"i": i})
    result = workspace.query.list_events(pagination=Pagination(page=2, limit=2))
    assert [e.seq for e in result.items] == [3, 4]
    assert result.pagination_dict() == {
        "page": 2,
        "limit": 2,
        "total": 5,
        "totalPages": 3,
        "hasNext": True,
        "hasPrev": True,
    }


def test_latest_and_count_by_type(workspace):
    log = workspace.log
    log.create("CHAIN_A", None)
    log.create("CHAIN_B", None)
    log.create("CHAIN_B", None)
    assert [e.seq for e in workspace.query.latest(limit=2)] == [3, 2]
    assert workspace.query.count_by_type() == {"CHAIN_A": 1, "CHAIN_B": 2}
    assert workspace.query.count_by_type(EventFilter(type="CHAIN_A")) == {"CHAIN_A": 1}
