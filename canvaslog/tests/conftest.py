import pytest

from canvaslog.config import Settings
from canvaslog.core.clock import ManualClock
from canvaslog.log.memory_store import MemoryEventStore
from canvaslog.workspace import open_workspace


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def workspace(clock):
    """In-memory workspace with default settings and a manual clock."""
    return open_workspace(Settings(), store=MemoryEventStore(), clock=clock)


def add_node_payload(node_id, x, y, node_type="document", **extra):
    payload = {"nodeId": node_id, "nodeType": node_type, "position": {"x": x, "y": y}}
    payload.update(extra)
    return payload


def edge_payload(edge_id, source, target):
    return {
        "edgeId": edge_id,
        "sourceConnection": {"nodeId": source},
        "targetConnection": {"nodeId": target},
    }
