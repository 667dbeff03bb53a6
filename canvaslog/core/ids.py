"""
Identifier helpers for gestures that do not name their element.

Never called by reducers: ids are part of the event payload, so replay
never generates one.
"""

import uuid


def _short_uuid() -> str:
    return uuid.uuid4().hex[:12]


def new_node_id() -> str:
    return f"node-{_short_uuid()}"


def new_edge_id() -> str:
    return f"edge-{_short_uuid()}"
