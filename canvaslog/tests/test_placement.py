"""
Tests for grid snap and collision placement.
"""

import pytest

from canvaslog.canvas.placement import (
    SEARCH_DIRECTIONS,
    overlaps,
    resolve_position,
    search_cells,
    snap,
    snap_value,
)
from canvaslog.canvas.state import LayoutSettings
from canvaslog.core.errors import NoFreePositionFound


def _node(x, y):
    return {"position": {"x": x, "y": y}}


@pytest.mark.parametrize(
    "value,expected",
    [(103, 104), (97, 96), (108, 104), (98, 96), (100, 96), (4, 0), (12, 8), (-4, -8), (-5, -8), (0, 0), (3.9, 0)],
)
def test_snap_value(value, expected):
    assert snap_value(value, 8) == expected


@pytest.mark.parametrize("x", [-1000.5, -17, -4, -3.999, 0, 3.5, 4, 7.25, 103, 1e6 + 3])
def test_snap_is_idempotent(x):
    p = (x, -x)
    assert snap(snap(p, 8), 8) == snap(p, 8)


def test_overlap_is_strict():
    # boxes of side 60 touching edge-to-edge do not overlap
    assert overlaps((0, 0), (59, 0), 30)
    assert not overlaps((0, 0), (60, 0), 30)
    assert not overlaps((0, 0), (0, 60), 30)


def test_search_order_starts_right_and_turns_clockwise():
    cells = list(search_cells((0, 0), 8, 1))
    assert cells == [(8 * dx, 8 * dy) for dx, dy in SEARCH_DIRECTIONS]
    assert cells[0] == (8, 0)
    assert cells[2] == (0, 8)


def test_free_cell_is_just_snapped():
    assert resolve_position((103, 97), {}, LayoutSettings(), "n1") == (104, 96)


def test_own_cell_is_not_a_collision():
    nodes = {"n1": _node(104, 96)}
    assert resolve_position((108, 98), nodes, LayoutSettings(), "n1") == (104, 96)


def test_collision_moves_to_first_free_cell():
    # radius 4 -> boxes of side 8, so each grid cell holds one node
    layout = LayoutSettings(grid_unit=8, node_radius=4)
    nodes = {"a": _node(0, 0)}
    assert resolve_position((1, 1), nodes, layout, "b") == (8, 0)

    nodes["r"] = _node(8, 0)
    assert resolve_position((1, 1), nodes, layout, "b") == (8, 8)


def test_search_widens_rings():
    layout = LayoutSettings(grid_unit=8, node_radius=4)
    nodes = {"center": _node(0, 0)}
    for i, (dx, dy) in enumerate(SEARCH_DIRECTIONS):
        nodes[f"ring1-{i}"] = _node(8 * dx, 8 * dy)
    assert resolve_position((0, 0), nodes, layout, "new") == (16, 0)


def test_exhausted_search_raises():
    layout = LayoutSettings(grid_unit=8, node_radius=4, max_search_radius=1)
    nodes = {"center": _node(0, 0)}
    for i, (dx, dy) in enumerate(SEARCH_DIRECTIONS):
        nodes[f"ring1-{i}"] = _node(8 * dx, 8 * dy)
    with pytest.raises(NoFreePositionFound) as exc:
        resolve_position((0, 0), nodes, layout, "new")
    assert exc.value.node_id == "new"


def test_default_radius_spacing():
    # default node radius 30 -> 60px boxes; the first free cell to the right is 64px away
    nodes = {"a": _node(0, 0)}
    assert resolve_position((0, 0), nodes, LayoutSettings(), "b") == (64, 0)
