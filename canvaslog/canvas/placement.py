"""
Deterministic node placement: grid snap, then collision resolution.

Order of operations is snap first, then collide. The requested position is
snapped to the grid; if the snapped cell overlaps another node, the 8
neighbor cells at distance ``r * grid`` are tried clockwise starting to the
right (screen coordinates, y grows downward), for r = 1, 2, ... up to the
configured maximum.
"""

import math
from typing import Any, Dict, Iterable, Iterator, Tuple

from ..core.errors import NoFreePositionFound
from .state import LayoutSettings

Point = Tuple[float, float]

# right, down-right, down, down-left, left, up-left, up, up-right
SEARCH_DIRECTIONS: Tuple[Tuple[int, int], ...] = (
    (1, 0),
    (1, 1),
    (0, 1),
    (-1, 1),
    (-1, 0),
    (-1, -1),
    (0, -1),
    (1, -1),
)


def snap_value(value: float, grid: float) -> float:
    """
    Snap to the nearest multiple of ``grid``.

    Ties round toward negative infinity (13.5 units -> 13), so
    ``snap_value(108, 8) == 104``. Integer grids keep integer coordinates.
    """
    if grid <= 0:
        return value
    k = math.ceil(value / grid - 0.5)
    return k * grid


def snap(point: Point, grid: float) -> Point:
    return snap_value(point[0], grid), snap_value(point[1], grid)


def overlaps(a: Point, b: Point, radius: float) -> bool:
    """Axis-aligned bounding boxes of side ``2 * radius`` centred on ``a`` and ``b`` intersect."""
    size = 2 * radius
    return abs(a[0] - b[0]) < size and abs(a[1] - b[1]) < size


def search_cells(origin: Point, grid: float, max_radius: int) -> Iterator[Point]:
    """Candidate cells in search order, ring by ring."""
    for r in range(1, max_radius + 1):
        step = r * grid
        for dx, dy in SEARCH_DIRECTIONS:
            yield origin[0] + dx * step, origin[1] + dy * step


def _occupied(point: Point, others: Iterable[Point], radius: float) -> bool:
    return any(overlaps(point, other, radius) for other in others)


def resolve_position(
    requested: Point,
    nodes: Dict[str, Dict[str, Any]],
    layout: LayoutSettings,
    node_id: str,
) -> Point:
    """
    Resolve the position a node actually takes.

    Args:
        requested: Raw position from the payload
        nodes: Current nodes keyed by id
        layout: Grid unit, node radius and search bound
        node_id: The node being placed; its own box is never a collision

    Returns:
        The snapped, collision-free position

    Raises:
        NoFreePositionFound: if every candidate cell is occupied
    """
    others = [position_of(n) for nid, n in nodes.items() if nid != node_id]
    snapped = snap(requested, layout.grid_unit)
    if not _occupied(snapped, others, layout.node_radius):
        return snapped
    for cell in search_cells(snapped, layout.grid_unit, layout.max_search_radius):
        if not _occupied(cell, others, layout.node_radius):
            return cell
    raise NoFreePositionFound(node_id, layout.max_search_radius)


def position_of(node: Dict[str, Any]) -> Point:
    pos = node.get("position") or {}
    return pos.get("x", 0), pos.get("y", 0)


def as_point(position: Dict[str, Any]) -> Point:
    return position["x"], position["y"]


def as_position(point: Point) -> Dict[str, Any]:
    return {"x": point[0], "y": point[1]}
