"""
Grid pathfinding on top of `tcod.path`.

Every query renders the map into a cost array first: cells an entity could
step onto cost 1 and everything else costs 0, following either the map's own
movement mask (terrain plus movement-blocking occupants) or a caller-supplied
`WalkableMask`. Edges are integers, 10 for an orthogonal step and 14 for a
diagonal one, and a diagonal edge only exists where both flanking orthogonal
cells are open, so paths never cut corners.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeAlias

import numpy as np
import tcod.path

from shambler.constants.movement import MovementConstants as Movement
from shambler.environment.map import GridMap
from shambler.types import (
    CARDINAL_DIRECTIONS,
    DIAGONAL_DIRECTIONS,
    ActionPoints,
    WorldTilePos,
)

if TYPE_CHECKING:
    from shambler.game.actors import Entity

logger = logging.getLogger(__name__)

# Walkability mask builder: game_map -> bool array (width, height). Replaces
# the map's default movement mask, e.g. so an agent does not block itself.
WalkableMask: TypeAlias = Callable[[GridMap], np.ndarray]

# Step costs as integer graph edges.
COST_SCALE = 10
ORTHOGONAL_EDGE_COST = round(Movement.ORTHOGONAL_STEP_COST * COST_SCALE)
DIAGONAL_EDGE_COST = round(Movement.DIAGONAL_STEP_COST * COST_SCALE)


@dataclass(frozen=True, slots=True)
class ReachableTile:
    """A cell reachable within a movement budget, with its cheapest cost."""

    x: int
    y: int
    cost: float

    @property
    def position(self) -> WorldTilePos:
        return (self.x, self.y)


@dataclass
class MovementValidation:
    """Outcome of checking whether an entity can afford a move to a goal."""

    is_valid: bool = False
    cost: float = 0.0
    path: list[WorldTilePos] = field(default_factory=list)
    reason: str = ""


@dataclass
class ApproachResult:
    """Best reachable approach towards a target that may itself be out of reach."""

    path: list[WorldTilePos]
    final_distance: int
    cost: float


def _require_map(game_map: object) -> None:
    if not isinstance(game_map, GridMap):
        raise TypeError(f"Expected a GridMap, got {type(game_map).__name__}.")


def _default_mask(game_map: GridMap) -> np.ndarray:
    return game_map.movement_mask()


def manhattan_distance(a: WorldTilePos, b: WorldTilePos) -> int:
    """Manhattan distance; also the A* heuristic for orthogonal search."""
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def step_cost(a: WorldTilePos, b: WorldTilePos) -> float:
    """Cost of a single step between two adjacent cells."""
    if abs(a[0] - b[0]) == 1 and abs(a[1] - b[1]) == 1:
        return Movement.DIAGONAL_STEP_COST
    return Movement.ORTHOGONAL_STEP_COST


def make_walkable_ignoring(*ignored: Entity) -> WalkableMask:
    """Walkability mask that does not count the given entities as blockers."""

    def walkable(game_map: GridMap) -> np.ndarray:
        return game_map.movement_mask(ignore=ignored)

    return walkable


def _passable_cells(
    game_map: GridMap,
    start: WorldTilePos,
    walkable: WalkableMask | None,
    max_distance: int | None = None,
) -> np.ndarray:
    """Bool array of the cells a search from `start` may enter.

    The start cell itself keeps whatever the mask says; callers open it up
    once the goal has been checked, since the mover stands there.
    """
    passable = np.array((walkable or _default_mask)(game_map), dtype=bool)
    if max_distance is not None:
        xs, ys = np.indices(passable.shape)
        passable &= np.abs(xs - start[0]) + np.abs(ys - start[1]) <= max_distance
    return passable


def _shifted(passable: np.ndarray, dx: int, dy: int) -> np.ndarray:
    """``passable[x + dx, y + dy]`` at every (x, y); False past the map edge."""
    width, height = passable.shape
    out = np.zeros_like(passable)
    out[max(0, -dx) : width - max(0, dx), max(0, -dy) : height - max(0, dy)] = (
        passable[max(0, dx) : width - max(0, -dx), max(0, dy) : height - max(0, -dy)]
    )
    return out


def _build_graph(
    passable: np.ndarray, allow_diagonal: bool, *, heuristic: bool = False
) -> tcod.path.CustomGraph:
    cost = passable.astype(np.int8)
    graph = tcod.path.CustomGraph(passable.shape)
    for direction in CARDINAL_DIRECTIONS:
        graph.add_edge(direction, ORTHOGONAL_EDGE_COST, cost=cost)

    if allow_diagonal:
        for dx, dy in DIAGONAL_DIRECTIONS:
            flanks_open = _shifted(passable, dx, 0) & _shifted(passable, 0, dy)
            graph.add_edge(
                (dx, dy),
                DIAGONAL_EDGE_COST,
                cost=cost,
                condition=flanks_open.astype(np.int8),
            )

    if heuristic:
        graph.set_heuristic(
            cardinal=ORTHOGONAL_EDGE_COST,
            diagonal=DIAGONAL_EDGE_COST if allow_diagonal else 0,
        )
    return graph


def _unreached(distance: np.ndarray) -> int:
    """Sentinel tcod leaves in the distance array for cells never reached."""
    return int(np.iinfo(distance.dtype).max)


def find_path(
    game_map: GridMap,
    start: WorldTilePos,
    goal: WorldTilePos,
    *,
    allow_diagonal: bool = False,
    walkable: WalkableMask | None = None,
    max_distance: int | None = None,
) -> list[WorldTilePos]:
    """
    Calculate a path from a start to a goal cell using A*.

    The search runs through `tcod.path.Pathfinder` on a `CustomGraph` built
    from the map's cost array, with a Manhattan heuristic (octile when
    diagonals are allowed). Orthogonal steps cost 1 and diagonal steps 1.4;
    a diagonal step is only taken when both flanking orthogonal cells are
    walkable. The same map always yields the same path.

    Args:
        game_map: The GridMap to search.
        start: The (x, y) starting cell. Its own walkability is not checked,
            since the mover usually stands on it.
        goal: The (x, y) destination cell.
        allow_diagonal: Permit diagonal steps.
        walkable: Replacement walkability mask builder. Defaults to the map's
            own movement mask (terrain plus movement-blocking occupants).
        max_distance: Cells farther than this Manhattan distance from the
            start are never entered.

    Returns:
        A list of (x, y) tuples from start to goal, both included. A single
        element list when start == goal. An empty list if the goal is out of
        bounds, not walkable, or unreachable.

    Raises:
        TypeError: If `game_map` is not a GridMap.
    """
    _require_map(game_map)
    if not game_map.in_bounds(*start) or not game_map.in_bounds(*goal):
        return []
    passable = _passable_cells(game_map, start, walkable, max_distance)
    # No partial paths toward blocked destinations.
    if not passable[goal]:
        return []
    if start == goal:
        return [start]
    passable[start] = True

    pathfinder = tcod.path.Pathfinder(
        _build_graph(passable, allow_diagonal, heuristic=True)
    )
    pathfinder.add_root(start)
    pathfinder.resolve(goal)
    if pathfinder.distance[goal] == _unreached(pathfinder.distance):
        logger.debug(f"No path from {start} to {goal}")
        return []

    return [(int(x), int(y)) for x, y in pathfinder.path_to(goal).tolist()]


def calculate_movement_cost(path: list[WorldTilePos]) -> ActionPoints:
    """Action point cost of walking a pre-planned path.

    Sums the per-step costs, then takes EFFICIENCY_BONUS off for every
    EFFICIENCY_STRIDE cells traveled. A non-trivial path never costs less
    than MINIMUM_PATH_COST. Paths with fewer than two cells cost nothing.
    """
    if len(path) <= 1:
        return 0.0

    base_cost = sum(step_cost(a, b) for a, b in itertools.pairwise(path))
    cells_traveled = len(path) - 1
    bonus = (cells_traveled // Movement.EFFICIENCY_STRIDE) * Movement.EFFICIENCY_BONUS
    cost = max(Movement.MINIMUM_PATH_COST, base_cost - bonus)
    return round(cost, Movement.ACTION_POINT_PRECISION)


def get_reachable_tiles(
    game_map: GridMap,
    start: WorldTilePos,
    max_cost: float,
    *,
    allow_diagonal: bool = False,
    walkable: WalkableMask | None = None,
) -> list[ReachableTile]:
    """Every cell reachable from `start` within `max_cost`, with its cost.

    Resolves a full Dijkstra distance map from `start` and keeps the cells
    whose cheapest cost fits the budget. The start cell itself is not
    included. Cells are ordered by cost, then x, then y.
    """
    _require_map(game_map)
    if not game_map.in_bounds(*start):
        return []

    passable = _passable_cells(game_map, start, walkable)
    passable[start] = True
    pathfinder = tcod.path.Pathfinder(_build_graph(passable, allow_diagonal))
    pathfinder.add_root(start)
    pathfinder.resolve()

    distance = pathfinder.distance
    within = (distance != _unreached(distance)) & (
        distance <= max_cost * COST_SCALE + 1e-6
    )
    within[start] = False

    tiles = [
        ReachableTile(int(x), int(y), int(distance[x, y]) / COST_SCALE)
        for x, y in zip(*np.nonzero(within), strict=True)
    ]
    tiles.sort(key=lambda t: (t.cost, t.x, t.y))
    return tiles


def validate_movement(
    game_map: GridMap,
    start: WorldTilePos,
    goal: WorldTilePos,
    available_action_points: ActionPoints,
    *,
    allow_diagonal: bool = False,
    walkable: WalkableMask | None = None,
) -> MovementValidation:
    """Check whether a pre-planned move from start to goal is affordable."""
    path = find_path(
        game_map, start, goal, allow_diagonal=allow_diagonal, walkable=walkable
    )
    if not path:
        return MovementValidation(reason="No path to target")

    cost = calculate_movement_cost(path)
    if cost > available_action_points:
        return MovementValidation(cost=cost, path=path, reason="Insufficient AP")

    return MovementValidation(
        is_valid=True, cost=cost, path=path, reason="Valid movement"
    )


def find_best_approach(
    game_map: GridMap,
    start: WorldTilePos,
    target: WorldTilePos,
    max_cost: float,
    *,
    allow_diagonal: bool = False,
    walkable: WalkableMask | None = None,
) -> ApproachResult:
    """Path to the reachable cell closest to `target` within a budget.

    Useful when the target itself is blocked or too far: the mover still gets
    as close as its budget allows. Ties go to the cheaper cell.
    """
    reachable = get_reachable_tiles(
        game_map, start, max_cost, allow_diagonal=allow_diagonal, walkable=walkable
    )
    if not reachable:
        return ApproachResult(
            path=[], final_distance=manhattan_distance(start, target), cost=0.0
        )

    best_tile = min(reachable, key=lambda t: manhattan_distance(t.position, target))
    path = find_path(
        game_map,
        start,
        best_tile.position,
        allow_diagonal=allow_diagonal,
        walkable=walkable,
    )
    return ApproachResult(
        path=path,
        final_distance=manhattan_distance(best_tile.position, target),
        cost=best_tile.cost,
    )
