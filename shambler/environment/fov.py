"""Line of sight and field of view on the grid map.

Visibility is ray based: a cell is visible from another when the discrete
Bresenham line between them crosses no blocker. Only the intermediate cells
of the line are inspected; the two endpoints never block.

Symmetry:
    ``tcod.los.bresenham`` does not produce the same cells for A->B and B->A
    on every slope. Lines are therefore always traced from the
    lexicographically smaller endpoint, so both directions inspect the same
    cells and ``has_line_of_sight(A, B) == has_line_of_sight(B, A)``.

Blockers, checked in order for each intermediate cell:
    - out of bounds (``SightBlock.BOUNDS``)
    - sight-blocking terrain (wall, building, tree) unless listed in
      ``ignore_terrain`` (``SightBlock.TERRAIN``)
    - an occupant with ``blocks_sight`` whose id is not listed in
      ``ignore_entities`` (``SightBlock.ENTITY``)

Range is Euclidean and checked before any tracing (``SightBlock.RANGE``).
"""

from __future__ import annotations

import math
from collections.abc import Collection
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np
import tcod

from shambler import config
from shambler.environment.map import GridMap
from shambler.environment.terrain import TerrainType
from shambler.types import EntityId, WorldTilePos

if TYPE_CHECKING:
    from shambler.game.actors import Entity


class SightBlock(Enum):
    """Why a line of sight failed."""

    RANGE = "range"
    BOUNDS = "bounds"
    TERRAIN = "terrain"
    ENTITY = "entity"


@dataclass
class LineOfSightResult:
    """Outcome of a single line of sight query.

    Attributes:
        clear: True when nothing blocks the line.
        distance: Euclidean distance between the endpoints.
        blocked_by: What stopped the line, or None when clear.
        blocking_cell: The first blocking cell, when a cell blocked.
        path: The traced cells, endpoints included, in origin->target order.
            Empty when the range check failed before tracing.
    """

    clear: bool
    distance: float
    blocked_by: SightBlock | None = None
    blocking_cell: WorldTilePos | None = None
    path: list[WorldTilePos] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class VisibleTile:
    x: int
    y: int
    distance: float

    @property
    def position(self) -> WorldTilePos:
        return (self.x, self.y)


@dataclass
class FieldOfView:
    """Everything an entity can see from where it stands."""

    origin: WorldTilePos
    max_range: float
    tiles: list[VisibleTile]
    entities: list[Entity]

    @property
    def positions(self) -> set[WorldTilePos]:
        return {t.position for t in self.tiles}

    def is_visible(self, x: int, y: int) -> bool:
        return any(t.x == x and t.y == y for t in self.tiles)

    def to_mask(self, width: int, height: int) -> np.ndarray:
        """Boolean (width, height) array marking visible cells, for fog of war."""
        mask = np.zeros((width, height), dtype=np.bool_, order="F")
        for tile in self.tiles:
            if 0 <= tile.x < width and 0 <= tile.y < height:
                mask[tile.x, tile.y] = True
        return mask


def _require_map(game_map: object) -> None:
    if not isinstance(game_map, GridMap):
        raise TypeError(f"Expected a GridMap, got {type(game_map).__name__}.")


def euclidean_distance(a: WorldTilePos, b: WorldTilePos) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def get_line(origin: WorldTilePos, target: WorldTilePos) -> list[WorldTilePos]:
    """Bresenham cells from origin to target, endpoints included.

    The line is rasterized from the smaller endpoint and reversed when needed,
    so the same cells come back whichever way round it is asked for.
    """
    if origin <= target:
        return [(int(x), int(y)) for x, y in tcod.los.bresenham(origin, target)]
    line = [(int(x), int(y)) for x, y in tcod.los.bresenham(target, origin)]
    line.reverse()
    return line


def has_line_of_sight(
    game_map: GridMap,
    origin: WorldTilePos,
    target: WorldTilePos,
    *,
    max_range: float = config.DEFAULT_SIGHT_RANGE,
    ignore_terrain: Collection[TerrainType] = (),
    ignore_entities: Collection[EntityId] = (),
) -> LineOfSightResult:
    """Check whether a straight ray from origin to target is unobstructed.

    Raises:
        TypeError: If `game_map` is not a GridMap.
    """
    _require_map(game_map)

    distance = euclidean_distance(origin, target)
    if distance > max_range:
        return LineOfSightResult(False, distance, SightBlock.RANGE)
    if origin == target:
        return LineOfSightResult(True, 0.0, path=[origin])

    line = get_line(origin, target)
    for x, y in line[1:-1]:
        block = _cell_blocks_sight(game_map, x, y, ignore_terrain, ignore_entities)
        if block is not None:
            return LineOfSightResult(False, distance, block, (x, y), line)

    return LineOfSightResult(True, distance, path=line)


def _cell_blocks_sight(
    game_map: GridMap,
    x: int,
    y: int,
    ignore_terrain: Collection[TerrainType],
    ignore_entities: Collection[EntityId],
) -> SightBlock | None:
    if not game_map.in_bounds(x, y):
        return SightBlock.BOUNDS
    if (
        not game_map.transparent[x, y]
        and game_map.get_terrain(x, y) not in ignore_terrain
    ):
        return SightBlock.TERRAIN
    for occupant in game_map.get_occupants(x, y):
        if occupant.blocks_sight and occupant.id not in ignore_entities:
            return SightBlock.ENTITY
    return None


def get_visible_tiles(
    game_map: GridMap,
    center: WorldTilePos,
    *,
    max_range: float = config.DEFAULT_SIGHT_RANGE,
    ignore_terrain: Collection[TerrainType] = (),
    ignore_entities: Collection[EntityId] = (),
) -> list[VisibleTile]:
    """Every in-range cell with a clear line of sight back to `center`.

    Scans the bounding box around the center in column-major order. The
    center itself is always included at distance 0 when it is on the map.
    """
    _require_map(game_map)

    reach = int(math.floor(max_range))
    cx, cy = center
    x_lo, x_hi = max(0, cx - reach), min(game_map.width - 1, cx + reach)
    y_lo, y_hi = max(0, cy - reach), min(game_map.height - 1, cy + reach)

    visible: list[VisibleTile] = []
    for x in range(x_lo, x_hi + 1):
        for y in range(y_lo, y_hi + 1):
            result = has_line_of_sight(
                game_map,
                center,
                (x, y),
                max_range=max_range,
                ignore_terrain=ignore_terrain,
                ignore_entities=ignore_entities,
            )
            if result.clear:
                visible.append(VisibleTile(x, y, result.distance))
    return visible


def calculate_field_of_view(
    game_map: GridMap,
    entity: Entity,
    *,
    max_range: float | None = None,
    ignore_terrain: Collection[TerrainType] = (),
    ignore_entities: Collection[EntityId] = (),
) -> FieldOfView:
    """Visible cells around an entity plus the other occupants standing on them.

    `max_range` defaults to the entity's own ``sight_range`` when it has one.

    Raises:
        ValueError: If `entity` is None.
        TypeError: If `game_map` is not a GridMap.
    """
    if entity is None:
        raise ValueError("calculate_field_of_view requires an entity.")
    if max_range is None:
        max_range = getattr(entity, "sight_range", config.DEFAULT_SIGHT_RANGE)

    tiles = get_visible_tiles(
        game_map,
        entity.position,
        max_range=max_range,
        ignore_terrain=ignore_terrain,
        ignore_entities=ignore_entities,
    )
    entities = [
        occupant
        for tile in tiles
        for occupant in game_map.get_occupants(tile.x, tile.y)
        if occupant is not entity
    ]
    return FieldOfView(entity.position, max_range, tiles, entities)


def can_see(
    game_map: GridMap,
    observer: Entity,
    target: Entity,
    *,
    target_position: WorldTilePos | None = None,
    max_range: float | None = None,
) -> bool:
    """Whether `observer` has a clear line of sight to `target`.

    Neither entity counts as a blocker of its own line. `target_position`
    overrides where the target is taken to stand, which lets a caller test
    sight against cells the target is only passing through.
    """
    if max_range is None:
        max_range = getattr(observer, "sight_range", config.DEFAULT_SIGHT_RANGE)
    result = has_line_of_sight(
        game_map,
        observer.position,
        target_position or target.position,
        max_range=max_range,
        ignore_entities=(observer.id, target.id),
    )
    return result.clear
