from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from shambler.environment import terrain
from shambler.environment.terrain import TerrainType
from shambler.events import OccupancyReconciledEvent, publish_event
from shambler.types import EntityId, EntityKind, WorldTilePos
from shambler.util.spatial import OccupantIndex

if TYPE_CHECKING:
    from shambler.game.actors import Entity

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Cell:
    """Read-only view of one grid cell at the moment it was requested."""

    x: int
    y: int
    terrain: TerrainType
    occupants: tuple[Entity, ...]

    @property
    def position(self) -> WorldTilePos:
        return (self.x, self.y)

    @property
    def walkable(self) -> bool:
        """Impassable terrain never is; otherwise any movement blocker blocks."""
        if not terrain.is_walkable_terrain(self.terrain):
            return False
        return not any(o.blocks_movement for o in self.occupants)


class GridMap:
    """The grid map: terrain, occupants and the entity registry.

    Terrain is a NumPy array of `TerrainType` IDs indexed ``[x, y]``. Occupant
    placement is owned by an `OccupantIndex`; every add, remove and move goes
    through this class so entity coordinates and the index always agree.
    """

    def __init__(
        self,
        width: int,
        height: int,
        tiles: np.ndarray | None = None,
        *,
        default_terrain: TerrainType = TerrainType.GRASS,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Map dimensions must be positive, got {width}x{height}.")
        self.width = width
        self.height = height
        # Bumped whenever terrain changes so callers can cache derived data.
        self.revision: int = 0

        if tiles is None:
            tiles = np.full((width, height), default_terrain, dtype=np.uint8, order="F")
        elif tiles.shape != (width, height):
            raise ValueError(
                f"Terrain array shape {tiles.shape} does not match {width}x{height}."
            )
        self.tiles: np.ndarray = tiles

        self.occupants: OccupantIndex[Entity] = OccupantIndex()
        self._entities: dict[EntityId, Entity] = {}

        self._walkable_terrain_cache: np.ndarray | None = None
        self._transparent_cache: np.ndarray | None = None

    def __repr__(self) -> str:
        return f"GridMap({self.width}x{self.height}, entities={len(self._entities)})"

    # --- Terrain ------------------------------------------------------------

    def invalidate_property_caches(self) -> None:
        """Call this whenever `self.tiles` changes to clear cached property maps."""
        self._walkable_terrain_cache = None
        self._transparent_cache = None
        self.revision += 1

    @property
    def walkable_terrain(self) -> np.ndarray:
        """Boolean array (width, height): True where the terrain permits movement.

        Occupants are not considered; see `is_walkable`.
        """
        if self._walkable_terrain_cache is None:
            self._walkable_terrain_cache = terrain.get_walkable_map(self.tiles)
        return self._walkable_terrain_cache

    @property
    def transparent(self) -> np.ndarray:
        """Boolean array (width, height): True where terrain lets sight through."""
        if self._transparent_cache is None:
            self._transparent_cache = terrain.get_transparent_map(self.tiles)
        return self._transparent_cache

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_terrain(self, x: int, y: int) -> TerrainType:
        return TerrainType(int(self.tiles[x, y]))

    def set_terrain(self, x: int, y: int, terrain_type: TerrainType) -> None:
        if not self.in_bounds(x, y):
            raise ValueError(f"({x}, {y}) is outside the map.")
        self.tiles[x, y] = terrain_type
        self.invalidate_property_caches()

    def fill_terrain(
        self, x1: int, y1: int, x2: int, y2: int, terrain_type: TerrainType
    ) -> None:
        """Set every cell in the inclusive rectangle to one terrain type."""
        if x1 > x2:
            x1, x2 = x2, x1
        if y1 > y2:
            y1, y2 = y2, y1
        x1, x2 = max(0, x1), min(self.width - 1, x2)
        y1, y2 = max(0, y1), min(self.height - 1, y2)
        if x1 > x2 or y1 > y2:
            return
        self.tiles[x1 : x2 + 1, y1 : y2 + 1] = terrain_type
        self.invalidate_property_caches()

    # --- Cells --------------------------------------------------------------

    def get_cell(self, x: int, y: int) -> Cell | None:
        """Return a view of the cell, or None when out of bounds."""
        if not self.in_bounds(x, y):
            return None
        return Cell(
            x, y, self.get_terrain(x, y), tuple(self.occupants.get_at_point(x, y))
        )

    def get_occupants(self, x: int, y: int) -> list[Entity]:
        return self.occupants.get_at_point(x, y)

    def is_walkable(self, x: int, y: int, *, ignore: Entity | None = None) -> bool:
        """Whether an entity could stand on (x, y) right now.

        Args:
            ignore: An occupant that does not count as a blocker, typically
                the entity asking.
        """
        if not self.in_bounds(x, y) or not self.walkable_terrain[x, y]:
            return False
        return not any(
            o.blocks_movement and o is not ignore
            for o in self.occupants.get_at_point(x, y)
        )

    def movement_mask(self, *, ignore: Iterable[Entity] = ()) -> np.ndarray:
        """Boolean array (width, height): `is_walkable` for every cell at once.

        Starts from the terrain and clears each cell holding a movement
        blocker that is not in `ignore`.
        """
        mask = self.walkable_terrain.copy()
        ignored = {e.id for e in ignore}
        for (x, y), occupants in self.occupants.cells.items():
            if any(o.blocks_movement and o.id not in ignored for o in occupants):
                mask[x, y] = False
        return mask

    # --- Entities -----------------------------------------------------------

    @property
    def entities(self) -> list[Entity]:
        """All entities in the order they were added."""
        return list(self._entities.values())

    def get_entity(self, entity_id: EntityId) -> Entity | None:
        return self._entities.get(entity_id)

    def get_entities_by_kind(self, kind: EntityKind) -> list[Entity]:
        return [e for e in self._entities.values() if e.kind == kind]

    def iter_entities(self) -> Iterator[Entity]:
        return iter(list(self._entities.values()))

    def add_entity(
        self, entity: Entity, x: int | None = None, y: int | None = None
    ) -> None:
        """Place an entity on the map, at (x, y) or its own coordinates.

        Raises:
            ValueError: If the cell is out of bounds or the id is already used.
        """
        if x is None or y is None:
            x, y = entity.x, entity.y
        if not self.in_bounds(x, y):
            raise ValueError(
                f"Cannot place {entity.id!r} outside the map at ({x}, {y})."
            )
        if entity.id in self._entities:
            raise ValueError(f"Duplicate entity id {entity.id!r}.")

        entity.move_to(x, y)
        self._entities[entity.id] = entity
        self.occupants.add(entity, (x, y))
        logger.debug(f"Entity added: {entity.id} ({entity.kind}) at ({x}, {y})")

    def remove_entity(self, entity_id: EntityId) -> Entity | None:
        entity = self._entities.pop(entity_id, None)
        if entity is None:
            return None
        self.occupants.remove(entity)
        logger.debug(f"Entity removed: {entity_id}")
        return entity

    def move_entity(self, entity_id: EntityId, x: int, y: int) -> bool:
        """Move an entity to (x, y) if the destination is walkable.

        Returns False, without changing anything, when the entity is unknown
        or the destination is out of bounds or blocked.
        """
        entity = self._entities.get(entity_id)
        if entity is None:
            logger.warning(f"Move failed: unknown entity {entity_id!r}")
            return False
        if entity.position == (x, y):
            return True
        if not self.is_walkable(x, y, ignore=entity):
            logger.debug(f"Move failed: {entity_id} cannot enter ({x}, {y})")
            return False

        self.occupants.relocate(entity, (x, y))
        entity.move_to(x, y)
        self.verify_occupancy(entity)
        return True

    def verify_occupancy(self, entity: Entity) -> bool:
        """Check an entity's coordinates against the occupant index.

        On a mismatch the index wins: the entity's coordinates are reset to
        its indexed cell and the inconsistency is logged and published.

        Returns:
            True if the entity was consistent.
        """
        indexed = self.occupants.cell_of(entity.id)
        if indexed is None or indexed == entity.position:
            return True

        recorded = entity.position
        logger.warning(
            f"Occupancy mismatch for {entity.id}: entity at {recorded}, "
            f"index at {indexed}; reconciling from index"
        )
        entity.move_to(*indexed)
        publish_event(
            OccupancyReconciledEvent(
                entity_id=entity.id, recorded=recorded, authoritative=indexed
            )
        )
        return False

    def verify_all_occupancy(self) -> int:
        """Verify every entity; returns how many needed reconciling."""
        return sum(not self.verify_occupancy(e) for e in self.iter_entities())

    # --- Persistence --------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "tiles": self.tiles.astype(int).tolist(),
            "entities": [e.to_dict() for e in self._entities.values()],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GridMap:
        from shambler.game.actors import entity_from_dict

        tiles = np.asarray(data["tiles"], dtype=np.uint8, order="F")
        game_map = cls(data["width"], data["height"], tiles)
        for entity_data in data.get("entities", []):
            game_map.add_entity(entity_from_dict(entity_data))
        return game_map
