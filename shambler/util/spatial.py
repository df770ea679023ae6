"""
Exact-cell occupant index for grid entities.

The `OccupantIndex` is the authoritative record of which entities stand on
which cell. `GridMap` routes every add/remove/move through it, and entity
coordinates are reconciled against it when they disagree.

Unlike a bucketed spatial hash, each key here is a single cell, so point
lookups need no filtering. Occupants of a cell keep their insertion order,
which keeps every query deterministic.
"""

from collections import defaultdict
from typing import Generic, Protocol, TypeVar

from shambler.types import EntityId, WorldTilePos


class Locatable(Protocol):
    """A protocol for objects with an id and integer x and y attributes."""

    id: EntityId
    x: int
    y: int


T = TypeVar("T", bound=Locatable)


class OccupantIndex(Generic[T]):
    """Maps cells to the entities standing on them."""

    def __init__(self) -> None:
        self.cells: dict[WorldTilePos, list[T]] = defaultdict(list)
        self._entity_cell: dict[EntityId, WorldTilePos] = {}

    def __len__(self) -> int:
        return len(self._entity_cell)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entity_cell

    def add(self, obj: T, cell: WorldTilePos) -> None:
        """Place an object on a cell. The object must not already be indexed."""
        if obj.id in self._entity_cell:
            raise ValueError(f"Entity {obj.id!r} is already indexed.")
        self.cells[cell].append(obj)
        self._entity_cell[obj.id] = cell

    def remove(self, obj: T) -> WorldTilePos | None:
        """Remove an object. Returns the cell it was indexed at, if any."""
        cell = self._entity_cell.pop(obj.id, None)
        if cell is None:
            return None

        occupants = self.cells.get(cell)
        if occupants is not None:
            self.cells[cell] = [o for o in occupants if o.id != obj.id]
            # Drop empty cells so the index only holds occupied keys.
            if not self.cells[cell]:
                del self.cells[cell]
        return cell

    def relocate(self, obj: T, cell: WorldTilePos) -> None:
        """Move an already-indexed object to a new cell."""
        if self._entity_cell.get(obj.id) == cell:
            return  # Fast path: nothing to do
        self.remove(obj)
        self.add(obj, cell)

    def cell_of(self, entity_id: EntityId) -> WorldTilePos | None:
        """Return the authoritative cell for an entity id."""
        return self._entity_cell.get(entity_id)

    def get_at_point(self, x: int, y: int) -> list[T]:
        """Get all objects on a specific cell (x, y)."""
        return list(self.cells.get((x, y), ()))

    def get_in_bounds(self, x1: int, y1: int, x2: int, y2: int) -> list[T]:
        """Get all objects within an inclusive rectangular bounding box."""
        if x1 > x2:
            x1, x2 = x2, x1
        if y1 > y2:
            y1, y2 = y2, y1
        return [
            obj
            for (cx, cy), occupants in self.cells.items()
            if x1 <= cx <= x2 and y1 <= cy <= y2
            for obj in occupants
        ]

    def clear(self) -> None:
        """Remove all objects from the index."""
        self.cells.clear()
        self._entity_cell.clear()
