"""Claimed tiles: keeps zombies from converging on the same last-seen cell.

A `ClaimedTileSet` lives for one zombie phase. The turn manager clears it at
the start of the phase and passes it to every `execute_turn` call, which is
the only place it is written.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from shambler.constants.perception import PerceptionConstants as Perception
from shambler.environment.map import GridMap
from shambler.types import WorldTilePos

logger = logging.getLogger(__name__)


class ClaimedTileSet:
    """Set of cells already chosen as an investigation target this phase."""

    def __init__(self) -> None:
        self._tiles: set[WorldTilePos] = set()

    def __len__(self) -> int:
        return len(self._tiles)

    def __contains__(self, cell: object) -> bool:
        return cell in self._tiles

    def __iter__(self) -> Iterator[WorldTilePos]:
        return iter(sorted(self._tiles))

    def claim(self, x: int, y: int) -> None:
        self._tiles.add((x, y))

    def is_claimed(self, x: int, y: int) -> bool:
        return (x, y) in self._tiles

    def clear(self) -> None:
        self._tiles.clear()


def find_unclaimed_alternative(
    game_map: GridMap,
    origin: WorldTilePos,
    claimed: ClaimedTileSet,
    max_radius: int = Perception.CLAIM_SEARCH_MAX_RADIUS,
) -> WorldTilePos | None:
    """Nearest unclaimed walkable cell in Manhattan rings around `origin`.

    Rings are searched from radius 1 outwards. Within a ring, cells are
    scanned with dx from -r to r and, for each dx, dy from -r to r; the first
    match wins. Returns None when nothing within `max_radius` qualifies.
    """
    ox, oy = origin
    for radius in range(1, max_radius + 1):
        for dx in range(-radius, radius + 1):
            for dy in range(-radius, radius + 1):
                if abs(dx) + abs(dy) != radius:
                    continue
                x, y = ox + dx, oy + dy
                if claimed.is_claimed(x, y):
                    continue
                if game_map.is_walkable(x, y):
                    logger.debug(
                        f"Alternative for claimed {origin}: ({x}, {y}) at r={radius}"
                    )
                    return (x, y)
    return None
