from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np

from shambler.environment.map import GridMap
from shambler.environment.terrain import TerrainType
from shambler.game.actors import Obstacle, Player, Zombie

# Characters accepted by `map_from_ascii`.
ASCII_TERRAIN: dict[str, TerrainType] = {
    ".": TerrainType.GRASS,
    "_": TerrainType.FLOOR,
    "=": TerrainType.ROAD,
    "#": TerrainType.WALL,
    "B": TerrainType.BUILDING,
    "F": TerrainType.FENCE,
    "T": TerrainType.TREE,
    "~": TerrainType.WATER,
    ">": TerrainType.TRANSITION,
}


def make_map(
    width: int = 20, height: int = 20, terrain: TerrainType = TerrainType.GRASS
) -> GridMap:
    """An open map filled with a single terrain type."""
    return GridMap(width, height, default_terrain=terrain)


def map_from_ascii(rows: Sequence[str]) -> GridMap:
    """Build a map from rows of characters; row index is y, column index is x."""
    height = len(rows)
    width = len(rows[0])
    tiles = np.zeros((width, height), dtype=np.uint8, order="F")
    for y, row in enumerate(rows):
        assert len(row) == width, f"Row {y} has length {len(row)}, expected {width}"
        for x, char in enumerate(row):
            tiles[x, y] = ASCII_TERRAIN[char]
    return GridMap(width, height, tiles)


_zombie_counter = 0


def place_zombie(
    game_map: GridMap,
    x: int,
    y: int,
    entity_id: str | None = None,
    **kwargs: Any,
) -> Zombie:
    """Create a zombie and add it to the map."""
    global _zombie_counter
    if entity_id is None:
        _zombie_counter += 1
        entity_id = f"zombie-{_zombie_counter}"
    zombie = Zombie(entity_id, x, y, **kwargs)
    game_map.add_entity(zombie)
    return zombie


def place_player(game_map: GridMap, x: int, y: int, **kwargs: Any) -> Player:
    player = Player("player", x, y, **kwargs)
    game_map.add_entity(player)
    return player


def place_obstacle(
    game_map: GridMap, x: int, y: int, entity_id: str, **kwargs: Any
) -> Obstacle:
    obstacle = Obstacle(entity_id, x, y, **kwargs)
    game_map.add_entity(obstacle)
    return obstacle
