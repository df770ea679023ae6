"""Cardinal approach list: the four cells a zombie can attack the player from."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from shambler.constants.perception import PerceptionConstants as Perception
from shambler.environment.map import GridMap
from shambler.game.actors import Player, Zombie
from shambler.types import CARDINAL_DIRECTIONS, EntityId, WorldTilePos

logger = logging.getLogger(__name__)

DIRECTION_NAMES = ("right", "left", "down", "up")


@dataclass(frozen=True, slots=True)
class CardinalApproach:
    """One orthogonal neighbour of the player, annotated for chase targeting.

    Attributes:
        passable: Terrain is walkable and nothing but zombies blocks the cell.
            A zombie standing there makes it occupied, not impassable.
        occupied_by: Id of the zombie standing on the cell, if any.
        priority: 1 available, 2 occupied by a zombie, 3 blocked.
    """

    x: int
    y: int
    direction: str
    passable: bool
    occupied_by: EntityId | None
    priority: int

    @property
    def position(self) -> WorldTilePos:
        return (self.x, self.y)

    @property
    def is_occupied(self) -> bool:
        return self.occupied_by is not None


def _evaluate(game_map: GridMap, x: int, y: int, direction: str) -> CardinalApproach:
    if not game_map.in_bounds(x, y):
        return CardinalApproach(
            x, y, direction, False, None, Perception.APPROACH_PRIORITY_BLOCKED
        )

    occupants = game_map.get_occupants(x, y)
    zombie = next((o for o in occupants if isinstance(o, Zombie)), None)
    passable = bool(game_map.walkable_terrain[x, y]) and not any(
        o.blocks_movement and not isinstance(o, Zombie) for o in occupants
    )

    if not passable:
        priority = Perception.APPROACH_PRIORITY_BLOCKED
    elif zombie is not None:
        priority = Perception.APPROACH_PRIORITY_OCCUPIED
    else:
        priority = Perception.APPROACH_PRIORITY_AVAILABLE

    return CardinalApproach(
        x, y, direction, passable, zombie.id if zombie else None, priority
    )


def build_cardinal_approach_list(
    game_map: GridMap, player: Player
) -> list[CardinalApproach]:
    """Evaluate the player's four orthogonal neighbours.

    Neighbours are generated right, left, down, up and then stably sorted by
    priority, so equal-priority cells keep that order.

    Raises:
        ValueError: If the map or the player is missing.
    """
    if game_map is None or player is None:
        raise ValueError("An approach list needs a map and a player.")

    approaches = [
        _evaluate(game_map, player.x + dx, player.y + dy, name)
        for (dx, dy), name in zip(CARDINAL_DIRECTIONS, DIRECTION_NAMES, strict=True)
    ]
    approaches.sort(key=lambda a: a.priority)
    logger.debug(
        f"Approach list around {player.position}: "
        + ", ".join(f"{a.direction}={a.priority}" for a in approaches)
    )
    return approaches


def rank_approaches(
    zombie: Zombie,
    approaches: list[CardinalApproach],
    exclude: WorldTilePos | None = None,
) -> list[CardinalApproach]:
    """Passable approaches in the order a chasing zombie should try them.

    Unoccupied cells come first, then nearer cells (Manhattan), then cells
    other than the one this zombie stands on.
    """
    candidates = [a for a in approaches if a.passable and a.position != exclude]
    return sorted(
        candidates,
        key=lambda a: (
            a.is_occupied,
            zombie.distance_to(a.x, a.y),
            a.occupied_by == zombie.id,
        ),
    )
