"""
Entities that occupy cells on the grid map.

Entity:
    Anything with an id, a kind and a position. Entities only hold their own
    coordinates; the `GridMap` occupant index is the authority on where they
    stand, and all moves go through the map so the two never drift apart.

Player:
    The single player character. Read-only from the simulation core's point of
    view during the zombie phase, apart from having its action points
    restored by the turn manager.

Zombie:
    A non-player agent. Carries the four flags the behavior resolver derives
    its branch from each turn (`last_seen`, `last_seen_coords`,
    `heard_noise`, `noise_coords`) and its action point budget. It is mutated
    only by its own turn (the behavior engine) or by the perception tracker
    during the player's move.

Obstacle:
    A static occupant such as a crate or a wrecked car. It may block movement,
    sight, or both.

Persistence uses a static registry keyed by each entity's `kind`
discriminator (`ENTITY_FACTORIES`); `entity_from_dict()` never imports
anything dynamically.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, ClassVar

from shambler import config
from shambler.constants.movement import MovementConstants as Movement
from shambler.types import ActionPoints, EntityId, EntityKind, WorldTilePos


def _round_ap(value: float) -> ActionPoints:
    """Keep action points to the configured precision."""
    return round(value, Movement.ACTION_POINT_PRECISION)


class Entity:
    """Base class for every occupant of a grid cell."""

    kind: ClassVar[EntityKind] = "entity"

    def __init__(
        self,
        entity_id: EntityId,
        x: int = 0,
        y: int = 0,
        *,
        blocks_movement: bool = False,
        blocks_sight: bool = False,
    ) -> None:
        if not entity_id:
            raise ValueError("Entities need a non-empty id.")
        self.id: EntityId = entity_id
        self.x = x
        self.y = y
        self.blocks_movement = blocks_movement
        self.blocks_sight = blocks_sight

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.id!r}, x={self.x}, y={self.y})"

    @property
    def position(self) -> WorldTilePos:
        return (self.x, self.y)

    def move_to(self, x: int, y: int) -> None:
        """Update coordinates only. Use `GridMap.move_entity` to move on a map."""
        self.x = x
        self.y = y

    def distance_to(self, x: int, y: int) -> int:
        """Manhattan distance to a cell."""
        return abs(self.x - x) + abs(self.y - y)

    def is_adjacent_to(self, x: int, y: int) -> bool:
        """True only for the four orthogonal neighbours, never diagonals."""
        return self.distance_to(x, y) == 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "x": self.x,
            "y": self.y,
            "blocks_movement": self.blocks_movement,
            "blocks_sight": self.blocks_sight,
        }


class Obstacle(Entity):
    """A static occupant: crates, cars, barricades, large debris."""

    kind: ClassVar[EntityKind] = "obstacle"

    def __init__(
        self,
        entity_id: EntityId,
        x: int = 0,
        y: int = 0,
        *,
        blocks_movement: bool = True,
        blocks_sight: bool = False,
        name: str = "obstacle",
    ) -> None:
        super().__init__(
            entity_id,
            x,
            y,
            blocks_movement=blocks_movement,
            blocks_sight=blocks_sight,
        )
        self.name = name

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["name"] = self.name
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Obstacle:
        return cls(
            data["id"],
            data["x"],
            data["y"],
            blocks_movement=data.get("blocks_movement", True),
            blocks_sight=data.get("blocks_sight", False),
            name=data.get("name", "obstacle"),
        )


class Player(Entity):
    """The player character."""

    kind: ClassVar[EntityKind] = "player"

    def __init__(
        self,
        entity_id: EntityId = "player",
        x: int = 0,
        y: int = 0,
        *,
        name: str = "Survivor",
        max_action_points: ActionPoints = config.PLAYER_MAX_ACTION_POINTS,
        max_hp: int = config.PLAYER_MAX_HP,
        sight_range: int = config.PLAYER_SIGHT_RANGE,
    ) -> None:
        super().__init__(entity_id, x, y, blocks_movement=True, blocks_sight=False)
        self.name = name
        self.max_action_points: ActionPoints = max_action_points
        self.action_points: ActionPoints = max_action_points
        self.max_hp = max_hp
        self.hp = max_hp
        self.sight_range = sight_range

    def spend_action_points(self, amount: ActionPoints) -> bool:
        """Spend action points if affordable. Returns False when short."""
        if amount < 0:
            raise ValueError("Cannot spend a negative amount of action points.")
        if self.action_points < amount:
            return False
        self.action_points = _round_ap(self.action_points - amount)
        return True

    def restore_action_points(self, amount: ActionPoints | None = None) -> None:
        """Restore action points, up to the maximum. None restores fully."""
        if amount is None:
            amount = self.max_action_points
        self.action_points = _round_ap(
            min(self.action_points + amount, self.max_action_points)
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            name=self.name,
            action_points=self.action_points,
            max_action_points=self.max_action_points,
            hp=self.hp,
            max_hp=self.max_hp,
            sight_range=self.sight_range,
        )
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Player:
        player = cls(
            data["id"],
            data["x"],
            data["y"],
            name=data.get("name", "Survivor"),
            max_action_points=data.get(
                "max_action_points", config.PLAYER_MAX_ACTION_POINTS
            ),
            max_hp=data.get("max_hp", config.PLAYER_MAX_HP),
            sight_range=data.get("sight_range", config.PLAYER_SIGHT_RANGE),
        )
        player.action_points = data.get("action_points", player.max_action_points)
        player.hp = data.get("hp", player.max_hp)
        return player


class Zombie(Entity):
    """A non-player agent driven by the behavior resolver.

    Attributes:
        last_seen: Set when the zombie lost sight of the player; cleared on
            arriving at `last_seen_coords`.
        last_seen_coords: Last cell at which sight of the player was confirmed.
        heard_noise: Set by a noise source; cleared by the noise stub.
        noise_coords: Where the noise came from.
        max_action_points: Per-turn budget.
        current_action_points: What is left of this turn's budget.
        behavior_state: Label for debugging and display. The resolver never
            reads it.
    """

    kind: ClassVar[EntityKind] = "zombie"

    def __init__(
        self,
        entity_id: EntityId,
        x: int = 0,
        y: int = 0,
        *,
        subtype: str = "basic",
        max_action_points: ActionPoints = config.ZOMBIE_MAX_ACTION_POINTS,
        sight_range: int = config.ZOMBIE_SIGHT_RANGE,
        max_hp: int = config.ZOMBIE_MAX_HP,
    ) -> None:
        super().__init__(entity_id, x, y, blocks_movement=True, blocks_sight=False)
        self.subtype = subtype

        self.last_seen = False
        self.last_seen_coords: WorldTilePos = (0, 0)
        self.heard_noise = False
        self.noise_coords: WorldTilePos = (0, 0)

        self.max_action_points: ActionPoints = max_action_points
        self.current_action_points: ActionPoints = max_action_points
        self.sight_range = sight_range

        self.behavior_state = "idle"
        self.is_active = False

        self.max_hp = max_hp
        self.hp = max_hp

    # --- Turn lifecycle -----------------------------------------------------

    def start_turn(self) -> None:
        """Refill action points for a new turn."""
        self.current_action_points = self.max_action_points
        self.is_active = True
        self.behavior_state = "idle"

    def end_turn(self) -> None:
        self.is_active = False
        self.behavior_state = "idle"

    def spend_action_points(self, amount: ActionPoints) -> bool:
        """Spend action points if affordable. Returns False when short."""
        if amount < 0:
            raise ValueError("Cannot spend a negative amount of action points.")
        if self.current_action_points < amount:
            return False
        self.current_action_points = _round_ap(self.current_action_points - amount)
        return True

    # --- Perception flags ---------------------------------------------------

    def mark_last_seen(self, x: int, y: int) -> None:
        """Record where the player was last confirmed visible."""
        self.last_seen = True
        self.last_seen_coords = (x, y)

    def clear_last_seen(self) -> None:
        self.last_seen = False
        self.last_seen_coords = (0, 0)

    def hear_noise(self, x: int, y: int) -> None:
        self.heard_noise = True
        self.noise_coords = (x, y)

    def clear_noise(self) -> None:
        self.heard_noise = False
        self.noise_coords = (0, 0)

    # --- Health -------------------------------------------------------------

    def take_damage(self, amount: int) -> bool:
        """Apply damage. Returns True if this killed the zombie."""
        self.hp = max(0, self.hp - amount)
        return self.is_dead()

    def is_dead(self) -> bool:
        return self.hp <= 0

    # --- Persistence --------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            subtype=self.subtype,
            last_seen=self.last_seen,
            last_seen_coords=list(self.last_seen_coords),
            heard_noise=self.heard_noise,
            noise_coords=list(self.noise_coords),
            max_action_points=self.max_action_points,
            current_action_points=self.current_action_points,
            sight_range=self.sight_range,
            behavior_state=self.behavior_state,
            is_active=self.is_active,
            hp=self.hp,
            max_hp=self.max_hp,
        )
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Zombie:
        zombie = cls(
            data["id"],
            data["x"],
            data["y"],
            subtype=data.get("subtype", "basic"),
            max_action_points=data.get(
                "max_action_points", config.ZOMBIE_MAX_ACTION_POINTS
            ),
            sight_range=data.get("sight_range", config.ZOMBIE_SIGHT_RANGE),
            max_hp=data.get("max_hp", config.ZOMBIE_MAX_HP),
        )
        zombie.last_seen = data.get("last_seen", False)
        zombie.last_seen_coords = tuple(data.get("last_seen_coords", (0, 0)))
        zombie.heard_noise = data.get("heard_noise", False)
        zombie.noise_coords = tuple(data.get("noise_coords", (0, 0)))
        zombie.current_action_points = data.get(
            "current_action_points", zombie.max_action_points
        )
        zombie.behavior_state = data.get("behavior_state", "idle")
        zombie.is_active = data.get("is_active", False)
        zombie.hp = data.get("hp", zombie.max_hp)
        return zombie


# Static discriminator -> reconstruction function table.
ENTITY_FACTORIES: dict[EntityKind, Callable[[dict[str, Any]], Entity]] = {
    Player.kind: Player.from_dict,
    Zombie.kind: Zombie.from_dict,
    Obstacle.kind: Obstacle.from_dict,
}


def entity_from_dict(data: dict[str, Any]) -> Entity:
    """Rebuild an entity from its `to_dict()` form.

    Raises:
        ValueError: If the stored kind has no registered factory.
    """
    kind = data.get("kind")
    factory = ENTITY_FACTORIES.get(kind) if isinstance(kind, str) else None
    if factory is None:
        raise ValueError(f"Unknown entity kind: {kind!r}")
    return factory(data)
