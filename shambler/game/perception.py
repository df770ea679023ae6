"""
Tracks which zombies currently have the player in sight.

The tracker runs during the player's phase. Every time the player occupies a
cell, including each intermediate cell of a multi-cell move, every zombie on
the map is checked for a clear line of sight to that cell:

- newly in sight: a `PerceptionRecord` is created for the zombie;
- still in sight: the record's last known player position is updated;
- sight lost: the zombie's ``last_seen`` flag is set with the record's
  position, which is always the last cell at which sight was confirmed, and
  the record is deleted.

Records exist only while a zombie has sight. Zombie flags are the only thing
the tracker writes outside itself, and it never moves anything.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from shambler.environment.fov import can_see
from shambler.environment.map import GridMap
from shambler.events import SightLostEvent, publish_event
from shambler.game.actors import Player, Zombie
from shambler.types import EntityId, WorldTilePos

logger = logging.getLogger(__name__)


@dataclass
class PerceptionRecord:
    last_known_player_position: WorldTilePos


class PerceptionTracker:
    """Maintains perception records and turns lost sight into last-seen flags."""

    def __init__(self) -> None:
        self._records: dict[EntityId, PerceptionRecord] = {}

    @property
    def spotted_count(self) -> int:
        return len(self._records)

    def spotted_ids(self) -> list[EntityId]:
        return list(self._records)

    def is_spotted(self, zombie: Zombie | EntityId) -> bool:
        return self._key(zombie) in self._records

    def last_known_position(self, zombie: Zombie | EntityId) -> WorldTilePos | None:
        """Where this zombie last confirmed seeing the player, while it still can."""
        record = self._records.get(self._key(zombie))
        return record.last_known_player_position if record else None

    def clear(self) -> None:
        """Drop every record without touching zombie flags."""
        self._records.clear()
        logger.debug("Perception tracking cleared")

    def update_tracking(
        self,
        game_map: GridMap,
        player: Player,
        intermediate_path: Sequence[WorldTilePos] | None = None,
    ) -> list[SightLostEvent]:
        """Evaluate sight for every zombie against the player's position(s).

        Args:
            game_map: The map the zombies and the player stand on.
            player: The player. Its coordinates are used when no path is given.
            intermediate_path: The cells of the player's resolved move, in
                order. Each cell is evaluated in turn as if the player stood
                there; the player entity itself is not moved.

        Returns:
            One `SightLostEvent` per zombie that lost sight, in the order the
            losses happened. Each is also published on the event bus.

        Raises:
            ValueError: If the map or the player is missing.
        """
        if game_map is None or player is None:
            raise ValueError("update_tracking requires a map and a player.")

        zombies = [
            e
            for e in game_map.iter_entities()
            if isinstance(e, Zombie) and not e.is_dead()
        ]
        self._drop_stale_records({z.id for z in zombies})

        if intermediate_path:
            steps = [(i, tuple(pos)) for i, pos in enumerate(intermediate_path)]
        else:
            steps = [(None, player.position)]

        lost: list[SightLostEvent] = []
        for step, position in steps:
            for zombie in zombies:
                event = self._evaluate(game_map, zombie, player, position, step)
                if event is not None:
                    lost.append(event)

        for event in lost:
            publish_event(event)
        return lost

    def refresh_visibility(self, game_map: GridMap, player: Player) -> None:
        """Resync records with the player's current cell without setting flags.

        Zombies that have sight gain or update a record; zombies that do not
        simply lose theirs. Used after loading a game or teleporting the
        player, where a lost record does not mean the zombie watched the
        player walk away.
        """
        for zombie in game_map.iter_entities():
            if not isinstance(zombie, Zombie):
                continue
            if not zombie.is_dead() and can_see(game_map, zombie, player):
                self._records[zombie.id] = PerceptionRecord(player.position)
            else:
                self._records.pop(zombie.id, None)

    def _evaluate(
        self,
        game_map: GridMap,
        zombie: Zombie,
        player: Player,
        position: WorldTilePos,
        step: int | None,
    ) -> SightLostEvent | None:
        visible = can_see(game_map, zombie, player, target_position=position)
        record = self._records.get(zombie.id)

        if visible:
            if record is None:
                self._records[zombie.id] = PerceptionRecord(position)
                logger.debug(f"{zombie.id} spotted player at {position}")
            else:
                record.last_known_player_position = position
            return None

        if record is None:
            return None

        last_confirmed = record.last_known_player_position
        zombie.mark_last_seen(*last_confirmed)
        del self._records[zombie.id]
        logger.debug(f"{zombie.id} lost sight of player; last seen at {last_confirmed}")
        return SightLostEvent(zombie.id, last_confirmed, step)

    def _drop_stale_records(self, live_ids: set[EntityId]) -> None:
        for zombie_id in [zid for zid in self._records if zid not in live_ids]:
            del self._records[zombie_id]

    @staticmethod
    def _key(zombie: Zombie | EntityId) -> EntityId:
        return zombie if isinstance(zombie, str) else zombie.id
