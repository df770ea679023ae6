"""
Turn orchestration: the player's move hook and the zombie phase.

A full turn has two halves:

1. Player phase. The movement layer resolves the player's path and hands it
   to `TurnManager.on_player_moved()`, which walks the player along it, has
   the `PerceptionTracker` replay every cell of it so zombies that lose
   sight mid-move get an accurate last-seen cell, and recomputes the
   cardinal approach list around the player's new cell.

2. Zombie phase. `TurnManager.run_zombie_phase()` clears the claimed tile
   set, runs every living zombie's turn one at a time in map insertion
   order, publishes a `ZombieTurnEvent` per turn report, then restores the
   player's action points and recomputes the approach list.

Everything is synchronous; no zombie's turn starts before the previous one
has fully resolved.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from shambler.environment.map import GridMap
from shambler.events import SightLostEvent, ZombieTurnEvent, publish_event
from shambler.game.actors import Player, Zombie
from shambler.game.ai.approach import CardinalApproach, build_cardinal_approach_list
from shambler.game.ai.behavior import TurnReport, execute_turn
from shambler.game.ai.claims import ClaimedTileSet
from shambler.game.perception import PerceptionTracker
from shambler.types import WorldTilePos

logger = logging.getLogger(__name__)


class TurnManager:
    """Drives the player-move hook and the sequential zombie phase.

    Args:
        game_map: The map everything stands on. The player must be on it.
        player: The player character.
        tracker: Perception tracker to use. A fresh one is created if omitted.
    """

    def __init__(
        self,
        game_map: GridMap,
        player: Player,
        tracker: PerceptionTracker | None = None,
    ) -> None:
        if game_map is None or player is None:
            raise ValueError("TurnManager requires a map and a player.")
        if game_map.get_entity(player.id) is not player:
            raise ValueError(f"{player.id} is not on the given map.")

        self.game_map = game_map
        self.player = player
        self.tracker = tracker or PerceptionTracker()
        self.claimed_tiles = ClaimedTileSet()
        self.turn_number = 0
        self._approach_list: list[CardinalApproach] = []
        self._approach_revision = -1
        self.refresh_approach_list()

    @property
    def approach_list(self) -> list[CardinalApproach]:
        """The cardinal approach list, recomputed if the terrain changed."""
        if self._approach_revision != self.game_map.revision:
            self.refresh_approach_list()
        return list(self._approach_list)

    def refresh_approach_list(self) -> list[CardinalApproach]:
        self._approach_list = build_cardinal_approach_list(self.game_map, self.player)
        self._approach_revision = self.game_map.revision
        return list(self._approach_list)

    def on_player_moved(self, path: Sequence[WorldTilePos]) -> list[SightLostEvent]:
        """Walk the player along a resolved path and replay it for perception.

        The first cell may be the player's current cell. Movement stops at the
        first cell that is not orthogonally adjacent to the previous one or
        that the map refuses; perception is replayed only over the cells the
        player actually occupied.

        Returns:
            The sight-lost events produced by the replay.
        """
        walked: list[WorldTilePos] = [self.player.position]
        for x, y in path:
            if (x, y) == self.player.position:
                continue
            if not self.player.is_adjacent_to(x, y):
                logger.warning(
                    f"Player move interrupted at {self.player.position}: "
                    f"({x}, {y}) is not an orthogonal neighbour"
                )
                break
            if not self.game_map.move_entity(self.player.id, x, y):
                logger.warning(
                    f"Player move interrupted at {self.player.position}: "
                    f"({x}, {y}) is not walkable"
                )
                break
            walked.append((x, y))

        lost = self.tracker.update_tracking(self.game_map, self.player, walked)
        self.refresh_approach_list()
        return lost

    def living_zombies(self) -> list[Zombie]:
        return [
            e
            for e in self.game_map.iter_entities()
            if isinstance(e, Zombie) and not e.is_dead()
        ]

    def run_zombie_phase(self) -> list[TurnReport]:
        """Run every living zombie's turn in order and close out the turn."""
        self.claimed_tiles.clear()
        approach_list = self.approach_list
        self.turn_number += 1

        reports: list[TurnReport] = []
        for zombie in self.living_zombies():
            report = execute_turn(
                zombie, self.game_map, self.player, approach_list, self.claimed_tiles
            )
            reports.append(report)
            publish_event(ZombieTurnEvent(report, self.turn_number))

        reconciled = self.game_map.verify_all_occupancy()
        if reconciled:
            logger.warning(f"Reconciled {reconciled} entities after zombie phase")

        self.player.restore_action_points()
        self.refresh_approach_list()

        logger.info(
            f"Zombie phase {self.turn_number}: {len(reports)} zombies acted, "
            f"{sum(r.attacked for r in reports)} attacks, "
            f"{len(self.claimed_tiles)} tiles claimed"
        )
        return reports
