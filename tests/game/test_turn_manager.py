"""Tests for the player-move hook and the zombie phase."""

from __future__ import annotations

import pytest

from shambler.environment.terrain import TerrainType
from shambler.events import SightLostEvent, ZombieTurnEvent, subscribe_to_event
from shambler.game.ai.behavior import BehaviorBranch
from shambler.game.perception import PerceptionTracker
from shambler.game.turn_manager import TurnManager
from tests.helpers import make_map, place_player, place_zombie


class TestConstruction:
    def test_player_must_be_on_the_map(self) -> None:
        game_map = make_map(5, 5)
        other = make_map(5, 5)
        player = place_player(other, 1, 1)
        with pytest.raises(ValueError):
            TurnManager(game_map, player)

    def test_approach_list_built_up_front(self) -> None:
        game_map = make_map(5, 5)
        player = place_player(game_map, 2, 2)
        manager = TurnManager(game_map, player)
        assert len(manager.approach_list) == 4

    def test_uses_given_tracker(self) -> None:
        game_map = make_map(5, 5)
        player = place_player(game_map, 2, 2)
        tracker = PerceptionTracker()
        assert TurnManager(game_map, player, tracker).tracker is tracker


class TestPlayerMove:
    def test_moves_player_and_replays_path(self) -> None:
        game_map = make_map(30, 1)
        zombie = place_zombie(game_map, 0, 0, sight_range=3)
        player = place_player(game_map, 2, 0)
        manager = TurnManager(game_map, player)
        manager.tracker.update_tracking(game_map, player)

        lost = manager.on_player_moved([(2, 0), (3, 0), (4, 0), (5, 0)])

        assert player.position == (5, 0)
        assert zombie.last_seen_coords == (3, 0)
        assert [e.agent_id for e in lost] == [zombie.id]
        assert {a.position for a in manager.approach_list} == {
            (6, 0),
            (4, 0),
            (5, 1),
            (5, -1),
        }

    def test_blocked_path_stops_the_player(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        game_map = make_map(10, 1)
        game_map.set_terrain(3, 0, TerrainType.WALL)
        player = place_player(game_map, 0, 0)
        manager = TurnManager(game_map, player)

        with caplog.at_level("WARNING"):
            manager.on_player_moved([(1, 0), (2, 0), (3, 0), (4, 0)])

        assert player.position == (2, 0)
        assert "Player move interrupted" in caplog.text

    def test_non_adjacent_step_stops_the_player(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        game_map = make_map(30, 1)
        zombie = place_zombie(game_map, 0, 0, sight_range=3)
        player = place_player(game_map, 1, 0)
        manager = TurnManager(game_map, player)

        with caplog.at_level("WARNING"):
            lost = manager.on_player_moved([(1, 0), (2, 0), (9, 0), (10, 0)])

        assert player.position == (2, 0)
        assert "not an orthogonal neighbour" in caplog.text
        assert lost == []
        assert not zombie.last_seen

    def test_diagonal_step_stops_the_player(self) -> None:
        game_map = make_map(5, 5)
        player = place_player(game_map, 1, 1)
        manager = TurnManager(game_map, player)

        manager.on_player_moved([(2, 2), (3, 2)])

        assert player.position == (1, 1)

    def test_sight_lost_events_are_published(self) -> None:
        game_map = make_map(30, 1)
        place_zombie(game_map, 0, 0, sight_range=2)
        player = place_player(game_map, 1, 0)
        manager = TurnManager(game_map, player)
        received: list[SightLostEvent] = []
        subscribe_to_event(SightLostEvent, received.append)

        manager.on_player_moved([(1, 0), (2, 0), (3, 0)])

        assert len(received) == 1
        assert received[0].last_seen_coords == (2, 0)


class TestZombiePhase:
    def test_runs_every_living_zombie_in_order(self) -> None:
        game_map = make_map(10, 10)
        player = place_player(game_map, 5, 5)
        place_zombie(game_map, 0, 0, "a")
        dead = place_zombie(game_map, 9, 9, "dead")
        dead.take_damage(dead.max_hp)
        place_zombie(game_map, 9, 0, "b")
        manager = TurnManager(game_map, player)

        reports = manager.run_zombie_phase()

        assert [r.agent_id for r in reports] == ["a", "b"]
        assert all(r.branch is BehaviorBranch.CHASE for r in reports)
        assert manager.turn_number == 1

    def test_publishes_a_turn_event_per_zombie(self) -> None:
        game_map = make_map(10, 10)
        player = place_player(game_map, 5, 5)
        place_zombie(game_map, 0, 0)
        place_zombie(game_map, 9, 9)
        manager = TurnManager(game_map, player)
        received: list[ZombieTurnEvent] = []
        subscribe_to_event(ZombieTurnEvent, received.append)

        manager.run_zombie_phase()
        manager.run_zombie_phase()

        assert [e.turn_number for e in received] == [1, 1, 2, 2]

    def test_claims_are_cleared_at_phase_start(self) -> None:
        game_map = make_map(20, 20)
        player = place_player(game_map, 19, 19)
        manager = TurnManager(game_map, player)
        manager.claimed_tiles.claim(4, 4)

        manager.run_zombie_phase()

        assert not manager.claimed_tiles.is_claimed(4, 4)

    def test_zombies_spread_out_over_claimed_tiles(self) -> None:
        game_map = make_map(20, 20)
        player = place_player(game_map, 19, 19)
        first = place_zombie(game_map, 10, 5, sight_range=3)
        second = place_zombie(game_map, 5, 10, sight_range=3)
        first.mark_last_seen(10, 10)
        second.mark_last_seen(10, 10)
        manager = TurnManager(game_map, player)

        manager.run_zombie_phase()

        assert first.position == (10, 10)
        assert second.position == (9, 10)

    def test_player_action_points_restored(self) -> None:
        game_map = make_map(5, 5)
        player = place_player(game_map, 2, 2)
        player.spend_action_points(40)
        manager = TurnManager(game_map, player)

        manager.run_zombie_phase()

        assert player.action_points == player.max_action_points

    def test_approach_list_follows_terrain_changes(self) -> None:
        game_map = make_map(5, 5)
        player = place_player(game_map, 2, 2)
        manager = TurnManager(game_map, player)

        game_map.set_terrain(3, 2, TerrainType.WALL)

        right = next(a for a in manager.approach_list if a.direction == "right")
        assert not right.passable
