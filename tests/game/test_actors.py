"""Tests for entities, their action point bookkeeping and the persistence registry."""

from __future__ import annotations

import pytest

from shambler import config
from shambler.game.actors import (
    ENTITY_FACTORIES,
    Obstacle,
    Player,
    Zombie,
    entity_from_dict,
)


class TestEntityBasics:
    def test_empty_id_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            Zombie("")

    def test_adjacency_is_orthogonal_only(self) -> None:
        zombie = Zombie("z", 2, 2)
        assert zombie.is_adjacent_to(3, 2)
        assert zombie.is_adjacent_to(2, 1)
        assert not zombie.is_adjacent_to(3, 3)
        assert not zombie.is_adjacent_to(2, 2)

    def test_distance_is_manhattan(self) -> None:
        assert Zombie("z", 0, 0).distance_to(3, -4) == 7


class TestZombieDefaults:
    def test_spawn_defaults(self) -> None:
        zombie = Zombie("z")
        assert zombie.last_seen is False
        assert zombie.last_seen_coords == (0, 0)
        assert zombie.heard_noise is False
        assert zombie.noise_coords == (0, 0)
        assert zombie.max_action_points == 8
        assert zombie.current_action_points == 8
        assert zombie.sight_range == config.ZOMBIE_SIGHT_RANGE
        assert zombie.behavior_state == "idle"
        assert zombie.blocks_movement
        assert not zombie.blocks_sight

    def test_last_seen_flags(self) -> None:
        zombie = Zombie("z")
        zombie.mark_last_seen(4, 5)
        assert zombie.last_seen
        assert zombie.last_seen_coords == (4, 5)
        zombie.clear_last_seen()
        assert not zombie.last_seen
        assert zombie.last_seen_coords == (0, 0)

    def test_noise_flags(self) -> None:
        zombie = Zombie("z")
        zombie.hear_noise(1, 2)
        assert zombie.heard_noise
        assert zombie.noise_coords == (1, 2)
        zombie.clear_noise()
        assert not zombie.heard_noise


class TestActionPoints:
    def test_spend_and_refill(self) -> None:
        zombie = Zombie("z")
        assert zombie.spend_action_points(3)
        assert zombie.current_action_points == 5
        assert not zombie.spend_action_points(6)
        assert zombie.current_action_points == 5
        zombie.start_turn()
        assert zombie.current_action_points == 8
        assert zombie.is_active

    def test_fractional_spending_is_rounded(self) -> None:
        zombie = Zombie("z")
        for _ in range(3):
            zombie.spend_action_points(0.1)
        assert zombie.current_action_points == 7.7

    def test_negative_spend_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            Zombie("z").spend_action_points(-1)
        with pytest.raises(ValueError):
            Player().spend_action_points(-1)

    def test_player_restore_caps_at_max(self) -> None:
        player = Player(max_action_points=10)
        player.spend_action_points(7)
        player.restore_action_points(2)
        assert player.action_points == 5
        player.restore_action_points()
        assert player.action_points == 10


class TestDamage:
    def test_take_damage_until_dead(self) -> None:
        zombie = Zombie("z", max_hp=3)
        assert not zombie.take_damage(2)
        assert zombie.take_damage(5)
        assert zombie.hp == 0
        assert zombie.is_dead()


class TestRegistry:
    def test_registry_covers_every_kind(self) -> None:
        assert set(ENTITY_FACTORIES) == {"player", "zombie", "obstacle"}

    def test_zombie_round_trip_keeps_every_field(self) -> None:
        zombie = Zombie("z7", 3, 4, subtype="runner", max_action_points=10)
        zombie.mark_last_seen(9, 1)
        zombie.hear_noise(2, 2)
        zombie.spend_action_points(4)
        zombie.behavior_state = "investigating"
        zombie.take_damage(3)

        restored = entity_from_dict(zombie.to_dict())

        assert isinstance(restored, Zombie)
        assert restored.to_dict() == zombie.to_dict()
        assert restored.last_seen_coords == (9, 1)
        assert restored.noise_coords == (2, 2)
        assert restored.current_action_points == 4

    def test_player_round_trip(self) -> None:
        player = Player("p", 1, 2, name="Ada")
        player.spend_action_points(12)
        restored = entity_from_dict(player.to_dict())
        assert isinstance(restored, Player)
        assert restored.to_dict() == player.to_dict()

    def test_obstacle_round_trip(self) -> None:
        obstacle = Obstacle("car", 5, 5, blocks_sight=True, name="wrecked car")
        restored = entity_from_dict(obstacle.to_dict())
        assert isinstance(restored, Obstacle)
        assert restored.to_dict() == obstacle.to_dict()

    @pytest.mark.parametrize("kind", ["dragon", None, 3])
    def test_unknown_kind_is_rejected(self, kind: object) -> None:
        with pytest.raises(ValueError, match="Unknown entity kind"):
            entity_from_dict({"id": "x", "kind": kind, "x": 0, "y": 0})
