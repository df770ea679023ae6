from __future__ import annotations

import pytest

from shambler.game.ai.approach import build_cardinal_approach_list, rank_approaches
from shambler.game.actors import Zombie
from tests.helpers import (
    make_map,
    map_from_ascii,
    place_obstacle,
    place_player,
    place_zombie,
)


def test_open_ground_keeps_right_left_down_up_order() -> None:
    game_map = make_map(5, 5)
    player = place_player(game_map, 2, 2)

    approaches = build_cardinal_approach_list(game_map, player)

    assert [a.direction for a in approaches] == ["right", "left", "down", "up"]
    assert [a.position for a in approaches] == [(3, 2), (1, 2), (2, 3), (2, 1)]
    assert all(a.priority == 1 for a in approaches)


def test_priorities_and_stable_sort() -> None:
    game_map = map_from_ascii(
        [
            "...",
            "...",
            ".#.",
        ]
    )
    player = place_player(game_map, 1, 1)
    zombie = place_zombie(game_map, 2, 1)
    place_obstacle(game_map, 1, 0, "crate")

    approaches = build_cardinal_approach_list(game_map, player)
    by_direction = {a.direction: a for a in approaches}

    assert by_direction["left"].priority == 1
    assert by_direction["right"].priority == 2
    assert by_direction["right"].occupied_by == zombie.id
    assert by_direction["right"].passable
    assert by_direction["down"].priority == 3  # Wall
    assert by_direction["up"].priority == 3  # Crate
    assert [a.direction for a in approaches] == ["left", "right", "down", "up"]


def test_out_of_bounds_neighbours_are_blocked() -> None:
    game_map = make_map(3, 1)
    player = place_player(game_map, 0, 0)

    approaches = build_cardinal_approach_list(game_map, player)

    assert approaches[0].direction == "right"
    assert approaches[0].priority == 1
    assert all(not a.passable for a in approaches[1:])


def test_missing_player_is_rejected() -> None:
    with pytest.raises(ValueError):
        build_cardinal_approach_list(make_map(), None)  # type: ignore[arg-type]


class TestRankApproaches:
    def test_unoccupied_beats_nearer_occupied(self) -> None:
        game_map = make_map(10, 10)
        player = place_player(game_map, 5, 5)
        place_zombie(game_map, 4, 5, "blocker")
        chaser = Zombie("chaser", 0, 5)

        ranked = rank_approaches(chaser, build_cardinal_approach_list(game_map, player))

        assert ranked[0].position != (4, 5)
        assert ranked[-1].position == (4, 5)

    def test_nearer_unoccupied_comes_first(self) -> None:
        game_map = make_map(10, 10)
        player = place_player(game_map, 5, 5)
        chaser = Zombie("chaser", 5, 0)

        ranked = rank_approaches(chaser, build_cardinal_approach_list(game_map, player))

        assert ranked[0].position == (5, 4)

    def test_impassable_and_excluded_cells_are_dropped(self) -> None:
        game_map = map_from_ascii(["...", ".#.", "..."])
        player = place_player(game_map, 1, 2)
        chaser = Zombie("chaser", 0, 0)
        approaches = build_cardinal_approach_list(game_map, player)

        ranked = rank_approaches(chaser, approaches, exclude=(0, 2))

        assert [a.position for a in ranked] == [(2, 2)]
