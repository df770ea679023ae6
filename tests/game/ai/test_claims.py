from __future__ import annotations

from shambler.environment.terrain import TerrainType
from shambler.game.ai.claims import ClaimedTileSet, find_unclaimed_alternative
from tests.helpers import make_map, map_from_ascii, place_zombie


def test_claim_and_clear() -> None:
    claimed = ClaimedTileSet()
    claimed.claim(3, 4)
    assert claimed.is_claimed(3, 4)
    assert (3, 4) in claimed
    assert not claimed.is_claimed(4, 3)
    assert len(claimed) == 1
    claimed.clear()
    assert not claimed.is_claimed(3, 4)


def test_first_ring_cell_in_scan_order() -> None:
    claimed = ClaimedTileSet()
    claimed.claim(10, 10)
    assert find_unclaimed_alternative(make_map(20, 20), (10, 10), claimed) == (9, 10)


def test_skips_claimed_and_unwalkable_cells() -> None:
    game_map = make_map(20, 20)
    game_map.set_terrain(9, 10, TerrainType.WALL)
    place_zombie(game_map, 10, 9)
    claimed = ClaimedTileSet()
    claimed.claim(10, 10)
    claimed.claim(10, 11)

    # Ring 1 in scan order: (9, 10) wall, (10, 9) zombie, (10, 11) claimed.
    assert find_unclaimed_alternative(game_map, (10, 10), claimed) == (11, 10)


def test_expands_to_larger_rings() -> None:
    game_map = map_from_ascii(
        [
            "~~~~~~~",
            "~~~~~~~",
            "~~~~~~~",
            "~~~.~~~",
            "~~~~~~~",
            "~~~~~~~",
            "......~",
        ]
    )
    claimed = ClaimedTileSet()
    claimed.claim(3, 3)

    assert find_unclaimed_alternative(game_map, (3, 3), claimed) == (3, 6)


def test_gives_up_beyond_radius() -> None:
    game_map = map_from_ascii(["~~~~~~~~~", "~~~~.~~~~", "~~~~~~~~~"])
    claimed = ClaimedTileSet()
    claimed.claim(4, 1)
    assert find_unclaimed_alternative(game_map, (4, 1), claimed) is None
