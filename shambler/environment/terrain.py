"""
Terrain categories for grid cells, stored with the flyweight pattern.

This module defines:
- `TerrainType`: the integer ID of a terrain category. `GridMap` stores a NumPy
  array of these IDs instead of per-cell objects.
- `TerrainData`: the intrinsic properties of a terrain category (walkable,
  transparent, display name). One row per category.
- Helper functions that turn a terrain ID map into boolean property maps
  (walkability, transparency) with a single fancy-indexing lookup. These feed
  the pathfinder and the line-of-sight tracer.

Terrain alone never accounts for occupants: a walkable-terrain cell can still
be blocked by an occupant that blocks movement. That check lives on `GridMap`.
"""

from enum import IntEnum

import numpy as np

# Intrinsic data for a terrain category (flyweight row).
TerrainData = np.dtype(
    [
        ("walkable", bool),
        ("transparent", bool),  # Line of sight
        ("display_name", "U32"),
    ]
)


class TerrainType(IntEnum):
    """Terrain category IDs. Values index into the terrain property table."""

    GRASS = 0
    FLOOR = 1
    ROAD = 2
    SIDEWALK = 3
    TRANSITION = 4  # Map exits; always walkable terrain
    WALL = 5
    BUILDING = 6
    FENCE = 7
    TREE = 8
    WATER = 9

    @classmethod
    def from_name(cls, name: str) -> "TerrainType":
        """Look up a terrain category by its case-insensitive name."""
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown terrain type: {name!r}") from None


def make_terrain_data(
    *,  # Forces keyword arguments - prevents bugs from wrong parameter order
    walkable: bool,
    transparent: bool,
    display_name: str,
) -> np.ndarray:  # Returns an instance of TerrainData
    """Create a TerrainData row."""
    return np.array((walkable, transparent, display_name), dtype=TerrainData)


# Row order must follow TerrainType values.
_terrain_rows: dict[TerrainType, np.ndarray] = {
    TerrainType.GRASS: make_terrain_data(
        walkable=True, transparent=True, display_name="Grass"
    ),
    TerrainType.FLOOR: make_terrain_data(
        walkable=True, transparent=True, display_name="Floor"
    ),
    TerrainType.ROAD: make_terrain_data(
        walkable=True, transparent=True, display_name="Road"
    ),
    TerrainType.SIDEWALK: make_terrain_data(
        walkable=True, transparent=True, display_name="Sidewalk"
    ),
    TerrainType.TRANSITION: make_terrain_data(
        walkable=True, transparent=True, display_name="Transition"
    ),
    TerrainType.WALL: make_terrain_data(
        walkable=False, transparent=False, display_name="Wall"
    ),
    TerrainType.BUILDING: make_terrain_data(
        walkable=False, transparent=False, display_name="Building"
    ),
    # Fences stop movement but can be seen over.
    TerrainType.FENCE: make_terrain_data(
        walkable=False, transparent=True, display_name="Fence"
    ),
    TerrainType.TREE: make_terrain_data(
        walkable=False, transparent=False, display_name="Tree"
    ),
    TerrainType.WATER: make_terrain_data(
        walkable=False, transparent=True, display_name="Water"
    ),
}

_terrain_table = np.array(
    [_terrain_rows[terrain].item() for terrain in TerrainType], dtype=TerrainData
)

# Per-property lookup arrays, indexed by TerrainType value.
_terrain_properties_walkable = np.ascontiguousarray(_terrain_table["walkable"])
_terrain_properties_transparent = np.ascontiguousarray(_terrain_table["transparent"])

IMPASSABLE_TERRAIN: frozenset[TerrainType] = frozenset(
    terrain for terrain in TerrainType if not _terrain_properties_walkable[terrain]
)
SIGHT_BLOCKING_TERRAIN: frozenset[TerrainType] = frozenset(
    terrain for terrain in TerrainType if not _terrain_properties_transparent[terrain]
)


def get_walkable_map(terrain_map: np.ndarray) -> np.ndarray:
    """
    Converts a map of TerrainType IDs into a boolean map of terrain walkability.
    True means the terrain itself permits movement.
    """
    return _terrain_properties_walkable[terrain_map]


def get_transparent_map(terrain_map: np.ndarray) -> np.ndarray:
    """
    Converts a map of TerrainType IDs into a boolean map of transparency.
    True means the terrain does not block line of sight.
    """
    return _terrain_properties_transparent[terrain_map]


def is_walkable_terrain(terrain: TerrainType) -> bool:
    return bool(_terrain_properties_walkable[terrain])


def blocks_sight(terrain: TerrainType) -> bool:
    return not _terrain_properties_transparent[terrain]


def get_display_name(terrain: TerrainType) -> str:
    """Human-readable name of a terrain category."""
    return str(_terrain_table["display_name"][terrain])
