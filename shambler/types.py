from __future__ import annotations

from typing import Literal, TypeAlias

# =============================================================================
# SPATIAL TYPES
# =============================================================================

TileCoord: TypeAlias = int  # Always integer tile position

# World coordinates - absolute positions on the grid map
WorldTileCoord: TypeAlias = TileCoord  # Example: x=5, y=3
WorldTilePos: TypeAlias = tuple[
    WorldTileCoord, WorldTileCoord
]  # Example: (5, 3) = tile 5,3 on map

# Directions - discrete grid steps
UnitStep: TypeAlias = Literal[-1, 0, 1]
Direction: TypeAlias = tuple[UnitStep, UnitStep]  # Example: (-1, 0) = westward step

# Orthogonal neighbour offsets in the order the pathfinder expands them:
# right, left, down, up.
CARDINAL_DIRECTIONS: tuple[Direction, ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))

# Diagonal neighbour offsets: down-right, up-right, down-left, up-left.
DIAGONAL_DIRECTIONS: tuple[Direction, ...] = ((1, 1), (1, -1), (-1, 1), (-1, -1))

# =============================================================================
# ENTITY TYPES
# =============================================================================

# Stable string identity of an entity on the map (e.g. "zombie-3").
EntityId: TypeAlias = str

# Discriminator stored with persisted entities ("player", "zombie", ...).
EntityKind: TypeAlias = str

# Movement and attack budget. Fractional values appear only in path costing.
ActionPoints: TypeAlias = float
