"""
This package contains the zombie behavior resolver and the per-phase
structures it shares with the turn manager.
"""

# Expose the turn entry point and the structures passed into it.
# These form the main, stable API of the package.
from . import approach, behavior, claims
from .approach import CardinalApproach, build_cardinal_approach_list
from .behavior import (
    BehaviorBranch,
    TurnAction,
    TurnActionKind,
    TurnReport,
    execute_turn,
)
from .claims import ClaimedTileSet

__all__ = [
    # Entry point
    "execute_turn",
    # Turn results
    "BehaviorBranch",
    "TurnAction",
    "TurnActionKind",
    "TurnReport",
    # Shared per-phase structures
    "CardinalApproach",
    "ClaimedTileSet",
    "build_cardinal_approach_list",
    # Submodules
    "approach",
    "behavior",
    "claims",
]
