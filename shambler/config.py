"""
Configuration constants.

Centralizes the tunable numbers used by the simulation core. Organized by
functional area; grouped per-system constants live in ``shambler.constants``.
"""

# =============================================================================
# VISIBILITY
# =============================================================================

# Range used by line-of-sight queries when the caller gives none.
DEFAULT_SIGHT_RANGE = 10

# How far zombies can see the player.
ZOMBIE_SIGHT_RANGE = 18

# How far the player can see (fog-of-war and zombie tracking).
PLAYER_SIGHT_RANGE = 15

# =============================================================================
# ACTION ECONOMY
# =============================================================================

ZOMBIE_MAX_ACTION_POINTS = 8
PLAYER_MAX_ACTION_POINTS = 100

# Cost of a single resolved step and of a melee attack during a zombie turn.
STEP_ACTION_COST = 1
ATTACK_ACTION_COST = 1

# =============================================================================
# HEALTH
# =============================================================================

ZOMBIE_MAX_HP = 10
PLAYER_MAX_HP = 100
