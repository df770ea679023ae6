"""Constants for grid movement costing."""


class MovementConstants:
    """Constants for path costing and reachable-area queries."""

    # Step costs used by A* and path costing. Diagonal steps are slightly
    # cheaper than two orthogonal steps but dearer than one.
    ORTHOGONAL_STEP_COST = 1.0
    DIAGONAL_STEP_COST = 1.4

    # Sustained-movement efficiency: every EFFICIENCY_STRIDE cells of a
    # pre-planned path take EFFICIENCY_BONUS off the total cost.
    EFFICIENCY_STRIDE = 5
    EFFICIENCY_BONUS = 0.5

    # A non-trivial path never costs less than this.
    MINIMUM_PATH_COST = 0.1

    # Action point values are kept to one decimal place.
    ACTION_POINT_PRECISION = 1
