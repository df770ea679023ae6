"""Constants for zombie perception and investigation."""


class PerceptionConstants:
    """Constants for last-seen investigation and chase targeting."""

    # Alternative last-seen targets are searched in Manhattan rings around a
    # claimed cell, from radius 1 out to this radius.
    CLAIM_SEARCH_MAX_RADIUS = 3

    # Cardinal approach priorities (lower is preferred).
    APPROACH_PRIORITY_AVAILABLE = 1
    APPROACH_PRIORITY_OCCUPIED = 2
    APPROACH_PRIORITY_BLOCKED = 3
