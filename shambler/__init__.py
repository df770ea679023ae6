"""Perception-driven zombie simulation core.

Decides what every zombie does during the zombie phase of a turn-based
survival game: grid pathfinding, ray-cast visibility, player tracking and a
priority-ordered behavior resolver.
"""

__version__ = "0.1.0"
