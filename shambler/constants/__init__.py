"""Constants packages for implementation details.

These are distinct from config.py which contains tunable settings.
Constants here are implementation details that need descriptive names.
"""

from .movement import MovementConstants
from .perception import PerceptionConstants

__all__ = [
    "MovementConstants",
    "PerceptionConstants",
]
