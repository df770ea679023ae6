"""Global event bus for observers of the simulation core.

The simulation itself never depends on events: every operation returns a
structured result (paths, turn reports, lost-sight records) and the caller
decides what to do with it. The bus exists so that an orchestrator can fan
those results out to logging, message logs or renderers without threading
callbacks through every call.

USE FOR:
- Zombie turn summaries for message logs and debug overlays
- Perception changes (a zombie lost sight of the player)
- Occupancy reconciliation notices

DO NOT USE FOR:
- Control flow inside a turn (the behavior resolver never listens to events)
- Error handling or exception propagation

The event bus is fire-and-forget: publish an event without expecting return
values or confirmations. All handlers execute immediately (synchronously).
"""

import logging
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass
from typing import Any

from shambler.types import EntityId, WorldTilePos

logger = logging.getLogger(__name__)


@dataclass
class GameEvent:
    """Base class for all simulation events."""

    pass


@dataclass
class SightLostEvent(GameEvent):
    """A zombie lost sight of the player.

    Attributes:
        agent_id: The zombie that lost sight.
        last_seen_coords: The last cell at which sight was confirmed.
        path_step: Index into the replayed player path where sight was lost,
            or None for a single-position update.
    """

    agent_id: EntityId
    last_seen_coords: WorldTilePos
    path_step: int | None = None


@dataclass
class ZombieTurnEvent(GameEvent):
    """A zombie finished its turn during the zombie phase."""

    report: Any  # TurnReport; avoid circular imports
    turn_number: int = 0


@dataclass
class OccupancyReconciledEvent(GameEvent):
    """An entity's coordinates disagreed with the occupant index and were fixed."""

    entity_id: EntityId
    recorded: WorldTilePos
    authoritative: WorldTilePos


class EventBus:
    """Simple event bus for publish/subscribe pattern."""

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable]] = {}

    def subscribe(self, event_type: type, handler: Callable) -> None:
        """Subscribe a handler to an event type."""
        if event_type not in self._handlers:
            self._handlers[event_type] = []
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type, handler: Callable) -> None:
        """Unsubscribe a handler from an event type."""
        if event_type in self._handlers:
            with suppress(ValueError):
                self._handlers[event_type].remove(handler)

    def publish(self, event: GameEvent) -> None:
        """Publish an event to all subscribed handlers."""
        event_type = type(event)
        if event_type in self._handlers:
            # Copy the handler list to allow safe subscribe/unsubscribe during dispatch
            for handler in list(self._handlers[event_type]):
                try:
                    handler(event)
                except Exception:
                    logger.exception(f"Error handling event {event_type.__name__}")


# Global event bus instance
_global_event_bus = EventBus()


# Public API functions


def subscribe_to_event(event_type: type, handler: Callable) -> None:
    """Subscribe to an event type globally."""
    _global_event_bus.subscribe(event_type, handler)


def unsubscribe_from_event(event_type: type, handler: Callable) -> None:
    """Unsubscribe from an event type globally."""
    _global_event_bus.unsubscribe(event_type, handler)


def publish_event(event: GameEvent) -> None:
    """Publish an event globally."""
    _global_event_bus.publish(event)


def reset_event_bus_for_testing() -> None:
    """Reset the global event bus. Use only in tests."""
    global _global_event_bus
    _global_event_bus = EventBus()
