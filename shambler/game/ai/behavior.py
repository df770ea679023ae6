"""
Per-turn behavior resolution for zombies.

`execute_turn` runs one zombie's whole turn. Behavior is never stored between
turns: the branch is re-derived from the zombie's flags every time the
resolver loops back to the top, which happens at the start of the turn and
after an investigation ends with action points left over.

Branches, highest priority first:

1. Chase: the zombie can see the player. Spend every action point stepping
   toward the best cell of the cardinal approach list, attacking instead
   once orthogonally adjacent.
2. Investigate last seen: walk to ``last_seen_coords``, claiming the target
   in the phase's `ClaimedTileSet` so two zombies never head for the same
   cell. Arrival clears ``last_seen`` and loops back to the top.
3. Investigate noise: placeholder. Clears ``heard_noise`` and ends the turn.
4. Wander: placeholder. Ends the turn.

Movement is step-wise: every step re-plans a path from the zombie's current
cell, takes its first step through `GridMap.move_entity` and costs exactly
one action point. Being unable to move is reported as a BLOCKED action,
never raised.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum, auto

from shambler import config
from shambler.constants.movement import MovementConstants as Movement
from shambler.environment.fov import can_see
from shambler.environment.map import GridMap
from shambler.game.actors import Player, Zombie
from shambler.game.ai.approach import CardinalApproach, rank_approaches
from shambler.game.ai.claims import ClaimedTileSet, find_unclaimed_alternative
from shambler.types import ActionPoints, EntityId, WorldTilePos
from shambler.util.pathfinding import (
    WalkableMask,
    find_path,
    make_walkable_ignoring,
)

logger = logging.getLogger(__name__)


class BehaviorBranch(Enum):
    CHASE = auto()
    INVESTIGATE_LAST_SEEN = auto()
    INVESTIGATE_NOISE = auto()
    WANDER = auto()


class TurnActionKind(Enum):
    MOVE = auto()
    ATTACK = auto()
    BLOCKED = auto()
    TARGET_REACHED = auto()
    NOISE_STUB = auto()  # Noise investigation is not implemented yet.
    WANDER_STUB = auto()  # Wandering is not implemented yet.


@dataclass
class TurnAction:
    """One thing a zombie did (or failed to do) during its turn.

    Attributes:
        kind: What happened.
        from_pos: The zombie's cell before the action.
        to_pos: Destination of a move, cell of an attack target or of a
            reached investigation target.
        action_points: Action points the action cost.
        reason: Why a BLOCKED action could not move.
        target_id: The attacked entity, for ATTACK.
    """

    kind: TurnActionKind
    from_pos: WorldTilePos | None = None
    to_pos: WorldTilePos | None = None
    action_points: ActionPoints = 0
    reason: str = ""
    target_id: EntityId | None = None


@dataclass
class TurnReport:
    """Structured outcome of one zombie's turn."""

    agent_id: EntityId
    actions: list[TurnAction] = field(default_factory=list)
    branches: list[BehaviorBranch] = field(default_factory=list)
    action_points_spent: ActionPoints = 0
    action_points_remaining: ActionPoints = 0

    @property
    def branch(self) -> BehaviorBranch | None:
        """The branch the turn started in."""
        return self.branches[0] if self.branches else None

    @property
    def moves(self) -> list[TurnAction]:
        return self.actions_of(TurnActionKind.MOVE)

    @property
    def was_blocked(self) -> bool:
        return any(a.kind is TurnActionKind.BLOCKED for a in self.actions)

    @property
    def attacked(self) -> bool:
        return any(a.kind is TurnActionKind.ATTACK for a in self.actions)

    def actions_of(self, kind: TurnActionKind) -> list[TurnAction]:
        return [a for a in self.actions if a.kind is kind]


def execute_turn(
    agent: Zombie,
    game_map: GridMap,
    player: Player,
    approach_list: Sequence[CardinalApproach] | None,
    claimed_tiles: ClaimedTileSet,
) -> TurnReport:
    """Run one zombie's full turn and report what it did.

    Args:
        agent: The zombie taking its turn. Its action points are refilled
            at the start.
        game_map: The map the zombie and the player stand on.
        player: The player, read-only apart from being attacked.
        approach_list: The cardinal approach list computed at the last player
            turn boundary. May be empty, in which case a chasing zombie
            paths straight at the player.
        claimed_tiles: The current phase's claimed tile set. Mutated.

    Returns:
        The `TurnReport` for this turn.

    Raises:
        ValueError: If any reference is missing or of the wrong kind, or the
            zombie is not on the given map.
    """
    _check_inputs(agent, game_map, player, claimed_tiles)

    agent.start_turn()
    report = TurnReport(agent.id)
    _resolve(agent, game_map, player, list(approach_list or ()), claimed_tiles, report)

    report.action_points_remaining = agent.current_action_points
    report.action_points_spent = round(
        agent.max_action_points - agent.current_action_points,
        Movement.ACTION_POINT_PRECISION,
    )
    agent.end_turn()

    logger.debug(
        f"{agent.id} turn: {[b.name for b in report.branches]}, "
        f"{len(report.actions)} actions, {report.action_points_spent} AP spent"
    )
    return report


def _check_inputs(
    agent: object, game_map: object, player: object, claimed_tiles: object
) -> None:
    if not isinstance(agent, Zombie):
        raise ValueError(f"execute_turn needs a Zombie, got {agent!r}.")
    if not isinstance(game_map, GridMap):
        raise ValueError(f"execute_turn needs a GridMap, got {game_map!r}.")
    if not isinstance(player, Player):
        raise ValueError(f"execute_turn needs a Player, got {player!r}.")
    if not isinstance(claimed_tiles, ClaimedTileSet):
        raise ValueError(f"execute_turn needs a ClaimedTileSet, got {claimed_tiles!r}.")
    if game_map.get_entity(agent.id) is not agent:
        raise ValueError(f"{agent.id} is not on the given map.")


def _resolve(
    agent: Zombie,
    game_map: GridMap,
    player: Player,
    approach_list: list[CardinalApproach],
    claimed_tiles: ClaimedTileSet,
    report: TurnReport,
) -> None:
    """Fixed-priority branch loop. Only an investigation arrival loops."""
    while agent.current_action_points > 0:
        if can_see(game_map, agent, player):
            report.branches.append(BehaviorBranch.CHASE)
            agent.behavior_state = "pursuing"
            _chase(agent, game_map, player, approach_list, report)
            return

        if agent.last_seen:
            report.branches.append(BehaviorBranch.INVESTIGATE_LAST_SEEN)
            agent.behavior_state = "investigating"
            if _investigate_last_seen(agent, game_map, claimed_tiles, report):
                continue
            return

        if agent.heard_noise:
            report.branches.append(BehaviorBranch.INVESTIGATE_NOISE)
            agent.behavior_state = "investigating"
            agent.clear_noise()
            report.actions.append(
                TurnAction(TurnActionKind.NOISE_STUB, from_pos=agent.position)
            )
            return

        report.branches.append(BehaviorBranch.WANDER)
        agent.behavior_state = "wandering"
        report.actions.append(
            TurnAction(TurnActionKind.WANDER_STUB, from_pos=agent.position)
        )
        return


# --- Chase ------------------------------------------------------------------


def _chase(
    agent: Zombie,
    game_map: GridMap,
    player: Player,
    approach_list: list[CardinalApproach],
    report: TurnReport,
) -> None:
    while agent.current_action_points > 0:
        if agent.is_adjacent_to(player.x, player.y):
            report.actions.append(_attack(agent, player))
            return

        action = _chase_step(agent, game_map, player, approach_list)
        report.actions.append(action)
        if action.kind is TurnActionKind.BLOCKED:
            return


def _chase_step(
    agent: Zombie,
    game_map: GridMap,
    player: Player,
    approach_list: list[CardinalApproach],
) -> TurnAction:
    """Step toward the preferred approach cell, its runner-up, then the player."""
    ignore_self = make_walkable_ignoring(agent)
    ranked = rank_approaches(agent, approach_list)

    options: list[tuple[WorldTilePos, WalkableMask]] = [
        (approach.position, ignore_self) for approach in ranked[:2]
    ]
    # The player's own cell is never walkable; aim at it through the player.
    options.append((player.position, make_walkable_ignoring(agent, player)))

    for target, walkable in options:
        action = _step_towards(agent, game_map, target, walkable)
        if action.kind is TurnActionKind.MOVE:
            return action
        logger.debug(f"{agent.id} cannot head for {target}: {action.reason}")

    return TurnAction(
        TurnActionKind.BLOCKED,
        from_pos=agent.position,
        reason="All movement options blocked",
    )


def _attack(agent: Zombie, player: Player) -> TurnAction:
    agent.spend_action_points(config.ATTACK_ACTION_COST)
    logger.debug(f"{agent.id} attacks {player.id} at {player.position}")
    return TurnAction(
        TurnActionKind.ATTACK,
        from_pos=agent.position,
        to_pos=player.position,
        action_points=config.ATTACK_ACTION_COST,
        target_id=player.id,
    )


# --- Investigate last seen -------------------------------------------------


def resolve_investigation_target(
    game_map: GridMap, agent: Zombie, claimed_tiles: ClaimedTileSet
) -> WorldTilePos:
    """Pick the zombie's investigation target and claim it.

    A target already claimed this phase is swapped for the nearest unclaimed
    walkable cell within the search radius, if there is one. The chosen cell
    is claimed and written back into ``last_seen_coords``.
    """
    target = agent.last_seen_coords
    if claimed_tiles.is_claimed(*target):
        alternative = find_unclaimed_alternative(game_map, target, claimed_tiles)
        if alternative is not None:
            logger.debug(f"{agent.id}: {target} already claimed, using {alternative}")
            target = alternative
        else:
            logger.debug(f"{agent.id}: {target} claimed, no alternative; keeping it")

    claimed_tiles.claim(*target)
    agent.last_seen_coords = target
    return target


def _investigate_last_seen(
    agent: Zombie,
    game_map: GridMap,
    claimed_tiles: ClaimedTileSet,
    report: TurnReport,
) -> bool:
    """Walk to the last-seen target. Returns True on arrival."""
    target = resolve_investigation_target(game_map, agent, claimed_tiles)
    ignore_self = make_walkable_ignoring(agent)

    while True:
        if agent.position == target:
            agent.clear_last_seen()
            report.actions.append(
                TurnAction(
                    TurnActionKind.TARGET_REACHED, from_pos=target, to_pos=target
                )
            )
            return True
        if agent.current_action_points <= 0:
            return False

        action = _step_towards(agent, game_map, target, ignore_self)
        report.actions.append(action)
        if action.kind is TurnActionKind.BLOCKED:
            return False


# --- Movement ---------------------------------------------------------------


def _step_towards(
    agent: Zombie,
    game_map: GridMap,
    target: WorldTilePos,
    walkable: WalkableMask,
) -> TurnAction:
    """Take the first step of a fresh path to `target`, for one action point."""
    origin = agent.position

    def blocked(reason: str) -> TurnAction:
        return TurnAction(
            TurnActionKind.BLOCKED, from_pos=origin, to_pos=target, reason=reason
        )

    if origin == target:
        return blocked("Already at target")
    if agent.current_action_points < config.STEP_ACTION_COST:
        return blocked("Insufficient AP")

    path = find_path(game_map, origin, target, walkable=walkable)
    if len(path) < 2:
        return blocked("No path to target")

    next_x, next_y = path[1]
    if not game_map.is_walkable(next_x, next_y, ignore=agent):
        return blocked("Next path step blocked")
    if not game_map.move_entity(agent.id, next_x, next_y):
        return blocked("Move rejected by map")

    agent.spend_action_points(config.STEP_ACTION_COST)
    return TurnAction(
        TurnActionKind.MOVE,
        from_pos=origin,
        to_pos=(next_x, next_y),
        action_points=config.STEP_ACTION_COST,
    )
