"""Stuck detection and recovery.

An animal is stuck when the walkability oracle rejects all four cardinal
directions or when its cell is sealed off from every neighbour. Recovery
tries a full-cell jump in each direction, then the map center. The retry
count is bounded and the animal is left in place when nothing works.
"""

from __future__ import annotations

import dataclasses
from enum import Enum
from typing import TYPE_CHECKING, Optional

import structlog

from shelter.constants import CARDINAL_DIRECTIONS, CELL_SIZE, BehaviorState, Direction
from shelter.entities.components import Footprint

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from shelter.entities.animal import Animal
    from shelter.systems.walkability import WalkabilityOracle

log = structlog.get_logger()

# Jump attempts: from the current spot, then once more from the map center
MAX_RECOVERY_ROUNDS = 2


class RecoveryOutcome(Enum):
    NOT_STUCK = "not_stuck"
    JUMPED = "jumped"
    MOVED_TO_CENTER = "moved_to_center"
    STILL_STUCK = "still_stuck"


def is_stuck(oracle: "WalkabilityOracle", animal: "Animal") -> bool:
    """No direction can be walked, or the animal's cell has no enterable neighbour.

    The second test catches small footprints that can still shuffle around
    inside a cell walled in on all four sides.
    """
    footprint = animal.footprint
    if all(
        oracle.unwalkable_in_direction(direction, animal.x, animal.y, footprint)
        for direction in CARDINAL_DIRECTIONS
    ):
        return True
    cx, cy = animal.cell
    return not any(
        oracle.can_enter_cell((cx + dx, cy + dy), footprint)
        for dx, dy in (direction.delta for direction in CARDINAL_DIRECTIONS)
    )


def _jump_footprint(footprint: Footprint) -> Footprint:
    # A probe of speed + 1 pixels lands exactly one cell away
    return dataclasses.replace(footprint, speed=CELL_SIZE - 1)


def _try_jump(oracle: "WalkabilityOracle", animal: "Animal") -> Optional[Direction]:
    footprint = _jump_footprint(animal.footprint)
    for direction in CARDINAL_DIRECTIONS:
        if oracle.is_walkable(direction, animal.x, animal.y, footprint):
            dx, dy = direction.delta
            animal.teleport_to(animal.x + dx * CELL_SIZE, animal.y + dy * CELL_SIZE)
            return direction
    return None


def move_to_center(oracle: "WalkabilityOracle", animal: "Animal") -> None:
    cx, cy = oracle.game_map.center()
    animal.teleport_to(cx, cy)


def recover(oracle: "WalkabilityOracle", animal: "Animal") -> RecoveryOutcome:
    """Relocate a stuck animal.

    Each round tries the full-cell jumps in DOWN, LEFT, UP, RIGHT order and
    applies the first one that is walkable. A round without a jump moves the
    animal to the map center; if it is free there the recovery ends.
    """
    if not is_stuck(oracle, animal):
        return RecoveryOutcome.NOT_STUCK

    log.info("Animal is stuck, will try to move to nearest directions", animal=animal.name)
    animal.clear_route()
    animal.moving_ticks = 0
    animal.state = BehaviorState.STUCK
    for round_number in range(MAX_RECOVERY_ROUNDS):
        jumped = _try_jump(oracle, animal)
        if jumped is not None:
            log.info(
                "Stuck animal jumped free",
                animal=animal.name,
                direction=jumped.name,
                pos=(animal.x, animal.y),
            )
            animal.state = BehaviorState.WANDERING
            return RecoveryOutcome.JUMPED
        if round_number == 0:
            log.info("Animal still stuck, will try to move to center", animal=animal.name)
            move_to_center(oracle, animal)
            if not is_stuck(oracle, animal):
                animal.state = BehaviorState.WANDERING
                return RecoveryOutcome.MOVED_TO_CENTER

    log.error("Animal is stuck completely", animal=animal.name, pos=(animal.x, animal.y))
    return RecoveryOutcome.STILL_STUCK
