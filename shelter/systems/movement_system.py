"""Movement helper utilities.

This module applies a single movement increment to an animal. It centralises
the map-edge rules (with the near-portal exemption) and the walkability check
before mutating the animal's :class:`~shelter.entities.components.Position`.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Tuple

import structlog

from shelter.constants import CELL_SIZE, Direction

if TYPE_CHECKING:  # pragma: no cover - imported for type checking only
    from shelter.entities.animal import Animal
    from shelter.systems.walkability import WalkabilityOracle

log = structlog.get_logger()


@dataclass(frozen=True)
class MoveResult:
    moved: bool = False
    blocked: bool = False


def pixels_to_next_cell(direction: Direction, x: int, y: int) -> int:
    """Distance from ``(x, y)`` to the origin of the adjacent cell in ``direction``."""
    if direction is Direction.DOWN:
        return (y // CELL_SIZE + 1) * CELL_SIZE - y
    if direction is Direction.UP:
        return y - (y // CELL_SIZE - 1) * CELL_SIZE
    if direction is Direction.RIGHT:
        return (x // CELL_SIZE + 1) * CELL_SIZE - x
    if direction is Direction.LEFT:
        return x - (x // CELL_SIZE - 1) * CELL_SIZE
    return 0


def ticks_for_pixels(pixels: int, speed: int) -> int:
    return -(-pixels // max(speed, 1))


def alignment_move(direction: Direction, x: int, y: int) -> Optional[Tuple[Direction, int]]:
    """Move back to the current cell origin across the axis of ``direction``.

    Routes are planned from the cell under the top-left corner, so a footprint
    straddling two columns (or rows) lines up before stepping along the other
    axis. Returns ``None`` when already aligned.
    """
    if direction in (Direction.DOWN, Direction.UP):
        offset = x % CELL_SIZE
        return (Direction.LEFT, offset) if offset else None
    offset = y % CELL_SIZE
    return (Direction.UP, offset) if offset else None


def _edge_allows(animal: "Animal", direction: Direction, oracle: "WalkabilityOracle") -> bool:
    game_map = oracle.game_map
    x, y = animal.x, animal.y
    if direction is Direction.LEFT:
        inside = x > 0
    elif direction is Direction.RIGHT:
        inside = x < game_map.pixel_width - animal.size
    elif direction is Direction.UP:
        inside = y > 0
    else:
        inside = y < game_map.pixel_height - animal.size
    return inside or oracle.near_portal(x, y)


def handle_unwalkable(animal: "Animal", direction: Direction) -> None:
    """Push the animal back by one speed increment and drop its plans."""
    dx, dy = direction.delta
    animal.teleport_to(animal.x - dx * animal.speed, animal.y - dy * animal.speed)
    animal.clear_route()
    animal.moving_ticks = 0


def try_move(animal: "Animal", direction: Direction, oracle: "WalkabilityOracle") -> MoveResult:
    """Attempt to move ``animal`` one increment in ``direction``.

    Parameters
    ----------
    animal:
        The animal to move.
    direction:
        Requested direction; activity and ``STAY`` directions never move.
    oracle:
        Walkability oracle for the animal's current map.

    Returns
    -------
    MoveResult
        ``blocked`` is set when the probe hit an obstacle. The step is then
        reverted and the route cleared so the caller re-plans.
    """
    if not direction.is_movement:
        return MoveResult()

    amount = animal.speed
    footprint = animal.footprint
    if animal.step_remaining is not None:
        if animal.step_remaining <= 0:
            return MoveResult()
        if animal.step_remaining <= amount:
            # Last increment lands on a cell origin; check that exact spot
            amount = animal.step_remaining
            footprint = dataclasses.replace(footprint, speed=amount - 1)

    if oracle.unwalkable_in_direction(direction, animal.x, animal.y, footprint):
        handle_unwalkable(animal, direction)
        log.debug(
            "Movement blocked",
            animal=animal.name,
            direction=direction.name,
            pos=(animal.x, animal.y),
        )
        return MoveResult(blocked=True)

    if not _edge_allows(animal, direction, oracle):
        return MoveResult()

    if animal.step_remaining is not None:
        animal.step_remaining -= amount
    dx, dy = direction.delta
    animal.teleport_to(animal.x + dx * amount, animal.y + dy * amount)
    return MoveResult(moved=amount > 0)
