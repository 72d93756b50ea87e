"""Animal (agent) data.

An :class:`Animal` owns its position, direction, needs and route. Species
specific behaviour is expressed through capability flags set at construction
(:class:`SpeciesTraits`) instead of subclassing.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple

import structlog

from shelter.constants import (
    ADULT_DEFAULT_SPEED,
    DEFAULT_FOOTPRINT,
    GROWING_UP_TIME,
    HOME_MAPS,
    MAIN_MAP,
    TOP_CENTER_MAP,
    AgeStage,
    BehaviorState,
    Direction,
)
from shelter.entities.components import Footprint, Position
from shelter.entities.needs import Needs
from shelter.systems.pathfinding.route import Route

log = structlog.get_logger()

_animal_ids = itertools.count(1)


@dataclass(frozen=True)
class SpeciesTraits:
    """Static per-species data and capability flags."""

    species: str
    speed: int = ADULT_DEFAULT_SPEED
    footprint: int = DEFAULT_FOOTPRINT
    # Portal destinations this species may never enter
    restricted_destinations: FrozenSet[str] = frozenset()
    # False for species that never look for food, water or pillows
    needs_driven: bool = True

    @classmethod
    def from_dict(cls, species: str, data: Dict[str, Any]) -> "SpeciesTraits":
        restricted = data.get("restricted_destinations", [])
        if restricted == "home_maps":
            restricted = HOME_MAPS
        return cls(
            species=species,
            speed=int(data.get("speed", ADULT_DEFAULT_SPEED)),
            footprint=int(data.get("footprint", DEFAULT_FOOTPRINT)),
            restricted_destinations=frozenset(restricted),
            needs_driven=bool(data.get("needs_driven", True)),
        )


DEFAULT_SPECIES: Dict[str, SpeciesTraits] = {
    "cat": SpeciesTraits("cat"),
    "dog": SpeciesTraits("dog"),
    "rabbit": SpeciesTraits("rabbit"),
    "mouse": SpeciesTraits("mouse"),
    "chicken": SpeciesTraits("chicken", speed=2),
    "butterfly": SpeciesTraits(
        "butterfly",
        speed=2,
        restricted_destinations=HOME_MAPS,
        needs_driven=False,
    ),
}


@dataclass(eq=False)
class Animal:
    name: str
    traits: SpeciesTraits
    position: Position
    current_map: str = MAIN_MAP
    age: AgeStage = AgeStage.ADULT
    needs: Needs = field(default_factory=Needs)
    home_map: str = TOP_CENTER_MAP
    direction: Direction = Direction.DOWN
    state: BehaviorState = BehaviorState.WANDERING
    route: Route = field(default_factory=Route)
    speed: int = 0
    current_age: int = 0
    # Ticks left before the next direction decision
    moving_ticks: int = 0
    # Pixels left to reach the cell origin of the current route step
    step_remaining: Optional[int] = None
    # Cell the current route ends on
    route_goal: Optional[Tuple[int, int]] = None
    animal_id: int = field(default_factory=lambda: next(_animal_ids))

    def __post_init__(self) -> None:
        self.needs.owner = self.name
        if self.speed <= 0:
            self.speed = self.default_speed
        if self.age is AgeStage.ADULT and self.current_age < GROWING_UP_TIME:
            self.current_age = GROWING_UP_TIME

    def __repr__(self) -> str:
        return (
            f"Animal(name={self.name!r}, species={self.species!r}, "
            f"map={self.current_map!r}, pos=({self.x}, {self.y}))"
        )

    # --- convenience accessors ---
    @property
    def species(self) -> str:
        return self.traits.species

    @property
    def x(self) -> int:
        return self.position.x

    @property
    def y(self) -> int:
        return self.position.y

    @property
    def cell(self):
        return self.position.cell

    @property
    def size(self) -> int:
        return self.traits.footprint

    @property
    def footprint(self) -> Footprint:
        return Footprint(
            width=self.size,
            height=self.size,
            speed=self.speed,
            restricted_destinations=self.traits.restricted_destinations,
        )

    @property
    def is_sleeping(self) -> bool:
        return self.direction.is_sleeping

    @property
    def is_waking_up(self) -> bool:
        return self.direction.is_waking_up

    @property
    def has_route(self) -> bool:
        """Pending route steps, or a route step still being walked."""
        return not self.route.is_empty() or bool(self.step_remaining)

    def teleport_to(self, x: int, y: int) -> None:
        self.position.x = x
        self.position.y = y

    def clear_route(self) -> None:
        self.route.clear()
        self.step_remaining = None
        self.route_goal = None

    # --- speed and growth ---
    @property
    def default_speed(self) -> int:
        """Species baseline; babies run one slower."""
        if self.age is AgeStage.BABY:
            return max(self.traits.speed - 1, 1)
        return self.traits.speed

    def reset_speed_to_default(self) -> None:
        self.speed = self.default_speed

    def update_age(self) -> None:
        if self.age is not AgeStage.BABY:
            return
        self.current_age += 1
        if self.current_age >= GROWING_UP_TIME:
            self.age = AgeStage.ADULT
            self.speed += 1
            log.info("Animal grew up", animal=self.name, speed=self.speed)
