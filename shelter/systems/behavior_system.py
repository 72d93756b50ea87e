"""Per-tick agent behavior.

:class:`BehaviorSystem.update_agent` is called once per tick for every animal.
It combines the needs model with the route planner into exactly one
direction or activity tag, moves the animal through the walkability oracle and
reports portal crossings back to the host. The system never moves an animal
between maps itself; that bookkeeping belongs to the simulation context.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence

import structlog

from shelter.constants import (
    EATING_DIRECTIONS,
    MAX_ENERGY,
    WAKE_UP_TICKS,
    WANDER_CHOICES,
    WANDER_JITTER_TICKS,
    WANDER_MIN_TICKS,
    BehaviorState,
    Direction,
    NeedType,
    Target,
)
from shelter.entities.components import intersects_cell
from shelter.entities.needs import NeedsEffects
from shelter.systems import stuck_system
from shelter.systems.movement_system import (
    alignment_move,
    pixels_to_next_cell,
    ticks_for_pixels,
    try_move,
)
from shelter.systems.pathfinding.route_planner import RoutePlanner, TargetSelector
from shelter.systems.walkability import WalkabilityOracle
from shelter.world.game_map import GameMap, Portal
from shelter.world.topology import MapTopology

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from game_rng import GameRNG
    from shelter.entities.animal import Animal

log = structlog.get_logger()

_SLEEP_LEFT_FACINGS = {Direction.UP, Direction.LEFT, Direction.EAT_UP, Direction.EAT_LEFT}

_SEEK_STATES = {
    Target.FOOD: BehaviorState.SEEKING_FOOD,
    Target.WATER: BehaviorState.SEEKING_WATER,
    Target.LAKE_WATER: BehaviorState.SEEKING_WATER,
    Target.PILLOW: BehaviorState.SEEKING_PILLOW,
}


@dataclass(frozen=True)
class MapTransition:
    """An animal overlapped a portal this tick."""

    source_map: str
    destination: str
    portal: Portal
    direction: Direction


@dataclass(frozen=True)
class ActivityReport:
    direction: Direction
    did_move: bool = False
    map_transition: Optional[MapTransition] = None
    state: BehaviorState = BehaviorState.WANDERING
    # Target of a route planned during this tick
    planned: Optional[TargetSelector] = None
    recovery: Optional[stuck_system.RecoveryOutcome] = None


MapTransitionCallback = Callable[["Animal", MapTransition], None]


class BehaviorSystem:
    def __init__(
        self,
        planner: RoutePlanner,
        rng: "GameRNG",
        topology: Optional[MapTopology] = None,
        wander_min: int = WANDER_MIN_TICKS,
        wander_jitter: int = WANDER_JITTER_TICKS,
        on_map_transition: Optional[MapTransitionCallback] = None,
    ) -> None:
        self.planner = planner
        self.rng = rng
        self.topology = topology or planner.topology
        self.wander_min = wander_min
        self.wander_jitter = max(wander_jitter, 1)
        self.on_map_transition = on_map_transition
        self._oracles: Dict[str, WalkabilityOracle] = {}

    def oracle_for(self, game_map: GameMap) -> WalkabilityOracle:
        """Shared oracle for every animal on ``game_map``."""
        oracle = self._oracles.get(game_map.name)
        if oracle is None or oracle.game_map is not game_map:
            oracle = WalkabilityOracle(game_map, self.topology)
            self._oracles[game_map.name] = oracle
        return oracle

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------
    def update_agent(self, animal: "Animal", game_map: GameMap) -> ActivityReport:
        oracle = self.oracle_for(game_map)
        was_waking = animal.is_waking_up
        recovery: Optional[stuck_system.RecoveryOutcome] = None
        planned: Optional[TargetSelector] = None
        did_plan = False

        if oracle.is_outside_of_map(animal.x, animal.y):
            log.info("Animal outside of map, moving to center", animal=animal.name, map=game_map.name)
            animal.clear_route()
            stuck_system.move_to_center(oracle, animal)
            recovery = stuck_system.recover(oracle, animal)

        if not animal.has_route and not animal.direction.is_activity:
            did_plan, planned = self._location_duty(animal, game_map)

        if animal.moving_ticks < 1 and not animal.is_sleeping:
            self._decide_direction(animal)

        result = try_move(animal, animal.direction, oracle)
        if result.blocked and stuck_system.is_stuck(oracle, animal):
            recovery = stuck_system.recover(oracle, animal)

        transition = self._check_portal(animal, game_map, oracle)
        animal.moving_ticks -= 1

        if animal.is_sleeping:
            effects = animal.needs.tick(asleep=True)
            if effects.rested:
                self._wake_up(animal)
        else:
            effects = animal.needs.tick(waking=was_waking)
            self._apply_speed(animal, effects)
            if (
                transition is None
                and animal.traits.needs_driven
                and not animal.direction.is_activity
            ):
                if not did_plan:
                    did_plan, planned = self._plan_for_needs(animal, game_map, effects)
                ate = self._eat_or_drink(animal, game_map, effects)
                if not ate and effects.sleepy:
                    planned = self._handle_sleepiness(animal, game_map, did_plan) or planned

        animal.update_age()
        self._derive_state(animal, transition, recovery)
        return ActivityReport(
            direction=animal.direction,
            did_move=result.moved,
            map_transition=transition,
            state=animal.state,
            planned=planned,
            recovery=recovery,
        )

    # ------------------------------------------------------------------
    # Direction selection
    # ------------------------------------------------------------------
    def _decide_direction(self, animal: "Animal") -> None:
        if animal.step_remaining:
            animal.moving_ticks = ticks_for_pixels(animal.step_remaining, animal.speed)
            return
        step = animal.route.peek()
        if step is not None:
            alignment = alignment_move(step, animal.x, animal.y)
            if alignment is not None:
                animal.direction, animal.step_remaining = alignment
                animal.moving_ticks = ticks_for_pixels(animal.step_remaining, animal.speed)
                log.debug(
                    "Aligning to cell before route step",
                    animal=animal.name,
                    direction=animal.direction.name,
                    pixels=animal.step_remaining,
                )
                return
            animal.route.get_next_step()
            animal.direction = step
            animal.step_remaining = pixels_to_next_cell(step, animal.x, animal.y)
            animal.moving_ticks = ticks_for_pixels(animal.step_remaining, animal.speed)
            log.debug(
                "Route step taken",
                animal=animal.name,
                direction=step.name,
                remaining_steps=len(animal.route),
            )
            return
        self._wander(animal)

    def _wander(self, animal: "Animal") -> None:
        animal.step_remaining = None
        animal.direction = WANDER_CHOICES[self.rng.get_int(0, len(WANDER_CHOICES) - 1)]
        animal.moving_ticks = self._hold_duration()

    def _hold_duration(self) -> int:
        return self.wander_min + self.rng.get_int(0, self.wander_jitter - 1)

    @staticmethod
    def _apply_speed(animal: "Animal", effects: NeedsEffects) -> None:
        if effects.speed_limit is not None:
            animal.speed = min(animal.speed, effects.speed_limit)
        elif animal.speed < animal.default_speed:
            animal.reset_speed_to_default()
            log.debug("Speed restored", animal=animal.name, speed=animal.speed)

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------
    def _plan(
        self, animal: "Animal", game_map: GameMap, targets: Sequence[TargetSelector]
    ) -> Optional[TargetSelector]:
        route, target = self.planner.plan(game_map, animal.cell, targets, animal.footprint)
        if route.is_empty():
            return None
        animal.clear_route()
        animal.route = route
        animal.route_goal = route.end_cell(animal.cell)
        # A fresh route is followed from the next tick on
        animal.moving_ticks = 0
        animal.state = _SEEK_STATES.get(target, BehaviorState.TRAVELLING)
        return target

    def _location_duty(self, animal: "Animal", game_map: GameMap):
        """Leave transitional and restricted maps."""
        if self.topology.is_transitional(game_map.name):
            targets: List[TargetSelector] = [self.topology.main_map]
        elif game_map.name in animal.traits.restricted_destinations:
            hop = self.topology.next_hop_outside(
                game_map.name, animal.traits.restricted_destinations
            )
            if hop is None:
                return False, None
            targets = [hop]
        else:
            return False, None
        target = self._plan(animal, game_map, targets)
        if target is not None:
            log.debug("Animal leaving map", animal=animal.name, map=game_map.name, toward=target)
        return True, target

    def _plan_for_needs(self, animal: "Animal", game_map: GameMap, effects: NeedsEffects):
        if not effects.urgent_targets or animal.has_route:
            return False, None
        targets: List[TargetSelector] = []
        for urgent in effects.urgent_targets:
            targets.append(urgent)
            if urgent is Target.WATER:
                if game_map.name == self.topology.main_map:
                    targets.append(Target.LAKE_WATER)
                else:
                    targets.append(self.topology.main_map)
        target = self._plan(animal, game_map, targets)
        if target is not None:
            log.info("Animal seeking", animal=animal.name, target=_target_name(target))
        return True, target

    # ------------------------------------------------------------------
    # Activities
    # ------------------------------------------------------------------
    def _overlaps(self, animal: "Animal", cell) -> bool:
        return intersects_cell(animal.x, animal.y, animal.size, animal.size, cell)

    def _eat_or_drink(self, animal: "Animal", game_map: GameMap, effects: NeedsEffects) -> bool:
        if effects.hunger_low:
            for item in list(game_map.items):
                if self._overlaps(animal, item.cell):
                    self._start_eating(animal, NeedType.HUNGER)
                    game_map.remove_item(item)
                    log.info("Animal ate food", animal=animal.name, map=game_map.name, cell=item.cell)
                    return True
            for bowl in game_map.food_bowls:
                if bowl.is_full() and self._overlaps(animal, bowl.cell):
                    self._start_eating(animal, NeedType.HUNGER)
                    game_map.empty_bowl(bowl)
                    log.info("Animal ate from bowl", animal=animal.name, map=game_map.name, cell=bowl.cell)
                    return True
        if effects.thirst_low:
            for bowl in game_map.water_bowls:
                if bowl.is_full() and self._overlaps(animal, bowl.cell):
                    self._start_eating(animal, NeedType.THIRST)
                    game_map.empty_bowl(bowl)
                    log.info("Animal drank from bowl", animal=animal.name, map=game_map.name, cell=bowl.cell)
                    return True
            if game_map.is_near_lake(animal.cell):
                self._start_eating(animal, NeedType.THIRST)
                log.info("Animal drank from lake", animal=animal.name, map=game_map.name)
                return True
        return False

    def _start_eating(self, animal: "Animal", need: NeedType) -> None:
        animal.needs.satisfy(need)
        animal.reset_speed_to_default()
        animal.clear_route()
        animal.direction = EATING_DIRECTIONS.get(animal.direction, Direction.EAT_DOWN)
        animal.moving_ticks = self._hold_duration()

    def _handle_sleepiness(
        self, animal: "Animal", game_map: GameMap, did_plan: bool
    ) -> Optional[TargetSelector]:
        on_pillow = any(self._overlaps(animal, cell) for cell in game_map.pillow_cells())
        if on_pillow:
            self._fall_asleep(animal, game_map)
            return None
        planned = None
        if not animal.has_route and not did_plan:
            planned = self._plan(animal, game_map, [Target.PILLOW])
        if not animal.has_route:
            self._fall_asleep(animal, game_map)
        return planned

    def _fall_asleep(self, animal: "Animal", game_map: GameMap) -> None:
        if animal.direction in _SLEEP_LEFT_FACINGS:
            animal.direction = Direction.SLEEP_LEFT
        else:
            animal.direction = Direction.SLEEP_RIGHT
        animal.clear_route()
        animal.moving_ticks = MAX_ENERGY
        log.info("Animal fell asleep", animal=animal.name, map=game_map.name, pos=(animal.x, animal.y))

    def _wake_up(self, animal: "Animal") -> None:
        animal.needs.satisfy(NeedType.ENERGY)
        if animal.direction is Direction.SLEEP_LEFT:
            animal.direction = Direction.WAKEUP_LEFT
        else:
            animal.direction = Direction.WAKEUP_RIGHT
        animal.moving_ticks = WAKE_UP_TICKS
        log.info("Animal woke up", animal=animal.name)

    # ------------------------------------------------------------------
    # Portals and state
    # ------------------------------------------------------------------
    def _check_portal(
        self, animal: "Animal", game_map: GameMap, oracle: WalkabilityOracle
    ) -> Optional[MapTransition]:
        portal = oracle.touching_portal(animal.x, animal.y, animal.size, animal.size)
        if portal is None or oracle.portal_blocks(portal, animal.footprint):
            return None
        transition = MapTransition(
            source_map=game_map.name,
            destination=portal.destination,
            portal=portal,
            direction=animal.direction,
        )
        animal.clear_route()
        animal.moving_ticks = 0
        log.info(
            "Animal crossing portal",
            animal=animal.name,
            source=game_map.name,
            destination=portal.destination,
        )
        if self.on_map_transition is not None:
            self.on_map_transition(animal, transition)
        return transition

    @staticmethod
    def _derive_state(
        animal: "Animal",
        transition: Optional[MapTransition],
        recovery: Optional[stuck_system.RecoveryOutcome],
    ) -> None:
        direction = animal.direction
        if transition is not None:
            animal.state = BehaviorState.CROSSING_PORTAL
        elif direction.is_sleeping:
            animal.state = BehaviorState.SLEEPING
        elif direction.is_waking_up:
            animal.state = BehaviorState.WAKING_UP
        elif direction.is_eating:
            animal.state = BehaviorState.EATING
        elif recovery is stuck_system.RecoveryOutcome.STILL_STUCK:
            animal.state = BehaviorState.STUCK
        elif not animal.has_route:
            animal.state = BehaviorState.WANDERING
        elif animal.state not in _SEEK_STATES.values():
            animal.state = BehaviorState.TRAVELLING


def _target_name(target: TargetSelector) -> str:
    return target.name if isinstance(target, Target) else target
