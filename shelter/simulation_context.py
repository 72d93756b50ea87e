# shelter/simulation_context.py
"""Simulation context.

Owns every registered map, the per-map animal rosters, the shared topology,
the route planner and the seeded RNG. All roster access goes through this
object; there are no module level singletons.
"""

from typing import Callable, Dict, Iterable, List, Optional, Tuple

import polars as pl
import structlog

from game_rng import GameRNG
from shelter.constants import (
    CARDINAL_DIRECTIONS,
    CELL_SIZE,
    MAIN_MAP,
    TRANSITIONAL_PREFIX,
    WANDER_JITTER_TICKS,
    WANDER_MIN_TICKS,
    AgeStage,
    Direction,
)
from shelter.entities.animal import DEFAULT_SPECIES, Animal, SpeciesTraits
from shelter.entities.components import Position
from shelter.entities.needs import Needs
from shelter.systems import stuck_system
from shelter.systems.behavior_system import ActivityReport, BehaviorSystem, MapTransition
from shelter.systems.pathfinding.route import Route
from shelter.systems.pathfinding.route_planner import RoutePlanner, TargetSelector
from shelter.world.game_map import Cell, GameMap
from shelter.world.topology import MapTopology

log = structlog.get_logger()

TransitionHook = Callable[[Animal, MapTransition], None]

ROSTER_SCHEMA: Dict[str, pl.DataType] = {
    "name": pl.Utf8,
    "species": pl.Utf8,
    "map": pl.Utf8,
    "x": pl.Int64,
    "y": pl.Int64,
    "direction": pl.Utf8,
    "state": pl.Utf8,
    "hunger_pct": pl.Int64,
    "thirst_pct": pl.Int64,
    "energy_pct": pl.Int64,
    "speed": pl.Int64,
    "age": pl.Utf8,
    "route_len": pl.Int64,
}


class SimulationContext:
    """Central container for mutable simulation data."""

    def __init__(
        self,
        maps: Iterable[GameMap] = (),
        species: Optional[Dict[str, SpeciesTraits]] = None,
        rng_seed: Optional[int] = None,
        main_map: str = MAIN_MAP,
        transitional_prefix: str = TRANSITIONAL_PREFIX,
        wander_min: int = WANDER_MIN_TICKS,
        wander_jitter: int = WANDER_JITTER_TICKS,
        rng: Optional[GameRNG] = None,
        on_map_transition: Optional[TransitionHook] = None,
    ) -> None:
        log.info("Initializing SimulationContext...")
        self.maps: Dict[str, GameMap] = {}
        self.rosters: Dict[str, List[Animal]] = {}
        self.species: Dict[str, SpeciesTraits] = dict(species or DEFAULT_SPECIES)
        self.topology = MapTopology(main_map=main_map, transitional_prefix=transitional_prefix)
        self.rng_instance: GameRNG = rng or GameRNG(seed=rng_seed)
        log.debug("GameRNG initialized", seed=getattr(self.rng_instance, "initial_seed", None))
        self.planner = RoutePlanner(self.topology)
        self._pending: List[Tuple[Animal, MapTransition]] = []
        self.behavior = BehaviorSystem(
            self.planner,
            self.rng_instance,
            self.topology,
            wander_min=wander_min,
            wander_jitter=wander_jitter,
            on_map_transition=self._queue_transition,
        )
        self.on_map_transition = on_map_transition
        self.turn_count: int = 0
        for game_map in maps:
            self.add_map(game_map)

    # ------------------------------------------------------------------
    # Maps
    # ------------------------------------------------------------------
    def add_map(self, game_map: GameMap) -> None:
        if game_map.name in self.maps:
            raise ValueError(f"Map {game_map.name} is already registered")
        self.maps[game_map.name] = game_map
        self.rosters.setdefault(game_map.name, [])
        game_map.add_listener(self._on_resource_changed)
        self.topology.update_from_maps(self.maps.values())
        log.debug("Map registered", map=game_map.name, portals=len(game_map.get_portals()))

    def _on_resource_changed(self, event: str, obj: object, game_map: GameMap) -> None:
        """Drop routes that lead to a resource another animal just used up."""
        cell = getattr(obj, "cell", None)
        if cell is None or cell in game_map.food_cells() or cell in game_map.water_cells():
            return
        for animal in self.rosters.get(game_map.name, []):
            if animal.route_goal == cell and animal.has_route:
                animal.clear_route()
                animal.moving_ticks = 0
                log.info("Route invalidated", animal=animal.name, reason=event, cell=cell)

    def get_map(self, name: str) -> Optional[GameMap]:
        game_map = self.maps.get(name)
        if game_map is None:
            log.warning("Unknown map requested", map=name)
        return game_map

    # ------------------------------------------------------------------
    # Rosters
    # ------------------------------------------------------------------
    def spawn_animal(
        self,
        name: str,
        species: str,
        map_name: str,
        cell: Cell,
        age: AgeStage = AgeStage.ADULT,
        needs: Optional[Needs] = None,
        home_map: Optional[str] = None,
    ) -> Animal:
        traits = self.species.get(species)
        if traits is None:
            raise ValueError(f"Unknown species: {species}")
        game_map = self.maps.get(map_name)
        if game_map is None:
            raise ValueError(f"Unknown map: {map_name}")
        if not game_map.in_bounds(*cell):
            raise ValueError(f"Spawn cell {cell} is outside map {map_name}")
        kwargs = {}
        if home_map is not None:
            kwargs["home_map"] = home_map
        animal = Animal(
            name=name,
            traits=traits,
            position=Position(cell[0] * CELL_SIZE, cell[1] * CELL_SIZE),
            current_map=map_name,
            age=age,
            needs=needs or Needs(),
            **kwargs,
        )
        self.rosters[map_name].append(animal)
        log.info(
            "Animal spawned",
            animal=name,
            species=species,
            map=map_name,
            cell=cell,
            age=age.value,
        )
        return animal

    def remove_animal(self, animal: Animal) -> bool:
        """Remove ``animal`` from its roster (adoption or deletion)."""
        roster = self.rosters.get(animal.current_map, [])
        if animal in roster:
            roster.remove(animal)
            log.info("Animal removed", animal=animal.name, map=animal.current_map)
            return True
        log.warning("Animal not found in roster", animal=animal.name, map=animal.current_map)
        return False

    def animals(self) -> List[Animal]:
        return [animal for roster in self.rosters.values() for animal in roster]

    def find_animal(self, name: str) -> Optional[Animal]:
        for animal in self.animals():
            if animal.name == name:
                return animal
        return None

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------
    def advance_tick(self) -> Dict[str, ActivityReport]:
        """Update every animal once, map by map, in roster order."""
        reports: Dict[str, ActivityReport] = {}
        updated = set()
        for map_name in list(self.rosters):
            game_map = self.maps.get(map_name)
            roster = self.rosters[map_name]
            if game_map is None:
                if roster:
                    log.warning("Roster without a registered map", map=map_name, animals=len(roster))
                continue
            for animal in list(roster):
                # Animals that crossed into a later map already had their tick
                if animal.animal_id in updated:
                    continue
                updated.add(animal.animal_id)
                reports[animal.name] = self.behavior.update_agent(animal, game_map)
            self._apply_transitions()
        self.turn_count += 1
        return reports

    def run(self, ticks: int) -> None:
        for _ in range(ticks):
            self.advance_tick()
        log.info("Simulation finished", ticks=ticks, turn=self.turn_count)

    def _queue_transition(self, animal: Animal, transition: MapTransition) -> None:
        self._pending.append((animal, transition))

    def _apply_transitions(self) -> None:
        pending, self._pending = self._pending, []
        for animal, transition in pending:
            self.handle_map_transition(animal, transition)

    def handle_map_transition(self, animal: Animal, transition: MapTransition) -> None:
        destination = self.maps.get(transition.destination)
        if destination is None:
            log.warning(
                "Portal leads to an unregistered map",
                animal=animal.name,
                destination=transition.destination,
            )
            return
        source_roster = self.rosters.get(transition.source_map, [])
        if animal in source_roster:
            source_roster.remove(animal)
        self.rosters[destination.name].append(animal)
        animal.current_map = destination.name
        animal.clear_route()
        animal.moving_ticks = 0

        spawn = self._arrival_spawn(destination, transition)
        if spawn is None:
            cx, cy = destination.center()
            animal.teleport_to(cx, cy)
        else:
            (sx, sy), direction = spawn
            animal.teleport_to(sx * CELL_SIZE, sy * CELL_SIZE)
            animal.direction = direction
            animal.route = Route([direction])
        log.info(
            "Animal changed map",
            animal=animal.name,
            source=transition.source_map,
            destination=destination.name,
            pos=(animal.x, animal.y),
        )
        if self.on_map_transition is not None:
            self.on_map_transition(animal, transition)

    def _arrival_spawn(
        self, destination: GameMap, transition: MapTransition
    ) -> Optional[Tuple[Cell, Direction]]:
        """Cell one step inward from the portal leading back, and that step."""
        portal = destination.get_portal_to(transition.source_map)
        if portal is None:
            return None
        directions = list(CARDINAL_DIRECTIONS)
        if transition.direction.is_movement:
            directions.remove(transition.direction)
            directions.insert(0, transition.direction)
        for direction in directions:
            dx, dy = direction.delta
            cell = (portal.x + dx, portal.y + dy)
            if destination.is_walkable(*cell) and destination.portal_at(cell) is None:
                return cell, direction
        return None

    # ------------------------------------------------------------------
    # Host entry points
    # ------------------------------------------------------------------
    def calculate_route(self, animal: Animal, target: TargetSelector) -> Route:
        game_map = self.get_map(animal.current_map)
        if game_map is None:
            return Route()
        return self.planner.calculate_route(game_map, animal, target)

    def is_stuck(self, animal: Animal) -> bool:
        game_map = self.get_map(animal.current_map)
        if game_map is None:
            return False
        return stuck_system.is_stuck(self.behavior.oracle_for(game_map), animal)

    def recover(self, animal: Animal) -> stuck_system.RecoveryOutcome:
        game_map = self.get_map(animal.current_map)
        if game_map is None:
            return stuck_system.RecoveryOutcome.NOT_STUCK
        return stuck_system.recover(self.behavior.oracle_for(game_map), animal)

    def nearest_map_with_food(self, current: str) -> Optional[str]:
        for name in [current] + self.topology.neighbours(current):
            game_map = self.maps.get(name)
            if game_map is not None and game_map.has_food():
                return name
        return None

    def nearest_map_with_water(self, current: str) -> str:
        for name in [current] + self.topology.neighbours(current):
            game_map = self.maps.get(name)
            if game_map is not None and game_map.has_water():
                return name
        return self.topology.main_map

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------
    def roster_frame(self) -> pl.DataFrame:
        """One row per animal, suitable for printing or analysis."""
        rows = [
            {
                "name": animal.name,
                "species": animal.species,
                "map": animal.current_map,
                "x": animal.x,
                "y": animal.y,
                "direction": animal.direction.value,
                "state": animal.state.value,
                "hunger_pct": animal.needs.get_current_hunger_in_percent(),
                "thirst_pct": animal.needs.get_current_thirst_in_percent(),
                "energy_pct": animal.needs.get_current_energy_in_percent(),
                "speed": animal.speed,
                "age": animal.age.value,
                "route_len": len(animal.route),
            }
            for animal in self.animals()
        ]
        return pl.DataFrame(rows, schema=ROSTER_SCHEMA)

    def count_by_state(self) -> pl.DataFrame:
        frame = self.roster_frame()
        return frame.group_by("state").agg(pl.len().alias("animals")).sort("state")


__all__ = ["SimulationContext", "ROSTER_SCHEMA"]
