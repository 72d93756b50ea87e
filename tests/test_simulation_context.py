import polars as pl
import pytest

from shelter.constants import AgeStage, BehaviorState, Direction, Target
from shelter.entities.needs import Needs
from shelter.simulation_context import ROSTER_SCHEMA, SimulationContext
from shelter.systems.pathfinding.route import Route
from shelter.systems.stuck_system import RecoveryOutcome
from shelter.world.game_map import GameMap


class DummyRNG:
    def __init__(self, pick=4):
        self.pick = pick
        self.initial_seed = 0

    def get_int(self, a, b):
        return min(max(self.pick, a), b)


def two_maps():
    main = GameMap.from_ascii(
        "MainMap",
        ["....." + "^" + "...."] + ["." * 10] * 9,
        portals={"^": "TopCenterMap"},
    )
    top = GameMap.from_ascii(
        "TopCenterMap",
        ["." * 10] * 9 + ["....." + "v" + "...."],
        portals={"v": "MainMap"},
    )
    return main, top


def make_context(*maps, **kwargs):
    return SimulationContext(maps=maps, rng=DummyRNG(), **kwargs)


def test_portal_crossing_moves_animal_between_rosters():
    transitions = []
    context = make_context(*two_maps(), on_map_transition=lambda a, t: transitions.append(t))
    animal = context.spawn_animal("Milo", "cat", "MainMap", (5, 1))
    animal.route = Route([Direction.UP])

    reports = context.advance_tick()

    assert reports["Milo"].map_transition.destination == "TopCenterMap"
    assert animal.current_map == "TopCenterMap"
    assert context.rosters["MainMap"] == []
    assert context.rosters["TopCenterMap"] == [animal]
    # One cell inward from the portal leading back, walking on
    assert (animal.x, animal.y) == (5 * 64, 8 * 64)
    assert animal.direction is Direction.UP
    assert animal.route.steps == (Direction.UP,)
    assert len(transitions) == 1


def test_crossing_animal_is_not_updated_twice_in_one_tick():
    context = make_context(*two_maps())
    animal = context.spawn_animal("Milo", "cat", "MainMap", (5, 1))
    animal.route = Route([Direction.UP])
    hunger_before = animal.needs.hunger

    context.advance_tick()

    assert animal.needs.hunger == hunger_before - 1
    assert context.turn_count == 1


def test_arrival_without_portal_back_lands_in_center():
    main = GameMap.from_ascii("MainMap", [">...", "...."], portals={">": "CityMap"})
    city = GameMap("CityMap", 8, 6)
    context = make_context(main, city)
    animal = context.spawn_animal("Rex", "dog", "MainMap", (1, 0))
    animal.route = Route([Direction.LEFT])

    context.advance_tick()

    assert animal.current_map == "CityMap"
    assert (animal.x, animal.y) == city.center()


def test_portal_to_unregistered_map_is_ignored():
    main = GameMap.from_ascii("MainMap", [">...", "...."], portals={">": "Nowhere"})
    context = make_context(main)
    animal = context.spawn_animal("Rex", "dog", "MainMap", (1, 0))
    animal.route = Route([Direction.LEFT])

    context.advance_tick()

    assert animal.current_map == "MainMap"
    assert context.rosters["MainMap"] == [animal]


def test_spawn_validation():
    context = make_context(*two_maps())
    with pytest.raises(ValueError):
        context.spawn_animal("X", "dragon", "MainMap", (1, 1))
    with pytest.raises(ValueError):
        context.spawn_animal("X", "cat", "Atlantis", (1, 1))
    with pytest.raises(ValueError):
        context.spawn_animal("X", "cat", "MainMap", (10, 1))
    with pytest.raises(ValueError):
        context.add_map(GameMap("MainMap", 2, 2))


def test_spawned_baby_is_slower():
    context = make_context(*two_maps())
    baby = context.spawn_animal("Pip", "rabbit", "MainMap", (1, 1), age=AgeStage.BABY)
    adult = context.spawn_animal("Bun", "rabbit", "MainMap", (2, 1))
    assert baby.speed == adult.speed - 1


def test_remove_animal():
    context = make_context(*two_maps())
    animal = context.spawn_animal("Milo", "cat", "MainMap", (2, 2))
    assert context.remove_animal(animal)
    assert not context.remove_animal(animal)
    assert context.find_animal("Milo") is None


def test_host_entry_points():
    main, top = two_maps()
    main.add_item(2, 5)
    context = make_context(main, top)
    animal = context.spawn_animal("Milo", "cat", "MainMap", (2, 2))

    route = context.calculate_route(animal, Target.FOOD)
    assert route.steps == (Direction.DOWN,) * 3
    assert not context.is_stuck(animal)
    assert context.recover(animal) is RecoveryOutcome.NOT_STUCK

    main.add_tile(2, 2)
    assert context.is_stuck(animal)
    assert context.recover(animal) is RecoveryOutcome.JUMPED


def test_nearest_map_with_resources():
    main, top = two_maps()
    context = make_context(main, top)
    assert context.nearest_map_with_food("MainMap") is None
    assert context.nearest_map_with_water("TopCenterMap") == "MainMap"

    top.add_item(1, 1)
    top.add_bowl(2, 2, "water")
    assert context.nearest_map_with_food("MainMap") == "TopCenterMap"
    assert context.nearest_map_with_water("TopCenterMap") == "TopCenterMap"


def test_roster_frame():
    context = make_context(*two_maps())
    empty = context.roster_frame()
    assert empty.height == 0
    assert empty.columns == list(ROSTER_SCHEMA)

    context.spawn_animal("Milo", "cat", "MainMap", (2, 2), needs=Needs(hunger=7499))
    context.spawn_animal("Pip", "rabbit", "TopCenterMap", (3, 3), age=AgeStage.BABY)
    frame = context.roster_frame()

    assert frame.height == 2
    milo = frame.filter(pl.col("name") == "Milo").row(0, named=True)
    assert milo["map"] == "MainMap"
    assert milo["hunger_pct"] == 24
    assert milo["state"] == BehaviorState.WANDERING.value
    pip = frame.filter(pl.col("name") == "Pip").row(0, named=True)
    assert pip["age"] == "Baby"
    assert pip["speed"] == 2

    counts = context.count_by_state()
    assert counts["animals"].sum() == 2


def test_run_advances_turns():
    context = make_context(*two_maps())
    context.spawn_animal("Milo", "cat", "MainMap", (2, 2))
    context.run(5)
    assert context.turn_count == 5


def test_removed_food_invalidates_routes_toward_it():
    main, top = two_maps()
    item = main.add_item(2, 6)
    main.add_item(8, 8)
    context = make_context(main, top)
    milo = context.spawn_animal("Milo", "cat", "MainMap", (2, 2), needs=Needs(hunger=1000))
    rex = context.spawn_animal("Rex", "dog", "MainMap", (8, 5), needs=Needs(hunger=1000))

    context.advance_tick()
    assert milo.route.steps == (Direction.DOWN,) * 4
    assert milo.route_goal == (2, 6)
    assert rex.route_goal == (8, 8)

    main.remove_item(item)

    assert milo.route.is_empty()
    assert milo.route_goal is None
    assert rex.route.steps == (Direction.DOWN,) * 3
