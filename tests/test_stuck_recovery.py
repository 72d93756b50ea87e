from shelter.constants import BehaviorState, Direction
from shelter.entities.animal import DEFAULT_SPECIES, Animal, SpeciesTraits
from shelter.entities.components import Position
from shelter.systems.pathfinding.route import Route
from shelter.systems.stuck_system import RecoveryOutcome, is_stuck, recover
from shelter.systems.walkability import WalkabilityOracle
from shelter.world.game_map import GameMap


def boxed_in_map():
    """20x20 open map with walls on the four sides of cell (2, 2)."""
    game_map = GameMap("MainMap", 20, 20)
    for cell in [(2, 1), (1, 2), (3, 2), (2, 3)]:
        game_map.add_tile(*cell)
    return game_map


def make_animal(x, y, size=32):
    traits = SpeciesTraits("ox", footprint=size)
    return Animal(name="Bess", traits=traits, position=Position(x, y))


def test_open_animal_is_not_stuck():
    oracle = WalkabilityOracle(GameMap("MainMap", 20, 20))
    animal = make_animal(128, 128)
    assert not is_stuck(oracle, animal)
    assert recover(oracle, animal) is RecoveryOutcome.NOT_STUCK
    assert (animal.x, animal.y) == (128, 128)


def test_walled_in_animal_moves_to_center():
    oracle = WalkabilityOracle(boxed_in_map())
    animal = Animal(name="Milo", traits=DEFAULT_SPECIES["cat"], position=Position(128, 128))
    # Room to shuffle inside the cell, but no way out of it
    assert oracle.is_walkable(Direction.DOWN, 128, 128, animal.footprint)
    animal.route = Route([Direction.UP])
    assert is_stuck(oracle, animal)

    outcome = recover(oracle, animal)

    assert outcome is RecoveryOutcome.MOVED_TO_CENTER
    assert (animal.x, animal.y) == (640, 640)
    assert animal.route.is_empty()
    assert animal.state is BehaviorState.WANDERING
    assert not is_stuck(oracle, animal)


def test_full_cell_jump_escapes_a_tile_under_the_animal():
    game_map = GameMap("MainMap", 20, 20)
    game_map.add_tile(2, 2)
    oracle = WalkabilityOracle(game_map)
    animal = make_animal(128, 128)
    assert is_stuck(oracle, animal)

    outcome = recover(oracle, animal)

    # DOWN is tried first
    assert outcome is RecoveryOutcome.JUMPED
    assert (animal.x, animal.y) == (128, 192)


def test_recovery_gives_up_without_raising():
    game_map = GameMap.from_ascii("MainMap", ["#####"] * 5)
    oracle = WalkabilityOracle(game_map)
    animal = make_animal(64, 64)

    outcome = recover(oracle, animal)

    assert outcome is RecoveryOutcome.STILL_STUCK
    assert animal.state is BehaviorState.STUCK
    assert (animal.x, animal.y) == game_map.center()


def test_cell_sized_animal_walled_in_is_stuck():
    oracle = WalkabilityOracle(boxed_in_map())
    animal = make_animal(128, 128, size=64)
    assert is_stuck(oracle, animal)
    assert recover(oracle, animal) is RecoveryOutcome.MOVED_TO_CENTER


def test_dead_end_with_one_exit_is_not_stuck():
    game_map = GameMap("MainMap", 20, 20)
    for cell in [(2, 1), (1, 2), (3, 2)]:
        game_map.add_tile(*cell)
    oracle = WalkabilityOracle(game_map)
    animal = make_animal(128, 128)
    assert not is_stuck(oracle, animal)
    assert recover(oracle, animal) is RecoveryOutcome.NOT_STUCK
