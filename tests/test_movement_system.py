from shelter.constants import Direction
from shelter.entities.animal import Animal, SpeciesTraits
from shelter.entities.components import Position
from shelter.systems.movement_system import (
    alignment_move,
    pixels_to_next_cell,
    ticks_for_pixels,
    try_move,
)
from shelter.systems.pathfinding.route import Route
from shelter.systems.walkability import WalkabilityOracle
from shelter.world.game_map import GameMap


def make_animal(x, y, **kwargs):
    return Animal(name="Milo", traits=SpeciesTraits("cat"), position=Position(x, y), **kwargs)


def test_pixels_to_next_cell_targets_adjacent_cell_origin():
    assert pixels_to_next_cell(Direction.DOWN, 0, 10) == 54
    assert pixels_to_next_cell(Direction.RIGHT, 128, 0) == 64
    assert pixels_to_next_cell(Direction.UP, 0, 70) == 70
    assert pixels_to_next_cell(Direction.LEFT, 130, 0) == 66
    assert pixels_to_next_cell(Direction.STAY, 10, 10) == 0


def test_ticks_for_pixels_rounds_up():
    assert ticks_for_pixels(64, 3) == 22
    assert ticks_for_pixels(63, 3) == 21
    assert ticks_for_pixels(5, 0) == 5


def test_try_move_moves_by_speed():
    oracle = WalkabilityOracle(GameMap("MainMap", 6, 6))
    animal = make_animal(64, 64)
    result = try_move(animal, Direction.DOWN, oracle)
    assert result.moved and not result.blocked
    assert (animal.x, animal.y) == (64, 67)


def test_blocked_move_is_reverted_and_route_cleared():
    game_map = GameMap("MainMap", 6, 6)
    game_map.add_tile(1, 0)
    oracle = WalkabilityOracle(game_map)
    animal = make_animal(29, 0, route=Route([Direction.RIGHT, Direction.DOWN]), moving_ticks=12)
    result = try_move(animal, Direction.RIGHT, oracle)
    assert result.blocked
    assert (animal.x, animal.y) == (26, 0)
    assert animal.route.is_empty()
    assert animal.moving_ticks == 0


def test_map_edge_stops_movement_away_from_portals():
    oracle = WalkabilityOracle(GameMap("MainMap", 6, 6))
    animal = make_animal(0, 64)
    result = try_move(animal, Direction.LEFT, oracle)
    assert not result.moved and not result.blocked
    assert animal.x == 0


def test_map_edge_is_open_next_to_a_portal():
    game_map = GameMap("TopLeftMap", 6, 6)
    game_map.add_portal(0, 1, "BottomLeftMap")
    oracle = WalkabilityOracle(game_map)
    animal = make_animal(0, 64)
    result = try_move(animal, Direction.LEFT, oracle)
    assert result.moved
    assert animal.x == -3


def test_route_step_stops_on_cell_origin():
    oracle = WalkabilityOracle(GameMap("MainMap", 6, 6))
    animal = make_animal(64, 62, step_remaining=2)
    try_move(animal, Direction.DOWN, oracle)
    assert animal.y == 64
    assert animal.step_remaining == 0
    result = try_move(animal, Direction.DOWN, oracle)
    assert not result.moved
    assert animal.y == 64


def test_alignment_move_targets_cross_axis_origin():
    assert alignment_move(Direction.DOWN, 100, 128) == (Direction.LEFT, 36)
    assert alignment_move(Direction.RIGHT, 128, 150) == (Direction.UP, 22)
    assert alignment_move(Direction.UP, 128, 150) is None
    assert alignment_move(Direction.LEFT, 70, 64) is None


def test_route_step_reaches_origin_next_to_a_wall():
    game_map = GameMap("MainMap", 6, 6)
    game_map.add_tile(1, 1)
    oracle = WalkabilityOracle(game_map)
    animal = make_animal(131, 64, step_remaining=3)

    result = try_move(animal, Direction.LEFT, oracle)

    assert result.moved and not result.blocked
    assert animal.x == 128
    assert animal.step_remaining == 0
    # Without a route step the usual probe still stops short of the wall
    animal.step_remaining = None
    assert try_move(animal, Direction.LEFT, oracle).blocked
