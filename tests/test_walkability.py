from shelter.constants import Direction
from shelter.entities.components import Footprint
from shelter.systems.walkability import WalkabilityOracle, is_walkable
from shelter.world.game_map import GameMap
from shelter.world.topology import MapTopology


def make_map(name="MainMap", width=6, height=6):
    return GameMap(name, width, height)


def test_open_map_is_walkable():
    oracle = WalkabilityOracle(make_map())
    assert oracle.is_walkable(Direction.DOWN, 0, 0, Footprint(speed=3))


def test_probe_reaches_one_pixel_past_the_step():
    game_map = make_map()
    game_map.add_tile(1, 0)
    oracle = WalkabilityOracle(game_map)
    footprint = Footprint(speed=3)
    # Probe lands at x + 4; the 32px rect touches the wall at x=28 and overlaps at x=29
    assert oracle.is_walkable(Direction.RIGHT, 28, 0, footprint)
    assert not oracle.is_walkable(Direction.RIGHT, 29, 0, footprint)
    assert oracle.unwalkable_in_direction(Direction.RIGHT, 29, 0, footprint)


def test_faster_movers_probe_further():
    game_map = make_map()
    game_map.add_tile(1, 0)
    oracle = WalkabilityOracle(game_map)
    assert oracle.is_walkable(Direction.RIGHT, 25, 0, Footprint(speed=3))
    assert not oracle.is_walkable(Direction.RIGHT, 25, 0, Footprint(speed=7))


def test_tiles_on_other_layers_do_not_block():
    game_map = make_map()
    game_map.add_tile(1, 0, layer=1)
    oracle = WalkabilityOracle(game_map)
    assert oracle.is_walkable(Direction.RIGHT, 40, 0, Footprint(speed=3))


def test_portal_blocks_restricted_species_only():
    game_map = make_map()
    game_map.add_portal(1, 0, "TopCenterMap")
    oracle = WalkabilityOracle(game_map)
    flyer = Footprint(speed=3, restricted_destinations=frozenset({"TopCenterMap"}))
    walker = Footprint(speed=3)
    assert not oracle.is_walkable(Direction.RIGHT, 29, 0, flyer)
    assert oracle.is_walkable(Direction.RIGHT, 29, 0, walker)


def test_transitional_portal_is_forbidden_from_main_map():
    main = make_map("MainMap")
    main.add_portal(1, 0, "BottomLeftMap")
    other = make_map("TopLeftMap")
    other.add_portal(1, 0, "BottomLeftMap")
    topology = MapTopology()
    footprint = Footprint(speed=3)
    assert not WalkabilityOracle(main, topology).is_walkable(Direction.RIGHT, 29, 0, footprint)
    assert WalkabilityOracle(other, topology).is_walkable(Direction.RIGHT, 29, 0, footprint)


def test_near_portal_and_outside_checks():
    game_map = make_map()
    game_map.add_portal(5, 0, "TopCenterMap")
    oracle = WalkabilityOracle(game_map)
    assert oracle.near_portal(300, 40)
    assert not oracle.near_portal(100, 300)
    assert oracle.is_outside_of_map(-1, 10)
    assert oracle.is_outside_of_map(10, game_map.pixel_height + 1)
    assert not oracle.is_outside_of_map(game_map.pixel_width, 0)


def test_touching_portal_uses_strict_overlap():
    game_map = make_map()
    portal = game_map.add_portal(2, 2, "CityMap")
    oracle = WalkabilityOracle(game_map)
    assert oracle.touching_portal(96, 128, 32, 32) is None
    assert oracle.touching_portal(97, 128, 32, 32) == portal


def test_functional_form_matches_oracle():
    game_map = make_map()
    game_map.add_tile(0, 1)
    footprint = Footprint(speed=3)
    assert not is_walkable(game_map, Direction.DOWN, 0, 29, footprint)
    assert is_walkable(game_map, Direction.UP, 0, 29, footprint)
