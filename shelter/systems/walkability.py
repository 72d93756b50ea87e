"""Grid walkability oracle.

Answers whether an entity with a given :class:`Footprint` can move one speed
increment in a direction. The probe reaches one pixel past the actual step so
fast movers cannot tunnel through thin obstacles. Reads are pure functions of
map state; one oracle instance is shared by every animal on a map.
"""

from __future__ import annotations

from typing import Optional, Tuple

import structlog

from shelter.constants import CELL_SIZE, Direction
from shelter.entities.components import Footprint, intersects_cell
from shelter.world.game_map import GameMap, Portal
from shelter.world.topology import MapTopology

log = structlog.get_logger()


def probe_position(direction: Direction, x: int, y: int, speed: int) -> Tuple[int, int]:
    dx, dy = direction.delta
    reach = speed + 1
    return x + dx * reach, y + dy * reach


class WalkabilityOracle:
    def __init__(self, game_map: GameMap, topology: Optional[MapTopology] = None) -> None:
        self.game_map = game_map
        self.topology = topology or MapTopology()

    def portal_blocks(self, portal: Portal, footprint: Footprint) -> bool:
        """A portal blocks when its destination is off limits for the mover."""
        if portal.destination in footprint.restricted_destinations:
            return True
        return self.topology.is_forbidden(self.game_map.name, portal.destination)

    def is_walkable(self, direction: Direction, x: int, y: int, footprint: Footprint) -> bool:
        px, py = probe_position(direction, x, y, footprint.speed)
        if self.game_map.rect_hits_tiles(px, py, footprint.width, footprint.height, footprint.layer):
            return False
        for portal in self.game_map.get_portals():
            if self.portal_blocks(portal, footprint) and intersects_cell(
                px, py, footprint.width, footprint.height, portal.cell
            ):
                return False
        return True

    def unwalkable_in_direction(
        self, direction: Direction, x: int, y: int, footprint: Footprint
    ) -> bool:
        return not self.is_walkable(direction, x, y, footprint)

    def can_enter_cell(self, cell: Tuple[int, int], footprint: Footprint) -> bool:
        """Grid-level check: ``cell`` is on the map, free of tiles and not a barred portal."""
        x, y = cell
        if not self.game_map.is_walkable(x, y, footprint.layer):
            return False
        portal = self.game_map.portal_at(cell)
        return portal is None or not self.portal_blocks(portal, footprint)

    def near_portal(self, x: int, y: int) -> bool:
        """Within one zoomed tile of any portal; exempts the mover from map edges."""
        for portal in self.game_map.get_portals():
            diff_x = portal.x * CELL_SIZE - x
            diff_y = portal.y * CELL_SIZE - y
            if abs(diff_x) <= CELL_SIZE and abs(diff_y) <= CELL_SIZE:
                return True
        return False

    def is_outside_of_map(self, x: int, y: int) -> bool:
        return (
            x < 0
            or y < 0
            or x > self.game_map.pixel_width
            or y > self.game_map.pixel_height
        )

    def touching_portal(self, x: int, y: int, width: int, height: int) -> Optional[Portal]:
        for portal in self.game_map.get_portals():
            if intersects_cell(x, y, width, height, portal.cell):
                return portal
        return None


def is_walkable(
    game_map: GameMap,
    direction: Direction,
    from_x: int,
    from_y: int,
    footprint: Footprint,
    topology: Optional[MapTopology] = None,
) -> bool:
    """Functional form of :meth:`WalkabilityOracle.is_walkable`."""
    return WalkabilityOracle(game_map, topology).is_walkable(direction, from_x, from_y, footprint)
