# shelter/systems/pathfinding/route_planner.py
"""Breadth-first route planning over a single map's grid.

The planner searches walkable cells from the animal's current cell and
returns a :class:`Route` to the nearest cell matching a semantic target.
Neighbours are always expanded in the order DOWN, LEFT, UP, RIGHT, so two
searches over the same map snapshot produce identical routes. Requests for
another map are resolved through :class:`MapTopology` to the portal leading to
the next map on the way; the behavior system re-plans after every crossing.
"""

from __future__ import annotations

from collections import deque
from typing import Dict, List, Optional, Sequence, Set, Tuple, Union

import structlog

from shelter.constants import CARDINAL_DIRECTIONS, CITY_MAP, Direction, Target
from shelter.entities.components import Footprint
from shelter.systems.pathfinding.route import Route
from shelter.world.game_map import Cell, GameMap
from shelter.world.topology import MapTopology

log = structlog.get_logger(__name__)

# A semantic target or the literal name of a destination map
TargetSelector = Union[Target, str]


class RoutePlanner:
    def __init__(self, topology: Optional[MapTopology] = None) -> None:
        self.topology = topology or MapTopology()
        self.searches: int = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def calculate_route(self, game_map: GameMap, animal, target: TargetSelector) -> Route:
        """Route from ``animal`` to the nearest cell matching ``target``.

        Returns a copy of the animal's current route without searching when it
        still holds one. An unreachable target yields an empty route.
        """
        if not animal.route.is_empty():
            log.debug("Route already present, skipping search", animal=animal.name)
            return animal.route.copy()
        return self.search(game_map, animal.cell, [target], animal.footprint)

    def search(
        self,
        game_map: GameMap,
        start: Cell,
        targets: Sequence[TargetSelector],
        footprint: Optional[Footprint] = None,
    ) -> Route:
        return self.plan(game_map, start, targets, footprint)[0]

    def plan(
        self,
        game_map: GameMap,
        start: Cell,
        targets: Sequence[TargetSelector],
        footprint: Optional[Footprint] = None,
    ) -> Tuple[Route, Optional[TargetSelector]]:
        """One BFS pass serving an ordered list of targets.

        The first-discovered cell of each target is recorded; the route leads
        to the highest-priority target that was found. Returns the route and
        the target it leads to (``None`` when nothing was found).
        """
        footprint = footprint or Footprint()
        goals = [self._goal_cells(game_map, target, footprint) for target in targets]
        if not any(goals):
            log.debug("No candidate cells for targets", map=game_map.name, targets=_names(targets))
            return Route(), None
        sx, sy = start
        if not game_map.in_bounds(sx, sy):
            log.debug("Route start outside map", map=game_map.name, start=start)
            return Route(), None

        self.searches += 1
        # Portal cells are only entered when they are the goal
        portal_cells = {portal.cell for portal in game_map.get_portals()}
        portal_goals: Set[Cell] = portal_cells & set().union(*goals)
        hits: Dict[int, Cell] = {}
        self._record_hits(start, goals, hits)
        if 0 in hits:
            return Route(), targets[0]

        parents: Dict[Cell, Tuple[Cell, Direction]] = {}
        visited: Set[Cell] = {start}
        queue = deque([start])
        while queue and 0 not in hits:
            cx, cy = queue.popleft()
            for direction in CARDINAL_DIRECTIONS:
                dx, dy = direction.delta
                neighbour = (cx + dx, cy + dy)
                if neighbour in visited:
                    continue
                if not self._can_enter(game_map, neighbour, footprint, portal_goals):
                    continue
                visited.add(neighbour)
                parents[neighbour] = ((cx, cy), direction)
                self._record_hits(neighbour, goals, hits)
                if 0 in hits:
                    break
                if neighbour not in portal_goals:
                    queue.append(neighbour)

        if not hits:
            log.debug(
                "No reachable target",
                map=game_map.name,
                targets=_names(targets),
                explored=len(visited),
            )
            return Route(), None
        best = min(hits)
        route = _build_route(parents, start, hits[best])
        log.debug(
            "Route calculated",
            map=game_map.name,
            target=_names([targets[best]])[0],
            steps=len(route),
            explored=len(visited),
        )
        return route, targets[best]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _record_hits(cell: Cell, goals: List[Set[Cell]], hits: Dict[int, Cell]) -> None:
        for index, cells in enumerate(goals):
            if index not in hits and cell in cells:
                hits[index] = cell

    @staticmethod
    def _can_enter(
        game_map: GameMap, cell: Cell, footprint: Footprint, portal_goals: Set[Cell]
    ) -> bool:
        x, y = cell
        if not game_map.is_walkable(x, y, footprint.layer):
            return False
        if game_map.portal_at(cell) is not None:
            return cell in portal_goals
        return True

    def _goal_cells(
        self, game_map: GameMap, target: TargetSelector, footprint: Footprint
    ) -> Set[Cell]:
        if target is Target.FOOD:
            return game_map.food_cells()
        if target is Target.WATER:
            return game_map.water_cells()
        if target is Target.LAKE_WATER:
            return game_map.lake_shore_cells()
        if target is Target.PILLOW:
            return game_map.pillow_cells()
        if target is Target.NPC:
            return game_map.npc_cells()
        if target is Target.NPC_SPOT:
            return game_map.npc_spot_cells()
        if target is Target.CITY:
            return self._portal_cells_toward(game_map, CITY_MAP, footprint)
        if isinstance(target, str):
            return self._portal_cells_toward(game_map, target, footprint)
        log.warning("Unknown route target", target=target)
        return set()

    def _portal_cells_toward(
        self, game_map: GameMap, destination: str, footprint: Footprint
    ) -> Set[Cell]:
        if destination == game_map.name:
            return set()
        hop = self.topology.next_hop(game_map.name, destination)
        if hop is None:
            # Unknown to the topology; a direct portal still counts
            hop = destination
        return {
            portal.cell
            for portal in game_map.get_portals()
            if portal.destination == hop
            and hop not in footprint.restricted_destinations
            and not self.topology.is_forbidden(game_map.name, hop)
        }


def _build_route(parents: Dict[Cell, Tuple[Cell, Direction]], start: Cell, goal: Cell) -> Route:
    steps: List[Direction] = []
    cell = goal
    while cell != start:
        cell, direction = parents[cell]
        steps.append(direction)
    steps.reverse()
    return Route(steps)


def _names(targets: Sequence[TargetSelector]) -> List[str]:
    return [t.name if isinstance(t, Target) else t for t in targets]
