"""Map-level topology used for cross-map route requests.

Maps form a directed graph: ``A -> B`` when map ``A`` has a portal leading to
``B``. Route planning never searches across maps; it only asks this graph for
the next map to step into and plans to the portal that leads there.
"""

from __future__ import annotations

from collections import deque
from typing import Dict, Iterable, List, Mapping, Optional, Set

import structlog

from shelter.constants import MAIN_MAP, TRANSITIONAL_PREFIX

log = structlog.get_logger()


class MapTopology:
    def __init__(
        self,
        links: Optional[Mapping[str, Iterable[str]]] = None,
        main_map: str = MAIN_MAP,
        transitional_prefix: str = TRANSITIONAL_PREFIX,
    ) -> None:
        self.main_map = main_map
        self.transitional_prefix = transitional_prefix
        self.links: Dict[str, List[str]] = {}
        for name, neighbours in (links or {}).items():
            self.links[name] = sorted(set(neighbours))

    @classmethod
    def from_maps(cls, game_maps: Iterable, **kwargs) -> "MapTopology":
        links = {game_map.name: game_map.destinations() for game_map in game_maps}
        return cls(links, **kwargs)

    def update_from_maps(self, game_maps: Iterable) -> None:
        """Rebuild the links in place so shared references stay valid."""
        self.links = {game_map.name: game_map.destinations() for game_map in game_maps}
        log.debug("Map topology rebuilt", maps=len(self.links))

    def neighbours(self, name: str) -> List[str]:
        return list(self.links.get(name, []))

    # ------------------------------------------------------------------
    # Zone rules
    # ------------------------------------------------------------------
    def is_transitional(self, name: str) -> bool:
        return name.startswith(self.transitional_prefix)

    def is_forbidden(self, current: str, destination: str) -> bool:
        """Portals from the main map into transitional zones are closed."""
        return current == self.main_map and self.is_transitional(destination)

    # ------------------------------------------------------------------
    # Hop resolution
    # ------------------------------------------------------------------
    def _first_hops(self, start: str) -> Dict[str, str]:
        """BFS from ``start``; map every reachable map to the first hop taken."""
        first_hop: Dict[str, str] = {}
        visited: Set[str] = {start}
        queue = deque()
        for neighbour in self.neighbours(start):
            if neighbour not in visited:
                visited.add(neighbour)
                first_hop[neighbour] = neighbour
                queue.append(neighbour)
        while queue:
            current = queue.popleft()
            for neighbour in self.neighbours(current):
                if neighbour not in visited:
                    visited.add(neighbour)
                    first_hop[neighbour] = first_hop[current]
                    queue.append(neighbour)
        return first_hop

    def next_hop(self, current: str, destination: str) -> Optional[str]:
        """Return the map to step into next on the way to ``destination``."""
        if current == destination:
            return None
        hop = self._first_hops(current).get(destination)
        if hop is None:
            log.debug("No map path", current=current, destination=destination)
        return hop

    def next_hop_to_center(self, current: str) -> Optional[str]:
        return self.next_hop(current, self.main_map)

    def next_hop_outside(self, current: str, restricted: Iterable[str]) -> Optional[str]:
        """First hop toward the nearest map that is not in ``restricted``."""
        restricted = set(restricted)
        first_hops = self._first_hops(current)
        # _first_hops preserves BFS discovery order
        for name, hop in first_hops.items():
            if name not in restricted:
                return hop
        return None

    def nearest_maps(self, current: str) -> List[str]:
        """``current`` followed by every reachable map, nearest first."""
        return [current] + list(self._first_hops(current).keys())
