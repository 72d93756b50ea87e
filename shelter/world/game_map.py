# shelter/world/game_map.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Final, List, Mapping, Optional, Sequence, Set, Tuple

import numpy as np
import structlog

from shelter.constants import ANIMAL_LAYER, CARDINAL_DIRECTIONS, CELL_SIZE

log = structlog.get_logger()

Cell = Tuple[int, int]  # (x, y) in grid cells
ResourceListener = Callable[[str, object, "GameMap"], None]

# ASCII symbols understood by GameMap.from_ascii
SYMBOL_FLOOR: Final[str] = "."
SYMBOL_WALL: Final[str] = "#"
SYMBOL_FOOD: Final[str] = "F"
SYMBOL_FOOD_BOWL: Final[str] = "f"
SYMBOL_EMPTY_FOOD_BOWL: Final[str] = "o"
SYMBOL_WATER_BOWL: Final[str] = "w"
SYMBOL_EMPTY_WATER_BOWL: Final[str] = "u"
SYMBOL_PILLOW: Final[str] = "P"
SYMBOL_LAKE: Final[str] = "~"
SYMBOL_NPC_SPOT: Final[str] = "N"


@dataclass(frozen=True)
class Portal:
    """Map tile that leads to ``destination``."""

    x: int
    y: int
    destination: str

    @property
    def cell(self) -> Cell:
        return self.x, self.y


@dataclass(frozen=True)
class FoodItem:
    x: int
    y: int
    name: str = "food"

    @property
    def cell(self) -> Cell:
        return self.x, self.y


@dataclass
class Bowl:
    x: int
    y: int
    kind: str  # "food" or "water"
    full: bool = True

    @property
    def cell(self) -> Cell:
        return self.x, self.y

    def is_full(self) -> bool:
        return self.full

    def fill(self) -> None:
        self.full = True

    def empty_bowl(self) -> None:
        self.full = False


class GameMap:
    """Queryable surface of a single map.

    Collision tiles live in per-layer boolean grids indexed ``[y, x]``. Portals
    and interactable objects are stored in cell coordinates.
    """

    def __init__(self, name: str, width: int, height: int):
        if width <= 0 or height <= 0:
            log.error("Invalid map dimensions", map=name, width=width, height=height)
            raise ValueError("Map width and height must be positive integers.")
        self.name = name
        self._width = width
        self._height = height
        log.info("Initializing GameMap", map=name, width=width, height=height)

        self.layers: Dict[int, np.ndarray] = {}
        self.lake: np.ndarray = np.zeros((height, width), dtype=bool, order="C")
        self.portals: List[Portal] = []
        self.items: List[FoodItem] = []
        self.food_bowls: List[Bowl] = []
        self.water_bowls: List[Bowl] = []
        self.pillows: List[Cell] = []
        self.npcs: List[Cell] = []
        self.npc_spots: List[Cell] = []
        self._listeners: List[ResourceListener] = []

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def pixel_width(self) -> int:
        return self._width * CELL_SIZE

    @property
    def pixel_height(self) -> int:
        return self._height * CELL_SIZE

    def center(self) -> Tuple[int, int]:
        """Pixel coordinates of the map center."""
        return self.pixel_width // 2, self.pixel_height // 2

    def in_bounds(self, x: int, y: int) -> bool:
        """Checks if the given cell coordinates are within the map boundaries."""
        return 0 <= x < self._width and 0 <= y < self._height

    # --- Tiles ---
    def _layer(self, layer: int) -> np.ndarray:
        grid = self.layers.get(layer)
        if grid is None:
            grid = np.zeros((self._height, self._width), dtype=bool, order="C")
            self.layers[layer] = grid
        return grid

    def add_tile(self, x: int, y: int, layer: int = ANIMAL_LAYER) -> None:
        if not self.in_bounds(x, y):
            raise ValueError(f"Tile ({x}, {y}) is outside map {self.name}")
        self._layer(layer)[y, x] = True

    def is_blocked(self, x: int, y: int, layer: int = ANIMAL_LAYER) -> bool:
        """True if a tile occupies cell ``(x, y)`` on ``layer``."""
        grid = self.layers.get(layer)
        if grid is None or not self.in_bounds(x, y):
            return False
        return bool(grid[y, x])

    def is_walkable(self, x: int, y: int, layer: int = ANIMAL_LAYER) -> bool:
        """Checks if the cell at (x, y) can be entered on ``layer``."""
        return self.in_bounds(x, y) and not self.is_blocked(x, y, layer)

    def rect_hits_tiles(self, px: int, py: int, width: int, height: int, layer: int) -> bool:
        """True if the pixel rectangle strictly overlaps any tile on ``layer``."""
        grid = self.layers.get(layer)
        if grid is None:
            return False
        x0 = max(px // CELL_SIZE, 0)
        y0 = max(py // CELL_SIZE, 0)
        x1 = min((px + width - 1) // CELL_SIZE, self._width - 1)
        y1 = min((py + height - 1) // CELL_SIZE, self._height - 1)
        if x0 > x1 or y0 > y1:
            return False
        return bool(np.any(grid[y0 : y1 + 1, x0 : x1 + 1]))

    # --- Portals ---
    def add_portal(self, x: int, y: int, destination: str) -> Portal:
        portal = Portal(x, y, destination)
        self.portals.append(portal)
        return portal

    def get_portals(self) -> List[Portal]:
        return self.portals if self.portals is not None else []

    def portal_at(self, cell: Cell) -> Optional[Portal]:
        for portal in self.get_portals():
            if portal.cell == cell:
                return portal
        return None

    def get_portal_to(self, destination: str) -> Optional[Portal]:
        for portal in self.get_portals():
            if portal.destination == destination:
                return portal
        return None

    def destinations(self) -> List[str]:
        return sorted({portal.destination for portal in self.get_portals()})

    # --- Objects ---
    def add_item(self, x: int, y: int, name: str = "food") -> FoodItem:
        item = FoodItem(x, y, name)
        self.items.append(item)
        return item

    def add_bowl(self, x: int, y: int, kind: str, full: bool = True) -> Bowl:
        bowl = Bowl(x, y, kind, full)
        if kind == "food":
            self.food_bowls.append(bowl)
        elif kind == "water":
            self.water_bowls.append(bowl)
        else:
            raise ValueError(f"Unknown bowl kind: {kind}")
        return bowl

    def add_pillow(self, x: int, y: int) -> None:
        self.pillows.append((x, y))

    def add_lake(self, x: int, y: int, layer: int = ANIMAL_LAYER) -> None:
        self.lake[y, x] = True
        self.add_tile(x, y, layer)

    def food_cells(self) -> Set[Cell]:
        cells = {item.cell for item in self.items}
        cells.update(bowl.cell for bowl in self.food_bowls if bowl.is_full())
        return cells

    def water_cells(self) -> Set[Cell]:
        return {bowl.cell for bowl in self.water_bowls if bowl.is_full()}

    def pillow_cells(self) -> Set[Cell]:
        return set(self.pillows)

    def npc_cells(self) -> Set[Cell]:
        return set(self.npcs)

    def npc_spot_cells(self) -> Set[Cell]:
        return set(self.npc_spots)

    def is_near_lake(self, cell: Cell) -> bool:
        x, y = cell
        for direction in CARDINAL_DIRECTIONS:
            dx, dy = direction.delta
            nx, ny = x + dx, y + dy
            if self.in_bounds(nx, ny) and self.lake[ny, nx]:
                return True
        return False

    def lake_shore_cells(self) -> Set[Cell]:
        if not np.any(self.lake):
            return set()
        return {
            (x, y)
            for y in range(self._height)
            for x in range(self._width)
            if self.is_walkable(x, y) and self.is_near_lake((x, y))
        }

    def has_food(self) -> bool:
        return bool(self.items) or any(bowl.is_full() for bowl in self.food_bowls)

    def has_water(self) -> bool:
        return any(bowl.is_full() for bowl in self.water_bowls)

    # --- Resource mutation callbacks ---
    def add_listener(self, listener: ResourceListener) -> None:
        self._listeners.append(listener)

    def _notify(self, event: str, obj: object) -> None:
        for listener in self._listeners:
            listener(event, obj, self)

    def remove_item(self, item: FoodItem) -> None:
        if item in self.items:
            self.items.remove(item)
            log.debug("Item removed from map", map=self.name, item=item.name, cell=item.cell)
            self._notify("item_removed", item)

    def empty_bowl(self, bowl: Bowl) -> None:
        bowl.empty_bowl()
        log.debug("Bowl emptied", map=self.name, kind=bowl.kind, cell=bowl.cell)
        self._notify("bowl_emptied", bowl)

    # --- Construction helpers ---
    @classmethod
    def from_ascii(
        cls,
        name: str,
        rows: Sequence[str],
        portals: Optional[Mapping[str, str]] = None,
    ) -> "GameMap":
        """Build a map from ASCII rows.

        ``portals`` maps a single character to the destination map name of
        the portal drawn with that character.
        """
        portals = dict(portals or {})
        if not rows:
            raise ValueError(f"Map {name} has no rows")
        width = len(rows[0])
        if any(len(row) != width for row in rows):
            raise ValueError(f"Map {name} rows must all have the same length")
        game_map = cls(name, width, len(rows))
        for y, row in enumerate(rows):
            for x, symbol in enumerate(row):
                game_map._place_symbol(symbol, x, y, portals)
        log.debug(
            "GameMap built from ASCII",
            map=name,
            portals=len(game_map.portals),
            items=len(game_map.items),
        )
        return game_map

    def _place_symbol(self, symbol: str, x: int, y: int, portals: Dict[str, str]) -> None:
        if symbol == SYMBOL_FLOOR:
            return
        if symbol in portals:
            self.add_portal(x, y, portals[symbol])
        elif symbol == SYMBOL_WALL:
            self.add_tile(x, y)
        elif symbol == SYMBOL_FOOD:
            self.add_item(x, y)
        elif symbol == SYMBOL_FOOD_BOWL:
            self.add_bowl(x, y, "food")
        elif symbol == SYMBOL_EMPTY_FOOD_BOWL:
            self.add_bowl(x, y, "food", full=False)
        elif symbol == SYMBOL_WATER_BOWL:
            self.add_bowl(x, y, "water")
        elif symbol == SYMBOL_EMPTY_WATER_BOWL:
            self.add_bowl(x, y, "water", full=False)
        elif symbol == SYMBOL_PILLOW:
            self.add_pillow(x, y)
        elif symbol == SYMBOL_LAKE:
            self.add_lake(x, y)
        elif symbol == SYMBOL_NPC_SPOT:
            self.npc_spots.append((x, y))
        else:
            raise ValueError(f"Unknown map symbol {symbol!r} at ({x}, {y}) in {self.name}")

