from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Tuple

from shelter.constants import ANIMAL_LAYER, CELL_SIZE, DEFAULT_FOOTPRINT


@dataclass
class Position:
    """Pixel position on the map (top-left corner of the footprint)."""

    x: int
    y: int

    def __iter__(self):
        yield self.x
        yield self.y

    @property
    def cell(self) -> Tuple[int, int]:
        return self.x // CELL_SIZE, self.y // CELL_SIZE


@dataclass(frozen=True)
class Footprint:
    """Collision description of a moving entity.

    ``speed`` is the pixel increment of a single move; the walkability probe
    looks one pixel beyond it.
    """

    width: int = DEFAULT_FOOTPRINT
    height: int = DEFAULT_FOOTPRINT
    speed: int = 1
    layer: int = ANIMAL_LAYER
    restricted_destinations: FrozenSet[str] = field(default_factory=frozenset)


def rects_intersect(
    ax: int, ay: int, aw: int, ah: int, bx: int, by: int, bw: int, bh: int
) -> bool:
    """Strict overlap test; rectangles sharing only an edge do not intersect."""
    return ax < bx + bw and ax + aw > bx and ay < by + bh and ay + ah > by


def intersects_cell(x: int, y: int, width: int, height: int, cell: Tuple[int, int]) -> bool:
    cx, cy = cell
    return rects_intersect(
        x, y, width, height, cx * CELL_SIZE, cy * CELL_SIZE, CELL_SIZE, CELL_SIZE
    )
