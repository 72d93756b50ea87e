from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, Iterator, Optional, Tuple

from shelter.constants import Direction


class Route:
    """Ordered, consumable sequence of cardinal steps.

    A route is drained one step per decision and is not reusable afterwards.
    Draining an empty route is a no-op that returns ``None``.
    """

    __slots__ = ("_steps",)

    def __init__(self, steps: Iterable[Direction] = ()) -> None:
        self._steps: Deque[Direction] = deque()
        for step in steps:
            self.add_step(step)

    def add_step(self, direction: Direction) -> None:
        if not direction.is_movement:
            raise ValueError(f"Route steps must be cardinal moves, got {direction.name}")
        self._steps.append(direction)

    def get_next_step(self) -> Optional[Direction]:
        if not self._steps:
            return None
        return self._steps.popleft()

    def peek(self) -> Optional[Direction]:
        return self._steps[0] if self._steps else None

    def is_empty(self) -> bool:
        return not self._steps

    def clear(self) -> None:
        self._steps.clear()

    def copy(self) -> "Route":
        return Route(self._steps)

    def end_cell(self, start: Tuple[int, int]) -> Tuple[int, int]:
        """Cell reached from ``start`` once every step is walked."""
        x, y = start
        for step in self._steps:
            dx, dy = step.delta
            x, y = x + dx, y + dy
        return x, y

    @property
    def steps(self) -> Tuple[Direction, ...]:
        return tuple(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[Direction]:
        return iter(tuple(self._steps))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Route):
            return NotImplemented
        return self.steps == other.steps

    def __repr__(self) -> str:
        return f"Route({[step.name for step in self._steps]})"
