"""Needs model: hunger, thirst and energy counters.

The counters saturate between their minimum (1) and maximum. Percentages use
``value // (max // 100)`` so that threshold ticks line up with the legacy
simulation (``MAX_HUNGER = 30000`` gives a 25% boundary at ``hunger < 7500``).
The model only reports what the animal needs; finding and consuming resources
is left to the behavior system.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import structlog

from shelter.constants import (
    LOW_PERCENT,
    MAX_ENERGY,
    MAX_HUNGER,
    MAX_THIRST,
    MIN_ENERGY,
    MIN_HUNGER,
    MIN_THIRST,
    SEEK_PERCENT,
    SLEEPING_SPEED,
    SLEEPY_PERCENT,
    SLOW_PERCENT,
    NeedType,
    Target,
)

log = structlog.get_logger()

_LIMITS: Dict[NeedType, Tuple[int, int]] = {
    NeedType.HUNGER: (MIN_HUNGER, MAX_HUNGER),
    NeedType.THIRST: (MIN_THIRST, MAX_THIRST),
    NeedType.ENERGY: (MIN_ENERGY, MAX_ENERGY),
}


def threshold(maximum: int, percent: int) -> int:
    """Legacy threshold value: ``maximum // 100 * percent``."""
    return maximum // 100 * percent


def to_percent(value: int, maximum: int) -> int:
    return value // (maximum // 100)


@dataclass(frozen=True)
class NeedsEffects:
    """What a single needs tick means for the animal's behaviour."""

    speed_limit: Optional[int] = None
    urgent_targets: Tuple[Target, ...] = ()
    hunger_low: bool = False
    thirst_low: bool = False
    sleepy: bool = False
    rested: bool = False

    @property
    def urgent_seek(self) -> Optional[Target]:
        return self.urgent_targets[0] if self.urgent_targets else None


@dataclass
class Needs:
    hunger: int = MAX_HUNGER
    thirst: int = MAX_THIRST
    energy: int = MAX_ENERGY
    owner: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        for need in NeedType:
            self._set(need, self.get(need))

    # --- accessors ---
    def get(self, need: NeedType) -> int:
        if need is NeedType.HUNGER:
            return self.hunger
        if need is NeedType.THIRST:
            return self.thirst
        return self.energy

    def _set(self, need: NeedType, value: int) -> None:
        low, high = _LIMITS[need]
        value = max(low, min(high, value))
        if need is NeedType.HUNGER:
            self.hunger = value
        elif need is NeedType.THIRST:
            self.thirst = value
        else:
            self.energy = value

    def percent(self, need: NeedType) -> int:
        return to_percent(self.get(need), _LIMITS[need][1])

    def get_current_hunger_in_percent(self) -> int:
        return self.percent(NeedType.HUNGER)

    def get_current_thirst_in_percent(self) -> int:
        return self.percent(NeedType.THIRST)

    def get_current_energy_in_percent(self) -> int:
        return self.percent(NeedType.ENERGY)

    def is_below(self, need: NeedType, percent: int) -> bool:
        return self.get(need) < threshold(_LIMITS[need][1], percent)

    @property
    def is_hunger_low(self) -> bool:
        return self.is_below(NeedType.HUNGER, LOW_PERCENT)

    @property
    def is_thirst_low(self) -> bool:
        return self.is_below(NeedType.THIRST, LOW_PERCENT)

    @property
    def is_sleepy(self) -> bool:
        return self.is_below(NeedType.ENERGY, SLEEPY_PERCENT)

    @property
    def is_rested(self) -> bool:
        return self.energy >= MAX_ENERGY

    # --- mutation ---
    def satisfy(self, need: NeedType) -> None:
        """Reset ``need`` to its maximum (eating, drinking, waking up)."""
        self._set(need, _LIMITS[need][1])
        log.debug(f"{need.name.capitalize()} level restored", animal=self.owner, percent=100)

    def _change(self, need: NeedType, delta: int) -> None:
        before = self.get(need)
        self._set(need, before + delta)
        value = self.get(need)
        maximum = _LIMITS[need][1]
        if value != before and value % (maximum // 10) == 0:
            log.debug(
                f"{need.name.capitalize()} level changed",
                animal=self.owner,
                percent=to_percent(value, maximum),
            )

    def tick(self, asleep: bool = False, waking: bool = False) -> NeedsEffects:
        """Advance the counters by one tick and report the resulting urgency.

        Hunger and thirst always decay by one. Energy decays by one only while
        awake, stays put while waking up and regenerates ``SLEEPING_SPEED``
        per tick while asleep.
        """
        self._change(NeedType.HUNGER, -1)
        self._change(NeedType.THIRST, -1)
        if asleep:
            self._change(NeedType.ENERGY, SLEEPING_SPEED)
        elif not waking:
            self._change(NeedType.ENERGY, -1)
        return self.effects()

    def effects(self) -> NeedsEffects:
        urgent = []
        if self.is_below(NeedType.HUNGER, SEEK_PERCENT):
            urgent.append(Target.FOOD)
        if self.is_below(NeedType.THIRST, SEEK_PERCENT):
            urgent.append(Target.WATER)
        slowed = any(self.is_below(need, SLOW_PERCENT) for need in NeedType)
        return NeedsEffects(
            speed_limit=1 if slowed else None,
            urgent_targets=tuple(urgent),
            hunger_low=self.is_hunger_low,
            thirst_low=self.is_thirst_low,
            sleepy=self.is_sleepy,
            rested=self.is_rested,
        )
