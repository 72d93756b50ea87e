from __future__ import annotations

"""Deterministic random number generator shared by the simulation.

Every random decision (wander direction, hold duration, spawn jitter) goes
through one seeded :class:`GameRNG` owned by the simulation context, so a run
with a fixed seed replays identically.
"""

import random
from typing import Any, Optional, Sequence

import numpy as np


class GameRNG:
    def __init__(self, seed: Optional[int] = None) -> None:
        self.initial_seed = seed if seed is not None else random.randint(0, 2**32 - 1)
        self.rng = np.random.default_rng(self.initial_seed)

    # ------------------------------------------------------------------
    # basic random helpers
    # ------------------------------------------------------------------
    def get_int(self, a: int, b: int) -> int:
        """Uniform integer in the inclusive range ``[a, b]``."""
        if a > b:
            raise ValueError("a <= b")
        return int(self.rng.integers(a, b + 1))

    def choice(self, seq: Sequence[Any]) -> Any:
        """Return a random element from *seq*."""
        if not seq:
            raise ValueError("seq empty")
        return seq[self.get_int(0, len(seq) - 1)]


__all__ = ["GameRNG"]
