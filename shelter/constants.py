from enum import Enum, IntEnum
from typing import Final, Tuple

# --- Geometry ---
TILE_SIZE: Final[int] = 32
ZOOM: Final[int] = 2
CELL_SIZE: Final[int] = TILE_SIZE * ZOOM
# Animals collide with tiles placed on this layer
ANIMAL_LAYER: Final[int] = 2
DEFAULT_FOOTPRINT: Final[int] = 32

# --- Needs ---
MAX_HUNGER: Final[int] = 30_000
MIN_HUNGER: Final[int] = 1
MAX_THIRST: Final[int] = 25_000
MIN_THIRST: Final[int] = 1
MAX_ENERGY: Final[int] = 40_000
MIN_ENERGY: Final[int] = 1
# Energy regained per tick while asleep
SLEEPING_SPEED: Final[int] = 15

SEEK_PERCENT: Final[int] = 25
LOW_PERCENT: Final[int] = 70
SLOW_PERCENT: Final[int] = 10
SLEEPY_PERCENT: Final[int] = 25

# --- Age ---
GROWING_UP_TIME: Final[int] = 200_000
ADULT_DEFAULT_SPEED: Final[int] = 3

# --- Timings (ticks) ---
WANDER_MIN_TICKS: Final[int] = 64
WANDER_JITTER_TICKS: Final[int] = 20
WAKE_UP_TICKS: Final[int] = 30

# --- Maps ---
MAIN_MAP: Final[str] = "MainMap"
TOP_CENTER_MAP: Final[str] = "TopCenterMap"
CITY_MAP: Final[str] = "CityMap"
HOME_MAPS: Final[frozenset] = frozenset({"TopLeftMap", "TopCenterMap", "TopRightMap"})
TRANSITIONAL_PREFIX: Final[str] = "Bottom"


class Direction(Enum):
    """Behavioural direction or activity tag emitted once per tick."""

    DOWN = "DOWN"
    LEFT = "LEFT"
    UP = "UP"
    RIGHT = "RIGHT"
    STAY = "STAY"
    EAT_DOWN = "EAT_DOWN"
    EAT_LEFT = "EAT_LEFT"
    EAT_UP = "EAT_UP"
    EAT_RIGHT = "EAT_RIGHT"
    SLEEP_LEFT = "SLEEP_LEFT"
    SLEEP_RIGHT = "SLEEP_RIGHT"
    WAKEUP_LEFT = "WAKEUP_LEFT"
    WAKEUP_RIGHT = "WAKEUP_RIGHT"

    @property
    def delta(self) -> Tuple[int, int]:
        return _DELTAS.get(self, (0, 0))

    @property
    def is_movement(self) -> bool:
        return self in _DELTAS

    @property
    def is_eating(self) -> bool:
        return self.value.startswith("EAT")

    @property
    def is_sleeping(self) -> bool:
        return self.value.startswith("SLEEP")

    @property
    def is_waking_up(self) -> bool:
        return self.value.startswith("WAKEUP")

    @property
    def is_activity(self) -> bool:
        return self.is_eating or self.is_sleeping or self.is_waking_up


_DELTAS = {
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.UP: (0, -1),
    Direction.RIGHT: (1, 0),
}

# Fixed expansion order for route planning and recovery
CARDINAL_DIRECTIONS: Final[Tuple[Direction, ...]] = (
    Direction.DOWN,
    Direction.LEFT,
    Direction.UP,
    Direction.RIGHT,
)
# Random wander picks by index into this tuple
WANDER_CHOICES: Final[Tuple[Direction, ...]] = CARDINAL_DIRECTIONS + (Direction.STAY,)

EATING_DIRECTIONS: Final[dict] = {
    Direction.DOWN: Direction.EAT_DOWN,
    Direction.LEFT: Direction.EAT_LEFT,
    Direction.UP: Direction.EAT_UP,
    Direction.RIGHT: Direction.EAT_RIGHT,
}


class Target(Enum):
    """Semantic route targets understood by the planner."""

    FOOD = "FOOD"
    WATER = "WATER"
    LAKE_WATER = "LAKE_WATER"
    PILLOW = "PILLOW"
    NPC = "NPC"
    NPC_SPOT = "NPC_SPOT"
    CITY = "CITY"


class AgeStage(Enum):
    BABY = "Baby"
    ADULT = "Adult"


class BehaviorState(Enum):
    WANDERING = "Wandering"
    SEEKING_FOOD = "SeekingFood"
    SEEKING_WATER = "SeekingWater"
    SEEKING_PILLOW = "SeekingPillow"
    TRAVELLING = "Travelling"
    SLEEPING = "Sleeping"
    WAKING_UP = "WakingUp"
    EATING = "Eating"
    CROSSING_PORTAL = "CrossingPortal"
    STUCK = "Stuck"


class NeedType(IntEnum):
    HUNGER = 0
    THIRST = 1
    ENERGY = 2


__all__ = [
    "TILE_SIZE",
    "ZOOM",
    "CELL_SIZE",
    "ANIMAL_LAYER",
    "Direction",
    "Target",
    "AgeStage",
    "BehaviorState",
    "NeedType",
    "CARDINAL_DIRECTIONS",
    "WANDER_CHOICES",
]
