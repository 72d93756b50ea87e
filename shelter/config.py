# shelter/config.py
"""YAML configuration for the headless simulation runner."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import structlog
import yaml

from shelter.constants import (
    HOME_MAPS,
    MAIN_MAP,
    TRANSITIONAL_PREFIX,
    WANDER_JITTER_TICKS,
    WANDER_MIN_TICKS,
    AgeStage,
)
from shelter.entities.animal import DEFAULT_SPECIES, SpeciesTraits
from shelter.world.game_map import GameMap

log = structlog.get_logger()

DEFAULT_CONFIG_FILE = Path(__file__).resolve().parent.parent / "config" / "simulation.yaml"


def load_yaml_config(config_path: Path, config_name: str) -> Dict[str, Any]:
    """Loads a generic YAML configuration file."""
    if not config_path.is_file():
        log.error(f"{config_name} config file not found", path=str(config_path))
        raise FileNotFoundError(f"{config_name} configuration file not found: {config_path}")
    try:
        with config_path.open("r") as f:
            config_data = yaml.safe_load(f)
        if config_data is None:
            log.warning(f"{config_name} config file is empty.", path=str(config_path))
            return {}
        log.info(f"{config_name} config loaded", path=str(config_path))
        return config_data
    except yaml.YAMLError as e:
        log.error(
            f"Error parsing YAML for {config_name}",
            path=str(config_path),
            error=str(e),
            exc_info=True,
        )
        raise


@dataclass
class MapConfig:
    name: str
    rows: List[str]
    # Portal symbol -> destination map name
    portals: Dict[str, str] = field(default_factory=dict)

    def build(self) -> GameMap:
        return GameMap.from_ascii(self.name, self.rows, self.portals)


@dataclass
class AnimalConfig:
    name: str
    species: str
    map: str
    cell: Tuple[int, int]
    age: AgeStage = AgeStage.ADULT
    hunger: Optional[int] = None
    thirst: Optional[int] = None
    energy: Optional[int] = None


@dataclass
class SimulationConfig:
    seed: Optional[int] = None
    ticks: int = 600
    log_level: str = "INFO"
    main_map: str = MAIN_MAP
    home_maps: Tuple[str, ...] = tuple(sorted(HOME_MAPS))
    transitional_prefix: str = TRANSITIONAL_PREFIX
    wander_min: int = WANDER_MIN_TICKS
    wander_jitter: int = WANDER_JITTER_TICKS
    species: Dict[str, SpeciesTraits] = field(default_factory=lambda: dict(DEFAULT_SPECIES))
    maps: List[MapConfig] = field(default_factory=list)
    animals: List[AnimalConfig] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationConfig":
        sim = data.get("simulation", {}) or {}
        wander = sim.get("wander_ticks", {}) or {}
        home_maps = tuple(sim.get("home_maps", sorted(HOME_MAPS)))

        species = dict(DEFAULT_SPECIES)
        for name, traits in (data.get("species") or {}).items():
            traits = dict(traits or {})
            if traits.get("restricted_destinations") == "home_maps":
                traits["restricted_destinations"] = list(home_maps)
            species[name] = SpeciesTraits.from_dict(name, traits)

        maps = []
        for entry in data.get("maps") or []:
            if "name" not in entry or "rows" not in entry:
                raise ValueError(f"Map entry needs 'name' and 'rows': {entry}")
            maps.append(
                MapConfig(
                    name=entry["name"],
                    rows=[str(row) for row in entry["rows"]],
                    portals={str(k): str(v) for k, v in (entry.get("portals") or {}).items()},
                )
            )

        animals = []
        for entry in data.get("animals") or []:
            if entry.get("species") not in species:
                raise ValueError(f"Unknown species for animal {entry.get('name')}: {entry.get('species')}")
            cell = entry.get("cell", [0, 0])
            animals.append(
                AnimalConfig(
                    name=entry["name"],
                    species=entry["species"],
                    map=entry.get("map", sim.get("main_map", MAIN_MAP)),
                    cell=(int(cell[0]), int(cell[1])),
                    age=AgeStage(entry.get("age", AgeStage.ADULT.value)),
                    hunger=entry.get("hunger"),
                    thirst=entry.get("thirst"),
                    energy=entry.get("energy"),
                )
            )

        return cls(
            seed=sim.get("seed"),
            ticks=int(sim.get("ticks", 600)),
            log_level=str(sim.get("log_level", "INFO")).upper(),
            main_map=sim.get("main_map", MAIN_MAP),
            home_maps=home_maps,
            transitional_prefix=sim.get("transitional_prefix", TRANSITIONAL_PREFIX),
            wander_min=int(wander.get("min", WANDER_MIN_TICKS)),
            wander_jitter=int(wander.get("jitter", WANDER_JITTER_TICKS)),
            species=species,
            maps=maps,
            animals=animals,
        )


def load_simulation_config(config_path: Optional[Path] = None) -> SimulationConfig:
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_FILE
    config = SimulationConfig.from_dict(load_yaml_config(path, "Simulation"))
    log.debug(
        "Simulation config parsed",
        maps=[m.name for m in config.maps],
        animals=len(config.animals),
        species=sorted(config.species),
    )
    return config
