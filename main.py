# main.py
import argparse
import sys
from pathlib import Path
from typing import List, Optional

import polars as pl
import structlog

from shelter.config import DEFAULT_CONFIG_FILE, SimulationConfig, load_simulation_config
from shelter.entities.needs import Needs
from shelter.simulation_context import SimulationContext
from utils.logging_utils import setup_logging

log = structlog.get_logger()  # module-level logger


def build_context(config: SimulationConfig, seed: Optional[int] = None) -> SimulationContext:
    """Create the maps, the context and the configured animals."""
    context = SimulationContext(
        maps=[map_config.build() for map_config in config.maps],
        species=config.species,
        rng_seed=seed if seed is not None else config.seed,
        main_map=config.main_map,
        transitional_prefix=config.transitional_prefix,
        wander_min=config.wander_min,
        wander_jitter=config.wander_jitter,
    )
    for entry in config.animals:
        levels = {"hunger": entry.hunger, "thirst": entry.thirst, "energy": entry.energy}
        needs = Needs(**{key: value for key, value in levels.items() if value is not None})
        context.spawn_animal(
            entry.name,
            entry.species,
            entry.map,
            entry.cell,
            age=entry.age,
            needs=needs,
        )
    return context


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the animal shelter simulation headless")
    parser.add_argument(
        "--config", type=Path, default=DEFAULT_CONFIG_FILE, help="Simulation YAML file"
    )
    parser.add_argument("--ticks", type=int, default=None, help="Ticks to simulate")
    parser.add_argument("--seed", type=int, default=None, help="RNG seed")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Logging level (defaults to the config value)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the headless runner."""
    args = parse_args(argv)
    try:
        config = load_simulation_config(args.config)
    except FileNotFoundError as e:
        log.critical("Required file not found during init", error=str(e))
        return 1
    except ValueError as e:
        log.critical("Invalid simulation configuration", error=str(e))
        return 1

    setup_logging(args.log_level or config.log_level)
    log.info("Simulation starting...", config=str(args.config))
    try:
        context = build_context(config, seed=args.seed)
    except ValueError as e:
        log.critical("Invalid simulation configuration", error=str(e))
        return 1

    ticks = args.ticks if args.ticks is not None else config.ticks
    log.info("Running simulation", ticks=ticks, seed=context.rng_instance.initial_seed)
    context.run(ticks)

    with pl.Config(tbl_rows=-1, tbl_cols=-1):
        print(context.roster_frame())
        print(context.count_by_state())
    return 0


if __name__ == "__main__":
    sys.exit(main())
