from pathlib import Path

import pytest
import yaml

from main import build_context, main
from shelter.config import (
    DEFAULT_CONFIG_FILE,
    SimulationConfig,
    load_simulation_config,
    load_yaml_config,
)
from shelter.constants import HOME_MAPS, AgeStage


def test_default_config_loads():
    config = load_simulation_config()
    assert config.seed == 1234
    assert config.main_map == "MainMap"
    assert {m.name for m in config.maps} >= {"MainMap", "TopCenterMap", "CityMap"}
    assert config.species["butterfly"].restricted_destinations == HOME_MAPS
    assert not config.species["butterfly"].needs_driven
    assert config.species["hamster"].speed == 2
    assert any(a.age is AgeStage.BABY for a in config.animals)


def test_default_config_builds_a_context():
    config = load_simulation_config(DEFAULT_CONFIG_FILE)
    context = build_context(config, seed=7)
    assert len(context.animals()) == len(config.animals)
    assert context.rng_instance.initial_seed == 7
    assert context.topology.next_hop("CityMap", "TopLeftMap") == "MainMap"
    context.run(50)
    assert context.roster_frame().height == len(config.animals)


def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_yaml_config(tmp_path / "missing.yaml", "Simulation")


def test_empty_file_gives_defaults(tmp_path: Path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_yaml_config(path, "Simulation") == {}
    config = load_simulation_config(path)
    assert config.maps == []
    assert "cat" in config.species


def test_invalid_yaml_propagates(tmp_path: Path):
    path = tmp_path / "broken.yaml"
    path.write_text("maps: [unclosed")
    with pytest.raises(yaml.YAMLError):
        load_yaml_config(path, "Simulation")


def test_unknown_species_is_rejected():
    data = {"animals": [{"name": "Smaug", "species": "dragon", "cell": [1, 1]}]}
    with pytest.raises(ValueError):
        SimulationConfig.from_dict(data)


def test_map_entries_need_rows():
    with pytest.raises(ValueError):
        SimulationConfig.from_dict({"maps": [{"name": "MainMap"}]})


def test_custom_values(tmp_path: Path):
    path = tmp_path / "sim.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "simulation": {"ticks": 12, "log_level": "debug", "wander_ticks": {"min": 10, "jitter": 3}},
                "maps": [{"name": "MainMap", "rows": ["....", ".F.."]}],
                "animals": [{"name": "Milo", "species": "cat", "cell": [0, 0], "hunger": 100}],
            }
        )
    )
    config = load_simulation_config(path)
    assert config.ticks == 12
    assert config.log_level == "DEBUG"
    assert (config.wander_min, config.wander_jitter) == (10, 3)
    assert config.animals[0].map == "MainMap"
    context = build_context(config)
    assert context.find_animal("Milo").needs.hunger == 100


def test_runner_main(tmp_path: Path, capsys):
    path = tmp_path / "sim.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "maps": [{"name": "MainMap", "rows": ["....", "...."]}],
                "animals": [{"name": "Milo", "species": "cat", "cell": [1, 1]}],
            }
        )
    )
    assert main(["--config", str(path), "--ticks", "3", "--seed", "1", "--log-level", "WARNING"]) == 0
    assert "Milo" in capsys.readouterr().out
    assert main(["--config", str(tmp_path / "nope.yaml")]) == 1
