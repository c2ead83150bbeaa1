"""Tests for TOML-based Glicko-2 system config loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from domain.ratings.glicko2.config import load_glicko2_system_configs

REPO_CONFIG_DIR = Path(__file__).resolve().parents[2] / "configs" / "ratings" / "glicko2"


def test_load_glicko2_system_configs_from_directory(tmp_path: Path) -> None:
    config_path = tmp_path / "default.toml"
    config_path.write_text(
        """
[system]
name = "glicko2_a"
description = "A test Glicko-2 system"
lookback_days = 180

[glicko2]
initial_rating = 1520.0
initial_rd = 320.0
initial_volatility = 0.05
tau = 0.6
min_rd = 40.0
max_rd = 350.0
epsilon = 0.000001

[race]
missing_rank = 12
calibration_races = 8

[season]
soft_reset = true
soft_reset_keep = 0.8
soft_reset_rd_increase = 40.0

[odds]
simulations = 2000
podium_size = 4
min_odds = 1.2
max_odds = 30.0
seed = 17
""".strip()
    )

    configs = load_glicko2_system_configs(tmp_path)
    assert len(configs) == 1

    system = configs[0]
    assert system.name == "glicko2_a"
    assert system.description == "A test Glicko-2 system"
    assert system.lookback_days == 180
    assert system.parameters.initial_rating == pytest.approx(1520.0)
    assert system.parameters.initial_rd == pytest.approx(320.0)
    assert system.parameters.initial_volatility == pytest.approx(0.05)
    assert system.parameters.tau == pytest.approx(0.6)
    assert system.parameters.min_rd == pytest.approx(40.0)
    assert system.parameters.max_rd == pytest.approx(350.0)
    assert system.parameters.epsilon == pytest.approx(0.000001)
    assert system.race.missing_rank == 12
    assert system.race.calibration_races == 8
    assert system.soft_reset.enabled is True
    assert system.soft_reset.keep == pytest.approx(0.8)
    assert system.soft_reset.rd_increase == pytest.approx(40.0)
    assert system.odds.simulations == 2000
    assert system.odds.podium_size == 4
    assert system.odds.min_odds == pytest.approx(1.2)
    assert system.odds.max_odds == pytest.approx(30.0)
    assert system.odds.seed == 17
    config_json = system.as_config_json()
    assert config_json["soft_reset_keep"] == pytest.approx(0.8)
    assert config_json["odds_podium_size"] == 4
    assert config_json["odds_seed"] == 17


def test_duplicate_names_raise_error(tmp_path: Path) -> None:
    template = """
[system]
name = "dup"
lookback_days = 365

[glicko2]
""".strip()
    (tmp_path / "a.toml").write_text(template)
    (tmp_path / "b.toml").write_text(template)

    with pytest.raises(ValueError, match="Duplicate glicko2 system names"):
        load_glicko2_system_configs(tmp_path)


def test_all_defaults_when_sections_omitted(tmp_path: Path) -> None:
    config_path = tmp_path / "defaulted.toml"
    config_path.write_text(
        """
[system]
name = "glicko2_defaulted"
""".strip()
    )

    system = load_glicko2_system_configs(tmp_path)[0]
    assert system.lookback_days == 0
    assert system.description is None
    assert system.parameters.initial_rating == pytest.approx(1500.0)
    assert system.parameters.initial_rd == pytest.approx(350.0)
    assert system.parameters.initial_volatility == pytest.approx(0.06)
    assert system.parameters.tau == pytest.approx(0.5)
    assert system.parameters.min_rd == pytest.approx(30.0)
    assert system.parameters.max_rd == pytest.approx(350.0)
    assert system.parameters.epsilon == pytest.approx(1e-6)
    assert system.race.missing_rank is None
    assert system.race.calibration_races == 5
    assert system.soft_reset.enabled is False
    assert system.odds.simulations == 50_000
    assert system.odds.seed is None


def test_missing_name_raises_validation_error(tmp_path: Path) -> None:
    (tmp_path / "nameless.toml").write_text("[system]\nlookback_days = 10\n")

    with pytest.raises(ValueError, match=r"\[system\]\.name is required"):
        load_glicko2_system_configs(tmp_path)


@pytest.mark.parametrize(
    ("section", "message"),
    [
        ("[glicko2]\ninitial_rd = 400.0", r"initial_rd must be between min_rd and max_rd"),
        ("[glicko2]\ntau = 0.0", r"tau must be > 0"),
        ("[glicko2]\nmin_rd = 200.0\nmax_rd = 100.0", r"min_rd must be <= max_rd"),
        ("[race]\nmissing_rank = 0", r"missing_rank must be >= 1"),
        ("[season]\nsoft_reset_keep = 1.5", r"soft_reset_keep must be between 0 and 1"),
        ("[odds]\nsimulations = 0", r"simulations must be > 0"),
        ("[odds]\nmin_odds = 60.0", r"min_odds must be > 1 and <= max_odds"),
    ],
)
def test_invalid_values_raise_validation_error(tmp_path: Path, section: str, message: str) -> None:
    (tmp_path / "invalid.toml").write_text(f'[system]\nname = "glicko2_invalid"\n\n{section}\n')

    with pytest.raises(ValueError, match=message):
        load_glicko2_system_configs(tmp_path)


def test_unknown_keys_and_sections_are_rejected(tmp_path: Path) -> None:
    (tmp_path / "typo.toml").write_text('[system]\nname = "typo"\n\n[glicko2]\nrating_period_days = 1.0\n')

    with pytest.raises(ValueError, match=r"unknown key\(s\) in \[glicko2\]: rating_period_days"):
        load_glicko2_system_configs(tmp_path)

    (tmp_path / "typo.toml").write_text('[system]\nname = "typo"\n\n[betting]\nstake = 1\n')

    with pytest.raises(ValueError, match=r"unknown section\(s\): betting"):
        load_glicko2_system_configs(tmp_path)


def test_missing_directory_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_glicko2_system_configs(tmp_path / "absent")


def test_shipped_configs_load() -> None:
    configs = {config.name: config for config in load_glicko2_system_configs(REPO_CONFIG_DIR)}

    assert configs["competitor_glicko2_default"].race.missing_rank == 12
    assert configs["competitor_glicko2_default"].soft_reset.enabled is True
    assert configs["competitor_glicko2_strict"].race.missing_rank is None
    assert configs["competitor_glicko2_strict"].soft_reset.enabled is False
