"""Load race Glicko-2 system definitions from TOML files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from domain.ratings.config_base import (
    SYSTEM_KEYS,
    BaseSystemConfig,
    config_table,
    load_system_configs,
    parse_system_section,
)
from domain.ratings.eligibility import DEFAULT_CALIBRATION_RACES
from domain.ratings.glicko2.calculator import Glicko2Parameters
from domain.ratings.glicko2.race_calculator import RaceParameters
from domain.ratings.glicko2.season import SoftResetParameters
from domain.ratings.odds import OddsParameters

_SECTION_KEYS: dict[str, frozenset[str]] = {
    "system": SYSTEM_KEYS,
    "glicko2": frozenset(
        {"initial_rating", "initial_rd", "initial_volatility", "tau", "min_rd", "max_rd", "epsilon"}
    ),
    "race": frozenset({"missing_rank", "calibration_races"}),
    "season": frozenset({"soft_reset", "soft_reset_keep", "soft_reset_rd_increase"}),
    "odds": frozenset({"simulations", "podium_size", "min_odds", "max_odds", "seed"}),
}


@dataclass(frozen=True)
class Glicko2SystemConfig(BaseSystemConfig):
    """Configuration for one race Glicko-2 system rebuild."""

    parameters: Glicko2Parameters
    race: RaceParameters
    soft_reset: SoftResetParameters
    odds: OddsParameters

    def as_config_json(self) -> dict[str, Any]:
        return {
            "initial_rating": self.parameters.initial_rating,
            "initial_rd": self.parameters.initial_rd,
            "initial_volatility": self.parameters.initial_volatility,
            "tau": self.parameters.tau,
            "min_rd": self.parameters.min_rd,
            "max_rd": self.parameters.max_rd,
            "epsilon": self.parameters.epsilon,
            "missing_rank": self.race.missing_rank,
            "calibration_races": self.race.calibration_races,
            "soft_reset": self.soft_reset.enabled,
            "soft_reset_keep": self.soft_reset.keep,
            "soft_reset_rd_increase": self.soft_reset.rd_increase,
            "odds_simulations": self.odds.simulations,
            "odds_podium_size": self.odds.podium_size,
            "odds_min": self.odds.min_odds,
            "odds_max": self.odds.max_odds,
            "odds_seed": self.odds.seed,
            "lookback_days": self.lookback_days,
        }


def load_glicko2_system_configs(config_dir: Path) -> list[Glicko2SystemConfig]:
    """Load and validate all Glicko-2 TOML config files in a directory."""
    return load_system_configs(config_dir, _parse_config, duplicate_name_label="glicko2")


def _parse_config(raw: dict[str, Any], file_path: Path) -> Glicko2SystemConfig:
    name, description, lookback_days = parse_system_section(raw, file_path)

    unknown_sections = sorted(set(raw) - _SECTION_KEYS.keys())
    if unknown_sections:
        raise ValueError(f"{file_path}: unknown section(s): {', '.join(unknown_sections)}")
    glicko2_raw, race_raw, season_raw, odds_raw = (
        config_table(raw, section, file_path, allowed_keys=_SECTION_KEYS[section])
        for section in ("glicko2", "race", "season", "odds")
    )

    parameters = Glicko2Parameters(
        initial_rating=float(glicko2_raw.get("initial_rating", 1500.0)),
        initial_rd=float(glicko2_raw.get("initial_rd", 350.0)),
        initial_volatility=float(glicko2_raw.get("initial_volatility", 0.06)),
        tau=float(glicko2_raw.get("tau", 0.5)),
        min_rd=float(glicko2_raw.get("min_rd", 30.0)),
        max_rd=float(glicko2_raw.get("max_rd", 350.0)),
        epsilon=float(glicko2_raw.get("epsilon", 1e-6)),
    )
    _validate_parameters(file_path=file_path, parameters=parameters)

    missing_rank_value = race_raw.get("missing_rank")
    race = RaceParameters(
        missing_rank=None if missing_rank_value is None else int(missing_rank_value),
        calibration_races=int(race_raw.get("calibration_races", DEFAULT_CALIBRATION_RACES)),
    )
    if race.missing_rank is not None and race.missing_rank < 1:
        raise ValueError(f"{file_path}: [race].missing_rank must be >= 1")
    if race.calibration_races < 0:
        raise ValueError(f"{file_path}: [race].calibration_races must be >= 0")

    soft_reset = SoftResetParameters(
        enabled=bool(season_raw.get("soft_reset", False)),
        keep=float(season_raw.get("soft_reset_keep", 0.75)),
        rd_increase=float(season_raw.get("soft_reset_rd_increase", 50.0)),
    )
    if not 0.0 <= soft_reset.keep <= 1.0:
        raise ValueError(f"{file_path}: [season].soft_reset_keep must be between 0 and 1")
    if soft_reset.rd_increase < 0.0:
        raise ValueError(f"{file_path}: [season].soft_reset_rd_increase must be >= 0")

    seed_value = odds_raw.get("seed")
    odds = OddsParameters(
        simulations=int(odds_raw.get("simulations", 50_000)),
        podium_size=int(odds_raw.get("podium_size", 3)),
        min_odds=float(odds_raw.get("min_odds", 1.1)),
        max_odds=float(odds_raw.get("max_odds", 50.0)),
        seed=None if seed_value is None else int(seed_value),
    )
    if odds.simulations <= 0:
        raise ValueError(f"{file_path}: [odds].simulations must be > 0")
    if odds.podium_size <= 0:
        raise ValueError(f"{file_path}: [odds].podium_size must be > 0")
    if odds.min_odds <= 1.0 or odds.min_odds > odds.max_odds:
        raise ValueError(f"{file_path}: [odds].min_odds must be > 1 and <= max_odds")

    return Glicko2SystemConfig(
        file_path=file_path,
        name=name,
        description=description,
        lookback_days=lookback_days,
        parameters=parameters,
        race=race,
        soft_reset=soft_reset,
        odds=odds,
    )


def _validate_parameters(*, file_path: Path, parameters: Glicko2Parameters) -> None:
    if parameters.initial_rating <= 0.0:
        raise ValueError(f"{file_path}: [glicko2].initial_rating must be > 0")
    if parameters.initial_rd <= 0.0:
        raise ValueError(f"{file_path}: [glicko2].initial_rd must be > 0")
    if parameters.initial_volatility <= 0.0:
        raise ValueError(f"{file_path}: [glicko2].initial_volatility must be > 0")
    if parameters.tau <= 0.0:
        raise ValueError(f"{file_path}: [glicko2].tau must be > 0")
    if parameters.min_rd <= 0.0:
        raise ValueError(f"{file_path}: [glicko2].min_rd must be > 0")
    if parameters.max_rd <= 0.0:
        raise ValueError(f"{file_path}: [glicko2].max_rd must be > 0")
    if parameters.min_rd > parameters.max_rd:
        raise ValueError(f"{file_path}: [glicko2].min_rd must be <= max_rd")
    if parameters.initial_rd < parameters.min_rd or parameters.initial_rd > parameters.max_rd:
        raise ValueError(f"{file_path}: [glicko2].initial_rd must be between min_rd and max_rd")
    if parameters.epsilon <= 0.0:
        raise ValueError(f"{file_path}: [glicko2].epsilon must be > 0")
