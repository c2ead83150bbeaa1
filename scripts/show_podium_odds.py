#!/usr/bin/env python3
"""Print podium odds for betting-eligible competitors."""

from __future__ import annotations

import sys
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Annotated

import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from db import DEFAULT_DB_URL, create_db_engine, create_session_factory, session_scope
from domain.ratings.common import CompetitorRating
from domain.ratings.eligibility import DEFAULT_ACTIVITY_WINDOW_DAYS, check_betting_eligibility
from domain.ratings.glicko2.config import load_glicko2_system_configs
from domain.ratings.odds import compute_podium_odds
from repositories.ratings.glicko2.repository import (
    fetch_competitor_race_times,
    fetch_latest_competitor_ratings,
    get_glicko2_system,
)

DEFAULT_CONFIG_DIR = ROOT_DIR / "configs" / "ratings" / "glicko2"

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Podium odds from the latest competitor Glicko-2 ratings.",
)


@app.command()
def show_podium_odds(
    config_name: Annotated[
        str,
        typer.Option("--config-name", help="Config filename that defines the system and odds."),
    ] = "default.toml",
    config_dir: Annotated[
        Path,
        typer.Option("--config-dir", help="Directory containing Glicko-2 system TOML config files."),
    ] = DEFAULT_CONFIG_DIR,
    seed: Annotated[
        int | None,
        typer.Option("--seed", help="Random seed for the Monte Carlo simulation."),
    ] = None,
    db_url: Annotated[
        str,
        typer.Option("--db-url", help="Database URL. Defaults to the local mariokart postgres instance."),
    ] = DEFAULT_DB_URL,
) -> None:
    """Simulate podiums among eligible competitors and print decimal odds."""
    configs = [
        config
        for config in load_glicko2_system_configs(config_dir)
        if config.file_path.name == config_name
    ]
    if not configs:
        raise typer.BadParameter(
            f"No config named '{config_name}' found in {config_dir}",
            param_hint="--config-name",
        )
    system_config = configs[0]
    odds_params = system_config.odds
    if seed is not None:
        odds_params = replace(odds_params, seed=seed)

    now = datetime.now(UTC).replace(tzinfo=None)
    session_factory = create_session_factory(create_db_engine(db_url))
    with session_scope(session_factory) as session:
        system = get_glicko2_system(session, system_config.name)
        if system is None:
            typer.echo(f"No glicko2 system named '{system_config.name}'. Run the rebuild first.")
            raise typer.Exit(code=1)
        entries = fetch_latest_competitor_ratings(session, glicko2_system_id=system.id)
        race_times = fetch_competitor_race_times(
            session,
            glicko2_system_id=system.id,
            since=now - timedelta(days=DEFAULT_ACTIVITY_WINDOW_DAYS),
        )

    eligible = []
    for entry in entries:
        eligibility = check_betting_eligibility(
            lifetime_races=entry.race_count,
            recent_race_times=race_times.get(entry.competitor_id, []),
            now=now,
            calibration_races=system_config.race.calibration_races,
        )
        if eligibility.eligible:
            eligible.append(entry)
        else:
            typer.echo(f"skip {entry.name or entry.competitor_id}: {eligibility.reason.value}")

    if not eligible:
        typer.echo("No eligible competitors.")
        return

    odds = compute_podium_odds(
        [
            CompetitorRating(
                competitor_id=entry.competitor_id,
                rating=entry.rating,
                rd=entry.rd,
                volatility=entry.volatility,
            )
            for entry in eligible
        ],
        odds_params,
    )
    names = {entry.competitor_id: entry.name for entry in eligible}
    for competitor_id, item in sorted(odds.items(), key=lambda pair: -pair[1].win_probability):
        label = names.get(competitor_id) or f"#{competitor_id}"
        formatted = " ".join(f"{value:5.2f}" for value in item.position_odds)
        typer.echo(f"{label:<20} p_win={item.win_probability:6.3f} odds={formatted}")


if __name__ == "__main__":
    app()
