#!/usr/bin/env python3
"""Print the conservative-score leaderboard for one Glicko-2 system."""

from __future__ import annotations

import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Annotated

import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from db import DEFAULT_DB_URL, create_db_engine, create_session_factory, session_scope
from domain.ratings.eligibility import DEFAULT_CALIBRATION_RACES
from domain.ratings.leaderboard import (
    PERIOD_WINDOW_DAYS,
    LeaderboardPeriod,
    build_leaderboard,
    entries_active_in_period,
)
from repositories.ratings.glicko2.repository import (
    fetch_competitor_race_times,
    fetch_latest_competitor_ratings,
    get_glicko2_system,
)

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Query the competitor leaderboard from competitor_glicko2 by system.",
)


@app.command()
def show_leaderboard(
    system_name: Annotated[
        str,
        typer.Option("--system-name", help="Glicko-2 system name from glicko2_systems.name."),
    ] = "competitor_glicko2_default",
    top_n: Annotated[
        int,
        typer.Option("--top-n", help="Number of competitors to return."),
    ] = 20,
    calibration_races: Annotated[
        int,
        typer.Option("--calibration-races", help="Races required before a competitor is ranked."),
    ] = DEFAULT_CALIBRATION_RACES,
    hide_provisional: Annotated[
        bool,
        typer.Option("--hide-provisional", help="Leave out competitors still in calibration."),
    ] = False,
    period: Annotated[
        LeaderboardPeriod,
        typer.Option("--period", help="Ranking window: week, month or all."),
    ] = LeaderboardPeriod.ALL,
    db_url: Annotated[
        str,
        typer.Option("--db-url", help="Database URL. Defaults to the local mariokart postgres instance."),
    ] = DEFAULT_DB_URL,
) -> None:
    """Print competitors ordered by rating - 2 * RD."""
    if top_n <= 0:
        raise typer.BadParameter("--top-n must be greater than 0")
    if calibration_races < 0:
        raise typer.BadParameter("--calibration-races must be >= 0")

    session_factory = create_session_factory(create_db_engine(db_url))
    with session_scope(session_factory) as session:
        system = get_glicko2_system(session, system_name)
        if system is None:
            typer.echo(f"No glicko2 system named '{system_name}'.")
            raise typer.Exit(code=1)
        entries = fetch_latest_competitor_ratings(session, glicko2_system_id=system.id)
        window_days = PERIOD_WINDOW_DAYS[period]
        now = datetime.now(UTC).replace(tzinfo=None)
        race_times = (
            {}
            if window_days is None
            else fetch_competitor_race_times(
                session,
                glicko2_system_id=system.id,
                since=now - timedelta(days=window_days),
            )
        )
    entries = entries_active_in_period(entries, race_times, period=period, now=now)

    rows = build_leaderboard(
        entries,
        calibration_races=calibration_races,
        include_provisional=not hide_provisional,
    )[:top_n]
    if not rows:
        typer.echo(f"No rated competitors for system '{system_name}'.")
        return

    typer.echo(f"system={system_name} period={period.value} top_n={top_n} calibration_races={calibration_races}")
    for row in rows:
        badge = f" [calibrating {row.race_count}/{calibration_races}]" if row.provisional else ""
        label = row.name or f"#{row.competitor_id}"
        typer.echo(
            f"{row.position:2d}. {label:<20} "
            f"score={row.conservative_score:8.2f} rating={row.rating:8.2f} "
            f"rd={row.rd:7.2f} vol={row.volatility:7.5f} races={row.race_count:4d}{badge}"
        )


if __name__ == "__main__":
    app()
