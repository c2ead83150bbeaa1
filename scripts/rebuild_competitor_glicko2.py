#!/usr/bin/env python3
"""Replay every recorded race into the competitor_glicko2 table."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from db import DEFAULT_DB_URL, create_db_engine, create_session_factory, session_scope
from domain.ratings.common import RaceOutcome
from domain.ratings.glicko2.config import Glicko2SystemConfig, load_glicko2_system_configs
from domain.ratings.glicko2.race_calculator import CompetitorGlicko2Event, RaceGlicko2Calculator
from repositories.ratings.glicko2.repository import (
    count_tracked_competitors,
    delete_competitor_glicko2_for_system,
    ensure_competitor_glicko2_schema,
    fetch_race_outcomes,
    insert_competitor_glicko2_events,
    upsert_glicko2_system,
)

DEFAULT_CONFIG_DIR = ROOT_DIR / "configs" / "ratings" / "glicko2"
PROGRESS_EVERY_RACES = 1_000

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Rebuild competitor Glicko-2 history from race results.",
)


@dataclass
class ReplaySummary:
    races: int = 0
    events: int = 0
    skipped_races: int = 0


def _replay_in_batches(
    calculator: RaceGlicko2Calculator,
    races: Iterable[RaceOutcome],
    *,
    batch_size: int,
    summary: ReplaySummary,
    label: str,
) -> Iterator[list[CompetitorGlicko2Event]]:
    """Yield lists of at most ``batch_size`` events while replaying ``races`` in order."""
    pending: list[CompetitorGlicko2Event] = []
    for race in races:
        events = calculator.process_race(race)
        summary.races += 1
        if not events:
            summary.skipped_races += 1
        pending.extend(events)
        summary.events += len(events)

        while len(pending) >= batch_size:
            yield pending[:batch_size]
            del pending[:batch_size]

        if summary.races % PROGRESS_EVERY_RACES == 0:
            typer.echo(f"{label} replayed_races={summary.races}")
    if pending:
        yield pending


def _rebuild_system(
    session_factory,
    system_config: Glicko2SystemConfig,
    *,
    batch_size: int,
    dry_run: bool,
) -> None:
    label = f"config={system_config.file_path.name} glicko2_system={system_config.name}"
    calculator = RaceGlicko2Calculator(
        system_config.parameters,
        race_params=system_config.race,
        soft_reset=system_config.soft_reset,
    )
    summary = ReplaySummary()

    with session_scope(session_factory) as session:
        races = fetch_race_outcomes(session, lookback_days=system_config.lookback_days)

    if dry_run:
        for _ in _replay_in_batches(
            calculator, races, batch_size=batch_size, summary=summary, label=label
        ):
            pass
        typer.echo(
            f"[dry-run] {label} races={summary.races} skipped_races={summary.skipped_races} "
            f"events={summary.events} tracked_competitors={calculator.tracked_entity_count()}"
        )
        return

    # One transaction per system: a failed replay leaves the previous history intact.
    with session_scope(session_factory) as session:
        system = upsert_glicko2_system(
            session,
            name=system_config.name,
            description=system_config.description,
            config_json=system_config.as_config_json(),
        )
        delete_competitor_glicko2_for_system(session, system.id)
        for batch in _replay_in_batches(
            calculator, races, batch_size=batch_size, summary=summary, label=label
        ):
            insert_competitor_glicko2_events(session, batch, glicko2_system_id=system.id)
        session.flush()
        tracked = count_tracked_competitors(session, glicko2_system_id=system.id)
        system_id = system.id

    typer.echo(
        f"completed {label} glicko2_system_id={system_id} races={summary.races} "
        f"skipped_races={summary.skipped_races} inserted_events={summary.events} "
        f"tracked_competitors={tracked}"
    )


@app.command()
def rebuild_competitor_glicko2(
    db_url: Annotated[
        str,
        typer.Option("--db-url", help="Database URL. Defaults to the local mariokart postgres instance."),
    ] = DEFAULT_DB_URL,
    config_dir: Annotated[
        Path,
        typer.Option("--config-dir", help="Directory of competitor Glicko-2 TOML configs."),
    ] = DEFAULT_CONFIG_DIR,
    config_name: Annotated[
        str | None,
        typer.Option("--config-name", help="Rebuild only this config file (for example: strict.toml)."),
    ] = None,
    batch_size: Annotated[
        int,
        typer.Option("--batch-size", help="Rows per competitor_glicko2 insert."),
    ] = 5000,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Replay races without touching competitor_glicko2."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log per-race debug detail."),
    ] = False,
) -> None:
    """Recompute competitor Glicko-2 history for each selected config."""
    if batch_size <= 0:
        raise typer.BadParameter("--batch-size must be greater than 0", param_hint="--batch-size")
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    configs = [
        config
        for config in load_glicko2_system_configs(config_dir)
        if config_name is None or config.file_path.name == config_name
    ]
    if not configs:
        raise typer.BadParameter(
            f"{config_name!r} is not a config in {config_dir}",
            param_hint="--config-name",
        )

    engine = create_db_engine(db_url)
    if not dry_run:
        ensure_competitor_glicko2_schema(engine)
    session_factory = create_session_factory(engine)

    typer.echo(f"configs={len(configs)} config_dir={config_dir} dry_run={dry_run}")
    for config in configs:
        _rebuild_system(session_factory, config, batch_size=batch_size, dry_run=dry_run)


if __name__ == "__main__":
    app()
