"""Read-side helpers for the app-owned competitor and race tables."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    func,
    select,
)
from sqlalchemy.orm import Session

from domain.ratings.common import RaceOutcome, RaceParticipant

# The web application owns these tables; only the columns read here are declared.
source_metadata = MetaData()

_competitors = Table(
    "competitors",
    source_metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String),
    Column("created_at", DateTime(timezone=False)),
)

_races = Table(
    "races",
    source_metadata,
    Column("id", Integer, primary_key=True),
    Column("date", DateTime(timezone=False)),
    Column("created_at", DateTime(timezone=False)),
)

_race_results = Table(
    "race_results",
    source_metadata,
    Column("id", Integer, primary_key=True),
    Column("race_id", Integer),
    Column("competitor_id", Integer),
    Column("rank12", Integer),
    Column("score", Integer),
)


def _build_cutoff_time(lookback_days: int | None) -> datetime | None:
    if lookback_days is None or lookback_days <= 0:
        return None
    return datetime.now(UTC).replace(tzinfo=None) - timedelta(days=lookback_days)


def _event_time_expr():
    return func.coalesce(_races.c.date, _races.c.created_at).label("event_time")


def _optional_int(value: object) -> int | None:
    if value is None:
        return None
    return int(value)  # type: ignore[arg-type]


def fetch_race_outcomes(session: Session, lookback_days: int | None = None) -> list[RaceOutcome]:
    """Fetch race outcomes in deterministic chronological order.

    Races sort by event time then race id; this is the order ratings must be
    applied in.
    """
    cutoff_time = _build_cutoff_time(lookback_days)
    event_time = _event_time_expr()

    conditions: list[Any] = []
    if cutoff_time is not None:
        conditions.append(event_time >= cutoff_time)

    statement = (
        select(
            _races.c.id.label("race_id"),
            event_time,
            _race_results.c.competitor_id,
            _race_results.c.rank12,
            _race_results.c.score,
        )
        .select_from(_races.join(_race_results, _race_results.c.race_id == _races.c.id))
        .where(*conditions)
        .order_by(event_time, _races.c.id, _race_results.c.rank12, _race_results.c.competitor_id)
    )
    rows = session.execute(statement).mappings().all()

    outcomes: list[RaceOutcome] = []
    current_race_id: int | None = None
    current_time: datetime | None = None
    participants: list[RaceParticipant] = []

    def flush() -> None:
        if current_race_id is None or current_time is None:
            return
        outcomes.append(
            RaceOutcome(
                race_id=current_race_id,
                event_time=current_time,
                participants=tuple(participants),
            )
        )

    for row in rows:
        race_id = int(row["race_id"])
        if race_id != current_race_id:
            flush()
            row_time = row["event_time"]
            if not isinstance(row_time, datetime):
                raise ValueError(f"race_id={race_id} has invalid event_time={row_time!r}")
            current_race_id = race_id
            current_time = row_time
            participants = []
        participants.append(
            RaceParticipant(
                competitor_id=int(row["competitor_id"]),
                rank12=_optional_int(row["rank12"]),
                score=_optional_int(row["score"]),
            )
        )
    flush()

    return outcomes


def fetch_competitor_names(session: Session) -> dict[int, str]:
    rows = session.execute(select(_competitors.c.id, _competitors.c.name)).all()
    return {int(row.id): str(row.name) for row in rows if row.name is not None}


__all__ = ["fetch_competitor_names", "fetch_race_outcomes", "source_metadata"]
