"""Persistence helpers for race-level competitor Glicko-2 using SQLAlchemy."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import asdict
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, func, insert, inspect, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from domain.ratings.glicko2.race_calculator import CompetitorGlicko2Event
from domain.ratings.leaderboard import LeaderboardEntry
from models.base import Base
from models.ratings.glicko2 import CompetitorGlicko2, Glicko2System
from repositories.ratings.common import fetch_competitor_names, fetch_race_outcomes

logger = logging.getLogger(__name__)


def ensure_competitor_glicko2_schema(engine: Engine) -> None:
    """Create glicko2_systems/competitor_glicko2 tables and indexes if needed."""
    with engine.begin() as connection:
        inspector = inspect(connection)
        existing_tables = set(inspector.get_table_names())
        reflect_only = [
            table_name
            for table_name in ["competitors", "races", "competitor_glicko2", "glicko2_systems"]
            if table_name in existing_tables
        ]
        # Foreign keys resolve against the reflected app tables.
        Base.metadata.reflect(
            bind=connection,
            only=reflect_only,
        )
        Glicko2System.__table__.create(bind=connection, checkfirst=True)
        CompetitorGlicko2.__table__.create(bind=connection, checkfirst=True)


def upsert_glicko2_system(
    session: Session,
    *,
    name: str,
    description: str | None,
    config_json: dict[str, Any],
) -> Glicko2System:
    """Create or update a Glicko-2 system definition."""
    system = session.execute(select(Glicko2System).where(Glicko2System.name == name)).scalar_one_or_none()
    if system is None:
        system = Glicko2System(
            name=name,
            description=description,
            config_json=config_json,
        )
        session.add(system)
    else:
        system.description = description
        system.config_json = config_json
        system.updated_at = datetime.now(UTC).replace(tzinfo=None)
    session.flush()
    return system


def get_glicko2_system(session: Session, name: str) -> Glicko2System | None:
    return session.execute(select(Glicko2System).where(Glicko2System.name == name)).scalar_one_or_none()


def delete_competitor_glicko2_for_system(session: Session, glicko2_system_id: int) -> None:
    """Delete existing events for a single Glicko-2 system."""
    session.execute(
        delete(CompetitorGlicko2).where(CompetitorGlicko2.glicko2_system_id == glicko2_system_id)
    )


def insert_competitor_glicko2_events(
    session: Session,
    events: Sequence[CompetitorGlicko2Event],
    *,
    glicko2_system_id: int,
) -> None:
    """Bulk insert competitor Glicko-2 events."""
    if not events:
        return

    payload = [{"glicko2_system_id": glicko2_system_id, **asdict(event)} for event in events]
    session.execute(insert(CompetitorGlicko2), payload)
    logger.debug("inserted %d competitor_glicko2 rows for system_id=%d", len(payload), glicko2_system_id)


def count_tracked_competitors(session: Session, *, glicko2_system_id: int | None = None) -> int:
    """Count competitors with at least one Glicko-2 event."""
    statement = select(func.count(func.distinct(CompetitorGlicko2.competitor_id)))
    if glicko2_system_id is not None:
        statement = statement.where(CompetitorGlicko2.glicko2_system_id == glicko2_system_id)
    result = session.scalar(statement)
    return int(result or 0)


def fetch_latest_competitor_ratings(
    session: Session,
    *,
    glicko2_system_id: int,
) -> list[LeaderboardEntry]:
    """Latest post-race state per competitor, as leaderboard input."""
    ranked = (
        select(
            CompetitorGlicko2.competitor_id,
            CompetitorGlicko2.post_rating,
            CompetitorGlicko2.post_rd,
            CompetitorGlicko2.post_volatility,
            CompetitorGlicko2.race_count,
            func.row_number()
            .over(
                partition_by=CompetitorGlicko2.competitor_id,
                order_by=(
                    CompetitorGlicko2.event_time.desc(),
                    CompetitorGlicko2.race_id.desc(),
                    CompetitorGlicko2.id.desc(),
                ),
            )
            .label("rn"),
        )
        .where(CompetitorGlicko2.glicko2_system_id == glicko2_system_id)
        .subquery()
    )
    rows = session.execute(
        select(ranked).where(ranked.c.rn == 1).order_by(ranked.c.competitor_id)
    ).all()

    names = fetch_competitor_names(session)
    return [
        LeaderboardEntry(
            competitor_id=int(row.competitor_id),
            rating=float(row.post_rating),
            rd=float(row.post_rd),
            volatility=float(row.post_volatility),
            race_count=int(row.race_count),
            name=names.get(int(row.competitor_id)),
        )
        for row in rows
    ]


def fetch_competitor_race_times(
    session: Session,
    *,
    glicko2_system_id: int,
    since: datetime | None = None,
) -> dict[int, list[datetime]]:
    """Race timestamps per competitor, oldest first."""
    statement = select(CompetitorGlicko2.competitor_id, CompetitorGlicko2.event_time).where(
        CompetitorGlicko2.glicko2_system_id == glicko2_system_id
    )
    if since is not None:
        statement = statement.where(CompetitorGlicko2.event_time >= since)
    statement = statement.order_by(CompetitorGlicko2.event_time, CompetitorGlicko2.race_id)

    race_times: dict[int, list[datetime]] = defaultdict(list)
    for competitor_id, event_time in session.execute(statement).all():
        race_times[int(competitor_id)].append(event_time)
    return dict(race_times)


__all__ = [
    "count_tracked_competitors",
    "delete_competitor_glicko2_for_system",
    "ensure_competitor_glicko2_schema",
    "fetch_competitor_race_times",
    "fetch_latest_competitor_ratings",
    "fetch_race_outcomes",
    "get_glicko2_system",
    "insert_competitor_glicko2_events",
    "upsert_glicko2_system",
]
