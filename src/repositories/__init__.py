"""Database repository helpers."""

from repositories.ratings.glicko2.repository import (
    count_tracked_competitors,
    delete_competitor_glicko2_for_system,
    ensure_competitor_glicko2_schema,
    fetch_latest_competitor_ratings,
    insert_competitor_glicko2_events,
    upsert_glicko2_system,
)

__all__ = [
    "count_tracked_competitors",
    "delete_competitor_glicko2_for_system",
    "ensure_competitor_glicko2_schema",
    "fetch_latest_competitor_ratings",
    "insert_competitor_glicko2_events",
    "upsert_glicko2_system",
]
