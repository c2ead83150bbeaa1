"""Leaderboard ordering by conservative score."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from domain.ratings.eligibility import DEFAULT_CALIBRATION_RACES, count_recent_races, is_provisional
from domain.ratings.glicko2.calculator import conservative_score


class LeaderboardPeriod(str, Enum):
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


# None means every race counts.
PERIOD_WINDOW_DAYS: dict[LeaderboardPeriod, int | None] = {
    LeaderboardPeriod.WEEK: 7,
    LeaderboardPeriod.MONTH: 30,
    LeaderboardPeriod.ALL: None,
}


@dataclass(frozen=True)
class LeaderboardEntry:
    competitor_id: int
    rating: float
    rd: float
    volatility: float
    race_count: int
    name: str | None = None

    @property
    def conservative_score(self) -> float:
        return conservative_score(self.rating, self.rd)


@dataclass(frozen=True)
class LeaderboardRow:
    position: int
    competitor_id: int
    name: str | None
    rating: float
    rd: float
    volatility: float
    conservative_score: float
    race_count: int
    provisional: bool


def entries_active_in_period(
    entries: Iterable[LeaderboardEntry],
    race_times: Mapping[int, Sequence[datetime]],
    *,
    period: LeaderboardPeriod,
    now: datetime,
) -> list[LeaderboardEntry]:
    """Keep competitors with at least one race in ``period``.

    For the all-time board any recorded race qualifies.
    """
    window_days = PERIOD_WINDOW_DAYS[period]
    if window_days is None:
        return [entry for entry in entries if entry.race_count > 0]
    return [
        entry
        for entry in entries
        if count_recent_races(race_times.get(entry.competitor_id, ()), now=now, window_days=window_days)
        > 0
    ]


def _ranking_key(entry: LeaderboardEntry) -> tuple[float, float, float, int, int]:
    # Conservative score, raw rating, lower RD, more races; id keeps the order total.
    return (-entry.conservative_score, -entry.rating, entry.rd, -entry.race_count, entry.competitor_id)


def build_leaderboard(
    entries: Iterable[LeaderboardEntry],
    *,
    calibration_races: int = DEFAULT_CALIBRATION_RACES,
    include_provisional: bool = True,
) -> list[LeaderboardRow]:
    """Rank competitors by ``rating - 2 * rd``, highest first."""
    rows: list[LeaderboardRow] = []
    for entry in sorted(entries, key=_ranking_key):
        provisional = is_provisional(entry.race_count, calibration_races=calibration_races)
        if provisional and not include_provisional:
            continue
        rows.append(
            LeaderboardRow(
                position=len(rows) + 1,
                competitor_id=entry.competitor_id,
                name=entry.name,
                rating=entry.rating,
                rd=entry.rd,
                volatility=entry.volatility,
                conservative_score=entry.conservative_score,
                race_count=entry.race_count,
                provisional=provisional,
            )
        )
    return rows
