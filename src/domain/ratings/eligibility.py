"""Provisional status and betting eligibility rules."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

DEFAULT_CALIBRATION_RACES = 5
DEFAULT_ACTIVITY_WINDOW_DAYS = 30
DEFAULT_MIN_RECENT_RACES = 2


class IneligibilityReason(str, Enum):
    """Why a competitor cannot be bet on. Rules are checked in declaration order."""

    CALIBRATING = "calibrating"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class BettingEligibility:
    eligible: bool
    reason: IneligibilityReason | None
    lifetime_races: int
    recent_races: int


def is_provisional(race_count: int, *, calibration_races: int = DEFAULT_CALIBRATION_RACES) -> bool:
    """A competitor is provisional until it has completed ``calibration_races`` races."""
    return race_count < calibration_races


def count_recent_races(
    race_times: Iterable[datetime],
    *,
    now: datetime,
    window_days: int = DEFAULT_ACTIVITY_WINDOW_DAYS,
) -> int:
    window_start = now - timedelta(days=window_days)
    return sum(1 for race_time in race_times if window_start <= race_time <= now)


def check_betting_eligibility(
    *,
    lifetime_races: int,
    recent_race_times: Iterable[datetime],
    now: datetime,
    calibration_races: int = DEFAULT_CALIBRATION_RACES,
    window_days: int = DEFAULT_ACTIVITY_WINDOW_DAYS,
    min_recent_races: int = DEFAULT_MIN_RECENT_RACES,
) -> BettingEligibility:
    """Calibration first, then recent activity; the first failing rule is reported."""
    recent_races = count_recent_races(recent_race_times, now=now, window_days=window_days)

    reason: IneligibilityReason | None = None
    if is_provisional(lifetime_races, calibration_races=calibration_races):
        reason = IneligibilityReason.CALIBRATING
    elif recent_races < min_recent_races:
        reason = IneligibilityReason.INACTIVE

    return BettingEligibility(
        eligible=reason is None,
        reason=reason,
        lifetime_races=lifetime_races,
        recent_races=recent_races,
    )


__all__ = [
    "BettingEligibility",
    "DEFAULT_ACTIVITY_WINDOW_DAYS",
    "DEFAULT_CALIBRATION_RACES",
    "DEFAULT_MIN_RECENT_RACES",
    "IneligibilityReason",
    "check_betting_eligibility",
    "count_recent_races",
    "is_provisional",
]
