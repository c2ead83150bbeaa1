"""Shared types for race rating calculators."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

DEFAULT_INITIAL_RATING = 1500.0
DEFAULT_INITIAL_RD = 350.0
DEFAULT_INITIAL_VOLATILITY = 0.06
WORST_RANK = 12


@dataclass(frozen=True)
class CompetitorRating:
    """Persistent Glicko-2 skill state for one competitor."""

    competitor_id: int
    rating: float = DEFAULT_INITIAL_RATING
    rd: float = DEFAULT_INITIAL_RD
    volatility: float = DEFAULT_INITIAL_VOLATILITY

    def __post_init__(self) -> None:
        if self.rd <= 0.0:
            raise ValueError(f"competitor_id={self.competitor_id} rd must be > 0 (got {self.rd})")
        if self.volatility <= 0.0:
            raise ValueError(
                f"competitor_id={self.competitor_id} volatility must be > 0 (got {self.volatility})"
            )


@dataclass(frozen=True)
class PairwiseMatch:
    """One synthesized head-to-head result; score is from the first competitor's side."""

    competitor_id: int
    opponent_id: int
    score: float


@dataclass(frozen=True)
class RaceParticipant:
    """Per-competitor race payload."""

    competitor_id: int
    rank12: int | None
    score: int | None = None


@dataclass(frozen=True)
class RaceOutcome:
    """Canonical race payload used by the replay calculator."""

    race_id: int
    event_time: datetime
    participants: tuple[RaceParticipant, ...]

    def ranks(self) -> dict[int, int]:
        """Return recorded ranks keyed by competitor id, skipping unscored participants."""
        return {
            participant.competitor_id: participant.rank12
            for participant in self.participants
            if participant.rank12 is not None
        }
