"""Monthly season soft reset."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from domain.ratings.common import CompetitorRating
from domain.ratings.glicko2.calculator import Glicko2Parameters


@dataclass(frozen=True)
class SoftResetParameters:
    enabled: bool = False
    keep: float = 0.75
    rd_increase: float = 50.0


def season_key(moment: datetime) -> tuple[int, int]:
    """Seasons are calendar months."""
    return moment.year, moment.month


def apply_soft_reset(
    state: CompetitorRating,
    *,
    params: Glicko2Parameters,
    reset: SoftResetParameters,
) -> CompetitorRating:
    """Pull a rating towards the initial rating and widen its deviation.

    ``rating = keep * rating + (1 - keep) * initial_rating`` and
    ``rd = min(rd + rd_increase, max_rd)``. Order between competitors is
    preserved; volatility is untouched.
    """
    rating = (reset.keep * state.rating) + ((1.0 - reset.keep) * params.initial_rating)
    rd = min(state.rd + reset.rd_increase, params.max_rd)
    return CompetitorRating(
        competitor_id=state.competitor_id,
        rating=rating,
        rd=rd,
        volatility=state.volatility,
    )
