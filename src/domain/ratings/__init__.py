"""Race rating domain modules."""

from domain.ratings.common import (
    CompetitorRating,
    PairwiseMatch,
    RaceOutcome,
    RaceParticipant,
)
from domain.ratings.errors import (
    DuplicateCompetitorError,
    InvalidRankError,
    MissingRaceResultError,
    RaceOrderError,
    RatingEngineError,
    UnknownCompetitorError,
)

__all__ = [
    "CompetitorRating",
    "DuplicateCompetitorError",
    "InvalidRankError",
    "MissingRaceResultError",
    "PairwiseMatch",
    "RaceOrderError",
    "RaceOutcome",
    "RaceParticipant",
    "RatingEngineError",
    "UnknownCompetitorError",
]
