"""Rating domain modules."""

from domain.ratings import CompetitorRating, RaceOutcome, RaceParticipant

__all__ = ["CompetitorRating", "RaceOutcome", "RaceParticipant"]
