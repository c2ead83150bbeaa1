"""Glicko-2 rating modules."""

from domain.ratings.glicko2.calculator import (
    Glicko2OpponentResult,
    Glicko2Parameters,
    calculate_expected_score,
    conservative_score,
    g_factor,
    to_mu,
    to_phi,
    update_glicko2_player,
)
from domain.ratings.glicko2.race_calculator import (
    CompetitorGlicko2Event,
    RaceGlicko2Calculator,
    RaceParameters,
    RatingUpdate,
    compute_updated_ratings,
    resolve_ranks,
    synthesize_pairwise_matches,
)
from domain.ratings.glicko2.season import SoftResetParameters, apply_soft_reset, season_key

__all__ = [
    "CompetitorGlicko2Event",
    "Glicko2OpponentResult",
    "Glicko2Parameters",
    "RaceGlicko2Calculator",
    "RaceParameters",
    "RatingUpdate",
    "SoftResetParameters",
    "apply_soft_reset",
    "calculate_expected_score",
    "compute_updated_ratings",
    "conservative_score",
    "g_factor",
    "resolve_ranks",
    "season_key",
    "synthesize_pairwise_matches",
    "to_mu",
    "to_phi",
    "update_glicko2_player",
]
