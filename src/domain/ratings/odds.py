"""Podium odds from Glicko-2 ratings (Plackett-Luce + Monte Carlo).

Each competitor gets a Plackett-Luce strength ``alpha = exp(mu * g(phi))``
on the Glicko-2 scale, so a high rating with a low deviation is the
strongest. Podiums are sampled without replacement proportionally to
``alpha`` and position frequencies are turned into clamped decimal odds.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from domain.ratings.common import CompetitorRating
from domain.ratings.glicko2.calculator import g_factor, to_mu, to_phi


@dataclass(frozen=True)
class OddsParameters:
    simulations: int = 50_000
    podium_size: int = 3
    min_odds: float = 1.1
    max_odds: float = 50.0
    seed: int | None = None


@dataclass(frozen=True)
class PodiumOdds:
    competitor_id: int
    strength: float
    win_probability: float
    position_probabilities: tuple[float, ...]
    position_odds: tuple[float, ...]


def log_strength(rating: float, rd: float) -> float:
    """``log(alpha)``; kept in log space so large ratings never overflow."""
    return to_mu(rating) * g_factor(to_phi(rd))


def plackett_luce_strength(rating: float, rd: float) -> float:
    return float(np.exp(log_strength(rating, rd)))


def win_probabilities(ratings: Sequence[CompetitorRating]) -> dict[int, float]:
    """Softmax of log strengths: ``alpha_i / sum(alpha)``."""
    if not ratings:
        return {}
    logs = np.array([log_strength(item.rating, item.rd) for item in ratings])
    weights = np.exp(logs - logs.max())
    probabilities = weights / weights.sum()
    return {item.competitor_id: float(p) for item, p in zip(ratings, probabilities)}


def simulate_podium_probabilities(
    ratings: Sequence[CompetitorRating],
    *,
    simulations: int,
    podium_size: int,
    rng: np.random.Generator,
) -> dict[int, tuple[float, ...]]:
    """Frequency with which each competitor lands on each podium position.

    Adding Gumbel noise to log strengths and sorting draws a full
    Plackett-Luce ranking, equivalent to sequential sampling without
    replacement.
    """
    if simulations <= 0:
        raise ValueError(f"simulations must be > 0 (got {simulations})")
    count = len(ratings)
    if count == 0:
        return {}
    positions = min(podium_size, count)

    logs = np.array([log_strength(item.rating, item.rd) for item in ratings])
    keys = logs[np.newaxis, :] + rng.gumbel(size=(simulations, count))
    podiums = np.argsort(-keys, axis=1)[:, :positions]

    frequencies = np.stack(
        [np.bincount(podiums[:, position], minlength=count) for position in range(positions)],
        axis=1,
    ) / float(simulations)
    return {
        item.competitor_id: tuple(float(value) for value in frequencies[index])
        for index, item in enumerate(ratings)
    }


def probability_to_odds(probability: float, *, min_odds: float = 1.1, max_odds: float = 50.0) -> float:
    """Decimal odds ``1 / p`` clamped to ``[min_odds, max_odds]``."""
    if probability <= 0.0:
        return max_odds
    return max(min_odds, min(1.0 / probability, max_odds))


def compute_podium_odds(
    ratings: Sequence[CompetitorRating],
    params: OddsParameters | None = None,
) -> dict[int, PodiumOdds]:
    params = params or OddsParameters()
    if params.min_odds <= 1.0 or params.min_odds > params.max_odds:
        raise ValueError(
            f"odds bounds must satisfy 1 < min_odds <= max_odds "
            f"(got {params.min_odds}, {params.max_odds})"
        )

    rng = np.random.default_rng(params.seed)
    win = win_probabilities(ratings)
    podium = simulate_podium_probabilities(
        ratings,
        simulations=params.simulations,
        podium_size=params.podium_size,
        rng=rng,
    )
    return {
        item.competitor_id: PodiumOdds(
            competitor_id=item.competitor_id,
            strength=plackett_luce_strength(item.rating, item.rd),
            win_probability=win[item.competitor_id],
            position_probabilities=podium[item.competitor_id],
            position_odds=tuple(
                probability_to_odds(p, min_odds=params.min_odds, max_odds=params.max_odds)
                for p in podium[item.competitor_id]
            ),
        )
        for item in ratings
    }
