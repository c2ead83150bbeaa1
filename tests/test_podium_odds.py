"""Unit tests for Plackett-Luce podium odds."""

from __future__ import annotations

import numpy as np
import pytest

from domain.ratings.common import CompetitorRating
from domain.ratings.odds import (
    OddsParameters,
    compute_podium_odds,
    plackett_luce_strength,
    probability_to_odds,
    simulate_podium_probabilities,
    win_probabilities,
)


def _field() -> list[CompetitorRating]:
    return [
        CompetitorRating(competitor_id=1, rating=1750.0, rd=60.0),
        CompetitorRating(competitor_id=2, rating=1600.0, rd=80.0),
        CompetitorRating(competitor_id=3, rating=1500.0, rd=120.0),
        CompetitorRating(competitor_id=4, rating=1350.0, rd=90.0),
    ]


def test_strength_is_one_at_initial_rating() -> None:
    assert plackett_luce_strength(1500.0, 350.0) == pytest.approx(1.0)


def test_lower_rd_strengthens_above_average_competitor() -> None:
    assert plackett_luce_strength(1700.0, 50.0) > plackett_luce_strength(1700.0, 300.0)


def test_win_probabilities_sum_to_one_and_follow_rating() -> None:
    probabilities = win_probabilities(_field())

    assert sum(probabilities.values()) == pytest.approx(1.0)
    assert probabilities[1] > probabilities[2] > probabilities[3] > probabilities[4]


def test_win_probabilities_handle_extreme_ratings() -> None:
    probabilities = win_probabilities(
        [
            CompetitorRating(competitor_id=1, rating=250_000.0, rd=30.0),
            CompetitorRating(competitor_id=2, rating=1500.0, rd=30.0),
        ]
    )

    assert probabilities[1] == pytest.approx(1.0)
    assert probabilities[2] == pytest.approx(0.0)


def test_each_podium_position_is_filled_once_per_simulation() -> None:
    podium = simulate_podium_probabilities(
        _field(),
        simulations=5_000,
        podium_size=3,
        rng=np.random.default_rng(7),
    )

    for position in range(3):
        assert sum(values[position] for values in podium.values()) == pytest.approx(1.0)
    for values in podium.values():
        assert sum(values) <= 1.0 + 1e-9


def test_simulated_first_place_tracks_win_probability() -> None:
    field = _field()
    podium = simulate_podium_probabilities(
        field,
        simulations=50_000,
        podium_size=3,
        rng=np.random.default_rng(11),
    )
    expected = win_probabilities(field)

    for competitor_id, probability in expected.items():
        assert podium[competitor_id][0] == pytest.approx(probability, abs=0.01)


def test_podium_shrinks_to_field_size() -> None:
    odds = compute_podium_odds(_field()[:2], OddsParameters(simulations=1_000, seed=3))

    assert all(len(item.position_odds) == 2 for item in odds.values())


def test_seeded_odds_are_reproducible() -> None:
    params = OddsParameters(simulations=2_000, seed=42)

    assert compute_podium_odds(_field(), params) == compute_podium_odds(_field(), params)


def test_odds_are_clamped() -> None:
    assert probability_to_odds(0.0) == pytest.approx(50.0)
    assert probability_to_odds(0.001) == pytest.approx(50.0)
    assert probability_to_odds(0.99) == pytest.approx(1.1)
    assert probability_to_odds(0.25) == pytest.approx(4.0)


def test_favourite_has_shortest_win_odds() -> None:
    odds = compute_podium_odds(_field(), OddsParameters(simulations=20_000, seed=5))

    first_place = {competitor_id: item.position_odds[0] for competitor_id, item in odds.items()}
    assert min(first_place, key=first_place.get) == 1
    assert all(1.1 <= value <= 50.0 for item in odds.values() for value in item.position_odds)


def test_invalid_odds_bounds_raise() -> None:
    with pytest.raises(ValueError, match="odds bounds"):
        compute_podium_odds(_field(), OddsParameters(min_odds=1.0))


def test_empty_field_has_no_odds() -> None:
    assert compute_podium_odds([], OddsParameters(simulations=10, seed=1)) == {}
