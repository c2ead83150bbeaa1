"""Unit tests for free-for-all race rating updates."""

from __future__ import annotations

import pytest

from domain.ratings.common import CompetitorRating
from domain.ratings.errors import (
    DuplicateCompetitorError,
    InvalidRankError,
    MissingRaceResultError,
    RatingEngineError,
    UnknownCompetitorError,
)
from domain.ratings.glicko2.calculator import (
    Glicko2OpponentResult,
    Glicko2Parameters,
    update_glicko2_player,
)
from domain.ratings.glicko2.race_calculator import (
    compute_updated_ratings,
    resolve_ranks,
    synthesize_pairwise_matches,
)


def _roster(*competitor_ids: int, rating: float = 1500.0, rd: float = 350.0) -> list[CompetitorRating]:
    return [CompetitorRating(competitor_id=cid, rating=rating, rd=rd) for cid in competitor_ids]


def test_pairwise_matches_cover_every_unordered_pair() -> None:
    matches = synthesize_pairwise_matches([(1, 1), (2, 2), (3, 3), (4, 4)])

    assert len(matches) == 6
    assert {(m.competitor_id, m.opponent_id) for m in matches} == {
        (1, 2),
        (1, 3),
        (1, 4),
        (2, 3),
        (2, 4),
        (3, 4),
    }
    assert all(m.score == 1.0 for m in matches)


def test_pairwise_match_scores_follow_rank_and_ties_draw() -> None:
    matches = synthesize_pairwise_matches([(10, 3), (20, 3), (30, 1)])
    scores = {(m.competitor_id, m.opponent_id): m.score for m in matches}

    assert scores == {(10, 20): 0.5, (10, 30): 0.0, (20, 30): 0.0}


def test_three_competitor_race_matches_hand_computed_rating_period() -> None:
    updates = compute_updated_ratings(_roster(1, 2, 3), {1: 1, 2: 2, 3: 3})

    a, b, c = updates[1], updates[2], updates[3]
    assert a.post_rating > b.post_rating > c.post_rating
    assert a.post_rating == pytest.approx(1747.32, abs=0.5)
    assert b.post_rating == pytest.approx(1500.0, abs=1e-6)
    assert c.post_rating == pytest.approx(1252.68, abs=0.5)
    for update in (a, b, c):
        assert update.post_rd < 350.0
        assert update.post_rd == pytest.approx(253.40, abs=0.5)
        assert update.opponents == 2


def test_race_update_matches_direct_rating_period_with_synthesized_matches() -> None:
    updates = compute_updated_ratings(_roster(1, 2, 3), {1: 1, 2: 2, 3: 3})

    direct = update_glicko2_player(
        rating=1500.0,
        rd=350.0,
        volatility=0.06,
        results=[
            Glicko2OpponentResult(opponent_rating=1500.0, opponent_rd=350.0, score=1.0),
            Glicko2OpponentResult(opponent_rating=1500.0, opponent_rd=350.0, score=1.0),
        ],
    )
    assert (updates[1].post_rating, updates[1].post_rd, updates[1].post_volatility) == pytest.approx(
        direct
    )


def test_updates_use_pre_race_ratings_of_opponents() -> None:
    roster = [
        CompetitorRating(competitor_id=1, rating=1650.0, rd=120.0),
        CompetitorRating(competitor_id=2, rating=1500.0, rd=200.0),
        CompetitorRating(competitor_id=3, rating=1400.0, rd=80.0),
    ]
    updates = compute_updated_ratings(roster, {1: 2, 2: 1, 3: 3})

    direct_rating, _, _ = update_glicko2_player(
        rating=1400.0,
        rd=80.0,
        volatility=0.06,
        results=[
            Glicko2OpponentResult(opponent_rating=1500.0, opponent_rd=200.0, score=0.0),
            Glicko2OpponentResult(opponent_rating=1650.0, opponent_rd=120.0, score=0.0),
        ],
    )
    assert updates[3].post_rating == pytest.approx(direct_rating)


def test_compute_is_deterministic() -> None:
    roster = [
        CompetitorRating(competitor_id=7, rating=1580.0, rd=140.0, volatility=0.061),
        CompetitorRating(competitor_id=3, rating=1490.0, rd=210.0),
        CompetitorRating(competitor_id=9, rating=1610.0, rd=95.0, volatility=0.058),
        CompetitorRating(competitor_id=4),
    ]
    outcomes = {7: 2, 3: 1, 9: 4, 4: 3}

    assert compute_updated_ratings(roster, outcomes) == compute_updated_ratings(roster, outcomes)


def test_strict_order_lifts_winner_and_drops_last_place() -> None:
    roster = _roster(*range(1, 13))
    updates = compute_updated_ratings(roster, {cid: cid for cid in range(1, 13)})

    assert updates[1].post_rating > 1500.0
    assert updates[12].post_rating < 1500.0
    post_ratings = [updates[cid].post_rating for cid in range(1, 13)]
    assert post_ratings == sorted(post_ratings, reverse=True)


@pytest.mark.parametrize("rd", [350.0, 200.0, 120.0, 30.0, 20.0])
def test_rd_never_grows_from_racing(rd: float) -> None:
    roster = _roster(1, 2, 3, 4, 5, rd=rd)
    updates = compute_updated_ratings(roster, {1: 3, 2: 1, 3: 5, 4: 2, 5: 4})

    for update in updates.values():
        assert update.post_rd <= update.pre_rd


def test_rd_below_floor_is_not_lifted_to_min_rd() -> None:
    updates = compute_updated_ratings(_roster(1, 2, 3, rd=20.0), {1: 1, 2: 2, 3: 3})

    for update in updates.values():
        assert update.pre_rd == pytest.approx(20.0)
        assert update.post_rd <= 20.0


def test_rd_above_ceiling_is_capped_at_max_rd() -> None:
    updates = compute_updated_ratings(_roster(1, 2, rd=400.0), {1: 1, 2: 2})

    for update in updates.values():
        assert update.post_rd <= 350.0


def test_tied_competitors_with_equal_ratings_stay_equal() -> None:
    roster = _roster(1, 2, 3, 4)
    updates = compute_updated_ratings(roster, {1: 1, 2: 2, 3: 2, 4: 4})

    assert updates[2].post_rating == pytest.approx(updates[3].post_rating)
    assert updates[2].post_rd == pytest.approx(updates[3].post_rd)
    assert updates[2].draws == 1
    assert updates[2].wins == 1
    assert updates[2].losses == 1


def test_all_tied_race_keeps_ratings_and_shrinks_rd() -> None:
    roster = _roster(1, 2, 3)
    updates = compute_updated_ratings(roster, {1: 1, 2: 1, 3: 1})

    for update in updates.values():
        assert update.post_rating == pytest.approx(1500.0)
        assert update.post_rd < 350.0
        assert update.draws == 2
        assert update.actual_score == pytest.approx(0.5)


def test_single_competitor_roster_is_unchanged() -> None:
    competitor = CompetitorRating(competitor_id=5, rating=1612.0, rd=88.0, volatility=0.059)
    updates = compute_updated_ratings([competitor], {5: 1})

    update = updates[5]
    assert update.as_rating() == competitor
    assert update.opponents == 0
    assert update.rating_delta == 0.0


def test_empty_roster_returns_empty_mapping() -> None:
    assert compute_updated_ratings([], {}) == {}


def test_missing_result_is_rejected_by_default() -> None:
    with pytest.raises(MissingRaceResultError, match=r"\[3\]") as exc_info:
        compute_updated_ratings(_roster(1, 2, 3), {1: 1, 2: 2})

    assert exc_info.value.details == {"competitor_ids": [3]}
    assert isinstance(exc_info.value, RatingEngineError)


def test_missing_result_can_default_to_worst_rank() -> None:
    roster = _roster(1, 2, 3)
    defaulted = compute_updated_ratings(roster, {1: 1, 2: 2}, missing_rank=12)
    explicit = compute_updated_ratings(roster, {1: 1, 2: 2, 3: 12})

    assert defaulted == explicit
    assert defaulted[3].rank12 == 12
    assert defaulted[3].post_rating < 1500.0


def test_resolve_ranks_fills_missing_rank() -> None:
    assert resolve_ranks(_roster(1, 2), {1: 4}, missing_rank=12) == {1: 4, 2: 12}


def test_unknown_competitor_in_outcomes_is_rejected() -> None:
    with pytest.raises(UnknownCompetitorError):
        compute_updated_ratings(_roster(1, 2), {1: 1, 2: 2, 99: 3})


def test_duplicate_competitor_is_rejected() -> None:
    with pytest.raises(DuplicateCompetitorError):
        compute_updated_ratings(_roster(1, 2, 2), {1: 1, 2: 2})


@pytest.mark.parametrize("rank", ["1", 1.5, True, None])
def test_non_integer_rank_is_rejected(rank: object) -> None:
    with pytest.raises(InvalidRankError):
        compute_updated_ratings(_roster(1, 2), {1: 1, 2: rank})  # type: ignore[dict-item]


def test_updates_follow_roster_order_and_expose_conservative_score() -> None:
    updates = compute_updated_ratings(_roster(3, 1, 2), {1: 1, 2: 2, 3: 3})

    assert list(updates) == [3, 1, 2]
    for update in updates.values():
        assert update.conservative_score == pytest.approx(update.post_rating - 2.0 * update.post_rd)


def test_custom_tau_is_used() -> None:
    roster = _roster(1, 2, 3, rd=80.0)
    low = compute_updated_ratings(roster, {1: 3, 2: 1, 3: 2}, params=Glicko2Parameters(tau=0.3))
    high = compute_updated_ratings(roster, {1: 3, 2: 1, 3: 2}, params=Glicko2Parameters(tau=1.2))

    assert low[1].post_volatility != high[1].post_volatility


def test_invalid_competitor_state_is_rejected() -> None:
    with pytest.raises(ValueError, match="rd must be > 0"):
        CompetitorRating(competitor_id=1, rd=0.0)
    with pytest.raises(ValueError, match="volatility must be > 0"):
        CompetitorRating(competitor_id=1, volatility=-0.01)
