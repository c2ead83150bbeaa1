"""Free-for-all race ratings on top of Glicko-2.

A race with N competitors is scored as the complete round-robin of implied
head-to-head results (N * (N - 1) / 2 pairwise matches) and every competitor
is updated in a single rating period against the pre-race ratings of all
others.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime

from domain.ratings.common import CompetitorRating, PairwiseMatch, RaceOutcome
from domain.ratings.eligibility import DEFAULT_CALIBRATION_RACES, is_provisional
from domain.ratings.errors import (
    DuplicateCompetitorError,
    InvalidRankError,
    MissingRaceResultError,
    RaceOrderError,
    UnknownCompetitorError,
)
from domain.ratings.glicko2.calculator import (
    Glicko2OpponentResult,
    Glicko2Parameters,
    calculate_expected_score,
    conservative_score,
    update_glicko2_player,
)
from domain.ratings.glicko2.season import (
    SoftResetParameters,
    apply_soft_reset,
    season_key,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RaceParameters:
    # None rejects rosters with unscored competitors; an int scores them at that rank.
    missing_rank: int | None = None
    calibration_races: int = DEFAULT_CALIBRATION_RACES


@dataclass(frozen=True)
class RatingUpdate:
    """Result of rating one competitor for one race."""

    competitor_id: int
    rank12: int | None
    opponents: int
    wins: int
    draws: int
    losses: int
    actual_score: float
    expected_score: float
    pre_rating: float
    pre_rd: float
    pre_volatility: float
    post_rating: float
    post_rd: float
    post_volatility: float

    @property
    def rating_delta(self) -> float:
        return self.post_rating - self.pre_rating

    @property
    def rd_delta(self) -> float:
        return self.post_rd - self.pre_rd

    @property
    def volatility_delta(self) -> float:
        return self.post_volatility - self.pre_volatility

    @property
    def conservative_score(self) -> float:
        return conservative_score(self.post_rating, self.post_rd)

    def as_rating(self) -> CompetitorRating:
        return CompetitorRating(
            competitor_id=self.competitor_id,
            rating=self.post_rating,
            rd=self.post_rd,
            volatility=self.post_volatility,
        )

    @classmethod
    def unchanged(cls, state: CompetitorRating, *, rank12: int | None) -> RatingUpdate:
        return cls(
            competitor_id=state.competitor_id,
            rank12=rank12,
            opponents=0,
            wins=0,
            draws=0,
            losses=0,
            actual_score=0.0,
            expected_score=0.0,
            pre_rating=state.rating,
            pre_rd=state.rd,
            pre_volatility=state.volatility,
            post_rating=state.rating,
            post_rd=state.rd,
            post_volatility=state.volatility,
        )


@dataclass(frozen=True)
class CompetitorGlicko2Event:
    competitor_id: int
    race_id: int
    event_time: datetime
    rank12: int | None
    opponents: int
    wins: int
    draws: int
    losses: int
    actual_score: float
    expected_score: float
    pre_rating: float
    pre_rd: float
    pre_volatility: float
    rating_delta: float
    rd_delta: float
    volatility_delta: float
    post_rating: float
    post_rd: float
    post_volatility: float
    conservative_score: float
    race_count: int
    provisional: bool
    tau: float
    initial_rating: float
    initial_rd: float
    initial_volatility: float


def _validate_roster(
    competitors: Sequence[CompetitorRating],
    outcomes: Mapping[int, int],
) -> None:
    counts = Counter(competitor.competitor_id for competitor in competitors)
    duplicates = sorted(competitor_id for competitor_id, count in counts.items() if count > 1)
    if duplicates:
        raise DuplicateCompetitorError(duplicates)

    unknown = sorted(competitor_id for competitor_id in outcomes if competitor_id not in counts)
    if unknown:
        raise UnknownCompetitorError(unknown)

    for competitor_id, rank in outcomes.items():
        if isinstance(rank, bool) or not isinstance(rank, int):
            raise InvalidRankError(competitor_id, rank)


def resolve_ranks(
    competitors: Sequence[CompetitorRating],
    outcomes: Mapping[int, int],
    *,
    missing_rank: int | None = None,
) -> dict[int, int]:
    """Effective finishing rank for every rostered competitor."""
    missing = [
        competitor.competitor_id
        for competitor in competitors
        if competitor.competitor_id not in outcomes
    ]
    if missing and missing_rank is None:
        raise MissingRaceResultError(missing)
    if missing:
        logger.debug("scoring competitors %s at missing_rank=%d", missing, missing_rank)

    return {
        competitor.competitor_id: outcomes.get(competitor.competitor_id, missing_rank)
        for competitor in competitors
    }


def synthesize_pairwise_matches(ranked: Sequence[tuple[int, int]]) -> list[PairwiseMatch]:
    """Round-robin head-to-heads for ``(competitor_id, rank)`` pairs.

    One match per unordered pair, in input order. Smaller rank wins; equal
    ranks draw.
    """
    matches: list[PairwiseMatch] = []
    for index, (competitor_id, rank) in enumerate(ranked):
        for opponent_id, opponent_rank in ranked[index + 1 :]:
            if rank == opponent_rank:
                score = 0.5
            elif rank < opponent_rank:
                score = 1.0
            else:
                score = 0.0
            matches.append(
                PairwiseMatch(competitor_id=competitor_id, opponent_id=opponent_id, score=score)
            )
    return matches


def compute_updated_ratings(
    competitors: Sequence[CompetitorRating],
    outcomes: Mapping[int, int],
    *,
    params: Glicko2Parameters | None = None,
    missing_rank: int | None = None,
) -> dict[int, RatingUpdate]:
    """Rate one race and return an update for every rostered competitor.

    ``outcomes`` maps competitor id to finishing rank (1 = best). Rosters of
    fewer than two competitors cannot produce a match and come back
    unchanged. Pure: the same inputs always give the same outputs.
    """
    params = params or Glicko2Parameters()
    _validate_roster(competitors, outcomes)

    if len(competitors) < 2:
        logger.debug("race roster has %d competitor(s); ratings unchanged", len(competitors))
        return {
            competitor.competitor_id: RatingUpdate.unchanged(
                competitor, rank12=outcomes.get(competitor.competitor_id)
            )
            for competitor in competitors
        }

    ranks = resolve_ranks(competitors, outcomes, missing_rank=missing_rank)
    ordered = sorted(competitors, key=lambda competitor: ranks[competitor.competitor_id])
    matches = synthesize_pairwise_matches(
        [(competitor.competitor_id, ranks[competitor.competitor_id]) for competitor in ordered]
    )

    seeds = {competitor.competitor_id: competitor for competitor in ordered}
    results: dict[int, list[Glicko2OpponentResult]] = {competitor_id: [] for competitor_id in seeds}
    for match in matches:
        first = seeds[match.competitor_id]
        second = seeds[match.opponent_id]
        results[first.competitor_id].append(
            Glicko2OpponentResult(
                opponent_rating=second.rating,
                opponent_rd=second.rd,
                score=match.score,
            )
        )
        results[second.competitor_id].append(
            Glicko2OpponentResult(
                opponent_rating=first.rating,
                opponent_rd=first.rd,
                score=1.0 - match.score,
            )
        )

    updates: dict[int, RatingUpdate] = {}
    for competitor_id, seed in seeds.items():
        opponent_results = results[competitor_id]
        post_rating, post_rd, post_vol = update_glicko2_player(
            rating=seed.rating,
            rd=seed.rd,
            volatility=seed.volatility,
            results=opponent_results,
            tau=params.tau,
            epsilon=params.epsilon,
        )
        # Racing never widens RD; the floor never lifts a competitor already below min_rd.
        post_rd = max(
            min(params.min_rd, seed.rd),
            min(post_rd, seed.rd, params.max_rd),
        )

        expected_total = sum(
            calculate_expected_score(
                rating=seed.rating,
                rd=seed.rd,
                opponent_rating=result.opponent_rating,
                opponent_rd=result.opponent_rd,
            )
            for result in opponent_results
        )
        opponents = len(opponent_results)
        updates[competitor_id] = RatingUpdate(
            competitor_id=competitor_id,
            rank12=ranks[competitor_id],
            opponents=opponents,
            wins=sum(1 for result in opponent_results if result.score == 1.0),
            draws=sum(1 for result in opponent_results if result.score == 0.5),
            losses=sum(1 for result in opponent_results if result.score == 0.0),
            actual_score=sum(result.score for result in opponent_results) / opponents,
            expected_score=expected_total / opponents,
            pre_rating=seed.rating,
            pre_rd=seed.rd,
            pre_volatility=seed.volatility,
            post_rating=post_rating,
            post_rd=post_rd,
            post_volatility=post_vol,
        )

    # Preserve the caller's roster order in the returned mapping.
    return {competitor.competitor_id: updates[competitor.competitor_id] for competitor in competitors}


class RaceGlicko2Calculator:
    """Stateful race-by-race competitor Glicko-2 calculator.

    Races for a competitor are not commutative, so they must be fed in
    chronological order.
    """

    def __init__(
        self,
        params: Glicko2Parameters,
        *,
        race_params: RaceParameters | None = None,
        soft_reset: SoftResetParameters | None = None,
    ) -> None:
        self.params = params
        self.race_params = race_params or RaceParameters()
        self.soft_reset = soft_reset or SoftResetParameters()
        self._states: dict[int, CompetitorRating] = {}
        self._race_counts: dict[int, int] = {}
        self._last_event_time: datetime | None = None

    def _initial_state(self, competitor_id: int) -> CompetitorRating:
        return CompetitorRating(
            competitor_id=competitor_id,
            rating=self.params.initial_rating,
            rd=self.params.initial_rd,
            volatility=self.params.initial_volatility,
        )

    def _get_or_create_state(self, competitor_id: int) -> CompetitorRating:
        existing = self._states.get(competitor_id)
        if existing is not None:
            return existing
        state = self._initial_state(competitor_id)
        self._states[competitor_id] = state
        return state

    def get_state(self, competitor_id: int) -> CompetitorRating:
        return self._get_or_create_state(competitor_id)

    def race_count(self, competitor_id: int) -> int:
        return self._race_counts.get(competitor_id, 0)

    def tracked_entity_count(self) -> int:
        return len(self._states)

    def ratings(self) -> dict[int, CompetitorRating]:
        """Return a snapshot of current competitor states."""
        return dict(self._states)

    def _check_order(self, race: RaceOutcome) -> None:
        if self._last_event_time is None:
            return
        if race.event_time < self._last_event_time:
            raise RaceOrderError(race.race_id, race.event_time, self._last_event_time)

    def _soft_reset_due(self, event_time: datetime) -> bool:
        if not self.soft_reset.enabled or self._last_event_time is None:
            return False
        return season_key(event_time) != season_key(self._last_event_time)

    def _apply_soft_reset(self, event_time: datetime) -> None:
        for competitor_id, state in self._states.items():
            self._states[competitor_id] = apply_soft_reset(
                state, params=self.params, reset=self.soft_reset
            )
        logger.debug(
            "season rollover %s -> %s: soft reset applied to %d competitor(s)",
            season_key(self._last_event_time),
            season_key(event_time),
            len(self._states),
        )

    def _seed_state(self, competitor_id: int, *, reset_due: bool) -> CompetitorRating:
        """State a competitor enters the race with, without touching tracked state."""
        existing = self._states.get(competitor_id)
        if existing is None:
            return self._initial_state(competitor_id)
        if reset_due:
            return apply_soft_reset(existing, params=self.params, reset=self.soft_reset)
        return existing

    def process_race(self, race: RaceOutcome) -> list[CompetitorGlicko2Event]:
        """Rate one race and record the resulting state.

        A race that is rejected (out of order, invalid roster) leaves the
        calculator exactly as it was, including any pending season reset.
        """
        self._check_order(race)
        reset_due = self._soft_reset_due(race.event_time)

        roster = [
            self._seed_state(participant.competitor_id, reset_due=reset_due)
            for participant in race.participants
        ]
        updates = compute_updated_ratings(
            roster,
            race.ranks(),
            params=self.params,
            missing_rank=self.race_params.missing_rank,
        )

        if reset_due:
            self._apply_soft_reset(race.event_time)
        self._last_event_time = race.event_time

        if len(roster) < 2:
            for state in roster:
                self._states.setdefault(state.competitor_id, state)
            logger.debug("race_id=%s skipped: fewer than two competitors", race.race_id)
            return []

        events: list[CompetitorGlicko2Event] = []
        for competitor_id, update in updates.items():
            self._states[competitor_id] = update.as_rating()
            race_count = self._race_counts.get(competitor_id, 0) + 1
            self._race_counts[competitor_id] = race_count
            events.append(
                CompetitorGlicko2Event(
                    competitor_id=competitor_id,
                    race_id=race.race_id,
                    event_time=race.event_time,
                    rank12=update.rank12,
                    opponents=update.opponents,
                    wins=update.wins,
                    draws=update.draws,
                    losses=update.losses,
                    actual_score=update.actual_score,
                    expected_score=update.expected_score,
                    pre_rating=update.pre_rating,
                    pre_rd=update.pre_rd,
                    pre_volatility=update.pre_volatility,
                    rating_delta=update.rating_delta,
                    rd_delta=update.rd_delta,
                    volatility_delta=update.volatility_delta,
                    post_rating=update.post_rating,
                    post_rd=update.post_rd,
                    post_volatility=update.post_volatility,
                    conservative_score=update.conservative_score,
                    race_count=race_count,
                    provisional=is_provisional(
                        race_count, calibration_races=self.race_params.calibration_races
                    ),
                    tau=self.params.tau,
                    initial_rating=self.params.initial_rating,
                    initial_rd=self.params.initial_rd,
                    initial_volatility=self.params.initial_volatility,
                )
            )
        return events
