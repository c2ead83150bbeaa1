"""Glicko-2 rating-period math.

Implements the update steps from Mark Glickman's "Example of the Glicko-2
system" (http://www.glicko.net/glicko/glicko2.pdf). Ratings are exchanged on
the familiar Glicko scale and converted to the internal mu/phi scale here.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from math import exp, log, pi, sqrt
from typing import Final

from domain.ratings.common import (
    DEFAULT_INITIAL_RATING,
    DEFAULT_INITIAL_RD,
    DEFAULT_INITIAL_VOLATILITY,
)

GLICKO2_SCALE: Final[float] = 173.7178
DEFAULT_RATING: Final[float] = DEFAULT_INITIAL_RATING
CONSERVATIVE_RD_FACTOR: Final[float] = 2.0


@dataclass(frozen=True)
class Glicko2Parameters:
    initial_rating: float = DEFAULT_INITIAL_RATING
    initial_rd: float = DEFAULT_INITIAL_RD
    initial_volatility: float = DEFAULT_INITIAL_VOLATILITY
    tau: float = 0.5
    min_rd: float = 30.0
    max_rd: float = 350.0
    epsilon: float = 1e-6


@dataclass(frozen=True)
class Glicko2OpponentResult:
    opponent_rating: float
    opponent_rd: float
    score: float


def to_mu(rating: float) -> float:
    """Glicko scale to the internal mu scale (step 2 of Glickman's paper)."""
    return (rating - DEFAULT_RATING) / GLICKO2_SCALE


def to_phi(rd: float) -> float:
    return rd / GLICKO2_SCALE


def _from_mu(mu: float) -> float:
    return (mu * GLICKO2_SCALE) + DEFAULT_RATING


def _from_phi(phi: float) -> float:
    return phi * GLICKO2_SCALE


def g_factor(phi: float) -> float:
    """Attenuation ``g(phi)`` applied to an opponent with deviation ``phi``."""
    return 1.0 / sqrt(1.0 + ((3.0 * (phi**2)) / (pi**2)))


def _expected(mu: float, opp_mu: float, opp_phi: float) -> float:
    exponent = -g_factor(opp_phi) * (mu - opp_mu)
    # Split on sign so exp() never overflows for lopsided ratings.
    if exponent >= 0.0:
        exp_term = exp(-exponent)
        return exp_term / (1.0 + exp_term)
    exp_term = exp(exponent)
    return 1.0 / (1.0 + exp_term)


def calculate_expected_score(
    *,
    rating: float,
    rd: float,
    opponent_rating: float,
    opponent_rd: float,
) -> float:
    """Expected score of one competitor against one opponent under Glicko-2.

    Only the opponent's deviation attenuates the expectation; ``rd`` is
    accepted so call sites read symmetrically.
    """
    return _expected(
        to_mu(rating),
        to_mu(opponent_rating),
        to_phi(opponent_rd),
    )


def conservative_score(rating: float, rd: float, *, factor: float = CONSERVATIVE_RD_FACTOR) -> float:
    """Lower confidence bound used as the leaderboard sort key: ``rating - 2 * rd``."""
    return rating - (factor * rd)


def _solve_volatility(
    *,
    phi: float,
    sigma: float,
    delta: float,
    v: float,
    tau: float,
    epsilon: float,
) -> float:
    """Step 5 of Glickman's "Example of the Glicko-2 system".

    Finds ``sigma'`` as the root of ``f(x)`` with the Illinois variant of
    regula falsi, bracketing from ``A = ln(sigma^2)`` exactly as the paper
    lays out.
    """
    a = log(sigma**2)
    delta_sq = delta**2
    phi_sq = phi**2
    tau_sq = tau**2

    def f(x: float) -> float:
        ex = exp(x)
        numerator = ex * (delta_sq - phi_sq - v - ex)
        denominator = 2.0 * (phi_sq + v + ex) ** 2
        return (numerator / denominator) - ((x - a) / tau_sq)

    lower = a
    if delta_sq > (phi_sq + v):
        upper = log(delta_sq - phi_sq - v)
    else:
        k = 1
        upper = lower - (k * tau)
        while f(upper) < 0.0:
            k += 1
            if k > 1_000:
                raise RuntimeError("Glicko-2 volatility solve failed to bracket root.")
            upper = lower - (k * tau)

    f_lower = f(lower)
    f_upper = f(upper)
    while abs(upper - lower) > epsilon:
        if f_upper == f_lower:
            candidate = (lower + upper) / 2.0
        else:
            candidate = lower + (((lower - upper) * f_lower) / (f_upper - f_lower))
        f_candidate = f(candidate)
        if f_candidate * f_upper <= 0.0:
            lower = upper
            f_lower = f_upper
        else:
            f_lower /= 2.0
        upper = candidate
        f_upper = f_candidate

    return exp(lower / 2.0)


def update_glicko2_player(
    *,
    rating: float,
    rd: float,
    volatility: float,
    results: Sequence[Glicko2OpponentResult],
    tau: float = 0.5,
    epsilon: float = 1e-6,
) -> tuple[float, float, float]:
    """Update one competitor for one Glicko-2 rating period.

    Follows steps 2 to 8 of Glickman's paper: convert to the mu/phi scale,
    accumulate ``v`` and ``delta`` over the results, solve the new volatility,
    then update ``phi`` and ``mu`` and convert back.

    Every result must be expressed against the opponent's pre-period rating.
    With no results the state is returned unchanged: this engine does not
    apply inactivity decay.
    """
    if not results:
        return rating, rd, volatility

    mu = to_mu(rating)
    phi = to_phi(rd)

    v_inverse = 0.0
    improvement = 0.0
    for result in results:
        opp_phi = to_phi(result.opponent_rd)
        g_term = g_factor(opp_phi)
        expected = _expected(mu, to_mu(result.opponent_rating), opp_phi)
        v_inverse += (g_term**2) * expected * (1.0 - expected)
        improvement += g_term * (result.score - expected)
    if v_inverse <= 0.0:
        return rating, rd, volatility

    v = 1.0 / v_inverse
    delta = v * improvement
    sigma_prime = _solve_volatility(
        phi=phi,
        sigma=volatility,
        delta=delta,
        v=v,
        tau=tau,
        epsilon=epsilon,
    )

    phi_star = sqrt((phi**2) + (sigma_prime**2))
    phi_prime = 1.0 / sqrt((1.0 / (phi_star**2)) + (1.0 / v))
    mu_prime = mu + (phi_prime**2) * improvement

    return _from_mu(mu_prime), _from_phi(phi_prime), sigma_prime
