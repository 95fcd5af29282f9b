#!/usr/bin/env python3
"""
Glicko-2 rating system for GGST character ratings.
Ratings are kept on the Glicko-2 scale (value 0 == 1500 Glicko) so they can be
stored and compared directly; convert with glicko2_to_glicko for display.
"""

import math
from typing import List
from dataclasses import dataclass

GLICKO2_SCALE = 173.7178
GLICKO_CENTER = 1500.0
UNRATED_DEVIATION = 350.0 / GLICKO2_SCALE
UNRATED_VOLATILITY = 0.06
CONVERGENCE_TOLERANCE = 0.000001


def glicko_to_glicko2(rating: float) -> float:
    """Convert rating to Glicko-2 scale."""
    return (rating - GLICKO_CENTER) / GLICKO2_SCALE


def glicko2_to_glicko(value: float) -> float:
    """Convert Glicko-2 value back to rating scale."""
    return value * GLICKO2_SCALE + GLICKO_CENTER


def deviation_to_glicko(deviation: float) -> float:
    return deviation * GLICKO2_SCALE


def win_probability(value_a: float, value_b: float) -> float:
    """Chance that a player rated value_a beats one rated value_b."""
    return math.exp(value_a) / (math.exp(value_a) + math.exp(value_b))


@dataclass
class Glicko2Rating:
    value: float
    deviation: float
    volatility: float

    @classmethod
    def unrated(cls) -> 'Glicko2Rating':
        return cls(0.0, UNRATED_DEVIATION, UNRATED_VOLATILITY)


@dataclass
class GameResult:
    opponent: Glicko2Rating
    score: float

    @classmethod
    def win(cls, opponent: Glicko2Rating) -> 'GameResult':
        return cls(opponent, 1.0)

    @classmethod
    def loss(cls, opponent: Glicko2Rating) -> 'GameResult':
        return cls(opponent, 0.0)


def g(phi: float) -> float:
    """Glicko-2 g function."""
    return 1 / math.sqrt(1 + 3 * phi * phi / (math.pi * math.pi))


def E(mu: float, mu_j: float, phi_j: float) -> float:
    """Expected outcome function."""
    return 1 / (1 + math.exp(-g(phi_j) * (mu - mu_j)))


def _new_volatility(phi: float, sigma: float, v: float, delta: float, tau: float) -> float:
    """Solve for the new volatility using the Illinois algorithm."""
    a = math.log(sigma * sigma)

    def f(x):
        ex = math.exp(x)
        num = ex * (delta * delta - phi * phi - v - ex)
        den = 2 * (phi * phi + v + ex) ** 2
        return num / den - (x - a) / (tau * tau)

    A = a
    if delta * delta > phi * phi + v:
        B = math.log(delta * delta - phi * phi - v)
    else:
        k = 1
        while f(a - k * tau) < 0:
            k += 1
        B = a - k * tau

    f_A = f(A)
    f_B = f(B)
    while abs(B - A) > CONVERGENCE_TOLERANCE:
        C = A + (A - B) * f_A / (f_B - f_A)
        f_C = f(C)
        if f_C * f_B <= 0:
            A, f_A = B, f_B
        else:
            f_A /= 2
        B, f_B = C, f_C

    return math.exp(A / 2)


def new_rating(rating: Glicko2Rating, results: List[GameResult], sys_constant: float) -> Glicko2Rating:
    """
    Rate one rating period.
    With no games only the deviation grows, capped at the unrated deviation.
    """
    mu = rating.value
    phi = rating.deviation
    sigma = rating.volatility

    if not results:
        new_phi = min(math.sqrt(phi * phi + sigma * sigma), UNRATED_DEVIATION)
        return Glicko2Rating(mu, new_phi, sigma)

    v_inv = 0.0
    improvement = 0.0
    for result in results:
        g_val = g(result.opponent.deviation)
        E_val = E(mu, result.opponent.value, result.opponent.deviation)
        v_inv += g_val * g_val * E_val * (1 - E_val)
        improvement += g_val * (result.score - E_val)

    v = 1 / v_inv
    delta = v * improvement

    new_sigma = _new_volatility(phi, sigma, v, delta, sys_constant)

    phi_star = math.sqrt(phi * phi + new_sigma * new_sigma)
    new_phi = 1 / math.sqrt(1 / (phi_star * phi_star) + 1 / v)
    new_mu = mu + new_phi * new_phi * improvement

    return Glicko2Rating(new_mu, min(new_phi, UNRATED_DEVIATION), new_sigma)
