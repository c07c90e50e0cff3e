from __future__ import annotations

import math
import random
from dataclasses import dataclass

from .config import (
    AWAY_RATE_BOUNDS,
    AWAY_RATE_DIVISOR,
    BASE_GOAL_RATE,
    DEFAULT_CLUB_RATING,
    HOME_ADVANTAGE,
    HOME_RATE_BOUNDS,
    HOME_RATE_DIVISOR,
    MAX_GOALS,
    STRENGTH_JITTER,
)


@dataclass(slots=True)
class MatchResult:
    home_goals: int
    away_goals: int
    home_xg: float
    away_xg: float
    home_strength: float
    away_strength: float

    @property
    def winner_side(self) -> str | None:
        if self.home_goals > self.away_goals:
            return "home"
        if self.away_goals > self.home_goals:
            return "away"
        return None


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def sample_poisson(lam: float, rng: random.Random, max_goals: int = MAX_GOALS) -> int:
    # Knuth: multiply uniforms until the product drops below e^-lambda.
    limit = math.exp(-lam)
    k = 0
    p = 1.0
    while True:
        k += 1
        p *= rng.random()
        if p <= limit:
            break
    return int(_clamp(k - 1, 0, max_goals))


def goal_rates(home_strength: float, away_strength: float) -> tuple[float, float]:
    diff = (home_strength + HOME_ADVANTAGE) - away_strength
    lam_home = _clamp(BASE_GOAL_RATE + diff / HOME_RATE_DIVISOR, *HOME_RATE_BOUNDS)
    lam_away = _clamp(BASE_GOAL_RATE - diff / AWAY_RATE_DIVISOR, *AWAY_RATE_BOUNDS)
    return lam_home, lam_away


def simulate_match(home_strength: float, away_strength: float, rng: random.Random | None = None) -> MatchResult:
    rng = rng or random.Random()
    lam_home, lam_away = goal_rates(home_strength, away_strength)
    return MatchResult(
        home_goals=sample_poisson(lam_home, rng),
        away_goals=sample_poisson(lam_away, rng),
        home_xg=round(lam_home, 2),
        away_xg=round(lam_away, 2),
        home_strength=home_strength,
        away_strength=away_strength,
    )


class MatchSimulator:
    """Resolves fixtures from club ratings.

    Clubs listed in ``form_bonus`` use that fixed adjustment (the user's club
    folds in its average squad form); every other club gets a small random
    variation around its baseline rating on each call.
    """

    def __init__(
        self,
        ratings: dict[str, float],
        rng: random.Random | None = None,
        form_bonus: dict[str, float] | None = None,
    ) -> None:
        self.ratings = ratings
        self.rng = rng or random.Random()
        self.form_bonus = form_bonus or {}

    def base_rating(self, club_id: str) -> float:
        return float(self.ratings.get(club_id, DEFAULT_CLUB_RATING))

    def strength(self, club_id: str) -> float:
        base = self.base_rating(club_id)
        if club_id in self.form_bonus:
            return base + self.form_bonus[club_id]
        return base + self.rng.uniform(-STRENGTH_JITTER, STRENGTH_JITTER)

    def play(self, home_id: str, away_id: str) -> MatchResult:
        return simulate_match(self.strength(home_id), self.strength(away_id), self.rng)

    def penalty_shootout(self, home_id: str, away_id: str) -> tuple[int, int]:
        home = self.base_rating(home_id)
        away = self.base_rating(away_id)
        home_rate = _clamp(0.75 + (home - away) / 200.0, 0.6, 0.9)
        away_rate = _clamp(0.75 + (away - home) / 200.0, 0.6, 0.9)
        home_score = sum(1 for _ in range(5) if self.rng.random() < home_rate)
        away_score = sum(1 for _ in range(5) if self.rng.random() < away_rate)
        # Sudden death.
        while home_score == away_score:
            home_hit = self.rng.random() < home_rate
            away_hit = self.rng.random() < away_rate
            home_score += int(home_hit)
            away_score += int(away_hit)
        return home_score, away_score
