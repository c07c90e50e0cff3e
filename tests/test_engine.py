import random

from football_sim.config import HOME_RATE_BOUNDS, MAX_GOALS
from football_sim.engine import MatchSimulator, goal_rates, sample_poisson, simulate_match


def test_seeded_simulator_is_deterministic() -> None:
    ratings = {"A": 75.0, "B": 70.0}
    first = MatchSimulator(ratings, rng=random.Random(5))
    second = MatchSimulator(ratings, rng=random.Random(5))
    for _ in range(20):
        a = first.play("A", "B")
        b = second.play("A", "B")
        assert (a.home_goals, a.away_goals) == (b.home_goals, b.away_goals)


def test_goals_stay_in_bounds() -> None:
    rng = random.Random(3)
    for _ in range(300):
        result = simulate_match(90.0, 40.0, rng)
        assert 0 <= result.home_goals <= MAX_GOALS
        assert 0 <= result.away_goals <= MAX_GOALS
    assert sample_poisson(50.0, rng) == MAX_GOALS


def test_goal_rates_are_clamped() -> None:
    lam_home, lam_away = goal_rates(200.0, 0.0)
    assert lam_home == HOME_RATE_BOUNDS[1]
    assert lam_away == 0.2


def test_stronger_home_side_wins_more_often() -> None:
    sim = MatchSimulator({"BIG": 85.0, "SMALL": 55.0}, rng=random.Random(11))
    home_wins = away_wins = 0
    for _ in range(400):
        side = sim.play("BIG", "SMALL").winner_side
        if side == "home":
            home_wins += 1
        elif side == "away":
            away_wins += 1
    assert home_wins > away_wins * 5


def test_form_bonus_replaces_jitter() -> None:
    sim = MatchSimulator({"A": 70.0}, rng=random.Random(1), form_bonus={"A": 1.5})
    assert sim.strength("A") == 71.5
    assert sim.base_rating("UNKNOWN") == 60.0


def test_penalty_shootout_always_has_a_winner() -> None:
    sim = MatchSimulator({"A": 70.0, "B": 70.0}, rng=random.Random(9))
    for _ in range(50):
        home, away = sim.penalty_shootout("A", "B")
        assert home != away
