from football_sim.finance import apply_continental_prizes, apply_weekly_economy, continental_prize
from football_sim.models import ContinentalMatch, ContinentalMatchdaySummary, Finance, TournamentStage
from football_sim.rules import EconomyRules


def _match(home: str, away: str, home_goals: int, away_goals: int, penalties: list[int] | None = None) -> ContinentalMatch:
    return ContinentalMatch(
        competition_id="CUP",
        stage=TournamentStage.KNOCKOUT,
        home_id=home,
        away_id=away,
        home_goals=home_goals,
        away_goals=away_goals,
        penalties=penalties,
    )


def test_weekly_economy_nets_income_against_costs() -> None:
    finance = Finance(cash=1_000_000, sponsor_weekly=500_000, staff_salaries=100_000)
    net = apply_weekly_economy(finance, EconomyRules())
    assert net == 30_000
    assert finance.cash == 1_030_000
    assert finance.weekly_income == 500_000
    assert finance.weekly_expenses == 470_000
    assert finance.last_round_net == 30_000


def test_cash_never_goes_negative() -> None:
    finance = Finance(cash=100)
    assert apply_weekly_economy(finance, EconomyRules()) == -100
    assert finance.cash == 0


def test_continental_prize_counts_matches_and_wins() -> None:
    economy = EconomyRules(continental_match_fee=400_000, continental_win_bonus=250_000)
    summary = ContinentalMatchdaySummary(
        season_id="2025_2026",
        matchday=1,
        round_index=1,
        matches=[
            _match("A", "B", 2, 0),
            _match("C", "A", 1, 1, penalties=[5, 4]),
            _match("C", "D", 3, 0),
        ],
    )
    assert continental_prize(summary, "A", economy) == 1_050_000
    assert continental_prize(summary, "C", economy) == 1_300_000
    assert continental_prize(None, "A", economy) == 0

    finance = Finance(cash=0)
    assert apply_continental_prizes(finance, summary, "A", economy) == 1_050_000
    assert finance.cash == 1_050_000
