from __future__ import annotations

import logging

from .models import ContinentalMatchdaySummary, Finance
from .rules import EconomyRules

logger = logging.getLogger(__name__)


def apply_weekly_economy(finance: Finance, economy: EconomyRules) -> int:
    """Apply one week of sponsor income and running costs. Returns the net change in cash."""
    income = int(finance.sponsor_weekly)
    expenses = int(economy.weekly_staff_cost + economy.weekly_maintenance_cost + finance.staff_salaries)
    before = finance.cash
    finance.cash = max(0, before + income - expenses)
    finance.weekly_income = income
    finance.weekly_expenses = expenses
    finance.last_round_net = finance.cash - before
    return finance.last_round_net


def continental_prize(summary: ContinentalMatchdaySummary | None, club_id: str, economy: EconomyRules) -> int:
    if summary is None:
        return 0
    total = 0
    for match in summary.matches:
        if club_id not in (match.home_id, match.away_id):
            continue
        total += economy.continental_match_fee
        won = (
            match.home_goals > match.away_goals
            if club_id == match.home_id
            else match.away_goals > match.home_goals
        )
        if match.home_goals == match.away_goals and match.penalties:
            home_pens, away_pens = match.penalties
            won = home_pens > away_pens if club_id == match.home_id else away_pens > home_pens
        if won:
            total += economy.continental_win_bonus
    return total


def apply_continental_prizes(
    finance: Finance,
    summary: ContinentalMatchdaySummary | None,
    club_id: str,
    economy: EconomyRules,
) -> int:
    amount = continental_prize(summary, club_id, economy)
    if amount:
        finance.credit(amount)
        logger.debug("Continental prize money for %s: %s", club_id, amount)
    return amount
