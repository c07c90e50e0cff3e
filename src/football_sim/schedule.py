from __future__ import annotations

from typing import Iterable

from .models import Fixture

BYE = "__BYE__"


def single_round_robin(club_ids: Iterable[str]) -> list[list[tuple[str, str]]]:
    """Build one full round-robin split into rounds."""
    rotating = list(club_ids)
    if len(rotating) < 2:
        return []

    # Circle method: each club plays at most once per round.
    if len(rotating) % 2 == 1:
        rotating.append(BYE)

    size = len(rotating)
    half = size // 2
    rounds: list[list[tuple[str, str]]] = []

    for _ in range(size - 1):
        pairs: list[tuple[str, str]] = []
        for idx in range(half):
            home = rotating[idx]
            away = rotating[size - 1 - idx]
            if home == BYE or away == BYE:
                continue
            pairs.append((home, away))
        rounds.append(pairs)

        # Keep first fixed, rotate the rest.
        rotating = [rotating[0], rotating[-1], *rotating[1:-1]]

    return rounds


def build_double_round_robin(club_ids: Iterable[str]) -> list[list[Fixture]]:
    """First leg from the circle method, then the same rounds mirrored."""
    first_leg = single_round_robin(club_ids)
    rounds = [[Fixture(home_id=home, away_id=away) for home, away in pairs] for pairs in first_leg]
    rounds.extend([Fixture(home_id=away, away_id=home) for home, away in pairs] for pairs in first_leg)
    return rounds


def build_partial_round_robin(club_ids: Iterable[str], rounds: int) -> list[list[Fixture]]:
    """Take the first ``rounds`` rounds of a single round-robin, alternating venue."""
    base = single_round_robin(club_ids)
    schedule: list[list[Fixture]] = []
    for round_idx, pairs in enumerate(base[: max(0, rounds)]):
        day: list[Fixture] = []
        for home, away in pairs:
            # Alternate site orientation by round to avoid long home/away streaks.
            if round_idx % 2 == 1:
                home, away = away, home
            day.append(Fixture(home_id=home, away_id=away))
        schedule.append(day)
    return schedule
