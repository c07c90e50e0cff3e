from __future__ import annotations

import random
from typing import Any, Callable

from .engine import MatchResult, goal_rates


def _clamp_int(value: float, low: int, high: int) -> int:
    return int(max(low, min(high, round(value))))


def build_match_stats(result: MatchResult, rng: random.Random) -> dict[str, int]:
    """Plausible box-score numbers derived from the fixture's scoring rates."""
    lam_home, lam_away = goal_rates(result.home_strength, result.away_strength)
    shots_home = _clamp_int(lam_home * 9 + rng.uniform(3, 7), 4, 22)
    shots_away = _clamp_int(lam_away * 9 + rng.uniform(3, 7), 4, 22)
    on_target_home = _clamp_int(shots_home * rng.uniform(0.32, 0.55), 1, shots_home)
    on_target_away = _clamp_int(shots_away * rng.uniform(0.32, 0.55), 1, shots_away)
    fouls_home = _clamp_int(rng.uniform(8, 17), 5, 24)
    fouls_away = _clamp_int(rng.uniform(8, 17), 5, 24)
    corners_home = _clamp_int(shots_home * rng.uniform(0.12, 0.25), 1, 11)
    corners_away = _clamp_int(shots_away * rng.uniform(0.12, 0.25), 1, 11)

    total = result.home_strength + result.away_strength
    possession = 50.0
    if total > 0:
        possession = 50 + (result.home_strength - result.away_strength) / total * 14
    possession_home = _clamp_int(possession + rng.uniform(-4, 4), 35, 65)

    return {
        "possession_home": possession_home,
        "possession_away": 100 - possession_home,
        "shots_home": shots_home,
        "shots_away": shots_away,
        "on_target_home": on_target_home,
        "on_target_away": on_target_away,
        "fouls_home": fouls_home,
        "fouls_away": fouls_away,
        "corners_home": corners_home,
        "corners_away": corners_away,
    }


def build_timeline(
    home_name: str,
    away_name: str,
    home_goals: int,
    away_goals: int,
    rng: random.Random,
    scorer_for: Callable[[str], str] | None = None,
) -> list[dict[str, Any]]:
    """Minute-ordered events for one match.

    ``scorer_for`` receives ``"home"`` or ``"away"`` and returns a player name.
    """
    names = {"home": home_name, "away": away_name}
    events: list[dict[str, Any]] = [
        {"minute": 0, "kind": "kickoff", "side": None, "text": f"00' Kick-off: {home_name} v {away_name}"}
    ]

    for _ in range(rng.randint(5, 10)):
        minute = rng.randint(3, 90)
        side = "home" if rng.random() < 0.5 else "away"
        if rng.random() < 0.35:
            events.append({"minute": minute, "kind": "yellow_card", "side": side, "text": f"{minute:02d}' Foul and booking, {names[side]}"})
        else:
            events.append({"minute": minute, "kind": "foul", "side": side, "text": f"{minute:02d}' Foul, {names[side]}"})

    goals = [("home", rng.randint(6, 88)) for _ in range(home_goals)]
    goals += [("away", rng.randint(6, 88)) for _ in range(away_goals)]
    for side, minute in goals:
        scorer = scorer_for(side) if scorer_for else f"{names[side]} player"
        events.append({"minute": minute, "kind": "goal", "side": side, "text": f"{minute:02d}' GOAL! {scorer} ({names[side]})"})

    events.append({"minute": 45, "kind": "half_time", "side": None, "text": "45' Half-time"})
    events.append({"minute": 90, "kind": "full_time", "side": None, "text": f"90+{rng.randint(1, 4)}' Full-time"})

    seen: set[tuple[int, str]] = set()
    ordered: list[dict[str, Any]] = []
    for event in sorted(events, key=lambda e: e["minute"]):
        if event["kind"] != "goal":
            key = (event["minute"], event["text"])
            if key in seen:
                continue
            seen.add(key)
        ordered.append(event)
    return ordered
