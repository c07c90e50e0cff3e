from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Iterable

from .config import DEFAULT_SEASON_ID, DEFAULT_YEAR_START, FAST_FORWARD_ROUND_GUARD
from .engine import MatchSimulator
from .models import Club, Fixture, Season, SeasonPhase, SeasonSummary
from .schedule import build_double_round_robin
from .table import LeagueTable

logger = logging.getLogger(__name__)

_SEASON_ID_RE = re.compile(r"^(\d{4})[-_](\d{4})$")


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_season_id(season_id: str, fallback_start: int = DEFAULT_YEAR_START) -> tuple[int, int]:
    match = _SEASON_ID_RE.match(str(season_id or ""))
    if match is None:
        return fallback_start, fallback_start + 1
    return int(match.group(1)), int(match.group(2))


def next_season_id(season_id: str, fallback_start: int = DEFAULT_YEAR_START) -> tuple[str, int, int]:
    match = _SEASON_ID_RE.match(str(season_id or ""))
    if match is None:
        start = fallback_start + 1
        end = start + 1
    else:
        start = int(match.group(1)) + 1
        end = int(match.group(2)) + 1
    return f"{start}_{end}", start, end


def build_season(season_id: str, division_id: str, clubs: Iterable[Club]) -> Season:
    club_list = list(clubs)
    year_start, year_end = parse_season_id(season_id or DEFAULT_SEASON_ID)
    return Season(
        season_id=season_id or DEFAULT_SEASON_ID,
        year_start=year_start,
        year_end=year_end,
        division_id=division_id,
        rounds=build_double_round_robin([club.club_id for club in club_list]),
        table=LeagueTable.for_clubs((club.club_id, club.name) for club in club_list),
    )


class SeasonController:
    """Drives one division's calendar and table through its lifecycle."""

    def __init__(self, season: Season) -> None:
        self.season = season

    @classmethod
    def create(cls, season_id: str, division_id: str, clubs: Iterable[Club]) -> SeasonController:
        return cls(build_season(season_id, division_id, clubs))

    @property
    def phase(self) -> SeasonPhase:
        return self.season.phase

    @property
    def is_complete(self) -> bool:
        return self.season.phase is SeasonPhase.COMPLETED

    def play_round(self, round_index: int, simulator: MatchSimulator) -> list[Fixture]:
        """Simulate every unplayed fixture in ``round_index``; played ones are left alone."""
        season = self.season
        if round_index < 0 or round_index >= len(season.rounds):
            return []
        played: list[Fixture] = []
        seen: set[str] = set()
        for fixture in season.rounds[round_index]:
            if fixture.home_id in seen or fixture.away_id in seen:
                logger.warning(
                    "Skipping duplicate club assignment in %s round %s: %s v %s",
                    season.division_id,
                    round_index,
                    fixture.home_id,
                    fixture.away_id,
                )
                continue
            seen.add(fixture.home_id)
            seen.add(fixture.away_id)
            if fixture.played:
                continue
            result = simulator.play(fixture.home_id, fixture.away_id)
            fixture.record(result.home_goals, result.away_goals, result.home_xg, result.away_xg)
            season.table.apply_result(fixture.home_id, fixture.away_id, fixture.home_goals, fixture.away_goals)
            played.append(fixture)
        season.current_round = max(season.current_round, round_index + 1)
        return played

    def advance_round(self, simulator: MatchSimulator) -> list[Fixture]:
        if self.is_complete:
            return []
        round_index = self.season.current_round
        played = self.play_round(round_index, simulator)
        logger.debug(
            "%s %s round %s/%s played (%s fixtures)",
            self.season.division_id,
            self.season.season_id,
            round_index + 1,
            self.season.total_rounds,
            len(played),
        )
        return played

    def fast_forward(self, simulator: MatchSimulator, guard: int = FAST_FORWARD_ROUND_GUARD) -> int:
        steps = 0
        while not self.is_complete and steps < guard:
            self.advance_round(simulator)
            steps += 1
        if not self.is_complete:
            logger.warning(
                "Fast-forward guard hit for %s after %s rounds (%s/%s)",
                self.season.division_id,
                steps,
                self.season.current_round,
                self.season.total_rounds,
            )
        return steps

    def finalize_if_needed(self, user_club_id: str | None = None) -> SeasonSummary | None:
        """Compute the completion summary once; later calls return ``None``."""
        season = self.season
        if season.completed or not self.is_complete:
            return None
        rows = season.table.ranked_rows()
        champion = rows[0] if rows else None
        user_row = next((row for row in rows if row.club_id == user_club_id), None)
        user_position = rows.index(user_row) + 1 if user_row is not None else None
        season.completed = True
        season.completed_at = now_iso()
        season.summary = SeasonSummary(
            champion_id=champion.club_id if champion else None,
            champion_name=champion.name if champion else "",
            user_position=user_position,
            user_points=user_row.points if user_row is not None else None,
            total_rounds=season.total_rounds,
        )
        logger.info(
            "Season %s %s finalized: champion=%s user_position=%s",
            season.season_id,
            season.division_id,
            season.summary.champion_id,
            user_position,
        )
        return season.summary
