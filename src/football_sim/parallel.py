from __future__ import annotations

import logging
from typing import Iterable

from .config import FAST_FORWARD_ROUND_GUARD
from .engine import MatchSimulator
from .models import Club, Fixture, Season
from .season import SeasonController, build_season
from .table import TableRow

logger = logging.getLogger(__name__)


class ParallelLeagueSynchronizer:
    """Keeps every division the user is not playing in step with the user's round."""

    def __init__(self, seasons: dict[str, Season], guard: int = FAST_FORWARD_ROUND_GUARD) -> None:
        self.seasons = seasons
        self.guard = guard

    def controllers(self) -> dict[str, SeasonController]:
        return {division_id: SeasonController(season) for division_id, season in self.seasons.items()}

    def ensure_initialized(self, season_id: str, divisions: dict[str, Iterable[Club]]) -> list[str]:
        created: list[str] = []
        for division_id, clubs in divisions.items():
            existing = self.seasons.get(division_id)
            if existing is not None and existing.season_id == season_id:
                continue
            self.seasons[division_id] = build_season(season_id, division_id, clubs)
            created.append(division_id)
        stale = [division_id for division_id in self.seasons if division_id not in divisions]
        for division_id in stale:
            del self.seasons[division_id]
        if created:
            logger.debug("Initialized parallel divisions for %s: %s", season_id, ", ".join(sorted(created)))
        return created

    def advance_to(self, round_index: int, simulator: MatchSimulator) -> dict[str, list[Fixture]]:
        """Bring each counterpart through ``round_index`` inclusive."""
        played: dict[str, list[Fixture]] = {}
        for division_id, controller in self.controllers().items():
            steps = 0
            rows: list[Fixture] = []
            while (
                not controller.is_complete
                and controller.season.current_round <= round_index
                and steps < self.guard
            ):
                rows.extend(controller.advance_round(simulator))
                steps += 1
            played[division_id] = rows
        return played

    def all_complete(self) -> bool:
        return all(controller.is_complete for controller in self.controllers().values())

    def finalize(self, simulator: MatchSimulator) -> dict[str, list[TableRow]]:
        """Fast-forward unfinished counterparts and snapshot their final tables."""
        snapshots: dict[str, list[TableRow]] = {}
        for division_id, controller in self.controllers().items():
            if not controller.is_complete:
                steps = controller.fast_forward(simulator, guard=self.guard)
                logger.info("Fast-forwarded %s by %s rounds to close the season", division_id, steps)
            controller.finalize_if_needed()
            snapshots[division_id] = controller.season.table.snapshot()
        return snapshots
