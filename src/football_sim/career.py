from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from typing import Any, Callable

from .config import (
    DEFAULT_BASE_OVERALL,
    DEFAULT_PLAYER_WAGE,
    DEFAULT_SEASON_ID,
    DIVISION_BASE_OVERALL,
    FAST_FORWARD_ROUND_GUARD,
    GENERATED_AGE_RANGE,
    GENERATED_OVERALL_BOUNDS,
    GENERATED_OVERALL_SPREAD,
    PLAYER_VALUE_PER_OVERALL,
    SQUAD_POSITIONS,
    YOUNG_PLAYER_MAX_AGE,
    YOUNG_PLAYER_VALUE_BONUS,
)
from .continental import ContinentalController, TournamentRunner, build_tournament, init_continental_state
from .engine import MatchSimulator
from .finance import apply_continental_prizes, apply_weekly_economy
from .models import (
    CareerState,
    Club,
    ContinentalMatchdaySummary,
    Finance,
    Fixture,
    Player,
    Season,
    SeasonRecord,
    SeasonSummary,
    WorldData,
)
from .names import NameGenerator
from .parallel import ParallelLeagueSynchronizer
from .promotion import resolve_promotion_relegation
from .qualification import QualifierSelector
from .rules import GameRules
from .season import SeasonController, build_season, next_season_id, now_iso
from .table import TableRow
from .transfers import TransferMarket, TransferRoundReport, TransferWindow

logger = logging.getLogger(__name__)


def base_overall_for(division_id: str) -> int:
    for prefix, overall in DIVISION_BASE_OVERALL:
        if division_id.startswith(prefix):
            return overall
    return DEFAULT_BASE_OVERALL


def player_value(overall: int, age: int) -> int:
    bonus = YOUNG_PLAYER_VALUE_BONUS if age <= YOUNG_PLAYER_MAX_AGE else 1.0
    return round(overall * PLAYER_VALUE_PER_OVERALL * bonus)


def generate_squad(
    club: Club,
    rng: random.Random,
    name_gen: NameGenerator | None = None,
    nationality: str = "",
) -> list[Player]:
    name_gen = name_gen or NameGenerator(seed=rng.randrange(1 << 30))
    base = base_overall_for(club.division_id)
    low_age, high_age = GENERATED_AGE_RANGE
    low_spread, high_spread = GENERATED_OVERALL_SPREAD
    low_ovr, high_ovr = GENERATED_OVERALL_BOUNDS
    squad: list[Player] = []
    for position, count in SQUAD_POSITIONS:
        for _ in range(count):
            age = rng.randint(low_age, high_age)
            overall = min(high_ovr, max(low_ovr, base + rng.randint(low_spread, high_spread)))
            squad.append(
                Player(
                    player_id=f"{club.club_id}_p{len(squad) + 1}",
                    name=name_gen.next_name(nationality),
                    position=position,
                    age=age,
                    overall=overall,
                    value=player_value(overall, age),
                    wage=DEFAULT_PLAYER_WAGE,
                    form=rng.randint(-2, 2),
                    club_id=club.club_id,
                    nationality=nationality,
                )
            )
    return squad


@dataclass(slots=True)
class RoundReport:
    round_index: int
    skipped: bool = False
    user_fixture: Fixture | None = None
    fixtures: list[Fixture] = field(default_factory=list)
    parallel_played: dict[str, int] = field(default_factory=dict)
    continental: ContinentalMatchdaySummary | None = None
    continental_prize: int = 0
    economy_net: int = 0
    transfers: TransferRoundReport | None = None
    season_summary: SeasonSummary | None = None
    season_record: SeasonRecord | None = None


class CareerEngine:
    """Orchestrates one career: domestic rounds, world divisions, continental play and transfers."""

    def __init__(
        self,
        world: WorldData,
        rules: GameRules | None = None,
        rng: random.Random | None = None,
        guard: int = FAST_FORWARD_ROUND_GUARD,
    ) -> None:
        self.world = world
        self.rules = rules or GameRules()
        self.rng = rng or random.Random()
        self.guard = guard

    # Setup

    def new_career(
        self,
        user_club_id: str,
        season_id: str = DEFAULT_SEASON_ID,
        squad: list[Player] | None = None,
        sponsor_weekly: int = 0,
    ) -> CareerState:
        clubs = [replace(club) for club in self.world.clubs]
        user_club = next((club for club in clubs if club.club_id == user_club_id), None)
        if user_club is None:
            raise ValueError(f"Unknown club: {user_club_id}")

        division_id = user_club.division_id
        division = self.world.division(division_id)
        if squad is None:
            nationality = division.country if division else user_club.country
            squad = generate_squad(user_club, self.rng, nationality=nationality)

        state = CareerState(
            user_club_id=user_club_id,
            clubs=clubs,
            squad=[replace(player) for player in squad],
            season=build_season(season_id, division_id, [c for c in clubs if c.division_id == division_id]),
            finance=Finance(cash=self.rules.economy.starting_cash, sponsor_weekly=sponsor_weekly),
        )
        self.ensure_parallel(state)
        self.ensure_continental(state)
        logger.info("New career with %s in %s, season %s", user_club.name, division_id, state.season.season_id)
        return state

    def simulator_for(self, state: CareerState) -> MatchSimulator:
        ratings = {club.club_id: club.overall for club in state.clubs}
        form_bonus: dict[str, float] = {}
        if state.squad:
            form_bonus[state.user_club_id] = sum(p.form for p in state.squad) / len(state.squad)
        return MatchSimulator(ratings, rng=self.rng, form_bonus=form_bonus)

    def ensure_parallel(self, state: CareerState) -> list[str]:
        user_division = state.season.division_id
        divisions = {
            division.division_id: state.clubs_in(division.division_id)
            for division in self.world.divisions
            if division.division_id != user_division and len(state.clubs_in(division.division_id)) >= 2
        }
        return ParallelLeagueSynchronizer(state.parallel, self.guard).ensure_initialized(state.season.season_id, divisions)

    def _previous_tables(self, state: CareerState) -> dict[str, list[TableRow]]:
        if not state.history:
            return {}
        return state.table_snapshots.get(state.history[-1].season_id, {})

    def _rating(self, state: CareerState) -> Callable[[str], float]:
        ratings = {club.club_id: float(club.overall) for club in state.clubs}
        return lambda club_id: ratings.get(club_id, 0.0)

    def ensure_continental(self, state: CareerState) -> bool:
        current = state.continental
        if current is not None and current.season_id == state.season.season_id:
            return False
        rating = self._rating(state)
        selector = QualifierSelector(self.rules, self.world.divisions, state.clubs, rating)
        selections = selector.select(self._previous_tables(state))
        tournaments = [
            build_tournament(comp, selections.get(comp.competition_id, []), state.club_name, rating)
            for comp in self.rules.competitions
        ]
        state.continental = init_continental_state(
            state.season.season_id,
            tournaments,
            self.rules.continental_first_round_index,
        )
        logger.info(
            "Continental draw for %s: %s",
            state.season.season_id,
            ", ".join(f"{t.competition_id}={len(t.participants)}" for t in tournaments) or "none",
        )
        return True

    def _scorer_pool(self, state: CareerState) -> Callable[[str], list[str]]:
        def pool(club_id: str) -> list[str]:
            if club_id == state.user_club_id:
                return [player.name for player in state.squad]
            return [player.name for player in self.world.players if player.club_id == club_id]

        return pool

    def continental_controller(self, state: CareerState, simulator: MatchSimulator | None = None) -> ContinentalController:
        self.ensure_continental(state)
        runner = TournamentRunner(simulator or self.simulator_for(state), state.club_name, self._scorer_pool(state))
        return ContinentalController(state.continental, runner, self.rules.continental_every_rounds)

    def transfer_market(self, state: CareerState) -> TransferMarket:
        return TransferMarket(state, self.world, self.rules.transfers, self.rng)

    # Round loop

    def advance_round(self, state: CareerState) -> RoundReport:
        season = state.season
        controller = SeasonController(season)
        if controller.is_complete:
            record = self.finalize_season_if_needed(state)
            return RoundReport(round_index=season.current_round, skipped=True, season_record=record)

        round_index = season.current_round
        simulator = self.simulator_for(state)
        report = RoundReport(round_index=round_index)
        report.fixtures = controller.play_round(round_index, simulator)
        report.user_fixture = next(
            (fx for fx in season.rounds[round_index] if fx.involves(state.user_club_id)),
            None,
        )

        self.ensure_parallel(state)
        played = ParallelLeagueSynchronizer(state.parallel, self.guard).advance_to(round_index, simulator)
        report.parallel_played = {division_id: len(rows) for division_id, rows in played.items()}

        continental = self.continental_controller(state, simulator)
        report.continental = continental.maybe_advance(round_index)
        report.continental_prize = apply_continental_prizes(
            state.finance, report.continental, state.user_club_id, self.rules.economy
        )

        report.economy_net = apply_weekly_economy(state.finance, self.rules.economy)
        report.transfers = self.transfer_market(state).process_round()

        report.season_record = self.finalize_season_if_needed(state)
        if report.season_record is not None:
            report.season_summary = season.summary
        logger.debug("Career round %s done for %s", round_index + 1, state.user_club_id)
        return report

    def advance_continental_matchday(self, state: CareerState) -> ContinentalMatchdaySummary | None:
        controller = self.continental_controller(state)
        summary = controller.advance_matchday(state.season.current_round - 1)
        apply_continental_prizes(state.finance, summary, state.user_club_id, self.rules.economy)
        return summary

    # Season lifecycle

    def finalize_season_if_needed(self, state: CareerState) -> SeasonRecord | None:
        season = state.season
        controller = SeasonController(season)
        if season.completed or not controller.is_complete:
            return None

        simulator = self.simulator_for(state)
        summary = controller.finalize_if_needed(state.user_club_id)
        tables = state.tables_to_record(season.season_id)
        tables[season.division_id] = season.table.snapshot()
        tables.update(ParallelLeagueSynchronizer(state.parallel, self.guard).finalize(simulator))

        for link in self.rules.tiers:
            upper_rows = tables.get(link.upper)
            lower_rows = tables.get(link.lower)
            if not upper_rows or not lower_rows:
                continue
            movement = resolve_promotion_relegation(
                state.clubs,
                upper_rows,
                lower_rows,
                link,
                season.season_id,
                self.rules.zones_for(link.upper),
                self.rules.zones_for(link.lower),
            )
            if movement is not None:
                state.movements.append(movement)

        champions: dict[str, str] = {}
        if state.continental is not None and state.continental.season_id == season.season_id:
            continental = self.continental_controller(state, simulator)
            continental.fast_forward()
            champions = continental.champions()

        record = SeasonRecord(
            season_id=season.season_id,
            division_id=season.division_id,
            champion_id=summary.champion_id if summary else None,
            user_club_id=state.user_club_id,
            user_position=summary.user_position if summary else None,
            finished_at=season.completed_at or now_iso(),
            continental_champions=champions,
        )
        state.history.append(record)
        return record

    def start_new_season(self, state: CareerState) -> dict[str, Any]:
        season = state.season
        if not season.completed:
            return {"ok": False, "reason": "season_not_finished"}
        user_club = state.user_club
        if user_club is None:
            return {"ok": False, "reason": "club_not_found"}

        season_id, _start, _end = next_season_id(season.season_id)
        division_id = user_club.division_id
        state.season = build_season(season_id, division_id, state.clubs_in(division_id))
        state.transfers.inbox.clear()
        state.transfers.outbox.clear()
        state.transfers.last_processed_round = -1
        self.ensure_parallel(state)
        state.continental = None
        self.ensure_continental(state)
        logger.info("Season %s started for %s in %s", season_id, user_club.name, division_id)
        return {"ok": True, "season_id": season_id, "division_id": division_id}

    # Queries

    def standings(self, state: CareerState, division_id: str | None = None) -> list[TableRow]:
        division_id = division_id or state.season.division_id
        if division_id == state.season.division_id:
            return state.season.table.ranked_rows()
        parallel: Season | None = state.parallel.get(division_id)
        if parallel is not None:
            return parallel.table.ranked_rows()
        return list(state.season_tables().get(division_id, []))

    def zone_for_position(self, division_id: str, position: int) -> str | None:
        return self.rules.zone_for_position(division_id, position)

    def transfer_window(self, state: CareerState) -> TransferWindow:
        return self.transfer_market(state).window()
