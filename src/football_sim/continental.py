from __future__ import annotations

import logging
from string import ascii_uppercase
from typing import Callable, Iterable

from .config import CONTINENTAL_EVERY_ROUNDS, CONTINENTAL_FAST_FORWARD_GUARD, CONTINENTAL_FIRST_ROUND_INDEX
from .engine import MatchSimulator
from .models import (
    ContinentalMatch,
    ContinentalMatchdaySummary,
    ContinentalState,
    Fixture,
    Group,
    KnockoutBracket,
    KnockoutRound,
    KnockoutTie,
    LeaguePhase,
    Tournament,
    TournamentFormat,
    TournamentStage,
)
from .report import build_match_stats, build_timeline
from .rules import CompetitionConfig
from .schedule import build_double_round_robin, build_partial_round_robin
from .table import LeagueTable

logger = logging.getLogger(__name__)

NameFn = Callable[[str], str]

_ROUND_NAMES = {
    2: "Final",
    4: "Semi-finals",
    8: "Quarter-finals",
    16: "Round of 16",
    32: "Round of 32",
    64: "Round of 64",
}


def knockout_round_name(club_count: int) -> str:
    return _ROUND_NAMES.get(club_count, f"Round of {club_count}")


def largest_power_of_two(count: int) -> int:
    size = 1
    while size * 2 <= count:
        size *= 2
    return size


def seed_knockout_round(club_ids: list[str], group_of: dict[str, str] | None = None) -> KnockoutRound:
    """Pair the list 1 v N, 2 v N-1, ...; the better seed is at home.

    With ``group_of``, a tie between two clubs of the same group swaps its
    away side with another tie where that leaves both ties cross-group.
    """
    count = len(club_ids)
    ties = [KnockoutTie(home_id=club_ids[idx], away_id=club_ids[count - 1 - idx]) for idx in range(count // 2)]
    if group_of:
        _separate_groups(ties, group_of)
    return KnockoutRound(name=knockout_round_name(count), ties=ties)


def _separate_groups(ties: list[KnockoutTie], group_of: dict[str, str]) -> None:
    def clash(home_id: str, away_id: str) -> bool:
        group = group_of.get(home_id)
        return group is not None and group == group_of.get(away_id)

    for tie in ties:
        if not clash(tie.home_id, tie.away_id):
            continue
        for other in ties:
            if other is tie:
                continue
            if not clash(tie.home_id, other.away_id) and not clash(other.home_id, tie.away_id):
                tie.away_id, other.away_id = other.away_id, tie.away_id
                break


def next_knockout_round(previous: KnockoutRound) -> KnockoutRound:
    winners = [tie.winner_id for tie in previous.ties if tie.winner_id is not None]
    ties = [KnockoutTie(home_id=winners[idx], away_id=winners[idx + 1]) for idx in range(0, len(winners) - 1, 2)]
    return KnockoutRound(name=knockout_round_name(len(winners)), ties=ties)


def build_groups(
    club_ids: list[str],
    group_size: int,
    name_of: NameFn,
    rating: Callable[[str], float],
) -> list[Group]:
    ranked = sorted(club_ids, key=lambda club_id: -rating(club_id))
    group_count = max(1, len(ranked) // max(2, group_size))
    # Pots: the strongest ``group_count`` clubs head one group each.
    members: list[list[str]] = [[] for _ in range(group_count)]
    for idx, club_id in enumerate(ranked):
        members[idx % group_count].append(club_id)
    groups: list[Group] = []
    for idx, ids in enumerate(members):
        label = ascii_uppercase[idx] if idx < len(ascii_uppercase) else str(idx + 1)
        groups.append(
            Group(
                name=f"Group {label}",
                club_ids=ids,
                matchdays=build_double_round_robin(ids),
                table=LeagueTable.for_clubs((club_id, name_of(club_id)) for club_id in ids),
            )
        )
    return groups


def build_tournament(
    comp: CompetitionConfig,
    participants: Iterable[str],
    name_of: NameFn,
    rating: Callable[[str], float],
) -> Tournament:
    club_ids = list(dict.fromkeys(participants))
    tournament = Tournament(
        competition_id=comp.competition_id,
        name=comp.name,
        format=comp.format,
        participants=club_ids,
        stage=TournamentStage.DONE,
        group_qualifiers=comp.group_qualifiers,
        knockout_qualifiers=comp.knockout_qualifiers,
    )
    if len(club_ids) < 2:
        tournament.champion_id = club_ids[0] if club_ids else None
        return tournament

    if comp.format is TournamentFormat.GROUPS_THEN_KNOCKOUT:
        tournament.groups = build_groups(club_ids, comp.group_size, name_of, rating)
        tournament.stage = TournamentStage.GROUPS
    else:
        tournament.league_phase = LeaguePhase(
            club_ids=club_ids,
            rounds=build_partial_round_robin(club_ids, comp.league_phase_rounds),
            table=LeagueTable.for_clubs((club_id, name_of(club_id)) for club_id in club_ids),
        )
        tournament.stage = TournamentStage.LEAGUE_PHASE
    return tournament


def init_continental_state(
    season_id: str,
    tournaments: Iterable[Tournament],
    first_round_index: int = CONTINENTAL_FIRST_ROUND_INDEX,
) -> ContinentalState:
    return ContinentalState(
        season_id=season_id,
        next_at_round_index=first_round_index,
        tournaments={t.competition_id: t for t in tournaments},
    )


class TournamentRunner:
    """Plays one matchday of a tournament's active stage."""

    def __init__(
        self,
        simulator: MatchSimulator,
        name_of: NameFn,
        scorer_pool: Callable[[str], list[str]] | None = None,
    ) -> None:
        self.simulator = simulator
        self.name_of = name_of
        self.scorer_pool = scorer_pool
        self._stages: dict[TournamentStage, Callable[[Tournament], tuple[list[ContinentalMatch], list[str]]]] = {
            TournamentStage.GROUPS: self._play_groups,
            TournamentStage.LEAGUE_PHASE: self._play_league_phase,
            TournamentStage.KNOCKOUT: self._play_knockout,
            TournamentStage.DONE: self._play_done,
        }

    def play_matchday(self, tournament: Tournament) -> tuple[list[ContinentalMatch], list[str]]:
        return self._stages[tournament.stage](tournament)

    def _scorer(self, club_id: str) -> str:
        pool = self.scorer_pool(club_id) if self.scorer_pool else []
        if not pool:
            return f"{self.name_of(club_id)} player"
        return self.simulator.rng.choice(pool)

    def _play(self, tournament: Tournament, home_id: str, away_id: str) -> ContinentalMatch:
        rng = self.simulator.rng
        result = self.simulator.play(home_id, away_id)
        sides = {"home": home_id, "away": away_id}
        return ContinentalMatch(
            competition_id=tournament.competition_id,
            stage=tournament.stage,
            home_id=home_id,
            away_id=away_id,
            home_goals=result.home_goals,
            away_goals=result.away_goals,
            stats=build_match_stats(result, rng),
            timeline=build_timeline(
                self.name_of(home_id),
                self.name_of(away_id),
                result.home_goals,
                result.away_goals,
                rng,
                scorer_for=lambda side: self._scorer(sides[side]),
            ),
        )

    def _play_fixtures(self, tournament: Tournament, fixtures: list[Fixture], table: LeagueTable) -> list[ContinentalMatch]:
        matches: list[ContinentalMatch] = []
        for fixture in fixtures:
            if fixture.played:
                continue
            match = self._play(tournament, fixture.home_id, fixture.away_id)
            fixture.record(match.home_goals, match.away_goals)
            table.apply_result(fixture.home_id, fixture.away_id, match.home_goals, match.away_goals)
            matches.append(match)
        return matches

    def _open_knockout(
        self,
        tournament: Tournament,
        qualified: list[str],
        changes: list[str],
        group_of: dict[str, str] | None = None,
    ) -> None:
        previous = tournament.stage
        size = largest_power_of_two(len(qualified))
        tournament.matchday_index = 0
        if size < 2:
            self._crown(tournament, qualified[0] if qualified else None, changes)
            return
        tournament.knockout = KnockoutBracket(rounds=[seed_knockout_round(qualified[:size], group_of)])
        tournament.stage = TournamentStage.KNOCKOUT
        changes.append(f"{tournament.competition_id}: {previous.value} -> {TournamentStage.KNOCKOUT.value}")
        logger.info("%s knockout stage drawn with %s clubs", tournament.competition_id, size)

    def _crown(self, tournament: Tournament, champion_id: str | None, changes: list[str]) -> None:
        previous = tournament.stage
        tournament.stage = TournamentStage.DONE
        if tournament.champion_id is None and champion_id is not None:
            tournament.champion_id = champion_id
            if tournament.knockout is not None:
                tournament.knockout.champion_id = champion_id
            logger.info("%s champion: %s", tournament.competition_id, self.name_of(champion_id))
        changes.append(f"{tournament.competition_id}: {previous.value} -> {TournamentStage.DONE.value}")

    def _play_groups(self, tournament: Tournament) -> tuple[list[ContinentalMatch], list[str]]:
        matches: list[ContinentalMatch] = []
        changes: list[str] = []
        idx = tournament.matchday_index
        for group in tournament.groups:
            if idx < len(group.matchdays):
                matches.extend(self._play_fixtures(tournament, group.matchdays[idx], group.table))
        tournament.matchday_index += 1

        total = max((len(group.matchdays) for group in tournament.groups), default=0)
        pending = any(not fx.played for group in tournament.groups for day in group.matchdays for fx in day)
        if tournament.matchday_index >= total and not pending:
            standings = [group.table.ranked_rows() for group in tournament.groups]
            # Group winners first, then runners-up, so the draw pairs them off.
            qualified = [
                rows[place].club_id
                for place in range(tournament.group_qualifiers)
                for rows in standings
                if place < len(rows)
            ]
            group_of = {club_id: group.name for group in tournament.groups for club_id in group.club_ids}
            self._open_knockout(tournament, qualified, changes, group_of)
        return matches, changes

    def _play_league_phase(self, tournament: Tournament) -> tuple[list[ContinentalMatch], list[str]]:
        changes: list[str] = []
        phase = tournament.league_phase
        if phase is None:
            self._crown(tournament, None, changes)
            return [], changes
        matches: list[ContinentalMatch] = []
        idx = tournament.matchday_index
        if idx < len(phase.rounds):
            matches = self._play_fixtures(tournament, phase.rounds[idx], phase.table)
        tournament.matchday_index += 1

        pending = any(not fx.played for day in phase.rounds for fx in day)
        if tournament.matchday_index >= len(phase.rounds) and not pending:
            ranked = phase.table.ranked_rows()
            qualified = [row.club_id for row in ranked[: tournament.knockout_qualifiers]]
            self._open_knockout(tournament, qualified, changes)
        return matches, changes

    def _play_knockout(self, tournament: Tournament) -> tuple[list[ContinentalMatch], list[str]]:
        changes: list[str] = []
        bracket = tournament.knockout
        if bracket is None or not bracket.rounds:
            self._crown(tournament, None, changes)
            return [], changes

        current = bracket.rounds[-1]
        matches: list[ContinentalMatch] = []
        for tie in current.ties:
            if tie.played:
                continue
            match = self._play(tournament, tie.home_id, tie.away_id)
            tie.home_goals = match.home_goals
            tie.away_goals = match.away_goals
            tie.played = True
            if match.home_goals > match.away_goals:
                tie.winner_id = tie.home_id
            elif match.away_goals > match.home_goals:
                tie.winner_id = tie.away_id
            else:
                home_pens, away_pens = self.simulator.penalty_shootout(tie.home_id, tie.away_id)
                tie.penalties = [home_pens, away_pens]
                match.penalties = [home_pens, away_pens]
                tie.winner_id = tie.home_id if home_pens > away_pens else tie.away_id
            matches.append(match)
        tournament.matchday_index += 1

        if not current.resolved:
            return matches, changes
        if len(current.ties) == 1:
            self._crown(tournament, current.ties[0].winner_id, changes)
        else:
            bracket.rounds.append(next_knockout_round(current))
            logger.debug("%s advanced to %s", tournament.competition_id, bracket.rounds[-1].name)
        return matches, changes

    def _play_done(self, tournament: Tournament) -> tuple[list[ContinentalMatch], list[str]]:
        return [], []


class ContinentalController:
    """Advances every tournament of a season one matchday at a time."""

    def __init__(
        self,
        state: ContinentalState,
        runner: TournamentRunner,
        every_rounds: int = CONTINENTAL_EVERY_ROUNDS,
    ) -> None:
        self.state = state
        self.runner = runner
        self.every_rounds = every_rounds

    def is_due(self, round_index: int) -> bool:
        state = self.state
        if state.finished or round_index < state.next_at_round_index:
            return False
        return state.last_played_at_round_index != round_index

    def advance_matchday(self, round_index: int | None = None) -> ContinentalMatchdaySummary | None:
        state = self.state
        if state.finished:
            return None
        summary = ContinentalMatchdaySummary(
            season_id=state.season_id,
            matchday=state.matchdays_played + 1,
            round_index=round_index,
        )
        for competition_id, tournament in state.tournaments.items():
            if tournament.finished:
                continue
            matches, changes = self.runner.play_matchday(tournament)
            summary.matches.extend(matches)
            summary.stage_changes.extend(changes)
            if tournament.finished and tournament.champion_id is not None:
                summary.champions[competition_id] = tournament.champion_id

        state.matchdays_played += 1
        state.last_summary = summary
        if round_index is not None:
            state.last_played_at_round_index = round_index
            state.next_at_round_index = round_index + self.every_rounds
        logger.debug(
            "Continental matchday %s for %s: %s matches",
            summary.matchday,
            state.season_id,
            len(summary.matches),
        )
        return summary

    def maybe_advance(self, round_index: int) -> ContinentalMatchdaySummary | None:
        if not self.is_due(round_index):
            return None
        return self.advance_matchday(round_index)

    def fast_forward(self, guard: int = CONTINENTAL_FAST_FORWARD_GUARD) -> list[ContinentalMatchdaySummary]:
        summaries: list[ContinentalMatchdaySummary] = []
        steps = 0
        while not self.state.finished and steps < guard:
            summary = self.advance_matchday()
            if summary is None:
                break
            summaries.append(summary)
            steps += 1
        if not self.state.finished:
            logger.warning("Continental fast-forward guard hit for %s after %s matchdays", self.state.season_id, steps)
        return summaries

    def champions(self) -> dict[str, str]:
        return {
            competition_id: tournament.champion_id
            for competition_id, tournament in self.state.tournaments.items()
            if tournament.champion_id is not None
        }
