from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .config import DEFAULT_CLUB_RATING, DEFAULT_PLAYER_WAGE
from .table import LeagueTable, TableRow


class SeasonPhase(str, Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class OfferDirection(str, Enum):
    OUTBOUND = "OUTBOUND"
    INBOUND = "INBOUND"


class OfferStatus(str, Enum):
    PENDING = "PENDING"
    COUNTERED = "COUNTERED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"

    @property
    def is_open(self) -> bool:
        return self in (OfferStatus.PENDING, OfferStatus.COUNTERED)


class TournamentFormat(str, Enum):
    GROUPS_THEN_KNOCKOUT = "GROUPS_THEN_KNOCKOUT"
    LEAGUE_PHASE_THEN_KNOCKOUT = "LEAGUE_PHASE_THEN_KNOCKOUT"


class TournamentStage(str, Enum):
    GROUPS = "GROUPS"
    LEAGUE_PHASE = "LEAGUE_PHASE"
    KNOCKOUT = "KNOCKOUT"
    DONE = "DONE"


@dataclass(slots=True)
class Division:
    division_id: str
    name: str
    country: str
    level: int = 1
    confederation: str = ""


@dataclass(slots=True)
class Club:
    club_id: str
    name: str
    division_id: str
    short_name: str = ""
    overall: float = DEFAULT_CLUB_RATING
    country: str = ""


@dataclass(slots=True)
class Player:
    player_id: str
    name: str
    position: str
    age: int
    overall: int
    value: int
    wage: int = DEFAULT_PLAYER_WAGE
    form: int = 0
    club_id: str = ""
    nationality: str = ""


@dataclass(slots=True)
class Fixture:
    home_id: str
    away_id: str
    played: bool = False
    home_goals: int = 0
    away_goals: int = 0
    home_xg: float | None = None
    away_xg: float | None = None

    def record(self, home_goals: int, away_goals: int, home_xg: float | None = None, away_xg: float | None = None) -> None:
        self.home_goals = home_goals
        self.away_goals = away_goals
        self.home_xg = home_xg
        self.away_xg = away_xg
        self.played = True

    def involves(self, club_id: str) -> bool:
        return club_id in (self.home_id, self.away_id)


@dataclass(slots=True)
class SeasonSummary:
    champion_id: str | None
    champion_name: str
    user_position: int | None
    user_points: int | None
    total_rounds: int


@dataclass(slots=True)
class Season:
    season_id: str
    year_start: int
    year_end: int
    division_id: str
    rounds: list[list[Fixture]] = field(default_factory=list)
    table: LeagueTable = field(default_factory=LeagueTable)
    current_round: int = 0
    completed: bool = False
    completed_at: str | None = None
    summary: SeasonSummary | None = None

    @property
    def total_rounds(self) -> int:
        return len(self.rounds)

    @property
    def phase(self) -> SeasonPhase:
        if self.current_round >= len(self.rounds):
            return SeasonPhase.COMPLETED
        if self.current_round <= 0:
            return SeasonPhase.SCHEDULED
        return SeasonPhase.IN_PROGRESS


@dataclass(slots=True)
class SeasonRecord:
    season_id: str
    division_id: str
    champion_id: str | None
    user_club_id: str
    user_position: int | None
    finished_at: str
    continental_champions: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class MovementRecord:
    season_id: str
    at: str
    upper_division: str
    lower_division: str
    relegated: list[str]
    promoted: list[str]


@dataclass(slots=True)
class Group:
    name: str
    club_ids: list[str]
    matchdays: list[list[Fixture]]
    table: LeagueTable


@dataclass(slots=True)
class LeaguePhase:
    club_ids: list[str]
    rounds: list[list[Fixture]]
    table: LeagueTable


@dataclass(slots=True)
class KnockoutTie:
    home_id: str
    away_id: str
    played: bool = False
    home_goals: int = 0
    away_goals: int = 0
    penalties: list[int] | None = None
    winner_id: str | None = None


@dataclass(slots=True)
class KnockoutRound:
    name: str
    ties: list[KnockoutTie]

    @property
    def resolved(self) -> bool:
        return all(tie.winner_id is not None for tie in self.ties)


@dataclass(slots=True)
class KnockoutBracket:
    rounds: list[KnockoutRound] = field(default_factory=list)
    champion_id: str | None = None


@dataclass(slots=True)
class Tournament:
    competition_id: str
    name: str
    format: TournamentFormat
    participants: list[str]
    stage: TournamentStage
    groups: list[Group] = field(default_factory=list)
    league_phase: LeaguePhase | None = None
    knockout: KnockoutBracket | None = None
    matchday_index: int = 0
    group_qualifiers: int = 2
    knockout_qualifiers: int = 16
    champion_id: str | None = None

    @property
    def finished(self) -> bool:
        return self.stage is TournamentStage.DONE


@dataclass(slots=True)
class ContinentalMatch:
    competition_id: str
    stage: TournamentStage
    home_id: str
    away_id: str
    home_goals: int
    away_goals: int
    penalties: list[int] | None = None
    stats: dict[str, int] = field(default_factory=dict)
    timeline: list[dict[str, Any]] = field(default_factory=list)


@dataclass(slots=True)
class ContinentalMatchdaySummary:
    season_id: str
    matchday: int
    round_index: int | None
    matches: list[ContinentalMatch] = field(default_factory=list)
    stage_changes: list[str] = field(default_factory=list)
    champions: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class ContinentalState:
    season_id: str
    next_at_round_index: int
    tournaments: dict[str, Tournament] = field(default_factory=dict)
    matchdays_played: int = 0
    last_played_at_round_index: int | None = None
    last_summary: ContinentalMatchdaySummary | None = None

    @property
    def finished(self) -> bool:
        return all(t.finished for t in self.tournaments.values())


@dataclass(slots=True)
class TransferOffer:
    offer_id: str
    direction: OfferDirection
    player_id: str
    player_name: str
    fee: int
    wage: int
    status: OfferStatus
    created_round: int
    expires_round: int
    counterparty_id: str = ""
    counterparty_name: str = ""
    counter_fee: int | None = None
    counter_wage: int | None = None
    reason: str = ""
    closed_round: int | None = None
    completed: bool = False


@dataclass(frozen=True, slots=True)
class TransferLogEntry:
    entry_id: str
    kind: str
    offer_id: str
    player_id: str
    player_name: str
    fee: int
    wage: int
    round_index: int
    season_id: str
    at: str


@dataclass(slots=True)
class TransferBook:
    outbox: list[TransferOffer] = field(default_factory=list)
    inbox: list[TransferOffer] = field(default_factory=list)
    log: list[TransferLogEntry] = field(default_factory=list)
    bought: list[str] = field(default_factory=list)
    last_processed_round: int = -1

    def find(self, offer_id: str) -> TransferOffer | None:
        for offer in [*self.outbox, *self.inbox]:
            if offer.offer_id == offer_id:
                return offer
        return None


@dataclass(slots=True)
class Finance:
    cash: int
    sponsor_weekly: int = 0
    staff_salaries: int = 0
    weekly_income: int = 0
    weekly_expenses: int = 0
    last_round_net: int = 0

    def credit(self, amount: int) -> None:
        self.cash = max(0, self.cash + int(amount))

    def can_afford(self, amount: int) -> bool:
        return self.cash >= int(amount)

    def debit(self, amount: int) -> None:
        self.cash = max(0, self.cash - int(amount))


@dataclass(slots=True)
class WorldData:
    """Read-only reference roster supplied by the host."""

    divisions: list[Division]
    clubs: list[Club]
    players: list[Player] = field(default_factory=list)

    def division(self, division_id: str) -> Division | None:
        for division in self.divisions:
            if division.division_id == division_id:
                return division
        return None

    def player(self, player_id: str) -> Player | None:
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None


@dataclass(slots=True)
class CareerState:
    user_club_id: str
    clubs: list[Club]
    squad: list[Player]
    season: Season
    finance: Finance
    transfers: TransferBook = field(default_factory=TransferBook)
    parallel: dict[str, Season] = field(default_factory=dict)
    table_snapshots: dict[str, dict[str, list[TableRow]]] = field(default_factory=dict)
    history: list[SeasonRecord] = field(default_factory=list)
    movements: list[MovementRecord] = field(default_factory=list)
    continental: ContinentalState | None = None

    def club(self, club_id: str | None) -> Club | None:
        if not club_id:
            return None
        for club in self.clubs:
            if club.club_id == club_id:
                return club
        return None

    def clubs_in(self, division_id: str) -> list[Club]:
        return [club for club in self.clubs if club.division_id == division_id]

    @property
    def user_club(self) -> Club | None:
        return self.club(self.user_club_id)

    def club_name(self, club_id: str | None) -> str:
        club = self.club(club_id)
        if club is None:
            return club_id or ""
        return club.name

    def season_tables(self, season_id: str | None = None) -> dict[str, list[TableRow]]:
        return self.table_snapshots.get(season_id or self.season.season_id, {})

    def tables_to_record(self, season_id: str) -> dict[str, list[TableRow]]:
        return self.table_snapshots.setdefault(season_id, {})
