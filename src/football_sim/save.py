"""Versioned persistence of ``CareerState``.

Older payloads are upgraded one version at a time before being rebuilt into
dataclasses, so business code never sees a partially populated record.
"""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import asdict
from pathlib import Path
from typing import Any, Callable

from .models import (
    CareerState,
    Club,
    ContinentalMatch,
    ContinentalMatchdaySummary,
    ContinentalState,
    Finance,
    Fixture,
    Group,
    KnockoutBracket,
    KnockoutRound,
    KnockoutTie,
    LeaguePhase,
    MovementRecord,
    OfferDirection,
    OfferStatus,
    Player,
    Season,
    SeasonRecord,
    SeasonSummary,
    Tournament,
    TournamentFormat,
    TournamentStage,
    TransferBook,
    TransferLogEntry,
    TransferOffer,
)
from .table import LeagueTable, TableRow

logger = logging.getLogger(__name__)

SAVE_VERSION = 3


def _migrate_v1(raw: dict[str, Any]) -> dict[str, Any]:
    # v1 tracked a single counterpart division.
    parallel = raw.pop("parallel_season", None)
    if "parallel" not in raw:
        raw["parallel"] = {parallel["division_id"]: parallel} if isinstance(parallel, dict) else {}
    raw.setdefault("table_snapshots", {})
    raw.setdefault("movements", [])
    return raw


def _migrate_v2(raw: dict[str, Any]) -> dict[str, Any]:
    finance = raw.get("finance")
    if not isinstance(finance, dict):
        raw["finance"] = {"cash": int(finance or 0)}
    transfers = raw.setdefault("transfers", {})
    for key, direction in (("outbox", OfferDirection.OUTBOUND.value), ("inbox", OfferDirection.INBOUND.value)):
        for offer in transfers.get(key, []) or []:
            if isinstance(offer, dict):
                offer.setdefault("direction", direction)
                offer.setdefault("completed", False)
    transfers.setdefault("bought", [])
    return raw


MIGRATIONS: dict[int, Callable[[dict[str, Any]], dict[str, Any]]] = {
    1: _migrate_v1,
    2: _migrate_v2,
}


def migrate(raw: dict[str, Any]) -> dict[str, Any]:
    version = int(raw.get("save_version", 1) or 1)
    while version < SAVE_VERSION:
        raw = MIGRATIONS[version](raw)
        version += 1
        raw["save_version"] = version
    return raw


def career_to_dict(state: CareerState) -> dict[str, Any]:
    payload = asdict(state)
    payload["save_version"] = SAVE_VERSION
    return payload


# Rebuilding


def _fixture(raw: dict[str, Any]) -> Fixture:
    return Fixture(
        home_id=str(raw["home_id"]),
        away_id=str(raw["away_id"]),
        played=bool(raw.get("played", False)),
        home_goals=int(raw.get("home_goals", 0)),
        away_goals=int(raw.get("away_goals", 0)),
        home_xg=raw.get("home_xg"),
        away_xg=raw.get("away_xg"),
    )


def _rounds(raw: list[Any] | None) -> list[list[Fixture]]:
    return [[_fixture(fx) for fx in day] for day in raw or []]


def _row(raw: dict[str, Any]) -> TableRow:
    return TableRow(
        club_id=str(raw["club_id"]),
        name=str(raw.get("name", raw["club_id"])),
        won=int(raw.get("won", 0)),
        drawn=int(raw.get("drawn", 0)),
        lost=int(raw.get("lost", 0)),
        goals_for=int(raw.get("goals_for", 0)),
        goals_against=int(raw.get("goals_against", 0)),
    )


def _table(raw: dict[str, Any] | None) -> LeagueTable:
    rows = (raw or {}).get("rows", {})
    return LeagueTable(rows={str(key): _row(value) for key, value in rows.items()})


def _season(raw: dict[str, Any]) -> Season:
    summary = raw.get("summary")
    return Season(
        season_id=str(raw["season_id"]),
        year_start=int(raw["year_start"]),
        year_end=int(raw["year_end"]),
        division_id=str(raw["division_id"]),
        rounds=_rounds(raw.get("rounds")),
        table=_table(raw.get("table")),
        current_round=int(raw.get("current_round", 0)),
        completed=bool(raw.get("completed", False)),
        completed_at=raw.get("completed_at"),
        summary=SeasonSummary(**summary) if isinstance(summary, dict) else None,
    )


def _offer(raw: dict[str, Any]) -> TransferOffer:
    data = dict(raw)
    data["direction"] = OfferDirection(data["direction"])
    data["status"] = OfferStatus(data["status"])
    return TransferOffer(**data)


def _book(raw: dict[str, Any] | None) -> TransferBook:
    raw = raw or {}
    return TransferBook(
        outbox=[_offer(o) for o in raw.get("outbox", [])],
        inbox=[_offer(o) for o in raw.get("inbox", [])],
        log=[TransferLogEntry(**entry) for entry in raw.get("log", [])],
        bought=[str(pid) for pid in raw.get("bought", [])],
        last_processed_round=int(raw.get("last_processed_round", -1)),
    )


def _tie(raw: dict[str, Any]) -> KnockoutTie:
    return KnockoutTie(**raw)


def _tournament(raw: dict[str, Any]) -> Tournament:
    phase = raw.get("league_phase")
    knockout = raw.get("knockout")
    return Tournament(
        competition_id=str(raw["competition_id"]),
        name=str(raw.get("name", raw["competition_id"])),
        format=TournamentFormat(raw["format"]),
        participants=list(raw.get("participants", [])),
        stage=TournamentStage(raw["stage"]),
        groups=[
            Group(
                name=g["name"],
                club_ids=list(g["club_ids"]),
                matchdays=_rounds(g.get("matchdays")),
                table=_table(g.get("table")),
            )
            for g in raw.get("groups", [])
        ],
        league_phase=(
            LeaguePhase(club_ids=list(phase["club_ids"]), rounds=_rounds(phase.get("rounds")), table=_table(phase.get("table")))
            if isinstance(phase, dict)
            else None
        ),
        knockout=(
            KnockoutBracket(
                rounds=[KnockoutRound(name=r["name"], ties=[_tie(t) for t in r["ties"]]) for r in knockout.get("rounds", [])],
                champion_id=knockout.get("champion_id"),
            )
            if isinstance(knockout, dict)
            else None
        ),
        matchday_index=int(raw.get("matchday_index", 0)),
        group_qualifiers=int(raw.get("group_qualifiers", 2)),
        knockout_qualifiers=int(raw.get("knockout_qualifiers", 16)),
        champion_id=raw.get("champion_id"),
    )


def _match(raw: dict[str, Any]) -> ContinentalMatch:
    data = dict(raw)
    data["stage"] = TournamentStage(data["stage"])
    return ContinentalMatch(**data)


def _continental(raw: dict[str, Any] | None) -> ContinentalState | None:
    if not isinstance(raw, dict):
        return None
    last = raw.get("last_summary")
    summary = None
    if isinstance(last, dict):
        summary = ContinentalMatchdaySummary(
            season_id=last["season_id"],
            matchday=int(last["matchday"]),
            round_index=last.get("round_index"),
            matches=[_match(m) for m in last.get("matches", [])],
            stage_changes=list(last.get("stage_changes", [])),
            champions=dict(last.get("champions", {})),
        )
    return ContinentalState(
        season_id=str(raw["season_id"]),
        next_at_round_index=int(raw.get("next_at_round_index", 1)),
        tournaments={key: _tournament(value) for key, value in raw.get("tournaments", {}).items()},
        matchdays_played=int(raw.get("matchdays_played", 0)),
        last_played_at_round_index=raw.get("last_played_at_round_index"),
        last_summary=summary,
    )


def career_from_dict(raw: dict[str, Any]) -> CareerState:
    raw = migrate(dict(raw))
    return CareerState(
        user_club_id=str(raw["user_club_id"]),
        clubs=[Club(**club) for club in raw.get("clubs", [])],
        squad=[Player(**player) for player in raw.get("squad", [])],
        season=_season(raw["season"]),
        finance=Finance(**raw.get("finance", {"cash": 0})),
        transfers=_book(raw.get("transfers")),
        parallel={key: _season(value) for key, value in raw.get("parallel", {}).items()},
        table_snapshots={
            season_id: {division_id: [_row(row) for row in rows] for division_id, rows in divisions.items()}
            for season_id, divisions in raw.get("table_snapshots", {}).items()
        },
        history=[SeasonRecord(**record) for record in raw.get("history", [])],
        movements=[MovementRecord(**record) for record in raw.get("movements", [])],
        continental=_continental(raw.get("continental")),
    )


class CareerStore:
    """JSON file storage for one career slot."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.last_load_error: str = ""

    def load(self) -> CareerState | None:
        self.last_load_error = ""
        if not self.path.exists():
            return None
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            self.last_load_error = f"Failed to load career ({exc}); starting fresh."
            return None
        if not isinstance(raw, dict):
            self.last_load_error = "Career file has invalid format; starting fresh."
            return None
        try:
            version = int(raw.get("save_version", 1) or 1)
        except (TypeError, ValueError):
            self.last_load_error = f"Career save version {raw.get('save_version')!r} is not a number; starting fresh."
            return None
        if version > SAVE_VERSION:
            self.last_load_error = f"Unsupported career save version {version}; app supports up to {SAVE_VERSION}."
            return None
        try:
            return career_from_dict(raw)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            self.last_load_error = f"Career save is corrupt ({exc}); starting fresh."
            return None

    def save(self, state: CareerState, *, with_backup: bool = True) -> None:
        self._write_json_with_backup(self.path, career_to_dict(state), with_backup=with_backup)

    def _write_json_with_backup(self, path: Path, payload: Any, *, with_backup: bool = True) -> None:
        if with_backup and path.exists():
            backup = path.with_suffix(path.suffix + ".bak")
            try:
                shutil.copy2(path, backup)
            except OSError as exc:
                logger.warning("Could not back up %s: %s", path, exc)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
