from __future__ import annotations

import os
import random
from dataclasses import asdict
from pathlib import Path
from threading import Lock
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .app import build_default_world, default_rules
from .career import CareerEngine, RoundReport
from .logging_config import setup_logging
from .models import CareerState, ContinentalMatchdaySummary, Fixture, Tournament
from .save import CareerStore
from .transfers import TransferError, TransferResult

DEFAULT_USER_CLUB = "FLA"

setup_logging(level=os.environ.get("FOOTBALL_SIM_LOG_LEVEL", "INFO"))


class AdvanceSelection(BaseModel):
    rounds: int = Field(default=1, ge=1, le=60)


class ResetSelection(BaseModel):
    club_id: str | None = None


class OfferSelection(BaseModel):
    player_id: str
    fee: int
    wage: int | None = None


class OfferAction(BaseModel):
    offer_id: str


class SimService:
    def __init__(
        self,
        data_root: str | Path | None = None,
        user_club_id: str = DEFAULT_USER_CLUB,
        rng: random.Random | None = None,
    ) -> None:
        root = data_root or os.environ.get("FOOTBALL_SIM_DATA_DIR") or Path(__file__).resolve().parents[2]
        self.data_root = Path(root)
        self.world = build_default_world()
        self.rules = default_rules()
        self.engine = CareerEngine(self.world, self.rules, rng=rng)
        self.store = CareerStore(self.data_root / "career_state.json")
        self.state: CareerState = self.store.load() or self.engine.new_career(user_club_id)
        self._lock = Lock()

    def _persist(self, *, with_backup: bool = False) -> None:
        self.store.save(self.state, with_backup=with_backup)

    # Serialization

    def _fixture_row(self, fixture: Fixture) -> dict[str, Any]:
        return {
            "home_id": fixture.home_id,
            "home": self.state.club_name(fixture.home_id),
            "away_id": fixture.away_id,
            "away": self.state.club_name(fixture.away_id),
            "played": fixture.played,
            "home_goals": fixture.home_goals,
            "away_goals": fixture.away_goals,
        }

    def _summary_row(self, summary: ContinentalMatchdaySummary | None) -> dict[str, Any] | None:
        if summary is None:
            return None
        return {
            "season_id": summary.season_id,
            "matchday": summary.matchday,
            "round_index": summary.round_index,
            "matches": [
                {
                    "competition_id": match.competition_id,
                    "stage": match.stage.value,
                    "home": self.state.club_name(match.home_id),
                    "away": self.state.club_name(match.away_id),
                    "home_goals": match.home_goals,
                    "away_goals": match.away_goals,
                    "penalties": match.penalties,
                    "stats": match.stats,
                    "timeline": match.timeline,
                }
                for match in summary.matches
            ],
            "stage_changes": summary.stage_changes,
            "champions": {key: self.state.club_name(value) for key, value in summary.champions.items()},
        }

    def _round_row(self, report: RoundReport) -> dict[str, Any]:
        return {
            "round": report.round_index + 1,
            "skipped": report.skipped,
            "user_fixture": self._fixture_row(report.user_fixture) if report.user_fixture else None,
            "fixtures": [self._fixture_row(fx) for fx in report.fixtures],
            "continental": self._summary_row(report.continental),
            "continental_prize": report.continental_prize,
            "economy_net": report.economy_net,
            "transfers": asdict(report.transfers) if report.transfers else None,
            "season_summary": asdict(report.season_summary) if report.season_summary else None,
        }

    def _tournament_row(self, tournament: Tournament) -> dict[str, Any]:
        row: dict[str, Any] = {
            "competition_id": tournament.competition_id,
            "name": tournament.name,
            "format": tournament.format.value,
            "stage": tournament.stage.value,
            "participants": [self.state.club_name(cid) for cid in tournament.participants],
            "champion": self.state.club_name(tournament.champion_id) if tournament.champion_id else None,
            "groups": [
                {
                    "name": group.name,
                    "table": [
                        {"club": row.name, "points": row.points, "goal_diff": row.goal_diff, "played": row.played}
                        for row in group.table.ranked_rows()
                    ],
                }
                for group in tournament.groups
            ],
            "league_phase": None,
            "knockout": [],
        }
        if tournament.league_phase is not None:
            row["league_phase"] = [
                {"club": r.name, "points": r.points, "goal_diff": r.goal_diff, "played": r.played}
                for r in tournament.league_phase.table.ranked_rows()
            ]
        if tournament.knockout is not None:
            row["knockout"] = [
                {
                    "name": ko_round.name,
                    "ties": [
                        {
                            "home": self.state.club_name(tie.home_id),
                            "away": self.state.club_name(tie.away_id),
                            "score": [tie.home_goals, tie.away_goals] if tie.played else None,
                            "penalties": tie.penalties,
                            "winner": self.state.club_name(tie.winner_id) if tie.winner_id else None,
                        }
                        for tie in ko_round.ties
                    ],
                }
                for ko_round in tournament.knockout.rounds
            ]
        return row

    # Queries

    def meta(self) -> dict[str, Any]:
        season = self.state.season
        window = self.engine.transfer_window(self.state)
        return {
            "user_club_id": self.state.user_club_id,
            "user_club": self.state.club_name(self.state.user_club_id),
            "season_id": season.season_id,
            "division_id": season.division_id,
            "round": season.current_round,
            "total_rounds": season.total_rounds,
            "phase": season.phase.value,
            "completed": season.completed,
            "cash": self.state.finance.cash,
            "window": asdict(window),
            "divisions": [division.division_id for division in self.world.divisions],
            "last_load_error": self.store.last_load_error,
        }

    def standings(self, division_id: str | None = None) -> dict[str, Any]:
        division_id = division_id or self.state.season.division_id
        if self.world.division(division_id) is None:
            raise KeyError(division_id)
        rows = self.engine.standings(self.state, division_id)
        return {
            "division_id": division_id,
            "rows": [
                {
                    "position": idx,
                    "club_id": row.club_id,
                    "club": row.name,
                    "played": row.played,
                    "won": row.won,
                    "drawn": row.drawn,
                    "lost": row.lost,
                    "goals_for": row.goals_for,
                    "goals_against": row.goals_against,
                    "goal_diff": row.goal_diff,
                    "points": row.points,
                    "zone": self.engine.zone_for_position(division_id, idx),
                }
                for idx, row in enumerate(rows, start=1)
            ],
        }

    def continental(self) -> dict[str, Any]:
        self.engine.ensure_continental(self.state)
        live = self.state.continental
        return {
            "season_id": live.season_id,
            "matchdays_played": live.matchdays_played,
            "next_at_round": live.next_at_round_index + 1,
            "finished": live.finished,
            "tournaments": [self._tournament_row(t) for t in live.tournaments.values()],
            "last_summary": self._summary_row(live.last_summary),
        }

    def transfers(self, market_limit: int = 40) -> dict[str, Any]:
        market = self.engine.transfer_market(self.state)
        book = self.state.transfers
        available = sorted(market.available_players(), key=lambda p: -p.overall)[:market_limit]
        return {
            "window": asdict(market.window()),
            "outbox": [asdict(offer) for offer in book.outbox],
            "inbox": [asdict(offer) for offer in book.inbox],
            "log": [asdict(entry) for entry in book.log[-50:]],
            "market": [asdict(player) for player in available],
        }

    def finance(self) -> dict[str, Any]:
        return asdict(self.state.finance)

    # Commands

    def advance(self, rounds: int = 1) -> dict[str, Any]:
        results = []
        for _ in range(rounds):
            report = self.engine.advance_round(self.state)
            results.append(self._round_row(report))
            if report.skipped or report.season_record is not None:
                break
        self._persist(with_backup=self.state.season.completed)
        return {"ok": True, "results": results, "meta": self.meta()}

    def next_season(self) -> dict[str, Any]:
        result = self.engine.start_new_season(self.state)
        if result.get("ok"):
            self._persist(with_backup=True)
        return result

    def advance_continental(self) -> dict[str, Any]:
        summary = self.engine.advance_continental_matchday(self.state)
        self._persist()
        return {"ok": summary is not None, "summary": self._summary_row(summary)}

    def transfer_result(self, result: TransferResult) -> dict[str, Any]:
        # A failed call can still close its offer, e.g. on expiry.
        if result.ok or result.offer is not None:
            self._persist()
        _raise_for(result)
        return result.as_dict()

    def reset(self, club_id: str | None = None) -> dict[str, Any]:
        self.state = self.engine.new_career(club_id or self.state.user_club_id)
        self._persist(with_backup=True)
        return {"ok": True, "meta": self.meta()}


def _raise_for(result: TransferResult) -> None:
    if result.ok:
        return
    status = 404 if result.reason in (TransferError.OFFER_NOT_FOUND, TransferError.PLAYER_NOT_FOUND) else 400
    raise HTTPException(status_code=status, detail={"reason": result.reason.value, "message": result.message})


service = SimService()
app = FastAPI(title="Football Sim API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/meta")
def meta() -> dict[str, Any]:
    with service._lock:
        return service.meta()


@app.get("/api/standings")
def standings(division: str | None = None) -> dict[str, Any]:
    with service._lock:
        try:
            return service.standings(division)
        except KeyError:
            raise HTTPException(status_code=404, detail="Division not found")


@app.post("/api/advance")
def advance(payload: AdvanceSelection | None = None) -> dict[str, Any]:
    with service._lock:
        return service.advance(rounds=payload.rounds if payload else 1)


@app.post("/api/season/next")
def next_season() -> dict[str, Any]:
    with service._lock:
        result = service.next_season()
        if not result.get("ok"):
            raise HTTPException(status_code=400, detail=result.get("reason", "cannot start season"))
        return result


@app.post("/api/reset")
def reset(payload: ResetSelection | None = None) -> dict[str, Any]:
    with service._lock:
        club_id = payload.club_id if payload else None
        if club_id and all(club.club_id != club_id for club in service.world.clubs):
            raise HTTPException(status_code=404, detail="Club not found")
        return service.reset(club_id)


@app.get("/api/continental")
def continental() -> dict[str, Any]:
    with service._lock:
        return service.continental()


@app.post("/api/continental/advance")
def advance_continental() -> dict[str, Any]:
    with service._lock:
        return service.advance_continental()


@app.get("/api/finance")
def finance() -> dict[str, Any]:
    with service._lock:
        return service.finance()


@app.get("/api/transfers")
def transfers(limit: int = 40) -> dict[str, Any]:
    with service._lock:
        return service.transfers(market_limit=limit)


@app.post("/api/transfers/offer")
def make_offer(payload: OfferSelection) -> dict[str, Any]:
    with service._lock:
        result = service.engine.transfer_market(service.state).make_offer(payload.player_id, payload.fee, payload.wage)
        return service.transfer_result(result)


@app.post("/api/transfers/accept-counter")
def accept_counter(payload: OfferAction) -> dict[str, Any]:
    with service._lock:
        result = service.engine.transfer_market(service.state).accept_counter_offer(payload.offer_id)
        return service.transfer_result(result)


@app.post("/api/transfers/complete")
def complete_purchase(payload: OfferAction) -> dict[str, Any]:
    with service._lock:
        result = service.engine.transfer_market(service.state).complete_purchase(payload.offer_id)
        return service.transfer_result(result)


@app.post("/api/transfers/cancel")
def cancel_offer(payload: OfferAction) -> dict[str, Any]:
    with service._lock:
        result = service.engine.transfer_market(service.state).cancel_offer(payload.offer_id)
        return service.transfer_result(result)


@app.post("/api/transfers/inbound/accept")
def accept_inbound(payload: OfferAction) -> dict[str, Any]:
    with service._lock:
        result = service.engine.transfer_market(service.state).accept_inbound(payload.offer_id)
        return service.transfer_result(result)


@app.post("/api/transfers/inbound/reject")
def reject_inbound(payload: OfferAction) -> dict[str, Any]:
    with service._lock:
        result = service.engine.transfer_market(service.state).reject_inbound(payload.offer_id)
        return service.transfer_result(result)
