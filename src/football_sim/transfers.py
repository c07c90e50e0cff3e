"""Transfer negotiation pipeline.

Outbound offers go from the user's club to the reference market; inbound offers
come from AI clubs for players in the user's squad. ``process_round`` is the
per-round step: expire stale offers, answer outbound offers made in an earlier
round, then possibly generate new inbound offers while a window is open.
Finalization (buying, selling) is done by explicit calls and returns a
``TransferResult`` instead of raising.
"""

from __future__ import annotations

import logging
import math
import random
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from .models import (
    CareerState,
    Club,
    OfferDirection,
    OfferStatus,
    Player,
    Season,
    TransferBook,
    TransferLogEntry,
    TransferOffer,
    WorldData,
)
from .rules import TransferRules
from .season import now_iso

logger = logging.getLogger(__name__)


class TransferError(str, Enum):
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    OFFER_NOT_FOUND = "OFFER_NOT_FOUND"
    INVALID_OFFER_STATE = "INVALID_OFFER_STATE"
    WINDOW_CLOSED = "WINDOW_CLOSED"
    DUPLICATE_OFFER = "DUPLICATE_OFFER"
    INVALID_TERMS = "INVALID_TERMS"


@dataclass(slots=True)
class TransferResult:
    ok: bool
    reason: TransferError | None = None
    message: str = ""
    offer: TransferOffer | None = None

    @classmethod
    def fail(cls, reason: TransferError, message: str, offer: TransferOffer | None = None) -> TransferResult:
        return cls(ok=False, reason=reason, message=message, offer=offer)

    def as_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
            "offer_id": self.offer.offer_id if self.offer else None,
        }


@dataclass(slots=True)
class TransferWindow:
    open: bool
    label: str
    round_index: int
    total_rounds: int


@dataclass(slots=True)
class Evaluation:
    status: OfferStatus
    counter_fee: int | None = None
    counter_wage: int | None = None
    reason: str = ""


@dataclass(slots=True)
class TransferRoundReport:
    round_index: int
    skipped: bool = False
    expired: list[str] = field(default_factory=list)
    accepted: list[str] = field(default_factory=list)
    countered: list[str] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)
    new_inbound: list[str] = field(default_factory=list)


def transfer_window(season: Season, rules: TransferRules) -> TransferWindow:
    round_index = season.current_round
    total = season.total_rounds
    if season.completed:
        return TransferWindow(open=False, label="Season over", round_index=round_index, total_rounds=total)
    for window in rules.windows:
        if window.contains(round_index):
            return TransferWindow(open=True, label=window.label, round_index=round_index, total_rounds=total)
    return TransferWindow(open=False, label="Window closed", round_index=round_index, total_rounds=total)


def round_half_up(amount: float) -> int:
    # Halves go up, not to even.
    return int(math.floor(amount + 0.5))


def evaluate_buy_offer(player_value: int, fee: int, wage: int, rules: TransferRules) -> Evaluation:
    value = int(player_value or 0)
    if value <= 0:
        return Evaluation(status=OfferStatus.REJECTED, reason="player has no listed value")
    if fee >= value * rules.accept_ratio:
        return Evaluation(status=OfferStatus.ACCEPTED)
    if fee >= value * rules.counter_ratio:
        return Evaluation(
            status=OfferStatus.COUNTERED,
            counter_fee=round_half_up(value * rules.counter_fee_ratio),
            counter_wage=round_half_up(max(0, wage) * rules.counter_wage_ratio),
        )
    return Evaluation(status=OfferStatus.REJECTED, reason="offer too low")


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class TransferMarket:
    def __init__(
        self,
        state: CareerState,
        world: WorldData,
        rules: TransferRules | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.state = state
        self.world = world
        self.rules = rules or TransferRules()
        self.rng = rng or random.Random()

    @property
    def book(self) -> TransferBook:
        return self.state.transfers

    @property
    def round_index(self) -> int:
        return self.state.season.current_round

    def window(self) -> TransferWindow:
        return transfer_window(self.state.season, self.rules)

    def squad_player(self, player_id: str) -> Player | None:
        for player in self.state.squad:
            if player.player_id == player_id:
                return player
        return None

    def available_players(self) -> list[Player]:
        owned = {player.player_id for player in self.state.squad}
        bought = set(self.book.bought)
        return [p for p in self.world.players if p.player_id not in owned and p.player_id not in bought]

    def _log(self, kind: str, offer: TransferOffer) -> None:
        self.book.log.append(
            TransferLogEntry(
                entry_id=_new_id("tr"),
                kind=kind,
                offer_id=offer.offer_id,
                player_id=offer.player_id,
                player_name=offer.player_name,
                fee=offer.fee,
                wage=offer.wage,
                round_index=self.round_index,
                season_id=self.state.season.season_id,
                at=now_iso(),
            )
        )

    def _close(self, offer: TransferOffer, status: OfferStatus, reason: str = "", kind: str | None = None) -> None:
        offer.status = status
        offer.closed_round = self.round_index
        if reason:
            offer.reason = reason
        self._log(kind or status.value, offer)

    def _expire_if_due(self, offer: TransferOffer) -> bool:
        if offer.status.is_open and self.round_index >= offer.expires_round:
            self._close(offer, OfferStatus.EXPIRED, reason="offer expired")
            return True
        return False

    # Per-round pipeline

    def process_round(self) -> TransferRoundReport:
        book = self.book
        round_index = self.round_index
        report = TransferRoundReport(round_index=round_index)
        if book.last_processed_round == round_index:
            report.skipped = True
            return report

        for offer in [*book.outbox, *book.inbox]:
            if self._expire_if_due(offer):
                report.expired.append(offer.offer_id)

        for offer in book.outbox:
            if offer.status is not OfferStatus.PENDING or offer.created_round >= round_index:
                continue
            player = self.world.player(offer.player_id)
            if player is None:
                self._close(offer, OfferStatus.REJECTED, reason="player not found")
                report.rejected.append(offer.offer_id)
                continue
            verdict = evaluate_buy_offer(player.value, offer.fee, offer.wage, self.rules)
            if verdict.status is OfferStatus.COUNTERED:
                offer.status = OfferStatus.COUNTERED
                offer.counter_fee = verdict.counter_fee
                offer.counter_wage = verdict.counter_wage
                report.countered.append(offer.offer_id)
            elif verdict.status is OfferStatus.ACCEPTED:
                self._close(offer, OfferStatus.ACCEPTED)
                report.accepted.append(offer.offer_id)
            else:
                self._close(offer, OfferStatus.REJECTED, reason=verdict.reason)
                report.rejected.append(offer.offer_id)

        report.new_inbound = [offer.offer_id for offer in self._generate_inbound()]
        book.last_processed_round = round_index
        logger.debug(
            "Transfers round %s: expired=%s accepted=%s countered=%s rejected=%s inbound=%s",
            round_index,
            len(report.expired),
            len(report.accepted),
            len(report.countered),
            len(report.rejected),
            len(report.new_inbound),
        )
        return report

    def _pick_bidder(self) -> Club | None:
        bidders = [club for club in self.state.clubs if club.club_id != self.state.user_club_id]
        if not bidders:
            return None
        return self.rng.choice(bidders)

    def _generate_inbound(self) -> list[TransferOffer]:
        if not self.window().open or not self.state.squad:
            return []
        low, high = self.rules.inbound_rolls
        roll = self.rng.random()
        wanted = 0 if roll < low else (1 if roll < high else 2)
        wanted = min(wanted, self.rules.max_inbound_per_round)

        created: list[TransferOffer] = []
        squad = self.state.squad
        for _ in range(len(squad)):
            if len(created) >= wanted:
                break
            player = self.rng.choice(squad)
            if any(o.player_id == player.player_id and o.status.is_open for o in self.book.inbox):
                continue
            fee_low, fee_high = self.rules.inbound_fee_range
            wage_low, wage_high = self.rules.inbound_wage_range
            bidder = self._pick_bidder()
            offer = TransferOffer(
                offer_id=_new_id("offer"),
                direction=OfferDirection.INBOUND,
                player_id=player.player_id,
                player_name=player.name,
                fee=round_half_up(player.value * self.rng.uniform(fee_low, fee_high)),
                wage=round_half_up((player.wage or self.rules.default_wage) * self.rng.uniform(wage_low, wage_high)),
                status=OfferStatus.PENDING,
                created_round=self.round_index,
                expires_round=self.round_index + self.rules.offer_lifetime_rounds,
                counterparty_id=bidder.club_id if bidder else "",
                counterparty_name=bidder.name if bidder else "AI club",
            )
            self.book.inbox.append(offer)
            created.append(offer)
        return created

    # Outbound

    def make_offer(self, player_id: str, fee: int, wage: int | None = None) -> TransferResult:
        if not self.window().open:
            return TransferResult.fail(TransferError.WINDOW_CLOSED, "the transfer window is closed")
        player = self.world.player(player_id)
        if player is None or player.player_id not in {p.player_id for p in self.available_players()}:
            return TransferResult.fail(TransferError.PLAYER_NOT_FOUND, f"player {player_id} is not on the market")
        if fee <= 0 or (wage is not None and wage < 0):
            return TransferResult.fail(TransferError.INVALID_TERMS, "fee must be positive and wage non-negative")
        if any(o.player_id == player_id and o.status.is_open for o in self.book.outbox):
            return TransferResult.fail(TransferError.DUPLICATE_OFFER, f"an offer for {player.name} is already open")

        offer = TransferOffer(
            offer_id=_new_id("offer"),
            direction=OfferDirection.OUTBOUND,
            player_id=player.player_id,
            player_name=player.name,
            fee=int(fee),
            wage=int(wage if wage is not None else player.wage),
            status=OfferStatus.PENDING,
            created_round=self.round_index,
            expires_round=self.round_index + self.rules.offer_lifetime_rounds,
            counterparty_id=player.club_id,
            counterparty_name=self.state.club_name(player.club_id) if player.club_id else "Market",
        )
        self.book.outbox.append(offer)
        logger.debug("Outbound offer %s for %s: fee=%s wage=%s", offer.offer_id, player.name, offer.fee, offer.wage)
        return TransferResult(ok=True, offer=offer)

    def _find(self, offer_id: str, direction: OfferDirection) -> TransferOffer | None:
        offer = self.book.find(offer_id)
        if offer is None or offer.direction is not direction:
            return None
        return offer

    def _purchase(self, offer: TransferOffer, fee: int, wage: int) -> TransferResult | None:
        """Move the player into the squad; returns a failure result or ``None``."""
        player = self.world.player(offer.player_id)
        if player is None or self.squad_player(offer.player_id) is not None:
            return TransferResult.fail(TransferError.PLAYER_NOT_FOUND, f"{offer.player_name} is not available", offer)
        finance = self.state.finance
        if not finance.can_afford(fee):
            return TransferResult.fail(
                TransferError.INSUFFICIENT_FUNDS,
                f"need {fee:,} but only {finance.cash:,} available",
                offer,
            )
        finance.debit(fee)
        self.state.squad.append(replace(player, club_id=self.state.user_club_id, wage=wage))
        self.book.bought.append(player.player_id)
        offer.completed = True
        logger.info("Bought %s for %s", player.name, fee)
        return None

    def complete_purchase(self, offer_id: str) -> TransferResult:
        offer = self._find(offer_id, OfferDirection.OUTBOUND)
        if offer is None:
            return TransferResult.fail(TransferError.OFFER_NOT_FOUND, f"offer {offer_id} not found")
        if offer.status is not OfferStatus.ACCEPTED or offer.completed:
            return TransferResult.fail(TransferError.INVALID_OFFER_STATE, f"offer is {offer.status.value}", offer)
        failure = self._purchase(offer, offer.fee, offer.wage)
        if failure is not None:
            return failure
        self._log("BUY", offer)
        return TransferResult(ok=True, offer=offer)

    def accept_counter_offer(self, offer_id: str) -> TransferResult:
        offer = self._find(offer_id, OfferDirection.OUTBOUND)
        if offer is None:
            return TransferResult.fail(TransferError.OFFER_NOT_FOUND, f"offer {offer_id} not found")
        if self._expire_if_due(offer) or offer.status is not OfferStatus.COUNTERED:
            return TransferResult.fail(TransferError.INVALID_OFFER_STATE, f"offer is {offer.status.value}", offer)
        fee = offer.counter_fee if offer.counter_fee is not None else offer.fee
        wage = offer.counter_wage if offer.counter_wage is not None else offer.wage
        failure = self._purchase(offer, fee, wage)
        if failure is not None:
            return failure
        offer.fee = fee
        offer.wage = wage
        self._close(offer, OfferStatus.ACCEPTED, kind="BUY")
        return TransferResult(ok=True, offer=offer)

    def cancel_offer(self, offer_id: str) -> TransferResult:
        offer = self._find(offer_id, OfferDirection.OUTBOUND)
        if offer is None:
            return TransferResult.fail(TransferError.OFFER_NOT_FOUND, f"offer {offer_id} not found")
        if self._expire_if_due(offer) or not offer.status.is_open:
            return TransferResult.fail(TransferError.INVALID_OFFER_STATE, f"offer is {offer.status.value}", offer)
        self._close(offer, OfferStatus.CANCELLED, reason="withdrawn")
        return TransferResult(ok=True, offer=offer)

    # Inbound

    def accept_inbound(self, offer_id: str) -> TransferResult:
        offer = self._find(offer_id, OfferDirection.INBOUND)
        if offer is None:
            return TransferResult.fail(TransferError.OFFER_NOT_FOUND, f"offer {offer_id} not found")
        if self._expire_if_due(offer) or not offer.status.is_open:
            return TransferResult.fail(TransferError.INVALID_OFFER_STATE, f"offer is {offer.status.value}", offer)
        player = self.squad_player(offer.player_id)
        if player is None:
            return TransferResult.fail(TransferError.PLAYER_NOT_FOUND, f"{offer.player_name} is not in the squad", offer)

        self.state.squad.remove(player)
        self.state.finance.credit(offer.fee)
        offer.completed = True
        self._close(offer, OfferStatus.ACCEPTED, kind="SELL")
        logger.info("Sold %s to %s for %s", player.name, offer.counterparty_name, offer.fee)
        return TransferResult(ok=True, offer=offer)

    def reject_inbound(self, offer_id: str) -> TransferResult:
        offer = self._find(offer_id, OfferDirection.INBOUND)
        if offer is None:
            return TransferResult.fail(TransferError.OFFER_NOT_FOUND, f"offer {offer_id} not found")
        if self._expire_if_due(offer) or not offer.status.is_open:
            return TransferResult.fail(TransferError.INVALID_OFFER_STATE, f"offer is {offer.status.value}", offer)
        self._close(offer, OfferStatus.REJECTED, reason="declined by club")
        return TransferResult(ok=True, offer=offer)
