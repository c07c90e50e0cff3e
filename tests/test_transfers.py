import random

from football_sim.career import CareerEngine
from football_sim.models import (
    CareerState,
    Club,
    Division,
    OfferDirection,
    OfferStatus,
    Player,
    TransferOffer,
    WorldData,
)
from football_sim.rules import GameRules, TransferRules
from football_sim.transfers import TransferError, TransferMarket, evaluate_buy_offer, round_half_up


def _world() -> WorldData:
    divisions = [Division(division_id="D1", name="First Division", country="BRA", level=1)]
    clubs = [
        Club(club_id=club_id, name=name, division_id="D1", overall=70)
        for club_id, name in (("A", "Alpha"), ("B", "Bravo"), ("C", "Charlie"), ("D", "Delta"))
    ]
    players = [
        Player(
            player_id="B_m1",
            name="Mark Seller",
            position="MID",
            age=25,
            overall=75,
            value=1_000_000,
            wage=100_000,
            club_id="B",
        ),
        Player(
            player_id="C_m1",
            name="Carl Keeper",
            position="GK",
            age=29,
            overall=72,
            value=800_000,
            wage=90_000,
            club_id="C",
        ),
    ]
    return WorldData(divisions=divisions, clubs=clubs, players=players)


def _squad() -> list[Player]:
    return [
        Player(player_id="A_p1", name="Own Striker", position="ATT", age=24, overall=74, value=2_000_000, club_id="A"),
        Player(player_id="A_p2", name="Own Keeper", position="GK", age=30, overall=70, value=900_000, club_id="A"),
    ]


def _market(seed: int = 1) -> tuple[TransferMarket, CareerState]:
    world = _world()
    engine = CareerEngine(world, GameRules(), rng=random.Random(seed))
    state = engine.new_career("A", squad=_squad())
    return engine.transfer_market(state), state


def _evaluate(market: TransferMarket, state: CareerState) -> None:
    state.season.current_round += 1
    market.process_round()


def test_buy_offer_thresholds() -> None:
    rules = TransferRules()
    assert evaluate_buy_offer(1_000_000, 900_000, 100_000, rules).status is OfferStatus.ACCEPTED
    countered = evaluate_buy_offer(1_000_000, 750_000, 100_000, rules)
    assert countered.status is OfferStatus.COUNTERED
    assert countered.counter_fee == 950_000
    assert countered.counter_wage == 105_000
    assert evaluate_buy_offer(1_000_000, 600_000, 100_000, rules).status is OfferStatus.REJECTED
    assert evaluate_buy_offer(0, 600_000, 100_000, rules).status is OfferStatus.REJECTED


def test_counter_terms_round_halves_up() -> None:
    rules = TransferRules()
    assert evaluate_buy_offer(30, 21, 0, rules).counter_fee == 29
    assert evaluate_buy_offer(1_000_000, 750_000, 50, rules).counter_wage == 53
    assert round_half_up(2.5) == 3
    assert round_half_up(2.4999) == 2


def test_offer_is_answered_next_round_then_completed() -> None:
    market, state = _market()
    cash = state.finance.cash
    result = market.make_offer("B_m1", 900_000)
    assert result.ok
    offer = result.offer

    market.process_round()
    assert offer.status is OfferStatus.PENDING

    _evaluate(market, state)
    assert offer.status is OfferStatus.ACCEPTED
    assert offer.completed is False
    assert market.squad_player("B_m1") is None

    done = market.complete_purchase(offer.offer_id)
    assert done.ok
    assert state.finance.cash == cash - 900_000
    bought = market.squad_player("B_m1")
    assert bought is not None and bought.club_id == "A"
    assert "B_m1" not in {p.player_id for p in market.available_players()}
    assert state.transfers.log[-1].kind == "BUY"

    again = market.complete_purchase(offer.offer_id)
    assert again.reason is TransferError.INVALID_OFFER_STATE


def test_counter_offer_can_be_accepted() -> None:
    market, state = _market()
    cash = state.finance.cash
    offer = market.make_offer("B_m1", 750_000).offer
    _evaluate(market, state)
    assert offer.status is OfferStatus.COUNTERED
    assert offer.counter_fee == 950_000
    assert offer.counter_wage == 105_000

    result = market.accept_counter_offer(offer.offer_id)
    assert result.ok
    assert offer.status is OfferStatus.ACCEPTED
    assert state.finance.cash == cash - 950_000
    assert market.squad_player("B_m1").wage == 105_000


def test_low_offer_is_rejected() -> None:
    market, state = _market()
    offer = market.make_offer("B_m1", 600_000).offer
    _evaluate(market, state)
    assert offer.status is OfferStatus.REJECTED
    assert offer.reason == "offer too low"


def test_open_offer_expires() -> None:
    market, state = _market()
    offer = market.make_offer("B_m1", 750_000).offer
    assert offer.expires_round == 3
    _evaluate(market, state)
    assert offer.status is OfferStatus.COUNTERED

    state.season.current_round = 3
    report = market.process_round()
    assert offer.offer_id in report.expired
    assert offer.status is OfferStatus.EXPIRED
    assert market.accept_counter_offer(offer.offer_id).reason is TransferError.INVALID_OFFER_STATE


def test_insufficient_funds_leaves_squad_unchanged() -> None:
    market, state = _market()
    offer = market.make_offer("B_m1", 950_000).offer
    _evaluate(market, state)
    state.finance.cash = 100

    result = market.complete_purchase(offer.offer_id)
    assert not result.ok
    assert result.reason is TransferError.INSUFFICIENT_FUNDS
    assert market.squad_player("B_m1") is None
    assert state.finance.cash == 100


def test_offer_validation() -> None:
    market, state = _market()
    assert market.make_offer("NOPE", 1_000).reason is TransferError.PLAYER_NOT_FOUND
    assert market.make_offer("C_m1", 0).reason is TransferError.INVALID_TERMS
    assert market.make_offer("C_m1", 500_000).ok
    assert market.make_offer("C_m1", 600_000).reason is TransferError.DUPLICATE_OFFER
    assert market.cancel_offer("missing").reason is TransferError.OFFER_NOT_FOUND

    state.season.current_round = 10
    assert market.window().open is False
    assert market.make_offer("B_m1", 1_000_000).reason is TransferError.WINDOW_CLOSED


def test_cancel_closes_offer() -> None:
    market, _state = _market()
    offer = market.make_offer("C_m1", 500_000).offer
    assert market.cancel_offer(offer.offer_id).ok
    assert offer.status is OfferStatus.CANCELLED
    assert market.cancel_offer(offer.offer_id).reason is TransferError.INVALID_OFFER_STATE


def test_process_round_runs_once_per_round() -> None:
    market, _state = _market()
    assert market.process_round().skipped is False
    assert market.process_round().skipped is True


def _inbound(state: CareerState, fee: int = 2_500_000, offer_id: str = "in_1") -> TransferOffer:
    offer = TransferOffer(
        offer_id=offer_id,
        direction=OfferDirection.INBOUND,
        player_id="A_p1",
        player_name="Own Striker",
        fee=fee,
        wage=160_000,
        status=OfferStatus.PENDING,
        created_round=0,
        expires_round=3,
        counterparty_id="C",
        counterparty_name="Charlie",
    )
    state.transfers.inbox.append(offer)
    return offer


def test_selling_a_player() -> None:
    market, state = _market()
    cash = state.finance.cash
    offer = _inbound(state)

    result = market.accept_inbound(offer.offer_id)
    assert result.ok
    assert market.squad_player("A_p1") is None
    assert state.finance.cash == cash + 2_500_000
    assert state.transfers.log[-1].kind == "SELL"
    assert market.accept_inbound(offer.offer_id).reason is TransferError.INVALID_OFFER_STATE


def test_rejecting_an_inbound_offer() -> None:
    market, state = _market()
    offer = _inbound(state)
    assert market.reject_inbound(offer.offer_id).ok
    assert offer.status is OfferStatus.REJECTED
    assert market.squad_player("A_p1") is not None
    assert market.reject_inbound("missing").reason is TransferError.OFFER_NOT_FOUND


def test_inbound_offers_only_while_window_open() -> None:
    market, state = _market(seed=3)
    for round_index in range(6):
        state.season.current_round = round_index
        market.process_round()
    assert all(offer.direction is OfferDirection.INBOUND for offer in state.transfers.inbox)
    assert all(offer.player_id in {"A_p1", "A_p2"} for offer in state.transfers.inbox)

    count = len(state.transfers.inbox)
    state.season.current_round = 10
    report = market.process_round()
    assert report.new_inbound == []
    assert len(state.transfers.inbox) == count


def test_second_bid_for_a_sold_player_fails() -> None:
    market, state = _market()
    first = _inbound(state, offer_id="in_1")
    second = _inbound(state, fee=2_200_000, offer_id="in_2")

    assert market.accept_inbound(first.offer_id).ok
    cash = state.finance.cash
    result = market.accept_inbound(second.offer_id)
    assert result.reason is TransferError.PLAYER_NOT_FOUND
    assert second.status is OfferStatus.PENDING
    assert state.finance.cash == cash
