import json
import random

import pytest

from football_sim.app import build_default_world, default_rules
from football_sim.career import CareerEngine
from football_sim.models import CareerState, OfferDirection, OfferStatus
from football_sim.save import SAVE_VERSION, CareerStore, career_from_dict, career_to_dict


def _played_state(rounds: int = 3) -> tuple[CareerEngine, CareerState]:
    engine = CareerEngine(build_default_world(), default_rules(), rng=random.Random(31))
    state = engine.new_career("FLA")
    market = engine.transfer_market(state)
    target = market.available_players()[0]
    market.make_offer(target.player_id, target.value)
    for _ in range(rounds):
        engine.advance_round(state)
    return engine, state


def _legacy_v1(payload: dict) -> dict:
    raw = json.loads(json.dumps(payload))
    division_id, parallel = next(iter(raw.pop("parallel").items()))
    raw["parallel_season"] = parallel
    raw["finance"] = 1_234_567
    raw.pop("table_snapshots")
    raw.pop("movements")
    raw.pop("save_version")
    for offer in raw["transfers"]["outbox"] + raw["transfers"]["inbox"]:
        offer.pop("direction")
        offer.pop("completed")
    raw["transfers"].pop("bought")
    return raw


def test_round_trip_preserves_career(tmp_path) -> None:
    engine, state = _played_state()
    store = CareerStore(tmp_path / "career_state.json")
    store.save(state)

    loaded = store.load()
    assert loaded is not None
    assert store.last_load_error == ""
    assert loaded.season.current_round == 3
    assert [row.club_id for row in loaded.season.table.ranked_rows()] == [
        row.club_id for row in state.season.table.ranked_rows()
    ]
    assert loaded.season.rounds[0][0].played
    assert set(loaded.parallel) == set(state.parallel)
    assert loaded.finance == state.finance
    assert loaded.transfers.outbox[0].direction is OfferDirection.OUTBOUND
    assert loaded.transfers.outbox[0].status is state.transfers.outbox[0].status
    assert set(loaded.continental.tournaments) == set(state.continental.tournaments)
    assert loaded.continental.matchdays_played == state.continental.matchdays_played
    assert loaded.continental.last_summary.matches[0].timeline

    # A reloaded career keeps playing from where it stopped.
    report = engine.advance_round(loaded)
    assert report.round_index == 3


@pytest.mark.regression
def test_loads_legacy_v1_payload(tmp_path) -> None:
    _engine, state = _played_state(rounds=1)
    path = tmp_path / "career_state.json"
    path.write_text(json.dumps(_legacy_v1(career_to_dict(state))), encoding="utf-8")

    loaded = CareerStore(path).load()
    assert loaded is not None
    assert len(loaded.parallel) == 1
    assert loaded.finance.cash == 1_234_567
    assert loaded.table_snapshots == {}
    assert loaded.movements == []
    assert loaded.transfers.bought == []
    assert all(offer.direction is OfferDirection.OUTBOUND for offer in loaded.transfers.outbox)
    assert all(offer.direction is OfferDirection.INBOUND for offer in loaded.transfers.inbox)
    assert all(offer.completed is False for offer in loaded.transfers.outbox)


@pytest.mark.regression
def test_migrated_payload_is_stamped_current() -> None:
    _engine, state = _played_state(rounds=1)
    loaded = career_from_dict(_legacy_v1(career_to_dict(state)))
    assert career_to_dict(loaded)["save_version"] == SAVE_VERSION
    assert loaded.transfers.outbox[0].status in set(OfferStatus)


@pytest.mark.regression
def test_rejects_future_save_version_with_clear_error(tmp_path) -> None:
    path = tmp_path / "career_state.json"
    path.write_text(json.dumps({"save_version": 999, "user_club_id": "FLA"}), encoding="utf-8")
    store = CareerStore(path)
    assert store.load() is None
    assert "Unsupported career save version 999" in store.last_load_error


@pytest.mark.regression
def test_corrupt_file_is_reported_not_raised(tmp_path) -> None:
    path = tmp_path / "career_state.json"
    path.write_text("{not json", encoding="utf-8")
    store = CareerStore(path)
    assert store.load() is None
    assert store.last_load_error.startswith("Failed to load career")

    path.write_text(json.dumps({"save_version": SAVE_VERSION, "clubs": []}), encoding="utf-8")
    assert store.load() is None
    assert "corrupt" in store.last_load_error


@pytest.mark.regression
def test_missing_file_loads_nothing(tmp_path) -> None:
    store = CareerStore(tmp_path / "nope.json")
    assert store.load() is None
    assert store.last_load_error == ""


@pytest.mark.regression
def test_state_save_includes_save_version_and_backup(tmp_path) -> None:
    _engine, state = _played_state(rounds=1)
    path = tmp_path / "career_state.json"
    backup_path = tmp_path / "career_state.json.bak"
    store = CareerStore(path)

    # First write creates the primary file.
    store.save(state)
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["save_version"] == SAVE_VERSION
    assert not backup_path.exists()

    # Second write should create/refresh backup.
    store.save(state)
    assert backup_path.exists()


@pytest.mark.regression
def test_non_numeric_version_is_reported_not_raised(tmp_path) -> None:
    path = tmp_path / "career_state.json"
    path.write_text(json.dumps({"save_version": "three", "user_club_id": "FLA"}), encoding="utf-8")
    store = CareerStore(path)
    assert store.load() is None
    assert "'three' is not a number" in store.last_load_error


@pytest.mark.regression
def test_wrongly_shaped_section_is_reported_not_raised(tmp_path) -> None:
    path = tmp_path / "career_state.json"
    path.write_text(json.dumps({"save_version": SAVE_VERSION, "user_club_id": "FLA", "season": []}), encoding="utf-8")
    store = CareerStore(path)
    assert store.load() is None
    assert "corrupt" in store.last_load_error
