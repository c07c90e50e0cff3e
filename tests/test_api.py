import random

import pytest
from fastapi.testclient import TestClient

from football_sim import api


@pytest.fixture
def client(tmp_path, monkeypatch) -> TestClient:
    monkeypatch.setattr(api, "service", api.SimService(data_root=tmp_path, rng=random.Random(17)))
    return TestClient(api.app)


def test_health(client) -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_meta_describes_new_career(client) -> None:
    meta = client.get("/api/meta").json()
    assert meta["user_club_id"] == "FLA"
    assert meta["user_club"] == "Flamengo"
    assert meta["round"] == 0
    assert meta["total_rounds"] == 38
    assert meta["window"]["open"] is True
    assert "ENG_PREMIER" in meta["divisions"]


def test_standings(client) -> None:
    body = client.get("/api/standings").json()
    assert body["division_id"] == "BRA_SERIE_A"
    assert len(body["rows"]) == 20
    assert body["rows"][0]["zone"] == "LIB"

    other = client.get("/api/standings", params={"division": "FRA_LIGUE_1"}).json()
    assert len(other["rows"]) == 18
    assert client.get("/api/standings", params={"division": "NOPE"}).status_code == 404


def test_advance_persists_state(client, tmp_path) -> None:
    response = client.post("/api/advance", json={"rounds": 2})
    assert response.status_code == 200
    body = response.json()
    assert len(body["results"]) == 2
    assert body["results"][0]["user_fixture"]["played"] is True
    assert body["results"][1]["continental"] is not None
    assert body["meta"]["round"] == 2
    assert (tmp_path / "career_state.json").exists()

    assert client.post("/api/advance").json()["meta"]["round"] == 3


def test_next_season_refused_mid_season(client) -> None:
    response = client.post("/api/season/next")
    assert response.status_code == 400
    assert response.json()["detail"] == "season_not_finished"


def test_continental_overview(client) -> None:
    body = client.get("/api/continental").json()
    assert {t["competition_id"] for t in body["tournaments"]} == {"UCL", "UEL", "LIB", "SULA"}
    assert body["next_at_round"] == 2

    advanced = client.post("/api/continental/advance").json()
    assert advanced["ok"] is True
    assert advanced["summary"]["matches"]


def test_transfer_offer_flow(client) -> None:
    market = client.get("/api/transfers").json()["market"]
    target = market[0]

    made = client.post("/api/transfers/offer", json={"player_id": target["player_id"], "fee": target["value"]})
    assert made.status_code == 200
    offer_id = made.json()["offer_id"]

    duplicate = client.post("/api/transfers/offer", json={"player_id": target["player_id"], "fee": target["value"]})
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"]["reason"] == "DUPLICATE_OFFER"

    missing = client.post("/api/transfers/offer", json={"player_id": "NOPE", "fee": 1000})
    assert missing.status_code == 404

    client.post("/api/advance")
    outbox = client.get("/api/transfers").json()["outbox"]
    assert outbox[0]["status"] == "ACCEPTED"

    api.service.state.finance.cash = 500_000_000
    completed = client.post("/api/transfers/complete", json={"offer_id": offer_id})
    assert completed.status_code == 200
    assert completed.json()["ok"] is True
    assert client.get("/api/finance").json()["cash"] == 500_000_000 - target["value"]

    assert client.post("/api/transfers/cancel", json={"offer_id": "missing"}).status_code == 404
    assert client.post("/api/transfers/inbound/reject", json={"offer_id": "missing"}).status_code == 404


def test_reset_switches_club(client) -> None:
    assert client.post("/api/reset", json={"club_id": "NOPE"}).status_code == 404
    body = client.post("/api/reset", json={"club_id": "RIV"}).json()
    assert body["meta"]["user_club_id"] == "RIV"
    assert body["meta"]["division_id"] == "ARG_PRIMERA"


def test_expiry_on_failed_call_is_saved(client, tmp_path) -> None:
    target = client.get("/api/transfers").json()["market"][0]
    offer_id = client.post("/api/transfers/offer", json={"player_id": target["player_id"], "fee": target["value"]}).json()[
        "offer_id"
    ]

    api.service.state.season.current_round = 3
    response = client.post("/api/transfers/cancel", json={"offer_id": offer_id})
    assert response.status_code == 400
    assert response.json()["detail"]["reason"] == "INVALID_OFFER_STATE"

    reloaded = api.SimService(data_root=tmp_path)
    offer = reloaded.state.transfers.find(offer_id)
    assert offer is not None
    assert offer.status.value == "EXPIRED"
