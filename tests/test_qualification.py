from football_sim.app import build_default_world, default_rules
from football_sim.models import Club, Division
from football_sim.qualification import QualifierSelector, rank_by_strength, select_with_allocation
from football_sim.rules import GameRules
from football_sim.table import TableRow


def _mini_world() -> tuple[list[Division], list[Club]]:
    divisions = [Division(division_id="X", name="X League", country="XX", level=1, confederation="C")]
    clubs = [Club(club_id=f"c{idx}", name=f"Club {idx}", division_id="X", overall=70) for idx in range(1, 7)]
    return divisions, clubs


def _rows(ids: list[str]) -> list[TableRow]:
    return [TableRow(club_id=club_id, name=club_id) for club_id in ids]


def test_allocation_honours_association_caps() -> None:
    ratings = {"a1": 90, "a2": 85, "a3": 80, "b1": 70, "b2": 60}
    result = select_with_allocation(
        ["a1", "a2", "a3", "b1", "b2"],
        association_of=lambda club_id: club_id[0].upper(),
        rating=lambda club_id: ratings[club_id],
        assoc_slots={"A": 2, "B": 1},
        total_size=4,
    )
    assert result.selected == ["a1", "a2", "b1", "a3"]
    assert result.overflow == ["b2"]


def test_rank_by_strength_is_stable_on_ties() -> None:
    assert rank_by_strength(["x", "y", "z", "x"], lambda club_id: 1.0) == ["x", "y", "z"]


def test_table_positions_drive_zones() -> None:
    divisions, clubs = _mini_world()
    rules = GameRules.from_payload(
        {
            "zones": {"X": {"continental": {"CUP": {"from": 1, "to": 2}, "SHIELD": {"from": 3, "to": 4}}}},
            "competitions": [
                {"competition_id": "CUP", "name": "Cup", "confederation": "C", "size": 2, "assoc_slots": {"XX": 2}},
                {"competition_id": "SHIELD", "name": "Shield", "confederation": "C", "size": 2},
            ],
        }
    )
    selector = QualifierSelector(rules, divisions, clubs)
    picks = selector.select({"X": _rows(["c6", "c5", "c4", "c3", "c2", "c1"])})
    assert set(picks["CUP"]) == {"c6", "c5"}
    assert set(picks["SHIELD"]) == {"c4", "c3"}


def test_overflow_spills_into_next_competition() -> None:
    divisions, clubs = _mini_world()
    rules = GameRules.from_payload(
        {
            "zones": {"X": {"continental": {"CUP": {"from": 1, "to": 3}, "SHIELD": {"from": 4, "to": 5}}}},
            "competitions": [
                {
                    "competition_id": "CUP",
                    "name": "Cup",
                    "confederation": "C",
                    "size": 2,
                    "assoc_slots": {"XX": 2},
                    "overflow_to": "SHIELD",
                },
                {"competition_id": "SHIELD", "name": "Shield", "confederation": "C", "size": 3},
            ],
        }
    )
    picks = QualifierSelector(rules, divisions, clubs).select({"X": _rows(["c1", "c2", "c3", "c4", "c5", "c6"])})
    assert picks["CUP"] == ["c1", "c2"]
    assert set(picks["SHIELD"]) == {"c3", "c4", "c5"}


def test_first_season_fills_default_competitions() -> None:
    world = build_default_world()
    selector = QualifierSelector(default_rules(), world.divisions, world.clubs)
    picks = selector.select({})

    assert len(picks["UCL"]) == 32
    assert len(picks["LIB"]) == 16
    assert not set(picks["UCL"]) & set(picks["UEL"])
    assert not set(picks["LIB"]) & set(picks["SULA"])
    assert "MCI" in picks["UCL"]
    assert "FLA" in picks["LIB"]

    uefa = {club.club_id for club in world.clubs if club.country in {"ENG", "ESP", "ITA", "GER", "FRA"}}
    assert set(picks["UCL"]) <= uefa
    assert all(selector.association_of(club_id) in {"BRA", "ARG"} for club_id in picks["SULA"])
    assert not any(club.division_id == "BRA_SERIE_B" for club in world.clubs if club.club_id in picks["LIB"])
