import random

import pytest

from football_sim.app import build_default_world, default_rules, format_standings
from football_sim.career import CareerEngine, base_overall_for, generate_squad, player_value
from football_sim.models import CareerState, Club


def _engine(seed: int = 13) -> CareerEngine:
    return CareerEngine(build_default_world(), default_rules(), rng=random.Random(seed))


def _play_season(engine: CareerEngine, state: CareerState) -> list:
    reports = []
    for _ in range(state.season.total_rounds + 2):
        report = engine.advance_round(state)
        reports.append(report)
        if report.season_record is not None:
            break
    return reports


def test_new_career_sets_up_world() -> None:
    engine = _engine()
    state = engine.new_career("FLA")
    assert state.season.division_id == "BRA_SERIE_A"
    assert state.season.total_rounds == 38
    assert len(state.squad) == 25
    assert len(state.parallel) == 7
    assert "BRA_SERIE_A" not in state.parallel
    assert set(state.continental.tournaments) == {"UCL", "UEL", "LIB", "SULA"}
    assert "FLA" in state.continental.tournaments["LIB"].participants
    assert state.finance.cash == engine.rules.economy.starting_cash


def test_unknown_club_is_rejected() -> None:
    with pytest.raises(ValueError):
        _engine().new_career("NOPE")


def test_advance_round_keeps_world_in_step() -> None:
    engine = _engine()
    state = engine.new_career("FLA")
    cash = state.finance.cash

    first = engine.advance_round(state)
    assert first.round_index == 0
    assert first.user_fixture is not None and first.user_fixture.played
    assert len(first.fixtures) == 10
    assert first.continental is None
    assert all(season.current_round == 1 for season in state.parallel.values())
    assert first.economy_net < 0
    assert state.finance.cash == cash + first.economy_net

    second = engine.advance_round(state)
    assert second.continental is not None
    assert second.continental.round_index == 1
    assert state.continental.next_at_round_index == 3


def test_full_season_closes_out_everything() -> None:
    engine = _engine()
    state = engine.new_career("FLA")
    reports = _play_season(engine, state)

    final = reports[-1]
    assert final.season_record is not None
    assert final.season_summary is not None
    assert state.season.completed
    assert len(state.history) == 1
    assert set(state.history[0].continental_champions) == {"UCL", "UEL", "LIB", "SULA"}
    assert state.continental.finished

    tables = state.table_snapshots["2025_2026"]
    assert len(tables) == 8
    assert len(state.movements) == 1
    movement = state.movements[0]
    assert len(movement.relegated) == 4 and len(movement.promoted) == 4
    assert all(state.club(club_id).division_id == "BRA_SERIE_B" for club_id in movement.relegated)
    assert all(state.club(club_id).division_id == "BRA_SERIE_A" for club_id in movement.promoted)
    assert len(state.clubs_in("BRA_SERIE_A")) == 20

    skipped = engine.advance_round(state)
    assert skipped.skipped
    assert len(state.history) == 1


def test_new_season_requires_finished_season() -> None:
    engine = _engine()
    state = engine.new_career("FLA")
    assert engine.start_new_season(state) == {"ok": False, "reason": "season_not_finished"}

    _play_season(engine, state)
    result = engine.start_new_season(state)
    assert result["ok"] is True
    assert result["season_id"] == "2026_2027"
    assert state.season.current_round == 0
    assert state.continental.season_id == "2026_2027"
    assert all(season.season_id == "2026_2027" for season in state.parallel.values())
    user_division = state.user_club.division_id
    assert set(state.season.table.rows) == {club.club_id for club in state.clubs_in(user_division)}


def test_second_season_qualifiers_come_from_final_tables() -> None:
    engine = _engine()
    state = engine.new_career("FLA")
    _play_season(engine, state)
    eng_table = state.table_snapshots["2025_2026"]["ENG_PREMIER"]
    engine.start_new_season(state)

    ucl = state.continental.tournaments["UCL"].participants
    assert all(row.club_id in ucl for row in eng_table[:4])


def test_standings_cover_user_and_parallel_divisions() -> None:
    engine = _engine()
    state = engine.new_career("FLA")
    engine.advance_round(state)
    assert len(engine.standings(state)) == 20
    assert len(engine.standings(state, "GER_BUNDES")) == 18
    assert engine.standings(state, "NOPE") == []
    assert state.table_snapshots == {}
    assert engine.zone_for_position("BRA_SERIE_A", 1) == "LIB"
    assert engine.zone_for_position("BRA_SERIE_A", 18) == "relegation"
    assert engine.zone_for_position("BRA_SERIE_A", 14) is None
    text = format_standings(engine.standings(state), engine.rules, "BRA_SERIE_A")
    assert text.splitlines()[1].endswith("LIB")


def test_generated_squad_shape() -> None:
    club = Club(club_id="XYZ", name="Xyz", division_id="ENG_PREMIER")
    squad = generate_squad(club, random.Random(2), nationality="ENG")
    assert len(squad) == 25
    assert len({player.player_id for player in squad}) == 25
    assert len({player.name for player in squad}) == 25
    assert sum(1 for player in squad if player.position == "GK") == 3
    assert all(50 <= player.overall <= 90 for player in squad)
    assert base_overall_for("ENG_PREMIER") == 75
    assert base_overall_for("UNKNOWN") == 65
    assert player_value(70, 20) > player_value(70, 30)
