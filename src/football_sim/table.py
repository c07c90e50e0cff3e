from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable


@dataclass(slots=True)
class TableRow:
    club_id: str
    name: str
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0

    @property
    def played(self) -> int:
        return self.won + self.drawn + self.lost

    @property
    def goal_diff(self) -> int:
        return self.goals_for - self.goals_against

    @property
    def points(self) -> int:
        return self.won * 3 + self.drawn

    def register_result(self, goals_for: int, goals_against: int) -> None:
        self.goals_for += goals_for
        self.goals_against += goals_against
        if goals_for > goals_against:
            self.won += 1
        elif goals_for < goals_against:
            self.lost += 1
        else:
            self.drawn += 1


def ranking_key(row: TableRow) -> tuple[int, int, int, str, str]:
    return (-row.points, -row.goal_diff, -row.goals_for, row.name, row.club_id)


def rank_rows(rows: Iterable[TableRow]) -> list[TableRow]:
    """Points, then goal difference, then goals for, then name ascending."""
    return sorted(rows, key=ranking_key)


@dataclass(slots=True)
class LeagueTable:
    rows: dict[str, TableRow] = field(default_factory=dict)

    @classmethod
    def for_clubs(cls, clubs: Iterable[tuple[str, str]]) -> LeagueTable:
        return cls(rows={club_id: TableRow(club_id=club_id, name=name) for club_id, name in clubs})

    def apply_result(self, home_id: str, away_id: str, home_goals: int, away_goals: int) -> bool:
        home = self.rows.get(home_id)
        away = self.rows.get(away_id)
        if home is None or away is None:
            return False
        home.register_result(home_goals, away_goals)
        away.register_result(away_goals, home_goals)
        return True

    def ranked_rows(self) -> list[TableRow]:
        return rank_rows(self.rows.values())

    def position_of(self, club_id: str) -> int | None:
        for idx, row in enumerate(self.ranked_rows(), start=1):
            if row.club_id == club_id:
                return idx
        return None

    def snapshot(self) -> list[TableRow]:
        return [replace(row) for row in self.ranked_rows()]

    @property
    def total_played(self) -> int:
        return sum(row.played for row in self.rows.values())
