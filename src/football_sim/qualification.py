"""Continental qualifier selection.

Candidates come from each first-tier division's configured continental zones,
read against that division's final table. A division without a table (the
very first season of a career) is ranked by club strength instead. Each
competition is then filled in configuration order in one pass:

1. zone candidates, plus any overflow handed down by an earlier competition,
   under per-association caps, then remaining places by descending strength;
2. if places are still empty, the strongest unplaced clubs of every
   first-tier division in the confederation.

Zone clubs left out by the caps or the size spill into the competition named
by ``overflow_to``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from .models import Club, Division
from .rules import CompetitionConfig, GameRules, ZoneRange
from .table import TableRow

logger = logging.getLogger(__name__)

RatingFn = Callable[[str], float]


@dataclass(slots=True)
class AllocationResult:
    selected: list[str] = field(default_factory=list)
    overflow: list[str] = field(default_factory=list)


def _unique(ids: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for club_id in ids:
        if club_id and club_id not in seen:
            seen.add(club_id)
            out.append(club_id)
    return out


def rank_by_strength(club_ids: Iterable[str], rating: RatingFn) -> list[str]:
    # Stable on ties so earlier candidates (better table positions) win.
    return sorted(_unique(club_ids), key=lambda club_id: -rating(club_id))


def top_by_strength(club_ids: Iterable[str], rating: RatingFn, count: int) -> list[str]:
    return rank_by_strength(club_ids, rating)[: max(0, count)]


def zone_qualifiers(rows: list[TableRow], zone: ZoneRange) -> list[str]:
    return [rows[pos - 1].club_id for pos in zone.positions if 1 <= pos <= len(rows)]


def select_with_allocation(
    candidates: Iterable[str],
    association_of: Callable[[str], str],
    rating: RatingFn,
    assoc_slots: dict[str, int],
    total_size: int,
) -> AllocationResult:
    pool = _unique(candidates)
    by_assoc: dict[str, list[str]] = {}
    for club_id in pool:
        by_assoc.setdefault(association_of(club_id), []).append(club_id)

    selected: list[str] = []
    leftovers: list[str] = []
    for assoc, slots in assoc_slots.items():
        ranked = rank_by_strength(by_assoc.pop(assoc, []), rating)
        take = max(0, int(slots))
        for club_id in ranked[:take]:
            if len(selected) < total_size:
                selected.append(club_id)
            else:
                leftovers.append(club_id)
        leftovers.extend(ranked[take:])
    for assoc_clubs in by_assoc.values():
        leftovers.extend(assoc_clubs)

    need = max(0, total_size - len(selected))
    selected.extend(top_by_strength(leftovers, rating, need))
    chosen = set(selected)
    return AllocationResult(
        selected=selected,
        overflow=[club_id for club_id in _unique(leftovers) if club_id not in chosen],
    )


class QualifierSelector:
    def __init__(
        self,
        rules: GameRules,
        divisions: list[Division],
        clubs: list[Club],
        rating: RatingFn | None = None,
    ) -> None:
        self.rules = rules
        self.divisions = divisions
        self.clubs = clubs
        self._clubs_by_id = {club.club_id: club for club in clubs}
        self._division_country = {division.division_id: division.country for division in divisions}
        self.rating = rating or self._club_rating

    def _club_rating(self, club_id: str) -> float:
        club = self._clubs_by_id.get(club_id)
        return float(club.overall) if club is not None else 0.0

    def association_of(self, club_id: str) -> str:
        club = self._clubs_by_id.get(club_id)
        if club is None:
            return "??"
        return self._division_country.get(club.division_id) or club.country or "??"

    def _division_club_ids(self, division_id: str) -> list[str]:
        return [club.club_id for club in self.clubs if club.division_id == division_id]

    def _first_tier(self, confederation: str | None = None) -> list[Division]:
        return [
            division
            for division in self.divisions
            if division.level == 1 and (confederation is None or division.confederation == confederation)
        ]

    def collect_candidates(self, tables: dict[str, list[TableRow]]) -> dict[str, list[str]]:
        candidates: dict[str, list[str]] = {}
        for division in self._first_tier():
            zones = self.rules.zones_for(division.division_id)
            rows = tables.get(division.division_id) or []
            # Without a final table, strength order stands in for league position.
            by_strength = [] if rows else rank_by_strength(self._division_club_ids(division.division_id), self.rating)
            for competition_id, zone in zones.continental.items():
                if rows:
                    picked = zone_qualifiers(rows, zone)
                else:
                    picked = [by_strength[pos - 1] for pos in zone.positions if pos <= len(by_strength)]
                candidates.setdefault(competition_id, []).extend(picked)
        return {key: _unique(ids) for key, ids in candidates.items()}

    def _confederation_fill(self, comp: CompetitionConfig, taken: set[str], need: int) -> list[str]:
        divisions = self._first_tier(comp.confederation)
        if need <= 0 or not divisions:
            return []
        per_division = max(comp.fallback_per_division, -(-need // len(divisions)))
        extra: list[str] = []
        for division in divisions:
            available = [cid for cid in self._division_club_ids(division.division_id) if cid not in taken]
            extra.extend(top_by_strength(available, self.rating, per_division))
        return top_by_strength(extra, self.rating, need)

    def select(self, tables: dict[str, list[TableRow]]) -> dict[str, list[str]]:
        candidates = self.collect_candidates(tables)
        overflow_in: dict[str, list[str]] = {}
        taken: set[str] = set()
        selections: dict[str, list[str]] = {}

        for comp in self.rules.competitions:
            pool = [
                club_id
                for club_id in _unique([*overflow_in.get(comp.competition_id, []), *candidates.get(comp.competition_id, [])])
                if club_id not in taken
            ]
            result = select_with_allocation(pool, self.association_of, self.rating, comp.assoc_slots, comp.size)
            need = comp.size - len(result.selected)
            if need > 0:
                result.selected.extend(self._confederation_fill(comp, taken | set(pool), need))
            selections[comp.competition_id] = result.selected
            taken.update(result.selected)
            if comp.overflow_to:
                overflow_in.setdefault(comp.overflow_to, []).extend(result.overflow)
            logger.debug(
                "%s qualifiers: %s selected, %s overflow",
                comp.competition_id,
                len(result.selected),
                len(result.overflow),
            )
        return selections
