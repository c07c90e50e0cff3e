from __future__ import annotations

import logging

from .models import Club, MovementRecord
from .rules import DivisionZones, TierLink
from .season import now_iso
from .table import TableRow

logger = logging.getLogger(__name__)


def _ids_at_positions(rows: list[TableRow], positions: list[int]) -> list[str]:
    ids: list[str] = []
    for position in positions:
        if 1 <= position <= len(rows):
            ids.append(rows[position - 1].club_id)
    return ids


def relegation_positions(rows: list[TableRow], zones: DivisionZones, slots: int) -> list[int]:
    if zones.relegation is not None:
        return zones.relegation.positions
    # Default: the bottom ``slots`` places.
    return list(range(len(rows) - slots + 1, len(rows) + 1)) if len(rows) >= slots else []


def promotion_positions(zones: DivisionZones, slots: int) -> list[int]:
    if zones.promotion is not None:
        return zones.promotion.positions
    return list(range(1, slots + 1))


def resolve_promotion_relegation(
    clubs: list[Club],
    upper_rows: list[TableRow],
    lower_rows: list[TableRow],
    link: TierLink,
    season_id: str,
    upper_zones: DivisionZones | None = None,
    lower_zones: DivisionZones | None = None,
) -> MovementRecord | None:
    """Swap relegated and promoted clubs between two tiers.

    Nothing is mutated unless both sets contain exactly ``link.slots`` clubs.
    """
    upper_zones = upper_zones or DivisionZones()
    lower_zones = lower_zones or DivisionZones()
    relegated = _ids_at_positions(upper_rows, relegation_positions(upper_rows, upper_zones, link.slots))
    promoted = _ids_at_positions(lower_rows, promotion_positions(lower_zones, link.slots))

    if len(relegated) != link.slots or len(promoted) != link.slots:
        logger.debug(
            "Skipping %s/%s swap for %s: relegated=%s promoted=%s expected=%s",
            link.upper,
            link.lower,
            season_id,
            len(relegated),
            len(promoted),
            link.slots,
        )
        return None
    if set(relegated) & set(promoted):
        logger.debug("Skipping %s/%s swap for %s: clubs in both sets", link.upper, link.lower, season_id)
        return None

    by_id = {club.club_id: club for club in clubs}
    for club_id in relegated:
        club = by_id.get(club_id)
        if club is not None:
            club.division_id = link.lower
    for club_id in promoted:
        club = by_id.get(club_id)
        if club is not None:
            club.division_id = link.upper

    record = MovementRecord(
        season_id=season_id,
        at=now_iso(),
        upper_division=link.upper,
        lower_division=link.lower,
        relegated=relegated,
        promoted=promoted,
    )
    logger.info(
        "Promotion/relegation %s: down from %s=%s, up from %s=%s",
        season_id,
        link.upper,
        relegated,
        link.lower,
        promoted,
    )
    return record
