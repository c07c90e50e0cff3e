"""Host-supplied rule configuration, validated with pydantic."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from . import config
from .models import TournamentFormat


class ZoneRange(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    start: int = Field(alias="from", ge=1)
    end: int = Field(alias="to", ge=1)

    @model_validator(mode="after")
    def _ordered(self) -> ZoneRange:
        if self.start > self.end:
            raise ValueError(f"zone range {self.start}-{self.end} is inverted")
        return self

    @property
    def positions(self) -> list[int]:
        return list(range(self.start, self.end + 1))

    def contains(self, position: int) -> bool:
        return self.start <= position <= self.end


class DivisionZones(BaseModel):
    continental: dict[str, ZoneRange] = Field(default_factory=dict)
    promotion: ZoneRange | None = None
    relegation: ZoneRange | None = None

    @model_validator(mode="after")
    def _no_overlap(self) -> DivisionZones:
        named = self.labelled()
        for idx, (key_a, zone_a) in enumerate(named):
            for key_b, zone_b in named[idx + 1:]:
                if zone_a.start <= zone_b.end and zone_b.start <= zone_a.end:
                    raise ValueError(f"zones {key_a} and {key_b} overlap")
        return self

    def labelled(self) -> list[tuple[str, ZoneRange]]:
        rows = list(self.continental.items())
        if self.promotion is not None:
            rows.append(("promotion", self.promotion))
        if self.relegation is not None:
            rows.append(("relegation", self.relegation))
        return rows


class CompetitionConfig(BaseModel):
    competition_id: str
    name: str
    confederation: str
    format: TournamentFormat = TournamentFormat.GROUPS_THEN_KNOCKOUT
    size: int = Field(default=32, ge=2)
    assoc_slots: dict[str, int] = Field(default_factory=dict)
    overflow_to: str | None = None
    group_size: int = Field(default=4, ge=2)
    group_qualifiers: int = Field(default=2, ge=1)
    league_phase_rounds: int = Field(default=8, ge=1)
    knockout_qualifiers: int = Field(default=8, ge=1)
    fallback_per_division: int = Field(default=4, ge=1)


class TierLink(BaseModel):
    upper: str
    lower: str
    slots: int = Field(default=config.DEFAULT_TIER_SLOTS, ge=1)


class EconomyRules(BaseModel):
    starting_cash: int = config.DEFAULT_STARTING_CASH
    weekly_staff_cost: int = config.WEEKLY_STAFF_COST
    weekly_maintenance_cost: int = config.WEEKLY_MAINTENANCE_COST
    continental_match_fee: int = config.CONTINENTAL_MATCH_FEE
    continental_win_bonus: int = config.CONTINENTAL_WIN_BONUS


class WindowRange(BaseModel):
    start: int = Field(ge=0)
    end: int = Field(ge=0)
    label: str = "Transfer window"

    def contains(self, round_index: int) -> bool:
        return self.start <= round_index <= self.end


class TransferRules(BaseModel):
    accept_ratio: float = config.ACCEPT_RATIO
    counter_ratio: float = config.COUNTER_RATIO
    counter_fee_ratio: float = config.COUNTER_FEE_RATIO
    counter_wage_ratio: float = config.COUNTER_WAGE_RATIO
    offer_lifetime_rounds: int = Field(default=config.OFFER_LIFETIME_ROUNDS, ge=1)
    windows: list[WindowRange] = Field(
        default_factory=lambda: [
            WindowRange(start=start, end=end, label=label) for start, end, label in config.TRANSFER_WINDOWS
        ]
    )
    max_inbound_per_round: int = Field(default=config.MAX_INBOUND_OFFERS_PER_ROUND, ge=0)
    inbound_rolls: tuple[float, float] = config.INBOUND_OFFER_ROLLS
    inbound_fee_range: tuple[float, float] = config.INBOUND_FEE_RANGE
    inbound_wage_range: tuple[float, float] = config.INBOUND_WAGE_RANGE
    default_wage: int = config.DEFAULT_PLAYER_WAGE


class GameRules(BaseModel):
    zones: dict[str, DivisionZones] = Field(default_factory=dict)
    competitions: list[CompetitionConfig] = Field(default_factory=list)
    tiers: list[TierLink] = Field(default_factory=list)
    economy: EconomyRules = Field(default_factory=EconomyRules)
    transfers: TransferRules = Field(default_factory=TransferRules)
    continental_first_round_index: int = Field(default=config.CONTINENTAL_FIRST_ROUND_INDEX, ge=0)
    continental_every_rounds: int = Field(default=config.CONTINENTAL_EVERY_ROUNDS, ge=1)

    @classmethod
    def from_payload(cls, payload: dict[str, Any] | None) -> GameRules:
        return cls.model_validate(payload or {})

    def zones_for(self, division_id: str) -> DivisionZones:
        return self.zones.get(division_id) or DivisionZones()

    def zone_for_position(self, division_id: str, position: int) -> str | None:
        for key, zone in self.zones_for(division_id).labelled():
            if zone.contains(position):
                return key
        return None
