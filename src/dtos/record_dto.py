"""
DTOs for normalized records emitted by the extractors.

One concrete shape per scrape domain, tagged by ``kind`` so a mixed list
validates as a discriminated union. Numeric fields are strict: a raw
string never gets past construction.
"""

from datetime import date, datetime, time
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, StrictFloat, field_validator

from src.core.clock import utcnow
from src.core.enums import HorseStatus, WagerType
from src.core.track_registry import normalize_track_name


class RaceKeyed(BaseModel):
    """Fields shared by every flat record: the race natural key."""

    track_name: str = Field(..., min_length=1, max_length=100)
    race_number: int = Field(..., ge=1, le=30, strict=True)
    race_date: date

    @field_validator("track_name")
    @classmethod
    def _normalize_track(cls, v: str) -> str:
        return normalize_track_name(v)


class OddsEntry(RaceKeyed):
    kind: Literal["odds"] = "odds"
    program_number: int = Field(..., ge=1, le=30, strict=True)
    program_suffix: str = Field("", pattern=r"^[A-Z]?$", description="Coupled-entry letter")
    horse_name: str = Field(..., min_length=1, max_length=100)
    current_odds: float | None = Field(None, ge=0, strict=True)
    status: HorseStatus = HorseStatus.active
    pool_data: dict[str, StrictFloat | None] = Field(
        default_factory=dict, description="Pool label -> amount"
    )
    captured_at: datetime = Field(default_factory=utcnow)


class WillPayRecord(RaceKeyed):
    kind: Literal["will_pays"] = "will_pays"
    wager_type: WagerType
    combination: str = Field(..., min_length=1, max_length=100)
    payout: float | None = Field(None, ge=0, strict=True)
    is_carryover: bool = False
    carryover_amount: float | None = Field(None, ge=0, strict=True)


class FinishPosition(BaseModel):
    position: int = Field(..., ge=1, strict=True)
    horse_name: str = Field(..., min_length=1, max_length=100)
    jockey: str | None = None
    time: str | None = None


class RaceResultRecord(RaceKeyed):
    kind: Literal["results"] = "results"
    finish_order: list[FinishPosition] = Field(..., min_length=1)
    payouts: dict[str, StrictFloat | None] = Field(
        default_factory=dict, description="Bet descriptor -> amount"
    )
    source_url: str | None = None
    captured_at: datetime = Field(default_factory=utcnow)


class RaceInfo(RaceKeyed):
    post_time: time | None = None
    distance: str | None = None
    surface: str | None = None
    conditions: str | None = None


class EntryHorse(BaseModel):
    post_position: int = Field(..., ge=1, le=30, strict=True)
    program_suffix: str = Field("", pattern=r"^[A-Z]?$", description="Coupled-entry letter")
    horse_name: str = Field(..., min_length=1, max_length=100)
    morning_line: float | None = Field(None, ge=0, strict=True)
    jockey: str | None = None
    trainer: str | None = None
    medication: str | None = None
    weight: int | None = Field(None, ge=80, le=200, strict=True)
    scratched: bool = False


class EntryRecord(BaseModel):
    """A race card: the race plus its horses in post-position order."""

    kind: Literal["entries"] = "entries"
    race: RaceInfo
    horses: list[EntryHorse] = Field(..., min_length=1)

    @property
    def track_name(self) -> str:
        return self.race.track_name

    @property
    def race_number(self) -> int:
        return self.race.race_number

    @property
    def race_date(self) -> date:
        return self.race.race_date


ExtractedRecord = Annotated[
    Union[OddsEntry, WillPayRecord, RaceResultRecord, EntryRecord],
    Field(discriminator="kind"),
]
