"""
DTOs for the odds push path and the dead-letter store.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.core.value_parsers import parse_program_number


class HorseOdds(BaseModel):
    horse_id: str = Field(..., min_length=1)
    horse_name: str = Field(..., min_length=1, max_length=100)
    program_number: int = Field(..., ge=1, le=30)
    program_suffix: str = Field("", pattern=r"^[A-Z]?$")
    current_odds: str | float = Field(..., description="Tote odds, e.g. '5-2' or 2.5")
    morning_line: str | float | None = None

    @model_validator(mode="before")
    @classmethod
    def _split_coupled_number(cls, data: Any) -> Any:
        # "1A" arrives as the program number for coupled entries
        if isinstance(data, dict) and isinstance(data.get("program_number"), str):
            parsed = parse_program_number(data["program_number"])
            if parsed is not None:
                data = {**data, "program_number": parsed[0]}
                if parsed[1]:
                    data.setdefault("program_suffix", parsed[1])
        return data


class OddsPulsePayload(BaseModel):
    """One odds snapshot for one race, pushed by the external feed."""

    timestamp: datetime
    source: str = Field(..., min_length=1)
    track_id: str = Field(..., min_length=1, description="Track display name")
    race_number: int = Field(..., ge=1, le=30)
    odds_data: list[HorseOdds] = Field(..., min_length=1)


class DeadLetterRead(BaseModel):
    id: int
    kind: str
    reason: str
    payload: dict[str, Any]
    received_at: datetime

    model_config = ConfigDict(from_attributes=True)
