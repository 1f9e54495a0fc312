"""
DTOs passed into and out of the extraction cascade.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from src.core.clock import utcnow
from src.core.enums import JobKind, Strategy
from src.dtos.record_dto import ExtractedRecord


class ExtractionContext(BaseModel):
    """What the caller already knows about the page being parsed."""

    track_name: str = Field(..., min_length=1)
    race_number: int | None = Field(None, ge=1)
    race_date: date = Field(default_factory=lambda: utcnow().date())
    source_url: str | None = None
    captured_at: datetime = Field(default_factory=utcnow)


class ExtractionResult(BaseModel):
    domain: JobKind
    records: list[ExtractedRecord]
    strategy_used: Strategy
    is_synthetic: bool = False

    @property
    def record_count(self) -> int:
        return len(self.records)
