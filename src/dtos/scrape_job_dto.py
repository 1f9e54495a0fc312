"""
DTOs for scrape job management and scheduler triggers.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.core.enums import JobKind, JobStatus, Strategy


def blank_to_none(value: str | None) -> str | None:
    """Whitespace-only URLs mean 'use the default', same as a missing one."""
    if value is None:
        return None
    return value.strip() or None


class ScrapeJobCreate(BaseModel):
    """DTO for creating a recurring scrape job."""

    track_name: str = Field(..., min_length=1, max_length=100, description="Track display name")
    job_kind: JobKind
    url: str | None = Field(
        None, max_length=500, description="Source URL; blank means the registry default"
    )
    race_number: int | None = Field(
        None, ge=1, le=30, description="Pin the job to one race; None scrapes the card"
    )
    interval_seconds: int = Field(60, gt=0, description="Seconds between runs")
    is_active: bool = True
    next_run_at: datetime | None = Field(
        None, description="First run time; defaults to now"
    )

    @field_validator("url")
    @classmethod
    def _blank_url(cls, v: str | None) -> str | None:
        return blank_to_none(v)


class ScrapeJobUpdate(BaseModel):
    """Operator-editable fields. Status and run times belong to the scheduler."""

    is_active: bool | None = None
    interval_seconds: int | None = Field(None, gt=0)
    url: str | None = Field(None, max_length=500)

    @field_validator("url")
    @classmethod
    def _blank_url(cls, v: str | None) -> str | None:
        return blank_to_none(v)


class ScrapeJobRead(BaseModel):
    id: int
    track_name: str
    job_kind: JobKind
    race_number: int | None
    url: str | None
    interval_seconds: int
    is_active: bool
    status: JobStatus
    last_run_at: datetime | None
    next_run_at: datetime
    last_error: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ScrapeTrigger(BaseModel):
    """
    Body of ``POST /scrape/run``.

    ``job_kind`` + ``track_name`` together request an ad hoc scrape that
    bypasses the job table. ``job_kind`` alone runs every active job of that
    kind. ``active_odds`` scrapes odds for each race posting within the
    active-odds window. Otherwise due jobs (or ``job_id``, or every active
    job when ``force``) are run.
    """

    job_id: int | None = None
    job_kind: JobKind | None = None
    track_name: str | None = None
    race_number: int | None = Field(None, ge=1, le=30)
    url: str | None = None
    force: bool = False
    racing_today_only: bool = False
    active_odds: bool = False

    @field_validator("url")
    @classmethod
    def _blank_url(cls, v: str | None) -> str | None:
        return blank_to_none(v)

    @model_validator(mode="after")
    def _track_needs_kind(self):
        if self.track_name is not None and self.job_kind is None:
            raise ValueError("track_name requires job_kind")
        if self.race_number is not None and not self.is_ad_hoc:
            raise ValueError("race_number only applies to an ad hoc scrape")
        return self

    @property
    def is_ad_hoc(self) -> bool:
        return self.job_kind is not None and self.track_name is not None


class JobOutcome(BaseModel):
    id: int | None
    kind: JobKind
    track: str
    race_number: int | None = None
    success: bool
    record_count: int = 0
    strategy_used: Strategy | None = None
    error: str | None = None


class BatchSummary(BaseModel):
    results: list[JobOutcome] = Field(default_factory=list)
    processed: int = 0
    succeeded: int = 0
    failed: int = 0

    @classmethod
    def from_outcomes(cls, outcomes: list[JobOutcome]) -> "BatchSummary":
        succeeded = sum(1 for o in outcomes if o.success)
        return cls(
            results=outcomes,
            processed=len(outcomes),
            succeeded=succeeded,
            failed=len(outcomes) - succeeded,
        )


class TrackDiscovery(BaseModel):
    """What discovery did for one track: kind -> created | reactivated | exists."""

    track_name: str
    url: str
    actions: dict[JobKind, str] = Field(default_factory=dict)


class DiscoverySummary(BaseModel):
    tracks: list[TrackDiscovery] = Field(default_factory=list)
    created: int = 0
    reactivated: int = 0
