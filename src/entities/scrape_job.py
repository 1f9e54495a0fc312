"""
Entity for recurring scrape jobs.
One row per (track, kind) the scheduler should poll on an interval, or per
(track, kind, race) for jobs pinned to a single race.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.core.clock import utcnow
from src.entities.base import Base


class ScrapeJob(Base):
    """
    A recurring unit of scrape work.

    Due-ness is never stored: a job is due when it is active and
    ``next_run_at <= now``. Jobs are soft-disabled through ``is_active``
    rather than deleted.
    """

    __tablename__ = "scrape_jobs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    track_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    job_kind: Mapped[str] = mapped_column(
        String(20), nullable=False, index=True
    )  # odds, will_pays, results, entries
    race_number: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )  # None: whole card, resolved by the page
    url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    interval_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending", index=True
    )  # pending, running, completed, failed

    last_run_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    next_run_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, index=True
    )
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )
