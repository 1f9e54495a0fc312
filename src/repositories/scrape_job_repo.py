"""
Repository for handling scrape job operations.

All SQL for the ``scrape_jobs`` table lives here, including the job state
machine: status only moves along ``ALLOWED_TRANSITIONS`` and every run
attempt, success or failure, pushes ``next_run_at`` forward.

Concurrency note: transitions use ORM-level read-then-write, which is safe
for the sequential scheduler. Concurrent workers would need a conditional
UPDATE ... WHERE status = :expected to claim a job.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.core.enums import JobKind, JobStatus
from src.core.exceptions import InvalidJobTransition
from src.dtos.scrape_job_dto import ScrapeJobCreate, ScrapeJobUpdate, blank_to_none
from src.entities.scrape_job import ScrapeJob
from src.repositories.base_repo import BaseRepository

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[JobStatus, set[JobStatus]] = {
    JobStatus.pending: {JobStatus.running},
    # running -> running is the re-entry of a job a crashed run left behind
    JobStatus.running: {JobStatus.completed, JobStatus.failed, JobStatus.running},
    JobStatus.completed: {JobStatus.running},
    JobStatus.failed: {JobStatus.running},
}


def next_run_after(job: ScrapeJob, run_time: datetime) -> datetime:
    """
    Next eligible run time after an attempt at ``run_time``.

    Normally ``run_time + interval``. A forced run of a job that was not yet
    due could land at or before the stored ``next_run_at``; then the stored
    value is advanced by one interval instead, so it always moves forward.
    """
    interval = timedelta(seconds=job.interval_seconds)
    candidate = run_time + interval
    if job.next_run_at is not None and candidate <= job.next_run_at:
        candidate = job.next_run_at + interval
    return candidate


class ScrapeJobRepository(BaseRepository[ScrapeJob]):
    """
    Repository for scrape job operations.

    Extends BaseRepository with due-job selection and the status
    transitions the scheduler drives.
    """

    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=ScrapeJob)

    def create_job(self, data: ScrapeJobCreate, now: datetime) -> ScrapeJob:
        """
        Create a new scrape job with pending status.

        Args:
            data: Operator-supplied job fields
            now: Creation time; also the first run time unless one is given

        Returns:
            Created ScrapeJob entity
        """
        job = ScrapeJob(
            track_name=data.track_name,
            job_kind=str(data.job_kind),
            race_number=data.race_number,
            url=blank_to_none(data.url),
            interval_seconds=data.interval_seconds,
            is_active=data.is_active,
            status=str(JobStatus.pending),
            next_run_at=data.next_run_at or now,
            created_at=now,
            updated_at=now,
        )
        return self.create(job, commit=True)

    def get_due_jobs(self, now: datetime) -> List[ScrapeJob]:
        """Active jobs with ``next_run_at <= now``, most overdue first."""
        stmt = (
            select(ScrapeJob)
            .where(ScrapeJob.is_active.is_(True), ScrapeJob.next_run_at <= now)
            .order_by(ScrapeJob.next_run_at.asc(), ScrapeJob.id.asc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def get_active_jobs(self, job_kind: JobKind | None = None) -> List[ScrapeJob]:
        """Every active job, optionally of one kind, due or not."""
        stmt = select(ScrapeJob).where(ScrapeJob.is_active.is_(True))
        if job_kind is not None:
            stmt = stmt.where(ScrapeJob.job_kind == str(job_kind))
        stmt = stmt.order_by(ScrapeJob.next_run_at.asc(), ScrapeJob.id.asc())
        return list(self.session.execute(stmt).scalars().all())

    def get_active_job(self, job_id: int) -> Optional[ScrapeJob]:
        job = self.get_by_id(job_id)
        if job is None or not job.is_active:
            return None
        return job

    def find_job(
        self, track_name: str, job_kind: JobKind | str, race_number: int | None = None
    ) -> Optional[ScrapeJob]:
        return self.get_one_by(
            track_name=track_name, job_kind=str(job_kind), race_number=race_number
        )

    def list_jobs(
        self,
        status: JobStatus | None = None,
        is_active: bool | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[ScrapeJob]:
        """
        List jobs, optionally filtered.

        Args:
            status: Only jobs in this status
            is_active: Only active (True) or disabled (False) jobs
            limit: Maximum number of jobs to return
            offset: Rows to skip

        Returns:
            List of ScrapeJob entities ordered by id
        """
        stmt = select(ScrapeJob)
        if status is not None:
            stmt = stmt.where(ScrapeJob.status == str(status))
        if is_active is not None:
            stmt = stmt.where(ScrapeJob.is_active.is_(is_active))
        stmt = stmt.order_by(ScrapeJob.id).limit(limit).offset(offset)
        return list(self.session.execute(stmt).scalars().all())

    def update_settings(self, job: ScrapeJob, data: ScrapeJobUpdate) -> ScrapeJob:
        """Apply operator edits (active flag, interval, url)."""
        changes = data.model_dump(exclude_unset=True)
        for key, value in changes.items():
            if key == "is_active" and value is None:
                continue
            if key == "interval_seconds" and value is None:
                continue
            if key == "url":
                value = blank_to_none(value)
            setattr(job, key, value)
        return self.update(job, commit=True)

    def _transition(self, job: ScrapeJob, target: JobStatus) -> None:
        current = JobStatus(job.status)
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidJobTransition(job.id, current, target)
        if current is JobStatus.running and target is JobStatus.running:
            logger.warning(
                "Job %s was left running by an earlier run; re-entering", job.id
            )
        job.status = str(target)

    def mark_running(self, job: ScrapeJob, now: datetime) -> ScrapeJob:
        self._transition(job, JobStatus.running)
        job.updated_at = now
        return self.update(job, commit=True)

    def mark_completed(self, job: ScrapeJob, now: datetime) -> ScrapeJob:
        """Record a successful run and schedule the next one."""
        self._transition(job, JobStatus.completed)
        job.last_run_at = now
        job.next_run_at = next_run_after(job, now)
        job.last_error = None
        job.updated_at = now
        return self.update(job, commit=True)

    def mark_failed(self, job: ScrapeJob, now: datetime, error: str) -> ScrapeJob:
        """Record a failed run; the job is rescheduled exactly as on success."""
        self._transition(job, JobStatus.failed)
        job.last_run_at = now
        job.next_run_at = next_run_after(job, now)
        job.last_error = error[:2000]
        job.updated_at = now
        return self.update(job, commit=True)

    def reactivate(self, job: ScrapeJob, now: datetime) -> ScrapeJob:
        job.is_active = True
        job.next_run_at = now
        job.updated_at = now
        return self.update(job, commit=True)
