"""
Service that runs recurring scrape jobs.

Architecture:
    ScrapeSchedulerService -> ScrapeJobRepository -> scrape_jobs table
    ScrapeSchedulerService -> fetch + EXTRACT_DISPATCH / CrawlNavigator
    ScrapeSchedulerService -> RaceRepository     -> races posting soon (active odds)
    ScrapeSchedulerService -> IngestionService   -> race tables

Job lifecycle:  pending -> running -> completed | failed -> running ...
    Every attempt, success or failure, reschedules the job one interval
    ahead, so a failing source is retried later instead of being dropped.
    Jobs in a batch run one after another on the request's session; one
    job's failure is recorded in its outcome and does not stop the batch.

Fetching and parsing are blocking, so they run in a worker thread bounded
by ``SCRAPE_JOB_TIMEOUT``. Ingestion stays on the calling thread because it
owns the session.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from functools import partial
from typing import Callable

from sqlalchemy.orm import Session

from src.core.config import Settings, settings
from src.core.enums import JobKind
from src.core.otb_scraper import fetch_html
from src.core.track_registry import TrackRegistry, default_registry
from src.dtos.extraction_dto import ExtractionContext, ExtractionResult
from src.dtos.scrape_job_dto import BatchSummary, JobOutcome, ScrapeTrigger
from src.entities.scrape_job import ScrapeJob
from src.extractors import odds, results, will_pays
from src.repositories.race_repo import RaceRepository
from src.repositories.scrape_job_repo import ScrapeJobRepository
from src.services.crawl_navigator import CrawlNavigator
from src.services.ingestion_service import IngestionService

logger = logging.getLogger(__name__)

# entries are crawled rather than parsed from a single page
EXTRACT_DISPATCH: dict[JobKind, Callable[[str, ExtractionContext], ExtractionResult]] = {
    JobKind.odds: odds.extract,
    JobKind.will_pays: will_pays.extract,
    JobKind.results: results.extract,
}


def _describe(exc: Exception, timeout: float) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return f"Scrape timed out after {timeout:g}s"
    return str(exc) or type(exc).__name__


class ScrapeSchedulerService:
    """
    Selects due jobs and runs each through fetch, extract and ingest.

    ``fetch`` is a blocking ``url -> html`` callable; it defaults to
    ``fetch_html`` with the configured request timeout.
    """

    def __init__(
        self,
        session: Session,
        config: Settings = settings,
        registry: TrackRegistry = default_registry,
        fetch: Callable[[str], str] | None = None,
    ) -> None:
        self.session = session
        self.config = config
        self.registry = registry
        self.fetch = fetch or partial(fetch_html, timeout=config.SCRAPE_REQUEST_TIMEOUT)
        self.job_repo = ScrapeJobRepository(session)
        self.races = RaceRepository(session)
        self.ingestion = IngestionService(session, config=config)

    def select_due_jobs(
        self,
        now: datetime,
        job_id: int | None = None,
        force: bool = False,
        racing_today_only: bool = False,
        job_kind: JobKind | None = None,
    ) -> list[ScrapeJob]:
        """
        Jobs to run at ``now``, most overdue first.

        Args:
            now: Evaluation time
            job_id: Run only this active job, due or not
            force: Run every active job, due or not
            racing_today_only: Keep only tracks that race on ``now``'s weekday
            job_kind: Run every active job of this kind, due or not

        Returns:
            List of ScrapeJob entities
        """
        if job_id is not None:
            job = self.job_repo.get_active_job(job_id)
            jobs = [job] if job is not None else []
        elif force or job_kind is not None:
            jobs = self.job_repo.get_active_jobs(job_kind)
        else:
            jobs = self.job_repo.get_due_jobs(now)

        if racing_today_only:
            jobs = [j for j in jobs if self.registry.is_racing_today(j.track_name, now)]
        return jobs

    def resolve_url(
        self,
        track_name: str,
        kind: JobKind,
        url: str | None,
        race_number: int | None = None,
    ) -> str:
        """The job's own URL unless it is missing or blank, else the registry default."""
        return (url or "").strip() or self.registry.resolve_url(
            track_name, kind, race_number
        )

    def _scrape(
        self,
        kind: JobKind,
        track_name: str,
        url: str,
        now: datetime,
        race_number: int | None = None,
    ) -> ExtractionResult:
        context = ExtractionContext(
            track_name=track_name,
            race_number=race_number,
            race_date=now.date(),
            source_url=url,
            captured_at=now,
        )
        html = self.fetch(url)
        if kind is JobKind.entries:
            navigator = CrawlNavigator(
                self.fetch, self.registry, self.config.MAX_RACES_PER_TRACK
            )
            return navigator.crawl(url, context, html=html)
        return EXTRACT_DISPATCH[kind](html, context)

    async def _scrape_and_ingest(
        self,
        kind: JobKind,
        track_name: str,
        url: str,
        now: datetime,
        race_number: int | None = None,
    ) -> ExtractionResult:
        result = await asyncio.wait_for(
            asyncio.to_thread(self._scrape, kind, track_name, url, now, race_number),
            timeout=self.config.SCRAPE_JOB_TIMEOUT,
        )
        self.ingestion.ingest(result)
        return result

    async def run_job(self, job: ScrapeJob, now: datetime) -> JobOutcome:
        """
        Run one job and record its outcome on the job row.

        Args:
            job: Job to run
            now: Run time; becomes ``last_run_at`` and the base of ``next_run_at``

        Returns:
            JobOutcome for the batch summary
        """
        kind = JobKind(job.job_kind)
        job_id = job.id
        track_name = job.track_name
        race_number = job.race_number
        self.job_repo.mark_running(job, now)

        try:
            url = self.resolve_url(track_name, kind, job.url, race_number)
            result = await self._scrape_and_ingest(
                kind, track_name, url, now, race_number
            )
        except Exception as e:
            self.session.rollback()
            error = _describe(e, self.config.SCRAPE_JOB_TIMEOUT)
            logger.warning("Job %s (%s %s) failed: %s", job_id, kind, track_name, error)
            self.job_repo.mark_failed(job, now, error)
            return JobOutcome(
                id=job_id,
                kind=kind,
                track=track_name,
                race_number=race_number,
                success=False,
                error=error,
            )

        self.job_repo.mark_completed(job, now)
        logger.info(
            "Job %s (%s %s) completed: %d record(s) via %s",
            job_id,
            kind,
            track_name,
            result.record_count,
            result.strategy_used,
        )
        return JobOutcome(
            id=job_id,
            kind=kind,
            track=track_name,
            race_number=race_number,
            success=True,
            record_count=result.record_count,
            strategy_used=result.strategy_used,
        )

    async def run_ad_hoc(
        self,
        kind: JobKind,
        track_name: str,
        url: str | None,
        now: datetime,
        race_number: int | None = None,
    ) -> JobOutcome:
        """Scrape once without touching the job table."""
        try:
            resolved = self.resolve_url(track_name, kind, url, race_number)
            result = await self._scrape_and_ingest(
                kind, track_name, resolved, now, race_number
            )
        except Exception as e:
            self.session.rollback()
            error = _describe(e, self.config.SCRAPE_JOB_TIMEOUT)
            logger.warning("Ad hoc %s scrape for %s failed: %s", kind, track_name, error)
            return JobOutcome(
                id=None,
                kind=kind,
                track=track_name,
                race_number=race_number,
                success=False,
                error=error,
            )
        return JobOutcome(
            id=None,
            kind=kind,
            track=track_name,
            race_number=race_number,
            success=True,
            record_count=result.record_count,
            strategy_used=result.strategy_used,
        )

    async def run_active_odds(self, now: datetime) -> list[JobOutcome]:
        """
        Scrape live odds for every race posting within the active-odds window.

        Post times are compared as stored, on the race's own date. Each race
        gets one ad hoc odds scrape of its race-specific page.
        """
        window_end = now + timedelta(minutes=self.config.ACTIVE_ODDS_WINDOW_MINUTES)
        races = [
            (race.track_name, race.race_number)
            for race in self.races.list_posting_between(now, window_end)
        ]
        logger.info("Checking odds for %d race(s) posting before %s", len(races), window_end)

        outcomes = []
        for track_name, race_number in races:
            outcomes.append(
                await self.run_ad_hoc(JobKind.odds, track_name, None, now, race_number)
            )
        return outcomes

    async def run_batch(self, trigger: ScrapeTrigger, now: datetime) -> BatchSummary:
        """
        Run an ad hoc scrape, the active-odds sweep or every selected job, in order.

        Args:
            trigger: What to run
            now: Evaluation and run time for the whole batch

        Returns:
            BatchSummary, also when every job failed
        """
        if trigger.is_ad_hoc:
            outcome = await self.run_ad_hoc(
                trigger.job_kind, trigger.track_name, trigger.url, now, trigger.race_number
            )
            return BatchSummary.from_outcomes([outcome])

        if trigger.active_odds:
            outcomes = await self.run_active_odds(now)
        else:
            jobs = self.select_due_jobs(
                now,
                job_id=trigger.job_id,
                force=trigger.force,
                racing_today_only=trigger.racing_today_only,
                job_kind=trigger.job_kind,
            )
            logger.info("Running %d scrape job(s)", len(jobs))

            outcomes = []
            for job in jobs:
                outcomes.append(await self.run_job(job, now))

        summary = BatchSummary.from_outcomes(outcomes)
        logger.info(
            "Batch finished: %d processed, %d succeeded, %d failed",
            summary.processed,
            summary.succeeded,
            summary.failed,
        )
        return summary
