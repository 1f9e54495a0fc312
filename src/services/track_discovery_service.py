"""
Keeps the job table in step with the tracks the schedule page lists.

For every active track on the schedule index there should be an active
entries, odds and results job. Missing jobs are created due immediately;
disabled ones are switched back on.
"""

from __future__ import annotations

import logging
from datetime import datetime
from functools import partial
from typing import Callable

from sqlalchemy.orm import Session

from src.core.config import Settings, settings
from src.core.enums import JobKind
from src.core.otb_scraper import fetch_html, make_soup
from src.core.track_registry import TrackRegistry, default_registry
from src.dtos.scrape_job_dto import DiscoverySummary, ScrapeJobCreate, TrackDiscovery
from src.repositories.scrape_job_repo import ScrapeJobRepository
from src.services.crawl_navigator import discover_track_links

logger = logging.getLogger(__name__)

DISCOVERED_KINDS = (JobKind.entries, JobKind.odds, JobKind.results)


class TrackDiscoveryService:
    def __init__(
        self,
        session: Session,
        config: Settings = settings,
        registry: TrackRegistry = default_registry,
        fetch: Callable[[str], str] | None = None,
    ) -> None:
        self.config = config
        self.registry = registry
        self.fetch = fetch or partial(fetch_html, timeout=config.SCRAPE_REQUEST_TIMEOUT)
        self.job_repo = ScrapeJobRepository(session)

    def discover(self, now: datetime) -> DiscoverySummary:
        """
        Read the schedule index and ensure jobs exist for each listed track.

        Raises:
            FetchError: The schedule page could not be fetched
        """
        url = self.config.OTB_SCHEDULE_URL
        links = discover_track_links(make_soup(self.fetch(url)), url, self.registry)
        logger.info("Discovered %d track(s) on %s", len(links), url)

        summary = DiscoverySummary()
        for link in links:
            discovery = TrackDiscovery(track_name=link.name, url=link.url)
            for kind in DISCOVERED_KINDS:
                action = self._ensure_job(link.name, kind, now)
                discovery.actions[kind] = action
                if action == "created":
                    summary.created += 1
                elif action == "reactivated":
                    summary.reactivated += 1
            summary.tracks.append(discovery)
        return summary

    def _ensure_job(self, track_name: str, kind: JobKind, now: datetime) -> str:
        job = self.job_repo.find_job(track_name, kind)
        if job is None:
            self.job_repo.create_job(
                ScrapeJobCreate(
                    track_name=track_name,
                    job_kind=kind,
                    interval_seconds=self.config.DEFAULT_JOB_INTERVALS[str(kind)],
                    next_run_at=now,
                ),
                now,
            )
            logger.info("Created %s job for %s", kind, track_name)
            return "created"
        if not job.is_active:
            self.job_repo.reactivate(job, now)
            logger.info("Reactivated %s job %s for %s", kind, job.id, track_name)
            return "reactivated"
        return "exists"
