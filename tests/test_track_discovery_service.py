"""
Tests for creating scrape jobs from the schedule index.
"""

import pytest

from src.core.config import Settings
from src.core.enums import JobKind
from src.core.exceptions import FetchError
from src.dtos.scrape_job_dto import ScrapeJobCreate
from src.repositories.scrape_job_repo import ScrapeJobRepository
from src.services.track_discovery_service import TrackDiscoveryService

SCHEDULE_URL = "https://otb.test/horse-racing-schedule.html"

SCHEDULE_PAGE = """
<html><body>
  <h2>Bet Horse Racing with OTB</h2>
  <ul>
    <li><a href="/tracks/saratoga">Saratoga</a></li>
    <li><a href="/tracks/del-mar">Del Mar</a></li>
    <li><a href="/results/del-mar">Del Mar Results</a></li>
  </ul>
</body></html>
"""


@pytest.fixture
def config():
    return Settings(
        OTB_SCHEDULE_URL=SCHEDULE_URL,
        DEFAULT_JOB_INTERVALS={"entries": 3600, "odds": 60, "will_pays": 60, "results": 900},
    )


@pytest.fixture
def job_repo(db_session):
    return ScrapeJobRepository(db_session)


class TestTrackDiscovery:
    def test_creates_jobs_for_each_listed_track(self, db_session, job_repo, config, now, page_fetcher):
        service = TrackDiscoveryService(
            db_session, config=config, fetch=page_fetcher({SCHEDULE_URL: SCHEDULE_PAGE})
        )

        summary = service.discover(now)

        assert [t.track_name for t in summary.tracks] == ["SARATOGA", "DEL MAR"]
        assert summary.created == 6
        assert summary.reactivated == 0
        jobs = job_repo.list_jobs()
        assert {(j.track_name, j.job_kind) for j in jobs} == {
            (track, kind)
            for track in ("SARATOGA", "DEL MAR")
            for kind in ("entries", "odds", "results")
        }
        assert all(j.next_run_at == now for j in jobs)
        odds_job = job_repo.find_job("SARATOGA", JobKind.odds)
        assert odds_job.interval_seconds == 60
        assert job_repo.find_job("SARATOGA", JobKind.entries).interval_seconds == 3600

    def test_second_run_creates_nothing(self, db_session, job_repo, config, now, page_fetcher):
        fetch = page_fetcher({SCHEDULE_URL: SCHEDULE_PAGE})
        TrackDiscoveryService(db_session, config=config, fetch=fetch).discover(now)

        summary = TrackDiscoveryService(db_session, config=config, fetch=fetch).discover(now)

        assert summary.created == 0
        assert set(summary.tracks[0].actions.values()) == {"exists"}
        assert len(job_repo.list_jobs()) == 6

    def test_disabled_job_is_reactivated(self, db_session, job_repo, config, now, page_fetcher):
        job = job_repo.create_job(
            ScrapeJobCreate(track_name="DEL MAR", job_kind=JobKind.odds, is_active=False),
            now,
        )
        service = TrackDiscoveryService(
            db_session, config=config, fetch=page_fetcher({SCHEDULE_URL: SCHEDULE_PAGE})
        )

        summary = service.discover(now)

        assert summary.reactivated == 1
        assert summary.created == 5
        assert summary.tracks[1].actions[JobKind.odds] == "reactivated"
        assert job.is_active is True

    def test_unreachable_schedule_raises(self, db_session, config, now, page_fetcher):
        service = TrackDiscoveryService(db_session, config=config, fetch=page_fetcher({}))

        with pytest.raises(FetchError):
            service.discover(now)
