import asyncio

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from src.core.clock import utcnow
from src.core.database import get_db
from src.core.enums import JobStatus
from src.core.exceptions import FetchError
from src.dtos.scrape_job_dto import (
    BatchSummary,
    DiscoverySummary,
    ScrapeJobCreate,
    ScrapeJobRead,
    ScrapeJobUpdate,
    ScrapeTrigger,
)
from src.repositories.scrape_job_repo import ScrapeJobRepository
from src.services.scrape_scheduler_service import ScrapeSchedulerService
from src.services.track_discovery_service import TrackDiscoveryService

router = APIRouter(prefix="/scrape", tags=["scrape"])


@router.post("/run", response_model=BatchSummary)
async def run_scrape(
    trigger: ScrapeTrigger | None = None,
    db: Session = Depends(get_db),
):
    """Run due jobs, one job, every active job (``force``) or an ad hoc scrape."""
    return await ScrapeSchedulerService(db).run_batch(trigger or ScrapeTrigger(), utcnow())


@router.post("/discover", response_model=DiscoverySummary)
async def discover_tracks(db: Session = Depends(get_db)):
    try:
        return await asyncio.to_thread(TrackDiscoveryService(db).discover, utcnow())
    except FetchError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/jobs", response_model=ScrapeJobRead, status_code=201)
async def create_job(data: ScrapeJobCreate, db: Session = Depends(get_db)):
    return ScrapeJobRepository(db).create_job(data, utcnow())


@router.get("/jobs", response_model=list[ScrapeJobRead])
async def list_jobs(
    status: JobStatus | None = None,
    is_active: bool | None = None,
    limit: int = 100,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    return ScrapeJobRepository(db).list_jobs(
        status=status, is_active=is_active, limit=limit, offset=offset
    )


@router.get("/jobs/{job_id}", response_model=ScrapeJobRead)
async def get_job(job_id: int, db: Session = Depends(get_db)):
    job = ScrapeJobRepository(db).get_by_id(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail=f"Scrape job {job_id} not found")
    return job


@router.patch("/jobs/{job_id}", response_model=ScrapeJobRead)
async def update_job(
    job_id: int, data: ScrapeJobUpdate, db: Session = Depends(get_db)
):
    repo = ScrapeJobRepository(db)
    job = repo.get_by_id(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail=f"Scrape job {job_id} not found")
    return repo.update_settings(job, data)
