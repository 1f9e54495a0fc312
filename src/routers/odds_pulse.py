import asyncio

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from src.core.config import OddsPulseConfig, settings
from src.core.database import get_db
from src.core.exceptions import OddsPulseDisabledError
from src.dtos.ingest_dto import IngestSummary
from src.dtos.odds_pulse_dto import DeadLetterRead, OddsPulsePayload
from src.repositories.dead_letter_repo import DeadLetterRepository
from src.services.odds_pulse_service import OddsPulseService

router = APIRouter(tags=["odds-pulse"])


@router.post("/odds-pulse", response_model=IngestSummary)
async def receive_odds_pulse(payload: OddsPulsePayload, db: Session = Depends(get_db)):
    # retries sleep between attempts; keep them off the event loop
    try:
        return await asyncio.to_thread(OddsPulseService(db).receive, payload)
    except OddsPulseDisabledError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/odds-pulse/config", response_model=OddsPulseConfig)
async def odds_pulse_config():
    """Push cadence and limits the feed should follow."""
    return settings.odds_pulse()


@router.get("/dead-letters", response_model=list[DeadLetterRead])
async def list_dead_letters(
    kind: str | None = None,
    limit: int = 100,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    return DeadLetterRepository(db).list_recent(kind=kind, limit=limit, offset=offset)
