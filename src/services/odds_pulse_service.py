"""
Receiver for pushed odds snapshots.

The push path is off unless ``ODDS_PULSE_ENABLED`` is set. Writes are
retried with a fixed delay when the database reports a transient
``OperationalError`` (locked SQLite file, dropped connection).
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from src.core.config import Settings, settings
from src.core.exceptions import OddsPulseDisabledError
from src.dtos.ingest_dto import IngestSummary
from src.dtos.odds_pulse_dto import OddsPulsePayload
from src.services.ingestion_service import IngestionService

logger = logging.getLogger(__name__)


class OddsPulseService:
    def __init__(self, session: Session, config: Settings = settings) -> None:
        self.pulse = config.odds_pulse()
        self.ingestion = IngestionService(session, config=config)
        self.retryer = Retrying(
            stop=stop_after_attempt(self.pulse.retry_attempts),
            wait=wait_fixed(self.pulse.retry_delay),
            retry=retry_if_exception_type(OperationalError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def receive(self, payload: OddsPulsePayload) -> IngestSummary:
        if not self.pulse.enabled:
            raise OddsPulseDisabledError("Odds pulse ingestion is disabled")
        return self.retryer(self.ingestion.ingest_odds_pulse, payload)
