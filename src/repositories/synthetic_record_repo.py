from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from src.entities.synthetic_record import SyntheticRecord
from src.repositories.base_repo import BaseRepository


class SyntheticRecordRepository(BaseRepository[SyntheticRecord]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=SyntheticRecord)

    def quarantine(
        self,
        domain: str,
        track_name: str,
        race_number: int,
        race_date: date,
        payload: list[dict[str, Any]],
        *,
        commit: bool = True,
    ) -> SyntheticRecord:
        """Store one synthetic record set, replacing any earlier set for the key."""
        row = SyntheticRecord(
            domain=domain,
            track_name=track_name,
            race_number=race_number,
            race_date=race_date,
            strategy="synthetic",
            payload=payload,
        )
        return self.upsert(
            row,
            {
                "domain": domain,
                "track_name": track_name,
                "race_number": race_number,
                "race_date": race_date,
            },
            commit=commit,
        )
