from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from src.dtos.record_dto import RaceResultRecord
from src.entities.race_result import RaceResult
from src.repositories.base_repo import BaseRepository


class RaceResultRepository(BaseRepository[RaceResult]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=RaceResult)

    def get_by_key(
        self, track_name: str, race_number: int, race_date: date
    ) -> Optional[RaceResult]:
        return self.get_one_by(
            track_name=track_name, race_number=race_number, race_date=race_date
        )

    def upsert_result(
        self, race_id: int, record: RaceResultRecord, *, commit: bool = True
    ) -> RaceResult:
        """Insert the result or overwrite finish order, payouts and source."""
        row = RaceResult(
            race_id=race_id,
            track_name=record.track_name,
            race_number=record.race_number,
            race_date=record.race_date,
            finish_order=[p.model_dump() for p in record.finish_order],
            payouts=dict(record.payouts),
            source_url=record.source_url,
            captured_at=record.captured_at,
        )
        return self.upsert(
            row,
            {
                "track_name": record.track_name,
                "race_number": record.race_number,
                "race_date": record.race_date,
            },
            commit=commit,
        )
