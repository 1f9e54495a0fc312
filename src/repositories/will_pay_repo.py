from __future__ import annotations

from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.dtos.record_dto import WillPayRecord
from src.entities.will_pay import WillPay
from src.repositories.base_repo import BaseRepository


class WillPayRepository(BaseRepository[WillPay]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=WillPay)

    def upsert_will_pay(self, record: WillPayRecord, *, commit: bool = True) -> WillPay:
        row = WillPay(
            track_name=record.track_name,
            race_number=record.race_number,
            race_date=record.race_date,
            wager_type=str(record.wager_type),
            combination=record.combination,
            payout=record.payout,
            is_carryover=record.is_carryover,
            carryover_amount=record.carryover_amount,
        )
        return self.upsert(
            row,
            {
                "track_name": record.track_name,
                "race_number": record.race_number,
                "race_date": record.race_date,
                "wager_type": str(record.wager_type),
                "combination": record.combination,
            },
            commit=commit,
        )

    def list_for_race(
        self, track_name: str, race_number: int, race_date: date
    ) -> list[WillPay]:
        stmt = (
            select(WillPay)
            .where(
                WillPay.track_name == track_name,
                WillPay.race_number == race_number,
                WillPay.race_date == race_date,
            )
            .order_by(WillPay.wager_type, WillPay.combination)
        )
        return list(self.session.execute(stmt).scalars().all())
