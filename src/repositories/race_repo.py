from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.dtos.record_dto import RaceInfo
from src.entities.race import Race
from src.repositories.base_repo import BaseRepository


class RaceRepository(BaseRepository[Race]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=Race)

    def get_by_key(
        self, track_name: str, race_number: int, race_date: date
    ) -> Optional[Race]:
        return self.get_one_by(
            track_name=track_name, race_number=race_number, race_date=race_date
        )

    def get_or_create(
        self, track_name: str, race_number: int, race_date: date, *, commit: bool = True
    ) -> Race:
        race = self.get_by_key(track_name, race_number, race_date)
        if race is not None:
            return race
        race = Race(track_name=track_name, race_number=race_number, race_date=race_date)
        return self.create(race, commit=commit)

    def upsert_race(self, info: RaceInfo, *, commit: bool = True) -> Race:
        """Insert the race or overwrite its descriptive fields."""
        race = Race(
            track_name=info.track_name,
            race_number=info.race_number,
            race_date=info.race_date,
            post_time=info.post_time,
            distance=info.distance,
            surface=info.surface,
            conditions=info.conditions,
        )
        return self.upsert(
            race,
            {
                "track_name": info.track_name,
                "race_number": info.race_number,
                "race_date": info.race_date,
            },
            commit=commit,
        )

    def list_posting_between(self, start: datetime, end: datetime) -> list[Race]:
        """Races whose post time on their race date falls in ``[start, end]``."""
        stmt = (
            select(Race)
            .where(
                Race.post_time.is_not(None),
                Race.race_date >= start.date(),
                Race.race_date <= end.date(),
            )
            .order_by(Race.race_date, Race.post_time, Race.track_name)
        )
        races = self.session.execute(stmt).scalars().all()
        return [
            race
            for race in races
            if start <= datetime.combine(race.race_date, race.post_time) <= end
        ]
