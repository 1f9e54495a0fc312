from __future__ import annotations

from typing import Any, Optional

from sqlalchemy.orm import Session

from src.entities.race_horse import RaceHorse
from src.repositories.base_repo import BaseRepository


class RaceHorseRepository(BaseRepository[RaceHorse]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=RaceHorse)

    def get_by_key(
        self, race_id: int, program_number: int, program_suffix: str = ""
    ) -> Optional[RaceHorse]:
        return self.get_one_by(
            race_id=race_id,
            program_number=program_number,
            program_suffix=program_suffix,
        )

    def upsert_horse(
        self,
        race_id: int,
        program_number: int,
        fields: dict[str, Any],
        *,
        program_suffix: str = "",
        commit: bool = True,
    ) -> RaceHorse:
        """Insert or update the runner; only keys present in *fields* are written."""
        key = {
            "race_id": race_id,
            "program_number": program_number,
            "program_suffix": program_suffix,
        }
        horse = RaceHorse(**key, **fields)
        return self.upsert(horse, key, commit=commit)
