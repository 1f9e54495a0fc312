"""
Repository for the append-only dead-letter store.
Rows are only ever inserted; there is no update or delete path.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.entities.dead_letter import DeadLetter
from src.repositories.base_repo import BaseRepository


class DeadLetterRepository(BaseRepository[DeadLetter]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=DeadLetter)

    def add(
        self,
        kind: str,
        reason: str,
        payload: dict[str, Any],
        received_at: datetime,
        *,
        commit: bool = True,
    ) -> DeadLetter:
        entry = DeadLetter(
            kind=kind, reason=reason, payload=payload, received_at=received_at
        )
        return self.create(entry, commit=commit)

    def list_recent(
        self, kind: str | None = None, limit: int = 100, offset: int = 0
    ) -> list[DeadLetter]:
        """Newest first."""
        stmt = select(DeadLetter)
        if kind:
            stmt = stmt.where(DeadLetter.kind == kind)
        stmt = (
            stmt.order_by(DeadLetter.received_at.desc(), DeadLetter.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(self.session.execute(stmt).scalars().all())
