from __future__ import annotations

from typing import Generic, TypeVar, Type, Optional, Any
from sqlalchemy.orm import Session
from sqlalchemy import select

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    CRUD plus upsert-by-natural-key for one entity.

    Writes commit by default; pass ``commit=False`` to only flush, leaving
    the transaction to the caller (the ingestion service commits once per
    ingest call).
    """

    def __init__(self, session: Session, model: Type[T]) -> None:
        self.session = session
        self.model = model

    def _finish(self, obj: T, commit: bool) -> T:
        if commit:
            self.session.commit()
            self.session.refresh(obj)
        else:
            self.session.flush()
        return obj

    def create(self, obj: T, *, commit: bool = True) -> T:
        self.session.add(obj)
        return self._finish(obj, commit)

    def get_by_id(self, id_: Any) -> Optional[T]:
        return self.session.get(self.model, id_)

    def get_one_by(self, **fields: Any) -> Optional[T]:
        stmt = select(self.model)
        for field, value in fields.items():
            stmt = stmt.where(getattr(self.model, field) == value)
        return self.session.execute(stmt).scalars().first()

    def list(self, *, limit: int = 100, offset: int = 0) -> list[T]:
        stmt = select(self.model).order_by(self.model.id).limit(limit).offset(offset)
        return list(self.session.execute(stmt).scalars().all())

    def update(self, obj: T, *, commit: bool = True) -> T:
        obj = self.session.merge(obj)
        return self._finish(obj, commit)

    def upsert(self, obj: T, unique_fields: dict, *, commit: bool = True) -> T:
        """Insert *obj* or copy its set attributes onto the row matched by *unique_fields*."""
        existing = self.get_one_by(**unique_fields)

        if existing is not None:
            for key, value in vars(obj).items():
                if key.startswith("_") or key == "id":
                    continue
                setattr(existing, key, value)
            return self._finish(existing, commit)

        self.session.add(obj)
        return self._finish(obj, commit)
