"""
Entity for official race results and payouts.
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.core.clock import utcnow
from src.entities.base import Base


class RaceResult(Base):
    """
    Finish order and payouts for one race.

    Natural key: (track_name, race_number, race_date). Re-scrapes overwrite
    ``finish_order``, ``payouts`` and ``source_url`` in place.
    """

    __tablename__ = "race_results"
    __table_args__ = (
        UniqueConstraint(
            "track_name", "race_number", "race_date", name="uq_race_results_natural_key"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    race_id: Mapped[int] = mapped_column(
        ForeignKey("races.id", ondelete="CASCADE"), nullable=False, index=True
    )
    track_name: Mapped[str] = mapped_column(String(100), nullable=False)
    race_number: Mapped[int] = mapped_column(Integer, nullable=False)
    race_date: Mapped[date] = mapped_column(Date, nullable=False)
    finish_order: Mapped[list] = mapped_column(JSON, nullable=False)
    payouts: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    source_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    captured_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
