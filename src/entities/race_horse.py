"""
Entity for a horse entered in a race, with its live odds and odds history.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.clock import utcnow
from src.entities.base import Base


class RaceHorse(Base):
    """
    One runner in one race. Natural key: (race_id, program_number,
    program_suffix); coupled entries such as 1 and 1A differ only by suffix.

    ``odds_history`` is a newest-first list of ``{"timestamp", "odds"}``
    dicts, bounded by ``ODDS_HISTORY_MAX``.
    """

    __tablename__ = "race_horses"
    __table_args__ = (
        UniqueConstraint(
            "race_id", "program_number", "program_suffix", name="uq_race_horses_program"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    race_id: Mapped[int] = mapped_column(
        ForeignKey("races.id", ondelete="CASCADE"), nullable=False, index=True
    )
    program_number: Mapped[int] = mapped_column(Integer, nullable=False)
    program_suffix: Mapped[str] = mapped_column(
        String(2), nullable=False, default="", server_default=""
    )
    horse_name: Mapped[str] = mapped_column(String(100), nullable=False)
    morning_line: Mapped[float | None] = mapped_column(Float, nullable=True)
    live_odds: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active"
    )  # active, scratched, main_track_only
    jockey: Mapped[str | None] = mapped_column(String(100), nullable=True)
    trainer: Mapped[str | None] = mapped_column(String(100), nullable=True)
    medication: Mapped[str | None] = mapped_column(String(20), nullable=True)
    weight: Mapped[int | None] = mapped_column(Integer, nullable=True)
    pool_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    odds_history: Mapped[list | None] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    race = relationship("Race", back_populates="horses")
