"""
Entity for a single race on a race card.
"""

from __future__ import annotations

from datetime import date, time

from sqlalchemy import Date, Integer, String, Text, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.entities.base import Base


class Race(Base):
    """Natural key: (track_name, race_number, race_date)."""

    __tablename__ = "races"
    __table_args__ = (
        UniqueConstraint(
            "track_name", "race_number", "race_date", name="uq_races_track_race_date"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    track_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    race_number: Mapped[int] = mapped_column(Integer, nullable=False)
    race_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    post_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    distance: Mapped[str | None] = mapped_column(String(50), nullable=True)
    surface: Mapped[str | None] = mapped_column(String(30), nullable=True)
    conditions: Mapped[str | None] = mapped_column(Text, nullable=True)

    horses = relationship(
        "RaceHorse",
        back_populates="race",
        order_by="RaceHorse.program_number",
        cascade="all, delete-orphan",
    )
