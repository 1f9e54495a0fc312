"""
Entity for projected payouts on multi-race exotic wagers.
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.core.clock import utcnow
from src.entities.base import Base


class WillPay(Base):
    """Natural key: (track_name, race_number, race_date, wager_type, combination)."""

    __tablename__ = "will_pays"
    __table_args__ = (
        UniqueConstraint(
            "track_name",
            "race_number",
            "race_date",
            "wager_type",
            "combination",
            name="uq_will_pays_natural_key",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    track_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    race_number: Mapped[int] = mapped_column(Integer, nullable=False)
    race_date: Mapped[date] = mapped_column(Date, nullable=False)
    wager_type: Mapped[str] = mapped_column(
        String(20), nullable=False
    )  # double, pick_3, pick_4, pick_5, pick_6
    combination: Mapped[str] = mapped_column(String(100), nullable=False)
    payout: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_carryover: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    carryover_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )
