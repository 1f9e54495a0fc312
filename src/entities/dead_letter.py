"""
Entity for records that could not be matched to a known race.
"""

from __future__ import annotations

from sqlalchemy import JSON, Column, DateTime, Integer, String

from src.core.clock import utcnow
from src.entities.base import Base


class DeadLetter(Base):
    """
    Append-only. Rows are kept for later reconciliation and never
    auto-deleted.
    """

    __tablename__ = "dead_letters"

    id = Column(Integer, primary_key=True, autoincrement=True)
    kind = Column(String(30), nullable=False, index=True)  # odds, odds_pulse
    reason = Column(String(255), nullable=False)
    payload = Column(JSON, nullable=False)
    received_at = Column(DateTime, nullable=False, default=utcnow, index=True)
