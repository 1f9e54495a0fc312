"""
Quarantine for placeholder data produced by the synthetic extraction pass.
Kept apart from races/results so it is never mistaken for a real scrape.
"""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Integer,
    String,
    UniqueConstraint,
)

from src.core.clock import utcnow
from src.entities.base import Base


class SyntheticRecord(Base):
    __tablename__ = "synthetic_records"
    __table_args__ = (
        UniqueConstraint(
            "domain",
            "track_name",
            "race_number",
            "race_date",
            name="uq_synthetic_records_natural_key",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    domain = Column(String(20), nullable=False)  # odds, will_pays, results, entries
    track_name = Column(String(100), nullable=False, index=True)
    race_number = Column(Integer, nullable=False)
    race_date = Column(Date, nullable=False)
    strategy = Column(String(30), nullable=False, default="synthetic")
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
