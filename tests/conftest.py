"""
Shared test fixtures for racing-odds-data.

Provides:
- db_session: In-memory SQLite session with all tables created
- client: FastAPI TestClient with DB dependency override
- now / context: fixed clock and extraction context
- page_fetcher: url -> html stub built from a dict of pages
"""

import os

# Force sqlite for tests; must be set before any src imports.
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from datetime import date, datetime

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.core.exceptions import FetchError
from src.dtos.extraction_dto import ExtractionContext
from src.entities.base import Base

# Import ALL entity modules so Base.metadata.create_all() registers them.
import src.entities.scrape_job  # noqa: F401
import src.entities.race  # noqa: F401
import src.entities.race_horse  # noqa: F401
import src.entities.will_pay  # noqa: F401
import src.entities.race_result  # noqa: F401
import src.entities.dead_letter  # noqa: F401
import src.entities.synthetic_record  # noqa: F401


@pytest.fixture
def db_session():
    """In-memory SQLite for unit tests. Never hits production DB."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)

    TestSession = sessionmaker(bind=engine)
    session = TestSession()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def client(db_session: Session):
    """FastAPI TestClient with DB dependency overridden to use in-memory SQLite."""
    from fastapi.testclient import TestClient
    from src.core.database import get_db
    from src.main import app

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc
    app.dependency_overrides.clear()


@pytest.fixture
def now() -> datetime:
    # a Saturday
    return datetime(2026, 6, 6, 17, 30, 0)


@pytest.fixture
def context(now) -> ExtractionContext:
    return ExtractionContext(
        track_name="Saratoga",
        race_date=date(2026, 6, 6),
        source_url="https://www.offtrackbetting.com/tracks/saratoga",
        captured_at=now,
    )


class PageFetcher:
    """Serves canned pages and records every URL asked for."""

    def __init__(self, pages: dict[str, str]):
        self.pages = pages
        self.calls: list[str] = []

    def __call__(self, url: str) -> str:
        self.calls.append(url)
        if url not in self.pages:
            raise FetchError(url, "404 Not Found", 404)
        return self.pages[url]


@pytest.fixture
def page_fetcher():
    return PageFetcher
