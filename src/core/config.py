"""Process-wide settings, read once from the environment (or ``.env``).

Services take the settings object as an explicit ``config`` argument so tests
can thread their own values through instead of patching globals.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class OddsPulseConfig(BaseModel):
    """
    Toggles for the low-latency odds push path.

    The feed pushes on its own schedule; ``polling_interval`` and
    ``max_races_per_track`` are advertised to it through
    ``GET /odds-pulse/config`` and are not enforced here.
    """

    enabled: bool = False
    polling_interval: int = Field(60, gt=0, description="Seconds between pushes")
    retry_attempts: int = Field(3, ge=1)
    retry_delay: float = Field(5, ge=0, description="Seconds between retries")
    max_races_per_track: int = Field(20, gt=0)


class Settings(BaseSettings):
    # --- Database ---
    DATABASE_URL: str = "sqlite:///./racing_odds.db"

    # --- API ---
    API_KEY: str = ""
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # --- Source site ---
    OTB_BASE_URL: str = "https://www.offtrackbetting.com"
    OTB_SCHEDULE_URL: str = "https://www.offtrackbetting.com/horse-racing-schedule.html"

    # --- Scraping ---
    SCRAPE_REQUEST_TIMEOUT: int = 20
    SCRAPE_JOB_TIMEOUT: float = 60
    SCRAPE_DELAY_SECONDS: float = 0
    MAX_RACES_PER_TRACK: int = 20
    ACTIVE_ODDS_WINDOW_MINUTES: int = 40
    ODDS_HISTORY_MAX: int = 20
    DEFAULT_JOB_INTERVALS: dict[str, int] = {
        "entries": 3600,
        "odds": 60,
        "will_pays": 60,
        "results": 900,
    }

    # --- Odds pulse (push path), disabled by default ---
    ODDS_PULSE_ENABLED: bool = False
    ODDS_PULSE_POLLING_INTERVAL: int = 60
    ODDS_PULSE_RETRY_ATTEMPTS: int = 3
    ODDS_PULSE_RETRY_DELAY: float = 5

    model_config = {"env_file": ".env", "case_sensitive": True, "extra": "ignore"}

    def odds_pulse(self) -> OddsPulseConfig:
        return OddsPulseConfig(
            enabled=self.ODDS_PULSE_ENABLED,
            polling_interval=self.ODDS_PULSE_POLLING_INTERVAL,
            retry_attempts=self.ODDS_PULSE_RETRY_ATTEMPTS,
            retry_delay=self.ODDS_PULSE_RETRY_DELAY,
            max_races_per_track=self.MAX_RACES_PER_TRACK,
        )


settings = Settings()
