"""
Static lookup of tracks on offtrackbetting.com.

Maps a track display name to the site's URL slug and to the weekdays it
races, and builds the page URL for each scrape kind. Instances are
immutable; the module-level ``default_registry`` is shared freely.
"""

from __future__ import annotations

import calendar
import re
from datetime import datetime
from types import MappingProxyType
from typing import Mapping

from src.core.config import settings
from src.core.enums import JobKind

TRACK_SLUGS: dict[str, str] = {
    "CHURCHILL DOWNS": "churchill-downs",
    "BELMONT PARK": "belmont-park",
    "AQUEDUCT": "aqueduct",
    "GULFSTREAM": "gulfstream-park",
    "DEL MAR": "del-mar",
    "KEENELAND": "keeneland",
    "KENTUCKY DOWNS": "kentucky-downs",
    "OAKLAWN PARK": "oaklawn-park",
    "PIMLICO": "pimlico",
    "LOS ALAMITOS-DAY": "los-alamitos-race-course",
    "LOS ALAMITOS-NIGHT": "los-alamitos-race-course-night",
    "SARATOGA": "saratoga",
    "SANTA ANITA": "santa-anita",
}

TRACK_SCHEDULE: dict[str, tuple[str, ...]] = {
    "CHURCHILL DOWNS": ("Thursday", "Friday", "Saturday", "Sunday"),
    "BELMONT PARK": ("Thursday", "Friday", "Saturday", "Sunday"),
    "AQUEDUCT": ("Friday", "Saturday", "Sunday"),
    "GULFSTREAM": ("Thursday", "Friday", "Saturday", "Sunday"),
    "DEL MAR": ("Friday", "Saturday", "Sunday"),
    "KEENELAND": ("Wednesday", "Thursday", "Friday", "Saturday", "Sunday"),
    "KENTUCKY DOWNS": ("Saturday", "Sunday"),
    "OAKLAWN PARK": ("Friday", "Saturday", "Sunday"),
    "PIMLICO": ("Friday", "Saturday", "Sunday"),
    "LOS ALAMITOS-DAY": ("Saturday", "Sunday"),
    "LOS ALAMITOS-NIGHT": ("Friday", "Saturday"),
    "SARATOGA": ("Wednesday", "Thursday", "Friday", "Saturday", "Sunday"),
    "SANTA ANITA": ("Friday", "Saturday", "Sunday"),
}

# Path appended to the track page for each scrape kind.
KIND_SUFFIXES: dict[JobKind, str] = {
    JobKind.odds: "",
    JobKind.will_pays: "/will-pays",
    JobKind.results: "/results",
    JobKind.entries: "/entries",
}


def normalize_track_name(track: str) -> str:
    return " ".join(track.split()).upper()


class TrackRegistry:
    """Pure lookup over slug and race-day tables."""

    def __init__(
        self,
        slugs: Mapping[str, str],
        schedule: Mapping[str, tuple[str, ...] | list[str]],
        base_url: str,
    ) -> None:
        self._slugs = MappingProxyType(
            {normalize_track_name(k): v for k, v in slugs.items()}
        )
        self._schedule = MappingProxyType(
            {normalize_track_name(k): frozenset(days) for k, days in schedule.items()}
        )
        self._base_url = base_url.rstrip("/")
        self._by_slug = MappingProxyType({v: k for k, v in self._slugs.items()})

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def tracks(self) -> list[str]:
        return sorted(self._slugs)

    def slug_for(self, track: str) -> str:
        """Known slug, or the lower-cased name with whitespace runs as ``-``."""
        known = self._slugs.get(normalize_track_name(track))
        if known:
            return known
        return re.sub(r"\s+", "-", track.strip().lower())

    def track_for_slug(self, slug: str) -> str:
        """Display name for a slug; unknown slugs map back to an upper-cased name."""
        slug = slug.strip("/").lower()
        known = self._by_slug.get(slug)
        if known:
            return known
        return slug.replace("-", " ").upper()

    def track_url(self, track: str) -> str:
        return f"{self._base_url}/tracks/{self.slug_for(track)}"

    def resolve_url(
        self, track: str, kind: JobKind | str, race_number: int | None = None
    ) -> str:
        """Default page URL for ``kind`` at ``track``, optionally for one race."""
        url = self.track_url(track) + KIND_SUFFIXES[JobKind(kind)]
        if race_number:
            url += f"?raceNumber={race_number}"
        return url

    def race_days(self, track: str) -> frozenset[str]:
        return self._schedule.get(normalize_track_name(track), frozenset())

    def is_racing_today(self, track: str, now: datetime) -> bool:
        return calendar.day_name[now.weekday()] in self.race_days(track)

    def tracks_racing_on(self, now: datetime) -> list[str]:
        return [t for t in self.tracks if self.is_racing_today(t, now)]


default_registry = TrackRegistry(TRACK_SLUGS, TRACK_SCHEDULE, settings.OTB_BASE_URL)
