"""
Depth-first walk of the entries pages: schedule index -> track page ->
race-day page -> race tables.

Every hop goes through ``_walk`` with the same signature and an explicit
``visited`` set shared by the whole crawl, so a URL is fetched at most once
per run. A fetch or parse failure ends only the branch it happened in.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Callable
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from src.core.config import settings
from src.core.enums import JobKind, Strategy
from src.core.otb_scraper import absolute_url, cell_text, make_soup
from src.core.track_registry import TrackRegistry, default_registry, normalize_track_name
from src.core.value_parsers import find_date_token
from src.dtos.extraction_dto import ExtractionContext, ExtractionResult
from src.dtos.record_dto import EntryRecord
from src.extractors.entries import ENTRIES_EXTRACTOR

logger = logging.getLogger(__name__)

EXCLUDED_LINK_PARTS = ("/results/", "/news/")
TRACK_LINK_PARTS = ("/tracks/", "/racetracks/", "/horse-racing/")
_PRIMARY_SECTION_RE = re.compile(r"Bet Horse Racing with OTB", re.IGNORECASE)
_STRATEGY_ORDER = list(Strategy)


class PageLevel(StrEnum):
    schedule = "schedule"
    track = "track"
    race_day = "race_day"


@dataclass(frozen=True)
class TrackLink:
    name: str
    url: str


@dataclass(frozen=True)
class RaceDayLink:
    url: str
    race_date: date | None


def classify_url(url: str) -> PageLevel:
    """Guess the crawl level of a start URL from its shape."""
    path = urlparse(url).path.lower()
    if find_date_token(url) is not None or "/race-day" in path:
        return PageLevel.race_day
    if any(part in path for part in TRACK_LINK_PARTS):
        return PageLevel.track
    return PageLevel.schedule


def _excluded(href: str) -> bool:
    return any(part in href for part in EXCLUDED_LINK_PARTS)


def _slug_from_href(href: str) -> str:
    path = urlparse(href).path.rstrip("/")
    for part in TRACK_LINK_PARTS:
        if part in path:
            path = path.split(part, 1)[1]
            break
    segment = path.split("/")[0] if path else ""
    return re.sub(r"\.html?$", "", segment)


def _name_from_text(text: str) -> str:
    if "|" in text:
        text = text.split("|")[0]
    if " at " in text:
        text = text.split(" at ", 1)[1].split(" - ")[0]
    text = re.sub(r"^Bet\s+", "", text.strip(), flags=re.IGNORECASE)
    return normalize_track_name(text) if text else ""


def discover_track_links(
    soup: BeautifulSoup, page_url: str, registry: TrackRegistry = default_registry
) -> list[TrackLink]:
    """
    Active track links on a schedule page.

    Prefers the list under the "Bet Horse Racing with OTB" heading and falls
    back to any track-shaped link. Results and news links never count.
    """
    anchors = []
    section = soup.find(["h2", "h3"], string=_PRIMARY_SECTION_RE)
    if section is not None:
        listing = section.find_next_sibling("ul")
        if listing is not None:
            anchors = listing.find_all("a", href=True)
    if not anchors:
        anchors = [
            a
            for a in soup.find_all("a", href=True)
            if any(part in a["href"] for part in TRACK_LINK_PARTS)
        ]

    links: list[TrackLink] = []
    seen_names: set[str] = set()
    seen_urls: set[str] = set()
    for a in anchors:
        href = a["href"]
        if _excluded(href):
            continue
        url = absolute_url(href, page_url)
        slug = _slug_from_href(href)
        if slug and registry.track_for_slug(slug) in registry.tracks:
            name = registry.track_for_slug(slug)
        else:
            name = _name_from_text(cell_text(a)) or (
                registry.track_for_slug(slug) if slug else ""
            )
        if not name or name in seen_names or url in seen_urls:
            continue
        seen_names.add(name)
        seen_urls.add(url)
        links.append(TrackLink(name=name, url=url))
    return links


def find_race_day_link(soup: BeautifulSoup, page_url: str) -> RaceDayLink | None:
    """The first non-results link whose href or text carries a date."""
    for a in soup.find_all("a", href=True):
        href = a["href"]
        if _excluded(href):
            continue
        race_date = find_date_token(href) or find_date_token(cell_text(a))
        if race_date is not None:
            return RaceDayLink(url=absolute_url(href, page_url), race_date=race_date)
    return None


class CrawlNavigator:
    """
    Walks entries pages starting from any level.

    ``fetch`` is a blocking ``url -> html`` callable; tests pass a stub.
    """

    def __init__(
        self,
        fetch: Callable[[str], str],
        registry: TrackRegistry = default_registry,
        max_races_per_track: int = settings.MAX_RACES_PER_TRACK,
    ) -> None:
        self.fetch = fetch
        self.registry = registry
        self.max_races_per_track = max_races_per_track

    def crawl(
        self, url: str, context: ExtractionContext, html: str | None = None
    ) -> ExtractionResult:
        """
        Collect entries reachable from ``url``.

        ``html`` is the already fetched start document, if any. When the walk
        finds no races, the full entries cascade (ending in the synthetic
        fallback) runs on the start document.
        """
        if html is None:
            html = self.fetch(url)
        level = classify_url(url)
        visited: set[str] = set()
        results: list[EntryRecord] = []
        strategies: list[Strategy] = []
        logger.info("Crawling entries from %s (%s level)", url, level)

        self._walk(url, level, context, visited, results, strategies, html=html)

        if not results:
            logger.info("Crawl from %s found no races; parsing start page", url)
            return ENTRIES_EXTRACTOR.extract(
                html, context, max_records=self.max_races_per_track
            )
        logger.info(
            "Crawl from %s collected %d race(s) over %d page(s)",
            url,
            len(results),
            len(visited),
        )
        return ExtractionResult(
            domain=JobKind.entries,
            records=results,
            strategy_used=max(strategies, key=_STRATEGY_ORDER.index),
            is_synthetic=False,
        )

    def _walk(
        self,
        url: str,
        level: PageLevel,
        context: ExtractionContext,
        visited: set[str],
        results: list[EntryRecord],
        strategies: list[Strategy],
        html: str | None = None,
    ) -> None:
        if url in visited:
            logger.debug("Already visited %s", url)
            return
        visited.add(url)

        try:
            soup = make_soup(html if html is not None else self.fetch(url))
        except Exception as e:
            logger.warning("Skipping %s branch at %s: %s", level, url, e)
            return

        if level is PageLevel.schedule:
            for link in discover_track_links(soup, url, self.registry):
                track_context = context.model_copy(
                    update={"track_name": link.name, "source_url": link.url}
                )
                self._walk(
                    link.url, PageLevel.track, track_context, visited, results, strategies
                )
        elif level is PageLevel.track:
            link = find_race_day_link(soup, url)
            if link is None:
                logger.debug("No race-day link on %s", url)
                return
            day_context = context.model_copy(
                update={
                    "source_url": link.url,
                    "race_date": link.race_date or context.race_date,
                }
            )
            self._walk(
                link.url, PageLevel.race_day, day_context, visited, results, strategies
            )
        else:
            self._collect(soup, context, results, strategies)

    def _collect(
        self,
        soup: BeautifulSoup,
        context: ExtractionContext,
        results: list[EntryRecord],
        strategies: list[Strategy],
    ) -> None:
        records, strategy = ENTRIES_EXTRACTOR.run_passes(soup, context)
        if not records:
            return
        have = {(r.track_name, r.race_number, r.race_date) for r in results}
        per_track = sum(1 for key in have if key[0] == normalize_track_name(context.track_name))
        added = 0
        for record in records:
            key = (record.track_name, record.race_number, record.race_date)
            if key in have:
                continue
            if per_track + added >= self.max_races_per_track:
                logger.info(
                    "Race cap of %d reached for %s",
                    self.max_races_per_track,
                    record.track_name,
                )
                break
            have.add(key)
            results.append(record)
            added += 1
        if added:
            strategies.append(strategy)
