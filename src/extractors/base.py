"""
Extraction cascade shared by every scrape domain.

A domain is described by an ordered list of passes (structural, alternate
structure, text pattern) plus a synthetic generator. Each pass is a pure
function ``(soup, context) -> list[dict]``; rows are validated into the
domain's record model and invalid rows are logged and dropped. The first
pass that yields a valid record wins. When none does, the synthetic
generator produces a placeholder set tagged ``synthetic``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable

from bs4 import BeautifulSoup
from pydantic import BaseModel, ValidationError

from src.core.enums import JobKind, Strategy
from src.core.exceptions import ExtractionError
from src.core.otb_scraper import cell_text, make_soup
from src.core.value_parsers import parse_program_number, parse_race_number
from src.dtos.extraction_dto import ExtractionContext, ExtractionResult

logger = logging.getLogger(__name__)

PassFn = Callable[[BeautifulSoup, ExtractionContext], list[dict[str, Any]]]
SyntheticFn = Callable[[ExtractionContext, int], list[dict[str, Any]]]

_URL_RACE_PATTERNS = (
    re.compile(r"race-(\d{1,2})\b", re.IGNORECASE),
    re.compile(r"[?&]raceNumber=(\d{1,2})\b", re.IGNORECASE),
    re.compile(r"[?&]race=(\d{1,2})\b", re.IGNORECASE),
)


def resolve_race_number(soup: BeautifulSoup | None, context: ExtractionContext) -> int:
    """
    Race number for a single-race page.

    Order: the context, then the URL, then the page's ``.race-info`` or
    ``.race-number`` text, then 1.
    """
    if context.race_number:
        return context.race_number
    if context.source_url:
        for pattern in _URL_RACE_PATTERNS:
            match = pattern.search(context.source_url)
            if match:
                return int(match.group(1))
    if soup is not None:
        for selector in (".race-info", ".race-number"):
            el = soup.select_one(selector)
            number = parse_race_number(cell_text(el)) if el is not None else None
            if number:
                return number
    return 1


def number_runners(raw_numbers: list[str | None]) -> list[tuple[int, str] | None]:
    """
    Program number and coupled-entry letter for each runner row.

    Row position stands in only when no row carries a readable number, so
    a positional number can never shadow another runner's real one. When
    some rows are numbered, the unreadable ones come back as None.
    """
    parsed = [parse_program_number(raw) for raw in raw_numbers]
    if any(p is not None for p in parsed):
        return parsed
    return [(position, "") for position in range(1, len(parsed) + 1)]


def validate_rows(
    model: type[BaseModel], rows: list[dict[str, Any]], source: str
) -> list[BaseModel]:
    """Build records from raw rows; rows that fail validation are dropped."""
    records = []
    for row in rows:
        try:
            records.append(model.model_validate(row))
        except ValidationError as e:
            logger.warning(
                "Dropping invalid %s row from %s: %s",
                model.__name__,
                source,
                e.errors(include_url=False),
            )
    return records


@dataclass(frozen=True)
class DomainExtractor:
    domain: JobKind
    model: type[BaseModel]
    passes: tuple[tuple[Strategy, PassFn], ...]
    synthetic: SyntheticFn

    def run_passes(
        self, soup: BeautifulSoup, context: ExtractionContext
    ) -> tuple[list[BaseModel], Strategy | None]:
        """Run the non-synthetic passes in order; stop at the first with records."""
        for strategy, pass_fn in self.passes:
            try:
                rows = pass_fn(soup, context)
            except (AttributeError, IndexError, KeyError, TypeError, ValueError):
                logger.warning(
                    "%s %s pass raised for %s; treating as empty",
                    self.domain,
                    strategy,
                    context.source_url or context.track_name,
                    exc_info=True,
                )
                continue
            records = validate_rows(self.model, rows, f"{self.domain}/{strategy}")
            if records:
                logger.info(
                    "%s: %d record(s) via %s for %s",
                    self.domain,
                    len(records),
                    strategy,
                    context.track_name,
                )
                return records, strategy
        return [], None

    def synthesize(
        self, soup: BeautifulSoup | None, context: ExtractionContext
    ) -> ExtractionResult:
        race_number = resolve_race_number(soup, context)
        logger.warning(
            "No %s data found for %s race %d; using synthetic fallback",
            self.domain,
            context.track_name,
            race_number,
        )
        rows = self.synthetic(context, race_number)
        records = validate_rows(self.model, rows, f"{self.domain}/synthetic")
        if not records:
            raise ExtractionError(
                f"Synthetic {self.domain} generator produced no valid records"
            )
        return ExtractionResult(
            domain=self.domain,
            records=records,
            strategy_used=Strategy.synthetic,
            is_synthetic=True,
        )

    def extract(
        self, html: str, context: ExtractionContext, max_records: int | None = None
    ) -> ExtractionResult:
        """Full cascade over one document. Never returns an empty result."""
        soup = make_soup(html)
        records, strategy = self.run_passes(soup, context)
        if not records:
            return self.synthesize(soup, context)
        if max_records is not None:
            records = records[:max_records]
        return ExtractionResult(
            domain=self.domain,
            records=records,
            strategy_used=strategy,
            is_synthetic=False,
        )
