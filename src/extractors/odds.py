"""
Live odds for one race.

Passes:
    structural           ``table.odds-table`` rows, columns found by cell
                         class or header text; other numeric columns become
                         pool data
    alternate_structure  ``.horse-entry`` / runner card blocks
    text_pattern         ``N Name ODDS`` lines in the flattened page text
"""

from __future__ import annotations

import re
from typing import Any

from bs4 import BeautifulSoup, Tag

from src.core.enums import HorseStatus, JobKind, Strategy
from src.core.otb_scraper import (
    cell_text,
    first_text,
    flatten_text,
    parse_table_rows,
    table_headers,
)
from src.core.value_parsers import OddsSentinel, parse_money, parse_odds
from src.dtos.extraction_dto import ExtractionContext, ExtractionResult
from src.dtos.record_dto import OddsEntry
from src.extractors.base import DomainExtractor, number_runners, resolve_race_number
from src.extractors.synthetic import synthetic_odds

PROGRAM_HEADERS = ("#", "pp", "no", "no.", "pgm", "program", "post")
NAME_HEADERS = ("horse", "horse name", "name", "runner")
ODDS_HEADERS = ("odds", "win odds", "live odds", "current odds", "current")
SKIP_POOL_HEADERS = ("ml", "m/l", "morning line", "jockey", "trainer", "status")

ODDS_LINE_RE = re.compile(
    r"^(?P<program>\d{1,2})(?P<suffix>[A-Z]?)[.)]?\s+"
    r"(?P<name>[A-Za-z][A-Za-z' .\-]*?[A-Za-z.'])\s+"
    r"(?P<odds>\d+\s*[/-]\s*\d+|\d+(?:\.\d+)?|EVEN|SCR|MTO)$",
    re.IGNORECASE,
)


def status_and_odds(raw: str) -> tuple[HorseStatus, float | None]:
    parsed = parse_odds(raw)
    if parsed is OddsSentinel.scratched:
        return HorseStatus.scratched, None
    if parsed is OddsSentinel.main_track_only:
        return HorseStatus.main_track_only, None
    return HorseStatus.active, parsed


def _row(
    context: ExtractionContext,
    race_number: int,
    program: tuple[int, str],
    horse_name: str,
    odds_raw: str,
    pool_data: dict[str, float | None] | None = None,
) -> dict[str, Any]:
    status, current_odds = status_and_odds(odds_raw)
    program_number, program_suffix = program
    return {
        "track_name": context.track_name,
        "race_number": race_number,
        "race_date": context.race_date,
        "program_number": program_number,
        "program_suffix": program_suffix,
        "horse_name": horse_name,
        "current_odds": current_odds,
        "status": status,
        "pool_data": pool_data or {},
        "captured_at": context.captured_at,
    }


def _column(headers: list[str], names: tuple[str, ...]) -> int | None:
    for idx, header in enumerate(headers):
        if header in names:
            return idx
    return None


def _cell(cells: list[Tag], idx: int | None) -> str:
    if idx is None or idx >= len(cells):
        return ""
    return cell_text(cells[idx])


def _class_cell(row: Tag, selector: str) -> str | None:
    found = row.select_one(selector)
    return cell_text(found) if found is not None else None


def _numbered(
    context: ExtractionContext,
    race_number: int,
    raw_rows: list[tuple[str | None, str, str, dict[str, float | None]]],
) -> list[dict[str, Any]]:
    """Number a group of runner rows; unnumbered rows and repeats are dropped."""
    rows: list[dict[str, Any]] = []
    seen: set[tuple[int, str]] = set()
    programs = number_runners([raw[0] for raw in raw_rows])
    for program, (_, name, odds_raw, pool_data) in zip(programs, raw_rows):
        if program is None or program in seen:
            continue
        seen.add(program)
        rows.append(_row(context, race_number, program, name, odds_raw, pool_data))
    return rows


def structural_pass(
    soup: BeautifulSoup, context: ExtractionContext
) -> list[dict[str, Any]]:
    race_number = resolve_race_number(soup, context)
    rows: list[dict[str, Any]] = []
    for table in soup.select("table.odds-table, .odds-table table"):
        headers = table_headers(table)
        program_idx = _column(headers, PROGRAM_HEADERS)
        name_idx = _column(headers, NAME_HEADERS)
        odds_idx = _column(headers, ODDS_HEADERS)
        known = set(PROGRAM_HEADERS + NAME_HEADERS + ODDS_HEADERS + SKIP_POOL_HEADERS)

        raw_rows = []
        for cells in parse_table_rows(table):
            tr = cells[0].parent
            program_raw = _class_cell(tr, ".horse-number, .pp")
            name = _class_cell(tr, ".horse-name, .entry-name")
            odds_raw = _class_cell(tr, ".win-odds, .odds")
            if program_raw is None:
                program_raw = _cell(cells, program_idx if program_idx is not None else 0)
            if name is None:
                name = _cell(cells, name_idx if name_idx is not None else 1)
            if odds_raw is None:
                odds_raw = _cell(cells, odds_idx if odds_idx is not None else 2)
            if not name:
                continue

            # any other labelled column is a pool figure (win, place, show...)
            pool_data: dict[str, float | None] = {}
            for idx, header in enumerate(headers):
                if idx >= len(cells) or not header or header in known:
                    continue
                pool_data[header] = parse_money(cell_text(cells[idx]))

            raw_rows.append((program_raw, name, odds_raw, pool_data))
        rows.extend(_numbered(context, race_number, raw_rows))
    return rows


def alternate_structure_pass(
    soup: BeautifulSoup, context: ExtractionContext
) -> list[dict[str, Any]]:
    race_number = resolve_race_number(soup, context)
    raw_rows = []
    for block in soup.select(".horse-entry, .runner, .runner-card"):
        name = first_text(block, ".horse-name, .entry-name, .runner-name")
        if not name:
            continue
        program_raw = first_text(
            block, ".horse-number, .pp, .program-number, .saddle-cloth"
        )
        odds_raw = first_text(block, ".win-odds, .odds, .live-odds")
        pool_data = {
            str(el.get("data-pool")).lower(): parse_money(cell_text(el))
            for el in block.select("[data-pool]")
        }
        raw_rows.append((program_raw, name, odds_raw, pool_data))
    return _numbered(context, race_number, raw_rows)


def text_pattern_pass(
    soup: BeautifulSoup, context: ExtractionContext
) -> list[dict[str, Any]]:
    race_number = resolve_race_number(soup, context)
    raw_rows = []
    for line in flatten_text(soup):
        match = ODDS_LINE_RE.match(line)
        if not match:
            continue
        raw_rows.append(
            (
                match.group("program") + match.group("suffix"),
                match.group("name").strip(),
                match.group("odds"),
                {},
            )
        )
    return _numbered(context, race_number, raw_rows)


ODDS_EXTRACTOR = DomainExtractor(
    domain=JobKind.odds,
    model=OddsEntry,
    passes=(
        (Strategy.structural, structural_pass),
        (Strategy.alternate_structure, alternate_structure_pass),
        (Strategy.text_pattern, text_pattern_pass),
    ),
    synthetic=synthetic_odds,
)


def extract(html: str, context: ExtractionContext) -> ExtractionResult:
    return ODDS_EXTRACTOR.extract(html, context)
