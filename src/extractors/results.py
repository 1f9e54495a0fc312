"""
Official finish order and payouts for one race.

Passes:
    structural           ``.results-table`` / ``.finish-table`` rows
                         (position, horse, jockey, time) plus payout blocks
    alternate_structure  any table whose header names a finish position and
                         a horse
    text_pattern         the first five ``N. Name`` lines of the page text
"""

from __future__ import annotations

import re
from typing import Any

from bs4 import BeautifulSoup, Tag

from src.core.enums import JobKind, Strategy
from src.core.otb_scraper import (
    cell_text,
    first_text,
    flatten_text,
    parse_table_rows,
    table_headers,
)
from src.core.value_parsers import clean_value, parse_money, to_int
from src.dtos.extraction_dto import ExtractionContext, ExtractionResult
from src.dtos.record_dto import RaceResultRecord
from src.extractors.base import DomainExtractor, resolve_race_number
from src.extractors.synthetic import synthetic_results

TEXT_FINISHERS = 5
POSITION_HEADERS = ("pos", "pos.", "position", "fin", "fin.", "finish", "place", "plc")
RESULT_TABLES = (
    "table.results-table, table.finish-table, .results-table table, .finish-table table"
)

FINISH_LINE_RE = re.compile(r"^(\d{1,2})\.\s+([A-Za-z][A-Za-z' \-]*[A-Za-z'])")
_ORDINAL_RE = re.compile(r"^(\d{1,2})(?:st|nd|rd|th)?$", re.IGNORECASE)


def _position(raw: str) -> int | None:
    match = _ORDINAL_RE.match(raw.strip())
    return int(match.group(1)) if match else to_int(raw)


def extract_payouts(soup: BeautifulSoup) -> dict[str, float]:
    """Bet descriptor -> amount from ``.payouts`` items and ``.bet-payouts`` rows."""
    payouts: dict[str, float] = {}
    for item in soup.select(".payouts .payout-item"):
        label = first_text(item, ".bet-type")
        amount = parse_money(first_text(item, ".amount"))
        if label and amount is not None:
            payouts[label] = amount
    for table in soup.select(".bet-payouts"):
        for cells in parse_table_rows(table):
            if len(cells) < 2:
                continue
            label = cell_text(cells[0])
            amount = parse_money(cell_text(cells[1]))
            if label and amount is not None:
                payouts[label] = amount
    return payouts


def _record(
    context: ExtractionContext,
    race_number: int,
    finish_order: list[dict[str, Any]],
    payouts: dict[str, float],
) -> dict[str, Any]:
    return {
        "track_name": context.track_name,
        "race_number": race_number,
        "race_date": context.race_date,
        "finish_order": finish_order,
        "payouts": payouts,
        "source_url": context.source_url,
        "captured_at": context.captured_at,
    }


def _finisher(
    position: int | None, name: str, jockey: str | None, time: str | None
) -> dict[str, Any] | None:
    if position is None or not name:
        return None
    return {
        "position": position,
        "horse_name": name,
        "jockey": clean_value(jockey),
        "time": clean_value(time),
    }


def _optional_cell(cells: list[Tag], idx: int | None) -> str | None:
    if idx is None or idx >= len(cells):
        return None
    return cell_text(cells[idx])


def _finish_from_rows(
    rows: list[list[Tag]], columns: tuple[int, int, int | None, int | None]
) -> list[dict[str, Any]]:
    pos_idx, horse_idx, jockey_idx, time_idx = columns
    finish_order = []
    for cells in rows:
        if len(cells) <= max(pos_idx, horse_idx):
            continue
        finisher = _finisher(
            _position(cell_text(cells[pos_idx])),
            cell_text(cells[horse_idx]),
            _optional_cell(cells, jockey_idx),
            _optional_cell(cells, time_idx),
        )
        if finisher is not None:
            finish_order.append(finisher)
    return sorted(finish_order, key=lambda f: f["position"])


def structural_pass(
    soup: BeautifulSoup, context: ExtractionContext
) -> list[dict[str, Any]]:
    rows: list[list[Tag]] = []
    for table in soup.select(RESULT_TABLES):
        rows.extend(parse_table_rows(table))
    finish_order = _finish_from_rows(rows, (0, 1, 2, 3))
    if not finish_order:
        return []
    race_number = resolve_race_number(soup, context)
    return [_record(context, race_number, finish_order, extract_payouts(soup))]


def _header_columns(
    headers: list[str],
) -> tuple[int, int, int | None, int | None] | None:
    pos_idx = horse_idx = jockey_idx = time_idx = None
    for idx, header in enumerate(headers):
        if pos_idx is None and header in POSITION_HEADERS:
            pos_idx = idx
        elif horse_idx is None and "horse" in header:
            horse_idx = idx
        elif jockey_idx is None and "jockey" in header:
            jockey_idx = idx
        elif time_idx is None and "time" in header:
            time_idx = idx
    if pos_idx is None or horse_idx is None:
        return None
    return pos_idx, horse_idx, jockey_idx, time_idx


def alternate_structure_pass(
    soup: BeautifulSoup, context: ExtractionContext
) -> list[dict[str, Any]]:
    for table in soup.find_all("table"):
        columns = _header_columns(table_headers(table))
        if columns is None:
            continue
        finish_order = _finish_from_rows(parse_table_rows(table), columns)
        if finish_order:
            race_number = resolve_race_number(soup, context)
            return [_record(context, race_number, finish_order, extract_payouts(soup))]
    return []


def text_pattern_pass(
    soup: BeautifulSoup, context: ExtractionContext
) -> list[dict[str, Any]]:
    finish_order = []
    for line in flatten_text(soup):
        match = FINISH_LINE_RE.match(line)
        if not match:
            continue
        finish_order.append(
            _finisher(int(match.group(1)), match.group(2).strip(), None, None)
        )
        if len(finish_order) == TEXT_FINISHERS:
            break
    if not finish_order:
        return []
    race_number = resolve_race_number(soup, context)
    return [_record(context, race_number, finish_order, {})]


RESULTS_EXTRACTOR = DomainExtractor(
    domain=JobKind.results,
    model=RaceResultRecord,
    passes=(
        (Strategy.structural, structural_pass),
        (Strategy.alternate_structure, alternate_structure_pass),
        (Strategy.text_pattern, text_pattern_pass),
    ),
    synthetic=synthetic_results,
)


def extract(html: str, context: ExtractionContext) -> ExtractionResult:
    return RESULTS_EXTRACTOR.extract(html, context)
