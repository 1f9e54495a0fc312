"""
Projected payouts for multi-race exotics (daily double, pick 3 to pick 6).

Passes:
    structural           wager-classed tables (``.double-table``,
                         ``.pick3-table``...) with an optional carryover note
                         just before the table
    alternate_structure  any table whose caption, preceding heading or first
                         header names a wager
    text_pattern         ``Pick N (a-b-c) $x`` / ``Daily Double (a-b) $x`` text
"""

from __future__ import annotations

import re
from typing import Any

from bs4 import BeautifulSoup, Tag

from src.core.enums import JobKind, Strategy, WagerType
from src.core.otb_scraper import (
    cell_text,
    flatten_text,
    parse_table_rows,
    table_headers,
)
from src.core.value_parsers import clean_value, parse_money, parse_wager_type
from src.dtos.extraction_dto import ExtractionContext, ExtractionResult
from src.dtos.record_dto import WillPayRecord
from src.extractors.base import DomainExtractor, resolve_race_number
from src.extractors.synthetic import synthetic_will_pays

WAGER_SELECTORS: tuple[tuple[str, WagerType], ...] = (
    (".double-table, .daily-double", WagerType.double),
    (".pick3-table, .pick-3", WagerType.pick_3),
    (".pick4-table, .pick-4", WagerType.pick_4),
    (".pick5-table, .pick-5", WagerType.pick_5),
    (".pick6-table, .pick-6", WagerType.pick_6),
)

LEGS: dict[WagerType, int] = {
    WagerType.double: 2,
    WagerType.pick_3: 3,
    WagerType.pick_4: 4,
    WagerType.pick_5: 5,
    WagerType.pick_6: 6,
}

WILL_PAY_LINE_RE = re.compile(
    r"(Daily\s+Double|Pick[\s-]*[3-6])\D*?"
    r"(\d{1,2}(?:\s*[,/-]\s*\d{1,2})+)"
    r"\s*\)?.*?\$\s*([\d,]+(?:\.\d{1,2})?)",
    re.IGNORECASE,
)
_CARRYOVER_RE = re.compile(r"carry\s*-?\s*over", re.IGNORECASE)
_HEADINGS = ["h1", "h2", "h3", "h4", "h5", "h6"]


def normalize_combination(raw: str) -> str | None:
    """``"4, 5 / 1"`` -> ``"4-5-1"``; None when no runner numbers are present."""
    text = clean_value(raw)
    if text is None:
        return None
    parts = [p for p in re.split(r"\s*[,/\-]\s*|\s+", str(text)) if p]
    if not parts or not any(p[0].isdigit() for p in parts):
        return None
    return "-".join(parts)


def _carryover(note: str) -> tuple[bool, float | None]:
    if not note or not _CARRYOVER_RE.search(note):
        return False, None
    return True, parse_money(note.split("$", 1)[1]) if "$" in note else None


def _carryover_note(table: Tag) -> str:
    prev = table.find_previous_sibling()
    if prev is None:
        return ""
    classes = prev.get("class") or []
    if prev.name == "p" or "carryover" in classes:
        return cell_text(prev)
    return ""


def _tables_in(el: Tag) -> list[Tag]:
    return [el] if el.name == "table" else el.find_all("table")


def _rows_from_table(
    table: Tag,
    wager: WagerType,
    context: ExtractionContext,
    race_number: int,
    note: str,
) -> list[dict[str, Any]]:
    is_carryover, carryover_amount = _carryover(note)
    rows = []
    for cells in parse_table_rows(table):
        combination = normalize_combination(cell_text(cells[0]))
        if combination is None:
            continue
        payout = parse_money(cell_text(cells[1])) if len(cells) > 1 else None
        rows.append(
            {
                "track_name": context.track_name,
                "race_number": race_number,
                "race_date": context.race_date,
                "wager_type": wager,
                "combination": combination,
                "payout": payout,
                "is_carryover": is_carryover,
                "carryover_amount": carryover_amount,
            }
        )
    return rows


def structural_pass(
    soup: BeautifulSoup, context: ExtractionContext
) -> list[dict[str, Any]]:
    race_number = resolve_race_number(soup, context)
    rows: list[dict[str, Any]] = []
    for selector, wager in WAGER_SELECTORS:
        for el in soup.select(selector):
            for table in _tables_in(el):
                note = _carryover_note(table)
                if not note and table is not el:
                    note = _carryover_note(el)
                rows.extend(_rows_from_table(table, wager, context, race_number, note))
    return rows


def _table_label(table: Tag) -> str:
    caption = table.find("caption")
    if caption is not None and cell_text(caption):
        return cell_text(caption)
    heading = table.find_previous_sibling(_HEADINGS)
    if heading is not None:
        return cell_text(heading)
    headers = table_headers(table)
    return headers[0] if headers else ""


def alternate_structure_pass(
    soup: BeautifulSoup, context: ExtractionContext
) -> list[dict[str, Any]]:
    race_number = resolve_race_number(soup, context)
    rows: list[dict[str, Any]] = []
    for table in soup.find_all("table"):
        label = _table_label(table)
        wager = parse_wager_type(label)
        if wager is None:
            continue
        note = label if _CARRYOVER_RE.search(label) else _carryover_note(table)
        rows.extend(_rows_from_table(table, wager, context, race_number, note))
    return rows


def text_pattern_pass(
    soup: BeautifulSoup, context: ExtractionContext
) -> list[dict[str, Any]]:
    race_number = resolve_race_number(soup, context)
    rows: list[dict[str, Any]] = []
    for line in flatten_text(soup):
        for match in WILL_PAY_LINE_RE.finditer(line):
            wager = parse_wager_type(match.group(1))
            combination = normalize_combination(match.group(2))
            if wager is None or combination is None:
                continue
            if len(combination.split("-")) != LEGS[wager]:
                continue
            rows.append(
                {
                    "track_name": context.track_name,
                    "race_number": race_number,
                    "race_date": context.race_date,
                    "wager_type": wager,
                    "combination": combination,
                    "payout": parse_money(match.group(3)),
                    "is_carryover": bool(_CARRYOVER_RE.search(line)),
                    "carryover_amount": None,
                }
            )
    return rows


WILL_PAYS_EXTRACTOR = DomainExtractor(
    domain=JobKind.will_pays,
    model=WillPayRecord,
    passes=(
        (Strategy.structural, structural_pass),
        (Strategy.alternate_structure, alternate_structure_pass),
        (Strategy.text_pattern, text_pattern_pass),
    ),
    synthetic=synthetic_will_pays,
)


def extract(html: str, context: ExtractionContext) -> ExtractionResult:
    return WILL_PAYS_EXTRACTOR.extract(html, context)
