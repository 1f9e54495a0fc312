"""
Race cards (entries) from a race-day page: one record per race.

Passes:
    structural           ``Race N`` headings followed by, or sharing a race
                         container with, an entries table
    alternate_structure  any table that itself mentions ``Race N``
    text_pattern         ``Race N`` text segments holding ``PP Name ML`` lines

Races beyond ``MAX_RACES_PER_TRACK`` are dropped.
"""

from __future__ import annotations

import re
from typing import Any

from bs4 import BeautifulSoup, Tag

from src.core.config import settings
from src.core.enums import JobKind, Strategy
from src.core.otb_scraper import (
    cell_text,
    first_text,
    flatten_text,
    parse_table_rows,
    table_headers,
)
from src.core.value_parsers import (
    OddsSentinel,
    clean_value,
    odds_value,
    parse_odds,
    parse_post_time,
    parse_weight,
)
from src.dtos.extraction_dto import ExtractionContext, ExtractionResult
from src.dtos.record_dto import EntryRecord
from src.extractors.base import DomainExtractor, number_runners
from src.extractors.odds import ODDS_LINE_RE
from src.extractors.synthetic import synthetic_entries

RACE_HEADING_RE = re.compile(r"\bRace\s*#?\s*(\d{1,2})\b", re.IGNORECASE)
_RACE_LINE_RE = re.compile(r"^Race\s*#?\s*(\d{1,2})\b(.*)$", re.IGNORECASE)
DISTANCE_RE = re.compile(
    r"\b(\d+(?:\s+\d/\d+)?\s*(?:Furlongs?|Miles?|Yards?))\b", re.IGNORECASE
)
SURFACE_RE = re.compile(
    r"\b(Inner Turf|All Weather|Dirt|Turf|Synthetic)\b", re.IGNORECASE
)

HEADING_SELECTOR = "h2, h3, .race-header, .race-title"
CONTAINER_CLASSES = ["race-container", "race-section", "race-card"]
ENTRIES_CLASSES = {"entries-table", "entries-list"}
CONDITIONS_SELECTOR = ".race-conditions, .conditions, .race-details"

COLUMN_HEADERS: dict[str, tuple[str, ...]] = {
    "pp": ("pp", "post", "#", "pgm", "p#", "no", "no."),
    "horse": ("horse", "horse name", "name", "runner"),
    "ml": ("ml", "m/l", "morning line", "odds"),
    "jockey": ("jockey",),
    "trainer": ("trainer",),
    "medication": ("med", "med.", "meds", "medication"),
    "weight": ("wt", "wt.", "wgt", "weight"),
}


def _header_columns(headers: list[str]) -> dict[str, int]:
    columns: dict[str, int] = {}
    for idx, header in enumerate(headers):
        for key, names in COLUMN_HEADERS.items():
            if key not in columns and header in names:
                columns[key] = idx
                break
    return columns if "horse" in columns else {}


def _looks_like_odds(text: str) -> bool:
    return ("/" in text or "-" in text) and "@" not in text and len(text) < 10


def _nth(cells: list[Tag], idx: int) -> str | None:
    return cell_text(cells[idx]) if idx < len(cells) else None


def _horse_from_cells(
    cells: list[Tag], columns: dict[str, int]
) -> tuple[str | None, dict[str, Any]] | None:
    if len(cells) < 3:
        return None

    def col(key: str) -> str | None:
        idx = columns.get(key)
        if idx is None or idx >= len(cells):
            return None
        return cell_text(cells[idx])

    tr = cells[0].parent
    if columns:
        pp_raw, name, ml_raw = col("pp"), col("horse"), col("ml")
        jockey, trainer = col("jockey"), col("trainer")
        medication, weight_raw = col("medication"), col("weight")
    else:
        # headerless card: PP, horse, then ML wherever it appears
        pp_raw, name = cell_text(cells[0]), cell_text(cells[1])
        ml_raw = next(
            (cell_text(c) for c in cells[2:] if _looks_like_odds(cell_text(c))), None
        )
        jockey = first_text(tr, ".jockey") or _nth(cells, 3)
        trainer = first_text(tr, ".trainer") or _nth(cells, 4)
        medication, weight_raw = first_text(tr, ".med"), first_text(tr, ".weight")

    if not name:
        return None
    scratched = "scratched" in (tr.get("class") or []) or "(SCR)" in name.upper()
    if ml_raw and parse_odds(ml_raw) is OddsSentinel.scratched:
        scratched = True
    name = re.sub(r"\s*\(SCR\)\s*", "", name, flags=re.IGNORECASE).strip()

    return pp_raw, {
        "horse_name": name,
        "morning_line": odds_value(ml_raw),
        "jockey": clean_value(jockey),
        "trainer": clean_value(trainer),
        "medication": clean_value(medication),
        "weight": parse_weight(weight_raw),
        "scratched": scratched,
    }


def horses_from_table(table: Tag) -> list[dict[str, Any]]:
    columns = _header_columns(table_headers(table))
    parsed = [_horse_from_cells(cells, columns) for cells in parse_table_rows(table)]
    rows = [row for row in parsed if row is not None]
    horses = []
    seen: set[tuple[int, str]] = set()
    for program, (_, horse) in zip(number_runners([pp for pp, _ in rows]), rows):
        if program is None or program in seen:
            continue
        seen.add(program)
        horse["post_position"], horse["program_suffix"] = program
        horses.append(horse)
    return horses


def _conditions(table: Tag, container: Tag | None) -> str | None:
    if container is not None:
        text = first_text(container, CONDITIONS_SELECTOR)
        if text:
            return text
    prev = table.find_previous_sibling(["p", "div"])
    if prev is not None and len(cell_text(prev)) > 20:
        return cell_text(prev)
    return None


def _race_info(
    context: ExtractionContext,
    race_number: int,
    heading_text: str,
    conditions: str | None,
    post_time_text: str | None = None,
) -> dict[str, Any]:
    described = " ".join(t for t in (heading_text, conditions) if t)
    distance = DISTANCE_RE.search(described)
    surface = SURFACE_RE.search(described)
    return {
        "track_name": context.track_name,
        "race_number": race_number,
        "race_date": context.race_date,
        "post_time": parse_post_time(post_time_text or heading_text),
        "distance": distance.group(1) if distance else None,
        "surface": surface.group(1).title() if surface else None,
        "conditions": conditions,
    }


def _entries_table_after(heading: Tag) -> Tag | None:
    sibling = heading.find_next_sibling()
    if sibling is None:
        return None
    if sibling.name == "table":
        return sibling
    if ENTRIES_CLASSES & set(sibling.get("class") or []):
        return sibling.find("table")
    return None


def structural_pass(
    soup: BeautifulSoup, context: ExtractionContext
) -> list[dict[str, Any]]:
    races: list[dict[str, Any]] = []
    seen: set[int] = set()
    for heading in soup.select(HEADING_SELECTOR):
        heading_text = cell_text(heading)
        match = RACE_HEADING_RE.search(heading_text)
        if not match:
            continue
        race_number = int(match.group(1))
        if race_number in seen:
            continue

        container = heading.find_parent(class_=CONTAINER_CLASSES)
        table = _entries_table_after(heading)
        if table is None and container is not None:
            table = container.find("table")
        if table is None:
            continue

        horses = horses_from_table(table)
        if not horses:
            continue
        seen.add(race_number)
        post_time = None
        if container is not None:
            post_time = first_text(container, ".post-time")
        races.append(
            {
                "race": _race_info(
                    context,
                    race_number,
                    heading_text,
                    _conditions(table, container),
                    post_time,
                ),
                "horses": horses,
            }
        )
    return races


def alternate_structure_pass(
    soup: BeautifulSoup, context: ExtractionContext
) -> list[dict[str, Any]]:
    races: list[dict[str, Any]] = []
    seen: set[int] = set()
    for table in soup.find_all("table"):
        label = cell_text(table.find("caption")) or cell_text(table.find("tr"))
        match = RACE_HEADING_RE.search(label)
        if match is None:
            match = RACE_HEADING_RE.search(cell_text(table))
        if not match:
            continue
        race_number = int(match.group(1))
        if race_number in seen:
            continue
        horses = horses_from_table(table)
        if not horses:
            continue
        seen.add(race_number)
        races.append(
            {
                "race": _race_info(
                    context, race_number, label, _conditions(table, None)
                ),
                "horses": horses,
            }
        )
    return races


def text_pattern_pass(
    soup: BeautifulSoup, context: ExtractionContext
) -> list[dict[str, Any]]:
    segments: list[tuple[int, str, list[dict[str, Any]]]] = []
    current: list[dict[str, Any]] | None = None
    seen_pp: set[tuple[int, str]] = set()
    for line in flatten_text(soup):
        race_line = _RACE_LINE_RE.match(line)
        if race_line:
            current = []
            seen_pp = set()
            segments.append((int(race_line.group(1)), line, current))
            continue
        if current is None:
            continue
        match = ODDS_LINE_RE.match(line)
        if not match:
            continue
        pp = (int(match.group("program")), match.group("suffix").upper())
        if pp in seen_pp:
            continue
        seen_pp.add(pp)
        ml = parse_odds(match.group("odds"))
        current.append(
            {
                "post_position": pp[0],
                "program_suffix": pp[1],
                "horse_name": match.group("name").strip(),
                "morning_line": ml if isinstance(ml, float) else None,
                "scratched": ml is OddsSentinel.scratched,
            }
        )

    races: list[dict[str, Any]] = []
    seen: set[int] = set()
    for race_number, heading_line, horses in segments:
        if not horses or race_number in seen:
            continue
        seen.add(race_number)
        races.append(
            {
                "race": _race_info(context, race_number, heading_line, None),
                "horses": horses,
            }
        )
    return races


ENTRIES_EXTRACTOR = DomainExtractor(
    domain=JobKind.entries,
    model=EntryRecord,
    passes=(
        (Strategy.structural, structural_pass),
        (Strategy.alternate_structure, alternate_structure_pass),
        (Strategy.text_pattern, text_pattern_pass),
    ),
    synthetic=synthetic_entries,
)


def extract(
    html: str, context: ExtractionContext, max_races: int | None = None
) -> ExtractionResult:
    return ENTRIES_EXTRACTOR.extract(
        html, context, max_records=max_races or settings.MAX_RACES_PER_TRACK
    )
