"""Pure converters from raw scraped tokens to typed values.

Every helper returns a parsed value or ``None``; raw strings never leak
through. Odds parsing additionally returns an ``OddsSentinel`` for entries
marked scratched or main-track-only.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from enum import StrEnum
from typing import Optional

import numpy as np
import pandas as pd

from src.core.enums import WagerType

_DASHES = ("---", "--", "-", "N/A", "NA")

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%A, %B %d, %Y",
    "%d %B %Y",
)

DATE_TOKEN_RE = re.compile(
    r"\b(\d{4}-\d{2}-\d{2}"
    r"|\d{1,2}/\d{1,2}/\d{2,4}"
    r"|(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec)[a-z]*\.?\s+\d{1,2},\s*\d{4})\b",
    re.IGNORECASE,
)
_TIME_RE = re.compile(r"(\d{1,2}):(\d{2})\s*(A\.?M\.?|P\.?M\.?)?", re.IGNORECASE)
_RACE_NUMBER_RE = re.compile(r"(?:Race|R)\s*#?\s*(\d{1,2})\b", re.IGNORECASE)
_PROGRAM_RE = re.compile(r"^#?\s*(\d{1,2})\s*([A-Z]?)$", re.IGNORECASE)
_MONEY_RE = re.compile(r"-?\d[\d,]*(?:\.\d+)?")

_WAGER_PATTERNS = (
    (re.compile(r"daily\s+double|\bdouble\b|\bDD\b", re.IGNORECASE), WagerType.double),
    (re.compile(r"pick[\s-]*3|\bP3\b", re.IGNORECASE), WagerType.pick_3),
    (re.compile(r"pick[\s-]*4|\bP4\b", re.IGNORECASE), WagerType.pick_4),
    (re.compile(r"pick[\s-]*5|\bP5\b", re.IGNORECASE), WagerType.pick_5),
    (re.compile(r"pick[\s-]*6|\bP6\b", re.IGNORECASE), WagerType.pick_6),
)


class OddsSentinel(StrEnum):
    scratched = "SCR"
    main_track_only = "MTO"


def clean_value(v):
    """Convert empty strings to None, pandas/numpy types to Python natives."""
    if v is None or v == "":
        return None
    try:
        if pd.isna(v):
            return None
    except (TypeError, ValueError):
        pass
    if isinstance(v, np.generic):
        return v.item()
    if isinstance(v, str):
        v = " ".join(v.split())
        return v or None
    return v


def to_int(v) -> Optional[int]:
    """Convert string to int, return None for non-numeric values."""
    v = clean_value(v)
    if v is None:
        return None
    try:
        s = str(v).replace(",", "").replace("*", "").replace("+", "").strip()
        if not s:
            return None
        return int(float(s))
    except (ValueError, TypeError):
        return None


def to_decimal(v) -> Optional[float]:
    """Convert string to float, return None for non-numeric."""
    v = clean_value(v)
    if v is None:
        return None
    try:
        s = (
            str(v)
            .replace(",", "")
            .replace("*", "")
            .replace("+", "")
            .replace("%", "")
            .strip()
        )
        if not s:
            return None
        return float(s)
    except (ValueError, TypeError):
        return None


def parse_odds(raw) -> float | OddsSentinel | None:
    """
    Parse a tote-board odds token into odds-to-one.

    ``"5/2"`` and ``"5-2"`` become 2.5, ``"EVEN"`` becomes 1.0, plain
    numbers pass through. ``SCR`` and ``MTO`` return the matching sentinel;
    blanks, dashes and anything unparseable return None.
    """
    token = clean_value(raw)
    if token is None:
        return None
    token = str(token).upper().strip()
    token = re.sub(r"\s*\bML\b$", "", token).strip()

    if token in ("SCR", "SCRATCHED", "SCRATCH"):
        return OddsSentinel.scratched
    if token in ("MTO", "M.T.O."):
        return OddsSentinel.main_track_only
    if token in _DASHES or not token:
        return None
    if token in ("EVEN", "EVENS", "EVN", "EVS"):
        return 1.0

    for sep in ("/", "-"):
        if sep in token:
            parts = token.split(sep)
            if len(parts) != 2:
                return None
            try:
                numerator = float(parts[0])
                denominator = float(parts[1])
            except ValueError:
                return None
            if denominator <= 0 or numerator < 0:
                return None
            return round(numerator / denominator, 2)

    try:
        value = float(token)
    except ValueError:
        return None
    return round(value, 2) if value >= 0 else None


def odds_value(raw) -> Optional[float]:
    """Like ``parse_odds`` but collapses sentinels to None."""
    parsed = parse_odds(raw)
    return parsed if isinstance(parsed, float) else None


def parse_money(raw) -> Optional[float]:
    """``"$1,234.50"`` -> 1234.5; None when no number is present."""
    token = clean_value(raw)
    if token is None:
        return None
    if isinstance(token, (int, float)):
        return float(token)
    match = _MONEY_RE.search(str(token).replace("$", ""))
    if not match:
        return None
    try:
        return float(match.group(0).replace(",", ""))
    except ValueError:
        return None


def parse_post_time(raw) -> Optional[time]:
    """Parse ``"1:05 PM"``, ``"13:05"`` or ``"1:05 p.m."`` into a time."""
    token = clean_value(raw)
    if token is None:
        return None
    match = _TIME_RE.search(str(token))
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    meridiem = (match.group(3) or "").replace(".", "").upper()
    if minutes > 59:
        return None
    if meridiem:
        if not 1 <= hours <= 12:
            return None
        if meridiem == "PM" and hours != 12:
            hours += 12
        elif meridiem == "AM" and hours == 12:
            hours = 0
    elif hours > 23:
        return None
    return time(hours, minutes)


def parse_weight(raw) -> Optional[int]:
    """Carried weight in pounds, e.g. ``"122"``, ``"118*"``, ``"120 lbs"``."""
    token = clean_value(raw)
    if token is None:
        return None
    match = re.search(r"\d{2,3}", str(token))
    if not match:
        return None
    value = int(match.group(0))
    return value if 80 <= value <= 200 else None


def parse_race_number(raw) -> Optional[int]:
    """``"Race 5"``, ``"R5"`` or a bare ``"5"``."""
    token = clean_value(raw)
    if token is None:
        return None
    text = str(token)
    match = _RACE_NUMBER_RE.search(text)
    if match:
        return int(match.group(1))
    if text.strip().isdigit():
        return int(text.strip())
    return None


def parse_program_number(raw) -> Optional[tuple[int, str]]:
    """
    Saddle-cloth number plus coupled-entry letter.

    ``"1"`` -> ``(1, "")``, ``"1A"`` -> ``(1, "A")``, ``"#2x"`` -> ``(2, "X")``.
    Anything else, including blanks, is None.
    """
    token = clean_value(raw)
    if token is None:
        return None
    if isinstance(token, (int, float)):
        return (int(token), "")
    match = _PROGRAM_RE.match(str(token).strip())
    if not match:
        return None
    return int(match.group(1)), match.group(2).upper()


def parse_race_date(raw) -> Optional[date]:
    token = clean_value(raw)
    if token is None:
        return None
    if isinstance(token, datetime):
        return token.date()
    if isinstance(token, date):
        return token
    text = str(token).replace("Sept", "Sep")
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def find_date_token(text: str | None) -> Optional[date]:
    """Return the first parseable date found anywhere in ``text``."""
    if not text:
        return None
    for match in DATE_TOKEN_RE.finditer(text):
        parsed = parse_race_date(match.group(1))
        if parsed is not None:
            return parsed
    return None


def parse_timestamp(raw) -> Optional[datetime]:
    """ISO-8601 timestamp (``Z`` suffix allowed) as a naive UTC datetime."""
    token = clean_value(raw)
    if token is None:
        return None
    if isinstance(token, datetime):
        value = token
    else:
        try:
            value = datetime.fromisoformat(str(token).replace("Z", "+00:00"))
        except ValueError:
            return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_wager_type(label) -> Optional[WagerType]:
    token = clean_value(label)
    if token is None:
        return None
    for pattern, wager in _WAGER_PATTERNS:
        if pattern.search(str(token)):
            return wager
    return None
