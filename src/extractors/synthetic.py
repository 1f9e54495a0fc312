"""
Deterministic placeholder data for pages no extraction pass could read.

Every generator is seeded with ``crc32("TRACK|race")`` so the same track
and race always produce the same rows. Output has the same shape as a
genuine scrape; callers tag it ``synthetic`` and the ingestion layer keeps
it out of the real tables.
"""

from __future__ import annotations

import random
import zlib
from typing import Any

from src.dtos.extraction_dto import ExtractionContext

HORSE_NAMES = [
    "Lucky Star", "Thunder Road", "Midnight Runner", "Golden Arrow",
    "Silver Bullet", "Desert Wind", "Royal Flush", "Storm Chaser",
    "Blue Horizon", "Fast Company", "Iron Will", "Quiet Storm",
    "Northern Light", "Red Rocket", "Wild Card", "Sea Breeze",
    "High Noon", "Dark Horse", "Morning Glory", "Brave Heart",
]

JOCKEYS = [
    "I. Ortiz Jr.", "J. Rosario", "F. Prat", "J. Velazquez", "T. Gaffalione",
    "L. Saez", "J. Castellano", "M. Smith", "F. Geroux", "J. Ortiz",
]

TRAINERS = [
    "T. Pletcher", "C. Brown", "B. Cox", "S. Asmussen", "W. Mott",
    "M. Casse", "B. Baffert", "C. McGaughey", "D. Romans", "K. McPeek",
]

ODDS_LADDER = [1.5, 2.0, 2.5, 3.0, 3.5, 4.0, 5.0, 6.0, 8.0, 10.0, 12.0, 15.0, 20.0, 30.0]

DISTANCES = ["6 Furlongs", "7 Furlongs", "1 Mile", "1 1/16 Miles"]

RESULT_PAYOUTS = {
    "Win (1)": 8.40,
    "Place (1)": 3.80,
    "Show (1)": 2.60,
    "Exacta (1-2)": 42.80,
    "Trifecta (1-2-3)": 182.50,
}

ODDS_FIELD_SIZE = 8
RESULTS_FIELD_SIZE = 5
ENTRIES_FIELD_SIZE = 6


def seed_for(track_name: str, race_number: int) -> int:
    return zlib.crc32(f"{track_name.upper()}|{race_number}".encode("utf-8"))


def _rng(context: ExtractionContext, race_number: int) -> random.Random:
    return random.Random(seed_for(context.track_name, race_number))


def _key(context: ExtractionContext, race_number: int) -> dict[str, Any]:
    return {
        "track_name": context.track_name,
        "race_number": race_number,
        "race_date": context.race_date,
    }


def synthetic_odds(
    context: ExtractionContext, race_number: int
) -> list[dict[str, Any]]:
    rng = _rng(context, race_number)
    names = rng.sample(HORSE_NAMES, ODDS_FIELD_SIZE)
    rows = []
    for program_number, name in enumerate(names, start=1):
        rows.append(
            {
                **_key(context, race_number),
                "program_number": program_number,
                "horse_name": name,
                "current_odds": rng.choice(ODDS_LADDER),
                "pool_data": {"win": float(rng.randrange(500, 20000, 50))},
                "captured_at": context.captured_at,
            }
        )
    return rows


def synthetic_will_pays(
    context: ExtractionContext, race_number: int
) -> list[dict[str, Any]]:
    """A daily-double set: the seeded winner of the first leg against every runner."""
    rng = _rng(context, race_number)
    first_leg = rng.randint(1, ENTRIES_FIELD_SIZE)
    rows = []
    for second_leg in range(1, ENTRIES_FIELD_SIZE + 1):
        rows.append(
            {
                **_key(context, race_number),
                "wager_type": "double",
                "combination": f"{first_leg}-{second_leg}",
                "payout": round(rng.uniform(8, 120), 2),
                "is_carryover": False,
                "carryover_amount": None,
            }
        )
    return rows


def synthetic_results(
    context: ExtractionContext, race_number: int
) -> list[dict[str, Any]]:
    rng = _rng(context, race_number)
    names = rng.sample(HORSE_NAMES, RESULTS_FIELD_SIZE)
    jockeys = rng.sample(JOCKEYS, RESULTS_FIELD_SIZE)
    base_hundredths = rng.randint(7000, 11000)
    finish_order = []
    for position, (name, jockey) in enumerate(zip(names, jockeys), start=1):
        hundredths = base_hundredths + (position - 1) * rng.randint(10, 60)
        minutes, rest = divmod(hundredths, 6000)
        finish_order.append(
            {
                "position": position,
                "horse_name": name,
                "jockey": jockey,
                "time": f"{minutes}:{rest / 100:05.2f}",
            }
        )
    return [
        {
            **_key(context, race_number),
            "finish_order": finish_order,
            "payouts": dict(RESULT_PAYOUTS),
            "source_url": context.source_url,
            "captured_at": context.captured_at,
        }
    ]


def synthetic_entries(
    context: ExtractionContext, race_number: int
) -> list[dict[str, Any]]:
    rng = _rng(context, race_number)
    names = rng.sample(HORSE_NAMES, ENTRIES_FIELD_SIZE)
    horses = []
    for post_position, name in enumerate(names, start=1):
        horses.append(
            {
                "post_position": post_position,
                "horse_name": name,
                "morning_line": rng.choice(ODDS_LADDER),
                "jockey": rng.choice(JOCKEYS),
                "trainer": rng.choice(TRAINERS),
                "medication": "L",
                "weight": rng.randint(118, 126),
                "scratched": False,
            }
        )
    return [
        {
            "race": {
                **_key(context, race_number),
                "distance": rng.choice(DISTANCES),
                "surface": rng.choice(["Dirt", "Turf"]),
            },
            "horses": horses,
        }
    ]
