"""
Reconciles extracted records with the store.

Every write is an upsert by natural key, so re-ingesting the same records
leaves the store unchanged. Odds that cannot be matched to a known race go
to the dead-letter table instead of creating a race. Synthetic fallback
output never reaches the real tables; it is kept in ``synthetic_records``.

One ``ingest`` call is one transaction: repositories only flush, the service
commits at the end and rolls back if anything raised.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Any

from sqlalchemy.orm import Session

from src.core.config import Settings, settings
from src.core.enums import HorseStatus
from src.core.track_registry import normalize_track_name
from src.core.value_parsers import odds_value, parse_timestamp
from src.dtos.extraction_dto import ExtractionResult
from src.dtos.ingest_dto import IngestSummary
from src.dtos.odds_pulse_dto import OddsPulsePayload
from src.dtos.record_dto import (
    EntryRecord,
    OddsEntry,
    RaceResultRecord,
    WillPayRecord,
)
from src.extractors.odds import status_and_odds
from src.repositories.dead_letter_repo import DeadLetterRepository
from src.repositories.race_horse_repo import RaceHorseRepository
from src.repositories.race_repo import RaceRepository
from src.repositories.race_result_repo import RaceResultRepository
from src.repositories.synthetic_record_repo import SyntheticRecordRepository
from src.repositories.will_pay_repo import WillPayRepository

logger = logging.getLogger(__name__)

NO_MATCHING_RACE = "no matching race found"


def _sample_time(sample: dict[str, Any]) -> datetime:
    return parse_timestamp(sample.get("timestamp")) or datetime.min


def merge_odds_history(
    existing: list[dict[str, Any]] | None, sample: dict[str, Any], cap: int
) -> list[dict[str, Any]]:
    """
    Add one ``{"timestamp", "odds"}`` sample to a history list.

    A sample already present for the same timestamp is replaced. The result
    is ordered newest first and holds at most ``cap`` samples. The input
    list is not modified.
    """
    stamp = _sample_time(sample)
    kept = [s for s in existing or [] if _sample_time(s) != stamp]
    merged = sorted([*kept, sample], key=_sample_time, reverse=True)
    return merged[:cap]


class IngestionService:
    def __init__(self, session: Session, config: Settings = settings) -> None:
        self.session = session
        self.config = config
        self.races = RaceRepository(session)
        self.horses = RaceHorseRepository(session)
        self.will_pays = WillPayRepository(session)
        self.results = RaceResultRepository(session)
        self.dead_letters = DeadLetterRepository(session)
        self.synthetic = SyntheticRecordRepository(session)
        self._ingesters = {
            "odds": self._ingest_odds,
            "will_pays": self._ingest_will_pay,
            "results": self._ingest_result,
            "entries": self._ingest_entry,
        }

    def ingest(self, result: ExtractionResult) -> IngestSummary:
        """Persist one extraction result and commit."""
        summary = IngestSummary()
        try:
            if result.is_synthetic:
                summary += self._quarantine(result)
            else:
                for record in result.records:
                    summary += self._ingesters[record.kind](record)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info(
            "Ingested %s (%s): %d upserted, %d dead-lettered, %d quarantined",
            result.domain,
            result.strategy_used,
            summary.upserted,
            summary.dead_lettered,
            summary.quarantined,
        )
        return summary

    def ingest_odds_pulse(self, payload: OddsPulsePayload) -> IngestSummary:
        """
        Merge one pushed odds snapshot into the race's horses.

        The race is matched by track, race number and the date of the
        snapshot timestamp. An unknown race yields exactly one dead letter
        for the whole payload.
        """
        captured_at = parse_timestamp(payload.timestamp)
        track_name = normalize_track_name(payload.track_id)
        summary = IngestSummary()
        try:
            race = self.races.get_by_key(
                track_name, payload.race_number, captured_at.date()
            )
            if race is None:
                self._dead_letter(
                    "odds_pulse", payload.model_dump(mode="json"), captured_at
                )
                summary.dead_lettered += 1
            else:
                for horse in payload.odds_data:
                    status, odds = status_and_odds(horse.current_odds)
                    fields: dict[str, Any] = {
                        "horse_name": horse.horse_name,
                        "live_odds": odds,
                        "status": str(status),
                        "updated_at": captured_at,
                    }
                    if horse.morning_line is not None:
                        fields["morning_line"] = odds_value(horse.morning_line)
                    self._write_horse_odds(
                        race.id,
                        (horse.program_number, horse.program_suffix),
                        fields,
                        captured_at,
                        odds,
                    )
                    summary.upserted += 1
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info(
            "Odds pulse from %s for %s race %d: %d horse(s), %d dead-lettered",
            payload.source,
            track_name,
            payload.race_number,
            summary.upserted,
            summary.dead_lettered,
        )
        return summary

    def _quarantine(self, result: ExtractionResult) -> IngestSummary:
        grouped: dict[tuple[str, int, date], list[dict[str, Any]]] = defaultdict(list)
        for record in result.records:
            key = (record.track_name, record.race_number, record.race_date)
            grouped[key].append(record.model_dump(mode="json"))
        for (track_name, race_number, race_date), payload in grouped.items():
            self.synthetic.quarantine(
                str(result.domain),
                track_name,
                race_number,
                race_date,
                payload,
                commit=False,
            )
        logger.warning(
            "Quarantined %d synthetic %s record(s)", len(result.records), result.domain
        )
        return IngestSummary(quarantined=len(result.records))

    def _dead_letter(self, kind: str, payload: dict[str, Any], received_at: datetime) -> None:
        logger.warning(
            "Dead-lettering %s payload for %s race %s: %s",
            kind,
            payload.get("track_name") or payload.get("track_id"),
            payload.get("race_number"),
            NO_MATCHING_RACE,
        )
        self.dead_letters.add(
            kind, NO_MATCHING_RACE, payload, received_at, commit=False
        )

    def _write_horse_odds(
        self,
        race_id: int,
        program: tuple[int, str],
        fields: dict[str, Any],
        captured_at: datetime,
        odds: float | None,
    ) -> None:
        program_number, program_suffix = program
        existing = self.horses.get_by_key(race_id, program_number, program_suffix)
        sample = {"timestamp": captured_at.isoformat(), "odds": odds}
        fields["odds_history"] = merge_odds_history(
            existing.odds_history if existing is not None else None,
            sample,
            self.config.ODDS_HISTORY_MAX,
        )
        self.horses.upsert_horse(
            race_id, program_number, fields, program_suffix=program_suffix, commit=False
        )

    def _ingest_odds(self, record: OddsEntry) -> IngestSummary:
        race = self.races.get_by_key(
            record.track_name, record.race_number, record.race_date
        )
        if race is None:
            self._dead_letter(
                "odds", record.model_dump(mode="json"), record.captured_at
            )
            return IngestSummary(dead_lettered=1)
        fields = {
            "horse_name": record.horse_name,
            "live_odds": record.current_odds,
            "status": str(record.status),
            "pool_data": dict(record.pool_data),
            "updated_at": record.captured_at,
        }
        self._write_horse_odds(
            race.id,
            (record.program_number, record.program_suffix),
            fields,
            record.captured_at,
            record.current_odds,
        )
        return IngestSummary(upserted=1)

    def _ingest_will_pay(self, record: WillPayRecord) -> IngestSummary:
        self.will_pays.upsert_will_pay(record, commit=False)
        return IngestSummary(upserted=1)

    def _ingest_result(self, record: RaceResultRecord) -> IngestSummary:
        race = self.races.get_or_create(
            record.track_name, record.race_number, record.race_date, commit=False
        )
        self.results.upsert_result(race.id, record, commit=False)
        return IngestSummary(upserted=1)

    def _ingest_entry(self, record: EntryRecord) -> IngestSummary:
        race = self.races.upsert_race(record.race, commit=False)
        for horse in record.horses:
            fields: dict[str, Any] = {
                "horse_name": horse.horse_name,
                "morning_line": horse.morning_line,
                "jockey": horse.jockey,
                "trainer": horse.trainer,
                "medication": horse.medication,
                "weight": horse.weight,
            }
            if horse.scratched:
                fields["status"] = str(HorseStatus.scratched)
            self.horses.upsert_horse(
                race.id,
                horse.post_position,
                fields,
                program_suffix=horse.program_suffix,
                commit=False,
            )
        return IngestSummary(upserted=1 + len(record.horses))
