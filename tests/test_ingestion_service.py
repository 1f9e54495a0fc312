"""
Tests for reconciliation of extracted records with the store.
"""

from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import func, select

from src.core.config import Settings
from src.core.enums import HorseStatus, JobKind, Strategy, WagerType
from src.dtos.extraction_dto import ExtractionResult
from src.dtos.odds_pulse_dto import OddsPulsePayload
from src.dtos.record_dto import (
    EntryHorse,
    EntryRecord,
    FinishPosition,
    OddsEntry,
    RaceInfo,
    RaceResultRecord,
    WillPayRecord,
)
from src.entities.dead_letter import DeadLetter
from src.entities.race import Race
from src.entities.race_horse import RaceHorse
from src.entities.race_result import RaceResult
from src.entities.synthetic_record import SyntheticRecord
from src.entities.will_pay import WillPay
from src.extractors import odds
from src.services.ingestion_service import (
    NO_MATCHING_RACE,
    IngestionService,
    merge_odds_history,
)

RACE_DATE = date(2026, 6, 6)


def _count(session, model) -> int:
    return session.execute(select(func.count()).select_from(model)).scalar_one()


def _result(domain, records, synthetic=False):
    return ExtractionResult(
        domain=domain,
        records=records,
        strategy_used=Strategy.synthetic if synthetic else Strategy.structural,
        is_synthetic=synthetic,
    )


def _odds_entry(captured_at, track="Saratoga", race=1, program=1, odds_value=2.5, **kw):
    return OddsEntry(
        track_name=track,
        race_number=race,
        race_date=RACE_DATE,
        program_number=program,
        horse_name=kw.pop("horse_name", "Lucky Star"),
        current_odds=odds_value,
        captured_at=captured_at,
        **kw,
    )


def _entry(race=1, horses=None):
    return EntryRecord(
        race=RaceInfo(
            track_name="Saratoga",
            race_number=race,
            race_date=RACE_DATE,
            distance="6 Furlongs",
            surface="Dirt",
        ),
        horses=horses
        or [
            EntryHorse(post_position=1, horse_name="Lucky Star", morning_line=2.5),
            EntryHorse(post_position=2, horse_name="Thunder Road", scratched=True),
        ],
    )


@pytest.fixture
def service(db_session):
    return IngestionService(db_session, config=Settings(ODDS_HISTORY_MAX=20))


@pytest.fixture
def race(db_session):
    row = Race(track_name="SARATOGA", race_number=1, race_date=RACE_DATE)
    db_session.add(row)
    db_session.commit()
    return row


class TestMergeOddsHistory:
    def _sample(self, minute, odds_value=3.0):
        stamp = datetime(2026, 6, 6, 12, 0) + timedelta(minutes=minute)
        return {"timestamp": stamp.isoformat(), "odds": odds_value}

    def test_newest_first(self):
        history = []
        for minute in (5, 1, 9, 3):
            history = merge_odds_history(history, self._sample(minute), cap=20)

        stamps = [s["timestamp"] for s in history]
        assert stamps == sorted(stamps, reverse=True)

    def test_same_timestamp_replaced(self):
        history = merge_odds_history([], self._sample(1, 3.0), cap=20)
        history = merge_odds_history(history, self._sample(1, 4.0), cap=20)
        assert history == [self._sample(1, 4.0)]

    def test_cap_drops_oldest(self):
        # 20 samples, then a newer one
        history = [self._sample(m) for m in range(20, 0, -1)]
        merged = merge_odds_history(history, self._sample(30), cap=20)

        assert len(merged) == 20
        assert merged[0] == self._sample(30)
        assert self._sample(1) not in merged

    def test_input_not_mutated(self):
        history = [self._sample(1)]
        merge_odds_history(history, self._sample(2), cap=20)
        assert history == [self._sample(1)]


class TestIngestOdds:
    def test_odds_for_known_race_upserted(self, db_session, service, race, now):
        summary = service.ingest(_result(JobKind.odds, [_odds_entry(now)]))

        assert summary.upserted == 1
        horse = db_session.execute(select(RaceHorse)).scalar_one()
        assert horse.race_id == race.id
        assert horse.live_odds == 2.5
        assert horse.odds_history == [{"timestamp": now.isoformat(), "odds": 2.5}]

    def test_history_grows_newest_first(self, db_session, service, race, now):
        later = now + timedelta(minutes=1)
        service.ingest(_result(JobKind.odds, [_odds_entry(now, odds_value=3.0)]))
        service.ingest(_result(JobKind.odds, [_odds_entry(later, odds_value=2.0)]))

        horse = db_session.execute(select(RaceHorse)).scalar_one()
        assert [s["odds"] for s in horse.odds_history] == [2.0, 3.0]
        assert horse.live_odds == 2.0

    def test_history_capped(self, db_session, service, race, now):
        for minute in range(22):
            sample = _odds_entry(now + timedelta(minutes=minute), odds_value=float(minute + 1))
            service.ingest(_result(JobKind.odds, [sample]))

        horse = db_session.execute(select(RaceHorse)).scalar_one()
        assert len(horse.odds_history) == 20
        assert horse.odds_history[0]["odds"] == 22.0
        assert horse.odds_history[-1]["odds"] == 3.0

    def test_scratch_recorded(self, db_session, service, race, now):
        entry = _odds_entry(now, odds_value=None, status=HorseStatus.scratched)
        service.ingest(_result(JobKind.odds, [entry]))

        horse = db_session.execute(select(RaceHorse)).scalar_one()
        assert horse.status == "scratched"
        assert horse.live_odds is None

    def test_unknown_race_dead_lettered(self, db_session, service, now):
        entry = _odds_entry(now, track="Del Mar", race=9)
        summary = service.ingest(_result(JobKind.odds, [entry]))

        assert summary.dead_lettered == 1
        assert _count(db_session, Race) == 0
        letter = db_session.execute(select(DeadLetter)).scalar_one()
        assert letter.kind == "odds"
        assert letter.reason == NO_MATCHING_RACE
        assert letter.payload["track_name"] == "DEL MAR"
        assert letter.payload["race_number"] == 9
        assert letter.payload["horse_name"] == "Lucky Star"


class TestIngestOtherDomains:
    def test_will_pays_idempotent(self, db_session, service):
        record = WillPayRecord(
            track_name="Saratoga",
            race_number=6,
            race_date=RACE_DATE,
            wager_type=WagerType.pick_4,
            combination="4-5-1-7",
            payout=1234.5,
        )
        service.ingest(_result(JobKind.will_pays, [record]))
        service.ingest(_result(JobKind.will_pays, [record]))

        assert _count(db_session, WillPay) == 1

    def test_will_pay_payout_updated(self, db_session, service):
        base = dict(
            track_name="Saratoga",
            race_number=6,
            race_date=RACE_DATE,
            wager_type=WagerType.double,
            combination="1-4",
        )
        service.ingest(_result(JobKind.will_pays, [WillPayRecord(**base, payout=18.6)]))
        service.ingest(_result(JobKind.will_pays, [WillPayRecord(**base, payout=21.0)]))

        assert db_session.execute(select(WillPay)).scalar_one().payout == 21.0

    def test_result_creates_parent_race(self, db_session, service, now):
        record = RaceResultRecord(
            track_name="Saratoga",
            race_number=7,
            race_date=RACE_DATE,
            finish_order=[FinishPosition(position=1, horse_name="Lucky Star")],
            payouts={"Win (1)": 8.4},
            captured_at=now,
        )
        service.ingest(_result(JobKind.results, [record]))
        service.ingest(_result(JobKind.results, [record]))

        race = db_session.execute(select(Race)).scalar_one()
        stored = db_session.execute(select(RaceResult)).scalar_one()
        assert race.race_number == 7
        assert stored.race_id == race.id
        assert stored.finish_order[0]["horse_name"] == "Lucky Star"
        assert stored.payouts == {"Win (1)": 8.4}

    def test_entries_upsert_race_and_horses(self, db_session, service):
        service.ingest(_result(JobKind.entries, [_entry()]))
        service.ingest(_result(JobKind.entries, [_entry()]))

        assert _count(db_session, Race) == 1
        horses = db_session.execute(
            select(RaceHorse).order_by(RaceHorse.program_number)
        ).scalars().all()
        assert [(h.program_number, h.status) for h in horses] == [
            (1, "active"),
            (2, "scratched"),
        ]
        assert horses[0].morning_line == 2.5

    def test_entries_then_odds_reconcile(self, db_session, service, now):
        service.ingest(_result(JobKind.entries, [_entry()]))
        summary = service.ingest(_result(JobKind.odds, [_odds_entry(now, odds_value=4.0)]))

        assert summary.dead_lettered == 0
        horse = db_session.execute(
            select(RaceHorse).where(RaceHorse.program_number == 1)
        ).scalar_one()
        assert horse.morning_line == 2.5
        assert horse.live_odds == 4.0


class TestIdempotentIngest:
    def test_same_odds_twice(self, db_session, service, race, now):
        entry = _odds_entry(now)
        service.ingest(_result(JobKind.odds, [entry]))
        service.ingest(_result(JobKind.odds, [entry]))

        horse = db_session.execute(select(RaceHorse)).scalar_one()
        assert len(horse.odds_history) == 1
        assert horse.live_odds == 2.5

    def test_same_result_twice(self, db_session, service, now):
        record = RaceResultRecord(
            track_name="Saratoga",
            race_number=3,
            race_date=RACE_DATE,
            finish_order=[FinishPosition(position=1, horse_name="Lucky Star")],
            captured_at=now,
        )
        service.ingest(_result(JobKind.results, [record]))
        service.ingest(_result(JobKind.results, [record]))

        assert _count(db_session, RaceResult) == 1
        assert _count(db_session, Race) == 1

    def test_same_entry_twice(self, db_session, service):
        service.ingest(_result(JobKind.entries, [_entry()]))
        before = (_count(db_session, Race), _count(db_session, RaceHorse))

        service.ingest(_result(JobKind.entries, [_entry()]))

        assert (_count(db_session, Race), _count(db_session, RaceHorse)) == before
        assert before == (1, 2)


class TestCoupledEntries:
    def test_coupled_odds_stored_separately(self, db_session, service, race, now):
        records = [
            _odds_entry(now, program=1, horse_name="Alpha"),
            _odds_entry(now, program=1, program_suffix="A", horse_name="Bravo"),
            _odds_entry(now, program=2, horse_name="Charlie"),
        ]
        summary = service.ingest(_result(JobKind.odds, records))

        assert summary.upserted == 3
        horses = db_session.execute(
            select(RaceHorse).order_by(RaceHorse.program_number, RaceHorse.program_suffix)
        ).scalars().all()
        assert [(h.program_number, h.program_suffix, h.horse_name) for h in horses] == [
            (1, "", "Alpha"),
            (1, "A", "Bravo"),
            (2, "", "Charlie"),
        ]

    def test_coupled_entry_horses_kept(self, db_session, service):
        horses = [
            EntryHorse(post_position=1, horse_name="Alpha"),
            EntryHorse(post_position=1, program_suffix="A", horse_name="Bravo"),
            EntryHorse(post_position=2, horse_name="Charlie"),
        ]
        service.ingest(_result(JobKind.entries, [_entry(horses=horses)]))

        names = db_session.execute(
            select(RaceHorse.horse_name).order_by(RaceHorse.horse_name)
        ).scalars().all()
        assert names == ["Alpha", "Bravo", "Charlie"]

    def test_pulse_program_with_letter(self, db_session, service, race):
        payload = OddsPulsePayload.model_validate(
            {
                "timestamp": "2026-06-06T17:30:00Z",
                "source": "tote-feed",
                "track_id": "Saratoga",
                "race_number": 1,
                "odds_data": [
                    {"horse_id": "h1", "horse_name": "Alpha", "program_number": 1, "current_odds": "2-1"},
                    {"horse_id": "h2", "horse_name": "Bravo", "program_number": "1A", "current_odds": "2-1"},
                ],
            }
        )

        service.ingest_odds_pulse(payload)

        keys = db_session.execute(
            select(RaceHorse.program_number, RaceHorse.program_suffix)
        ).all()
        assert sorted(tuple(k) for k in keys) == [(1, ""), (1, "A")]


class TestSyntheticQuarantine:
    def test_synthetic_output_kept_out_of_race_tables(self, db_session, service, context):
        result = odds.extract("", context)
        summary = service.ingest(result)

        assert summary.quarantined == 8
        assert _count(db_session, RaceHorse) == 0
        assert _count(db_session, DeadLetter) == 0
        row = db_session.execute(select(SyntheticRecord)).scalar_one()
        assert row.domain == "odds"
        assert row.track_name == "SARATOGA"
        assert len(row.payload) == 8

    def test_quarantine_upserts_by_key(self, db_session, service, context):
        service.ingest(odds.extract("", context))
        service.ingest(odds.extract("", context))
        assert _count(db_session, SyntheticRecord) == 1


class TestIngestOddsPulse:
    def _payload(self, track="Saratoga", race=1, timestamp="2026-06-06T17:30:00Z"):
        return OddsPulsePayload.model_validate(
            {
                "timestamp": timestamp,
                "source": "tote-feed",
                "track_id": track,
                "race_number": race,
                "odds_data": [
                    {
                        "horse_id": "h1",
                        "horse_name": "Lucky Star",
                        "program_number": 1,
                        "current_odds": "5-2",
                        "morning_line": "3-1",
                    },
                    {
                        "horse_id": "h2",
                        "horse_name": "Thunder Road",
                        "program_number": 2,
                        "current_odds": "SCR",
                    },
                ],
            }
        )

    def test_pulse_merges_into_known_race(self, db_session, service, race):
        summary = service.ingest_odds_pulse(self._payload())

        assert summary.upserted == 2
        horses = db_session.execute(
            select(RaceHorse).order_by(RaceHorse.program_number)
        ).scalars().all()
        assert horses[0].live_odds == 2.5
        assert horses[0].morning_line == 3.0
        assert horses[0].odds_history == [
            {"timestamp": "2026-06-06T17:30:00", "odds": 2.5}
        ]
        assert horses[1].status == "scratched"

    def test_pulse_for_unknown_race_writes_one_dead_letter(self, db_session, service):
        summary = service.ingest_odds_pulse(self._payload(track="DEL MAR", race=9))

        assert summary.dead_lettered == 1
        letters = db_session.execute(select(DeadLetter)).scalars().all()
        assert len(letters) == 1
        assert letters[0].kind == "odds_pulse"
        assert letters[0].reason == "no matching race found"
        assert letters[0].payload["track_id"] == "DEL MAR"
        assert len(letters[0].payload["odds_data"]) == 2
