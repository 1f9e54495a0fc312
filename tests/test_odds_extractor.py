"""
Tests for live odds extraction.
"""

from src.core.enums import HorseStatus, JobKind, Strategy
from src.extractors import odds

ODDS_TABLE_PAGE = """
<html><body>
  <div class="race-number">Race 3</div>
  <table class="odds-table">
    <thead><tr><th>#</th><th>Horse</th><th>Odds</th><th>Win</th></tr></thead>
    <tbody>
      <tr><td>1</td><td>Lucky Star</td><td>5/2</td><td>$1,200</td></tr>
      <tr><td>2</td><td>Thunder Road</td><td>SCR</td><td>-</td></tr>
      <tr><td>3</td><td>Desert Wind</td><td>MTO</td><td>$300</td></tr>
      <tr><td>40</td><td>Ghost Runner</td><td>2/1</td><td>$50</td></tr>
    </tbody>
  </table>
  <p>1 Someone Else 9/2</p>
</body></html>
"""

RUNNER_CARD_PAGE = """
<html><body>
  <div class="runner">
    <span class="pp">4</span><span class="horse-name">Silver Bullet</span>
    <span class="odds">7/2</span><span data-pool="Win">$800</span>
  </div>
  <div class="runner">
    <span class="pp">5</span><span class="horse-name">Iron Will</span>
    <span class="odds">12-1</span>
  </div>
</body></html>
"""

COUPLED_TABLE_PAGE = """
<html><body>
  <table class="odds-table">
    <thead><tr><th>#</th><th>Horse</th><th>Odds</th></tr></thead>
    <tbody>
      <tr><td>1</td><td>Alpha</td><td>2/1</td></tr>
      <tr><td>1A</td><td>Bravo</td><td>2/1</td></tr>
      <tr><td>2</td><td>Alpha Two</td><td>5/1</td></tr>
      <tr><td></td><td>Nameless Row</td><td>8/1</td></tr>
    </tbody>
  </table>
</body></html>
"""

TEXT_PAGE = """
<html><body><div class="content">
  <p>1 Lucky Star 5/2</p>
  <p>2. Thunder Road 9-5</p>
  <p>2 Duplicate Horse 3/1</p>
  <p>3 Desert Wind SCR</p>
</div></body></html>
"""


class TestOddsStructural:
    def test_rows_from_odds_table(self, context):
        result = odds.extract(ODDS_TABLE_PAGE, context)

        assert result.domain is JobKind.odds
        assert result.strategy_used is Strategy.structural
        assert not result.is_synthetic
        first = result.records[0]
        assert first.track_name == "SARATOGA"
        assert first.race_number == 3
        assert first.program_number == 1
        assert first.horse_name == "Lucky Star"
        assert first.current_odds == 2.5
        assert first.pool_data == {"win": 1200.0}
        assert first.captured_at == context.captured_at

    def test_sentinels_become_status(self, context):
        result = odds.extract(ODDS_TABLE_PAGE, context)
        by_program = {r.program_number: r for r in result.records}

        assert by_program[2].status is HorseStatus.scratched
        assert by_program[2].current_odds is None
        assert by_program[2].pool_data == {"win": None}
        assert by_program[3].status is HorseStatus.main_track_only
        assert by_program[3].current_odds is None

    def test_invalid_row_is_dropped(self, context):
        result = odds.extract(ODDS_TABLE_PAGE, context)
        assert [r.program_number for r in result.records] == [1, 2, 3]


class TestCoupledEntries:
    def test_coupled_runners_keep_their_own_key(self, context):
        result = odds.extract(COUPLED_TABLE_PAGE, context)

        assert [
            (r.program_number, r.program_suffix, r.horse_name) for r in result.records
        ] == [(1, "", "Alpha"), (1, "A", "Bravo"), (2, "", "Alpha Two")]

    def test_unnumbered_row_never_takes_a_position(self, context):
        result = odds.extract(COUPLED_TABLE_PAGE, context)
        assert "Nameless Row" not in [r.horse_name for r in result.records]

    def test_coupled_text_lines(self, context):
        page = "<p>1 Alpha 2/1</p><p>1A Bravo 2/1</p><p>2 Charlie 5/1</p>"
        result = odds.extract(page, context)

        assert result.strategy_used is Strategy.text_pattern
        assert [(r.program_number, r.program_suffix) for r in result.records] == [
            (1, ""),
            (1, "A"),
            (2, ""),
        ]

    def test_headerless_cards_numbered_by_position(self, context):
        page = (
            '<div class="runner"><span class="horse-name">Alpha</span>'
            '<span class="odds">2/1</span></div>'
            '<div class="runner"><span class="horse-name">Bravo</span>'
            '<span class="odds">3/1</span></div>'
        )
        result = odds.extract(page, context)
        assert [r.program_number for r in result.records] == [1, 2]


class TestOddsFallbackPasses:
    def test_runner_cards(self, context):
        result = odds.extract(RUNNER_CARD_PAGE, context)

        assert result.strategy_used is Strategy.alternate_structure
        assert [(r.program_number, r.current_odds) for r in result.records] == [
            (4, 3.5),
            (5, 12.0),
        ]
        assert result.records[0].pool_data == {"win": 800.0}

    def test_text_lines(self, context):
        result = odds.extract(TEXT_PAGE, context)

        assert result.strategy_used is Strategy.text_pattern
        assert [r.horse_name for r in result.records] == [
            "Lucky Star",
            "Thunder Road",
            "Desert Wind",
        ]
        assert result.records[1].current_odds == 1.8
        assert result.records[2].status is HorseStatus.scratched

    def test_race_number_from_url(self, context):
        ctx = context.model_copy(
            update={"source_url": "https://x.test/tracks/saratoga?raceNumber=5"}
        )
        result = odds.extract(TEXT_PAGE, ctx)
        assert {r.race_number for r in result.records} == {5}


class TestOddsSynthetic:
    def test_blank_page_gets_eight_seeded_horses(self, context):
        result = odds.extract("<html><body><p>Odds not posted</p></body></html>", context)

        assert result.strategy_used is Strategy.synthetic
        assert result.is_synthetic
        assert len(result.records) == 8
        assert [r.program_number for r in result.records] == list(range(1, 9))
        assert all(r.race_number == 1 for r in result.records)

    def test_synthetic_is_deterministic(self, context):
        first = odds.extract("", context)
        second = odds.extract("", context)
        assert first == second
