"""
Tests for the schedule -> track -> race-day crawl.
"""

from datetime import date

import pytest

from src.core.enums import Strategy
from src.core.otb_scraper import make_soup
from src.services.crawl_navigator import (
    CrawlNavigator,
    PageLevel,
    classify_url,
    discover_track_links,
    find_race_day_link,
)

BASE = "https://www.offtrackbetting.com"
SCHEDULE_URL = f"{BASE}/horse-racing-schedule.html"
SARATOGA_URL = f"{BASE}/tracks/saratoga"
DEL_MAR_URL = f"{BASE}/tracks/del-mar"
SARATOGA_DAY_URL = f"{BASE}/tracks/saratoga/entries/2026-06-07"

SCHEDULE_PAGE = """
<html><body>
  <h3>Bet Horse Racing with OTB</h3>
  <ul>
    <li><a href="/tracks/saratoga">Saratoga</a></li>
    <li><a href="/tracks/del-mar">Del Mar</a></li>
    <li><a href="/results/saratoga">Saratoga Results</a></li>
    <li><a href="/tracks/saratoga">Saratoga (again)</a></li>
  </ul>
</body></html>
"""

SARATOGA_PAGE = """
<html><body>
  <a href="/horse-racing-schedule.html">Back to schedule</a>
  <a href="/news/2026-06-01-big-win">Racing news</a>
  <a href="/tracks/saratoga/entries/2026-06-07">Sunday entries</a>
</body></html>
"""

RACE_DAY_PAGE = """
<html><body>
  <h3>Race 1</h3>
  <table>
    <tr><th>PP</th><th>Horse</th><th>ML</th></tr>
    <tr><td>1</td><td>Lucky Star</td><td>5/2</td></tr>
    <tr><td>2</td><td>Thunder Road</td><td>3-1</td></tr>
  </table>
  <h3>Race 2</h3>
  <table>
    <tr><th>PP</th><th>Horse</th><th>ML</th></tr>
    <tr><td>1</td><td>Sea Breeze</td><td>4/1</td></tr>
  </table>
</body></html>
"""


@pytest.fixture
def site(page_fetcher):
    return page_fetcher(
        {
            SCHEDULE_URL: SCHEDULE_PAGE,
            SARATOGA_URL: SARATOGA_PAGE,
            SARATOGA_DAY_URL: RACE_DAY_PAGE,
        }
    )


class TestLinkDiscovery:
    def test_track_links_from_primary_list(self):
        links = discover_track_links(make_soup(SCHEDULE_PAGE), SCHEDULE_URL)

        assert [(link.name, link.url) for link in links] == [
            ("SARATOGA", SARATOGA_URL),
            ("DEL MAR", DEL_MAR_URL),
        ]

    def test_fallback_to_any_track_shaped_link(self):
        html = """
        <div>
          <a href="/tracks/monmouth-park">Bet Monmouth Park | OTB</a>
          <a href="/news/tracks/saratoga">News</a>
          <a href="/about">About</a>
        </div>
        """
        links = discover_track_links(make_soup(html), SCHEDULE_URL)
        assert [link.name for link in links] == ["MONMOUTH PARK"]

    def test_race_day_link_skips_news(self):
        link = find_race_day_link(make_soup(SARATOGA_PAGE), SARATOGA_URL)

        assert link.url == SARATOGA_DAY_URL
        assert link.race_date == date(2026, 6, 7)

    def test_no_race_day_link(self):
        assert find_race_day_link(make_soup("<a href='/tracks/x'>x</a>"), SARATOGA_URL) is None

    @pytest.mark.parametrize(
        "url, level",
        [
            (SCHEDULE_URL, PageLevel.schedule),
            (SARATOGA_URL, PageLevel.track),
            (f"{SARATOGA_URL}/entries", PageLevel.track),
            (SARATOGA_DAY_URL, PageLevel.race_day),
        ],
    )
    def test_classify_url(self, url, level):
        assert classify_url(url) is level


class TestCrawlNavigator:
    def test_crawl_from_schedule(self, site, context):
        result = CrawlNavigator(site).crawl(SCHEDULE_URL, context)

        assert not result.is_synthetic
        assert result.strategy_used is Strategy.structural
        assert [(r.track_name, r.race_number) for r in result.records] == [
            ("SARATOGA", 1),
            ("SARATOGA", 2),
        ]
        assert {r.race_date for r in result.records} == {date(2026, 6, 7)}

    def test_failed_branch_does_not_abort_crawl(self, site, context):
        result = CrawlNavigator(site).crawl(SCHEDULE_URL, context)

        assert DEL_MAR_URL in site.calls
        assert len(result.records) == 2

    def test_each_url_fetched_once(self, site, context):
        CrawlNavigator(site).crawl(SCHEDULE_URL, context)
        assert len(site.calls) == len(set(site.calls))

    def test_start_document_is_not_refetched(self, site, context):
        CrawlNavigator(site).crawl(SCHEDULE_URL, context, html=SCHEDULE_PAGE)
        assert SCHEDULE_URL not in site.calls

    def test_crawl_from_track_page(self, site, context):
        result = CrawlNavigator(site).crawl(SARATOGA_URL, context)

        assert site.calls == [SARATOGA_URL, SARATOGA_DAY_URL]
        assert len(result.records) == 2

    def test_race_cap_per_track(self, site, context):
        result = CrawlNavigator(site, max_races_per_track=1).crawl(SCHEDULE_URL, context)
        assert [r.race_number for r in result.records] == [1]

    def test_empty_crawl_falls_back_to_start_page(self, page_fetcher, context):
        fetch = page_fetcher({SCHEDULE_URL: "<html><body><p>No racing today</p></body></html>"})

        result = CrawlNavigator(fetch).crawl(SCHEDULE_URL, context)

        assert result.is_synthetic
        assert result.strategy_used is Strategy.synthetic
        assert result.records[0].track_name == "SARATOGA"
        assert len(result.records[0].horses) == 6
