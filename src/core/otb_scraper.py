"""Shared OTB (offtrackbetting.com) fetch + HTML helpers.

All extractors and the crawl navigator reuse these for fetch and table
parsing logic.
"""

import logging
import random
import time
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from src.core.config import settings
from src.core.exceptions import FetchError

logger = logging.getLogger(__name__)

_BLOCK_TAGS = {
    "p", "div", "li", "tr", "br", "pre", "section", "article",
    "h1", "h2", "h3", "h4", "h5", "h6", "table", "ul", "ol", "caption",
}
_SKIP_TAGS = {"script", "style", "noscript", "template"}

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_4) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64; rv:125.0) Gecko/20100101 Firefox/125.0",
]


def get_random_user_agent() -> str:
    return random.choice(USER_AGENTS)


def fetch_html(url: str, timeout: float | None = None) -> str:
    """GET with random user-agent; any failure is raised as ``FetchError``."""
    if settings.SCRAPE_DELAY_SECONDS:
        time.sleep(settings.SCRAPE_DELAY_SECONDS)
    headers = {"User-Agent": get_random_user_agent()}
    try:
        res = requests.get(
            url, headers=headers, timeout=timeout or settings.SCRAPE_REQUEST_TIMEOUT
        )
    except requests.RequestException as exc:
        raise FetchError(url, str(exc)) from exc
    if not res.ok:
        raise FetchError(url, f"{res.status_code} {res.reason}", res.status_code)
    logger.info("Fetched %d characters from %s", len(res.text), url)
    return res.text


def make_soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "lxml")


def cell_text(el) -> str:
    if el is None:
        return ""
    return " ".join(el.get_text(" ", strip=True).split())


def flatten_text(soup: BeautifulSoup) -> list[str]:
    """Visible text of the page, one whitespace-normalized line per block.

    Table cells on the same row stay on one line; the soup is not modified.
    """
    parts: list[str] = []
    for node in soup.descendants:
        if isinstance(node, Tag):
            if node.name in _BLOCK_TAGS:
                parts.append("\n")
            elif node.name in ("td", "th"):
                parts.append(" ")
        elif isinstance(node, NavigableString) and not isinstance(node, Comment):
            if node.parent is not None and node.parent.name in _SKIP_TAGS:
                continue
            prev = node.previous_sibling
            if isinstance(prev, Tag) and prev.name in _BLOCK_TAGS:
                parts.append("\n")
            parts.append(str(node))
    lines = []
    for line in "".join(parts).splitlines():
        line = " ".join(line.split())
        if line:
            lines.append(line)
    return lines


def first_text(el: Tag, selector: str) -> str:
    """Text of the first element under ``el`` matching a CSS selector."""
    found = el.select_one(selector)
    return cell_text(found)


def table_headers(table: Tag) -> list[str]:
    header_row = None
    thead = table.find("thead")
    if thead is not None:
        header_row = thead.find("tr")
    if header_row is None:
        for tr in table.find_all("tr"):
            if tr.find("th") is not None and tr.find("td") is None:
                header_row = tr
                break
    if header_row is None:
        return []
    return [cell_text(th).lower() for th in header_row.find_all(["th", "td"])]


def parse_table_rows(table: Tag) -> list[list[Tag]]:
    """Data rows of ``table`` as lists of cells, header-only rows skipped."""
    rows: list[list[Tag]] = []
    for tr in table.find_all("tr"):
        cells = tr.find_all("td")
        if not cells:
            continue
        if all(not cell_text(c) for c in cells):
            continue
        rows.append(cells)
    return rows


def absolute_url(href: str, base_url: str) -> str:
    return href if href.startswith("http") else urljoin(base_url, href)
