"""Page fetching utilities for dividend_scanner.

Downloads Avanza's dividend calendar and the per-instrument quote pages and
turns the HTML into plain Python values.  Parsing is kept separate from the
HTTP calls so it can be exercised against saved pages.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Union
from urllib.parse import urljoin

import requests
from lxml import etree, html

from . import utils

logger = logging.getLogger(__name__)

BASE_URL = "https://www.avanza.se"
DIVIDENDS_PATH = "/placera/foretagskalendern/utdelningar.html"

HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
}


@dataclass
class CalendarEntry:
    """One item of the dividend calendar."""

    name: str
    link: Optional[str]
    lines: List[str] = field(default_factory=list)


def _has_class(name: str) -> str:
    return f"contains(concat(' ', normalize-space(@class), ' '), ' {name} ')"


def _text(element) -> str:
    return "".join(element.xpath(".//text()")).strip()


def parse_calendar(content: Union[str, bytes], base_url: str = BASE_URL) -> List[CalendarEntry]:
    """Return the calendar entries found in a calendar page, in page order."""
    try:
        tree = html.fromstring(content)
    except etree.ParserError as e:
        logger.warning("Could not parse calendar page: %s", e)
        return []
    items = tree.xpath(
        f"//*[{_has_class('companyCalendarList')}]//*[{_has_class('companyCalendarItem')}]"
    )
    entries = []
    for item in items:
        name = "".join(_text(a) for a in item.xpath(f".//*[{_has_class('azaLink')}]"))
        if not name:
            logger.debug("Skipping calendar item without a name")
            continue
        hrefs = item.xpath(".//a/@href")
        link = urljoin(base_url, hrefs[0]) if hrefs else None
        lines = [
            li.text_content()
            for li in item.xpath(f".//ul[{_has_class('companyCalendarItemList')}]/li")
        ]
        entries.append(CalendarEntry(name=name, link=link, lines=lines))
    return entries


def parse_quote(content: Union[str, bytes]) -> Optional[float]:
    """Return the buy price shown in a quote page's quote bar, if any."""
    try:
        tree = html.fromstring(content)
    except etree.ParserError as e:
        logger.warning("Could not parse quote page: %s", e)
        return None
    for bar in tree.xpath(f"//*[{_has_class('quoteBar')}]"):
        text = "".join(_text(p) for p in bar.xpath(f".//*[{_has_class('buyPrice')}]"))
        return utils.parse_price(text)
    return None


def fetch_calendar(
    url: str = BASE_URL + DIVIDENDS_PATH, timeout: float = 30
) -> List[CalendarEntry]:
    """Download and parse the dividend calendar at ``url``."""
    response = requests.get(url, headers=HEADERS, timeout=timeout)
    response.raise_for_status()
    entries = parse_calendar(response.content, base_url=url)
    logger.info("Found %d calendar entries at %s", len(entries), url)
    return entries


def fetch_quote(url: str, timeout: float = 15) -> Optional[float]:
    """Download the quote page at ``url`` and return its buy price."""
    response = requests.get(url, headers=HEADERS, timeout=timeout)
    response.raise_for_status()
    return parse_quote(response.content)
