"""Parsing and arithmetic helpers for dividend_scanner.

Provides:
* compact_date – turn ``YYYY-MM-DD`` (or a ``date``) into a comparable int.
* parse_ex_date – pull the ex‑dividend date out of a calendar line.
* parse_dividend – pull the amount/currency pair out of a dividend line.
* parse_price – parse a quoted price with a decimal comma.
* composite_score – the additive ranking score.
* investment_ratio – price per unit of dividend, guarded against zero.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"(?P<date>[0-9]{4}-[0-9]{2}-[0-9]{2})")
DIVIDEND_PATTERN = re.compile(r"(?P<sum>[0-9]+,[0-9]+) (?P<curr>[A-Z]{3})\b")

# Quote pages show these instead of a number when there is no bid.
NOT_AVAILABLE = "-"


@dataclass(frozen=True)
class DividendAmount:
    """An amount/currency pair read from an "Ordinarie utdelning" line.

    ``digits`` is the amount with the decimal comma removed, so ``12,50``
    gives ``1250``.  It is what the ranking score adds up, not the amount.
    """

    amount: float
    currency: str
    digits: int


def compact_date(value: Union[str, date]) -> int:
    """Return ``value`` as an int such as ``20240315`` for ``2024-03-15``."""
    if isinstance(value, date):
        return int(value.strftime("%Y%m%d"))
    return int(value.replace("-", ""))


def parse_ex_date(text: str) -> Optional[int]:
    """Return the first ``YYYY-MM-DD`` token in ``text`` in compact form.

    ``None`` means the line carried no date; callers treat that as "skip".
    """
    match = DATE_PATTERN.search(text)
    if match is None:
        return None
    return compact_date(match.group("date"))


def parse_dividend(text: str) -> Optional[DividendAmount]:
    """Return the ``<digits>,<digits> <CODE>`` pair found in ``text``.

    ``None`` when the line has no such token, including amounts written
    with a decimal point instead of a comma.
    """
    match = DIVIDEND_PATTERN.search(text)
    if match is None:
        return None
    raw = match.group("sum")
    return DividendAmount(
        amount=float(raw.replace(",", ".")),
        currency=match.group("curr"),
        digits=int(raw.replace(",", "")),
    )


def parse_price(text: str) -> Optional[float]:
    """Parse a quoted price such as ``"1 234,50"``.

    Returns ``None`` for the "not available" dash, for unrendered escape
    placeholders and for anything that is not a number.
    """
    text = text.strip()
    if not text or text == NOT_AVAILABLE or "\\u" in text:
        return None
    cleaned = re.sub(r"\s", "", text).replace(",", ".")
    try:
        return float(cleaned)
    except ValueError as e:
        logger.warning("Could not parse quoted price %r: %s", text, e)
        return None


def composite_score(digits: int, base_price: float) -> float:
    """Return the ranking score.

    This is the digit form of the native dividend plus the price in the base
    currency.  It is an additive heuristic, not a yield.
    """
    return digits + base_price


def investment_ratio(base_price: float, base_dividend: float) -> Optional[float]:
    """Return how much has to be invested per unit of dividend.

    ``base_price / base_dividend``, or ``None`` when there is no dividend to
    divide by.
    """
    if base_dividend == 0:
        return None
    return base_price / base_dividend
