"""The scan pipeline: calendar entries in, ranked candidates out.

The run is split in two phases.  First every calendar entry is parsed and
the eligible ones are collected; then one quote page is fetched per
eligible candidate.  Everything a run accumulates lives on a
``ScanContext`` so each stage can be driven on its own.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional

import requests

from . import utils
from .fetch import CalendarEntry
from .rates import BASE_CURRENCY, RateTable, rate_for

logger = logging.getLogger(__name__)

EX_DATE_MARKER = "Handlas utan utdelning"
DIVIDEND_MARKER = "Ordinarie utdelning"

MIN_DIVIDEND = 1.0
TOP_N = 5


@dataclass
class Candidate:
    """A calendar entry that passed the ex-date filter, still being filled in."""

    name: str
    link: Optional[str]
    ex_date: int
    dividend_amount: float = 0.0
    dividend_currency: str = ""
    exchange_rate: float = 0.0
    digits: int = 0


@dataclass(frozen=True)
class CandidateRecord:
    """A candidate with its quote and rate attached, ready for ranking."""

    name: str
    dividend_amount: float
    dividend_currency: str
    exchange_rate: float
    quoted_price: float
    digits: int
    score: float = 0.0

    @property
    def base_dividend(self) -> float:
        return self.dividend_amount * self.exchange_rate

    @property
    def base_price(self) -> float:
        return self.quoted_price * self.exchange_rate


@dataclass(frozen=True)
class ReportRow:
    record: CandidateRecord
    # None when the dividend converts to zero
    ratio: Optional[float]


class PriceLookup:
    """Latest quoted price per entity name for the current run."""

    def __init__(self) -> None:
        self._prices: Dict[str, float] = {}

    def record(self, name: str, price: float) -> None:
        self._prices[name] = price

    def get(self, name: str) -> float:
        return self._prices.get(name, 0.0)

    def __contains__(self, name: str) -> bool:
        return name in self._prices

    def __len__(self) -> int:
        return len(self._prices)


@dataclass
class ScanContext:
    """State owned by one scan run."""

    today: int
    rates: RateTable
    base: str = BASE_CURRENCY
    candidates: Dict[str, Candidate] = field(default_factory=dict)
    prices: PriceLookup = field(default_factory=PriceLookup)


def extract_record(
    entry: CalendarEntry,
    today: int,
    rates: RateTable,
    base: str = BASE_CURRENCY,
) -> Optional[Candidate]:
    """Parse one calendar entry into a ``Candidate``.

    Returns ``None`` when the entry has no ex-dividend date, when that date
    is not after ``today`` (both compact ints), or when it carries no
    ordinary dividend line that can be read.
    """
    ex_date = None
    dividend = None
    digits = 0
    for line in entry.lines:
        if EX_DATE_MARKER in line:
            parsed_date = utils.parse_ex_date(line)
            if parsed_date is not None:
                ex_date = parsed_date
        if DIVIDEND_MARKER in line:
            parsed = utils.parse_dividend(line)
            if parsed is not None:
                dividend = parsed
                digits += parsed.digits

    if ex_date is None:
        logger.debug("%s: no ex-dividend date, skipping", entry.name)
        return None
    # Buying on or after the ex-date no longer gives the dividend.
    if ex_date <= today:
        logger.debug("%s: ex-dividend date %s has passed", entry.name, ex_date)
        return None
    if dividend is None:
        logger.warning("%s: no ordinary dividend found, skipping", entry.name)
        return None

    return Candidate(
        name=entry.name,
        link=entry.link,
        ex_date=ex_date,
        dividend_amount=dividend.amount,
        dividend_currency=dividend.currency,
        exchange_rate=rate_for(dividend.currency, rates, base),
        digits=digits,
    )


def collect_candidates(context: ScanContext, entries: Iterable[CalendarEntry]) -> int:
    """Run every entry through ``extract_record``; return how many were kept.

    A later entry with the same name replaces an earlier one.
    """
    for entry in entries:
        candidate = extract_record(entry, context.today, context.rates, context.base)
        if candidate is not None:
            context.candidates[candidate.name] = candidate
    return len(context.candidates)


def fetch_prices(
    context: ScanContext,
    fetch_quote: Callable[[str], Optional[float]],
    progress: Callable[[Iterable[Candidate]], Iterable[Candidate]] = iter,
) -> None:
    """Fetch one quote per collected candidate into ``context.prices``.

    Fetches run one at a time.  A failed fetch is logged and leaves the
    price unset; nothing is retried.
    """
    for candidate in progress(list(context.candidates.values())):
        if not candidate.link:
            logger.warning("%s: no quote page link", candidate.name)
            continue
        try:
            price = fetch_quote(candidate.link)
        except requests.RequestException as e:
            logger.warning("%s: quote fetch failed: %s", candidate.name, e)
            continue
        if price is None:
            logger.debug("%s: no quoted price available", candidate.name)
            continue
        context.prices.record(candidate.name, price)


def aggregate(context: ScanContext) -> List[CandidateRecord]:
    """Attach quotes to the collected candidates and drop small dividends."""
    records = []
    for candidate in context.candidates.values():
        if candidate.dividend_amount < MIN_DIVIDEND:
            continue
        records.append(
            CandidateRecord(
                name=candidate.name,
                dividend_amount=candidate.dividend_amount,
                dividend_currency=candidate.dividend_currency,
                exchange_rate=candidate.exchange_rate,
                quoted_price=context.prices.get(candidate.name),
                digits=candidate.digits,
            )
        )
    return records


def score_records(records: Iterable[CandidateRecord]) -> List[CandidateRecord]:
    return [replace(r, score=utils.composite_score(r.digits, r.base_price)) for r in records]


def rank(records: Iterable[CandidateRecord], top: int = TOP_N) -> List[ReportRow]:
    """Return the ``top`` best scored records, highest score first.

    Equal scores are ordered by name.
    """
    ordered = sorted(records, key=lambda r: (-r.score, r.name))
    return [
        ReportRow(record=r, ratio=utils.investment_ratio(r.base_price, r.base_dividend))
        for r in ordered[:top]
    ]


def run_scan(
    entries: Iterable[CalendarEntry],
    rates: RateTable,
    fetch_quote: Callable[[str], Optional[float]],
    today: date,
    base: str = BASE_CURRENCY,
    top: int = TOP_N,
    progress: Callable[[Iterable[Candidate]], Iterable[Candidate]] = iter,
) -> List[ReportRow]:
    """Run the whole pipeline and return the report rows."""
    context = ScanContext(today=utils.compact_date(today), rates=rates, base=base)
    kept = collect_candidates(context, entries)
    logger.info("%d candidates have an upcoming ex-dividend date", kept)
    fetch_prices(context, fetch_quote, progress=progress)
    return rank(score_records(aggregate(context)), top=top)
