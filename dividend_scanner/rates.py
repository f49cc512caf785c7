"""Exchange rate lookup for dividend_scanner.

Rates come from the free currencyconverterapi.com service, one request per
currency.  The lookup is all or nothing: if any request fails the whole
table is replaced with ``DEFAULT_RATES``.
"""

import logging
from typing import Callable, Dict, Iterable, Optional

import requests

logger = logging.getLogger(__name__)

BASE_CURRENCY = "SEK"
RATES_API_URL = "http://free.currencyconverterapi.com/api/v5/convert?q={pair}&compact=y"

# Currencies that show up in the calendar besides SEK.
CURRENCIES = ["NOK", "DKK", "EUR"]

DEFAULT_RATES: Dict[str, float] = {
    "NOK_SEK": 1.07517,
    "EUR_SEK": 10.256293,
    "DKK_SEK": 1.376561,
}

RateTable = Dict[str, float]


def pair_key(currency: str, base: str = BASE_CURRENCY) -> str:
    """Return the rate table key for ``currency`` into ``base``."""
    return f"{currency}_{base}"


def default_rates() -> RateTable:
    """Return a fresh copy of the fallback table."""
    return dict(DEFAULT_RATES)


def resolve_rates(
    currencies: Iterable[str] = CURRENCIES,
    base: str = BASE_CURRENCY,
    url: str = RATES_API_URL,
    timeout: float = 15,
    get: Optional[Callable[..., requests.Response]] = None,
) -> RateTable:
    """Look up the rate of every currency in ``currencies`` into ``base``.

    Lookups run one after another.  The first non-200 answer (or a request
    that never gets an answer) throws away what has been collected and
    returns the default table instead; the remaining currencies are not
    asked for.
    """
    get = get or requests.get
    rates: RateTable = {}
    for currency in currencies:
        key = pair_key(currency, base)
        request_url = url.format(pair=key)
        try:
            response = get(request_url, timeout=timeout)
        except requests.RequestException as e:
            logger.warning("Rate lookup for %s failed: %s; using default rates", key, e)
            return default_rates()
        if response.status_code != 200:
            logger.warning(
                "Rate lookup for %s returned HTTP %s; using default rates",
                key,
                response.status_code,
            )
            return default_rates()

        try:
            payload = response.json()
        except ValueError as e:
            logger.error("Could not decode rate response for %s: %s", key, e)
            continue
        if not isinstance(payload, dict):
            logger.error("Unexpected rate response for %s: %r", key, payload)
            continue
        for name, entry in payload.items():
            value = entry.get("val") if isinstance(entry, dict) else None
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                logger.error("No numeric rate for %s in response: %r", name, entry)
                continue
            rates[name] = float(value)
        logger.debug("Resolved %s", key)
    return rates


def rate_for(currency: str, rates: RateTable, base: str = BASE_CURRENCY) -> float:
    """Return the multiplier from ``currency`` into ``base``.

    The base currency itself is always ``1.0``.  A currency missing from
    ``rates`` gives ``0.0``; no per-currency default is made up.
    """
    if currency == base:
        return 1.0
    return rates.get(pair_key(currency, base), 0.0)
