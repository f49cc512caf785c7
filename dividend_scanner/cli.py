"""Command‑line interface for dividend_scanner.

Provides sub‑commands to rank upcoming dividends, list the calendar
entries that are still open for buying, and show the exchange rates used.
"""

import logging
from datetime import date
from typing import List

import click
import pandas as pd
import requests
from tabulate import tabulate
from tqdm import tqdm

from . import fetch
from . import pipeline
from . import rates
from . import utils
from .rates import BASE_CURRENCY

__version__ = "1.0.0"


def _source_options(func):
    func = click.option(
        "--timeout",
        default=15.0,
        show_default=True,
        envvar="DIVIDEND_SCANNER_TIMEOUT",
        help="HTTP timeout in seconds.",
    )(func)
    func = click.option(
        "--rates-url",
        default=rates.RATES_API_URL,
        envvar="DIVIDEND_SCANNER_RATES_URL",
        help="Rate lookup URL template with a {pair} placeholder.",
    )(func)
    func = click.option(
        "--offline-rates", is_flag=True, help="Skip the live lookup and use the built-in rates."
    )(func)
    func = click.option(
        "--calendar-url",
        default=fetch.BASE_URL + fetch.DIVIDENDS_PATH,
        envvar="DIVIDEND_SCANNER_CALENDAR_URL",
        help="Dividend calendar page to scan.",
    )(func)
    return func


def _load_rates(offline: bool, url: str, timeout: float) -> rates.RateTable:
    if offline:
        return rates.default_rates()
    return rates.resolve_rates(url=url, timeout=timeout)


def _load_calendar(url: str, timeout: float) -> List[fetch.CalendarEntry]:
    try:
        return fetch.fetch_calendar(url, timeout=timeout)
    except requests.RequestException as e:
        raise click.ClickException(f"Could not fetch dividend calendar: {e}")


def _reference_date(today) -> date:
    return today.date() if today is not None else date.today()


def _format_compact_date(value: int) -> str:
    text = str(value)
    return f"{text[:4]}-{text[4:6]}-{text[6:]}"


@click.group()
@click.version_option(version=__version__, prog_name="dividend-scanner")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
def main(verbose):
    """Upcoming dividend scanner for the Avanza company calendar."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option("--top", default=pipeline.TOP_N, show_default=True, type=click.IntRange(min=1),
              help="Number of candidates to report.")
@click.option("--today", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Reference date, YYYY-MM-DD (defaults to the current date).")
@_source_options
def scan(top, today, calendar_url, offline_rates, rates_url, timeout):
    """Rank upcoming dividends and show the best candidates."""
    reference = _reference_date(today)
    rate_table = _load_rates(offline_rates, rates_url, timeout)
    entries = _load_calendar(calendar_url, timeout)

    rows = pipeline.run_scan(
        entries,
        rate_table,
        lambda link: fetch.fetch_quote(link, timeout=timeout),
        reference,
        top=top,
        progress=lambda candidates: tqdm(candidates, desc="Fetching quotes"),
    )
    if not rows:
        click.echo("No upcoming dividends matched.")
        return

    click.echo(f"Top {len(rows)} dividend candidates (ex-date after {reference.isoformat()}):\n")
    click.echo(tabulate(report_frame(rows), headers="keys", tablefmt="grid", showindex=False))


def report_frame(rows: List[pipeline.ReportRow], base: str = BASE_CURRENCY) -> pd.DataFrame:
    """Return the report rows as a table, ``N/A`` where the ratio is undefined."""
    data = []
    for row in rows:
        record = row.record
        data.append({
            "Name": record.name,
            f"Price ({base})": round(record.base_price, 2),
            f"Dividend ({base})": round(record.base_dividend, 2),
            f"Invest per {base} dividend": round(row.ratio, 2) if row.ratio is not None else "N/A",
        })
    return pd.DataFrame(data)


@main.command()
@click.option("--today", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Reference date, YYYY-MM-DD (defaults to the current date).")
@_source_options
def calendar(today, calendar_url, offline_rates, rates_url, timeout):
    """List calendar entries that can still be bought before the ex-date."""
    reference = _reference_date(today)
    rate_table = _load_rates(offline_rates, rates_url, timeout)
    entries = _load_calendar(calendar_url, timeout)

    context = pipeline.ScanContext(today=utils.compact_date(reference), rates=rate_table)
    pipeline.collect_candidates(context, entries)
    if not context.candidates:
        click.echo("No upcoming dividends found.")
        return

    table = [
        (c.name, _format_compact_date(c.ex_date), c.dividend_amount, c.dividend_currency, c.exchange_rate)
        for c in sorted(context.candidates.values(), key=lambda c: (c.ex_date, c.name))
    ]
    click.echo(f"{len(table)} of {len(entries)} calendar entries are open for buying:\n")
    click.echo(tabulate(table, headers=["Name", "Ex‑Date", "Dividend", "Currency", "Rate"],
                        tablefmt="simple"))


@main.command(name="rates")
@click.option("--offline", is_flag=True, help="Show the built-in rates instead of looking them up.")
@click.option("--rates-url", default=rates.RATES_API_URL, envvar="DIVIDEND_SCANNER_RATES_URL",
              help="Rate lookup URL template with a {pair} placeholder.")
@click.option("--timeout", default=15.0, show_default=True, envvar="DIVIDEND_SCANNER_TIMEOUT",
              help="HTTP timeout in seconds.")
def show_rates(offline, rates_url, timeout):
    """Show the exchange rates a scan would use."""
    rate_table = _load_rates(offline, rates_url, timeout)
    source = "built-in" if rate_table == rates.DEFAULT_RATES else "live"
    click.echo(f"Exchange rates into {BASE_CURRENCY} ({source}):")
    click.echo(tabulate(sorted(rate_table.items()), headers=["Pair", "Rate"], tablefmt="simple"))


if __name__ == "__main__":
    main()
