"""Top level package for dividend_scanner.

The package provides a small CLI tool that reads the upcoming dividends in
Avanza's company calendar, converts NOK, DKK and EUR dividends into SEK and
ranks the candidates that can still be bought before their ex‑dividend
date.

Nothing is stored between runs; every scan fetches the calendar, the
exchange rates and the quote pages afresh.
"""

__all__ = ["cli", "fetch", "pipeline", "rates", "utils"]
