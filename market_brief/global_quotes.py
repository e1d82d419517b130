"""Free-text global quote lookup with quote-page fallback."""

from __future__ import annotations

from utils.logging_setup import get_logger

from .finnhub import FinnhubClient
from .models import GlobalLookupResult
from .quote_page import QuotePageClient

logger = get_logger('global_quotes')


class GlobalQuoteService:
    """Ask the JSON API first; scrape the quote page when the API errors out.

    A ``not_found`` answer from the API is final. Any ``error`` (missing key,
    rate limit, HTTP failure, open circuit) falls through to the page
    scraper when one is configured.
    """

    def __init__(self, finnhub: FinnhubClient, quote_page: QuotePageClient | None = None) -> None:
        self.finnhub = finnhub
        self.quote_page = quote_page

    def lookup(self, query: str) -> GlobalLookupResult:
        result = self.finnhub.lookup(query)
        if result.status != 'error' or self.quote_page is None:
            return result

        logger.info(f"Finnhub lookup for {result.query!r} failed ({result.reason}); trying quote page")
        fallback = self.quote_page.lookup(query)
        if fallback.status == 'error':
            return GlobalLookupResult.error(result.query, f"{result.reason}; {fallback.reason}")
        return fallback

    def breaker_stats(self) -> dict[str, dict]:
        stats = {'finnhub': self.finnhub.breaker_stats()}
        if self.quote_page is not None:
            stats['quote_page'] = self.quote_page.breaker_stats()
        return stats
