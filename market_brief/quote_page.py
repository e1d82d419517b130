"""Quote extraction from a provider's rendered quote page (HTML scraping).

Used when the JSON quote API is unavailable or rate-limited. The page is
parsed with BeautifulSoup and the quote is pulled out by the first strategy
that yields a price:

1. embedded JSON blocks (``<script type="application/json">``), including
   JSON documents nested as strings under a ``body`` key;
2. inline data attributes (``<fin-streamer data-field=... data-value=...>``
   and ``data-testid="qsp-price"`` style markers).

The page's canonical link resolves the symbol the provider actually
rendered, which differs from the requested one when an alias redirects.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from typing import Any, NamedTuple
from urllib.parse import quote as url_quote
from urllib.parse import unquote, urlparse

import requests
from bs4 import BeautifulSoup

from utils.circuit_breaker import CircuitBreaker, CircuitOpenError
from utils.http_client import HTML_HEADERS, HTTPClient
from utils.logging_setup import get_logger

from .finnhub import build_display_name
from .models import GlobalLookupResult, GlobalMarketData
from .numbers import format_numeric_value, parse_number, to_change_info

logger = get_logger('quote_page')

QUOTE_PAGE_URL = 'https://finance.yahoo.com/quote/{symbol}/'

INDEX_ALIASES = {
    'SPX': '^GSPC',
    'GSPC': '^GSPC',
    'NDX': '^IXIC',
    'COMP': '^IXIC',
    'IXIC': '^IXIC',
    'DJI': '^DJI',
    'DJIA': '^DJI',
    'RUT': '^RUT',
    'KOSPI': '^KS11',
    'KOSDAQ': '^KQ11',
}

NOT_FOUND_MARKERS = ('No results for', 'Quote Not Found', 'Symbols similar to')

QUOTE_TYPES = {
    'EQUITY': 'stock',
    'ETF': 'stock',
    'MUTUALFUND': 'stock',
    'INDEX': 'index',
    'CRYPTOCURRENCY': 'crypto',
}

_VALID_SYMBOL_RE = re.compile(r'^\^?[A-Z0-9][A-Z0-9.\-=]{0,19}$')
_EXCHANGE_PREFIX_RE = re.compile(r'^([A-Z]+):(.+)$')
_USDT_RE = re.compile(r'^([A-Z0-9]{2,12})USDT$')
_KRX_CODE_RE = re.compile(r'^\d{6}$')
_QUOTE_PATH_RE = re.compile(r'/quote/([^/?#]+)')
_TRAILING_SYMBOL_RE = re.compile(r'\s*\([^()]*\)\s*$')

_PRICE_FIELDS = ('regularMarketPrice', 'regularMarketChange', 'regularMarketChangePercent')
_MAX_JSON_DEPTH = 12


class PageQuote(NamedTuple):
    symbol: str
    price: float
    change: float | None = None
    change_percent: float | None = None
    name: str | None = None
    quote_type: str | None = None


def canonicalize_symbol(query: str) -> str | None:
    """Map user input onto the quote page's symbol scheme; None when unusable."""
    sym = (query or '').strip().upper()
    if sym.startswith('$'):
        sym = sym[1:].strip()
    if not sym:
        return None

    m = _EXCHANGE_PREFIX_RE.match(sym)
    if m:
        sym = m.group(2)
    usdt = _USDT_RE.match(sym)
    if usdt:
        sym = f"{usdt.group(1)}-USD"

    sym = INDEX_ALIASES.get(sym, sym)
    if _KRX_CODE_RE.match(sym):
        sym = f"{sym}.KS"

    return sym if _VALID_SYMBOL_RE.match(sym) else None


def quote_page_url(symbol: str) -> str:
    return QUOTE_PAGE_URL.format(symbol=url_quote(symbol, safe='-.='))


def infer_quote_type(symbol: str) -> str | None:
    if symbol.startswith('^'):
        return 'INDEX'
    if symbol.endswith('-USD'):
        return 'CRYPTOCURRENCY'
    return None


def to_asset_type(quote_type: str | None) -> str:
    return QUOTE_TYPES.get((quote_type or '').upper(), 'other')


def _raw(value: Any) -> float | None:
    # Values are either plain numbers or {"raw": 1.23, "fmt": "1.23"}
    if isinstance(value, dict):
        value = value.get('raw', value.get('fmt'))
    return parse_number(value)


def _walk(node: Any, depth: int = 0) -> Iterator[dict]:
    if depth > _MAX_JSON_DEPTH:
        return
    if isinstance(node, dict):
        yield node
        for key, value in node.items():
            if key == 'body' and isinstance(value, str):
                try:
                    yield from _walk(json.loads(value), depth + 1)
                except ValueError:
                    pass
            else:
                yield from _walk(value, depth + 1)
    elif isinstance(node, list):
        for value in node:
            yield from _walk(value, depth + 1)


class QuotePageParser:
    def __init__(self, html: str, requested_symbol: str) -> None:
        self.soup = BeautifulSoup(html or '', 'html.parser')
        self.requested_symbol = requested_symbol.upper()

    # ---- page-level signals ----
    def _canonical_href(self) -> str | None:
        link = self.soup.find('link', rel='canonical')
        if link and link.get('href'):
            return link['href']
        og = self.soup.find('meta', attrs={'property': 'og:url'})
        if og and og.get('content'):
            return og['content']
        return None

    def canonical_symbol(self) -> str | None:
        href = self._canonical_href()
        if not href:
            return None
        m = _QUOTE_PATH_RE.search(urlparse(href).path)
        return unquote(m.group(1)).upper() if m else None

    def is_lookup_page(self) -> bool:
        """Canonical link or title says the provider redirected to symbol lookup."""
        href = self._canonical_href() or ''
        if '/lookup' in urlparse(href).path:
            return True
        title = self.soup.title.get_text(strip=True) if self.soup.title else ''
        return 'Symbol Lookup' in title

    def has_not_found_text(self) -> bool:
        # Quote pages can mention these phrases too; only trust them without a quote
        text = self.soup.get_text(' ', strip=True)
        return any(marker in text for marker in NOT_FOUND_MARKERS)

    def heading_name(self) -> str | None:
        h1 = self.soup.find('h1')
        if not h1:
            return None
        name = _TRAILING_SYMBOL_RE.sub('', h1.get_text(' ', strip=True)).strip()
        return name or None

    # ---- strategy 1: embedded JSON ----
    def _json_documents(self) -> Iterator[Any]:
        for script in self.soup.find_all('script', type=['application/json', 'application/ld+json']):
            text = script.string or script.get_text()
            if not text or 'regularMarketPrice' not in text:
                continue
            try:
                yield json.loads(text)
            except ValueError:
                continue

    def from_json_blocks(self, symbol: str) -> PageQuote | None:
        fallback: dict | None = None
        for doc in self._json_documents():
            for node in _walk(doc):
                if 'regularMarketPrice' not in node:
                    continue
                node_symbol = str(node.get('symbol') or '').upper()
                if node_symbol == symbol:
                    quote = self._quote_from_json(node, symbol)
                    if quote is not None:
                        return quote
                    continue
                if not node_symbol and fallback is None:
                    fallback = node
        return self._quote_from_json(fallback, symbol) if fallback else None

    def _quote_from_json(self, node: dict, symbol: str) -> PageQuote | None:
        price = _raw(node.get('regularMarketPrice'))
        if price is None:
            return None
        return PageQuote(
            symbol=symbol,
            price=price,
            change=_raw(node.get('regularMarketChange')),
            change_percent=_raw(node.get('regularMarketChangePercent')),
            name=node.get('longName') or node.get('shortName') or self.heading_name(),
            quote_type=node.get('quoteType') or infer_quote_type(symbol),
        )

    # ---- strategy 2: inline data attributes ----
    def from_data_attributes(self, symbol: str) -> PageQuote | None:
        values: dict[str, float | None] = {}
        for tag in self.soup.find_all('fin-streamer', attrs={'data-field': True}):
            tag_symbol = (tag.get('data-symbol') or '').upper()
            field = tag['data-field']
            if tag_symbol != symbol or field not in _PRICE_FIELDS or field in values:
                continue
            values[field] = parse_number(tag.get('data-value') or tag.get('value') or tag.get_text(strip=True))

        testids = {
            'regularMarketPrice': 'qsp-price',
            'regularMarketChange': 'qsp-price-change',
            'regularMarketChangePercent': 'qsp-price-change-percent',
        }
        for field, testid in testids.items():
            if values.get(field) is not None:
                continue
            tag = self.soup.find(attrs={'data-testid': testid})
            if tag is not None:
                values[field] = parse_number(tag.get_text(strip=True))

        price = values.get('regularMarketPrice')
        if price is None:
            return None
        return PageQuote(
            symbol=symbol,
            price=price,
            change=values.get('regularMarketChange'),
            change_percent=values.get('regularMarketChangePercent'),
            name=self.heading_name(),
            quote_type=infer_quote_type(symbol),
        )

    def extract(self) -> PageQuote | None:
        """Run the strategies in order for the canonical symbol, then the requested one."""
        symbols = [s for s in (self.canonical_symbol(), self.requested_symbol) if s]
        for symbol in dict.fromkeys(symbols):
            for strategy in (self.from_json_blocks, self.from_data_attributes):
                quote = strategy(symbol)
                if quote is not None:
                    logger.debug(f"{symbol}: quote extracted via {strategy.__name__}")
                    return quote
        return None


class QuotePageClient:
    """Fetch and parse quote pages; results mirror the JSON API client's."""

    def __init__(self, http: HTTPClient | None = None, breaker: CircuitBreaker | None = None) -> None:
        self._http = http or HTTPClient(headers=HTML_HEADERS)
        self._cb = breaker or CircuitBreaker(name='quote_page', recovery_time=60.0)

    def breaker_stats(self) -> dict:
        return self._cb.stats()

    def lookup(self, query: str) -> GlobalLookupResult:
        trimmed = (query or '').strip()
        symbol = canonicalize_symbol(trimmed)
        if not symbol:
            return GlobalLookupResult.not_found(trimmed)

        url = quote_page_url(symbol)
        try:
            with self._cb:
                resp = self._http.get(url)
                if resp.status_code >= 500 or resp.status_code == 429:
                    raise requests.HTTPError(f"{resp.status_code} from quote page", response=resp)
        except CircuitOpenError as e:
            return GlobalLookupResult.error(trimmed, f"Quote page unavailable: {e}")
        except requests.RequestException as e:
            return GlobalLookupResult.error(trimmed, f"Quote page request failed: {e}")

        if resp.status_code == 404:
            return GlobalLookupResult.not_found(trimmed)
        if resp.status_code != 200:
            return GlobalLookupResult.error(trimmed, f"Quote page HTTP {resp.status_code}")

        parser = QuotePageParser(resp.text, symbol)
        if parser.is_lookup_page():
            return GlobalLookupResult.not_found(trimmed)

        quote = parser.extract()
        if quote is None:
            if parser.has_not_found_text():
                return GlobalLookupResult.not_found(trimmed)
            logger.warning(f"{symbol}: no quote found on page {url}")
            return GlobalLookupResult.error(trimmed, 'Quote page had no recognizable quote data')

        return GlobalLookupResult.ok(
            GlobalMarketData(
                symbol=quote.symbol,
                name=build_display_name(quote.symbol, quote.name),
                value=format_numeric_value(quote.price),
                change=to_change_info(quote.change, quote.change_percent),
                source_url=quote_page_url(quote.symbol),
                asset_type=to_asset_type(quote.quote_type),
            ),
            trimmed,
        )
