"""Global quote lookup against the Finnhub JSON API.

A free-text query is resolved in two passes: first a handful of direct symbol
candidates derived from the query itself (``$AAPL``, ``BTC-USD``, index
aliases, ...), then the ranked results of Finnhub's symbol search. The first
candidate with a usable quote wins.
"""

from __future__ import annotations

import re
from typing import Any, NamedTuple

import requests

from utils.circuit_breaker import CircuitBreaker, CircuitOpenError
from utils.http_client import JSON_HEADERS, HTTPClient
from utils.logging_setup import get_logger

from .exceptions import MarketBriefError, ProviderError, RateLimitedError, SymbolNotFoundError
from .models import GlobalLookupResult, GlobalMarketData
from .numbers import format_numeric_value, is_finite, to_change_info

logger = get_logger('finnhub')

FINNHUB_API_BASE = 'https://finnhub.io/api/v1'
SOURCE_URL = 'https://finnhub.io'
MAX_SEARCH_CANDIDATES = 12

CRYPTO_EXCHANGES = ('BINANCE', 'COINBASE', 'BITFINEX', 'KRAKEN', 'BYBIT', 'HUOBI')

INDEX_ETF_ALIASES: dict[str, list[str]] = {
    '^GSPC': ['SPY'],
    '^IXIC': ['QQQ'],
    '^DJI': ['DIA'],
    '^RUT': ['IWM'],
}

_USD_CRYPTO_RE = re.compile(r'^([A-Z0-9]{2,12})-USD$')
_USDT_PAIR_RE = re.compile(r'^[A-Z0-9]{4,20}USDT$')

# Failures that say nothing about a single candidate; stop probing others.
_UPSTREAM_DOWN = (RateLimitedError, CircuitOpenError)


class FinnhubQuote(NamedTuple):
    current: float
    change: float | None
    change_percent: float | None


class Candidate(NamedTuple):
    symbol: str
    type: str | None = None
    description: str | None = None


def dedupe_symbols(symbols: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for symbol in symbols:
        normalized = symbol.strip().upper()
        if not normalized or normalized in seen:
            continue
        seen.add(normalized)
        out.append(normalized)
    return out


def build_direct_symbol_candidates(query: str) -> list[str]:
    upper = query.strip().upper()
    if not upper:
        return []

    symbols = [upper]
    if upper.startswith('$') and len(upper) > 1:
        symbols.append(upper[1:])

    m = _USD_CRYPTO_RE.match(upper)
    if m:
        base = m.group(1)
        symbols.append(f"BINANCE:{base}USDT")
        symbols.append(f"COINBASE:{base}-USD")

    if _USDT_PAIR_RE.match(upper) and ':' not in upper:
        symbols.append(f"BINANCE:{upper}")

    symbols.extend(INDEX_ETF_ALIASES.get(upper, []))
    return dedupe_symbols(symbols)


def to_asset_type(type_: str | None = None, symbol: str | None = None) -> str:
    lower_type = (type_ or '').lower()
    if 'crypto' in lower_type:
        return 'crypto'
    if 'index' in lower_type:
        return 'index'

    upper_symbol = (symbol or '').upper()
    if ':' in upper_symbol and upper_symbol.split(':', 1)[0] in CRYPTO_EXCHANGES:
        return 'crypto'

    if any(k in lower_type for k in ('stock', 'equity', 'etf', 'fund', 'adr')):
        return 'stock'
    return 'other'


def build_display_name(symbol: str, name: str | None = None) -> str:
    trimmed = (name or '').strip()
    if not trimmed or trimmed.upper() == symbol.upper():
        return symbol
    return f"{trimmed} ({symbol})"


def score_candidate(candidate: Candidate, normalized_query: str) -> int:
    symbol = candidate.symbol
    score = 0
    if symbol == normalized_query:
        score += 120
    if symbol.lstrip('^') == normalized_query.lstrip('^'):
        score += 90
    if symbol.startswith(normalized_query):
        score += 45
    if normalized_query in (candidate.description or '').upper():
        score += 15
    lower_type = (candidate.type or '').lower()
    if 'stock' in lower_type or 'equity' in lower_type:
        score += 10
    if 'index' in lower_type:
        score += 10
    if 'crypto' in lower_type:
        score += 10
    return score


class FinnhubClient:
    """Thin client for /quote, /search and /stock/profile2."""

    def __init__(
        self,
        api_key: str | None,
        http: HTTPClient | None = None,
        breaker: CircuitBreaker | None = None,
    ) -> None:
        self.api_key = (api_key or '').strip()
        self._http = http or HTTPClient(headers=JSON_HEADERS)
        self._cb = breaker or CircuitBreaker(name='finnhub', ignore=(SymbolNotFoundError,))

    def breaker_stats(self) -> dict:
        return self._cb.stats()

    def _call(self, path: str, params: dict[str, str]) -> Any:
        with self._cb:
            resp = self._http.get(f"{FINNHUB_API_BASE}{path}", params={**params, 'token': self.api_key})
            if resp.status_code == 404:
                raise SymbolNotFoundError(params.get('symbol') or params.get('q') or '')
            if resp.status_code == 429:
                raise RateLimitedError('finnhub', 'rate limited', 429)
            if not 200 <= resp.status_code < 300:
                raise ProviderError('finnhub', f"request to {path} failed", resp.status_code)
            return resp.json()

    def get_quote(self, symbol: str) -> FinnhubQuote | None:
        """Return the quote, or None when Finnhub does not know the symbol."""
        try:
            quote = self._call('/quote', {'symbol': symbol})
        except SymbolNotFoundError:
            return None
        if not isinstance(quote, dict):
            return None

        current = quote.get('c')
        if not is_finite(current):
            return None
        previous_close = quote.get('pc')
        has_pc = is_finite(previous_close)

        change = quote.get('d') if is_finite(quote.get('d')) else None
        if change is None and has_pc:
            change = current - previous_close

        change_percent = quote.get('dp') if is_finite(quote.get('dp')) else None
        if change_percent is None and change is not None and has_pc and previous_close != 0:
            change_percent = change / previous_close * 100

        # Unknown symbols usually come back as an all-zero quote
        if current == 0 and (not has_pc or previous_close == 0):
            return None

        return FinnhubQuote(float(current), change, change_percent)

    def get_profile_name(self, symbol: str) -> str | None:
        try:
            profile = self._call('/stock/profile2', {'symbol': symbol})
        except (MarketBriefError, CircuitOpenError, requests.RequestException, ValueError) as e:
            logger.debug(f"profile lookup for {symbol} failed: {e}")
            return None
        name = profile.get('name') if isinstance(profile, dict) else None
        return name.strip() if isinstance(name, str) and name.strip() else None

    def search(self, query: str) -> list[Candidate]:
        payload = self._call('/search', {'q': query})
        results = payload.get('result') if isinstance(payload, dict) else None
        normalized_query = query.strip().upper()

        candidates = []
        for item in results or []:
            if not isinstance(item, dict):
                continue
            symbol = (item.get('symbol') or '').strip().upper()
            if symbol:
                candidates.append(Candidate(symbol, item.get('type'), item.get('description')))

        # sorted() is stable: equal scores keep Finnhub's order
        ranked = sorted(candidates, key=lambda c: score_candidate(c, normalized_query), reverse=True)

        out: list[Candidate] = []
        seen: set[str] = set()
        for c in ranked:
            if c.symbol in seen:
                continue
            seen.add(c.symbol)
            out.append(c)
            if len(out) >= MAX_SEARCH_CANDIDATES:
                break
        return out

    def resolve_candidate(self, candidate: Candidate) -> GlobalMarketData | None:
        quote = self.get_quote(candidate.symbol)
        if quote is None:
            return None
        profile_name = self.get_profile_name(candidate.symbol)
        return GlobalMarketData(
            symbol=candidate.symbol,
            name=build_display_name(candidate.symbol, profile_name or candidate.description),
            value=format_numeric_value(quote.current),
            change=to_change_info(quote.change, quote.change_percent),
            source_url=SOURCE_URL,
            asset_type=to_asset_type(candidate.type, candidate.symbol),
        )

    def lookup(self, query: str) -> GlobalLookupResult:
        trimmed = (query or '').strip()
        if not trimmed:
            return GlobalLookupResult.not_found(query or '')
        if not self.api_key:
            return GlobalLookupResult.error(trimmed, 'Missing FINNHUB_API_KEY')

        first_error: str | None = None

        for symbol in build_direct_symbol_candidates(trimmed):
            try:
                resolved = self.resolve_candidate(Candidate(symbol))
            except _UPSTREAM_DOWN as e:
                return GlobalLookupResult.error(trimmed, f"Finnhub lookup failed: {e}")
            except (MarketBriefError, requests.RequestException, ValueError) as e:
                logger.debug(f"direct candidate {symbol} failed: {e}")
                first_error = first_error or str(e)
                continue
            if resolved:
                return GlobalLookupResult.ok(resolved, trimmed)

        try:
            candidates = self.search(trimmed)
        except (MarketBriefError, CircuitOpenError, requests.RequestException, ValueError) as e:
            return GlobalLookupResult.error(trimmed, f"Finnhub search failed: {e}")

        for candidate in candidates:
            try:
                resolved = self.resolve_candidate(candidate)
            except _UPSTREAM_DOWN as e:
                return GlobalLookupResult.error(trimmed, f"Finnhub lookup failed: {e}")
            except (MarketBriefError, requests.RequestException, ValueError) as e:
                logger.debug(f"search candidate {candidate.symbol} failed: {e}")
                first_error = first_error or str(e)
                continue
            if resolved:
                return GlobalLookupResult.ok(resolved, trimmed)

        if first_error:
            return GlobalLookupResult.error(trimmed, f"Finnhub lookup failed: {first_error}")
        return GlobalLookupResult.not_found(trimmed)
