"""Domestic index and KRW exchange-rate fetchers backed by Naver Finance JSON APIs.

Every public getter returns a MarketSummaryItem and never raises: transport
errors, non-200 responses and malformed payloads are logged and reported as
an unavailable item (value None).
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import requests

from utils.http_client import JSON_HEADERS, HTTPClient
from utils.logging_setup import get_logger

from .exceptions import ProviderError
from .models import (
    ChangeDirection,
    ChangeInfo,
    DailyMarketSummary,
    MarketData,
    MarketSummaryItem,
    MarketType,
)

logger = get_logger('naver')

API_URLS = {
    MarketType.KOSPI: 'https://polling.finance.naver.com/api/realtime/domestic/index/KOSPI',
    MarketType.KOSDAQ: 'https://polling.finance.naver.com/api/realtime/domestic/index/KOSDAQ',
    MarketType.NASDAQ: 'https://polling.finance.naver.com/api/realtime/worldstock/index/.IXIC',
}
EXCHANGE_URL = 'https://m.stock.naver.com/front-api/marketIndex/exchange/new'

# Naver status codes for the change vs. previous close
_DIRECTION_CODES = {
    '2': ChangeDirection.UP,
    '5': ChangeDirection.DOWN,
    '3': ChangeDirection.UNCHANGED,
}


def code_to_direction(code: Any) -> ChangeDirection:
    return _DIRECTION_CODES.get(str(code) if code is not None else '', ChangeDirection.UNCHANGED)


def _text(value: Any) -> str:
    return '' if value is None else str(value).strip()


def _percent(ratio: Any) -> str:
    ratio = _text(ratio)
    return f"{ratio}%" if ratio else ''


def _status_code(status: Any) -> Any:
    return status.get('code') if isinstance(status, dict) else None


class NaverFinanceClient:
    """Fetch KOSPI / KOSDAQ / NASDAQ and KRW exchange rates."""

    def __init__(
        self,
        http: HTTPClient | None = None,
        exchange_ttl: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._http = http or HTTPClient(headers=JSON_HEADERS)
        self.exchange_ttl = float(exchange_ttl)
        self._clock = clock
        self._exchange_lock = threading.Lock()
        self._exchange_cache: tuple[float, dict] | None = None

    def _fetch_json(self, url: str) -> Any:
        resp = self._http.get(url)
        if resp.status_code != 200:
            raise ProviderError('naver', f"failed to fetch {url}", resp.status_code)
        return resp.json()

    # ---- indices ----
    def get_index(self, market: MarketType) -> MarketSummaryItem:
        url = API_URLS[market]
        try:
            data = self._fetch_json(url)
        except (requests.RequestException, ProviderError, ValueError) as e:
            logger.error(f"Error fetching {market.name}: {e}")
            return MarketSummaryItem()

        datas = data.get('datas') if isinstance(data, dict) else None
        item = datas[0] if isinstance(datas, list) and datas else None
        if not isinstance(item, dict) or not _text(item.get('closePrice')):
            logger.warning(f"{market.name}: empty payload")
            return MarketSummaryItem()

        return MarketSummaryItem(
            value=_text(item.get('closePrice')),
            change=ChangeInfo(
                direction=code_to_direction(_status_code(item.get('compareToPreviousPrice'))),
                value=_text(item.get('compareToPreviousClosePrice')),
                percent=_percent(item.get('fluctuationsRatio')),
            ),
        )

    def get_kospi(self) -> MarketSummaryItem:
        return self.get_index(MarketType.KOSPI)

    def get_kosdaq(self) -> MarketSummaryItem:
        return self.get_index(MarketType.KOSDAQ)

    def get_nasdaq(self) -> MarketSummaryItem:
        return self.get_index(MarketType.NASDAQ)

    # ---- exchange rates ----
    def _get_exchange_data(self) -> dict | None:
        # One fetch serves all currencies within the TTL window
        with self._exchange_lock:
            now = self._clock()
            cached = self._exchange_cache
            if cached and (now - cached[0]) < self.exchange_ttl:
                return cached[1]
            try:
                data = self._fetch_json(EXCHANGE_URL)
            except (requests.RequestException, ProviderError, ValueError) as e:
                logger.error(f"Error fetching exchange data: {e}")
                return None
            if not isinstance(data, dict):
                logger.error("Exchange payload is not an object")
                return None
            self._exchange_cache = (now, data)
            return data

    def get_exchange(self, code: str) -> MarketSummaryItem:
        data = self._get_exchange_data()
        if not data or not data.get('isSuccess') or not isinstance(data.get('result'), list):
            return MarketSummaryItem()

        code = code.upper()
        item = next(
            (e for e in data['result'] if isinstance(e, dict) and e.get('exchangeCode') == code),
            None,
        )
        if item is None or not _text(item.get('closePrice')):
            return MarketSummaryItem()

        return MarketSummaryItem(
            value=_text(item.get('closePrice')),
            change=ChangeInfo(
                direction=code_to_direction(_status_code(item.get('fluctuationsType'))),
                value=_text(item.get('fluctuations')),
                percent=_percent(item.get('fluctuationsRatio')),
            ),
        )

    def get_usd(self) -> MarketSummaryItem:
        return self.get_exchange('USD')

    def get_eur(self) -> MarketSummaryItem:
        return self.get_exchange('EUR')

    def get_jpy(self) -> MarketSummaryItem:
        return self.get_exchange('JPY')

    def get_gbp(self) -> MarketSummaryItem:
        return self.get_exchange('GBP')

    def get_chf(self) -> MarketSummaryItem:
        return self.get_exchange('CHF')

    def get_cny(self) -> MarketSummaryItem:
        return self.get_exchange('CNY')

    # ---- aggregates ----
    def fetch(self, market: MarketType) -> MarketSummaryItem:
        if market.is_currency:
            return self.get_exchange(market.value)
        return self.get_index(market)

    def get_market_data(self, market: MarketType) -> MarketData | None:
        """Resolve a single instrument; None when its value is unavailable."""
        item = self.fetch(market)
        if not item.available:
            return None
        return MarketData(type=market, name=market.display_name, value=item.value, change=item.change)

    def get_daily_market_summary(self) -> DailyMarketSummary:
        fields = ('kospi', 'kosdaq', 'usd', 'eur', 'jpy', 'gbp', 'chf', 'cny')
        with ThreadPoolExecutor(max_workers=len(fields)) as pool:
            futures = {name: pool.submit(self.fetch, MarketType(name)) for name in fields}
            return DailyMarketSummary(**{name: fut.result() for name, fut in futures.items()})
