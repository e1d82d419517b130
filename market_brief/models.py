"""Normalized quote records shared by fetchers, formatters and the bot."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ChangeDirection(str, Enum):
    UP = 'up'
    DOWN = 'down'
    UNCHANGED = 'unchanged'


class MarketType(str, Enum):
    KOSPI = 'kospi'
    KOSDAQ = 'kosdaq'
    NASDAQ = 'nasdaq'
    USD = 'usd'
    JPY = 'jpy'
    EUR = 'eur'
    GBP = 'gbp'
    CHF = 'chf'
    CNY = 'cny'

    @property
    def display_name(self) -> str:
        return MARKET_NAMES[self]

    @property
    def is_currency(self) -> bool:
        return self not in (MarketType.KOSPI, MarketType.KOSDAQ, MarketType.NASDAQ)


MARKET_NAMES: dict[MarketType, str] = {
    MarketType.KOSPI: '코스피',
    MarketType.KOSDAQ: '코스닥',
    MarketType.NASDAQ: '나스닥',
    MarketType.USD: '달러',
    MarketType.JPY: '엔화',
    MarketType.EUR: '유로',
    MarketType.GBP: '파운드',
    MarketType.CHF: '스위스프랑',
    MarketType.CNY: '위안',
}


@dataclass(frozen=True)
class ChangeInfo:
    direction: ChangeDirection
    value: str  # absolute delta as display text, e.g. "12.34"
    percent: str  # e.g. "0.52%"; may be empty


@dataclass(frozen=True)
class MarketSummaryItem:
    value: str | None = None
    change: ChangeInfo | None = None

    @property
    def available(self) -> bool:
        return bool(self.value)


@dataclass(frozen=True)
class MarketData:
    type: MarketType
    name: str
    value: str
    change: ChangeInfo | None = None


@dataclass(frozen=True)
class DailyMarketSummary:
    kospi: MarketSummaryItem = field(default_factory=MarketSummaryItem)
    kosdaq: MarketSummaryItem = field(default_factory=MarketSummaryItem)
    usd: MarketSummaryItem = field(default_factory=MarketSummaryItem)
    eur: MarketSummaryItem = field(default_factory=MarketSummaryItem)
    jpy: MarketSummaryItem = field(default_factory=MarketSummaryItem)
    gbp: MarketSummaryItem = field(default_factory=MarketSummaryItem)
    chf: MarketSummaryItem = field(default_factory=MarketSummaryItem)
    cny: MarketSummaryItem = field(default_factory=MarketSummaryItem)


@dataclass(frozen=True)
class GlobalMarketData:
    symbol: str
    name: str
    value: str
    source_url: str
    asset_type: str = 'other'  # stock | index | crypto | other
    change: ChangeInfo | None = None


@dataclass(frozen=True)
class GlobalLookupResult:
    """Outcome of a free-text global quote lookup.

    status is one of 'ok' (data set), 'not_found' or 'error' (reason set).
    """

    status: str
    query: str
    data: GlobalMarketData | None = None
    reason: str | None = None

    @classmethod
    def ok(cls, data: GlobalMarketData, query: str = '') -> GlobalLookupResult:
        return cls(status='ok', query=query or data.symbol, data=data)

    @classmethod
    def not_found(cls, query: str) -> GlobalLookupResult:
        return cls(status='not_found', query=query)

    @classmethod
    def error(cls, query: str, reason: str) -> GlobalLookupResult:
        return cls(status='error', query=query, reason=reason)

    @property
    def is_ok(self) -> bool:
        return self.status == 'ok'
