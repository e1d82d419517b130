"""market_brief package: daily market briefing and quote bot for Telegram."""

from __future__ import annotations

from .bot import MarketBriefBot, WebhookOutcome
from .commands import parse_command, parse_search_command
from .config import BotConfig
from .exceptions import (
    ChatApiError,
    ConfigurationError,
    MarketBriefError,
    ProviderError,
    RateLimitedError,
    SymbolNotFoundError,
)
from .models import (
    ChangeDirection,
    ChangeInfo,
    DailyMarketSummary,
    GlobalLookupResult,
    GlobalMarketData,
    MarketData,
    MarketSummaryItem,
    MarketType,
)

__version__ = '0.2.0'

__all__ = [
    'MarketBriefBot',
    'WebhookOutcome',
    'BotConfig',
    'parse_command',
    'parse_search_command',
    'MarketBriefError',
    'ConfigurationError',
    'ProviderError',
    'RateLimitedError',
    'SymbolNotFoundError',
    'ChatApiError',
    'ChangeDirection',
    'ChangeInfo',
    'DailyMarketSummary',
    'GlobalLookupResult',
    'GlobalMarketData',
    'MarketData',
    'MarketSummaryItem',
    'MarketType',
]
