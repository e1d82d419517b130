"""Stateless parser for chat commands.

Supported forms:
- an instrument alias: 코스피, kospi, /kosdaq, 달러, JPY, 엔, ... -> MarketType
- ?QUERY        free-text global quote search (e.g. "?AAPL", "? bitcoin")
- now           send the daily briefing immediately
- /start, /help, help, 도움말

Latin aliases are case-insensitive; a leading "/" and a trailing
"@botname" (Telegram group-chat form) are ignored.
"""

from __future__ import annotations

from .models import MarketType

COMMAND_ALIASES: dict[str, MarketType] = {
    '코스피': MarketType.KOSPI,
    'kospi': MarketType.KOSPI,
    '코스닥': MarketType.KOSDAQ,
    'kosdaq': MarketType.KOSDAQ,
    '나스닥': MarketType.NASDAQ,
    'nasdaq': MarketType.NASDAQ,
    '달러': MarketType.USD,
    'usd': MarketType.USD,
    '엔화': MarketType.JPY,
    '엔': MarketType.JPY,
    'jpy': MarketType.JPY,
    '유로': MarketType.EUR,
    'eur': MarketType.EUR,
    '파운드': MarketType.GBP,
    'gbp': MarketType.GBP,
    '스위스프랑': MarketType.CHF,
    '프랑': MarketType.CHF,
    'chf': MarketType.CHF,
    '위안': MarketType.CNY,
    '중국': MarketType.CNY,
    'cny': MarketType.CNY,
}

BRIEFING_COMMANDS = ('now',)
HELP_COMMANDS = ('help', '도움말')
# only recognised in "/start" form
SLASH_HELP_COMMANDS = ('start',)
SEARCH_PREFIX = '?'


def _normalize(text: str | None) -> str:
    if not text or not isinstance(text, str):
        return ''
    token = text.strip()
    if token.startswith('/'):
        token = token[1:]
        # "/kospi@market_brief_bot" -> "kospi"
        token = token.split('@', 1)[0]
    return token.strip().lower()


def parse_command(text: str | None) -> MarketType | None:
    """Map an instrument alias to its MarketType; None for anything else."""
    return COMMAND_ALIASES.get(_normalize(text))


def parse_search_command(text: str | None) -> str | None:
    """Return the query of a "?QUERY" search command, or None."""
    if not text or not isinstance(text, str):
        return None
    trimmed = text.strip()
    if not trimmed.startswith(SEARCH_PREFIX):
        return None
    query = trimmed[len(SEARCH_PREFIX) :].strip()
    return query or None


def is_briefing_command(text: str | None) -> bool:
    return _normalize(text) in BRIEFING_COMMANDS


def is_help_command(text: str | None) -> bool:
    token = _normalize(text)
    if token in SLASH_HELP_COMMANDS:
        return text.strip().startswith('/')
    return token in HELP_COMMANDS


def aliases_for(market: MarketType) -> list[str]:
    return [alias for alias, m in COMMAND_ALIASES.items() if m is market]
