"""Render quotes into Telegram HTML messages."""

from __future__ import annotations

import re
from html import escape

from .commands import aliases_for
from .models import (
    ChangeDirection,
    ChangeInfo,
    DailyMarketSummary,
    GlobalLookupResult,
    MarketSummaryItem,
    MarketType,
)

DIRECTION_EMOJI = {
    ChangeDirection.UP: '↗️',
    ChangeDirection.DOWN: '↘️',
    ChangeDirection.UNCHANGED: '➖',
}

NAVER_DETAIL_URL = 'https://finance.naver.com'

# (attribute, emoji, label); None is a blank separator line
DAILY_SUMMARY_LAYOUT: list[tuple[str, str, str] | None] = [
    ('kospi', '🇰🇷', '코스피'),
    ('kosdaq', '🇰🇷', '코스닥'),
    None,
    ('usd', '💵', 'USD'),
    ('eur', '💶', 'EUR'),
    ('jpy', '💴', 'JPY'),
    ('gbp', '🇬🇧', 'GBP'),
    ('chf', '🇨🇭', 'CHF'),
    ('cny', '🇨🇳', 'CNY'),
]

ASSET_EMOJI = {'stock': '🏢', 'index': '📈', 'crypto': '🪙', 'other': '💹'}

_LEADING_SIGN_RE = re.compile(r'^[+-]')


def format_change(change: ChangeInfo | None) -> str:
    """Suffix like ' ↗️+12.34 (0.52%)'; empty when there is no change value."""
    if change is None or not change.value:
        return ''
    emoji = DIRECTION_EMOJI.get(change.direction, DIRECTION_EMOJI[ChangeDirection.UNCHANGED])
    clean = _LEADING_SIGN_RE.sub('', change.value)
    signed = f"-{clean}" if change.direction == ChangeDirection.DOWN else f"+{clean}"
    percent = f" ({change.percent})" if change.percent else ''
    return f" {emoji}{signed}{percent}"


def format_market_item(emoji: str, label: str, item: MarketSummaryItem) -> str:
    value = item.value if item.value is not None else 'N/A'
    return f"{emoji} {label}: {value}{format_change(item.change)}"


def format_daily_market_message(data: DailyMarketSummary) -> str:
    lines = ['<b>📊 일일 시장 상황</b>', '']
    for row in DAILY_SUMMARY_LAYOUT:
        if row is None:
            lines.append('')
            continue
        attr, emoji, label = row
        lines.append(format_market_item(emoji, label, getattr(data, attr)))
    return '\n'.join(lines)


def format_market_data_message(
    username: str,
    market_name: str,
    value: str,
    change: ChangeInfo | None = None,
    detail_url: str = NAVER_DETAIL_URL,
) -> str:
    return '\n'.join(
        [
            f"@{escape(username)}",
            f"{escape(market_name)}의 현재 시세는 <b>{escape(value)}</b>{format_change(change)} 입니다.",
            f'<a href="{escape(detail_url)}"><i>자세히 보기</i></a>',
        ]
    )


def format_global_lookup_message(username: str, result: GlobalLookupResult) -> str:
    mention = f"@{escape(username)}"
    if result.is_ok and result.data is not None:
        data = result.data
        emoji = ASSET_EMOJI.get(data.asset_type, ASSET_EMOJI['other'])
        return '\n'.join(
            [
                mention,
                f"{emoji} {escape(data.name)}의 현재 시세는 <b>{escape(data.value)}</b>"
                f"{format_change(data.change)} 입니다.",
                f'<a href="{escape(data.source_url)}"><i>자세히 보기</i></a>',
            ]
        )
    if result.status == 'not_found':
        return f"{mention}\n'{escape(result.query)}'에 해당하는 종목을 찾을 수 없습니다."
    return f"{mention}\n'{escape(result.query)}' 시세 조회에 실패했습니다. 잠시 후 다시 시도해 주세요."


def format_help_message() -> str:
    lines = ['<b>📖 사용법</b>', '']
    for market in MarketType:
        aliases = ', '.join(aliases_for(market))
        lines.append(f"• {market.display_name}: {escape(aliases)}")
    lines += [
        '',
        '• ?종목: 해외 주식/지수/코인 검색 (예: ?AAPL, ?BTC-USD)',
        '• now: 일일 시장 브리핑 즉시 받기',
    ]
    return '\n'.join(lines)
