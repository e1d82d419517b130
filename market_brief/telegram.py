"""Telegram Bot API client for briefings, quote replies and chart photos."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests

from utils.http_client import HTTPClient
from utils.logging_setup import get_logger

from .charts import ChartUrls
from .exceptions import ChatApiError
from .formatting import (
    format_daily_market_message,
    format_global_lookup_message,
    format_help_message,
    format_market_data_message,
)
from .models import ChangeInfo, DailyMarketSummary, GlobalLookupResult

logger = get_logger('telegram')

TELEGRAM_API_BASE = 'https://api.telegram.org'

BOT_COMMANDS = [
    {'command': 'help', 'description': '사용법'},
    {'command': 'now', 'description': '일일 시장 브리핑'},
    {'command': 'kospi', 'description': '코스피 지수'},
    {'command': 'kosdaq', 'description': '코스닥 지수'},
    {'command': 'nasdaq', 'description': '나스닥 지수'},
    {'command': 'usd', 'description': '원/달러 환율'},
]


@dataclass
class TelegramResponse:
    ok: bool
    result: Any = None
    description: str | None = None

    def raise_for_status(self, method: str) -> TelegramResponse:
        if not self.ok:
            raise ChatApiError(method, self.description)
        return self


class TelegramBot:
    """Sends messages on behalf of one bot token; chat_id defaults to the configured chat."""

    def __init__(self, token: str | None, default_chat_id: str | None = None, http: HTTPClient | None = None):
        self.token = token
        self.default_chat_id = default_chat_id
        self.base_url = f"{TELEGRAM_API_BASE}/bot{token}" if token else None
        self._http = http or HTTPClient(headers={'Content-Type': 'application/json'}, retries=0)

    def call_api(self, method: str, params: dict[str, Any]) -> TelegramResponse:
        if not self.base_url:
            return TelegramResponse(ok=False, description='TELEGRAM_BOT_TOKEN is not configured')
        try:
            resp = self._http.post(f"{self.base_url}/{method}", json=params)
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Telegram {method} error: {e}")
            return TelegramResponse(ok=False, description=str(e))
        if not isinstance(data, dict):
            return TelegramResponse(ok=False, description='unexpected response body')
        result = TelegramResponse(
            ok=bool(data.get('ok')), result=data.get('result'), description=data.get('description')
        )
        if not result.ok:
            logger.warning(f"Telegram {method} rejected: {result.description}")
        return result

    def _chat(self, chat_id: str | None) -> str | None:
        return chat_id or self.default_chat_id

    def send_message(
        self,
        text: str,
        chat_id: str | None = None,
        parse_mode: str = 'HTML',
        disable_web_page_preview: bool = True,
        disable_notification: bool = True,
    ) -> TelegramResponse:
        target = self._chat(chat_id)
        if not target:
            return TelegramResponse(ok=False, description='no chat id')
        return self.call_api(
            'sendMessage',
            {
                'chat_id': target,
                'text': text,
                'parse_mode': parse_mode,
                'disable_web_page_preview': disable_web_page_preview,
                'disable_notification': disable_notification,
            },
        )

    def send_photo(self, photo_url: str, caption: str | None = None, chat_id: str | None = None) -> TelegramResponse:
        target = self._chat(chat_id)
        if not target:
            return TelegramResponse(ok=False, description='no chat id')
        params: dict[str, Any] = {
            'chat_id': target,
            'photo': photo_url,
            'disable_notification': True,
        }
        if caption:
            params['caption'] = caption
            params['parse_mode'] = 'HTML'
        return self.call_api('sendPhoto', params)

    def send_chart_images(self, charts: ChartUrls, chat_id: str | None = None) -> None:
        if charts.kospi:
            res = self.send_photo(charts.kospi, '<b>📈 코스피 7일 추이</b>', chat_id)
            if not res.ok:
                logger.error(f"Failed to send KOSPI chart image: {res.description}")
        if charts.usd:
            res = self.send_photo(charts.usd, '<b>💵 USD/KRW 환율 7일 추이</b>', chat_id)
            if not res.ok:
                logger.error(f"Failed to send USD chart image: {res.description}")

    def send_daily_market_message(self, data: DailyMarketSummary, chat_id: str | None = None) -> TelegramResponse:
        return self.send_message(format_daily_market_message(data), chat_id)

    def send_market_data_message(
        self,
        username: str,
        market_name: str,
        value: str,
        change: ChangeInfo | None = None,
        chat_id: str | None = None,
    ) -> TelegramResponse:
        return self.send_message(format_market_data_message(username, market_name, value, change), chat_id)

    def send_global_market_message(
        self, username: str, result: GlobalLookupResult, chat_id: str | None = None
    ) -> TelegramResponse:
        return self.send_message(format_global_lookup_message(username, result), chat_id)

    def send_help_message(self, chat_id: str | None = None) -> TelegramResponse:
        return self.send_message(format_help_message(), chat_id)

    def set_webhook(self, url: str) -> TelegramResponse:
        return self.call_api('setWebhook', {'url': url, 'allowed_updates': ['message']})

    def set_bot_commands(self, commands: list[dict[str, str]] | None = None) -> TelegramResponse:
        return self.call_api('setMyCommands', {'commands': commands or BOT_COMMANDS})
