"""Dispatch of webhook updates and scheduled briefings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from utils.circuit_breaker import CircuitBreaker
from utils.http_client import HTML_HEADERS, JSON_HEADERS, HTTPClient
from utils.logging_setup import get_logger

from .charts import ChartService
from .commands import is_briefing_command, is_help_command, parse_command, parse_search_command
from .config import BotConfig
from .exceptions import SymbolNotFoundError
from .finnhub import FinnhubClient
from .global_quotes import GlobalQuoteService
from .naver import NaverFinanceClient
from .quote_page import QuotePageClient
from .telegram import TelegramBot, TelegramResponse

logger = get_logger('bot')


@dataclass(frozen=True)
class WebhookOutcome:
    """What the webhook did with an update, plus the HTTP reply to give Telegram."""

    action: str  # ignored | briefing | help | quote | search | unavailable
    status_code: int = 200
    body: str = 'OK'


class MarketBriefBot:
    def __init__(
        self,
        telegram: TelegramBot,
        market: NaverFinanceClient,
        charts: ChartService,
        global_quotes: GlobalQuoteService,
        http_clients: tuple[HTTPClient, ...] = (),
    ) -> None:
        self.telegram = telegram
        self.market = market
        self.charts = charts
        self.global_quotes = global_quotes
        self._http_clients = http_clients

    @classmethod
    def from_config(cls, config: BotConfig) -> MarketBriefBot:
        json_http = HTTPClient(headers=JSON_HEADERS, timeout=config.http_timeout)
        finnhub = FinnhubClient(
            config.finnhub_api_key,
            http=json_http,
            breaker=CircuitBreaker(
                name='finnhub',
                failure_threshold=config.finnhub_cb_failures,
                recovery_time=config.finnhub_cb_recovery,
                ignore=(SymbolNotFoundError,),
            ),
        )
        telegram_http = HTTPClient(headers={'Content-Type': 'application/json'}, timeout=config.http_timeout, retries=0)
        http_clients = [json_http, telegram_http]
        quote_page = None
        if config.quote_page_fallback:
            page_http = HTTPClient(headers=HTML_HEADERS, timeout=config.http_timeout)
            http_clients.append(page_http)
            quote_page = QuotePageClient(
                http=page_http,
                breaker=CircuitBreaker(
                    name='quote_page',
                    failure_threshold=config.quote_page_cb_failures,
                    recovery_time=config.quote_page_cb_recovery,
                ),
            )
        return cls(
            telegram=TelegramBot(config.telegram_bot_token, config.telegram_chat_id, http=telegram_http),
            market=NaverFinanceClient(http=json_http, exchange_ttl=config.exchange_cache_ttl),
            charts=ChartService(http=json_http),
            global_quotes=GlobalQuoteService(finnhub, quote_page),
            http_clients=tuple(http_clients),
        )

    def close(self) -> None:
        for http in self._http_clients:
            http.close()

    # ---- briefing ----
    def send_briefing(self, chat_id: str | None = None) -> TelegramResponse:
        """Charts first, then the daily summary text."""
        charts = self.charts.get_all_chart_urls()
        self.telegram.send_chart_images(charts, chat_id)
        summary = self.market.get_daily_market_summary()
        return self.telegram.send_daily_market_message(summary, chat_id)

    def run_test(self) -> tuple[dict, int]:
        """Briefing to the default chat; returns (json body, http status)."""
        charts = self.charts.get_all_chart_urls()
        self.telegram.send_chart_images(charts)
        summary = self.market.get_daily_market_summary()
        result = self.telegram.send_daily_market_message(summary)
        body = {
            'message': {'ok': result.ok, 'result': result.result, 'description': result.description},
            'charts': charts.as_dict(),
        }
        return body, 200 if result.ok else 500

    def run_scheduled(self) -> None:
        logger.info("Scheduled briefing triggered")
        try:
            result = self.send_briefing()
        except Exception:
            logger.exception("Scheduled briefing failed")
            return
        if result.ok:
            logger.info("Daily market message sent successfully")
        else:
            logger.error(f"Failed to send daily market message: {result.description}")

    # ---- webhook ----
    def handle_update(self, update: dict[str, Any]) -> WebhookOutcome:
        message = update.get('message') if isinstance(update, dict) else None
        if not isinstance(message, dict) or not message.get('text'):
            return WebhookOutcome('ignored')

        text = str(message['text']).strip()
        sender = message.get('from') or {}
        username = sender.get('username') or sender.get('first_name') or 'user'
        chat_id = str((message.get('chat') or {}).get('id') or '') or None

        if is_briefing_command(text):
            self.send_briefing(chat_id)
            return WebhookOutcome('briefing')

        if is_help_command(text):
            self.telegram.send_help_message(chat_id)
            return WebhookOutcome('help')

        query = parse_search_command(text)
        if query is not None:
            result = self.global_quotes.lookup(query)
            if result.status == 'error':
                logger.warning(f"Global lookup for {query!r} failed: {result.reason}")
            self.telegram.send_global_market_message(username, result, chat_id)
            return WebhookOutcome('search')

        market = parse_command(text)
        if market is None:
            return WebhookOutcome('ignored')

        data = self.market.get_market_data(market)
        if data is None:
            return WebhookOutcome('unavailable', 500, 'Failed to fetch market data')

        self.telegram.send_market_data_message(username, data.name, data.value, data.change, chat_id)
        return WebhookOutcome('quote')
