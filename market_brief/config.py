"""Runtime configuration read from the environment (.env supported)."""

from __future__ import annotations

import re
from dataclasses import dataclass

from utils.env import env_flag, env_float, env_int, env_str, load_dotenv_safe

from .exceptions import ConfigurationError

_TIME_RE = re.compile(r'^(\d{1,2}):(\d{2})$')


def parse_briefing_time(value: str) -> tuple[int, int]:
    """Parse 'HH:MM' into (hour, minute)."""
    m = _TIME_RE.match((value or '').strip())
    if not m:
        raise ConfigurationError(f"invalid BRIEFING_TIME {value!r}; expected HH:MM")
    hour, minute = int(m.group(1)), int(m.group(2))
    if hour > 23 or minute > 59:
        raise ConfigurationError(f"invalid BRIEFING_TIME {value!r}; out of range")
    return hour, minute


@dataclass
class BotConfig:
    telegram_bot_token: str | None = None
    telegram_chat_id: str | None = None
    finnhub_api_key: str | None = None
    briefing_hour: int = 8
    briefing_minute: int = 0
    briefing_timezone: str = 'Asia/Seoul'
    exchange_cache_ttl: float = 60.0
    http_timeout: float = 10.0
    quote_page_fallback: bool = True
    finnhub_cb_failures: int = 5
    finnhub_cb_recovery: float = 30.0
    quote_page_cb_failures: int = 5
    quote_page_cb_recovery: float = 60.0
    log_level: str = 'INFO'
    log_file: str | None = None
    host: str = '0.0.0.0'
    port: int = 8080

    @classmethod
    def from_env(cls, load_dotenv: bool = True) -> BotConfig:
        if load_dotenv:
            load_dotenv_safe()
        hour, minute = parse_briefing_time(env_str('BRIEFING_TIME', '08:00') or '08:00')
        return cls(
            telegram_bot_token=env_str('TELEGRAM_BOT_TOKEN'),
            telegram_chat_id=env_str('TELEGRAM_CHAT_ID'),
            finnhub_api_key=env_str('FINNHUB_API_KEY'),
            briefing_hour=hour,
            briefing_minute=minute,
            briefing_timezone=env_str('BRIEFING_TIMEZONE', 'Asia/Seoul') or 'Asia/Seoul',
            exchange_cache_ttl=env_float('EXCHANGE_CACHE_TTL_SEC', 60.0),
            http_timeout=env_float('HTTP_TIMEOUT_SEC', 10.0),
            quote_page_fallback=env_flag('QUOTE_PAGE_FALLBACK', True),
            finnhub_cb_failures=env_int('FINNHUB_CB_FAILURES', 5),
            finnhub_cb_recovery=env_float('FINNHUB_CB_RECOVERY_SEC', 30.0),
            quote_page_cb_failures=env_int('QUOTE_PAGE_CB_FAILURES', 5),
            quote_page_cb_recovery=env_float('QUOTE_PAGE_CB_RECOVERY_SEC', 60.0),
            log_level=(env_str('LOG_LEVEL', 'INFO') or 'INFO').upper(),
            log_file=env_str('LOG_FILE'),
            host=env_str('HOST', '0.0.0.0') or '0.0.0.0',
            port=env_int('PORT', 8080),
        )

    @property
    def telegram_configured(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)
