"""Logging configuration with console and rotating file output.

Call setup_logging() early in application start; modules obtain their
logger through get_logger(__name__-like short names).
"""

from __future__ import annotations

import logging
import logging.handlers
import sys

ROOT_LOGGER_NAME = 'market_brief'

_DEF_FORMAT = "%(asctime)s [%(levelname)8s] %(name)s:%(lineno)d - %(message)s"
_FILE_FORMAT = "%(asctime)s [%(levelname)8s] %(name)s:%(lineno)d - %(message)s"
_SIMPLE_FORMAT = "%(levelname)s %(name)s: %(message)s"

LOG_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL,
}


class BotLogger:
    """Owns the handlers attached to the bot's root logger."""

    def __init__(self, name: str = ROOT_LOGGER_NAME, log_file: str | None = None):
        self.logger = logging.getLogger(name)
        self.log_file = log_file
        self._configured = False

    def configure(
        self,
        level: int = logging.INFO,
        console_level: int | None = None,
        file_level: int | None = None,
        max_bytes: int = 5 * 1024 * 1024,
        backup_count: int = 3,
    ) -> None:
        """Attach console and (optional) file handlers once."""
        if self._configured:
            return

        self.logger.setLevel(level)

        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(console_level or level)
        console_handler.setFormatter(logging.Formatter(_SIMPLE_FORMAT))
        self.logger.addHandler(console_handler)

        if self.log_file:
            try:
                file_handler = logging.handlers.RotatingFileHandler(
                    self.log_file, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8'
                )
                file_handler.setLevel(file_level or level)
                file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
                self.logger.addHandler(file_handler)
            except OSError as e:
                console_handler.setFormatter(logging.Formatter(_DEF_FORMAT))
                self.logger.warning(f"Could not setup file logging: {e}")

        self._configured = True

    def get_logger(self) -> logging.Logger:
        if not self._configured:
            self.configure()
        return self.logger


_logger_instance: BotLogger | None = None


def _level(lvl: str | None) -> int | None:
    return LOG_LEVELS.get(lvl.upper()) if lvl else None


def setup_logging(
    level: str = 'INFO',
    log_file: str | None = None,
    console_level: str | None = None,
    file_level: str | None = None,
) -> logging.Logger:
    """Setup logging for the bot.

    Args:
        level: Default log level ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
        log_file: Path to a rotating log file; console only when omitted
        console_level: Console log level (defaults to same as level)
        file_level: File log level (defaults to same as level)

    Returns:
        The configured root logger of the bot
    """
    global _logger_instance

    if _logger_instance is None:
        _logger_instance = BotLogger(ROOT_LOGGER_NAME, log_file)

    _logger_instance.configure(
        level=_level(level) or logging.INFO,
        console_level=_level(console_level),
        file_level=_level(file_level),
    )

    logger = _logger_instance.get_logger()
    logger.debug("Logging system initialized")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger, e.g. get_logger('naver') -> 'market_brief.naver'."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
