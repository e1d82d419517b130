#!/usr/bin/env python
"""Market brief bot CLI.

Configuration comes from the environment or a .env file in the working
directory. Expected keys:
  TELEGRAM_BOT_TOKEN=...
  TELEGRAM_CHAT_ID=...       (default chat for scheduled briefings)
  FINNHUB_API_KEY=...        (optional; quote page scraping is used without it)
  BRIEFING_TIME=08:00        BRIEFING_TIMEZONE=Asia/Seoul

Commands:
  serve                       Run the webhook server and the daily briefing job
  briefing [--chat ID]        Send charts + daily summary now
  quote TYPE                  Print one instrument (kospi, usd, ...)
  search QUERY                Print a global quote lookup (AAPL, BTC-USD, ...)
  charts                      Print QuickChart URLs
  set-webhook URL             Register the webhook URL with Telegram

Examples:
  python run_bot.py quote kospi
  python run_bot.py search AAPL
  python run_bot.py set-webhook https://bot.example.com/
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import sys

from market_brief import BotConfig, ConfigurationError, MarketBriefBot, MarketType
from market_brief.commands import parse_command
from market_brief.exceptions import ChatApiError
from market_brief.formatting import format_daily_market_message
from utils.logging_setup import setup_logging


def _dump(obj) -> None:
    if dataclasses.is_dataclass(obj):
        obj = dataclasses.asdict(obj)
    print(json.dumps(obj, ensure_ascii=False, indent=2, default=str))


# ---- Command handlers ----


def cmd_serve(bot: MarketBriefBot, config: BotConfig, args):
    from market_brief.scheduler import build_scheduler
    from market_brief.server import create_app

    scheduler = build_scheduler(bot, config)
    scheduler.start()
    try:
        create_app(bot).run(host=args.host or config.host, port=args.port or config.port)
    finally:
        scheduler.shutdown(wait=False)
    return 0


def cmd_briefing(bot: MarketBriefBot, config: BotConfig, args):
    if args.dry_run:
        print(format_daily_market_message(bot.market.get_daily_market_summary()))
        return 0
    result = bot.send_briefing(args.chat)
    if not result.ok:
        print(f"Briefing not sent: {result.description}", file=sys.stderr)
        return 1
    return 0


def cmd_quote(bot: MarketBriefBot, config: BotConfig, args):
    market = parse_command(args.type)
    if market is None:
        choices = ', '.join(m.value for m in MarketType)
        print(f"Unknown instrument {args.type!r}; expected one of: {choices}", file=sys.stderr)
        return 2
    data = bot.market.get_market_data(market)
    if data is None:
        print("Failed to fetch market data", file=sys.stderr)
        return 1
    _dump(data)
    return 0


def cmd_search(bot: MarketBriefBot, config: BotConfig, args):
    result = bot.global_quotes.lookup(args.query)
    _dump(result)
    return 0 if result.is_ok else 1


def cmd_charts(bot: MarketBriefBot, config: BotConfig, args):
    _dump(bot.charts.get_all_chart_urls().as_dict())
    return 0


def cmd_set_webhook(bot: MarketBriefBot, config: BotConfig, args):
    try:
        bot.telegram.set_webhook(args.url).raise_for_status('setWebhook')
        bot.telegram.set_bot_commands().raise_for_status('setMyCommands')
    except ChatApiError as e:
        print(str(e), file=sys.stderr)
        return 1
    print(f"Webhook set to {args.url}")
    return 0


def build_parser():
    p = argparse.ArgumentParser(description="Market brief Telegram bot")
    sub = p.add_subparsers(dest='command', required=True)

    ps = sub.add_parser('serve', help='Run webhook server and scheduler')
    ps.add_argument('--host', help='Bind address (default HOST or 0.0.0.0)')
    ps.add_argument('--port', type=int, help='Port (default PORT or 8080)')
    ps.set_defaults(func=cmd_serve)

    pb = sub.add_parser('briefing', help='Send the daily briefing now')
    pb.add_argument('--chat', help='Chat id (default TELEGRAM_CHAT_ID)')
    pb.add_argument('--dry-run', action='store_true', help='Print the summary instead of sending')
    pb.set_defaults(func=cmd_briefing)

    pq = sub.add_parser('quote', help='Print a domestic index or FX quote')
    pq.add_argument('type', help='Instrument alias (kospi, 코스피, usd, ...)')
    pq.set_defaults(func=cmd_quote)

    pse = sub.add_parser('search', help='Global quote lookup')
    pse.add_argument('query', help='Symbol or name (AAPL, BTC-USD, ^GSPC, ...)')
    pse.set_defaults(func=cmd_search)

    pc = sub.add_parser('charts', help='Print chart URLs')
    pc.set_defaults(func=cmd_charts)

    pw = sub.add_parser('set-webhook', help='Register webhook URL with Telegram')
    pw.add_argument('url', help='Public HTTPS URL of the webhook endpoint')
    pw.set_defaults(func=cmd_set_webhook)

    p.add_argument('--log-level', help='Override LOG_LEVEL')
    return p


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = BotConfig.from_env()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    setup_logging(level=args.log_level or config.log_level, log_file=config.log_file)
    bot = MarketBriefBot.from_config(config)
    try:
        return args.func(bot, config, args)
    finally:
        bot.close()


if __name__ == '__main__':
    raise SystemExit(main())
