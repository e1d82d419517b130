"""Daily briefing cron job (APScheduler)."""

from __future__ import annotations

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from utils.logging_setup import get_logger

from .bot import MarketBriefBot
from .config import BotConfig

logger = get_logger('scheduler')

BRIEFING_JOB_ID = 'daily_briefing'


def build_scheduler(bot: MarketBriefBot, config: BotConfig) -> BackgroundScheduler:
    """Scheduler with the daily briefing job registered but not yet started."""
    scheduler = BackgroundScheduler(timezone=config.briefing_timezone)
    scheduler.add_job(
        bot.run_scheduled,
        CronTrigger(
            hour=config.briefing_hour,
            minute=config.briefing_minute,
            timezone=config.briefing_timezone,
        ),
        id=BRIEFING_JOB_ID,
        coalesce=True,
        misfire_grace_time=600,
        replace_existing=True,
    )
    logger.info(
        f"daily briefing scheduled at {config.briefing_hour:02d}:{config.briefing_minute:02d} "
        f"({config.briefing_timezone})"
    )
    return scheduler
