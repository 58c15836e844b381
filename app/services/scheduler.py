"""Cron-triggered weekly and daily email reports."""
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import settings
from app.services import notifications

logger = logging.getLogger(__name__)

WEEKLY_JOB_ID = "weekly_branch_reports"
DAILY_JOB_ID = "daily_parade_reports"

_scheduler: Optional[AsyncIOScheduler] = None


async def run_weekly_reports() -> None:
    logger.info("Starting scheduled weekly attendance reports")
    try:
        results = await notifications.send_all_weekly_reports()
    except Exception as e:
        logger.error(f"Error in scheduled weekly reports: {e}")
        return
    failures = [r for r in results if not r.get("success")]
    logger.info(f"Weekly reports completed: {len(results) - len(failures)} successful, {len(failures)} failed")
    if failures:
        logger.warning(f"Failed weekly reports: {failures}")


async def run_daily_parade_reports() -> None:
    logger.info("Starting scheduled daily parade reports")
    try:
        result = await notifications.send_daily_parade_reports()
    except Exception as e:
        logger.error(f"Error in scheduled daily parade reports: {e}")
        return
    logger.info(result["message"])
    failures = [r for r in result["results"] if not r.get("success")]
    if failures:
        logger.warning(f"Failed parade reports: {failures}")


def build_scheduler(timezone: Optional[str] = None) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone=timezone or settings.scheduler_timezone)
    scheduler.add_job(
        run_weekly_reports,
        trigger=CronTrigger(day_of_week="mon", hour=9, minute=0),
        id=WEEKLY_JOB_ID,
        name="Weekly branch attendance reports",
        replace_existing=True,
    )
    scheduler.add_job(
        run_daily_parade_reports,
        trigger=CronTrigger(hour=17, minute=0),
        id=DAILY_JOB_ID,
        name="Daily parade reports",
        replace_existing=True,
    )
    return scheduler


def start_scheduler() -> Optional[AsyncIOScheduler]:
    """Arm both report jobs when enabled at startup; must run inside the event loop."""
    global _scheduler
    if not settings.scheduler_enabled:
        logger.info("Email scheduler disabled (set ENABLE_SCHEDULER=true to enable)")
        return None
    if _scheduler is None:
        _scheduler = build_scheduler()
        _scheduler.start()
        logger.info("Email scheduler armed: weekly Monday 09:00, daily 17:00")
    return _scheduler


def shutdown_scheduler() -> None:
    global _scheduler
    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None
