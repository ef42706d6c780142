"""
Daily job scheduling (APScheduler)

Two independent cron jobs: the expiry runner (default 02:00) and the
analytics aggregation (default 03:00). No ordering is enforced between
them. Fires are fire-and-forget: failures are logged and the scheduler
does not retry; retries live inside JobRunner.
"""
from typing import Awaitable, Callable, List, Optional

from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.core.config import settings
from app.jobs.runner import JobRunner
from app.logging_config import get_logger

logger = get_logger(__name__)

EXPIRY_JOB_ID = "expiry-check"
AGGREGATION_JOB_ID = "daily-aggregation"


async def _fire_expiry(runner: JobRunner) -> None:
    try:
        await runner.execute()
    except Exception:
        logger.exception("Scheduled expiry job failed")


async def _fire_aggregation(aggregation: Callable[[], Awaitable[None]]) -> None:
    try:
        await aggregation()
        logger.info("Daily analytics snapshot generated")
    except Exception:
        logger.exception("Daily aggregation failed")


def schedule_daily(
    scheduler: AsyncIOScheduler,
    runner: JobRunner,
    aggregation: Callable[[], Awaitable[None]],
    cron: Optional[str] = None,
    secondary_cron: Optional[str] = None,
) -> List[Job]:
    """
    Register the expiry and aggregation jobs on ``scheduler``.

    Cron expressions use the standard five fields; they default to the
    EXPIRY_CRON and AGGREGATION_CRON settings.
    """
    cron = cron or settings.EXPIRY_CRON
    secondary_cron = secondary_cron or settings.AGGREGATION_CRON
    timezone = settings.SCHEDULER_TIMEZONE

    expiry_job = scheduler.add_job(
        _fire_expiry,
        CronTrigger.from_crontab(cron, timezone=timezone),
        args=[runner],
        id=EXPIRY_JOB_ID,
        name="Expiry check",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    aggregation_job = scheduler.add_job(
        _fire_aggregation,
        CronTrigger.from_crontab(secondary_cron, timezone=timezone),
        args=[aggregation],
        id=AGGREGATION_JOB_ID,
        name="Daily analytics aggregation",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    logger.info(f"Scheduled expiry check '{cron}' and aggregation '{secondary_cron}' ({timezone})")
    return [expiry_job, aggregation_job]


def create_scheduler() -> AsyncIOScheduler:
    return AsyncIOScheduler(timezone=settings.SCHEDULER_TIMEZONE)
