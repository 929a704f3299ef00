import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from smartfootball.config import Settings
from smartfootball.database import DatabasePool
from smartfootball.services.runs import run_hourly

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


async def hourly_job(pool: DatabasePool, settings: Settings) -> None:
    """Generate predictions for upcoming fixtures, then resolve finished ones."""
    logger.info("Running scheduled job: hourly")
    result = await run_hourly(pool, settings)
    for step in result.steps:
        if step.status == 200:
            logger.info("Hourly step %s completed", step.step)
        else:
            logger.error("Hourly step %s failed: %s", step.step, step.error)


def setup_scheduler(pool: DatabasePool, settings: Settings) -> None:
    scheduler.add_job(
        hourly_job,
        "cron",
        minute=0,
        id="hourly",
        args=[pool, settings],
        replace_existing=True,
        coalesce=True,
        max_instances=1,
    )
