"""
Background job scheduler using APScheduler.

Runs cache maintenance inside the FastAPI process.
"""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from aquafeed_admin.config import get_settings
from aquafeed_admin.services.query_cache import QueryCache

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


def sweep_query_cache(cache: QueryCache) -> int:
    """Evict query cache entries nobody has read for a while."""
    evicted = cache.sweep()
    if evicted:
        logger.info("Query cache sweep evicted %d entries", evicted)
    return evicted


def start_scheduler(cache: QueryCache):
    """Start the background scheduler with all jobs."""
    settings = get_settings()

    interval = settings.cache_sweep_interval_seconds
    logger.info("Scheduling query cache sweep every %d seconds", interval)

    scheduler.add_job(
        sweep_query_cache,
        IntervalTrigger(seconds=interval),
        args=[cache],
        id="sweep_query_cache",
        name="Evict idle query cache entries",
        replace_existing=True,
    )

    scheduler.start()
    logger.info("Scheduler started with jobs: %s", [job.id for job in scheduler.get_jobs()])


def shutdown_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
    logger.info("Scheduler shutdown")


def get_scheduler() -> AsyncIOScheduler:
    """Get the scheduler instance."""
    return scheduler
