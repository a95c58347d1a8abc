"""APScheduler setup for periodic tasks."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.config import settings

logger = logging.getLogger(__name__)


def create_scheduler(engine) -> AsyncIOScheduler:
    """Create and configure the scheduler with all jobs."""
    scheduler = AsyncIOScheduler()

    # Advance the simulated fleet every N seconds
    scheduler.add_job(
        engine.tick,
        "interval",
        seconds=settings.tick_interval_seconds,
        id="simulation_tick",
        name="Advance simulated buses",
        max_instances=1,
    )

    # Reload the network from its source every N minutes (0 disables)
    if settings.network_refresh_minutes > 0:
        scheduler.add_job(
            engine.refresh_network,
            "interval",
            minutes=settings.network_refresh_minutes,
            id="refresh_network",
            name="Reload transit network",
            max_instances=1,
        )
    else:
        logger.info("Periodic network refresh disabled")

    return scheduler
