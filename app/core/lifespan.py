from contextlib import asynccontextmanager
import logging

from app.analytics.db import init_db, purge_old_records
from app.core.config import settings
from app.core.scheduler import PeriodicJob, build_cache_sweeper
from app.dependencies import get_device_cache

logger = logging.getLogger(__name__)

ANALYTICS_PURGE_INTERVAL_S = 3600


def _purge_analytics() -> dict[str, int]:
    deleted = purge_old_records()
    if any(deleted.values()):
        logger.info("analytics_retention_purge deleted=%s", deleted)
    return deleted


@asynccontextmanager
async def lifespan(app):
    init_db()

    cache_provider = app.dependency_overrides.get(get_device_cache, get_device_cache)
    jobs = [
        build_cache_sweeper(cache_provider(), interval_seconds=settings.cache_sweep_interval_s),
        PeriodicJob("analytics_retention_purge", _purge_analytics, ANALYTICS_PURGE_INTERVAL_S),
    ]
    for job in jobs:
        job.start()
    app.state.background_jobs = jobs

    yield

    for job in jobs:
        await job.stop()
