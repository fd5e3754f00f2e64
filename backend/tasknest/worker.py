"""
ARQ Worker for background task processing.

This worker handles:
- deliver_notification: Delivers assignment, sharing, mention and status
  notifications produced by the task services

Usage:
    arq tasknest.worker.WorkerSettings
"""

from typing import Any

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings

from tasknest.config import get_settings
from tasknest.logging_config import get_logger, setup_logging
from tasknest.services.notifications import deliver_notification

logger = get_logger(__name__)

settings = get_settings()


def parse_redis_url(url: str) -> RedisSettings:
    """Parse redis URL into RedisSettings."""
    return RedisSettings.from_dsn(url)


async def startup(ctx: dict) -> None:
    """Worker startup."""
    setup_logging()
    logger.info("ARQ Worker starting up...")
    logger.info(f"Redis: {settings.redis_url}")


async def shutdown(ctx: dict) -> None:
    """Worker shutdown - cleanup."""
    logger.info("ARQ Worker shutting down...")


class WorkerSettings:
    """ARQ Worker configuration."""

    functions = [deliver_notification]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = parse_redis_url(settings.redis_url)
    max_jobs = 10
    job_timeout = 60
    max_tries = 1  # notifications are never retried


# Redis pool for enqueuing jobs from the API
_arq_pool: ArqRedis | None = None


async def get_arq_pool() -> ArqRedis:
    """Get or create the ARQ Redis pool for enqueuing jobs."""
    global _arq_pool
    if _arq_pool is None:
        logger.debug("Creating ARQ Redis pool")
        _arq_pool = await create_pool(parse_redis_url(settings.redis_url))
    return _arq_pool


async def enqueue_notification(event: dict[str, Any]) -> None:
    """Enqueue a notification delivery job."""
    pool = await get_arq_pool()
    logger.debug(f"Enqueuing notification: {event['kind']} task={str(event['task_id'])[:8]}...")
    await pool.enqueue_job("deliver_notification", event)
