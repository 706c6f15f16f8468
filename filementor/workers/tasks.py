"""Arq task definitions for file extraction and account maintenance."""

import logging
from datetime import datetime, timezone
from uuid import UUID

from arq import cron
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from filementor.config import get_settings
from filementor.services.files import FileService
from filementor.services.storage import storage_service
from filementor.stores.billing import BillingStore
from filementor.stores.files import FileStore
from filementor.workers.settings import redis_settings

settings = get_settings()
logger = logging.getLogger(__name__)


# Create engine for worker (separate from web app)
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)
async_session_maker = async_sessionmaker(engine, expire_on_commit=False)


async def get_db() -> AsyncSession:
    """Get database session for worker."""
    return async_session_maker()


async def process_file(ctx: dict, file_id: str) -> dict:
    """Download an uploaded file, extract its text and metadata.

    Args:
        ctx: Arq context
        file_id: UUID of the file to process

    Returns:
        Dict with processing results
    """
    db = await get_db()
    try:
        service = FileService(FileStore(db), storage_service)
        return await service.process(UUID(file_id))
    finally:
        await db.close()


async def reset_daily_counters(ctx: dict) -> dict:
    """Cron job: zero stale per-user daily prompt counters."""
    db = await get_db()
    try:
        today = datetime.now(timezone.utc).date()
        count = await BillingStore(db).reset_stale_daily_counters(today)
        logger.info("Cron: reset daily prompt counters for %d users", count)
        return {"reset": count}
    finally:
        await db.close()


async def expire_subscriptions(ctx: dict) -> dict:
    """Cron job: downgrade canceled subscriptions whose period has ended."""
    db = await get_db()
    try:
        count = await BillingStore(db).downgrade_expired(datetime.now(timezone.utc))
        if count:
            logger.info("Cron: downgraded %d expired subscriptions", count)
        return {"downgraded": count}
    finally:
        await db.close()


async def startup(ctx: dict) -> None:
    """Worker startup hook."""
    logger.info("Worker starting up...")


async def shutdown(ctx: dict) -> None:
    """Worker shutdown hook."""
    logger.info("Worker shutting down...")
    await engine.dispose()


class WorkerSettings:
    """Arq worker settings."""

    functions = [process_file]
    cron_jobs = [
        cron(reset_daily_counters, hour=0, minute=5),
        cron(expire_subscriptions, minute=0),
    ]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = redis_settings
    max_jobs = 10
    job_timeout = 300
    keep_result = 3600
