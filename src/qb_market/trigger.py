"""Settlement trigger — the scheduler's entry point.

The scheduler delivers at least once, so overlapping calls are expected. A
Redis lock (SET NX with a TTL) makes the tick non-re-entrant: a second caller
gets TickInProgressError from the API, and the console entry point simply
skips that interval.

Console usage (cron):
    quickbuck-settle
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from redis.exceptions import LockError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.qb_common.database import engine, session_scope
from src.qb_common.errors import TickInProgressError
from src.qb_common.redis_client import close_redis, get_redis
from src.qb_market.application.service import SettlementService
from src.qb_market.domain.models import TickResult

logger = logging.getLogger(__name__)

SETTLEMENT_LOCK_NAME = "qb:settlement:lock"


@asynccontextmanager
async def settlement_lock(redis: aioredis.Redis) -> AsyncIterator[None]:
    """Hold the settlement lock for the duration of the block."""
    lock = redis.lock(
        SETTLEMENT_LOCK_NAME,
        timeout=settings.SETTLEMENT_LOCK_TTL_SECONDS,
        blocking=False,
    )
    if not await lock.acquire():
        raise TickInProgressError()
    try:
        yield
    finally:
        try:
            await lock.release()
        except LockError:
            # TTL expired mid-tick; the journal still guards against double application
            logger.warning("Settlement lock expired before release")


async def trigger_settlement(
    db: AsyncSession,
    service: SettlementService,
    redis: aioredis.Redis | None = None,
) -> TickResult | None:
    async with settlement_lock(redis or await get_redis()):
        return await service.run_tick(db)


async def trigger_resume(
    db: AsyncSession,
    service: SettlementService,
    redis: aioredis.Redis | None = None,
) -> list[TickResult]:
    async with settlement_lock(redis or await get_redis()):
        return await service.resume_pending_ticks(db)


async def run_scheduled(
    db: AsyncSession,
    service: SettlementService,
    redis: aioredis.Redis,
) -> TickResult | None:
    """Cron flavour: finish any pending tick, then run a fresh one."""
    async with settlement_lock(redis):
        resumed = await service.resume_pending_ticks(db)
        if resumed:
            logger.info("Resumed %d pending ticks", len(resumed))
        return await service.run_tick(db)


async def _main_async() -> None:
    service = SettlementService()
    try:
        redis = await get_redis()
        async with session_scope() as db:
            result = await run_scheduled(db, service, redis)
        if result is None:
            logger.info("Nothing to settle")
    except TickInProgressError:
        logger.info("Another settlement run holds the lock; skipping this interval")
    finally:
        await close_redis()
        await engine.dispose()


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    asyncio.run(_main_async())


if __name__ == "__main__":
    main()
