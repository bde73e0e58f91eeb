from collections.abc import AsyncGenerator
from functools import lru_cache

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from eventstore.domain.repository import SequenceSource
from eventstore.infrastructure.sequence_sources import MockSequenceSource, RedisSequenceSource
from shared.config import settings
from shared.infrastructure.database import async_session
from shared.infrastructure.redis import get_redis_pool


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        yield session


def get_redis() -> Redis:
    return get_redis_pool()


@lru_cache
def get_sequence_source() -> SequenceSource:
    """Process-wide sequence source selected by SEQUENCE_SOURCE."""
    if settings.SEQUENCE_SOURCE == "redis":
        return RedisSequenceSource(
            get_redis_pool(),
            prefix=settings.REDIS_KEY_PREFIX,
            lock_timeout=settings.LEDGER_LOCK_TIMEOUT,
            lock_wait=settings.LEDGER_LOCK_WAIT,
        )
    return MockSequenceSource()
