from functools import lru_cache

from redis.asyncio import ConnectionPool, Redis

from shared.config import settings


@lru_cache
def _pool() -> ConnectionPool:
    return ConnectionPool.from_url(settings.REDIS_URL)


def get_redis_pool() -> Redis:
    return Redis(connection_pool=_pool())


async def close_redis_pool() -> None:
    if _pool.cache_info().currsize:
        await _pool().disconnect()
