import asyncio
from collections.abc import Callable, Coroutine
from typing import Any
from uuid import UUID

from redis.asyncio import Redis


def _channel_name(note_id: UUID) -> str:
    return f"note:{note_id}:events"


async def publish_event(redis: Redis, note_id: UUID, data: str) -> None:
    await redis.publish(_channel_name(note_id), data)


async def subscribe(
    redis: Redis,
    note_id: UUID,
    callback: Callable[[str], Coroutine[Any, Any, None]],
) -> asyncio.Task:
    """Subscribe to a note's appended events. Cancel the returned task to unsubscribe."""
    pubsub = redis.pubsub()
    await pubsub.subscribe(_channel_name(note_id))

    async def _listen():
        try:
            async for message in pubsub.listen():
                if message["type"] == "message":
                    data = message["data"]
                    await callback(data.decode() if isinstance(data, bytes) else data)
        except asyncio.CancelledError:
            pass
        finally:
            await pubsub.unsubscribe(_channel_name(note_id))
            await pubsub.aclose()

    return asyncio.create_task(_listen())
