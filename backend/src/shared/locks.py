import asyncio
import weakref
from collections.abc import Hashable


class KeyedLocks:
    """asyncio locks handed out per key, scoped to the running event loop."""

    def __init__(self) -> None:
        self._by_loop: weakref.WeakKeyDictionary[
            asyncio.AbstractEventLoop, dict[Hashable, asyncio.Lock]
        ] = weakref.WeakKeyDictionary()

    def __call__(self, key: Hashable) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        locks = self._by_loop.setdefault(loop, {})
        if key not in locks:
            locks[key] = asyncio.Lock()
        return locks[key]
