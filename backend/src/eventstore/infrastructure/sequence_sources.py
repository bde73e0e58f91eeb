"""Sequence sources.

``MockSequenceSource`` is a development stand-in: numbers come from a
millisecond clock inside one process, so it can only ever order events and
never reports two distinct sequence numbers as concurrent.

``RedisSequenceSource`` draws from a counter shared by every process talking to
the same Redis and keeps the vector clock of each issued number, so causality
checks use the real partial order.

Both hand out the ledger lock that appends hold from drawing a number until the
event is committed, so the hash chain head is read by one writer at a time. The
mock's lock only covers its own process.
"""
import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from redis.asyncio import Redis
from redis.exceptions import LockError, RedisError

from eventstore.domain.clocks import (
    advance_vector_clock,
    compare_sequence_numbers,
    compare_vector_clocks,
)
from eventstore.domain.entities import Causality, SequenceTicket
from shared.exceptions import NotFoundError, SequenceSourceUnavailableError
from shared.locks import KeyedLocks

logger = logging.getLogger(__name__)


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class MockSequenceSource:
    def __init__(self, clock: Callable[[], int] = _epoch_ms, start: int = 0):
        self._clock = clock
        self._last = start
        self._device_clocks: dict[str, dict[str, int]] = {}
        self._lock = asyncio.Lock()
        self._ledger_locks = KeyedLocks()

    def ledger_lock(self) -> asyncio.Lock:
        return self._ledger_locks("ledger")

    async def next(
        self, device_id: str, observed_clock: dict[str, int] | None = None
    ) -> SequenceTicket:
        async with self._lock:
            self._last = max(self._clock(), self._last + 1)
            previous = self._device_clocks.get(device_id)
            counter = (previous or {}).get(device_id, 0) + 1
            clock = advance_vector_clock(previous, observed_clock, device_id, counter)
            self._device_clocks[device_id] = clock
            return SequenceTicket(
                sequence_number=self._last,
                vector_clock=dict(clock),
                timestamp=_epoch_ms(),
            )

    async def check_causality(self, seq_a: int, seq_b: int) -> Causality:
        return compare_sequence_numbers(seq_a, seq_b)


class RedisSequenceSource:
    def __init__(
        self,
        redis: Redis,
        prefix: str = "veps",
        lock_timeout: float = 10.0,
        lock_wait: float = 5.0,
    ):
        self.redis = redis
        self.lock_timeout = lock_timeout
        self.lock_wait = lock_wait
        self._ledger_lock_key = f"{prefix}:ledger_lock"
        self._counter_key = f"{prefix}:sequence"
        self._device_counters_key = f"{prefix}:device_counters"
        self._device_clocks_key = f"{prefix}:device_clocks"
        self._clock_log_key = f"{prefix}:clock_log"

    @asynccontextmanager
    async def ledger_lock(self) -> AsyncIterator[None]:
        """Cross-process lock on the ledger head, expiring after ``lock_timeout`` seconds."""
        lock = self.redis.lock(
            self._ledger_lock_key, timeout=self.lock_timeout, blocking_timeout=self.lock_wait
        )
        try:
            acquired = await lock.acquire()
        except RedisError as exc:
            logger.warning("Sequence source unavailable: %s", exc)
            raise SequenceSourceUnavailableError(str(exc)) from exc
        if not acquired:
            raise SequenceSourceUnavailableError("Timed out waiting for the ledger lock")

        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError as exc:
                # expired while held: another writer may have chained onto a stale head
                logger.critical("Ledger lock was lost before release: %s", exc)

    async def next(
        self, device_id: str, observed_clock: dict[str, int] | None = None
    ) -> SequenceTicket:
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.incr(self._counter_key)
                pipe.hincrby(self._device_counters_key, device_id, 1)
                pipe.hget(self._device_clocks_key, device_id)
                pipe.time()
                sequence_number, counter, raw_previous, (seconds, micros) = await pipe.execute()

            previous = json.loads(raw_previous) if raw_previous else None
            clock = advance_vector_clock(previous, observed_clock, device_id, counter)
            encoded = json.dumps(clock, sort_keys=True)

            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.hset(self._device_clocks_key, device_id, encoded)
                pipe.hset(self._clock_log_key, str(sequence_number), encoded)
                await pipe.execute()
        except RedisError as exc:
            logger.warning("Sequence source unavailable: %s", exc)
            raise SequenceSourceUnavailableError(str(exc)) from exc

        return SequenceTicket(
            sequence_number=int(sequence_number),
            vector_clock=clock,
            timestamp=int(seconds) * 1000 + int(micros) // 1000,
        )

    async def check_causality(self, seq_a: int, seq_b: int) -> Causality:
        if seq_a == seq_b:
            return Causality.CONCURRENT
        try:
            raw_a, raw_b = await self.redis.hmget(self._clock_log_key, [str(seq_a), str(seq_b)])
        except RedisError as exc:
            logger.warning("Sequence source unavailable: %s", exc)
            raise SequenceSourceUnavailableError(str(exc)) from exc

        if raw_a is None:
            raise NotFoundError("Sequence", str(seq_a))
        if raw_b is None:
            raise NotFoundError("Sequence", str(seq_b))
        return compare_vector_clocks(json.loads(raw_a), json.loads(raw_b))
