"""
Cross-cutting handler decorators.

The default chain is LoggingDecorator -> CachingDecorator -> handler: every
dispatch is logged exactly once, and cache hits skip the handler but not the
log records.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from pokedex.cache import CacheStore
from pokedex.mediator.base import HandlerDecorator, Q, QueryHandler, R

logger = logging.getLogger(__name__)


class LoggingDecorator(HandlerDecorator[Q, R]):
    def __init__(self, inner: QueryHandler[Q, R], log: logging.Logger = logger):
        super().__init__(inner)
        self._log = log

    async def handle(self, query: Q) -> R:
        query_name = type(query).__name__
        fields = query.model_dump(mode="json")
        self._log.info(
            f"Handling {query_name} {fields}",
            extra={"stage": "start", "query_type": query_name, "query": fields},
        )
        started = time.perf_counter()
        try:
            result = await self._inner.handle(query)
        except (Exception, asyncio.CancelledError) as e:
            elapsed_ms = (time.perf_counter() - started) * 1000
            self._log.error(
                f"Error handling {query_name} after {elapsed_ms:.1f} ms: {type(e).__name__}: {e}",
                extra={
                    "stage": "error",
                    "query_type": query_name,
                    "query": fields,
                    "elapsed_ms": elapsed_ms,
                    "error_type": type(e).__name__,
                },
            )
            raise
        elapsed_ms = (time.perf_counter() - started) * 1000
        self._log.info(
            f"Completed {query_name} in {elapsed_ms:.1f} ms",
            extra={
                "stage": "completed",
                "query_type": query_name,
                "query": fields,
                "elapsed_ms": elapsed_ms,
            },
        )
        return result


@dataclass
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class CachingDecorator(HandlerDecorator[Q, R]):
    """Short-circuits the inner handler when an equivalent query was answered before.

    With single_flight enabled, concurrent misses on the same key within this
    process wait for the first one instead of calling the handler again.
    """

    def __init__(
        self,
        inner: QueryHandler[Q, R],
        store: CacheStore,
        ttl_seconds: int,
        single_flight: bool = True,
    ):
        super().__init__(inner)
        self._store = store
        self._ttl_seconds = ttl_seconds
        self._single_flight = single_flight
        self._locks: dict[str, _KeyLock] = {}

    async def handle(self, query: Q) -> R:
        key = query.cache_key()
        cached = await self._lookup(key)
        if cached is not None:
            return cached
        if not self._single_flight:
            return await self._load(key, query)

        key_lock = self._locks.get(key)
        if key_lock is None:
            key_lock = self._locks[key] = _KeyLock()
        key_lock.users += 1
        try:
            async with key_lock.lock:
                # Another task may have filled the entry while we waited
                cached = await self._lookup(key)
                if cached is not None:
                    return cached
                return await self._load(key, query)
        finally:
            key_lock.users -= 1
            if key_lock.users == 0:
                self._locks.pop(key, None)

    async def _lookup(self, key: str) -> R | None:
        payload = await self._store.get(key)
        if payload is None:
            logger.debug(f"Cache miss for {key}")
            return None
        logger.debug(f"Cache hit for {key}")
        return self.result_type.model_validate_json(payload)

    async def _load(self, key: str, query: Q) -> R:
        # Failures propagate from here, so only successful results reach the store
        result = await self._inner.handle(query)
        if self._ttl_seconds <= 0:
            # Caching disabled; stores reject non-positive expiry times
            return result
        await self._store.set(key, result.model_dump_json().encode("utf-8"), self._ttl_seconds)
        return result


def logging_decorator(log: logging.Logger = logger) -> Callable[[QueryHandler], QueryHandler]:
    return lambda inner: LoggingDecorator(inner, log)


def caching_decorator(
    store: CacheStore, ttl_seconds: int, single_flight: bool = True
) -> Callable[[QueryHandler], QueryHandler]:
    return lambda inner: CachingDecorator(inner, store, ttl_seconds, single_flight)
