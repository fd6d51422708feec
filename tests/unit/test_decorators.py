import asyncio
import logging

import pytest
from pydantic import BaseModel
from fakeredis.aioredis import FakeRedis

from pokedex.cache import InMemoryCacheStore, RedisCacheStore
from pokedex.exceptions import UpstreamFailureError
from pokedex.mediator import (
    CachingDecorator,
    HandlerRegistry,
    LoggingDecorator,
    Mediator,
    Query,
    QueryHandler,
    caching_decorator,
    logging_decorator,
)

DECORATOR_LOGGER = "pokedex.mediator.decorators"


class LookupQuery(Query):
    name: str


class LookupResult(BaseModel):
    name: str
    value: int


class CountingHandler(QueryHandler[LookupQuery, LookupResult]):
    query_type = LookupQuery
    result_type = LookupResult

    def __init__(self, delay: float = 0.0, error: Exception | None = None):
        self.calls = 0
        self.delay = delay
        self.error = error

    async def handle(self, query: LookupQuery) -> LookupResult:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return LookupResult(name=query.name, value=self.calls)


def pipeline_events(caplog):
    return [r.stage for r in caplog.records if r.name == DECORATOR_LOGGER and hasattr(r, "stage")]


@pytest.fixture
def store():
    return InMemoryCacheStore()


# --- LOGGING ---

@pytest.mark.asyncio
async def test_logging_records_start_and_completed(caplog):
    caplog.set_level(logging.INFO, logger=DECORATOR_LOGGER)
    decorated = LoggingDecorator(CountingHandler())

    result = await decorated.handle(LookupQuery(name="ditto"))

    assert result.name == "ditto"
    assert pipeline_events(caplog) == ["start", "completed"]
    start, completed = [r for r in caplog.records if hasattr(r, "stage")]
    assert start.query_type == "LookupQuery"
    assert start.query == {"name": "ditto"}
    assert completed.elapsed_ms >= 0


@pytest.mark.asyncio
async def test_logging_records_error_and_reraises_unchanged(caplog):
    caplog.set_level(logging.INFO, logger=DECORATOR_LOGGER)
    error = UpstreamFailureError("PokeAPI failed with status 500")
    decorated = LoggingDecorator(CountingHandler(error=error))

    with pytest.raises(UpstreamFailureError) as excinfo:
        await decorated.handle(LookupQuery(name="ditto"))

    assert excinfo.value is error
    assert pipeline_events(caplog) == ["start", "error"]
    error_record = caplog.records[-1]
    assert error_record.levelno == logging.ERROR
    assert error_record.error_type == "UpstreamFailureError"


@pytest.mark.asyncio
async def test_logging_records_cancellation_as_error(caplog):
    caplog.set_level(logging.INFO, logger=DECORATOR_LOGGER)
    decorated = LoggingDecorator(CountingHandler(delay=10))

    task = asyncio.create_task(decorated.handle(LookupQuery(name="ditto")))
    await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert pipeline_events(caplog) == ["start", "error"]


# --- CACHING ---

@pytest.mark.asyncio
async def test_cache_hit_skips_handler_and_returns_identical_result(store):
    handler = CountingHandler()
    decorated = CachingDecorator(handler, store, ttl_seconds=60)

    first = await decorated.handle(LookupQuery(name="ditto"))
    second = await decorated.handle(LookupQuery(name="ditto"))

    assert handler.calls == 1
    assert second == first
    assert isinstance(second, LookupResult)


@pytest.mark.asyncio
async def test_different_queries_are_cached_separately(store):
    handler = CountingHandler()
    decorated = CachingDecorator(handler, store, ttl_seconds=60)

    await decorated.handle(LookupQuery(name="ditto"))
    await decorated.handle(LookupQuery(name="mewtwo"))

    assert handler.calls == 2
    assert len(store) == 2


@pytest.mark.asyncio
async def test_failures_are_not_cached(store):
    handler = CountingHandler(error=UpstreamFailureError("down"))
    decorated = CachingDecorator(handler, store, ttl_seconds=60)

    for _ in range(2):
        with pytest.raises(UpstreamFailureError):
            await decorated.handle(LookupQuery(name="ditto"))

    assert handler.calls == 2
    assert len(store) == 0


@pytest.mark.asyncio
async def test_expired_entries_invoke_the_handler_again(store):
    handler = CountingHandler()
    decorated = CachingDecorator(handler, store, ttl_seconds=0)

    await decorated.handle(LookupQuery(name="ditto"))
    await decorated.handle(LookupQuery(name="ditto"))

    assert handler.calls == 2


@pytest.mark.asyncio
async def test_single_flight_collapses_concurrent_misses(store):
    handler = CountingHandler(delay=0.05)
    decorated = CachingDecorator(handler, store, ttl_seconds=60, single_flight=True)

    results = await asyncio.gather(
        *(decorated.handle(LookupQuery(name="ditto")) for _ in range(5))
    )

    assert handler.calls == 1
    assert all(result == results[0] for result in results)
    assert decorated._locks == {}


@pytest.mark.asyncio
async def test_without_single_flight_concurrent_misses_all_reach_the_handler(store):
    handler = CountingHandler(delay=0.05)
    decorated = CachingDecorator(handler, store, ttl_seconds=60, single_flight=False)

    await asyncio.gather(*(decorated.handle(LookupQuery(name="ditto")) for _ in range(3)))

    assert handler.calls == 3


# --- FULL CHAIN ---

@pytest.mark.asyncio
async def test_every_dispatch_is_logged_once_on_hit_and_miss(store, caplog):
    caplog.set_level(logging.INFO, logger=DECORATOR_LOGGER)
    handler = CountingHandler()
    mediator = Mediator(
        HandlerRegistry([handler]),
        decorators=[logging_decorator(), caching_decorator(store, ttl_seconds=60)],
    )

    await mediator.dispatch(LookupQuery(name="ditto"))  # miss
    await mediator.dispatch(LookupQuery(name="ditto"))  # hit

    assert handler.calls == 1
    assert pipeline_events(caplog) == ["start", "completed", "start", "completed"]


@pytest.mark.asyncio
async def test_non_positive_ttl_skips_the_store_write():
    """A zero TTL disables caching instead of failing after the handler succeeded."""
    redis_store = RedisCacheStore(FakeRedis())
    handler = CountingHandler()
    decorated = CachingDecorator(handler, redis_store, ttl_seconds=0)

    first = await decorated.handle(LookupQuery(name="ditto"))
    second = await decorated.handle(LookupQuery(name="ditto"))

    assert first.name == second.name == "ditto"
    assert handler.calls == 2
    assert await redis_store.redis.keys("*") == []
