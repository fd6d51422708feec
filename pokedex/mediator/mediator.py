"""
Query mediator.

Routes a query to the single handler registered for its exact type. Handlers
are wrapped once, at construction, in an explicit ordered chain of decorators
(outermost first), so dispatch does no lookups beyond the registry read.
"""

import logging
from typing import Any, Callable, Iterable, Sequence

from pokedex.exceptions import HandlerAmbiguityError, HandlerNotFoundError
from pokedex.mediator.base import Query, QueryHandler

logger = logging.getLogger(__name__)

DecoratorFactory = Callable[[QueryHandler], QueryHandler]


class HandlerRegistry:
    """Maps query types to handlers. Immutable once built."""

    def __init__(self, handlers: Iterable[QueryHandler]):
        registrations: dict[type[Query], list[QueryHandler]] = {}
        for handler in handlers:
            registrations.setdefault(handler.query_type, []).append(handler)
            logger.info(
                f"Registered {type(handler).__name__} for {handler.query_type.__name__}"
            )
        self._registrations = {
            query_type: tuple(found) for query_type, found in registrations.items()
        }

    @property
    def query_types(self) -> tuple[type[Query], ...]:
        return tuple(self._registrations)

    def resolve(self, query_type: type[Query]) -> QueryHandler:
        found = self._registrations.get(query_type, ())
        if not found:
            raise HandlerNotFoundError(query_type)
        if len(found) > 1:
            raise HandlerAmbiguityError(query_type, len(found))
        return found[0]

    def verify(self, query_types: Iterable[type[Query]] | None = None) -> None:
        """Resolve every query type up front so wiring faults surface at startup."""
        for query_type in query_types if query_types is not None else self.query_types:
            self.resolve(query_type)


class Mediator:
    def __init__(
        self,
        registry: HandlerRegistry,
        decorators: Sequence[DecoratorFactory] = (),
    ):
        self._registry = registry
        self._decorators = tuple(decorators)
        self._pipelines: dict[type[Query], QueryHandler] = {}
        for query_type in registry.query_types:
            try:
                handler = registry.resolve(query_type)
            except HandlerAmbiguityError:
                # Reported on first dispatch of this query type
                continue
            self._pipelines[query_type] = self._build_pipeline(handler)

    def _build_pipeline(self, handler: QueryHandler) -> QueryHandler:
        pipeline = handler
        for decorate in reversed(self._decorators):
            pipeline = decorate(pipeline)
        return pipeline

    async def dispatch(self, query: Query) -> Any:
        if query is None:
            raise TypeError("Cannot dispatch a null query")

        query_type = type(query)
        pipeline = self._pipelines.get(query_type)
        if pipeline is None:
            # Raises HandlerNotFoundError or HandlerAmbiguityError
            self._registry.resolve(query_type)
        return await pipeline.handle(query)
