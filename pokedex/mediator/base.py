import json
from abc import ABC, abstractmethod
from typing import ClassVar, Generic, TypeVar

from pydantic import BaseModel, ConfigDict

Q = TypeVar("Q", bound="Query")
R = TypeVar("R", bound=BaseModel)


class Query(BaseModel):
    """Immutable request value routed by the mediator to exactly one handler.

    Two queries of the same type with equal field values are the same request:
    they share a cache key and are logged identically.
    """

    model_config = ConfigDict(frozen=True)

    def cache_key(self) -> str:
        fields = json.dumps(self.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))
        return f"{type(self).__name__}:{fields}"


class QueryHandler(ABC, Generic[Q, R]):
    """Fulfils one query type. Decorators implement the same interface."""

    query_type: ClassVar[type[Query]]
    result_type: ClassVar[type[BaseModel]]

    @abstractmethod
    async def handle(self, query: Q) -> R:
        ...


class HandlerDecorator(QueryHandler[Q, R]):
    """Wraps another handler and exposes its query and result types."""

    def __init__(self, inner: QueryHandler[Q, R]):
        self._inner = inner

    @property
    def query_type(self) -> type[Query]:
        return self._inner.query_type

    @property
    def result_type(self) -> type[BaseModel]:
        return self._inner.result_type
