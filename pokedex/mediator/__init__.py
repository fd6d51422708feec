"""Query dispatch pipeline: mediator, handler registry and handler decorators."""
from .base import HandlerDecorator, Query, QueryHandler
from .decorators import (
    CachingDecorator,
    LoggingDecorator,
    caching_decorator,
    logging_decorator,
)
from .mediator import HandlerRegistry, Mediator

__all__ = [
    'CachingDecorator',
    'HandlerDecorator',
    'HandlerRegistry',
    'LoggingDecorator',
    'Mediator',
    'Query',
    'QueryHandler',
    'caching_decorator',
    'logging_decorator',
]
