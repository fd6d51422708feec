from functools import lru_cache

from pokedex.cache import CacheStore, create_cache_store
from pokedex.clients import PokeAPIClient, RetryPolicy, TranslationClient
from pokedex.config import Settings
from pokedex.mediator import HandlerRegistry, Mediator, caching_decorator, logging_decorator
from pokedex.models import GetPokemonTranslationQuery
from pokedex.services import PokemonTranslationHandler

_poke_client = None
_translation_client = None
_cache_store = None
_mediator = None


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_poke_client() -> PokeAPIClient:
    global _poke_client
    if _poke_client is None:
        settings = get_settings()
        _poke_client = PokeAPIClient(
            base_url=settings.pokeapi_base_url,
            timeout=settings.http_timeout_seconds,
            retry_policy=RetryPolicy.from_settings(settings),
        )
    return _poke_client


def get_translation_client() -> TranslationClient:
    global _translation_client
    if _translation_client is None:
        settings = get_settings()
        _translation_client = TranslationClient(
            base_url=settings.translation_base_url,
            style=settings.translation_style,
            timeout=settings.http_timeout_seconds,
            retry_policy=RetryPolicy.from_settings(settings),
        )
    return _translation_client


def get_cache_store() -> CacheStore:
    global _cache_store
    if _cache_store is None:
        _cache_store = create_cache_store(get_settings())
    return _cache_store


def build_mediator(
    poke_client: PokeAPIClient,
    translation_client: TranslationClient,
    cache_store: CacheStore,
    settings: Settings,
) -> Mediator:
    """Assembles handlers and the decorator chain. Logging is outermost, caching innermost."""
    registry = HandlerRegistry([
        PokemonTranslationHandler(poke_client=poke_client, translation_client=translation_client),
    ])
    registry.verify([GetPokemonTranslationQuery])
    return Mediator(
        registry,
        decorators=[
            logging_decorator(),
            caching_decorator(
                cache_store,
                ttl_seconds=settings.cache_ttl_seconds,
                single_flight=settings.cache_single_flight,
            ),
        ],
    )


def get_mediator() -> Mediator:
    global _mediator
    if _mediator is None:
        _mediator = build_mediator(
            get_poke_client(), get_translation_client(), get_cache_store(), get_settings()
        )
    return _mediator


async def shutdown() -> None:
    """Release outbound connections and the cache store created by this module."""
    global _poke_client, _translation_client, _cache_store, _mediator
    if _poke_client is not None:
        await _poke_client.aclose()
    if _translation_client is not None:
        await _translation_client.aclose()
    if _cache_store is not None:
        await _cache_store.close()
    _poke_client = _translation_client = _cache_store = _mediator = None
