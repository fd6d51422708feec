"""Client modules for external API communication."""
from .pokeapi_client import PokeAPIClient
from .resilience import RetryPolicy, call_with_retry
from .translation_client import TranslationClient

__all__ = [
    'PokeAPIClient',
    'RetryPolicy',
    'TranslationClient',
    'call_with_retry',
]
