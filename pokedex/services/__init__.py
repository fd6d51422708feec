"""Query handlers."""
from .pokemon_service import PokemonTranslationHandler

__all__ = ['PokemonTranslationHandler']
