import logging

from pokedex.clients.pokeapi_client import PokeAPIClient
from pokedex.clients.translation_client import TranslationClient
from pokedex.exceptions import NotFoundError, PokemonNotFoundError
from pokedex.mediator.base import QueryHandler
from pokedex.models import GetPokemonTranslationQuery, PokemonTranslation

logger = logging.getLogger(__name__)


class PokemonTranslationHandler(QueryHandler[GetPokemonTranslationQuery, PokemonTranslation]):
    query_type = GetPokemonTranslationQuery
    result_type = PokemonTranslation

    # Both clients are supplied via constructor injection
    def __init__(self, poke_client: PokeAPIClient, translation_client: TranslationClient):
        self._poke_client = poke_client
        self._translation_client = translation_client

    async def handle(self, query: GetPokemonTranslationQuery) -> PokemonTranslation:
        """
        Fetches the canonical description and rewrites it through the translation provider.

        Translation is optional: if it fails or comes back unsuccessful, the
        untranslated description is returned instead of an error.
        """
        try:
            description = await self._poke_client.fetch_species_description(query.name)
        except NotFoundError as e:
            raise PokemonNotFoundError(query.name) from e

        try:
            translation = await self._translation_client.translate(description)
        except Exception as e:
            logger.warning(f"Translation failed for '{query.name}', returning original description: {e}")
            return PokemonTranslation(name=query.name, translation=description)

        if not translation.success:
            logger.warning(f"Translation unavailable for '{query.name}', returning original description")
            return PokemonTranslation(name=query.name, translation=description)

        return PokemonTranslation(name=query.name, translation=translation.text)
