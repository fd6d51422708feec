import re

from pydantic import BaseModel, ConfigDict, field_validator

from pokedex.mediator.base import Query

_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9.'-]{0,63}$")


# Query for the translated description (routed through the mediator)
class GetPokemonTranslationQuery(Query):
    name: str

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        # Lookups are case-insensitive, so the normalized name is also the cache identity
        normalized = value.strip().lower()
        if not _NAME_PATTERN.match(normalized):
            raise ValueError(f"'{value}' is not a valid Pokemon name")
        return normalized


# Model for the public API response (and the cached query result)
class PokemonTranslation(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    translation: str


# Outcome reported by the translation provider; success=False is not an error
class TranslationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    success: bool
