import logging
import re

import httpx

from pokedex.clients.resilience import RetryPolicy, call_with_retry
from pokedex.exceptions import NotFoundError, TransientUpstreamError, UpstreamFailureError

logger = logging.getLogger(__name__)

_SOFT_HYPHEN = re.compile(r"\u00ad\s*")
_WHITESPACE = re.compile(r"\s+")


def select_description(entries: list[dict]) -> str:
    """Pick one flavor text: the first English entry in source order, else the first entry."""
    if not entries:
        raise UpstreamFailureError("PokeAPI returned no flavor text entries")
    chosen = next(
        (entry for entry in entries if (entry.get("language") or {}).get("name") == "en"),
        entries[0],
    )
    # Flavor texts come with hard line breaks and form feeds from the game cartridges.
    # A soft hyphen before a break splits one word, so it is joined back first.
    text = _SOFT_HYPHEN.sub("", chosen["flavor_text"])
    return _WHITESPACE.sub(" ", text).strip()


class PokeAPIClient:
    BASE_URL = "https://pokeapi.co/api/v2"

    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout: float = 5.0,
        retry_policy: RetryPolicy | None = None,
    ):
        self.client = httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self.retry_policy = retry_policy or RetryPolicy()

    async def _fetch_species_data(self, pokemon_name: str) -> dict:
        """One attempt at fetching raw species data, with errors classified for the retry policy."""
        url = f"/pokemon-species/{pokemon_name}"

        try:
            response = await self.client.get(url)
            response.raise_for_status()  # Raises for 4xx/5xx status codes
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            if status_code == 404:
                # Definitive answer, never retried
                raise NotFoundError(f"Pokemon '{pokemon_name}' not found.")
            if status_code >= 500 or status_code == 429:
                raise TransientUpstreamError(f"PokeAPI failed with status {status_code}")
            raise UpstreamFailureError(f"PokeAPI rejected the request with status {status_code}")
        except httpx.RequestError as e:
            # Handle network failures/timeouts
            raise TransientUpstreamError(f"PokeAPI network error: {str(e)}")

        try:
            return response.json()
        except ValueError:
            raise UpstreamFailureError("PokeAPI returned a body that is not JSON")

    async def fetch_species_description(self, name: str) -> str:
        """Fetches the species record for ``name`` and returns its canonical description."""
        data = await call_with_retry(
            self.retry_policy, "PokeAPI species lookup", self._fetch_species_data, name
        )
        try:
            description = select_description(data["flavor_text_entries"])
        except (KeyError, TypeError, AttributeError):
            logger.error(f"PokeAPI species payload for '{name}' has an unexpected format.")
            raise UpstreamFailureError("PokeAPI returned an unexpected response format.")
        logger.info(f"Fetched description for Pokemon: {name}")
        return description

    async def aclose(self):
        """Close the HTTP client (call on app shutdown)."""
        await self.client.aclose()
