import logging

import httpx

from pokedex.clients.resilience import RetryPolicy, call_with_retry
from pokedex.exceptions import TransientUpstreamError, UpstreamFailureError
from pokedex.models import TranslationResult

logger = logging.getLogger(__name__)


class TranslationClient:
    BASE_URL = "https://api.funtranslations.com/translate"

    def __init__(
        self,
        base_url: str = BASE_URL,
        style: str = "shakespeare",
        timeout: float = 5.0,
        retry_policy: RetryPolicy | None = None,
    ):
        self.client = httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self.style = style
        self.retry_policy = retry_policy or RetryPolicy()

    async def translate(self, text: str) -> TranslationResult:
        """Translates ``text``; an unavailable translation comes back with success=False."""
        return await call_with_retry(
            self.retry_policy, "Translation API call", self._translate_network_call, text
        )

    async def _translate_network_call(self, text: str) -> TranslationResult:
        """Performs the actual network call and error handling."""
        url = f"/{self.style}"

        try:
            response = await self.client.post(url=url, json={"text": text})
        except httpx.RequestError as e:
            logger.error(f"Translation API network error: {str(e)}")
            raise TransientUpstreamError(f"Translation API network error: {str(e)}")

        if response.status_code >= 500:
            logger.error(f"Translation API failed with status {response.status_code}")
            raise TransientUpstreamError(f"Translation API failed with status {response.status_code}")

        if response.status_code >= 400:
            # Rate limits and rejected input are reported in a structured error body
            reason = "Rate limit exceeded." if response.status_code == 429 else "Request rejected."
            logger.warning(
                f"Translation unavailable (status {response.status_code}): {reason} {response.text[:200]}"
            )
            return TranslationResult(text=text, success=False)

        try:
            data = response.json()
            if data["success"]["total"] < 1:
                logger.warning("Translation API reported an unsuccessful translation.")
                return TranslationResult(text=text, success=False)
            translated_text = data["contents"]["translated"]
            if not isinstance(translated_text, str):
                raise TypeError("translated text is not a string")
        except (ValueError, KeyError, TypeError):
            logger.error("Translation API response parsing error.")
            raise UpstreamFailureError("Translation API returned an unexpected response format.")

        return TranslationResult(text=translated_text, success=True)

    async def aclose(self):
        """Close the HTTP client (call on app shutdown)."""
        await self.client.aclose()
