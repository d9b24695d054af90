"""Thin SerpAPI client used by the search proxy route."""

import logging
from typing import Any, Dict, Optional

import httpx

LOGGER = logging.getLogger(__name__)

SERPAPI_URL = "https://serpapi.com/search"
SEARCH_ENGINE = "google"


class SearchUnavailableError(RuntimeError):
    """Raised when the search provider cannot be reached or returns garbage."""


class SerpSearchClient:
    """Forward text queries to SerpAPI and hand back its raw JSON."""

    def __init__(self, http_client: httpx.AsyncClient, api_key: Optional[str], *, url: str = SERPAPI_URL) -> None:
        if http_client is None:
            raise ValueError("httpx.AsyncClient is required.")
        self.http_client = http_client
        self.api_key = api_key
        self.url = url

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def search(self, query: str) -> Dict[str, Any]:
        """Return the upstream body for `query`, unmodified when it is JSON.

        Raises:
            ValueError: If no API key is configured.
            SearchUnavailableError: On transport failure or a non-JSON body.
        """
        if not self.api_key:
            raise ValueError("SerpAPI key is not configured.")
        params = {"q": query, "api_key": self.api_key, "engine": SEARCH_ENGINE}
        try:
            response = await self.http_client.get(self.url, params=params)
        except httpx.HTTPError as exc:
            raise SearchUnavailableError(f"Search request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise SearchUnavailableError(
                f"Search provider returned non-JSON body with status {response.status_code}"
            ) from exc

        if not isinstance(data, dict):
            raise SearchUnavailableError("Search provider returned an unexpected JSON shape.")
        if response.is_error and not data.get("error"):
            data["error"] = f"Search API error: {response.status_code}"
        if response.is_error:
            LOGGER.warning("SerpAPI returned %s: %s", response.status_code, data.get("error"))
        return data
