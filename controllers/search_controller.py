"""Web search passthrough for the documentation tool."""

import logging
from typing import Any, Dict, Optional

from fastapi import Request

from controllers.errors import ProxyError
from services.search.serp_client import SearchUnavailableError, SerpSearchClient

LOGGER = logging.getLogger(__name__)


async def run_search(request: Request, query: Optional[str]) -> Dict[str, Any]:
    """Forward a query to the search provider and return its raw JSON."""
    if not query or not query.strip():
        raise ProxyError(400, "Search query is required")

    client: SerpSearchClient = request.app.state.search_client
    if not client.configured:
        LOGGER.error("No SerpAPI key provided")
        raise ProxyError(500, "No search API key configured")

    try:
        return await client.search(query)
    except SearchUnavailableError as exc:
        LOGGER.error("SerpAPI search error: %s", exc)
        raise ProxyError(500, "Failed to perform search") from exc
