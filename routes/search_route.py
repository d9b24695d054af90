"""FastAPI route wrapping the SerpAPI search."""

import logging
from typing import Optional

from fastapi import APIRouter, Query, Request

from controllers.errors import ProxyError
from controllers.search_controller import run_search

LOGGER = logging.getLogger(__name__)

router = APIRouter()


@router.get("/search")
async def get_search(request: Request, q: Optional[str] = Query(None)):
    """Return raw search results for `q`."""
    try:
        return await run_search(request, q)
    except ProxyError:
        raise
    except Exception as exc:
        LOGGER.error("SerpAPI search error: %s", exc)
        raise ProxyError(500, "Failed to perform search") from exc
