"""Pydantic models for the documentation search tool."""

from typing import Any, Dict, List

from pydantic import BaseModel, Field

MAX_TOOL_RESULTS = 3


class SearchToolArgs(BaseModel):
    """Arguments the model supplies when it calls the search tool."""

    query: str = Field(..., min_length=1)


class SearchResultSummary(BaseModel):
    """Condensed organic result relayed back to the model."""

    title: str = ""
    link: str = ""
    snippet: str = ""


def condense_results(data: Any, limit: int = MAX_TOOL_RESULTS) -> List[Dict[str, str]]:
    """Return up to `limit` title/link/snippet entries from a SerpAPI body."""
    if not isinstance(data, dict):
        return []
    organic = data.get("organic_results")
    if not isinstance(organic, list):
        return []
    summaries = []
    for result in organic[:limit]:
        if not isinstance(result, dict):
            continue
        summaries.append(
            SearchResultSummary(
                title=result.get("title") or "",
                link=result.get("link") or "",
                snippet=result.get("snippet") or "",
            ).model_dump()
        )
    return summaries
