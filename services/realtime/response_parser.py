"""Helpers to read tool calls from realtime events and build their replies."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from models.search_models import SearchToolArgs

TOOL_CALL_EVENT = "response.tool_call"
TOOL_RESPONSE_EVENT = "tool_call.response"
SEARCH_FAILED_MESSAGE = "Failed to retrieve search results"


@dataclass(frozen=True)
class ToolCall:
	"""A tool invocation requested by the model."""

	call_id: Optional[str]
	name: str
	arguments: str


def parse_tool_call(event: Dict[str, Any]) -> Optional[ToolCall]:
	"""Return the tool call carried by a `response.tool_call` event, if any."""
	if event.get("type") != TOOL_CALL_EVENT:
		return None
	tool_call = event.get("tool_call")
	if not isinstance(tool_call, dict) or not tool_call.get("name"):
		return None
	return ToolCall(
		call_id=tool_call.get("id"),
		name=str(tool_call["name"]),
		arguments=tool_call.get("arguments") or "{}",
	)


def parse_search_query(arguments: str) -> str:
	"""Return the `query` argument from a JSON-encoded argument string.

	Raises:
		ValueError: If the arguments are not JSON or carry no query.
	"""
	try:
		return SearchToolArgs.model_validate_json(arguments).query
	except ValidationError as exc:
		raise ValueError(f"Invalid search arguments: {arguments!r}") from exc


def tool_response_event(call_id: Optional[str], results: List[Dict[str, str]]) -> Dict[str, Any]:
	"""Return the `tool_call.response` event relaying condensed results."""
	return {
		"type": TOOL_RESPONSE_EVENT,
		"tool_call_id": call_id,
		"content": json.dumps({"results": results}),
	}


def tool_error_event(call_id: Optional[str], message: str = SEARCH_FAILED_MESSAGE) -> Dict[str, Any]:
	"""Return the `tool_call.response` event reporting a failed search."""
	return {
		"type": TOOL_RESPONSE_EVENT,
		"tool_call_id": call_id,
		"content": json.dumps({"error": message, "results": []}),
	}
