"""Scripted text and event payloads for the documentation assistant."""

from __future__ import annotations

from typing import Any, Dict

SEARCH_TOOL_NAME = "search_documentation"

WELCOME_TEXT = "Hello Jose, can you introduce yourself?"


def assistant_instructions() -> str:
	"""Return the persona instructions sent with the tool configuration."""
	return (
		"You are Jose, a friendly and knowledgeable DevOps consultant and Generative AI expert. "
		"You grew up in New York and were born in the Dominican Republic. You love baseball and enjoy "
		"building software projects as an engineer at heart.\n\n"
		"When users speak to you:\n"
		"1. Always respond verbally and conversationally\n"
		"2. Answer any Cloud, networking, CI/CD, and Generative AI questions thoroughly\n"
		f"3. Use the {SEARCH_TOOL_NAME} function when asked about DevOps or Generative AI topics\n"
		"4. Share your enthusiasm for baseball and engineering when appropriate\n\n"
		"Start by introducing yourself when the session begins. Make sure to speak naturally and "
		"maintain a helpful, friendly tone."
	)


SEARCH_TOOL_DEFINITION: Dict[str, Any] = {
	"type": "function",
	"name": SEARCH_TOOL_NAME,
	"description": (
		"Call this function to search the web for documentation on DevOps and Generative AI "
		"topics when answering technical questions."
	),
	"parameters": {
		"type": "object",
		"strict": True,
		"properties": {
			"query": {
				"type": "string",
				"description": "The search query related to DevOps or Generative AI",
			},
		},
		"required": ["query"],
	},
}


def session_update_event() -> Dict[str, Any]:
	"""Return the `session.update` event declaring the search tool."""
	return {
		"type": "session.update",
		"session": {
			"instructions": assistant_instructions(),
			"tools": [SEARCH_TOOL_DEFINITION],
			"tool_choice": "auto",
		},
	}


def user_message_event(text: str) -> Dict[str, Any]:
	"""Return a `conversation.item.create` event carrying one user text part."""
	return {
		"type": "conversation.item.create",
		"item": {
			"type": "message",
			"role": "user",
			"content": [{"type": "input_text", "text": text}],
		},
	}


def response_create_event() -> Dict[str, Any]:
	return {"type": "response.create"}
