"""Utilities for turning OpenAI SDK errors and objects into plain JSON."""

from typing import Any, Optional


def serialize_response(response: Any) -> Any:
    """Convert a response object into a serializable structure."""
    if hasattr(response, "model_dump"):
        return response.model_dump(mode="json", exclude_unset=True)
    if hasattr(response, "to_dict"):
        return response.to_dict()
    if isinstance(response, dict):
        return response
    raise TypeError(f"Cannot serialize {type(response).__name__} as a JSON object")


def extract_error_message(body: Any) -> Optional[str]:
    """Return the provider's error message from an error body, if any.

    The SDK may hand over either the whole body (`{"error": {"message": ...}}`)
    or just the inner error object, so both shapes are accepted.
    """
    if not isinstance(body, dict):
        return None
    inner = body.get("error")
    if isinstance(inner, dict) and inner.get("message"):
        return str(inner["message"])
    if isinstance(inner, str) and inner:
        return inner
    if body.get("message"):
        return str(body["message"])
    return None
