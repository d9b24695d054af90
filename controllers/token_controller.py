"""Ephemeral credential minting for the voice client."""

import logging
from typing import Any, Dict

from fastapi import Request
from openai import APIStatusError

from controllers.errors import ProxyError
from services.openai.realtime_sessions import RealtimeSessionService
from services.openai.response_utils import extract_error_message

LOGGER = logging.getLogger(__name__)


async def mint_token(request: Request) -> Dict[str, Any]:
    """Create a realtime session and return the provider body verbatim.

    Args:
        request: FastAPI Request (used to access shared clients/state).

    Returns:
        The session JSON, including `client_secret.value`.

    Raises:
        ProxyError(500) when no API key is configured, or with the upstream
        status when the provider rejects the request.
    """
    service: RealtimeSessionService = request.app.state.session_service
    if not service.configured:
        LOGGER.error("No API key provided")
        raise ProxyError(500, "No API key configured")

    try:
        return await service.create_session()
    except APIStatusError as exc:
        message = extract_error_message(exc.body) or f"API error: {exc.status_code}"
        LOGGER.error("OpenAI API error: %s %s", exc.status_code, message)
        raise ProxyError(exc.status_code, message) from exc
