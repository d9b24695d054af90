"""Mint ephemeral realtime session credentials via the OpenAI API."""

import logging
from typing import Any, Dict, Optional

from openai import AsyncOpenAI

from services.openai.response_utils import serialize_response
from utils.env_config import DEFAULT_REALTIME_MODEL, DEFAULT_REALTIME_VOICE

LOGGER = logging.getLogger(__name__)


class RealtimeSessionService:
    """Create realtime sessions so browsers never see the long-lived key."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI],
        *,
        model: str = DEFAULT_REALTIME_MODEL,
        voice: str = DEFAULT_REALTIME_VOICE,
    ) -> None:
        """Initialize the service with a shared OpenAI client.

        Args:
            client: Async OpenAI client, or None when no API key is configured.
            model: Realtime model the session is created for.
            voice: Voice the model speaks with.
        """
        self.client = client
        self.model = model
        self.voice = voice

    @property
    def configured(self) -> bool:
        return self.client is not None

    async def create_session(self) -> Dict[str, Any]:
        """Return the provider's session body, including `client_secret`.

        Raises:
            ValueError: If no OpenAI client is configured.
            openai.APIStatusError: If the provider answers with a non-OK status.
        """
        if self.client is None:
            raise ValueError("OpenAI client is not configured.")
        session = await self.client.beta.realtime.sessions.create(model=self.model, voice=self.voice)
        LOGGER.info("Created realtime session for model %s", self.model)
        return serialize_response(session)
