"""Environment-backed configuration for the server and the voice client."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_REALTIME_MODEL = "gpt-4o-realtime-preview-2024-12-17"
DEFAULT_REALTIME_VOICE = "echo"


def _optional(name: str) -> Optional[str]:
    """Return a stripped environment value, or None when unset or blank."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass(frozen=True)
class ServerConfig:
    """Secrets and settings for the token and search routes.

    Missing secrets are kept as None so the affected route can answer with an
    error instead of the whole application refusing to start.
    """

    openai_api_key: Optional[str]
    serpapi_key: Optional[str]
    realtime_model: str = DEFAULT_REALTIME_MODEL
    realtime_voice: str = DEFAULT_REALTIME_VOICE
    port: int = 3000

    @classmethod
    def from_env(cls) -> "ServerConfig":
        load_dotenv()  # Load environment variables from .env file if present
        return cls(
            openai_api_key=_optional("OPENAI_API_KEY"),
            serpapi_key=_optional("SERPAPI_KEY"),
            realtime_model=_optional("REALTIME_MODEL") or DEFAULT_REALTIME_MODEL,
            realtime_voice=_optional("REALTIME_VOICE") or DEFAULT_REALTIME_VOICE,
            port=int(_optional("PORT") or 3000),
        )


@dataclass(frozen=True)
class ClientConfig:
    """Settings for the command-line voice client."""

    server_url: str = "http://localhost:3000"
    realtime_model: str = DEFAULT_REALTIME_MODEL
    mic_device: str = "default"
    mic_format: Optional[str] = "pulse"
    audio_output: str = "default"
    audio_output_format: Optional[str] = "pulse"

    @classmethod
    def from_env(cls) -> "ClientConfig":
        load_dotenv()
        return cls(
            server_url=_optional("VOICE_SERVER_URL") or "http://localhost:3000",
            realtime_model=_optional("REALTIME_MODEL") or DEFAULT_REALTIME_MODEL,
            mic_device=_optional("MIC_DEVICE") or "default",
            mic_format=_optional("MIC_FORMAT") or "pulse",
            audio_output=_optional("AUDIO_OUTPUT") or "default",
            audio_output_format=_optional("AUDIO_OUTPUT_FORMAT") or "pulse",
        )
