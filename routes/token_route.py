"""FastAPI route that mints ephemeral realtime credentials."""

import logging

from fastapi import APIRouter, Request

from controllers.errors import ProxyError
from controllers.token_controller import mint_token

LOGGER = logging.getLogger(__name__)

router = APIRouter()


@router.get("/token")
async def get_token(request: Request):
    """Return a short-lived session credential for the voice client."""
    try:
        return await mint_token(request)
    except ProxyError:
        raise
    except Exception as exc:
        LOGGER.error("Token generation error: %s", exc)
        raise ProxyError(500, "Failed to generate token") from exc
