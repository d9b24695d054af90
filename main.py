import inspect
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from openai import AsyncOpenAI

from controllers.errors import ProxyError, proxy_error_handler
from routes.search_route import router as search_router
from routes.token_route import router as token_router
from services.openai.realtime_sessions import RealtimeSessionService
from services.search.serp_client import SerpSearchClient
from utils.env_config import ServerConfig

LOGGER = logging.getLogger(__name__)


async def _close_quietly(client) -> None:
    """Close a client exposing aclose/close, sync or async."""
    if client is None:
        return
    aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
    if aclose is None:
        return
    try:
        if inspect.iscoroutinefunction(aclose):
            await aclose()
        else:
            result = aclose()
            if inspect.isawaitable(result):
                await result
    except Exception as exc:
        LOGGER.warning("Error closing %s: %s", type(client).__name__, exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the OpenAI async client used to mint realtime sessions
      - the shared httpx client used by the search proxy
    and attach the services built on them to `app.state`.

    A missing secret leaves the matching route answering with an error
    instead of preventing startup.
    """
    config: ServerConfig = app.state.config

    openai_client: Optional[AsyncOpenAI] = None
    if config.openai_api_key:
        try:
            openai_client = AsyncOpenAI(api_key=config.openai_api_key, max_retries=0)
        except Exception as exc:
            raise RuntimeError("Failed to initialize OpenAI Async client") from exc
    else:
        LOGGER.warning("OPENAI_API_KEY is not set; /token will answer with an error")

    if not config.serpapi_key:
        LOGGER.warning("SERPAPI_KEY is not set; /search will answer with an error")

    http_client = httpx.AsyncClient(timeout=None)

    app.state.openai_client = openai_client
    app.state.http_client = http_client
    app.state.session_service = RealtimeSessionService(
        openai_client, model=config.realtime_model, voice=config.realtime_voice
    )
    app.state.search_client = SerpSearchClient(http_client, config.serpapi_key)

    try:
        yield
    finally:
        await _close_quietly(getattr(app.state, "openai_client", None))
        await _close_quietly(getattr(app.state, "http_client", None))


def create_app(config: Optional[ServerConfig] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(lifespan=lifespan)
    app.state.config = config or ServerConfig.from_env()
    app.add_exception_handler(ProxyError, proxy_error_handler)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check reporting which upstream services are configured.
        """
        session_service = getattr(request.app.state, "session_service", None)
        search_client = getattr(request.app.state, "search_client", None)
        return {
            "ok": True,
            "openai_available": bool(session_service and session_service.configured),
            "search_available": bool(search_client and search_client.configured),
        }

    # Register application routers
    app.include_router(token_router)
    app.include_router(search_router)

    return app


app = create_app()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=app.state.config.port)
