"""Error type shared by the proxy controllers and its FastAPI handler."""

from fastapi import Request
from fastapi.responses import JSONResponse


class ProxyError(Exception):
    """A failure that should reach the caller as `{"error": message}`."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
