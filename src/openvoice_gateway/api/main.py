"""OpenVoice gateway (web tier).

Fronts the OpenVoice synthesis service:
- /api/upload_audio, /api/change_voice*, /api/base_tts*, /api/synthesize_speech*
  are proxied upstream
- /api/refs and /api/outs list and serve the local audio directories
- /healthz reports the configured upstream without contacting it
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import GatewayConfig, load_config
from ..core.exceptions import DirectoryListingError, FileAccessError, UpstreamError
from .dependencies import get_config
from .middleware import BasicAuthMiddleware, CORSHeadersMiddleware
from .routes_files import router as files_router
from .routes_proxy import router as proxy_router
from .schemas import ErrorResponse, HealthResponse

# uvicorn has no SUCCESS level, unlike loguru.
_UVICORN_LOG_LEVELS = {"critical", "error", "warning", "info", "debug", "trace"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    config: GatewayConfig = app.state.config
    logger.info(f"Gateway listening on port {config.port} -> {config.base_url}")
    yield
    await app.state.http_client.aclose()
    logger.info("Gateway shutting down")


def _error(status_code: int, error: str, detail: Optional[str] = None, headers: Optional[dict] = None) -> JSONResponse:
    body = ErrorResponse(error=error, detail=detail).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(UpstreamError)
    async def upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
        logger.opt(exception=exc.original_error).error(f"Proxy error {request.method} {request.url.path}: {exc}")
        return _error(status.HTTP_502_BAD_GATEWAY, "Upstream request failed", exc.detail)

    @app.exception_handler(DirectoryListingError)
    async def listing_error(request: Request, exc: DirectoryListingError) -> JSONResponse:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message)

    @app.exception_handler(FileAccessError)
    async def file_error(request: Request, exc: FileAccessError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


def create_app(
    config: Optional[GatewayConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Gateway configuration; loaded from the environment when omitted.
        transport: Optional httpx transport for upstream calls (tests inject a
            MockTransport here).
    """
    config = config or load_config()

    app = FastAPI(
        title="OpenVoice Gateway",
        description="Authenticating reverse proxy for the OpenVoice synthesis service",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.upstream_timeout),
        transport=transport,
    )

    # Added last runs first: CORS/preflight wraps the auth gate.
    app.add_middleware(BasicAuthMiddleware, config=config)
    app.add_middleware(CORSHeadersMiddleware, config=config)

    _register_exception_handlers(app)

    @app.get("/healthz", response_model=HealthResponse, tags=["health"])
    async def healthz(request: Request) -> HealthResponse:
        """Health check; never contacts the upstream."""
        return HealthResponse(base=get_config(request).base_url)

    app.include_router(proxy_router)
    app.include_router(files_router)

    return app


def run(config: Optional[GatewayConfig] = None) -> None:
    """Run the server."""
    import uvicorn

    config = config or load_config()
    log_level = config.log_level.lower()
    if log_level not in _UVICORN_LOG_LEVELS:
        log_level = "info"
    uvicorn.run(create_app(config), host=config.host, port=config.port, log_level=log_level)
