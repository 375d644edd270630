"""Middleware for CORS headers, preflight handling and the Basic-auth gate."""

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..config import GatewayConfig
from .auth import challenge_header, check_credentials

ALLOW_HEADERS = "Origin, X-Requested-With, Content-Type, Accept, Authorization"
ALLOW_METHODS = "GET, POST, PUT, PATCH, DELETE, OPTIONS"


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """
    Stamp CORS headers on every response and answer every OPTIONS request
    with 204, before authentication runs.
    """

    def __init__(self, app: ASGIApp, config: GatewayConfig):
        super().__init__(app)
        self.cors_headers = {
            "Access-Control-Allow-Origin": config.cors_origin,
            "Access-Control-Allow-Headers": ALLOW_HEADERS,
            "Access-Control-Allow-Methods": ALLOW_METHODS,
        }

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=status.HTTP_204_NO_CONTENT, headers=self.cors_headers)

        try:
            response = await call_next(request)
        except Exception as exc:
            # Past this point the server's bare 500 page would go out without CORS headers.
            logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "Internal server error"},
                headers=self.cors_headers,
            )
        response.headers.update(self.cors_headers)
        return response


class BasicAuthMiddleware(BaseHTTPMiddleware):
    """
    Require HTTP Basic credentials when a username is configured.

    With no credentials configured the gateway is open and this middleware
    passes everything through.
    """

    # Routes that bypass authentication
    PUBLIC_ROUTES = {"/healthz"}

    def __init__(self, app: ASGIApp, config: GatewayConfig):
        super().__init__(app)
        self.credentials = config.credentials
        self.realm = config.auth_realm

    async def dispatch(self, request: Request, call_next):
        if self.credentials is None or request.url.path in self.PUBLIC_ROUTES:
            return await call_next(request)

        if check_credentials(request.headers.get("authorization"), self.credentials):
            return await call_next(request)

        logger.debug(f"Rejected unauthenticated {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": "Unauthorized"},
            headers=challenge_header(self.realm),
        )
