"""FastAPI dependencies exposing process-wide state to route handlers."""

import httpx
from fastapi import Request

from ..config import GatewayConfig


def get_config(request: Request) -> GatewayConfig:
    return request.app.state.config


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client
