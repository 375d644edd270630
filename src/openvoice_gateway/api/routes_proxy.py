"""Proxied synthesis endpoints.

Each route forwards to the upstream OpenVoice service; see
`openvoice_gateway.core.forwarder.ROUTES` for the prefix table.
"""

from __future__ import annotations

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from ..config import GatewayConfig
from ..core.forwarder import ROUTES, Route, UpstreamTarget, forward, raw_target
from .dependencies import get_config, get_http_client

router = APIRouter(tags=["proxy"])


async def _proxy(request: Request, route: Route, config: GatewayConfig, client: httpx.AsyncClient) -> Response:
    target = UpstreamTarget(base_url=config.base_url, path=route.rewrite(raw_target(request)))
    return await forward(client, request, target)


@router.post("/api/upload_audio")
async def upload_audio(
    request: Request,
    config: GatewayConfig = Depends(get_config),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> Response:
    return await _proxy(request, ROUTES["upload_audio"], config, client)


@router.post("/api/change_voice{suffix:path}")
async def change_voice(
    request: Request,
    suffix: str,
    config: GatewayConfig = Depends(get_config),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> Response:
    return await _proxy(request, ROUTES["change_voice"], config, client)


@router.get("/api/base_tts{suffix:path}")
async def base_tts(
    request: Request,
    suffix: str,
    config: GatewayConfig = Depends(get_config),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> Response:
    return await _proxy(request, ROUTES["base_tts"], config, client)


@router.get("/api/synthesize_speech{suffix:path}")
async def synthesize_speech(
    request: Request,
    suffix: str,
    config: GatewayConfig = Depends(get_config),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> Response:
    return await _proxy(request, ROUTES["synthesize_speech"], config, client)
