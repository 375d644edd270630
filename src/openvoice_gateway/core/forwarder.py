"""Proxy forwarder for the OpenVoice synthesis service.

Contract:
- Inbound `/api/<route><suffix>` is rewritten to `<upstream prefix><suffix>`
  with the suffix (path tail and query string) kept byte-for-byte.
- The upstream request keeps the inbound method and headers (minus `host`);
  bodies of GET/HEAD requests are dropped, all others are streamed through.
- The upstream response is relayed by one of two strategies picked from its
  content type: JSON bodies are buffered and re-serialized, anything else
  (audio, mostly) is streamed without buffering.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass
from typing import AnyStr

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from loguru import logger
from starlette.background import BackgroundTask
from starlette.datastructures import Headers

from .exceptions import UpstreamError

SAFE_METHODS = frozenset({"GET", "HEAD"})

REQUEST_EXCLUDED_HEADERS = frozenset({"host"})
RESPONSE_EXCLUDED_HEADERS = frozenset({"transfer-encoding"})
# Dropped whenever the relayed body is not the exact upstream byte sequence.
DECODED_EXCLUDED_HEADERS = RESPONSE_EXCLUDED_HEADERS | {"content-length", "content-encoding"}

_NO_BODY_STATUSES = frozenset({204, 304})


@dataclass(frozen=True)
class Route:
    method: str
    inbound_prefix: str
    upstream_prefix: str
    keep_suffix: bool = True

    def rewrite(self, target: str) -> str:
        if not self.keep_suffix:
            return self.upstream_prefix
        suffix = target[len(self.inbound_prefix):] if target.startswith(self.inbound_prefix) else target
        return f"{self.upstream_prefix}{suffix}"


ROUTES: dict[str, Route] = {
    "upload_audio": Route("POST", "/api/upload_audio", "/upload_audio/", keep_suffix=False),
    "change_voice": Route("POST", "/api/change_voice", "/change_voice"),
    "base_tts": Route("GET", "/api/base_tts", "/base_tts"),
    "synthesize_speech": Route("GET", "/api/synthesize_speech", "/synthesize_speech"),
}


@dataclass(frozen=True)
class UpstreamTarget:
    base_url: str
    path: str

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.path}"


def raw_target(request: Request) -> str:
    """Inbound path plus query string, exactly as the client sent them."""
    raw_path = request.scope.get("raw_path")
    # Some servers leave the query string on raw_path; query_string is authoritative.
    path = raw_path.split(b"?", 1)[0].decode("latin-1") if raw_path else request.url.path
    query = request.scope.get("query_string", b"")
    if query:
        return f"{path}?{query.decode('latin-1')}"
    return path


def _header_name(key: str | bytes) -> str:
    return key.decode("latin-1").lower() if isinstance(key, bytes) else key.lower()


def filter_headers(headers: Iterable[tuple[AnyStr, AnyStr]], excluded: Iterable[str]) -> list[tuple[AnyStr, AnyStr]]:
    """Copy header pairs, dropping any whose name is in excluded (case-insensitive).

    Pairs may be str or raw bytes; bytes pairs come back untouched so values
    outside ASCII are relayed verbatim.
    """
    deny = {name.lower() for name in excluded}
    return [(key, value) for key, value in headers if _header_name(key) not in deny]


def _as_headers(pairs: list[tuple[bytes, bytes]]) -> Headers:
    # Headers keeps repeated names (e.g. set-cookie), unlike a plain dict.
    # Starlette round-trips raw values through latin-1, which is lossless for bytes.
    return Headers(raw=[(k.lower(), v) for k, v in pairs])


class ResponseRelay:
    """Turns an open upstream response into the response sent to the caller."""

    async def relay(self, upstream: httpx.Response) -> Response:
        raise NotImplementedError


class EmptyRelay(ResponseRelay):
    """Statuses that must not carry a body."""

    async def relay(self, upstream: httpx.Response) -> Response:
        await upstream.aclose()
        headers = filter_headers(upstream.headers.raw, RESPONSE_EXCLUDED_HEADERS)
        return Response(status_code=upstream.status_code, headers=_as_headers(headers))


class BufferedJsonRelay(ResponseRelay):
    """Read the whole body and re-emit it as JSON; `{}` when empty or malformed."""

    async def relay(self, upstream: httpx.Response) -> Response:
        try:
            body = await upstream.aread()
        except httpx.HTTPError as e:
            raise UpstreamError(str(upstream.request.url), e) from e
        finally:
            await upstream.aclose()

        data = None
        if body:
            try:
                data = json.loads(body)
            except ValueError as e:
                logger.warning(
                    f"Malformed JSON from {upstream.request.url} "
                    f"(status {upstream.status_code}): {e}; relaying empty object"
                )
        if data is None:
            data = {}

        headers = filter_headers(upstream.headers.raw, DECODED_EXCLUDED_HEADERS)
        return JSONResponse(content=data, status_code=upstream.status_code, headers=_as_headers(headers))


class StreamedRelay(ResponseRelay):
    """Pass upstream bytes through as they arrive, without buffering."""

    async def relay(self, upstream: httpx.Response) -> Response:
        excluded = RESPONSE_EXCLUDED_HEADERS
        if "content-encoding" in upstream.headers:
            # httpx yields decoded bytes, so the original length and encoding no longer apply.
            excluded = DECODED_EXCLUDED_HEADERS
        headers = filter_headers(upstream.headers.raw, excluded)
        return StreamingResponse(
            _iter_body(upstream),
            status_code=upstream.status_code,
            headers=_as_headers(headers),
            # Also runs when the client disconnects mid-stream.
            background=BackgroundTask(upstream.aclose),
        )


async def _iter_body(upstream: httpx.Response) -> AsyncIterator[bytes]:
    try:
        async for chunk in upstream.aiter_bytes():
            yield chunk
    except httpx.HTTPError as e:
        # Headers are already on the wire; aborting the connection is the only signal left.
        logger.error(f"Proxy error while streaming from {upstream.request.url}: {e!r}")
        raise
    finally:
        await upstream.aclose()


def select_relay(status_code: int, content_type: str) -> ResponseRelay:
    if status_code in _NO_BODY_STATUSES:
        return EmptyRelay()
    if "application/json" in content_type.lower():
        return BufferedJsonRelay()
    return StreamedRelay()


async def forward(client: httpx.AsyncClient, request: Request, target: UpstreamTarget) -> Response:
    """Relay one inbound request to target and return the caller-facing response.

    Raises:
        UpstreamError: on any network-level failure before the response starts.
    """
    method = request.method.upper()
    headers = filter_headers(request.headers.raw, REQUEST_EXCLUDED_HEADERS)
    content = None if method in SAFE_METHODS else request.stream()

    upstream_request = client.build_request(method, target.url, headers=headers, content=content)
    logger.debug(f"Forwarding {method} {raw_target(request)} -> {target.url}")

    try:
        upstream = await client.send(upstream_request, stream=True)
    except httpx.HTTPError as e:
        raise UpstreamError(target.url, e) from e

    if method == "HEAD":
        return await EmptyRelay().relay(upstream)

    relay = select_relay(upstream.status_code, upstream.headers.get("content-type", ""))
    return await relay.relay(upstream)
