"""Pytest configuration and shared fixtures."""

import os

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from openvoice_gateway.api.main import create_app
from openvoice_gateway.config import Credentials, GatewayConfig

UPSTREAM_BASE = "http://upstream.test"


# ============================================================================
# Directories
# ============================================================================

@pytest.fixture
def ref_dir(tmp_path):
    """Empty reference directory."""
    path = tmp_path / "refs"
    path.mkdir()
    return path


@pytest.fixture
def out_dir(tmp_path):
    """Empty output directory."""
    path = tmp_path / "outs"
    path.mkdir()
    return path


@pytest.fixture
def make_file():
    """Factory writing a file with an explicit modification time (seconds)."""
    def _factory(directory, name: str, content: bytes = b"", mtime: float | None = None):
        path = directory / name
        path.write_bytes(content)
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path
    return _factory


# ============================================================================
# Configuration
# ============================================================================

@pytest.fixture
def gateway_config(ref_dir, out_dir):
    """Open gateway pointed at the fake upstream."""
    return GatewayConfig(base_url=UPSTREAM_BASE, ref_dir=ref_dir, out_dir=out_dir)


@pytest.fixture
def secured_config(gateway_config):
    """Gateway requiring Basic auth as alice:s3cret."""
    return gateway_config.model_copy(
        update={"credentials": Credentials(username="alice", password="s3cret")}
    )


# ============================================================================
# Fake upstream
# ============================================================================

class FakeUpstream:
    """Records forwarded requests and answers with a canned response."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.bodies: list[bytes] = []
        self.respond = lambda: httpx.Response(200, json={"ok": True})
        self.error: Exception | None = None

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.bodies.append(await request.aread())
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.respond()

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def upstream():
    return FakeUpstream()


# ============================================================================
# Clients
# ============================================================================

@pytest.fixture
async def make_client(upstream):
    """Factory for in-process clients talking to a gateway built from a config."""
    apps = []
    clients = []

    async def _factory(config: GatewayConfig) -> AsyncClient:
        app = create_app(config, transport=upstream.transport())
        apps.append(app)
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://gateway.test")
        clients.append(client)
        return client

    yield _factory

    for client in clients:
        await client.aclose()
    for app in apps:
        await app.state.http_client.aclose()


@pytest.fixture
async def client(make_client, gateway_config):
    """Client for an open gateway."""
    return await make_client(gateway_config)


@pytest.fixture
async def secured_client(make_client, secured_config):
    """Client for a gateway with Basic auth enabled."""
    return await make_client(secured_config)
