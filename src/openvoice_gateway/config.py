"""Gateway configuration.

Values come from the process environment and are read exactly once, when the
application is created. The resulting GatewayConfig is frozen and shared
read-only by every request.

Env:
- OPENVOICE_BASE_URL: upstream synthesis service (default http://localhost:8786)
- REF_DIR / OUT_DIR: reference and output audio directories
- HOST / PORT: listen address
- BASIC_AUTH_USER / BASIC_AUTH_PASS / BASIC_AUTH_REALM: optional Basic auth
- CORS_ORIGIN: value of Access-Control-Allow-Origin (default *)
- UPSTREAM_TIMEOUT: seconds; unset means wait indefinitely
- LOG_LEVEL: loguru sink level
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict

DEFAULT_BASE_URL = "http://localhost:8786"
DEFAULT_REF_DIR = "/refs"
DEFAULT_OUT_DIR = "/outs"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3001
DEFAULT_REALM = "OpenVoice Studio"


class Credentials(BaseModel):
    """Basic-auth pair used only for equality comparison."""

    model_config = ConfigDict(frozen=True)

    username: str
    password: str = ""


class GatewayConfig(BaseModel):
    """Immutable process-wide configuration."""

    model_config = ConfigDict(frozen=True)

    base_url: str = DEFAULT_BASE_URL
    ref_dir: Path = Path(DEFAULT_REF_DIR)
    out_dir: Path = Path(DEFAULT_OUT_DIR)
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    credentials: Optional[Credentials] = None
    auth_realm: str = DEFAULT_REALM
    cors_origin: str = "*"
    upstream_timeout: Optional[float] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "GatewayConfig":
        env = os.environ if environ is None else environ

        def _get(name: str, default: str) -> str:
            raw = env.get(name)
            if raw is None or raw == "":
                return default
            return raw

        def _get_int(name: str, default: int) -> int:
            try:
                return int(_get(name, str(default)))
            except ValueError:
                return default

        def _get_float(name: str) -> Optional[float]:
            raw = env.get(name)
            if not raw:
                return None
            try:
                return float(raw)
            except ValueError:
                return None

        credentials = None
        user = env.get("BASIC_AUTH_USER")
        if user:
            credentials = Credentials(username=user, password=env.get("BASIC_AUTH_PASS", ""))

        return cls(
            base_url=_get("OPENVOICE_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            ref_dir=Path(_get("REF_DIR", DEFAULT_REF_DIR)),
            out_dir=Path(_get("OUT_DIR", DEFAULT_OUT_DIR)),
            host=_get("HOST", DEFAULT_HOST),
            port=_get_int("PORT", DEFAULT_PORT),
            credentials=credentials,
            auth_realm=_get("BASIC_AUTH_REALM", DEFAULT_REALM),
            cors_origin=_get("CORS_ORIGIN", "*"),
            upstream_timeout=_get_float("UPSTREAM_TIMEOUT"),
            log_level=_get("LOG_LEVEL", "INFO").upper(),
        )


def load_config() -> GatewayConfig:
    return GatewayConfig.from_env()
