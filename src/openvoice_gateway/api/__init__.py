"""OpenVoice gateway HTTP API.

Keep this package import side-effect free: importing `openvoice_gateway.api.*`
should not build the FastAPI app or read the environment.
"""

__all__ = ["create_app"]


def create_app(*args, **kwargs):
    from .main import create_app as _create_app

    return _create_app(*args, **kwargs)
