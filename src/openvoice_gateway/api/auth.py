"""HTTP Basic authentication against the configured credential pair."""

import base64
import binascii
import hmac
from typing import Optional

from ..config import Credentials


def decode_basic_auth(header: str) -> Optional[tuple[str, str]]:
    """Decode an `Authorization: Basic ...` value into (username, password).

    Returns None when the header is not a decodable Basic credential. A token
    without a colon yields an empty password.
    """
    scheme, _, token = header.strip().partition(" ")
    if scheme.lower() != "basic" or not token:
        return None
    try:
        decoded = base64.b64decode(token.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    username, _, password = decoded.partition(":")
    return username, password


def check_credentials(header: Optional[str], credentials: Credentials) -> bool:
    """Exact, constant-time comparison of the presented pair with the configured one."""
    if not header:
        return False
    pair = decode_basic_auth(header)
    if pair is None:
        return False
    username, password = pair
    user_ok = hmac.compare_digest(username.encode("utf-8"), credentials.username.encode("utf-8"))
    pass_ok = hmac.compare_digest(password.encode("utf-8"), credentials.password.encode("utf-8"))
    return user_ok and pass_ok


def challenge_header(realm: str) -> dict[str, str]:
    return {"WWW-Authenticate": f'Basic realm="{realm}"'}
