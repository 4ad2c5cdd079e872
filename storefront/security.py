from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass

from fastapi import Request

from storefront.config import settings

SESSION_COOKIE_NAME = "storefront_session"


@dataclass(frozen=True)
class SessionIdentity:
    is_authenticated: bool
    username: str | None = None


ANONYMOUS = SessionIdentity(is_authenticated=False)


def _sign(username: str) -> str:
    return hmac.new(
        settings.STOREFRONT_SESSION_SECRET.encode("utf-8"),
        username.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def build_session_cookie_value(username: str) -> str:
    return f"{username}.{_sign(username)}"


def verify_session_cookie(value: str | None) -> str | None:
    """Return the signed-in username carried by ``value``, or None if it is not valid."""
    if not value or "." not in value:
        return None
    username, supplied_signature = value.rsplit(".", 1)
    if not username:
        return None
    if not hmac.compare_digest(_sign(username), supplied_signature):
        return None
    return username


def get_session_identity(request: Request) -> SessionIdentity:
    username = verify_session_cookie(request.cookies.get(SESSION_COOKIE_NAME))
    if username is None:
        return ANONYMOUS
    return SessionIdentity(is_authenticated=True, username=username)
