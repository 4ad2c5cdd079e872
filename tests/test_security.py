from __future__ import annotations

import hashlib
import hmac

from starlette.requests import Request

from storefront.security import (
    SESSION_COOKIE_NAME,
    build_session_cookie_value,
    get_session_identity,
    verify_session_cookie,
)


def _request_with_cookie(value: str | None) -> Request:
    headers = []
    if value is not None:
        headers.append((b"cookie", f"{SESSION_COOKIE_NAME}={value}".encode("latin-1")))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


def test_build_session_cookie_value_signs_username():
    digest = hmac.new(b"test_session_secret", b"demouser", hashlib.sha256).hexdigest()

    assert build_session_cookie_value("demouser") == f"demouser.{digest}"


def test_verify_session_cookie_accepts_valid_signature():
    assert verify_session_cookie(build_session_cookie_value("demouser@example.com")) == "demouser@example.com"


def test_verify_session_cookie_rejects_tampered_username():
    value = build_session_cookie_value("demouser")
    signature = value.rsplit(".", 1)[1]

    assert verify_session_cookie(f"admin.{signature}") is None


def test_verify_session_cookie_rejects_malformed_values():
    assert verify_session_cookie(None) is None
    assert verify_session_cookie("") is None
    assert verify_session_cookie("no-signature") is None
    assert verify_session_cookie(".abc") is None


def test_get_session_identity_reads_signed_cookie():
    identity = get_session_identity(_request_with_cookie(build_session_cookie_value("demouser")))

    assert identity.is_authenticated is True
    assert identity.username == "demouser"


def test_get_session_identity_is_anonymous_without_cookie():
    identity = get_session_identity(_request_with_cookie(None))

    assert identity.is_authenticated is False
    assert identity.username is None
