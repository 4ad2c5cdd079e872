from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from uuid import uuid4

from starlette.responses import Response

from storefront.config import settings
from storefront.security import SessionIdentity

BASKET_COOKIE_NAME = "storefront_basket"
BASKET_COOKIE_LIFETIME_YEARS = 10


@dataclass(frozen=True)
class ResolvedIdentity:
    """The acting shopper for one request.

    ``issued_cookie`` is set when a fresh anonymous token was generated and still has
    to be written to the response.
    """

    shopper_id: str
    issued_cookie: bool = False


def add_years(value: date, years: int) -> date:
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return value.replace(year=value.year + years, day=28)


def basket_cookie_expiry(today: date | None = None) -> datetime:
    expires_on = add_years(today or date.today(), BASKET_COOKIE_LIFETIME_YEARS)
    return datetime.combine(expires_on, time.min, tzinfo=timezone.utc)


def resolve_shopper_identity(
    *,
    session_identity: SessionIdentity,
    cookies: Mapping[str, str],
) -> ResolvedIdentity:
    if session_identity.is_authenticated and session_identity.username:
        return ResolvedIdentity(shopper_id=session_identity.username)

    existing = cookies.get(BASKET_COOKIE_NAME)
    if existing:
        return ResolvedIdentity(shopper_id=existing)

    return ResolvedIdentity(shopper_id=str(uuid4()), issued_cookie=True)


def apply_identity_cookie(
    response: Response,
    identity: ResolvedIdentity,
    *,
    today: date | None = None,
) -> Response:
    if identity.issued_cookie:
        response.set_cookie(
            BASKET_COOKIE_NAME,
            identity.shopper_id,
            expires=basket_cookie_expiry(today),
            httponly=True,
            secure=settings.BASKET_COOKIE_SECURE,
            samesite="lax",
        )
    return response
