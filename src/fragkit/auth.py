from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Final

from starlette.requests import Request

from fragkit.stages import Stage

if TYPE_CHECKING:
    from fragkit.pipeline import RequestContext

AUTHORIZATION_HEADER: Final[str] = "Authorization"
TOKEN_HEADER: Final[str] = "X-Fragkit-Token"
TOKEN_COOKIE: Final[str] = "fk_token"


@dataclass(frozen=True)
class Principal:
    """Outcome of the authorize stage for one request."""

    stage: ClassVar[Stage] = Stage.AUTHORIZE

    authenticated: bool
    source: str | None = None

    @classmethod
    def provide(cls, ctx: RequestContext) -> Principal:
        return ctx.principal or ANONYMOUS


ANONYMOUS: Final[Principal] = Principal(authenticated=False)


def extract_token_from_request(request: Request) -> tuple[str | None, str | None]:
    header_token = request.headers.get(TOKEN_HEADER)
    if header_token:
        return header_token, "header"

    cookie_token = request.cookies.get(TOKEN_COOKIE)
    if cookie_token:
        return cookie_token, "cookie"

    auth = request.headers.get(AUTHORIZATION_HEADER)
    if not auth:
        return None, None

    prefix = "Bearer "
    if auth.startswith(prefix):
        token = auth[len(prefix) :].strip()
        return (token, "bearer") if token else (None, None)
    return None, None


def expected_token(request: Request) -> str | None:
    config = getattr(request.app.state, "fragkit_config", None)
    return getattr(getattr(config, "auth", None), "install_token", None)


def authenticate(request: Request) -> Principal:
    """Check the per-install token carried by the request.

    Accepts any of:
    - X-Fragkit-Token: <token>
    - the fk_token cookie (set by the login page)
    - Authorization: Bearer <token>
    """

    expected = expected_token(request)
    provided, source = extract_token_from_request(request)
    if not expected or not provided:
        return ANONYMOUS
    if not secrets.compare_digest(provided.encode(), expected.encode()):
        return ANONYMOUS
    return Principal(authenticated=True, source=source)
