"""Bookmark redirect: surface cookie-only state in the address bar.

A full-page navigation that arrives without any query string is redirected to
the same path with the client's (non-sensitive) cookies as query parameters,
so the page state becomes bookmarkable and shareable. Partial updates and
requests that already carry a query string always pass through.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Mapping
from urllib.parse import urlencode

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response
from starlette.types import ASGIApp

from fragkit.config import StateUrlsConfig
from fragkit.responses import PARTIAL_REQUEST_HEADER

logger = logging.getLogger(__name__)

NAVIGATION_METHODS = frozenset({"GET", "HEAD"})


def cookie_params(cookies: Mapping[str, str], denylist: Collection[str]) -> dict[str, str]:
    return {
        name: value for name, value in cookies.items() if name not in denylist and value
    }


def bookmark_redirect_url(
    path: str,
    query_string: str,
    *,
    partial: bool,
    cookies: Mapping[str, str],
    denylist: Collection[str],
) -> str | None:
    """Redirect target for a navigation, or None to pass through."""

    if partial or query_string:
        return None
    params = cookie_params(cookies, denylist)
    if not params:
        return None
    return f"{path}?{urlencode(params)}"


def is_exempt_path(path: str, prefixes: Collection[str]) -> bool:
    return any(path == p or path.startswith(p.rstrip("/") + "/") for p in prefixes)


class StateUrlsMiddleware(BaseHTTPMiddleware):
    """Starlette middleware applying ``bookmark_redirect_url``.

    Settings come from ``app.state.fragkit_config.state_urls`` at request time
    unless an explicit ``StateUrlsConfig`` is passed.
    """

    def __init__(self, app: ASGIApp, config: StateUrlsConfig | None = None) -> None:
        super().__init__(app)
        self._config = config

    def _settings(self, request: Request) -> StateUrlsConfig:
        if self._config is not None:
            return self._config
        app_config = getattr(request.app.state, "fragkit_config", None)
        settings = getattr(app_config, "state_urls", None)
        return settings if isinstance(settings, StateUrlsConfig) else StateUrlsConfig()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        settings = self._settings(request)
        path = request.url.path
        if (
            not settings.enabled
            or request.method not in NAVIGATION_METHODS
            or is_exempt_path(path, settings.exempt_prefixes)
        ):
            return await call_next(request)

        target = bookmark_redirect_url(
            path,
            request.url.query,
            partial=PARTIAL_REQUEST_HEADER in request.headers,
            cookies=request.cookies,
            denylist=settings.denylist,
        )
        if target is None:
            return await call_next(request)

        logger.debug("Bookmark redirect %s -> %s", path, target)
        return RedirectResponse(url=target, status_code=303)
