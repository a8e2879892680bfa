from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final

from starlette.responses import HTMLResponse, Response

PARTIAL_REQUEST_HEADER: Final[str] = "HX-Request"
CURRENT_URL_HEADER: Final[str] = "HX-Current-URL"
PUSH_URL_HEADER: Final[str] = "HX-Push-Url"


@dataclass(frozen=True)
class Fragment:
    """An HTML partial, optionally asking the client to push a history URL."""

    html: str
    push_url: str | None = None
    status_code: int = 200

    def __html__(self) -> str:
        return self.html

    def to_response(self) -> Response:
        headers = {PUSH_URL_HEADER: self.push_url} if self.push_url else None
        return HTMLResponse(self.html, status_code=self.status_code, headers=headers)


@dataclass(frozen=True)
class Page:
    """A full document. Bodies that already start with a doctype are sent as-is."""

    html: str
    status_code: int = 200

    def to_response(self) -> Response:
        body = self.html
        if not body.lstrip().lower().startswith("<!doctype"):
            body = f"<!DOCTYPE html><html>{body}</html>"
        return HTMLResponse(body, status_code=self.status_code)


def to_response(result: Any) -> Response:
    if isinstance(result, Response):
        return result
    if isinstance(result, Fragment | Page):
        return result.to_response()
    if isinstance(result, str):
        # Markup is a str subclass.
        return HTMLResponse(str(result))
    raise TypeError(f"Unsupported handler result: {type(result).__name__}")
