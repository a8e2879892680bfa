from __future__ import annotations

from starlette.responses import Response

from fragkit.config import CookieConfig
from fragkit.persistence import apply_cookie_writes, persist_state, plan_cookie_writes


def _set_cookie_headers(response: Response) -> list[str]:
    return [v.decode("latin-1") for k, v in response.raw_headers if k == b"set-cookie"]


def test_plan_sets_non_empty_and_deletes_empty() -> None:
    plan = plan_cookie_writes({"count": 3, "name": "", "dense": True, "ratio": 0.25})
    assert plan == {"count": "3", "name": None, "dense": "true", "ratio": "0.25"}


def test_plan_only_deletes_cookies_the_client_holds() -> None:
    plan = plan_cookie_writes({"name": "", "filter": ""}, existing={"filter"})
    assert plan == {"filter": None}


def test_apply_writes_cookies_scoped_to_root_path() -> None:
    response = Response()
    apply_cookie_writes(response, {"count": "3"}, CookieConfig())

    headers = _set_cookie_headers(response)
    assert len(headers) == 1
    assert headers[0].startswith("count=3;")
    assert "Path=/" in headers[0]
    assert "Max-Age=2592000" in headers[0]
    assert "HttpOnly" not in headers[0]


def test_apply_deletes_with_immediate_expiry() -> None:
    response = Response()
    apply_cookie_writes(response, {"count": None}, CookieConfig())

    headers = _set_cookie_headers(response)
    assert len(headers) == 1
    assert headers[0].startswith('count="";') or headers[0].startswith("count=;")
    assert "Max-Age=0" in headers[0]
    assert "Path=/" in headers[0]


def test_persist_state_honours_cookie_settings() -> None:
    response = Response()
    settings = CookieConfig(path="/app", max_age=None, secure=True, samesite="strict")

    plan = persist_state(response, {"sort": "name"}, settings)

    assert plan == {"sort": "name"}
    header = _set_cookie_headers(response)[0]
    assert "Path=/app" in header
    assert "Max-Age" not in header
    assert "Secure" in header
    assert "SameSite=strict" in header
