from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from fragkit.bookmark import bookmark_redirect_url, is_exempt_path
from fragkit.config import DEFAULT_DENYLIST
from fragkit.demo import create_demo_app


def test_cookie_state_becomes_query() -> None:
    target = bookmark_redirect_url(
        "/simple", "", partial=False, cookies={"count": "3"}, denylist=DEFAULT_DENYLIST
    )
    assert target == "/simple?count=3"


def test_partial_requests_pass_through() -> None:
    target = bookmark_redirect_url(
        "/counter", "", partial=True, cookies={"count": "3"}, denylist=()
    )
    assert target is None


def test_existing_query_passes_through() -> None:
    target = bookmark_redirect_url(
        "/simple", "name=ann", partial=False, cookies={"count": "3"}, denylist=()
    )
    assert target is None


def test_denylisted_and_empty_cookies_are_skipped() -> None:
    cookies = {"fk_token": "secret", "session_id": "abc", "name": "", "sort": "email"}
    target = bookmark_redirect_url(
        "/users", "", partial=False, cookies=cookies, denylist=DEFAULT_DENYLIST
    )
    assert target == "/users?sort=email"

    assert (
        bookmark_redirect_url(
            "/users", "", partial=False, cookies={"fk_token": "x"}, denylist=DEFAULT_DENYLIST
        )
        is None
    )


def test_redirect_values_are_encoded() -> None:
    target = bookmark_redirect_url(
        "/simple", "", partial=False, cookies={"name": "Ann Lee"}, denylist=()
    )
    assert target == "/simple?name=Ann+Lee"


def test_exempt_prefixes_match_whole_segments() -> None:
    prefixes = ["/static", "/login"]
    assert is_exempt_path("/static/app.css", prefixes)
    assert is_exempt_path("/login", prefixes)
    assert not is_exempt_path("/loginhelp", prefixes)
    assert not is_exempt_path("/simple", prefixes)


@pytest.fixture()
def client(tmp_path: Path, monkeypatch) -> Iterator[TestClient]:
    monkeypatch.setenv("FRAGKIT_HOME", str(tmp_path))
    with TestClient(create_demo_app()) as c:
        yield c


def test_navigation_with_cookie_state_redirects(client: TestClient) -> None:
    r = client.get("/simple", headers={"Cookie": "count=3"}, follow_redirects=False)

    assert r.status_code == 303
    assert r.headers["location"] == "/simple?count=3"


def test_navigation_without_cookies_renders(client: TestClient) -> None:
    r = client.get("/simple", follow_redirects=False)
    assert r.status_code == 200


def test_partial_request_is_never_redirected(client: TestClient) -> None:
    r = client.get(
        "/counter",
        headers={"Cookie": "count=3", "HX-Request": "true"},
        follow_redirects=False,
    )
    assert r.status_code == 200
    assert "Counter: 3" in r.text


def test_request_with_query_is_never_redirected(client: TestClient) -> None:
    r = client.get("/simple?name=ann", headers={"Cookie": "count=3"}, follow_redirects=False)
    assert r.status_code == 200
    assert "Counter: 3" in r.text
    assert "Hello, ann!" in r.text


def test_post_is_never_redirected(client: TestClient) -> None:
    r = client.post("/logout", headers={"Cookie": "count=3"}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"


def test_static_paths_are_exempt(client: TestClient) -> None:
    r = client.get("/healthz", headers={"Cookie": "count=3"}, follow_redirects=False)
    assert r.status_code == 200


def test_configured_denylist_disables_redirect(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("FRAGKIT_HOME", str(tmp_path))
    config_dir = tmp_path / "config"
    config_dir.mkdir(parents=True)
    (config_dir / "fragkit.json").write_text(
        json.dumps({"state_urls": {"denylist": ["count"]}}), encoding="utf-8"
    )

    with TestClient(create_demo_app()) as client:
        r = client.get("/simple", headers={"Cookie": "count=3"}, follow_redirects=False)

    assert r.status_code == 200
    assert "Counter: 3" in r.text
