"""Demo pages.

Pages run through the same pipeline as components, so the first render of a
page already reflects cookie state. Login/logout are plain routes: they set
and clear the install-token cookie and never touch view state.
"""

from __future__ import annotations

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from starlette.responses import Response

from fragkit.auth import TOKEN_COOKIE, Principal, expected_token
from fragkit.demo.components import (
    CounterState,
    GreeterState,
    UserTableState,
    counter,
    greeter,
    registry,
    render,
    templates,
    user_table,
)
from fragkit.responses import Page
from fragkit.urls import UrlBuilder

router = APIRouter(tags=["demo"])


def _safe_redirect(target: str | None) -> str:
    # Only same-site absolute paths.
    if not target or not target.startswith("/") or target.startswith("//"):
        return "/"
    return target


@registry.page("/")
def index(principal: Principal) -> Page:
    return Page(render("index.html", active="home", principal=principal))


@registry.page("/simple")
def simple(
    counter_state: CounterState,
    greeter_state: GreeterState,
    url: UrlBuilder,
    principal: Principal,
) -> Page:
    return Page(
        render(
            "simple.html",
            active="simple",
            principal=principal,
            counter=counter(counter_state, url.for_component("counter")),
            greeter=greeter(greeter_state, url.for_component("greeter")),
        )
    )


@registry.page("/users", auth=True)
def users(
    state: UserTableState, url: UrlBuilder, principal: Principal, request: Request
) -> Page:
    return Page(
        render(
            "users.html",
            active="users",
            principal=principal,
            user_table=user_table(state, url.for_component("user_table"), request),
        )
    )


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request, redirect: str = "/") -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "login.html",
        {"active": None, "redirect": _safe_redirect(redirect), "error": None},
    )


@router.post("/login", response_model=None)
async def login_post(
    request: Request, token: str = Form(...), redirect: str = Form(default="/")
) -> Response:
    expected = expected_token(request)
    token = (token or "").strip()

    if not expected or token != expected:
        return templates.TemplateResponse(
            request,
            "login.html",
            {
                "active": None,
                "redirect": _safe_redirect(redirect),
                "error": "Invalid token" if token else "Missing token",
            },
            status_code=401 if token else 400,
        )

    resp = RedirectResponse(url=_safe_redirect(redirect), status_code=303)
    resp.set_cookie(
        TOKEN_COOKIE,
        token,
        httponly=True,
        samesite="lax",
        max_age=60 * 60 * 24 * 30,
    )
    return resp


@router.post("/logout")
async def logout() -> RedirectResponse:
    resp = RedirectResponse(url="/", status_code=303)
    resp.delete_cookie(TOKEN_COOKIE)
    return resp
