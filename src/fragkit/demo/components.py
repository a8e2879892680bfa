from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi.templating import Jinja2Templates
from starlette.requests import Request

from fragkit.demo.store import UserStore
from fragkit.helpers import clear_input_handler, cookie_cleaner_script, preserve_params
from fragkit.registry import ComponentRegistry
from fragkit.responses import Fragment
from fragkit.schema import ViewState
from fragkit.urls import UrlBuilder

BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"
STATIC_DIR = BASE_DIR / "static"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals.update(
    preserve_params=preserve_params,
    cookie_cleaner_script=cookie_cleaner_script,
    clear_input_handler=clear_input_handler,
)

registry = ComponentRegistry()


def render(template_name: str, **context: Any) -> str:
    return templates.get_template(template_name).render(**context)


def get_user_store(request: Request) -> UserStore:
    store = getattr(request.app.state, "user_store", None)
    if store is None:
        store = UserStore()
        request.app.state.user_store = store
    return store


class CounterState(ViewState):
    count: int = 0


class GreeterState(ViewState):
    name: str = ""


class UserTableState(ViewState):
    sort: str = ""  # "name", "email", "role" or ""
    filter: str = ""


@registry.component
def counter(state: CounterState, url: UrlBuilder) -> Fragment:
    html = render(
        "counter.html",
        state=state,
        increment_url=url.with_params({"count": state.count + 1}).build(),
        decrement_url=url.with_params({"count": state.count - 1}).build(),
        reset_url=url.unset("count").build(),
    )
    return Fragment(html, push_url=url.build_main_url())


@registry.component
def greeter(state: GreeterState, url: UrlBuilder) -> Fragment:
    greeting = f"Hello, {state.name}!" if state.name else "Hello, stranger!"
    html = render(
        "greeter.html",
        state=state,
        greeting=greeting,
        target=url.path,
        clear_url=url.unset("name").build(),
        other_params=url.other_params(GreeterState),
    )
    return Fragment(html, push_url=url.build_main_url())


@registry.component(auth=True)
def user_table(state: UserTableState, url: UrlBuilder, request: Request) -> Fragment:
    store = get_user_store(request)
    users = store.query(filter_text=state.filter, sort=state.sort)

    html = render(
        "user_table.html",
        state=state,
        users=users,
        total=len(store),
        request_count=store.request_count,
        filter_target=url.path,
        sort_urls={key: url.with_params({"sort": key}).build() for key in ("name", "email", "role")},
        clear_filter_url=url.unset("filter").build(),
    )
    return Fragment(html, push_url=url.build_main_url())
