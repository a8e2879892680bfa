from __future__ import annotations

import pytest
from fastapi import FastAPI
from pydantic import BaseModel

from fragkit.errors import RegistryError
from fragkit.pipeline import mount_components
from fragkit.registry import ComponentRegistry, route_path
from fragkit.responses import Fragment
from fragkit.schema import ViewState
from fragkit.urls import UrlBuilder


class CounterState(ViewState):
    count: int = 0


class NeedsValue(ViewState):
    value: int


class Plain(BaseModel):
    x: int = 0


def test_route_path_rules() -> None:
    assert route_path("counter") == "/counter"
    assert route_path("counter", path="/c") == "/c"
    assert route_path("toggle", prefix="/todos") == "/todos/toggle"
    assert route_path("toggle", prefix="/todos", path="/{id}/toggle") == "/todos/{id}/toggle"


def test_decorators_register_records() -> None:
    registry = ComponentRegistry()

    @registry.component
    def counter(state: CounterState, url: UrlBuilder) -> Fragment:
        return Fragment(str(state.count))

    @registry.component(prefix="/api", method="post")
    def create(url: UrlBuilder) -> str:
        return "ok"

    @registry.page("/home")
    def home() -> str:
        return "home"

    table = registry.freeze()
    assert [(r.name, r.path, r.method, r.kind) for r in table] == [
        ("counter", "/counter", "GET", "component"),
        ("create", "/api/create", "POST", "component"),
        ("home", "/home", "GET", "page"),
    ]
    assert table.path_for("counter") == "/counter"
    assert table.get("create") is not None
    assert table.get("missing") is None


def test_duplicate_route_is_rejected() -> None:
    registry = ComponentRegistry()

    @registry.component("/same")
    def first() -> str:
        return "a"

    with pytest.raises(RegistryError, match="/same"):

        @registry.component("/same")
        def second() -> str:
            return "b"


def test_same_path_different_method_is_allowed() -> None:
    registry = ComponentRegistry()
    registry.register(lambda: "a", path="/todo", name="read")
    registry.register(lambda: "b", path="/todo", method="POST", name="write")
    assert len(registry.freeze()) == 2


def test_duplicate_name_is_rejected() -> None:
    registry = ComponentRegistry()
    registry.register(lambda: "a", path="/a", name="widget")
    with pytest.raises(RegistryError, match="widget"):
        registry.register(lambda: "b", path="/b", name="widget")


def test_unsupported_method_is_rejected() -> None:
    registry = ComponentRegistry()
    with pytest.raises(RegistryError):
        registry.register(lambda: "a", path="/a", method="TRACE", name="a")


def test_freeze_is_final_and_idempotent() -> None:
    registry = ComponentRegistry()
    registry.register(lambda: "a", path="/a", name="a")
    table = registry.freeze()

    assert registry.freeze() is table
    with pytest.raises(RegistryError):
        registry.register(lambda: "b", path="/b", name="b")


def test_mount_rejects_collision_with_existing_route() -> None:
    app = FastAPI()

    @app.get("/taken")
    async def taken() -> dict[str, str]:
        return {}

    registry = ComponentRegistry()
    registry.register(lambda: "x", path="/taken", name="taken_component")

    with pytest.raises(RegistryError, match="collides"):
        mount_components(app, registry.freeze())


def test_mount_rejects_unsupported_parameter() -> None:
    registry = ComponentRegistry()

    def handler(plain: Plain) -> str:
        return "x"

    registry.register(handler, path="/h")
    with pytest.raises(RegistryError, match="plain"):
        mount_components(FastAPI(), registry.freeze())


def test_mount_rejects_state_without_defaults() -> None:
    registry = ComponentRegistry()

    def handler(state: NeedsValue) -> str:
        return "x"

    registry.register(handler, path="/h")
    with pytest.raises(RegistryError, match="NeedsValue"):
        mount_components(FastAPI(), registry.freeze())
