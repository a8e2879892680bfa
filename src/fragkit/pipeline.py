"""Request pipeline for registered components.

Every component route runs the same ordered stages before its handler:

1. resolve   - merge default, cookie and query values into each declared state
2. persist   - plan the cookie writes for the resolved values
3. authorize - check credentials; components registered with auth=True stop here

Handlers stay plain functions. Their parameters are bound once at mount time
from type hints: a parameter type supplies itself through the ``Provided``
capability (see ``fragkit.stages``), which names the stage that produces it.
"""

from __future__ import annotations

import inspect
import logging
import re
import typing
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar
from urllib.parse import urlsplit

from fastapi import FastAPI, HTTPException
from fastapi.routing import APIRoute
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import FormData
from starlette.requests import Request
from starlette.responses import HTMLResponse, Response
from starlette.routing import Route

from fragkit.auth import Principal, authenticate
from fragkit.config import FragkitConfig
from fragkit.errors import RegistryError
from fragkit.persistence import CookiePlan, apply_cookie_writes, plan_cookie_writes
from fragkit.registry import ComponentRecord, ComponentTable
from fragkit.resolver import ResolvedState, query_map, resolve_state
from fragkit.responses import CURRENT_URL_HEADER, to_response
from fragkit.schema import has_default_instance
from fragkit.stages import Stage, is_provided
from fragkit.urls import UrlBuilder

logger = logging.getLogger(__name__)

_PATH_PARAM_RE = re.compile(r"\{(\w+)(?::\w+)?\}")


class FormFields(Mapping[str, str]):
    """Decoded form body of the request (last value wins; ``getlist`` for all)."""

    stage: ClassVar[Stage] = Stage.REQUEST

    def __init__(self, form: FormData | None = None) -> None:
        self._form = form if form is not None else FormData()

    @classmethod
    def provide(cls, ctx: RequestContext) -> FormFields:
        return ctx.form if ctx.form is not None else cls()

    def __getitem__(self, key: str) -> str:
        return str(self._form[key])

    def __iter__(self) -> Iterator[str]:
        return iter(self._form.keys())

    def __len__(self) -> int:
        return len(self._form.keys())

    def getlist(self, key: str) -> list[str]:
        return [str(v) for v in self._form.getlist(key)]


@dataclass
class RequestContext:
    request: Request
    record: ComponentRecord
    config: FragkitConfig
    query: dict[str, str]
    url: UrlBuilder
    state_types: tuple[type[BaseModel], ...] = ()
    resolved: dict[type[BaseModel], ResolvedState[Any]] = field(default_factory=dict)
    cookie_plan: CookiePlan = field(default_factory=dict)
    principal: Principal | None = None
    form: FormFields | None = None

    @classmethod
    def from_request(
        cls,
        request: Request,
        record: ComponentRecord,
        table: ComponentTable,
        config: FragkitConfig,
        state_types: tuple[type[BaseModel], ...] = (),
    ) -> RequestContext:
        query = query_map(request.query_params.multi_items())
        main_page = main_page_from_header(request.headers.get(CURRENT_URL_HEADER))
        if main_page is None and record.kind == "page":
            main_page = request.url.path
        url = UrlBuilder.from_params(
            request.url.path, query, main_page=main_page, routes=table.routes
        )
        return cls(
            request=request,
            record=record,
            config=config,
            query=query,
            url=url,
            state_types=state_types,
        )

    def resolved_for(self, state_type: type[BaseModel]) -> ResolvedState[Any]:
        if state_type not in self.resolved:
            self.resolved[state_type] = resolve_state(
                state_type, self.request.cookies.get, self.query
            )
        return self.resolved[state_type]


def main_page_from_header(value: str | None) -> str | None:
    """Path of the page the client is showing, from the HX-Current-URL header."""

    if not value:
        return None
    path = urlsplit(value).path
    return path or None


def resolve_stage(ctx: RequestContext) -> None:
    for state_type in ctx.state_types:
        ctx.resolved_for(state_type)


def persist_stage(ctx: RequestContext) -> None:
    existing = set(ctx.request.cookies)
    for resolved in ctx.resolved.values():
        ctx.cookie_plan.update(plan_cookie_writes(resolved.raw, existing))


def authorize_stage(ctx: RequestContext) -> None:
    ctx.principal = authenticate(ctx.request)
    if ctx.record.auth and not ctx.principal.authenticated:
        raise HTTPException(status_code=401, detail="Authentication required")


@dataclass(frozen=True)
class PipelineStage:
    name: str
    stage: Stage
    run: Callable[[RequestContext], None]


DEFAULT_STAGES: tuple[PipelineStage, ...] = (
    PipelineStage("resolve", Stage.RESOLVE, resolve_stage),
    PipelineStage("persist", Stage.PERSIST, persist_stage),
    PipelineStage("authorize", Stage.AUTHORIZE, authorize_stage),
)


Binder = Callable[[RequestContext], Any]


@dataclass(frozen=True)
class HandlerBinding:
    binders: dict[str, Binder]
    state_types: tuple[type[BaseModel], ...]
    needs_form: bool
    is_async: bool


def _path_param_binder(name: str) -> Binder:
    return lambda ctx: ctx.request.path_params[name]


def bind_handler(record: ComponentRecord) -> HandlerBinding:
    """Work out how to supply each handler parameter; fails loudly at startup."""

    handler = record.handler
    try:
        hints = typing.get_type_hints(handler)
    except (NameError, TypeError) as exc:
        raise RegistryError(f"Cannot read type hints of {record.name}: {exc}") from exc

    path_params = set(_PATH_PARAM_RE.findall(record.path))
    binders: dict[str, Binder] = {}
    state_types: list[type[BaseModel]] = []
    needs_form = False

    for name, param in inspect.signature(handler).parameters.items():
        annotation = hints.get(name)
        if annotation is Request:
            binders[name] = lambda ctx: ctx.request
        elif is_provided(annotation):
            if issubclass(annotation, BaseModel):
                if not has_default_instance(annotation):
                    raise RegistryError(
                        f"{record.name}: state type {annotation.__name__} needs defaults "
                        "for every field"
                    )
                state_types.append(annotation)
            if annotation is FormFields:
                needs_form = True
            binders[name] = annotation.provide
        elif name in path_params:
            binders[name] = _path_param_binder(name)
        elif param.default is inspect.Parameter.empty:
            raise RegistryError(
                f"{record.name}: cannot supply parameter {name!r} ({annotation!r})"
            )

    return HandlerBinding(
        binders=binders,
        state_types=tuple(state_types),
        needs_form=needs_form,
        is_async=inspect.iscoroutinefunction(handler),
    )


def app_config(request: Request) -> FragkitConfig:
    config = getattr(request.app.state, "fragkit_config", None)
    return config if isinstance(config, FragkitConfig) else FragkitConfig()


def build_endpoint(
    record: ComponentRecord,
    table: ComponentTable,
    stages: tuple[PipelineStage, ...] = DEFAULT_STAGES,
) -> Callable[[Request], Any]:
    binding = bind_handler(record)

    async def endpoint(request: Request) -> Response:
        config = app_config(request)
        ctx = RequestContext.from_request(
            request, record, table, config, binding.state_types
        )
        if binding.needs_form:
            ctx.form = FormFields(await request.form())

        for stage in stages:
            stage.run(ctx)

        kwargs = {name: bind(ctx) for name, bind in binding.binders.items()}
        if binding.is_async:
            result = await record.handler(**kwargs)
        else:
            result = await run_in_threadpool(record.handler, **kwargs)

        response = to_response(result)
        apply_cookie_writes(response, ctx.cookie_plan, config.cookies)
        return response

    endpoint.__name__ = f"fragkit_{record.name}"
    return endpoint


def _existing_route_keys(app: FastAPI) -> set[tuple[str, str]]:
    keys: set[tuple[str, str]] = set()
    for route in app.router.routes:
        if isinstance(route, APIRoute | Route):
            for method in route.methods or ():
                keys.add((method, route.path))
    return keys


def mount_components(
    app: FastAPI,
    table: ComponentTable,
    stages: tuple[PipelineStage, ...] = DEFAULT_STAGES,
) -> None:
    """Bind every record of the frozen table into the app router, once."""

    taken = _existing_route_keys(app)
    for record in table:
        if record.route_key in taken:
            raise RegistryError(
                f"{record.method} {record.path} ({record.name}) collides with an existing route"
            )
        app.add_api_route(
            record.path,
            build_endpoint(record, table, stages),
            methods=[record.method],
            name=record.name,
            include_in_schema=False,
            response_class=HTMLResponse,
            response_model=None,
        )
        taken.add(record.route_key)
        logger.info("Mounted %s %s at %s (%s)", record.kind, record.name, record.path, record.method)

    app.state.fragkit_components = table
