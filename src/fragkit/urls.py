from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar
from urllib.parse import urlencode

from pydantic import BaseModel

from fragkit.resolver import UNSET_SENTINEL
from fragkit.schema import format_scalar, schema_for
from fragkit.stages import Stage

if TYPE_CHECKING:
    from fragkit.pipeline import RequestContext

ParamsInput = Mapping[str, Any] | Iterable[tuple[str, Any]]


def parse_query_string(query: str) -> dict[str, str]:
    """Split on '&' then once on '='. Empty keys are dropped, the last key wins.

    Values are taken as-is; callers holding a raw query string are expected to
    have decoded it already.
    """

    params: dict[str, str] = {}
    if not query:
        return params
    for pair in query.split("&"):
        if not pair:
            continue
        key, _, value = pair.partition("=")
        if key:
            params[key] = value
    return params


def _serialize(path: str, params: Mapping[str, str], *, drop_unset: bool = False) -> str:
    kept = [
        (k, v)
        for k, v in params.items()
        if k and v and not (drop_unset and v == UNSET_SENTINEL)
    ]
    if not kept:
        return path
    return f"{path}?{urlencode(kept)}"


class UrlBuilder:
    """Builds component and page URLs that carry the full parameter set.

    The builder starts from every parameter of the incoming request, so a link
    that changes one component's field keeps every other component's state.
    Chaining methods return a new builder and leave the receiver untouched.
    """

    stage: ClassVar[Stage] = Stage.RESOLVE

    def __init__(
        self,
        base_path: str,
        query_string: str = "",
        *,
        main_page: str | None = None,
        routes: Mapping[str, str] | None = None,
    ) -> None:
        self._path = base_path
        self._params = parse_query_string(query_string)
        self._main_page = main_page
        self._routes: Mapping[str, str] = routes if routes is not None else MappingProxyType({})

    @classmethod
    def from_params(
        cls,
        base_path: str,
        params: Mapping[str, str],
        *,
        main_page: str | None = None,
        routes: Mapping[str, str] | None = None,
    ) -> UrlBuilder:
        builder = cls(base_path, main_page=main_page, routes=routes)
        builder._params = {k: v for k, v in params.items() if k}
        return builder

    @classmethod
    def provide(cls, ctx: RequestContext) -> UrlBuilder:
        return ctx.url

    def __repr__(self) -> str:
        return f"UrlBuilder({self._path!r}, params={self._params!r}, main_page={self._main_page!r})"

    def _copy(self, **changes: Any) -> UrlBuilder:
        clone = UrlBuilder.__new__(UrlBuilder)
        clone._path = changes.get("path", self._path)
        clone._params = dict(changes.get("params", self._params))
        clone._main_page = changes.get("main_page", self._main_page)
        clone._routes = self._routes
        return clone

    @property
    def path(self) -> str:
        return self._path

    @property
    def main_page(self) -> str | None:
        return self._main_page

    def with_main_page(self, path: str) -> UrlBuilder:
        return self._copy(main_page=path)

    def with_path(self, path: str) -> UrlBuilder:
        return self._copy(path=path)

    def for_component(self, name: str) -> UrlBuilder:
        """Retarget the builder at another registered component."""

        try:
            path = self._routes[name]
        except KeyError:
            raise KeyError(f"Unknown component: {name}") from None
        return self._copy(path=path)

    def with_params(self, params: ParamsInput) -> UrlBuilder:
        items = params.items() if isinstance(params, Mapping) else params
        merged = dict(self._params)
        for key, value in items:
            merged[str(key)] = format_scalar(value)
        return self._copy(params=merged)

    def unset(self, *names: str) -> UrlBuilder:
        """Mark fields to be cleared (and their cookies deleted) by the next request."""

        return self.with_params((name, UNSET_SENTINEL) for name in names)

    def build(self) -> str:
        return _serialize(self._path, self._params)

    def build_main_url(self) -> str:
        # Address-bar URLs never carry the unset marker.
        return _serialize(self._main_page or "/", self._params, drop_unset=True)

    def build_page_url(self, page_path: str) -> str:
        return _serialize(page_path, self._params, drop_unset=True)

    def all_params(self) -> dict[str, str]:
        return dict(self._params)

    def other_params(self, state_type: type[BaseModel]) -> dict[str, str]:
        """All parameters except the fields owned by ``state_type``."""

        own = set(schema_for(state_type).fields)
        return {k: v for k, v in self._params.items() if k not in own}
