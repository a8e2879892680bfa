"""Component registry.

Components and pages are registered at import time through decorators on a
``ComponentRegistry``. Once the app is built the registry is frozen into a
``ComponentTable``, an immutable snapshot read by every request without
locking.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Literal, TypeVar, overload

from fragkit.errors import RegistryError

HTTP_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})

RecordKind = Literal["component", "page"]

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class ComponentRecord:
    name: str
    path: str
    method: str
    handler: Callable[..., Any]
    kind: RecordKind = "component"
    auth: bool = False

    @property
    def route_key(self) -> tuple[str, str]:
        return (self.method, self.path)


@dataclass(frozen=True)
class ComponentTable:
    records: tuple[ComponentRecord, ...]
    routes: MappingProxyType[str, str]

    def __iter__(self) -> Iterator[ComponentRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def get(self, name: str) -> ComponentRecord | None:
        for record in self.records:
            if record.name == name:
                return record
        return None

    def path_for(self, name: str) -> str:
        try:
            return self.routes[name]
        except KeyError:
            raise KeyError(f"Unknown component: {name}") from None


def route_path(fn_name: str, *, path: str | None = None, prefix: str | None = None) -> str:
    """Route for a component.

    - neither: /<fn_name>
    - path only: path
    - prefix only: <prefix>/<fn_name>
    - both: <prefix><path>
    """

    if prefix is not None and path is not None:
        return f"{prefix}{path}"
    if prefix is not None:
        return f"{prefix}/{fn_name}"
    if path is not None:
        return path
    return f"/{fn_name}"


class ComponentRegistry:
    def __init__(self) -> None:
        self._records: list[ComponentRecord] = []
        self._table: ComponentTable | None = None

    @property
    def frozen(self) -> bool:
        return self._table is not None

    def register(
        self,
        handler: Callable[..., Any],
        *,
        path: str | None = None,
        prefix: str | None = None,
        method: str = "GET",
        name: str | None = None,
        kind: RecordKind = "component",
        auth: bool = False,
    ) -> ComponentRecord:
        if self._table is not None:
            raise RegistryError("Registry is frozen; register components before building the app")
        if not callable(handler):
            raise RegistryError(f"Handler for {name or path!r} is not callable")

        method = method.upper()
        if method not in HTTP_METHODS:
            raise RegistryError(f"Unsupported method {method!r} for {handler.__name__}")

        record = ComponentRecord(
            name=name or handler.__name__,
            path=route_path(handler.__name__, path=path, prefix=prefix),
            method=method,
            handler=handler,
            kind=kind,
            auth=auth,
        )
        if not record.path.startswith("/"):
            raise RegistryError(f"Route for {record.name} must start with '/': {record.path!r}")

        for existing in self._records:
            if existing.route_key == record.route_key:
                raise RegistryError(
                    f"{record.method} {record.path} is claimed by both "
                    f"{existing.name} and {record.name}"
                )
            if existing.name == record.name:
                raise RegistryError(f"Duplicate component name: {record.name}")

        self._records.append(record)
        return record

    @overload
    def component(self, path: F) -> F: ...

    @overload
    def component(
        self,
        path: str | None = None,
        *,
        prefix: str | None = None,
        method: str = "GET",
        name: str | None = None,
        auth: bool = False,
    ) -> Callable[[F], F]: ...

    def component(
        self,
        path: Any = None,
        *,
        prefix: str | None = None,
        method: str = "GET",
        name: str | None = None,
        auth: bool = False,
    ) -> Any:
        """Register a fragment handler; usable bare (``@registry.component``) or called."""

        if callable(path):
            self.register(path)
            return path

        def decorator(fn: F) -> F:
            self.register(fn, path=path, prefix=prefix, method=method, name=name, auth=auth)
            return fn

        return decorator

    def page(
        self, path: str, *, name: str | None = None, auth: bool = False
    ) -> Callable[[F], F]:
        def decorator(fn: F) -> F:
            self.register(fn, path=path, name=name, kind="page", auth=auth)
            return fn

        return decorator

    def freeze(self) -> ComponentTable:
        if self._table is None:
            records = tuple(self._records)
            routes = MappingProxyType({r.name: r.path for r in records})
            self._table = ComponentTable(records=records, routes=routes)
        return self._table
