"""Capability interface for handler parameters.

A handler parameter type opts into injection by declaring the pipeline stage
that supplies it and a ``provide`` classmethod reading the value off the
request context once that stage has run.
"""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, Any, ClassVar, Protocol

if TYPE_CHECKING:
    from fragkit.pipeline import RequestContext


class Stage(IntEnum):
    REQUEST = 0
    RESOLVE = 1
    PERSIST = 2
    AUTHORIZE = 3


class Provided(Protocol):
    stage: ClassVar[Stage]

    @classmethod
    def provide(cls, ctx: RequestContext) -> Any: ...


def is_provided(annotation: Any) -> bool:
    return (
        isinstance(annotation, type)
        and isinstance(getattr(annotation, "stage", None), Stage)
        and callable(getattr(annotation, "provide", None))
    )
