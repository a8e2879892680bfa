from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ConfigDict, ValidationError

from fragkit.stages import Stage

if TYPE_CHECKING:
    from fragkit.pipeline import RequestContext

logger = logging.getLogger(__name__)

Scalar = str | int | float | bool

_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def parse_scalar(text: str) -> Scalar:
    """Infer a scalar from its textual form: integer, float, boolean, else string."""

    if _INT_RE.fullmatch(text):
        try:
            return int(text)
        except ValueError:
            # Past the interpreter's integer digit limit.
            pass
    if _FLOAT_RE.fullmatch(text):
        value = float(text)
        # Overflowing literals such as 1e999 stay text.
        if math.isfinite(value):
            return value
    if text == "true":
        return True
    if text == "false":
        return False
    return text


def format_scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def is_scalar(value: Any) -> bool:
    return isinstance(value, str | int | float | bool)


class ViewState(BaseModel):
    """Base class for a component's view state.

    Subclasses declare flat scalar fields with defaults; the class must be
    constructible without arguments. Handlers receive the resolved instance.
    """

    model_config = ConfigDict(extra="ignore")

    stage: ClassVar[Stage] = Stage.RESOLVE

    @classmethod
    def provide(cls, ctx: RequestContext) -> ViewState:
        return ctx.resolved_for(cls).state


@dataclass(frozen=True)
class StateSchema:
    state_type: type[BaseModel]
    defaults: Mapping[str, Scalar]
    text_fields: frozenset[str] = frozenset()

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(self.defaults)


def _default_dump(state_type: type[BaseModel]) -> dict[str, Any]:
    try:
        instance = state_type()
    except ValidationError:
        logger.warning("State type %s has no default instance", state_type.__name__)
        return {}
    dumped = instance.model_dump(mode="json", by_alias=True)
    return dumped if isinstance(dumped, dict) else {}


@lru_cache(maxsize=None)
def schema_for(state_type: type[BaseModel]) -> StateSchema:
    """Field names and default scalar values of a state type.

    Derived once per type from a default instance; non-scalar fields (lists,
    nested models, None) are not part of the schema and keep their defaults.
    Fields annotated ``str`` are listed in ``text_fields``: their incoming text is
    kept verbatim instead of going through scalar inference.
    """

    defaults = {k: v for k, v in _default_dump(state_type).items() if is_scalar(v)}
    text_fields = frozenset(
        field.alias or name
        for name, field in state_type.model_fields.items()
        if field.annotation is str and (field.alias or name) in defaults
    )
    return StateSchema(
        state_type=state_type,
        defaults=MappingProxyType(defaults),
        text_fields=text_fields,
    )


def has_default_instance(state_type: type[BaseModel]) -> bool:
    try:
        state_type()
    except ValidationError:
        return False
    return True
