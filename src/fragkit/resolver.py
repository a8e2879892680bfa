"""Per-field state resolution: default, then cookie, then query.

Resolution never fails. Unparsable text stays text, and when the merged map
does not validate against the state type the whole type default is used
instead (the raw merged map is still returned for persistence). State types
must be constructible without arguments; the component registry rejects any
that are not.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Final, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from fragkit.schema import Scalar, parse_scalar, schema_for

logger = logging.getLogger(__name__)

UNSET_SENTINEL: Final[str] = "__FRAGKIT_UNSET__"

CookieLookup = Callable[[str], "str | None"]

S = TypeVar("S", bound=BaseModel)


@dataclass(frozen=True)
class ResolvedState(Generic[S]):
    state: S
    raw: Mapping[str, Scalar]
    degraded: bool = False


def query_map(pairs: Iterable[tuple[str, str]]) -> dict[str, str]:
    """ParameterMap from decoded query pairs; the last occurrence of a key wins."""

    out: dict[str, str] = {}
    for key, value in pairs:
        if key:
            out[key] = value
    return out


def merge_sources(
    defaults: Mapping[str, Scalar],
    cookies: CookieLookup,
    query: Mapping[str, str],
    text_fields: Collection[str] = (),
) -> dict[str, Scalar]:
    """Merged scalar map; names in ``text_fields`` keep their source text as-is."""

    merged: dict[str, Scalar] = dict(defaults)
    for name in defaults:
        parse = str if name in text_fields else parse_scalar
        cookie_value = cookies(name)
        if cookie_value is not None:
            merged[name] = parse(cookie_value)

        if name in query:
            query_value = query[name]
            if query_value == UNSET_SENTINEL:
                merged[name] = ""
            else:
                merged[name] = parse(query_value)
    return merged


def resolve_state(
    state_type: type[S],
    cookies: CookieLookup,
    query: Mapping[str, str],
) -> ResolvedState[S]:
    schema = schema_for(state_type)
    raw = merge_sources(schema.defaults, cookies, query, schema.text_fields)

    try:
        state = state_type.model_validate(raw)
    except ValidationError as exc:
        logger.debug(
            "Falling back to %s defaults (%d invalid fields)",
            state_type.__name__,
            exc.error_count(),
        )
        return ResolvedState(
            state=state_type(), raw=MappingProxyType(raw), degraded=True
        )

    return ResolvedState(state=state, raw=MappingProxyType(raw))
