from __future__ import annotations

import pytest
from pydantic import BaseModel, Field

from fragkit.schema import ViewState, format_scalar, parse_scalar, schema_for


class Filters(ViewState):
    query: str = ""
    page: int = 1
    ratio: float = 0.5
    archived: bool = False
    tags: list[str] = Field(default_factory=list)


class NoDefaults(BaseModel):
    required: int


class Empty(ViewState):
    pass


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("7", 7),
        ("-3", -3),
        ("+5", 5),
        ("1.5", 1.5),
        (".5", 0.5),
        ("1e3", 1000.0),
        ("true", True),
        ("false", False),
        ("True", "True"),
        ("1_000", "1_000"),
        (" 7", " 7"),
        ("inf", "inf"),
        ("nan", "nan"),
        ("1e999", "1e999"),
        ("hello", "hello"),
        ("", ""),
    ],
)
def test_parse_scalar_inference_order(text: str, expected: object) -> None:
    value = parse_scalar(text)
    assert value == expected
    assert type(value) is type(expected)


@pytest.mark.parametrize("value", [0, -12, 7.25, 1e20, True, False, "abc", "", "007x"])
def test_format_then_parse_is_stable(value: object) -> None:
    text = format_scalar(value)
    assert parse_scalar(text) == value


def test_schema_lists_scalar_fields_with_defaults() -> None:
    schema = schema_for(Filters)

    assert schema.fields == ("query", "page", "ratio", "archived")
    assert dict(schema.defaults) == {"query": "", "page": 1, "ratio": 0.5, "archived": False}


def test_schema_is_cached_per_type() -> None:
    assert schema_for(Filters) is schema_for(Filters)


def test_schema_defaults_are_read_only() -> None:
    schema = schema_for(Filters)
    with pytest.raises(TypeError):
        schema.defaults["page"] = 2  # type: ignore[index]


def test_schema_of_type_without_fields_is_empty() -> None:
    assert schema_for(Empty).fields == ()


def test_schema_of_type_without_default_instance_is_empty() -> None:
    assert schema_for(NoDefaults).fields == ()


def test_schema_lists_text_fields() -> None:
    assert schema_for(Filters).text_fields == frozenset({"query"})
    assert schema_for(Empty).text_fields == frozenset()


def test_parse_scalar_oversized_integer_stays_text() -> None:
    digits = "9" * 5000
    assert parse_scalar(digits) == digits
    assert parse_scalar("-" + digits) == "-" + digits
