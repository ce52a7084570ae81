from __future__ import annotations

import pytest

from robodash.mapping.normalize import parse_number_list, positive_int, safe_float


@pytest.mark.parametrize(
    ("value", "expected"),
    [("0.05", 0.05), (" -3 ", -3.0), (7, 7.0), ("", None), ("abc", None), ("inf", None), (None, None)],
)
def test_safe_float(value: object, expected: float | None) -> None:
    assert safe_float(value) == expected


@pytest.mark.parametrize(
    ("token", "expected"),
    [("10", 10), (" 384 ", 384), ("0", None), ("-4", None), ("10abc", None), ("1e3", None), ("٣", None)],
)
def test_positive_int_is_strict(token: str, expected: int | None) -> None:
    assert positive_int(token) == expected


def test_parse_number_list_accepts_brackets_and_bare_commas() -> None:
    assert parse_number_list("[-10.0, -5.5, 0.0]") == [-10.0, -5.5, 0.0]
    assert parse_number_list("1, 2") == [1.0, 2.0]
    assert parse_number_list("[1, 2] # trailing comment") == [1.0, 2.0]


@pytest.mark.parametrize("text", ["12", "[1, two, 3]", "[]", "[1,,2]"])
def test_parse_number_list_rejects_garbage(text: str) -> None:
    assert parse_number_list(text) is None
