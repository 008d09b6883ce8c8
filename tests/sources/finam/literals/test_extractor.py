"""
Unit tests for literal extraction and scalar coercion.
"""

from __future__ import annotations

import logging
import re

import pytest

from finance_miner.common.errors import (
    AmbiguousRegionError,
    BlockNotFoundError,
    ExtractionError,
    RegionNotFoundError,
    RegionUnreadableError,
)
from finance_miner.common.types import INVALID
from finance_miner.sources.finam.literals.extractor import (
    extract,
    extract_one,
    parse_literal,
    to_display_string,
)

# ---------- extract ----------


def test_extract_single_array() -> None:
    text = 'foo(); var aEmitentIds = ["1","2",3]; bar();'
    got = extract(r"var aEmitentIds = (\[.*?\]);", text)
    assert got == [["1", "2", 3]]


def test_extract_collects_all_matches_in_order() -> None:
    text = "x = [1]; x = [2, 3]; x = {a: b};"
    got = extract(re.compile(r"x = (\[.*?\]|\{.*?\});"), text)
    assert got == [[1], [2, 3], {"a": "b"}]


def test_extract_uses_only_populated_alternative_groups() -> None:
    text = "arr = [1]; obj = {k: v};"
    got = extract(r"arr = (\[.*?\]);|obj = (\{.*?\});", text)
    assert got == [[1], {"k": "v"}]


def test_extract_skips_unparseable_capture_with_warning(
    caplog: pytest.LogCaptureFixture,
) -> None:
    text = "x = [1, 2; y; x = [3];"
    with caplog.at_level(logging.WARNING):
        got = extract(r"x = (\[[^;]*);", text)
    # "[1, 2" is rejected, "[3]" survives
    assert got == [[3]]
    assert any("Cannot extract literal" in r.message for r in caplog.records)


def test_extract_no_match_returns_empty() -> None:
    assert extract(r"var missing = (\[.*?\]);", "var other = [1];") == []


def test_extract_uses_injected_logger(caplog: pytest.LogCaptureFixture) -> None:
    custom = logging.getLogger("tests.injected")
    with caplog.at_level(logging.WARNING, logger="tests.injected"):
        extract(r"x = (\{[^;]*);", "x = {a: [;", logger=custom)
    assert [r.name for r in caplog.records] == ["tests.injected"]


def test_parse_literal_keeps_site_tokens_as_text() -> None:
    # YAML 1.1 would read these as a boolean and a date
    assert parse_literal('[ON, 2015-01-01, "x"]') == [["ON", "2015-01-01", "x"]]


def test_parse_literal_json_booleans_and_null() -> None:
    assert parse_literal("[true, false, null, 1.5]") == [[True, False, None, 1.5]]


def test_parse_literal_doubled_single_quote() -> None:
    assert parse_literal("['O''Key']") == [["O'Key"]]


def test_parse_literal_foreign_types_become_invalid() -> None:
    assert parse_literal("[!!binary aGk=]") == [[INVALID]]


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("[1,\t2]", [1, 2]),
        ('{\t"a": 1}', {"a": 1}),
        ('{"quote":\t{"code": "SBER"}}', {"quote": {"code": "SBER"}}),
        ("\t[\t'x'\t]\t", ["x"]),
    ],
)
def test_parse_literal_accepts_tab_whitespace(source: str, expected: object) -> None:
    assert parse_literal(source) == [expected]


def test_parse_literal_keeps_tabs_inside_strings() -> None:
    assert parse_literal('["a\tb"]') == [["a\tb"]]


def test_parse_literal_bare_keys_without_space() -> None:
    got = parse_literal('{quote:{code:"SBER",market:{title:"MICEX"}}}')
    assert got == [{"quote": {"code": "SBER", "market": {"title": "MICEX"}}}]


def test_parse_literal_numeric_keys_without_space() -> None:
    assert parse_literal("{3:'sber',16842:'gazprom'}") == [
        {3: "sber", 16842: "gazprom"}
    ]


def test_parse_literal_leaves_colons_inside_strings() -> None:
    assert parse_literal('{"url":"http://x/a:b", \'t\':\'12:30\'}') == [
        {"url": "http://x/a:b", "t": "12:30"}
    ]


# ---------- extract_one ----------


def test_extract_one_returns_value() -> None:
    assert extract_one(r"a = (\[.*?\]);", "a = [1];", label="a") == [1]


def test_extract_one_zero_matches_is_typed_failure() -> None:
    with pytest.raises(RegionNotFoundError) as info:
        extract_one(r"a = (\[.*?\]);", "b = [1];", label="a")
    assert isinstance(info.value, BlockNotFoundError)
    assert info.value.label == "a"


def test_extract_one_multiple_matches_is_typed_failure() -> None:
    with pytest.raises(AmbiguousRegionError) as info:
        extract_one(r"a = (\[.*?\]);", "a = [1]; a = [2];", label="a")
    assert isinstance(info.value, ExtractionError)
    assert info.value.count == 2


def test_extract_one_present_but_unparseable_is_distinct_failure() -> None:
    with pytest.raises(RegionUnreadableError) as info:
        extract_one(r"a = (\[[^;]*);", "a = [1, 2;", label="a")
    assert isinstance(info.value, BlockNotFoundError)
    assert not isinstance(info.value, RegionNotFoundError)
    assert "cannot be parsed" in str(info.value)
    assert info.value.label == "a"


def test_extract_one_absent_region_message() -> None:
    with pytest.raises(RegionNotFoundError) as info:
        extract_one(r"a = (\[.*?\]);", "", label="a")
    assert "no region matched for a" in str(info.value)


def test_extract_one_present_but_empty_is_not_a_failure() -> None:
    assert extract_one(r"a = (\[.*?\]);", "a = [];", label="a") == []


# ---------- to_display_string ----------


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("Sberbank", "Sberbank"),
        (42, "42"),
        (True, "true"),
        (False, "false"),
        (1.5, "1.5"),
        ("", ""),
    ],
)
def test_to_display_string_scalars(value: object, expected: str) -> None:
    assert to_display_string(value) == expected  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("value", "shape"),
    [
        ([1, 2], "sequence"),
        ({"a": 1}, "mapping"),
        (None, "null"),
        (INVALID, "invalid"),
    ],
)
def test_to_display_string_unsupported_shapes_warn_and_return_empty(
    value: object, shape: str, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING):
        assert to_display_string(value) == ""  # type: ignore[arg-type]
    assert any(shape in r.message for r in caplog.records)
