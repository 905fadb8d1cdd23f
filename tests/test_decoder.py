from __future__ import annotations

from ndjson_ingest.decoder import Emit, Fail, Skip, decode_line
from ndjson_ingest.selector import Selector

IDENTITY = Selector()


def test_blank_lines_are_skipped() -> None:
    assert decode_line("", IDENTITY, line_number=1) == Skip("blank")
    assert decode_line("   \t\r", IDENTITY, line_number=2) == Skip("blank")


def test_valid_line_is_emitted() -> None:
    assert decode_line('  {"id": 1}\r', IDENTITY, line_number=1) == Emit({"id": 1})


def test_malformed_line_reports_position_and_source() -> None:
    outcome = decode_line("not-json", IDENTITY, line_number=3, source_identifier="file:///x.ndjson")

    assert isinstance(outcome, Fail)
    assert outcome.error.line_number == 3
    assert outcome.error.source_identifier == "file:///x.ndjson"
    assert "Expecting value" in outcome.error.message


def test_selector_miss_is_skipped() -> None:
    assert decode_line('{"a": {}}', Selector.parse("/a/b"), line_number=1) == Skip("selector_miss")


def test_empty_selection_is_dropped_unless_requested() -> None:
    sel = Selector.parse("/a")

    assert decode_line('{"a": {}}', sel, line_number=1) == Skip("empty")
    assert decode_line('{"a": 0}', sel, line_number=1) == Skip("empty")
    assert decode_line('{"a": null}', sel, line_number=1) == Skip("empty")
    assert decode_line('{"a": {}}', sel, line_number=1, emit_empty=True) == Emit({})


def test_scalar_top_level_values() -> None:
    assert decode_line("42", IDENTITY, line_number=1) == Emit(42)
    assert decode_line('"x"', Selector.parse("/a"), line_number=1) == Skip("selector_miss")


def test_undecodable_bytes_fail() -> None:
    raw = b'{"a": "\xff"}'.decode("utf-8", errors="surrogateescape")
    outcome = decode_line(raw, IDENTITY, line_number=7)

    assert isinstance(outcome, Fail)
    assert outcome.error.line_number == 7
    assert "UTF-8" in outcome.error.message


def test_non_standard_constants_fail() -> None:
    for text in ['{"x": NaN}', "Infinity", '[1, -Infinity]']:
        outcome = decode_line(text, IDENTITY, line_number=1)

        assert isinstance(outcome, Fail), text
        assert "invalid JSON constant" in outcome.error.message
