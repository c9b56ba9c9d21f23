from __future__ import annotations

import json

import pytest

from viibe.modules.llm_boundary.errors import (
    LINES_JSON_PARSE,
    LINES_OUTPUT_SHAPE,
    LINES_SCHEMA_VALIDATE,
    LinesParseError,
)
from viibe.modules.llm_boundary.parsing import clean_line, parse_generated_lines


def test_plain_lines_strip_numbering_bullets_and_quotes() -> None:
    raw = '1. "First line here"\n2) Second line here\n\n- Third line here\n* Fourth line here'
    batch = parse_generated_lines(raw)

    assert batch.kind == "plain"
    assert batch.texts() == ["First line here", "Second line here", "Third line here", "Fourth line here"]


def test_clean_line_keeps_inner_quotes_and_collapses_spaces() -> None:
    assert clean_line('  He said   "fine"  and left ') == 'He said "fine" and left'


def test_options_payload_is_attributed() -> None:
    payload = {
        "options": [
            {"line": "Mike plays golf like the course owes him money.", "comedian": "Bill Burr"},
            {"line": "Golf is a long walk Mike keeps interrupting.", "comedian": None},
        ]
    }
    batch = parse_generated_lines(json.dumps(payload))

    assert batch.kind == "attributed"
    assert [item.comedian for item in batch.items] == ["Bill Burr", None]


def test_fenced_lines_payload() -> None:
    raw = '```json\n{"lines": ["one good line", "two good lines"]}\n```'
    batch = parse_generated_lines(raw)
    assert batch.kind == "plain"
    assert batch.texts() == ["one good line", "two good lines"]


def test_schema_violation_is_reported() -> None:
    with pytest.raises(LinesParseError) as exc:
        parse_generated_lines('{"options": [{"text": "wrong key"}]}')
    assert exc.value.error_kind == LINES_SCHEMA_VALIDATE


def test_broken_json_is_reported() -> None:
    with pytest.raises(LinesParseError) as exc:
        parse_generated_lines('{"lines": ["unterminated}')
    assert exc.value.error_kind == LINES_JSON_PARSE


@pytest.mark.parametrize("raw", ["", "   \n  ", "1.\n2)\n-  "])
def test_empty_content_is_reported(raw: str) -> None:
    with pytest.raises(LinesParseError) as exc:
        parse_generated_lines(raw)
    assert exc.value.error_kind == LINES_OUTPUT_SHAPE


def test_bare_bullet_markers_clean_to_nothing() -> None:
    assert clean_line("-") == ""
    assert clean_line("  •") == ""
    assert clean_line("*") == ""
    assert clean_line("-5 degrees and the thermostat still thinks it is summer") == (
        "-5 degrees and the thermostat still thinks it is summer"
    )
