from __future__ import annotations

import json
import re

from jsonschema import Draft202012Validator
from jsonschema import ValidationError as JSONSchemaValidationError

from viibe.modules.llm_boundary.errors import (
    LINES_JSON_PARSE,
    LINES_OUTPUT_SHAPE,
    LINES_SCHEMA_VALIDATE,
    LinesParseError,
)
from viibe.modules.llm_boundary.schemas import (
    LINES_SCHEMA,
    OPTIONS_SCHEMA,
    GeneratedBatch,
    GeneratedLine,
)

_FENCED_JSON_RE = re.compile(r"```(?:json)?\s*(\{[\s\S]*\})\s*```", re.IGNORECASE)
_LEADING_MARKER_RE = re.compile(r"^\s*(?:\d+\s*[.):-]\s*|[-*•](?:\s+|$))")
_WRAPPING_QUOTES = "\"'“”‘’"


def _snippet(raw: object, limit: int = 240) -> str | None:
    if raw is None:
        return None
    text = raw if isinstance(raw, str) else json.dumps(raw, ensure_ascii=False)
    text = " ".join(str(text).split())
    if not text:
        return None
    return text[:limit]


def clean_line(raw: str) -> str:
    text = _LEADING_MARKER_RE.sub("", str(raw or ""))
    text = " ".join(text.split())
    if len(text) >= 2 and text[0] in _WRAPPING_QUOTES and text[-1] in _WRAPPING_QUOTES:
        text = text[1:-1].strip()
    return text


def _extract_json_fragment(raw_text: str) -> str | None:
    fenced = _FENCED_JSON_RE.search(raw_text)
    if fenced:
        return fenced.group(1).strip()
    stripped = raw_text.strip()
    if stripped.startswith("{") and stripped.endswith("}"):
        return stripped
    return None


def _validate(payload: object, schema: dict) -> None:
    try:
        Draft202012Validator(schema).validate(payload)
    except JSONSchemaValidationError as exc:
        raise LinesParseError(
            f"schema validate failed: {exc.message}",
            error_kind=LINES_SCHEMA_VALIDATE,
            raw_snippet=_snippet(payload),
        ) from exc


def _parse_structured(fragment: str) -> GeneratedBatch:
    try:
        payload = json.loads(fragment)
    except json.JSONDecodeError as exc:
        raise LinesParseError(
            f"json parse failed: {exc}",
            error_kind=LINES_JSON_PARSE,
            raw_snippet=_snippet(fragment),
        ) from exc
    if not isinstance(payload, dict):
        raise LinesParseError(
            "top-level output must be object",
            error_kind=LINES_OUTPUT_SHAPE,
            raw_snippet=_snippet(payload),
        )

    if "options" in payload:
        _validate(payload, OPTIONS_SCHEMA)
        items = []
        for option in payload["options"]:
            text = clean_line(option["line"])
            if not text:
                continue
            comedian = " ".join(str(option.get("comedian") or "").split()) or None
            items.append(GeneratedLine(text=text, comedian=comedian))
        return GeneratedBatch(kind="attributed", items=tuple(items))

    _validate(payload, LINES_SCHEMA)
    texts = [clean_line(line) for line in payload["lines"]]
    return GeneratedBatch(kind="plain", items=tuple(GeneratedLine(text=t) for t in texts if t))


def parse_generated_lines(raw: str) -> GeneratedBatch:
    """Parse raw model content into a batch.

    Accepts a JSON object (``options`` or ``lines``), optionally fenced, or
    plain text with one option per line. Numbering, bullets and wrapping
    quotes are stripped.
    """
    text = str(raw or "").strip()
    if not text:
        raise LinesParseError("empty model content", error_kind=LINES_OUTPUT_SHAPE)

    fragment = _extract_json_fragment(text)
    if fragment is not None:
        batch = _parse_structured(fragment)
    else:
        lines = [clean_line(line) for line in text.splitlines()]
        batch = GeneratedBatch(kind="plain", items=tuple(GeneratedLine(text=line) for line in lines if line))

    if not batch.items:
        raise LinesParseError(
            "no usable lines in model content",
            error_kind=LINES_OUTPUT_SHAPE,
            raw_snippet=_snippet(text),
        )
    return batch
