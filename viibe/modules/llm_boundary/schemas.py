from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

BatchKind = Literal["plain", "attributed"]


@dataclass(frozen=True, slots=True)
class SamplingParams:
    temperature: float
    top_p: float
    seed: int
    max_tokens: int = 400


@dataclass(frozen=True, slots=True)
class GeneratedLine:
    text: str
    comedian: str | None = None


@dataclass(frozen=True, slots=True)
class GeneratedBatch:
    """One model call's output.

    ``kind`` is decided once while parsing: ``attributed`` when the model
    returned ``{"options": [{"line", "comedian"}]}``, ``plain`` otherwise.
    """

    kind: BatchKind
    items: tuple[GeneratedLine, ...]

    def texts(self) -> list[str]:
        return [item.text for item in self.items]


OPTIONS_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "required": ["options"],
    "properties": {
        "options": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "additionalProperties": False,
                "required": ["line"],
                "properties": {
                    "line": {"type": "string", "minLength": 1},
                    "comedian": {"type": ["string", "null"]},
                },
            },
        },
    },
}

LINES_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "required": ["lines"],
    "properties": {
        "lines": {
            "type": "array",
            "minItems": 1,
            "items": {"type": "string", "minLength": 1},
        },
    },
}
