from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

LadderState = Literal["primary", "shortfall_retry", "safe_default_retry", "static_bank"]

RESULT_LINE_COUNT = 4


class GenerationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    category: str = Field(min_length=1, max_length=64)
    subcategory: str = Field(default="", max_length=64)
    tone: str
    style: str = "generic"
    rating: str
    mandatory_words: list[str] = Field(default_factory=list)
    comedian_style: str | None = None

    @field_validator("category", "subcategory", "tone", "style")
    @classmethod
    def _normalize_id(cls, value: str) -> str:
        return " ".join(str(value or "").split()).lower()

    @field_validator("rating")
    @classmethod
    def _normalize_rating(cls, value: str) -> str:
        return str(value or "").strip().upper()

    @field_validator("mandatory_words")
    @classmethod
    def _normalize_words(cls, value: list[str]) -> list[str]:
        return [" ".join(str(word or "").split()) for word in value]

    @field_validator("comedian_style")
    @classmethod
    def _normalize_comedian(cls, value: str | None) -> str | None:
        cleaned = str(value or "").strip().lower()
        return cleaned or None


@dataclass(frozen=True, slots=True)
class ResolvedScenario:
    tone: str
    rating: str
    was_adjusted: bool = False
    adjustment_reason: str | None = None


@dataclass(frozen=True, slots=True)
class Candidate:
    text: str
    source_index: int
    comedian: str | None = None


class ViolationKind(str, Enum):
    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"
    BANNED_CHAR = "banned_char"
    TOO_MUCH_PUNCTUATION = "too_much_punctuation"
    MISSING_MANDATORY_WORD = "missing_mandatory_word"
    CLICHE_BANNED = "cliche_banned"
    PROFANITY_POLICY_VIOLATION = "profanity_policy_violation"
    FABRICATED_DETAIL = "fabricated_detail"


@dataclass(frozen=True, slots=True)
class ValidationVerdict:
    valid: bool
    violations: tuple[ViolationKind, ...] = ()
    detail: str | None = None


@dataclass(slots=True)
class BatchReport:
    """Advisory shape check for a final batch; never blocks acceptance."""

    has_short: bool = False
    has_long: bool = False
    has_question: bool = False
    has_exclamation: bool = False
    notes: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.notes


class GenerationResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    lines: list[str] = Field(min_length=RESULT_LINE_COUNT, max_length=RESULT_LINE_COUNT)
    was_adjusted: bool = False
    adjustment_reason: str | None = None
    fallback_used: bool = False
    ladder_state: LadderState = "primary"
    resolved_tone: str
    resolved_rating: str
    batch_notes: list[str] = Field(default_factory=list)


class VocabularyItemOut(BaseModel):
    id: str
    name: str
    tag: str
    description: str


class VocabularyResponse(BaseModel):
    tones: list[VocabularyItemOut]
    styles: list[VocabularyItemOut]
    ratings: list[VocabularyItemOut]
    comedian_styles: list[VocabularyItemOut]
    max_mandatory_words: int
    min_chars: int
    max_chars: int
