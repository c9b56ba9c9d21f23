from __future__ import annotations

import logging
import re
from functools import lru_cache

from viibe.modules.generation.schemas import (
    BatchReport,
    GenerationRequest,
    ResolvedScenario,
    ValidationVerdict,
    ViolationKind,
)
from viibe.modules.rules.constraint_config import ConstraintConfig

logger = logging.getLogger(__name__)

# masked swear such as f***, sh*t or a**hole
CENSORED_FORM_RE = re.compile(r"(?<![\w*])[A-Za-z]{1,3}\*+[A-Za-z]*(?![\w*])")
# ages and milestones the model made up
FABRICATED_DETAIL_RE = re.compile(
    r"\bturned?\s+\d+|\bjust\s+turned\b|\b\d+\s+years?\s+old\b|\b\d+(?:st|nd|rd|th)\s+birthday\b",
    re.IGNORECASE,
)
_NUMBER_RE = re.compile(r"\d+")
_LAST_WORD_RE = re.compile(r"([A-Za-z*']+)\W*$")


@lru_cache(maxsize=512)
def _word_pattern(word: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(word)}(?:s|es)?\b", re.IGNORECASE)


@lru_cache(maxsize=64)
def _lexicon_pattern(body: str) -> re.Pattern[str]:
    return re.compile(rf"\b{body}\b", re.IGNORECASE)


@lru_cache(maxsize=64)
def _instruction_pattern(body: str) -> re.Pattern[str]:
    return re.compile(body, re.IGNORECASE)


def count_punctuation(text: str, allowed: frozenset[str]) -> int:
    return sum(1 for ch in text if ch in allowed)


def raw_profanity(config: ConstraintConfig, text: str) -> set[str]:
    """Base lexicon terms that appear uncensored in ``text``."""
    found: set[str] = set()
    for term, body in config.profanity_lexicon.items():
        if _lexicon_pattern(body).search(text):
            found.add(term)
    return found


def has_censored_form(text: str) -> bool:
    return CENSORED_FORM_RE.search(text) is not None


def strong_profanity_count(config: ConstraintConfig, text: str) -> int:
    return sum(
        len(_lexicon_pattern(config.profanity_lexicon[term]).findall(text))
        for term in sorted(config.strong_profanity)
        if term in config.profanity_lexicon
    )


def ends_with_strong_profanity(config: ConstraintConfig, text: str) -> bool:
    match = _LAST_WORD_RE.search(text)
    if not match:
        return False
    last = match.group(1)
    return any(
        _lexicon_pattern(config.profanity_lexicon[term]).fullmatch(last)
        for term in config.strong_profanity
        if term in config.profanity_lexicon
    )


def forbidden_theme_term(config: ConstraintConfig, text: str, rating: str) -> str | None:
    for term in sorted(config.policy_for(rating).forbidden_terms):
        if _word_pattern(term).search(text):
            return term
    return None


def is_instructional(config: ConstraintConfig, text: str) -> bool:
    return any(_instruction_pattern(body).search(text) for body in config.instruction_patterns)


def has_fabricated_detail(text: str, mandatory_words: list[str]) -> bool:
    """Ages or milestones count as made up unless a number in them came from a mandatory word."""
    if not FABRICATED_DETAIL_RE.search(text):
        return False
    numbers = _NUMBER_RE.findall(text)
    return not any(number in word for number in numbers for word in mandatory_words)


def _profanity_ok(config: ConstraintConfig, text: str, rating: str) -> tuple[bool, str | None]:
    policy = config.policy_for(rating)
    term = forbidden_theme_term(config, text, rating)
    if term is not None:
        return False, f"{term!r} not allowed at {rating}"
    if is_instructional(config, text):
        return False, "instructional phrasing"
    if policy.max_strong_profanity is not None:
        strong = strong_profanity_count(config, text)
        if strong > policy.max_strong_profanity:
            return False, f"{strong} strong swears > {policy.max_strong_profanity}"
    if not policy.profanity_as_last_word and ends_with_strong_profanity(config, text):
        return False, "profanity as the last word"

    found = raw_profanity(config, text)
    if policy.mode == "forbidden":
        if found:
            return False, f"profanity not allowed at {rating}: {', '.join(sorted(found))}"
        if has_censored_form(text):
            return False, f"censored profanity not allowed at {rating}"
        return True, None
    if policy.mode == "censored_only":
        raw = found - policy.whitelist
        if raw:
            return False, f"raw profanity at {rating}: {', '.join(sorted(raw))}"
        return True, None
    if not (found & policy.whitelist):
        return False, f"{rating} requires one of: {', '.join(sorted(policy.whitelist))}"
    return True, None


def _banned_words(config: ConstraintConfig, request: GenerationRequest, mandatory_words: list[str]) -> list[str]:
    waived = {word.lower() for word in mandatory_words}
    merged = config.ban_list(request.category) | config.ban_list(request.subcategory)
    return sorted(word for word in merged if word not in waived)


def validate_line(
    config: ConstraintConfig,
    text: str,
    *,
    request: GenerationRequest,
    scenario: ResolvedScenario,
    mandatory_words: list[str] | None = None,
) -> ValidationVerdict:
    """Check one line against the rules for the resolved scenario.

    Checks run in a fixed order and the verdict carries only the first
    violation. ``mandatory_words`` defaults to the request's list; the safe
    retry passes an empty list.
    """
    words = request.mandatory_words if mandatory_words is None else mandatory_words
    rules = config.length_rules
    length = len(text)
    if length < rules.min_chars:
        return ValidationVerdict(False, (ViolationKind.TOO_SHORT,), f"{length} < {rules.min_chars}")
    if length > rules.max_chars:
        return ValidationVerdict(False, (ViolationKind.TOO_LONG,), f"{length} > {rules.max_chars}")

    for banned in sorted(config.banned_substrings):
        if banned in text:
            return ValidationVerdict(False, (ViolationKind.BANNED_CHAR,), f"contains {banned!r}")

    marks = count_punctuation(text, config.allowed_punctuation)
    if marks > config.max_punctuation_marks:
        return ValidationVerdict(
            False,
            (ViolationKind.TOO_MUCH_PUNCTUATION,),
            f"{marks} marks > {config.max_punctuation_marks}",
        )

    lowered = text.lower()
    for word in words:
        if word.lower() not in lowered:
            return ValidationVerdict(False, (ViolationKind.MISSING_MANDATORY_WORD,), word)

    for word in _banned_words(config, request, words):
        if _word_pattern(word).search(text):
            return ValidationVerdict(False, (ViolationKind.CLICHE_BANNED,), word)

    ok, detail = _profanity_ok(config, text, scenario.rating)
    if not ok:
        return ValidationVerdict(False, (ViolationKind.PROFANITY_POLICY_VIOLATION,), detail)

    if has_fabricated_detail(text, words):
        return ValidationVerdict(False, (ViolationKind.FABRICATED_DETAIL,), "age or milestone not in mandatory words")

    return ValidationVerdict(True)


class Validator:
    def __init__(self, config: ConstraintConfig):
        self.config = config

    def validate(
        self,
        text: str,
        *,
        request: GenerationRequest,
        scenario: ResolvedScenario,
        mandatory_words: list[str] | None = None,
    ) -> ValidationVerdict:
        return validate_line(
            self.config,
            text,
            request=request,
            scenario=scenario,
            mandatory_words=mandatory_words,
        )

    def check_batch(self, lines: list[str]) -> BatchReport:
        rules = self.config.variation
        report = BatchReport(
            has_short=any(len(line) < rules.short_line_lt for line in lines),
            has_long=any(len(line) > rules.long_line_gt for line in lines),
            has_question=any("?" in line for line in lines),
            has_exclamation=any("!" in line for line in lines),
        )
        if not report.has_short:
            report.notes.append(f"no line shorter than {rules.short_line_lt} chars")
        if not report.has_long:
            report.notes.append(f"no line longer than {rules.long_line_gt} chars")
        if rules.require_question and not report.has_question:
            report.notes.append("no question")
        if rules.require_exclamation and not report.has_exclamation:
            report.notes.append("no exclamation")
        if report.notes:
            logger.info("batch variation advisory: %s", "; ".join(report.notes))
        return report
