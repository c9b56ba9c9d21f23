from __future__ import annotations

import pytest

from viibe.modules.generation.schemas import GenerationRequest, ResolvedScenario, ViolationKind
from viibe.modules.generation.validator import Validator, count_punctuation, validate_line
from viibe.modules.rules.constraint_config import build_constraint_config

CONFIG = build_constraint_config()


def _pad(text: str, length: int = 80) -> str:
    return (text + " " + "x" * length)[:length]


def _request(**overrides) -> GenerationRequest:
    payload = {"category": "daily-life", "subcategory": "work", "tone": "humorous", "rating": "PG"}
    payload.update(overrides)
    return GenerationRequest(**payload)


def _check(text: str, *, rating: str = "PG", **request_overrides):
    request = _request(rating=rating, **request_overrides)
    return validate_line(CONFIG, text, request=request, scenario=ResolvedScenario(tone="humorous", rating=rating))


@pytest.mark.parametrize(
    ("length", "expected"),
    [
        (59, ViolationKind.TOO_SHORT),
        (60, None),
        (120, None),
        (121, ViolationKind.TOO_LONG),
    ],
)
def test_length_boundaries(length: int, expected: ViolationKind | None) -> None:
    verdict = _check("x" * length)
    if expected is None:
        assert verdict.valid is True
        assert verdict.violations == ()
    else:
        assert verdict.valid is False
        assert verdict.violations == (expected,)


def test_punctuation_boundary() -> None:
    assert _check("x" * 70 + ", x. x!").valid is True
    verdict = _check("x" * 70 + ", x. x! x?")
    assert verdict.violations == (ViolationKind.TOO_MUCH_PUNCTUATION,)


def test_apostrophes_and_quotes_are_not_counted() -> None:
    assert count_punctuation("It's \"fine\" isn't it?", CONFIG.allowed_punctuation) == 1


def test_ellipsis_character_counts_as_one_mark() -> None:
    assert count_punctuation("wait…", CONFIG.allowed_punctuation) == 1


def test_em_dash_is_banned() -> None:
    verdict = _check(_pad("Coffee first — then we talk about the rest of the morning plans"))
    assert verdict.violations == (ViolationKind.BANNED_CHAR,)


def test_first_violation_only() -> None:
    verdict = _check("short — line!!!!")
    assert verdict.violations == (ViolationKind.TOO_SHORT,)


def test_mandatory_words_are_case_insensitive() -> None:
    assert _check(_pad("MIKE swings at GOLF balls"), mandatory_words=["Mike", "golf"]).valid is True
    verdict = _check(_pad("Mike swings at tennis balls"), mandatory_words=["Mike", "golf"])
    assert verdict.violations == (ViolationKind.MISSING_MANDATORY_WORD,)
    assert verdict.detail == "golf"


def test_cliche_ban_matches_whole_word_and_plural() -> None:
    assert _check(_pad("We brought the cake along"), category="birthday").violations == (
        ViolationKind.CLICHE_BANNED,
    )
    assert _check(_pad("We brought three cakes along"), category="birthday").violations == (
        ViolationKind.CLICHE_BANNED,
    )
    assert _check(_pad("That exam was a cakewalk"), category="birthday").valid is True


def test_cliche_ban_uses_subcategory_list_too() -> None:
    verdict = _check(_pad("The wedding dress stole the show"), category="celebrations", subcategory="wedding")
    assert verdict.violations == (ViolationKind.CLICHE_BANNED,)


def test_cliche_ban_waived_for_mandatory_word() -> None:
    verdict = _check(_pad("We brought the cake along"), category="birthday", mandatory_words=["cake"])
    assert verdict.valid is True


@pytest.mark.parametrize(
    ("rating", "text", "valid"),
    [
        ("G", "Well damn, the printer jammed again", False),
        ("G", "Well sh*t, the printer jammed again", False),
        ("G", "Well gosh, the printer jammed again", True),
        ("PG", "Well sh*t, the printer jammed again", True),
        ("PG", "Well shit, the printer jammed again", False),
        ("PG-13", "Well damn, the printer jammed again", True),
        ("PG-13", "Well shit, the printer jammed again", False),
        ("R", "Well gosh, the printer jammed again", False),
        ("R", "Well shit, the printer jammed again", True),
        ("R", "The printer jammed and it kicks ass", True),
    ],
)
def test_profanity_policy_by_rating(rating: str, text: str, valid: bool) -> None:
    verdict = _check(_pad(text), rating=rating)
    assert verdict.valid is valid, verdict
    if not valid:
        assert verdict.violations == (ViolationKind.PROFANITY_POLICY_VIOLATION,)


def test_profanity_check_uses_word_boundaries() -> None:
    assert _check(_pad("Hello from the shell of a classic assessment"), rating="G").valid is True


def test_safe_retry_can_drop_mandatory_words() -> None:
    request = _request(mandatory_words=["zeppelin"])
    scenario = ResolvedScenario(tone="humorous", rating="PG")
    text = _pad("No airships were harmed today")
    assert validate_line(CONFIG, text, request=request, scenario=scenario).valid is False
    assert validate_line(CONFIG, text, request=request, scenario=scenario, mandatory_words=[]).valid is True


def test_batch_report_is_advisory() -> None:
    validator = Validator(CONFIG)
    flat = [_pad("One calm line", 85) + "." for _ in range(4)]
    report = validator.check_batch(flat)
    assert report.ok is False
    assert "no question" in report.notes
    assert "no exclamation" in report.notes

    varied = [
        _pad("Short and sweet", 70) + "!",
        _pad("A much longer observation about the week", 110) + ".",
        _pad("Is anyone else awake", 80) + "?",
        _pad("Plain filler", 90) + ".",
    ]
    assert validator.check_batch(varied).ok is True


@pytest.mark.parametrize(
    ("rating", "text", "valid"),
    [
        ("G", "Grab a beer and toast the whole office crew", False),
        ("PG", "Grab a beer and toast the whole office crew", True),
        ("PG", "Somebody left weed gummies in the break room", False),
        ("PG-13", "Somebody left weed gummies in the break room", True),
        ("G", "The office party had porn on the projector", False),
        ("PG-13", "The office party had porn on the projector", False),
        ("R", "Shit, the office party had porn on the projector", True),
        ("G", "We planned a quiet kiss under the office mistletoe", False),
        ("PG", "We planned a quiet kiss under the office mistletoe", True),
    ],
)
def test_theme_terms_by_rating(rating: str, text: str, valid: bool) -> None:
    verdict = _check(_pad(text), rating=rating)
    assert verdict.valid is valid, verdict
    if not valid:
        assert verdict.violations == (ViolationKind.PROFANITY_POLICY_VIOLATION,)


@pytest.mark.parametrize("rating", ["G", "PG", "PG-13", "R"])
def test_always_forbidden_and_instructional_lines_fail_at_every_rating(rating: str) -> None:
    for text in (
        "Here's how to cook meth step by step while the boss naps",
        "Shit, nobody warned the new hire about that minor",
        "Go buy some cheap weed after work, shit happens",
    ):
        verdict = _check(_pad(text), rating=rating)
        assert verdict.violations == (ViolationKind.PROFANITY_POLICY_VIOLATION,), (rating, text)


def test_theme_terms_match_whole_words() -> None:
    assert _check(_pad("The drummer brought a winery map and a rumor"), rating="G").valid is True


def test_r_rating_caps_strong_profanity() -> None:
    assert _check(_pad("Fuck this printer, it jams like shit every day"), rating="R").valid is True
    verdict = _check(_pad("Fuck this bullshit printer, it jams like shit every day"), rating="R")
    assert verdict.violations == (ViolationKind.PROFANITY_POLICY_VIOLATION,)
    assert "strong swears" in verdict.detail


def test_r_rating_rejects_profanity_as_last_word() -> None:
    text = "The printer jammed again and the whole office just stood around saying holy shit."
    verdict = _check(text, rating="R")
    assert verdict.violations == (ViolationKind.PROFANITY_POLICY_VIOLATION,)
    assert verdict.detail == "profanity as the last word"

    moved = "Holy shit, the printer jammed again and the whole office just stood around staring."
    assert _check(moved, rating="R").valid is True


def test_made_up_ages_are_rejected_unless_given() -> None:
    text = _pad("Mike just turned 40 and the thermostat filed a complaint")
    verdict = _check(text, mandatory_words=["Mike"])
    assert verdict.violations == (ViolationKind.FABRICATED_DETAIL,)

    assert _check(text, mandatory_words=["Mike", "40"]).valid is True
    assert _check(_pad("The thermostat is 3 years old and already tired of us")).violations == (
        ViolationKind.FABRICATED_DETAIL,
    )
    assert _check(_pad("The thermostat counted 3 meetings before lunch today")).valid is True
