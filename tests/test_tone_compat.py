from __future__ import annotations

import dataclasses
from types import MappingProxyType

import pytest

from viibe.modules.rules.constraint_config import build_constraint_config
from viibe.modules.rules.tone_compat import ToneResolver, first_matching_override, resolve_scenario


def test_savage_birthday_at_g_is_softened() -> None:
    config = build_constraint_config()
    out = resolve_scenario(config, subcategory="birthday", tone="savage", rating="G")

    assert out.tone != "savage"
    assert out.tone == "playful"
    assert out.tone in config.admissible_tones("birthday")
    assert out.rating == "G"
    assert out.was_adjusted is True
    assert "G rating" in (out.adjustment_reason or "")


def test_unknown_subcategory_falls_back_to_default_tone() -> None:
    config = build_constraint_config()
    out = resolve_scenario(config, subcategory="interpretive-dance-recital", tone="romantic", rating="PG")

    assert out.tone == "humorous"
    assert out.was_adjusted is True
    assert out.adjustment_reason
    assert "interpretive-dance-recital" in out.adjustment_reason


def test_empty_subcategory_is_treated_as_unknown() -> None:
    out = resolve_scenario(build_constraint_config(), subcategory="", tone="serious", rating="PG")
    assert out.tone == "humorous"
    assert out.was_adjusted is True


def test_inadmissible_tone_switches_to_first_admissible() -> None:
    config = build_constraint_config()
    out = resolve_scenario(config, subcategory="puns", tone="serious", rating="PG")

    assert out.tone == config.admissible_tones("puns")[0]
    assert out.was_adjusted is True
    assert "puns" in (out.adjustment_reason or "")


def test_compatible_request_is_untouched() -> None:
    out = ToneResolver(build_constraint_config()).resolve(subcategory="golf", tone="humorous", rating="PG-13")
    assert out.tone == "humorous"
    assert out.rating == "PG-13"
    assert out.was_adjusted is False
    assert out.adjustment_reason is None


def test_subcategory_reason_wins_over_override_reason() -> None:
    config = build_constraint_config()
    # work has no romantic; first admissible is savage, then G softens it to playful
    out = resolve_scenario(config, subcategory="work", tone="romantic", rating="G")

    assert out.tone == "playful"
    assert "work" in (out.adjustment_reason or "")


def test_first_matching_override_wins() -> None:
    config = build_constraint_config()
    assert first_matching_override(config, tone="playful", rating="R").to_tone == "savage"
    assert first_matching_override(config, tone="humorous", rating="R") is None


def test_rating_override_may_leave_subcategory_set() -> None:
    config = dataclasses.replace(
        build_constraint_config(),
        tone_compatibility=MappingProxyType({"roast-only": ("savage",)}),
    )
    out = resolve_scenario(config, subcategory="roast-only", tone="savage", rating="G")

    assert out.tone == "playful"
    assert out.tone not in config.admissible_tones("roast-only")


@pytest.mark.parametrize("rating", ["G", "PG", "PG-13", "R"])
def test_resolver_is_idempotent_for_known_subcategories(rating: str) -> None:
    config = build_constraint_config()
    for subcategory in config.tone_compatibility:
        for tone in sorted(config.tone_vocabulary):
            first = resolve_scenario(config, subcategory=subcategory, tone=tone, rating=rating)
            second = resolve_scenario(config, subcategory=subcategory, tone=first.tone, rating=first.rating)
            assert (second.tone, second.rating) == (first.tone, first.rating), (subcategory, tone)
            assert second.was_adjusted is False, (subcategory, tone)


def test_resolver_is_stable_for_unknown_subcategory() -> None:
    config = build_constraint_config()
    first = resolve_scenario(config, subcategory="mystery", tone="savage", rating="R")
    second = resolve_scenario(config, subcategory="mystery", tone=first.tone, rating=first.rating)
    assert (second.tone, second.rating) == (first.tone, first.rating)
