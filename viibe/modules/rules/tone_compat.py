from __future__ import annotations

import logging

from viibe.modules.generation.schemas import ResolvedScenario
from viibe.modules.rules.constraint_config import ConstraintConfig, RatingOverride

logger = logging.getLogger(__name__)


def first_matching_override(config: ConstraintConfig, *, tone: str, rating: str) -> RatingOverride | None:
    for rule in config.rating_overrides:
        if rule.apply(tone, rating) is not None:
            return rule
    return None


def resolve_scenario(
    config: ConstraintConfig,
    *,
    subcategory: str,
    tone: str,
    rating: str,
) -> ResolvedScenario:
    """Turn a requested (subcategory, tone, rating) into an admissible pair.

    The subcategory check runs first and the rating override second, so an
    override may land on a tone the subcategory would not have picked. Rating
    always wins over tone.
    """
    adjusted = False
    reason: str | None = None

    admissible = config.admissible_tones(subcategory)
    if admissible is None:
        resolved_tone = config.default_tone
        adjusted = True
        label = subcategory or "none"
        reason = f"Unknown subcategory '{label}', falling back to {resolved_tone} tone."
    elif tone not in admissible:
        resolved_tone = admissible[0]
        adjusted = True
        reason = f"{tone} tone doesn't work well with {subcategory}, switched to {resolved_tone}."
    else:
        resolved_tone = tone

    override = first_matching_override(config, tone=resolved_tone, rating=rating)
    if override is not None and override.to_tone != resolved_tone:
        resolved_tone = override.to_tone
        adjusted = True
        if reason is None:
            reason = f"{override.reason}."

    if adjusted:
        logger.info(
            "tone resolved subcategory=%s requested=%s resolved=%s rating=%s",
            subcategory,
            tone,
            resolved_tone,
            rating,
        )
    return ResolvedScenario(
        tone=resolved_tone,
        rating=rating,
        was_adjusted=adjusted,
        adjustment_reason=reason,
    )


class ToneResolver:
    def __init__(self, config: ConstraintConfig):
        self.config = config

    def resolve(self, *, subcategory: str, tone: str, rating: str) -> ResolvedScenario:
        return resolve_scenario(self.config, subcategory=subcategory, tone=tone, rating=rating)
