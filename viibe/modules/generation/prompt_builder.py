from __future__ import annotations

from viibe.modules.generation.schemas import RESULT_LINE_COUNT, GenerationRequest, ResolvedScenario
from viibe.modules.rules.constraint_config import ConstraintConfig

SYSTEM_PROMPT = (
    "You write short, punchy one-liners for image captions and cards. "
    "Plain text only. No markdown, no numbering, no explanations."
)


def _quoted(words: list[str]) -> str:
    return ", ".join(f'"{word}"' for word in words)


def core_section(
    config: ConstraintConfig,
    request: GenerationRequest,
    scenario: ResolvedScenario,
    count: int = RESULT_LINE_COUNT,
) -> str:
    tone = config.tone(scenario.tone)
    style = config.style(request.style)
    rating = config.rating(scenario.rating)
    text = (
        f"Generate {count} different short text options with a {tone.name} tone "
        f"({tone.description.lower()}). Style: {style.description} Content rating: {rating.tag}."
    )
    if request.comedian_style:
        comedian = config.comedian(request.comedian_style)
        text += f" Channel the voice of {comedian.name}: {comedian.description}."
    return text


def context_section(request: GenerationRequest) -> str:
    subcategory = request.subcategory or "general"
    return f"Context: {request.category} - {subcategory}."


def mandatory_words_section(words: list[str]) -> str:
    if not words:
        return ""
    return f"CRITICAL: Each option must naturally include ALL of these words: {_quoted(words)}."


def constraints_section(config: ConstraintConfig, request: GenerationRequest, scenario: ResolvedScenario) -> str:
    rules = config.length_rules
    policy = config.policy_for(scenario.rating)
    text = (
        f"LENGTH: Each option must be {rules.min_chars}-{rules.max_chars} characters. "
        f"CONTENT: {policy.description}. No how-to or instructional phrasing. "
        "Do not invent ages or milestones that are not in the required words. "
        f"FORMAT: One-liners only, no em-dashes (—), at most {config.max_punctuation_marks} punctuation marks."
    )
    waived = {word.lower() for word in request.mandatory_words}
    avoid = sorted((config.ban_list(request.category) | config.ban_list(request.subcategory)) - waived)
    if avoid:
        text += f" Avoid these overused words: {', '.join(avoid)}."
    return text


def variation_section(config: ConstraintConfig) -> str:
    rules = config.variation
    return (
        f"VARIATION REQUIRED: Mix short punchy lines (under {rules.short_line_lt} chars) with longer "
        f"observations (over {rules.long_line_gt} chars). Include at least one question and one "
        "exclamation across the set."
    )


def slot_section(config: ConstraintConfig, request: GenerationRequest, slot: int | None) -> str:
    """Per-call angle for one fan-out slot: structure, topic seed and word placement.

    Deterministic in ``slot`` so the same slot always gets the same hint.
    """
    if slot is None:
        return ""
    parts: list[str] = []
    if config.structure_templates:
        template = config.structure_templates[slot % len(config.structure_templates)]
        parts.append(f"Structure: {template.hint}.")
    if config.topic_seeds:
        seed = config.topic_seeds[slot % len(config.topic_seeds)]
        parts.append(f"Topic seed: {seed} (use it creatively instead of obvious {request.category} references).")
    if request.mandatory_words and config.placement_hints:
        placement = config.placement_hints[slot % len(config.placement_hints)]
        parts.append(f'Place "{request.mandatory_words[0]}" {placement}.')
    return " ".join(parts)


def output_section(count: int = RESULT_LINE_COUNT) -> str:
    return (
        f"Return exactly {count} options, one per line, no numbering, no extra formatting. "
        "Each should feel naturally human and distinctly different."
    )


def build_prompt(
    config: ConstraintConfig,
    request: GenerationRequest,
    scenario: ResolvedScenario,
    *,
    slot: int | None = None,
) -> str:
    """Compose the generation prompt.

    Pure function of its inputs: identical (config, request, scenario, slot)
    always yields the identical string. Sections appear in a fixed order, the
    mandatory-words section is omitted when there are no words and the slot
    section only appears when ``slot`` is given.
    """
    sections = [
        core_section(config, request, scenario),
        context_section(request),
        mandatory_words_section(request.mandatory_words),
        constraints_section(config, request, scenario),
        variation_section(config),
        slot_section(config, request, slot),
        output_section(),
    ]
    return "\n".join(section for section in sections if section)


def build_shortfall_prompt(
    config: ConstraintConfig,
    request: GenerationRequest,
    scenario: ResolvedScenario,
    *,
    missing: int,
    accepted: list[str],
) -> str:
    count = max(1, int(missing))
    sections = [
        core_section(config, request, scenario, count),
        context_section(request),
        mandatory_words_section(request.mandatory_words),
        constraints_section(config, request, scenario),
    ]
    if accepted:
        listed = " | ".join(accepted)
        sections.append(f"Already accepted, do not repeat or closely echo: {listed}")
    sections.append(output_section(count))
    return "\n".join(section for section in sections if section)
