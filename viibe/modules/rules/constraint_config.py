from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Literal

ProfanityMode = Literal["forbidden", "censored_only", "required"]

MAX_MANDATORY_WORDS = 6


@dataclass(frozen=True, slots=True)
class LengthRules:
    min_chars: int
    max_chars: int


@dataclass(frozen=True, slots=True)
class PolicyDescriptor:
    """Profanity mode plus the theme terms a rating keeps out.

    ``forbidden_terms`` match as whole words (optional plural) and are never
    waived by mandatory words. ``max_strong_profanity`` caps strong swears per
    line; ``None`` means no cap.
    """

    mode: ProfanityMode
    description: str
    whitelist: frozenset[str] = frozenset()
    forbidden_terms: frozenset[str] = frozenset()
    max_strong_profanity: int | None = None
    profanity_as_last_word: bool = True


@dataclass(frozen=True, slots=True)
class StructureTemplate:
    id: str
    hint: str


@dataclass(frozen=True, slots=True)
class VocabularyItem:
    id: str
    name: str
    tag: str
    description: str


@dataclass(frozen=True, slots=True)
class RatingOverride:
    rating: str
    from_tone: str
    to_tone: str
    reason: str

    def apply(self, tone: str, rating: str) -> str | None:
        if rating == self.rating and tone == self.from_tone:
            return self.to_tone
        return None


@dataclass(frozen=True, slots=True)
class VariationRules:
    short_line_lt: int = 75
    long_line_gt: int = 100
    require_question: bool = True
    require_exclamation: bool = True


@dataclass(frozen=True)
class ConstraintConfig:
    """Immutable ruleset shared by the resolver, prompt builder and validator.

    Built once at process start and passed into every component. Lookups that
    take a vocabulary id raise ``KeyError`` for unknown ids; callers validate
    requests before reaching them.
    """

    length_rules: LengthRules
    allowed_punctuation: frozenset[str]
    max_punctuation_marks: int
    banned_substrings: frozenset[str]
    profanity_policy: Mapping[str, PolicyDescriptor]
    profanity_lexicon: Mapping[str, str]
    tones: tuple[VocabularyItem, ...]
    styles: tuple[VocabularyItem, ...]
    ratings: tuple[VocabularyItem, ...]
    comedian_styles: tuple[VocabularyItem, ...]
    category_ban_lists: Mapping[str, frozenset[str]]
    tone_compatibility: Mapping[str, tuple[str, ...]]
    rating_overrides: tuple[RatingOverride, ...]
    strong_profanity: frozenset[str] = frozenset()
    instruction_patterns: tuple[str, ...] = ()
    structure_templates: tuple[StructureTemplate, ...] = ()
    topic_seeds: tuple[str, ...] = ()
    placement_hints: tuple[str, ...] = ()
    variation: VariationRules = field(default_factory=VariationRules)
    default_tone: str = "humorous"
    safe_tone: str = "humorous"
    safe_rating: str = "PG"
    max_mandatory_words: int = MAX_MANDATORY_WORDS

    @property
    def tone_vocabulary(self) -> frozenset[str]:
        return frozenset(item.id for item in self.tones)

    @property
    def style_vocabulary(self) -> frozenset[str]:
        return frozenset(item.id for item in self.styles)

    @property
    def rating_vocabulary(self) -> frozenset[str]:
        return frozenset(item.id for item in self.ratings)

    @property
    def comedian_vocabulary(self) -> frozenset[str]:
        return frozenset(item.id for item in self.comedian_styles)

    def policy_for(self, rating: str) -> PolicyDescriptor:
        return self.profanity_policy[rating]

    def ban_list(self, key: str) -> frozenset[str]:
        return self.category_ban_lists.get(str(key or "").strip().lower(), frozenset())

    def admissible_tones(self, subcategory: str) -> tuple[str, ...] | None:
        return self.tone_compatibility.get(str(subcategory or "").strip().lower())

    def tone(self, tone_id: str) -> VocabularyItem:
        return _find(self.tones, tone_id)

    def style(self, style_id: str) -> VocabularyItem:
        return _find(self.styles, style_id)

    def rating(self, rating_id: str) -> VocabularyItem:
        return _find(self.ratings, rating_id)

    def comedian(self, comedian_id: str) -> VocabularyItem:
        return _find(self.comedian_styles, comedian_id)


def _find(items: tuple[VocabularyItem, ...], item_id: str) -> VocabularyItem:
    for item in items:
        if item.id == item_id:
            return item
    raise KeyError(item_id)


TONES: tuple[VocabularyItem, ...] = (
    VocabularyItem("humorous", "Humorous", "witty", "Funny, witty, light"),
    VocabularyItem("savage", "Savage", "roast", "Harsh, blunt, cutting"),
    VocabularyItem("sentimental", "Sentimental", "warm", "Warm, heartfelt, tender"),
    VocabularyItem("nostalgic", "Nostalgic", "wistful", "Reflective, old-times, wistful"),
    VocabularyItem("romantic", "Romantic", "loving", "Loving, passionate, sweet"),
    VocabularyItem("inspirational", "Inspirational", "uplifting", "Motivating, uplifting, bold"),
    VocabularyItem("playful", "Playful", "cheeky", "Silly, cheeky, fun"),
    VocabularyItem("serious", "Serious", "deadpan", "Formal, direct, weighty"),
)

STYLES: tuple[VocabularyItem, ...] = (
    VocabularyItem("generic", "Generic", "plain", "Neutral wording, straightforward delivery."),
    VocabularyItem("sarcastic", "Sarcastic", "ironic", "Dry, cutting, eye-roll vibe."),
    VocabularyItem("wholesome", "Wholesome", "kind", "Warm, supportive, feel-good."),
    VocabularyItem("weird", "Weird", "absurd", "Surreal, playful oddity."),
)

RATINGS: tuple[VocabularyItem, ...] = (
    VocabularyItem("G", "G", "clean", "Family-friendly. No profanity, no adult references."),
    VocabularyItem("PG", "PG", "mild", "Snarky sarcasm with bite. Censored swears only."),
    VocabularyItem("PG-13", "PG-13", "edgy", "Edgy humor. Allowed swears: hell, damn."),
    VocabularyItem("R", "R", "explicit", "Raw and unfiltered. Must include profanity."),
)

COMEDIAN_STYLES: tuple[VocabularyItem, ...] = (
    VocabularyItem("jerry-seinfeld", "Jerry Seinfeld", "clean observational", "clean observational minutiae"),
    VocabularyItem("george-carlin", "George Carlin", "sharp satirical", "sharp, satirical, anti-establishment"),
    VocabularyItem("joan-rivers", "Joan Rivers", "biting roast", "biting, fearless roast style"),
    VocabularyItem("steven-wright", "Steven Wright", "ultra-dry absurd", "ultra-dry, absurd one-liners"),
    VocabularyItem("mitch-hedberg", "Mitch Hedberg", "surreal one-liner", "surreal, stoner one-liners"),
    VocabularyItem("john-mulaney", "John Mulaney", "polished story", "polished, clever storytelling"),
    VocabularyItem("jim-gaffigan", "Jim Gaffigan", "clean domestic", "clean, food/family obsession"),
    VocabularyItem("norm-macdonald", "Norm Macdonald", "absurd deadpan", "absurd, slow-burn deadpan"),
    VocabularyItem("bill-burr", "Bill Burr", "ranting cynicism", "ranting, blunt cynicism"),
    VocabularyItem("ali-wong", "Ali Wong", "raunchy candor", "raunchy, feminist candor"),
)

ALWAYS_FORBIDDEN: frozenset[str] = frozenset(
    {"underage", "minor", "teen", "non-consensual", "rape", "incest", "bestiality", "child"}
)
HOWTO_TERMS: frozenset[str] = frozenset(
    {
        "how to",
        "here's how",
        "step by step",
        "tutorial",
        "make meth",
        "cook meth",
        "synthesize",
        "buy weed",
        "buy coke",
        "dm me to buy",
    }
)
ALCOHOL_TERMS: frozenset[str] = frozenset(
    {"beer", "wine", "vodka", "tequila", "whiskey", "rum", "shots", "hangover", "bar tab", "drunk", "tipsy"}
)
CANNABIS_TERMS: frozenset[str] = frozenset(
    {"weed", "cannabis", "edible", "gummies", "joint", "blunt", "bong", "dab", "vape pen", "stoned"}
)
PORN_TERMS: frozenset[str] = frozenset(
    {
        "porn",
        "pornhub",
        "onlyfans",
        "nsfw",
        "blowjob",
        "handjob",
        "anal",
        "pussy",
        "cock",
        "dick",
        "tits",
        "boobs",
        "cum",
    }
)
SEX_TERMS: frozenset[str] = frozenset({"sex", "hookup", "hook up", "naked", "nude"})

PROFANITY_POLICY: dict[str, PolicyDescriptor] = {
    "G": PolicyDescriptor(
        mode="forbidden",
        description="no profanity; no alcohol, drugs, sex or romance references",
        forbidden_terms=(
            ALWAYS_FORBIDDEN
            | HOWTO_TERMS
            | ALCOHOL_TERMS
            | CANNABIS_TERMS
            | PORN_TERMS
            | SEX_TERMS
            | frozenset({"kiss", "sexy"})
        ),
    ),
    "PG": PolicyDescriptor(
        mode="censored_only",
        description="censored swears only (f***, sh*t), no uncensored profanity; alcohol OK, no drugs or sex mentions",
        forbidden_terms=ALWAYS_FORBIDDEN | HOWTO_TERMS | CANNABIS_TERMS | PORN_TERMS | SEX_TERMS,
    ),
    "PG-13": PolicyDescriptor(
        mode="censored_only",
        description="mild swears allowed (hell, damn), anything stronger censored; alcohol and cannabis OK, no porn terms",
        whitelist=frozenset({"hell", "damn"}),
        forbidden_terms=ALWAYS_FORBIDDEN | HOWTO_TERMS | PORN_TERMS,
    ),
    "R": PolicyDescriptor(
        mode="required",
        description="must include raw profanity inside the sentence, at most two strong swears, no slurs",
        whitelist=frozenset({"fuck", "shit", "bastard", "ass", "bullshit", "goddamn"}),
        forbidden_terms=ALWAYS_FORBIDDEN | HOWTO_TERMS,
        max_strong_profanity=2,
        profanity_as_last_word=False,
    ),
}

STRONG_PROFANITY: frozenset[str] = frozenset({"fuck", "shit", "bullshit", "asshole", "bastard", "goddamn"})

# Rejected at every rating, including phrasing that reads as a how-to.
INSTRUCTION_PATTERNS: tuple[str, ...] = (
    r"\bhow to\b",
    r"\bhere'?s how\b",
    r"\bstep[-\s]?by[-\s]?step\b",
    r"\btutorial\b",
    r"\b(?:make|cook|extract|synthesize)\b.*\b(?:meth|cocaine|heroin|lsd|mdma|dmt|opioid|opiate)\b",
    r"\b(?:buy|score|get)\b.*\b(?:weed|coke|mdma|lsd|dmt|ketamine|heroin)\b",
)

STRUCTURE_TEMPLATES: tuple[StructureTemplate, ...] = (
    StructureTemplate("blunt-roast", "Short roast with a twist"),
    StructureTemplate("absurd-metaphor", "Weird comparison taken too far"),
    StructureTemplate("observational", "Everyday life lens on the topic"),
    StructureTemplate("rhetorical-question", "Question setup, punch in the question"),
    StructureTemplate("short-quip", "Punchy and under 75 characters"),
    StructureTemplate("story-micro", "Tiny narrative that lands on a punch"),
    StructureTemplate("surprise-object", "An inanimate object has agency"),
)

TOPIC_SEEDS: tuple[str, ...] = (
    "neighbors",
    "Wi-Fi",
    "thermostat",
    "raccoons",
    "parking meter",
    "elevator",
    "leaf blower",
    "night shift",
    "robot vacuum",
    "playlist",
    "leftovers",
    "inbox",
    "lawn flamingo",
    "group chat",
    "souvenir mug",
    "houseplant",
    "delivery driver",
    "smoke alarm",
    "self-checkout",
    "weather app",
)

PLACEMENT_HINTS: tuple[str, ...] = ("at the beginning", "in the middle", "at the end", "naturally woven in")

# base term -> regex body matched on word boundaries, case-insensitive
PROFANITY_LEXICON: dict[str, str] = {
    "fuck": r"fuck(?:s|ed|er|ers|ing)?",
    "shit": r"shit(?:s|ty|ting|head)?",
    "bullshit": r"bullshit",
    "asshole": r"assholes?",
    "ass": r"ass(?:es)?",
    "bastard": r"bastards?",
    "goddamn": r"goddamn(?:ed|it)?",
    "damn": r"damn(?:ed|it)?",
    "hell": r"hell",
    "crap": r"crap(?:py)?",
    "douche": r"douche(?:bag)?s?",
}

CATEGORY_BAN_LISTS: dict[str, frozenset[str]] = {
    "birthday": frozenset({"cake", "candles", "party", "celebrate", "wish", "blow", "frosting"}),
    "wedding": frozenset({"dress", "rings", "altar", "vows", "forever", "dance", "bouquet"}),
    "sports": frozenset({"winner", "champion", "team", "victory", "score", "game", "field"}),
    "cooking": frozenset({"recipe", "ingredients", "delicious", "taste", "flavor", "kitchen"}),
    "technology": frozenset({"computer", "internet", "digital", "online", "click", "download"}),
}

# Ordered admissible tones per subcategory; the first entry is the replacement
# when the requested tone does not fit.
TONE_COMPATIBILITY: dict[str, tuple[str, ...]] = {
    "birthday": ("playful", "humorous", "savage", "sentimental", "nostalgic", "inspirational", "serious"),
    "wedding": ("sentimental", "humorous", "romantic", "playful", "savage", "nostalgic", "inspirational"),
    "engagement": ("romantic", "sentimental", "humorous", "playful", "savage"),
    "anniversary": ("romantic", "sentimental", "nostalgic", "humorous", "playful", "savage"),
    "valentines-day": ("romantic", "playful", "humorous", "sentimental", "savage"),
    "graduation": ("nostalgic", "sentimental", "humorous", "inspirational", "serious", "playful", "savage"),
    "baby-shower": ("playful", "sentimental", "humorous", "savage"),
    "retirement": ("nostalgic", "sentimental", "humorous", "inspirational", "serious", "playful", "savage"),
    "new-job": ("inspirational", "humorous", "serious", "playful", "savage"),
    "promotion": ("inspirational", "humorous", "serious", "playful", "savage"),
    "family-reunion": ("nostalgic", "sentimental", "humorous", "playful", "savage"),
    "work": ("savage", "humorous", "playful", "serious"),
    "school": ("humorous", "playful", "savage", "nostalgic"),
    "puns": ("playful", "humorous", "savage"),
    "dad-jokes": ("playful", "humorous", "savage"),
    "roast": ("savage", "humorous", "playful", "nostalgic", "serious"),
    "golf": ("humorous", "savage", "playful", "inspirational", "nostalgic", "serious"),
    "soccer": ("humorous", "savage", "playful", "inspirational", "nostalgic", "serious"),
    "basketball": ("humorous", "savage", "playful", "inspirational", "nostalgic", "serious"),
    "baseball": ("humorous", "savage", "playful", "inspirational", "nostalgic", "serious"),
    "hockey": ("humorous", "savage", "playful", "inspirational", "nostalgic", "serious"),
    "movies": ("humorous", "playful", "savage", "nostalgic"),
    "music": ("humorous", "playful", "savage", "nostalgic", "sentimental"),
    "tv": ("humorous", "playful", "savage", "nostalgic"),
}

# Checked in order; the first matching rule wins and no further rule runs.
RATING_OVERRIDES: tuple[RatingOverride, ...] = (
    RatingOverride("G", "savage", "playful", "G rating softens a savage tone to playful"),
    RatingOverride("G", "romantic", "sentimental", "G rating keeps romance out, using sentimental instead"),
    RatingOverride("R", "playful", "savage", "R rating sharpens a playful tone to savage"),
)


def build_constraint_config() -> ConstraintConfig:
    return ConstraintConfig(
        length_rules=LengthRules(min_chars=60, max_chars=120),
        allowed_punctuation=frozenset({".", ",", "!", "?", ":", ";", "…"}),
        max_punctuation_marks=3,
        banned_substrings=frozenset({"—", "–"}),
        profanity_policy=MappingProxyType(dict(PROFANITY_POLICY)),
        profanity_lexicon=MappingProxyType(dict(PROFANITY_LEXICON)),
        tones=TONES,
        styles=STYLES,
        ratings=RATINGS,
        comedian_styles=COMEDIAN_STYLES,
        category_ban_lists=MappingProxyType(dict(CATEGORY_BAN_LISTS)),
        tone_compatibility=MappingProxyType(dict(TONE_COMPATIBILITY)),
        rating_overrides=RATING_OVERRIDES,
        strong_profanity=STRONG_PROFANITY,
        instruction_patterns=INSTRUCTION_PATTERNS,
        structure_templates=STRUCTURE_TEMPLATES,
        topic_seeds=TOPIC_SEEDS,
        placement_hints=PLACEMENT_HINTS,
    )
