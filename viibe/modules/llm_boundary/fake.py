from __future__ import annotations

import random
import re

from viibe.modules.llm_boundary.schemas import GeneratedBatch, GeneratedLine, SamplingParams

_COUNT_RE = re.compile(r"Return exactly (\d+) options")
_WORDS_LINE_RE = re.compile(r"include ALL of these words: (.+)$", re.MULTILINE)
_QUOTED_RE = re.compile(r'"([^"]+)"')
_RATING_RE = re.compile(r"Content rating: ([a-z]+)\.")
_COMEDIAN_RE = re.compile(r"Channel the voice of ([^:]+):")

TOPICS: tuple[str, ...] = (
    "thermostat",
    "group chat",
    "robot vacuum",
    "smoke alarm",
    "parking meter",
    "houseplant",
    "weather app",
    "leaf blower",
    "self-checkout",
    "night shift",
    "leftovers",
    "inbox",
    "lawn flamingo",
    "delivery driver",
    "elevator",
    "playlist",
)

# (template, end mark); templates place {who} at the front, middle and end
TEMPLATES: tuple[tuple[str, str], ...] = (
    ("{who} showed up and the {topic} immediately started taking notes", "!"),
    ("Somewhere between coffee and chaos {who} became the {topic} legend", "."),
    ("The {topic} has exactly one rule and it is never bet against {who}", "."),
    ("Why does the {topic} get nervous every single time it hears about {who}", "?"),
)

FILLERS: tuple[str, ...] = (
    " with suspicious confidence",
    " and nobody is surprised",
    " for the third time this week",
)

MIN_FAKE_CHARS = 60


def _parse_words(prompt: str) -> list[str]:
    match = _WORDS_LINE_RE.search(prompt)
    if not match:
        return []
    return _QUOTED_RE.findall(match.group(1))


def _parse_count(prompt: str) -> int:
    match = _COUNT_RE.search(prompt)
    if not match:
        return 4
    return max(1, int(match.group(1)))


def fake_generate(prompt: str, sampling: SamplingParams) -> GeneratedBatch:
    """Build a deterministic batch from the prompt text and the sampling seed.

    Lines carry every quoted mandatory word, stay inside the default length
    window and add a whitelisted swear when the prompt asks for explicit
    content.
    """
    rng = random.Random(sampling.seed)
    count = _parse_count(prompt)
    words = _parse_words(prompt)
    who = " and ".join(words) if words else "everyone"
    rating_match = _RATING_RE.search(prompt)
    explicit = bool(rating_match and rating_match.group(1) == "explicit")
    comedian_match = _COMEDIAN_RE.search(prompt)
    comedian = comedian_match.group(1).strip() if comedian_match else None

    topics = rng.sample(TOPICS, k=min(count, len(TOPICS)))
    while len(topics) < count:
        topics.append(rng.choice(TOPICS))
    offset = rng.randrange(len(TEMPLATES))

    items: list[GeneratedLine] = []
    for idx, topic in enumerate(topics):
        template, end = TEMPLATES[(offset + idx) % len(TEMPLATES)]
        body = template.format(who=who, topic=topic)
        body = body[0].upper() + body[1:]
        if explicit:
            body += " and it kicks ass"
        filler_idx = 0
        while len(body) + len(end) < MIN_FAKE_CHARS and filler_idx < len(FILLERS):
            body += FILLERS[filler_idx]
            filler_idx += 1
        items.append(GeneratedLine(text=f"{body}{end}", comedian=comedian))

    kind = "attributed" if comedian else "plain"
    return GeneratedBatch(kind=kind, items=tuple(items))
