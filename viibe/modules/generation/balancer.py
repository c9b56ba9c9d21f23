from __future__ import annotations

from typing import Literal

from viibe.modules.generation.schemas import RESULT_LINE_COUNT, Candidate

Position = Literal["front", "middle", "end"]

FRONT_RATIO = 0.30
END_RATIO = 0.70
BUCKET_ORDER: tuple[Position, ...] = ("front", "middle", "end")


def word_position(text: str, word: str) -> Position | None:
    index = text.lower().find(word.lower())
    if index < 0 or not text:
        return None
    ratio = index / len(text)
    if ratio < FRONT_RATIO:
        return "front"
    if ratio > END_RATIO:
        return "end"
    return "middle"


def select_balanced(
    candidates: list[Candidate],
    mandatory_words: list[str],
    limit: int = RESULT_LINE_COUNT,
) -> list[Candidate]:
    """Pick up to ``limit`` candidates spreading the primary word across the line.

    One candidate per bucket (front, middle, end) is taken first, then the
    rest are filled from leftovers in their original order. Without mandatory
    words the first ``limit`` candidates are returned unchanged.
    """
    if not mandatory_words:
        return list(candidates[:limit])

    primary = mandatory_words[0]
    picked: list[int] = []
    for bucket in BUCKET_ORDER:
        if len(picked) >= limit:
            break
        for idx, candidate in enumerate(candidates):
            if idx in picked:
                continue
            if word_position(candidate.text, primary) == bucket:
                picked.append(idx)
                break

    for idx in range(len(candidates)):
        if len(picked) >= limit:
            break
        if idx not in picked:
            picked.append(idx)
    return [candidates[idx] for idx in picked]
