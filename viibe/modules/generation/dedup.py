from __future__ import annotations

import hashlib
import logging

from viibe.modules.generation.errors import PersistenceFailure
from viibe.modules.generation.schemas import Candidate, GenerationRequest, ResolvedScenario
from viibe.modules.history.store import HistoryRecord, HistoryStore

logger = logging.getLogger(__name__)


def text_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class Deduplicator:
    """Drops in-batch repeats and anything already in history.

    Hashing is case-sensitive over the exact text. The first occurrence wins
    and the surviving order is the input order.
    """

    def __init__(self, store: HistoryStore):
        self.store = store

    def filter(self, candidates: list[Candidate], *, exclude: set[str] | None = None) -> list[Candidate]:
        seen: set[str] = set(exclude or ())
        unique: list[tuple[str, Candidate]] = []
        for candidate in candidates:
            digest = text_hash(candidate.text)
            if digest in seen:
                continue
            seen.add(digest)
            unique.append((digest, candidate))
        if not unique:
            return []

        # PersistenceFailure propagates; the ladder treats it like a failed call
        known = self.store.lookup([digest for digest, _ in unique])
        kept = [candidate for digest, candidate in unique if digest not in known]
        if len(kept) < len(unique):
            logger.debug("dedup dropped %s history hits", len(unique) - len(kept))
        return kept

    def persist_accepted(
        self,
        lines: list[str],
        *,
        request: GenerationRequest,
        scenario: ResolvedScenario,
        mandatory_words: list[str] | None = None,
    ) -> bool:
        words = request.mandatory_words if mandatory_words is None else mandatory_words
        records = [
            HistoryRecord(
                text_hash=text_hash(line),
                text_out=line,
                category=request.category,
                subcategory=request.subcategory,
                tone=scenario.tone,
                style=request.style,
                rating=scenario.rating,
                mandatory_words=tuple(words),
            )
            for line in lines
        ]
        try:
            self.store.insert(records)
        except PersistenceFailure as exc:
            logger.warning("history persist failed, result unaffected: %s", exc)
            return False
        return True
