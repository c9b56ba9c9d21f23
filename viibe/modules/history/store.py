from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from viibe.db import session as db_session
from viibe.db.models import GenerationHistory, utcnow
from viibe.modules.generation.errors import PersistenceFailure

logger = logging.getLogger(__name__)

_LOOKUP_CHUNK = 500


@dataclass(frozen=True, slots=True)
class HistoryRecord:
    text_hash: str
    text_out: str
    category: str
    subcategory: str
    tone: str
    style: str
    rating: str
    mandatory_words: tuple[str, ...] = ()
    created_at: datetime = field(default_factory=utcnow)


class HistoryStore(Protocol):
    def lookup(self, hashes: list[str]) -> set[str]: ...

    def insert(self, records: list[HistoryRecord]) -> None: ...


class SqlHistoryStore:
    """Append-only history on the shared SQLAlchemy engine.

    The session factory is resolved per call so a rebound engine is picked up.
    """

    def __init__(self, session_factory=None):
        self._session_factory = session_factory

    def _session(self):
        factory = self._session_factory or db_session.SessionLocal
        return factory()

    def lookup(self, hashes: list[str]) -> set[str]:
        wanted = list(dict.fromkeys(h for h in hashes if h))
        if not wanted:
            return set()
        found: set[str] = set()
        try:
            with self._session() as db:
                for start in range(0, len(wanted), _LOOKUP_CHUNK):
                    chunk = wanted[start : start + _LOOKUP_CHUNK]
                    stmt = select(GenerationHistory.text_hash).where(GenerationHistory.text_hash.in_(chunk))
                    found.update(db.execute(stmt).scalars().all())
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"history lookup failed: {exc}") from exc
        return found

    def insert(self, records: list[HistoryRecord]) -> None:
        if not records:
            return
        try:
            with self._session() as db:
                for record in records:
                    db.add(
                        GenerationHistory(
                            text_hash=record.text_hash,
                            text_out=record.text_out,
                            category=record.category,
                            subcategory=record.subcategory,
                            tone=record.tone,
                            style=record.style,
                            rating=record.rating,
                            mandatory_words=list(record.mandatory_words),
                            created_at=record.created_at,
                        )
                    )
                db.commit()
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"history insert failed: {exc}") from exc
        logger.debug("history insert records=%s", len(records))


class InMemoryHistoryStore:
    """Process-local store used when history persistence is disabled."""

    def __init__(self) -> None:
        self.records: list[HistoryRecord] = []

    def lookup(self, hashes: list[str]) -> set[str]:
        known = {record.text_hash for record in self.records}
        return {h for h in hashes if h in known}

    def insert(self, records: list[HistoryRecord]) -> None:
        self.records.extend(records)
