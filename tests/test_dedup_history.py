from __future__ import annotations

import hashlib

from sqlalchemy import func, select

from viibe.db import session as db_session
from viibe.db.models import GenerationHistory
from viibe.modules.generation.dedup import Deduplicator, text_hash
from viibe.modules.generation.schemas import Candidate, ResolvedScenario
from viibe.modules.history.store import HistoryRecord, SqlHistoryStore
from tests.support.pipeline_fakes import PLAIN_LINES, FailingHistoryStore, make_request


def _candidates(texts: list[str]) -> list[Candidate]:
    return [Candidate(text=text, source_index=idx) for idx, text in enumerate(texts)]


def _history_count() -> int:
    with db_session.SessionLocal() as db:
        return int(db.execute(select(func.count()).select_from(GenerationHistory)).scalar_one())


def test_text_hash_is_sha256_of_exact_text() -> None:
    assert text_hash("Hello") == hashlib.sha256(b"Hello").hexdigest()
    assert text_hash("Hello") != text_hash("hello")


def test_in_batch_duplicates_keep_first_occurrence() -> None:
    dedup = Deduplicator(SqlHistoryStore())
    out = dedup.filter(_candidates([PLAIN_LINES[0], PLAIN_LINES[1], PLAIN_LINES[0], PLAIN_LINES[2]]))

    assert [c.text for c in out] == [PLAIN_LINES[0], PLAIN_LINES[1], PLAIN_LINES[2]]
    assert [c.source_index for c in out] == [0, 1, 3]


def test_persisted_line_is_detected_on_replay() -> None:
    store = SqlHistoryStore()
    dedup = Deduplicator(store)
    request = make_request(mandatory_words=["quiet"])
    scenario = ResolvedScenario(tone="humorous", rating="PG")

    assert dedup.persist_accepted(PLAIN_LINES[:2], request=request, scenario=scenario) is True
    assert _history_count() == 2
    assert store.lookup([text_hash(PLAIN_LINES[0]), text_hash(PLAIN_LINES[5])]) == {text_hash(PLAIN_LINES[0])}

    out = dedup.filter(_candidates(PLAIN_LINES[:3]))
    assert [c.text for c in out] == [PLAIN_LINES[2]]


def test_history_row_carries_request_metadata() -> None:
    dedup = Deduplicator(SqlHistoryStore())
    request = make_request(category="sports", subcategory="golf", mandatory_words=["Mike", "golf"])
    dedup.persist_accepted(
        [PLAIN_LINES[0]],
        request=request,
        scenario=ResolvedScenario(tone="savage", rating="R"),
    )

    with db_session.SessionLocal() as db:
        row = db.execute(select(GenerationHistory)).scalar_one()
    assert row.text_hash == text_hash(PLAIN_LINES[0])
    assert row.text_out == PLAIN_LINES[0]
    assert row.category == "sports"
    assert row.subcategory == "golf"
    assert row.tone == "savage"
    assert row.rating == "R"
    assert row.mandatory_words == ["Mike", "golf"]
    assert row.created_at is not None


def test_same_hash_can_be_inserted_twice() -> None:
    store = SqlHistoryStore()
    record = HistoryRecord(
        text_hash=text_hash(PLAIN_LINES[0]),
        text_out=PLAIN_LINES[0],
        category="daily-life",
        subcategory="work",
        tone="humorous",
        style="generic",
        rating="PG",
    )
    store.insert([record])
    store.insert([record])
    assert _history_count() == 2


def test_exclude_drops_previously_accepted_hashes() -> None:
    dedup = Deduplicator(SqlHistoryStore())
    out = dedup.filter(_candidates(PLAIN_LINES[:2]), exclude={text_hash(PLAIN_LINES[0])})
    assert [c.text for c in out] == [PLAIN_LINES[1]]


def test_persist_failure_is_swallowed() -> None:
    dedup = Deduplicator(FailingHistoryStore(fail_insert=True))
    ok = dedup.persist_accepted(
        PLAIN_LINES[:1],
        request=make_request(),
        scenario=ResolvedScenario(tone="humorous", rating="PG"),
    )
    assert ok is False
