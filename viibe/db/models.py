import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Index, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from viibe.db.base import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class GenerationHistory(Base):
    """Append-only log of accepted lines, keyed by content hash.

    ``text_hash`` is indexed but not unique: two requests racing to accept the
    same line both insert, and lookups only care that the hash exists.
    """

    __tablename__ = "gen_history"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=uuid.uuid4)
    text_hash: Mapped[str] = mapped_column(String(64), index=True)
    text_out: Mapped[str] = mapped_column(Text, default="")
    category: Mapped[str] = mapped_column(String(64), index=True)
    subcategory: Mapped[str] = mapped_column(String(64), default="")
    tone: Mapped[str] = mapped_column(String(32))
    style: Mapped[str] = mapped_column(String(32))
    rating: Mapped[str] = mapped_column(String(16))
    mandatory_words: Mapped[list] = mapped_column(JSONType, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)


Index("ix_gen_history_category_created", GenerationHistory.category, GenerationHistory.created_at)
