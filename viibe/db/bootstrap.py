from viibe.db import session as db_session
from viibe.db.base import Base
from viibe.db.models import GenerationHistory  # noqa: F401


def init_db() -> None:
    Base.metadata.create_all(bind=db_session.engine)
