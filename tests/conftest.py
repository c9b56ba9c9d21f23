from __future__ import annotations

from pathlib import Path

import pytest

from viibe.config import settings
from viibe.db import session as db_session
from viibe.db.base import Base
from viibe.db.models import GenerationHistory  # noqa: F401
from viibe.modules.generation.pipeline import reset_generation_pipeline
from viibe.modules.telemetry.service import reset_generation_telemetry


@pytest.fixture(autouse=True)
def _reset_db_and_defaults(tmp_path: Path) -> None:
    settings.llm_api_key = ""
    settings.llm_base_url = "https://api.openai.com/v1"
    settings.llm_model = "gpt-4o-mini"
    settings.llm_timeout_s = 20.0
    settings.generation_fanout_calls = 3
    settings.generation_shortfall_rounds = 2
    settings.generation_random_seed = 7
    settings.history_enabled = True
    db_session.rebind_engine(f"sqlite+pysqlite:///{tmp_path / 'viibe_test.db'}")
    reset_generation_telemetry()
    reset_generation_pipeline()
    Base.metadata.drop_all(bind=db_session.engine)
    Base.metadata.create_all(bind=db_session.engine)
    yield
    reset_generation_telemetry()
    reset_generation_pipeline()
    Base.metadata.drop_all(bind=db_session.engine)
    db_session.engine.dispose()
