import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_DEFAULT_DB_URL = "sqlite:///./dev.db"


class Settings(BaseSettings):
    app_name: str = "viibe"
    env: str = "dev"
    database_url: str = "sqlite+pysqlite:///./viibe.db"
    host: str = "127.0.0.1"
    port: int = 8000

    llm_api_key: str = ""
    llm_base_url: str = "https://api.openai.com/v1"
    llm_model: str = "gpt-4o-mini"
    llm_timeout_s: float = 20.0
    llm_max_tokens: int = 400
    llm_max_attempts: int = 1

    generation_fanout_calls: int = Field(default=3, ge=1, le=8)
    generation_shortfall_rounds: int = Field(default=2, ge=0, le=5)
    generation_random_seed: int | None = None

    history_enabled: bool = True

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def _is_sqlite_memory_url(db_url: str) -> bool:
    candidate = (db_url or "").strip().lower()
    if not candidate.startswith("sqlite"):
        return False
    if ":memory:" in candidate:
        return True
    return candidate in {
        "sqlite://",
        "sqlite:///",
        "sqlite+pysqlite://",
        "sqlite+pysqlite:///",
    }


def validate_database_url(env: str, db_url: str | None) -> str:
    env_value = (env or "").strip().lower()
    if env_value != "dev":
        return db_url or ""

    if not db_url or not db_url.strip():
        return DEV_DEFAULT_DB_URL

    if _is_sqlite_memory_url(db_url):
        raise RuntimeError(
            "DATABASE_URL cannot be sqlite :memory: when ENV=dev because generation history will disappear. "
            f"Set DATABASE_URL={DEV_DEFAULT_DB_URL} or another file-based sqlite url."
        )
    return db_url


settings = Settings()
_raw_db_url = os.getenv("DATABASE_URL")
if settings.env == "dev":
    settings.database_url = validate_database_url(settings.env, _raw_db_url)
else:
    settings.database_url = validate_database_url(settings.env, _raw_db_url or settings.database_url)
