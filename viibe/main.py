import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from viibe.config import settings
from viibe.db.bootstrap import init_db
from viibe.modules.generation.router import router as lines_router
from viibe.modules.telemetry.router import router as telemetry_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(_app: FastAPI):
    init_db()
    logger.info("viibe started env=%s llm_mode=%s", settings.env, "real" if settings.llm_api_key else "fake")
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Viibe Line Generator", lifespan=_lifespan)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(lines_router)
    app.include_router(telemetry_router)
    return app


app = create_app()


def run() -> None:
    uvicorn.run("viibe.main:app", host=settings.host, port=settings.port)
