from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from viibe.modules.generation.errors import InvalidRequest
from viibe.modules.generation.pipeline import GenerationPipeline, get_generation_pipeline
from viibe.modules.generation.schemas import (
    GenerationRequest,
    GenerationResult,
    VocabularyItemOut,
    VocabularyResponse,
)
from viibe.modules.rules.constraint_config import VocabularyItem

router = APIRouter(prefix="/api/v1/lines", tags=["lines"])


def _items(items: tuple[VocabularyItem, ...]) -> list[VocabularyItemOut]:
    return [VocabularyItemOut(id=i.id, name=i.name, tag=i.tag, description=i.description) for i in items]


@router.post("/generate", response_model=GenerationResult)
def generate_lines(
    payload: GenerationRequest,
    pipeline: GenerationPipeline = Depends(get_generation_pipeline),
) -> GenerationResult:
    try:
        return pipeline.generate_lines(payload)
    except InvalidRequest as exc:
        raise HTTPException(
            status_code=400,
            detail={"code": "INVALID_REQUEST", "message": str(exc), "field": exc.field},
        ) from exc


@router.get("/vocabulary", response_model=VocabularyResponse)
def vocabulary(pipeline: GenerationPipeline = Depends(get_generation_pipeline)) -> VocabularyResponse:
    config = pipeline.config
    return VocabularyResponse(
        tones=_items(config.tones),
        styles=_items(config.styles),
        ratings=_items(config.ratings),
        comedian_styles=_items(config.comedian_styles),
        max_mandatory_words=config.max_mandatory_words,
        min_chars=config.length_rules.min_chars,
        max_chars=config.length_rules.max_chars,
    )
