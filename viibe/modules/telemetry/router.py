from __future__ import annotations

from fastapi import APIRouter

from viibe.modules.telemetry.service import get_generation_telemetry_summary

router = APIRouter(prefix="/api/v1/telemetry", tags=["telemetry"])


@router.get("/generation")
def generation_telemetry() -> dict:
    return get_generation_telemetry_summary()
