"""Health check + meta endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from boundsight.engine.registry import get_registry
from boundsight.models.responses import AnalyzerInfo, HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version="0.1.0",
        analyzers_registered=get_registry().count,
    )


@router.get("/analyzers", response_model=list[AnalyzerInfo])
async def analyzers() -> list[AnalyzerInfo]:
    return [AnalyzerInfo(tag=spec.tag, description=spec.description) for spec in get_registry().all()]
