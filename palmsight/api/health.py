"""Health check + meta endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from palmsight import __version__
from palmsight.engine.registry import get_registry
from palmsight.models.responses import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        transforms_registered=get_registry().count,
    )
