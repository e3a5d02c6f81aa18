"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from pipeline_advisor.api.dependencies import get_settings
from pipeline_advisor.config.settings import Settings
from pipeline_advisor.models.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(settings: Settings = Depends(get_settings)) -> HealthResponse:
    return HealthResponse(
        status="ok",
        classifier_enabled=settings.classifier_enabled,
        override_enabled=settings.override_enabled,
    )
