"""
Admin / observability endpoints
===============================

GET /api/v1/admin/config -- effective grouping thresholds
GET /api/v1/admin/health -- simple health check
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Request

from src.api.dependencies import get_settings
from src.api.middleware import limiter
from src.api.schemas import ConfigResponse, HealthResponse
from src.config import Settings, settings as _settings

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/config",
    response_model=ConfigResponse,
    summary="Effective grouping configuration",
)
@limiter.limit(_settings.api_rate_limit)
async def get_config(
    request: Request,
    settings: Settings = Depends(get_settings),
):
    return ConfigResponse(**asdict(settings.grouping_config()))


@router.get("/health", response_model=HealthResponse, summary="Health check")
@limiter.limit(_settings.api_rate_limit)
async def health(request: Request):
    return HealthResponse()
