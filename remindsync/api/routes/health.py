"""
Health check endpoint.
"""

from fastapi import APIRouter, Depends

from remindsync.api.dependencies import get_services
from remindsync.application.dto.responses import HealthResponse
from remindsync.application.services import ServerServices
from remindsync.config import get_settings
from remindsync.infrastructure.push import LogOnlyPushSender

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(services: ServerServices = Depends(get_services)) -> HealthResponse:
    """Service status, database reachability and push configuration."""
    settings = get_settings()

    database = await services.database.ping()

    return HealthResponse(
        status="healthy" if database else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database=database,
        push_enabled=not isinstance(services.push_sender, LogOnlyPushSender),
    )
