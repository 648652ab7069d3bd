"""
Health check endpoint.

Provides system health status for monitoring and load balancers.
"""

from fastapi import APIRouter

from billforge import __version__
from billforge.api.schemas import HealthResponse
from billforge.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Check system health.

    Reports which record store backs the service and whether text
    suggestions are configured.
    """
    settings = get_settings()

    return HealthResponse(
        status="healthy",
        version=__version__,
        store="memory" if settings.database_url is None else "postgres",
        suggestions=settings.suggestions_enabled,
    )
