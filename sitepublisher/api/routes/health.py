"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

from sitepublisher import __version__
from sitepublisher.api.deps import TrackerDep
from sitepublisher.config import settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    environment: str
    timestamp: datetime
    signature_verification: bool
    cached_deployments: int


@router.get("/health", response_model=HealthResponse)
async def health_check(tracker: TrackerDep) -> HealthResponse:
    """Check API health status."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc),
        signature_verification=tracker.webhook_secret is not None,
        cached_deployments=len(tracker.store),
    )
