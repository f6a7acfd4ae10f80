"""Dependency injection for API endpoints."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from sitepublisher.config import get_settings
from sitepublisher.core.detection import ConfigDetector, get_config_detector
from sitepublisher.core.publisher import RepositoryPublisher
from sitepublisher.core.tracker import DeploymentTracker, InMemoryDeploymentStore
from sitepublisher.services.vercel_client import VercelClient


@lru_cache
def get_publisher() -> RepositoryPublisher:
    """Get the repository publisher singleton."""
    return RepositoryPublisher.from_settings(get_settings())


@lru_cache
def get_tracker() -> DeploymentTracker:
    """Get the deployment tracker singleton."""
    settings = get_settings()
    client = VercelClient(
        settings.vercel_token,
        team_id=settings.vercel_team_id,
        api_url=settings.vercel_api_url,
    )
    return DeploymentTracker(
        InMemoryDeploymentStore(settings.deployment_cache_size),
        webhook_secret=settings.vercel_webhook_secret,
        signature_algorithm=settings.webhook_signature_algorithm,
        client=client,
        default_project_id=settings.vercel_project_id,
    )


async def get_detector() -> ConfigDetector:
    """Get the config detector."""
    return get_config_detector()


# Type aliases for cleaner signatures
PublisherDep = Annotated[RepositoryPublisher, Depends(get_publisher)]
TrackerDep = Annotated[DeploymentTracker, Depends(get_tracker)]
DetectorDep = Annotated[ConfigDetector, Depends(get_detector)]
