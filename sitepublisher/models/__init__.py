"""Data models for the site publisher."""

from sitepublisher.models.deployment import (
    DeploymentEvent,
    DeploymentRecord,
    DeploymentStatus,
    DeploymentStatusResponse,
    VercelWebhookPayload,
)
from sitepublisher.models.site_config import (
    ChatMessage,
    DetectedConfig,
    PublishResult,
    PublishState,
)

__all__ = [
    # Deployment models
    "DeploymentEvent",
    "DeploymentRecord",
    "DeploymentStatus",
    "DeploymentStatusResponse",
    "VercelWebhookPayload",
    # Site config models
    "ChatMessage",
    "DetectedConfig",
    "PublishResult",
    "PublishState",
]
