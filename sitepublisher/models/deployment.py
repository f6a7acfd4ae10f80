"""Deployment data models."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from sitepublisher.models.base import CamelModel


class DeploymentStatus(str, Enum):
    """Normalized build status."""

    PENDING = "pending"
    BUILDING = "building"
    READY = "ready"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (DeploymentStatus.READY, DeploymentStatus.ERROR)


class DeploymentRecord(CamelModel):
    """Latest known status of one build, keyed by project and revision."""

    model_config = CamelModel.model_config | {"frozen": True}

    deployment_id: str = ""
    project_id: str = ""
    commit_sha: str = ""
    status: DeploymentStatus = DeploymentStatus.PENDING
    url: str | None = None
    commit_message: str | None = None
    event_type: str | None = None
    timestamp: datetime
    error: str | None = None
    message: str | None = None


class DeploymentEvent(CamelModel):
    """Inbound build-status event after provider-specific unpacking."""

    deployment_id: str = ""
    project_id: str = ""
    status: str = ""
    url: str | None = None
    commit_sha: str | None = None
    commit_message: str | None = None
    created_at: datetime | None = None
    event_type: str | None = None


class VercelDeploymentMeta(CamelModel):
    github_commit_sha: str | None = None
    github_commit_message: str | None = None
    github_commit_author_name: str | None = None


class VercelWebhookPayload(CamelModel):
    """Vercel deployment webhook body.

    Accepts the flat shape (``commitSha`` at the top level) as well as the
    ``meta.githubCommitSha`` shape.
    """

    model_config = CamelModel.model_config | {"extra": "allow"}

    id: str | None = None
    type: str | None = None
    name: str | None = None
    url: str | None = None
    created_at: datetime | None = None
    deployment_id: str | None = None
    project_id: str | None = None
    target: str | None = None
    status: str | None = None
    state: str | None = None
    commit_sha: str | None = None
    commit_message: str | None = None
    meta: VercelDeploymentMeta = Field(default_factory=VercelDeploymentMeta)

    def to_event(self) -> DeploymentEvent:
        return DeploymentEvent(
            deployment_id=self.deployment_id or self.id or "",
            project_id=self.project_id or "",
            status=self.status or self.state or "",
            url=self.url,
            commit_sha=self.commit_sha or self.meta.github_commit_sha,
            commit_message=self.commit_message or self.meta.github_commit_message,
            created_at=self.created_at,
            event_type=self.type,
        )


class DeploymentStatusResponse(CamelModel):
    """Response for cached status lookups."""

    success: bool = True
    deployment: DeploymentRecord


class WebhookAck(CamelModel):
    success: bool = True
    message: str = "Webhook processed successfully"


class RefreshStatusRequest(CamelModel):
    commit_sha: str | None = None
    project_id: str | None = None
    repository_url: str | None = None


def record_details(record: DeploymentRecord) -> dict[str, Any]:
    """Subset of a record that is safe to log."""
    return {
        "project_id": record.project_id,
        "commit": record.commit_sha[:8],
        "status": record.status.value,
        "url": record.url,
    }
