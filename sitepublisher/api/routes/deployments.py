"""Build webhook and deployment status endpoints."""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request, status

from sitepublisher.api.deps import TrackerDep
from sitepublisher.core.exceptions import UnsupportedProviderError
from sitepublisher.core.tracker import DeploymentTracker
from sitepublisher.models.deployment import (
    DeploymentRecord,
    DeploymentStatusResponse,
    RefreshStatusRequest,
    WebhookAck,
)
from sitepublisher.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

# Header carrying the body signature, per provider
SIGNATURE_HEADERS = {
    "vercel": "x-vercel-signature",
}


def _cached_status(
    tracker: DeploymentTracker,
    project_id: str | None,
    commit_sha: str | None,
) -> DeploymentStatusResponse:
    if not project_id or not commit_sha:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing projectId or commitSha parameters",
        )
    record = tracker.get(project_id, commit_sha)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Deployment not found")
    return DeploymentStatusResponse(deployment=record)


@router.post(
    "/webhooks/{provider}",
    response_model=WebhookAck,
    summary="Receive a build status webhook",
)
async def receive_webhook(provider: str, request: Request, tracker: TrackerDep) -> WebhookAck:
    """Verify and record a build-status event from the build provider."""
    header = SIGNATURE_HEADERS.get(provider)
    if header is None:
        raise UnsupportedProviderError(provider)

    body = await request.body()
    tracker.ingest(body, request.headers.get(header))
    return WebhookAck()


@router.get(
    "/webhooks/{provider}",
    response_model=DeploymentStatusResponse,
    response_model_exclude_none=True,
    summary="Look up a cached webhook status",
)
async def get_webhook_status(
    provider: str,
    tracker: TrackerDep,
    project_id: str | None = Query(None, alias="projectId"),
    commit_sha: str | None = Query(None, alias="commitSha"),
) -> DeploymentStatusResponse:
    if provider not in SIGNATURE_HEADERS:
        raise UnsupportedProviderError(provider)
    return _cached_status(tracker, project_id, commit_sha)


@router.get(
    "/deployment-status",
    response_model=DeploymentStatusResponse,
    response_model_exclude_none=True,
    summary="Get the cached status of a deployment",
)
async def get_deployment_status(
    tracker: TrackerDep,
    project_id: str | None = Query(None, alias="projectId"),
    commit_sha: str | None = Query(None, alias="commitSha"),
) -> DeploymentStatusResponse:
    """Return the last webhook-reported status for a project revision."""
    return _cached_status(tracker, project_id, commit_sha)


@router.get(
    "/deployment-status/live",
    response_model=DeploymentRecord,
    response_model_exclude_none=True,
    summary="Check deployment status, asking the build provider if needed",
)
async def check_deployment_status(
    tracker: TrackerDep,
    commit_sha: str | None = Query(None, alias="commitSha"),
    project_id: str | None = Query(None, alias="projectId"),
) -> DeploymentRecord:
    """Never returns 404: unknown deployments are reported as pending."""
    if not commit_sha:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing commitSha parameter")
    return await tracker.check_status(commit_sha, project_id)


@router.post(
    "/deployment-status/refresh",
    summary="Refresh deployment status on demand",
)
async def refresh_deployment_status(data: RefreshStatusRequest, tracker: TrackerDep) -> dict[str, Any]:
    if not data.commit_sha:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing commitSha in request body")

    record = await tracker.check_status(data.commit_sha, data.project_id)
    logger.info("deployment_status.refreshed", commit=data.commit_sha[:8], status=record.status.value)
    return {
        "success": True,
        **record.to_wire(),
        "refreshedAt": datetime.now(timezone.utc).isoformat(),
    }
