"""Deployment status tracking.

Ingests build-status webhooks from the build provider, keeps the latest record
per (project, revision) in a bounded store, and can fall back to asking the
provider's listing API when no event has arrived yet.
"""

import hashlib
import hmac
import json
import threading
from collections import OrderedDict
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Protocol

from pydantic import ValidationError as PydanticValidationError

from sitepublisher.core.exceptions import AuthError, SitePublisherError
from sitepublisher.models.deployment import (
    DeploymentEvent,
    DeploymentRecord,
    DeploymentStatus,
    VercelWebhookPayload,
    record_details,
)
from sitepublisher.utils.logging import get_logger

if TYPE_CHECKING:
    from sitepublisher.services.vercel_client import VercelClient

logger = get_logger(__name__)

DEFAULT_CACHE_SIZE = 50
COMMIT_PREFIX_LENGTH = 8

_STATUS_MAP = {
    "BUILDING": DeploymentStatus.BUILDING,
    "INITIALIZING": DeploymentStatus.BUILDING,
    "READY": DeploymentStatus.READY,
    "ERROR": DeploymentStatus.ERROR,
    "CANCELED": DeploymentStatus.ERROR,
}


def normalize_status(provider_state: str | None) -> DeploymentStatus:
    """Map a provider build state onto the internal four-state enum."""
    if not provider_state:
        return DeploymentStatus.PENDING
    return _STATUS_MAP.get(provider_state.strip().upper(), DeploymentStatus.PENDING)


def cache_key(project_id: str, commit_sha: str) -> str:
    return f"{project_id}-{commit_sha}"


def compute_signature(body: bytes, secret: str, algorithm: str = "sha1") -> str:
    """Hex HMAC of the raw request body."""
    return hmac.new(secret.encode("utf-8"), body, getattr(hashlib, algorithm)).hexdigest()


def verify_signature(
    body: bytes,
    signature: str | None,
    secret: str,
    algorithm: str = "sha1",
) -> None:
    """Raise :class:`AuthError` unless ``signature`` is the HMAC of ``body``."""
    if not signature:
        raise AuthError("Missing webhook signature")
    expected = compute_signature(body, secret, algorithm)
    if not hmac.compare_digest(expected, signature.strip().lower()):
        raise AuthError("Invalid signature")


class DeploymentStore(Protocol):
    """Storage for deployment records keyed by ``project-commit``."""

    def get(self, key: str) -> DeploymentRecord | None: ...

    def put(self, key: str, record: DeploymentRecord) -> None: ...

    def evict(self, key: str) -> bool: ...

    def __len__(self) -> int: ...


class InMemoryDeploymentStore:
    """Bounded, lock-guarded store with strict FIFO eviction.

    Writing an existing key replaces the record and moves it to the newest
    position. Reads never change the order.
    """

    def __init__(self, capacity: int = DEFAULT_CACHE_SIZE):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._records: OrderedDict[str, DeploymentRecord] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> DeploymentRecord | None:
        with self._lock:
            return self._records.get(key)

    def put(self, key: str, record: DeploymentRecord) -> None:
        with self._lock:
            self._records.pop(key, None)
            self._records[key] = record
            while len(self._records) > self.capacity:
                evicted, _ = self._records.popitem(last=False)
                logger.debug("deployment_store.evicted", key=evicted)

    def evict(self, key: str) -> bool:
        with self._lock:
            return self._records.pop(key, None) is not None

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class DeploymentTracker:
    """Normalizes build events and serves the latest status per build."""

    def __init__(
        self,
        store: DeploymentStore,
        *,
        webhook_secret: str | None = None,
        signature_algorithm: str = "sha1",
        client: "VercelClient | None" = None,
        default_project_id: str | None = None,
    ):
        self.store = store
        self.webhook_secret = webhook_secret or None
        self.signature_algorithm = signature_algorithm
        self.client = client
        self.default_project_id = default_project_id
        if not self.webhook_secret:
            logger.warning(
                "tracker.signature_verification_disabled",
                reason="no webhook secret configured; do not run like this in production",
            )

    def ingest(self, body: bytes, signature: str | None = None) -> DeploymentRecord:
        """Verify, parse and store one raw webhook body."""
        if self.webhook_secret:
            verify_signature(body, signature, self.webhook_secret, self.signature_algorithm)

        try:
            payload = VercelWebhookPayload.model_validate(json.loads(body))
        except (ValueError, PydanticValidationError) as e:
            raise SitePublisherError("Failed to process webhook", {"reason": str(e)}) from e

        return self.record_event(payload.to_event())

    def record_event(self, event: DeploymentEvent) -> DeploymentRecord:
        """Normalize an event and write it to the store."""
        record = DeploymentRecord(
            deployment_id=event.deployment_id,
            project_id=event.project_id,
            commit_sha=event.commit_sha or "",
            status=normalize_status(event.status),
            url=event.url,
            commit_message=event.commit_message,
            event_type=event.event_type,
            timestamp=event.created_at or datetime.now(timezone.utc),
        )
        self.store.put(cache_key(record.project_id, record.commit_sha), record)

        logger.info(
            "tracker.event_ingested",
            provider_status=event.status,
            event_type=event.event_type,
            **record_details(record),
        )
        if record.status.is_terminal:
            logger.info(
                "tracker.deployment_completed",
                commit_message=record.commit_message,
                **record_details(record),
            )
        return record

    def get(self, project_id: str, commit_sha: str) -> DeploymentRecord | None:
        return self.store.get(cache_key(project_id, commit_sha))

    async def check_status(
        self,
        commit_sha: str,
        project_id: str | None = None,
    ) -> DeploymentRecord:
        """Pull-based status check that never reports "not found".

        Uses a cached record when one exists, otherwise lists recent builds
        from the provider. Anything unresolved comes back as ``pending``.
        """
        project_id = project_id or self.default_project_id

        if project_id:
            cached = self.get(project_id, commit_sha)
            if cached is not None:
                return cached

        if self.client is None or not self.client.is_configured or not project_id:
            return self._pending(
                commit_sha,
                project_id,
                "Deployment initiated - check Vercel dashboard for real-time status",
            )

        deployments = await self.client.list_deployments(project_id, limit=10)
        match = find_matching_deployment(deployments, commit_sha)
        if match is None:
            return self._pending(
                commit_sha, project_id, "Deployment not found - may still be initializing"
            )

        status = normalize_status(match.get("state") or match.get("readyState"))
        created_at = match.get("createdAt")
        timestamp = (
            datetime.fromtimestamp(created_at / 1000, tz=timezone.utc)
            if isinstance(created_at, (int, float))
            else datetime.now(timezone.utc)
        )
        meta = match.get("meta") or {}
        url = match.get("url")

        return DeploymentRecord(
            deployment_id=match.get("uid") or match.get("id") or "",
            project_id=project_id,
            commit_sha=meta.get("githubCommitSha") or commit_sha,
            status=status,
            url=f"https://{url}" if status is DeploymentStatus.READY and url else None,
            commit_message=meta.get("githubCommitMessage"),
            timestamp=timestamp,
            error=(
                "Deployment failed - check Vercel dashboard for details"
                if status is DeploymentStatus.ERROR
                else None
            ),
        )

    @staticmethod
    def _pending(commit_sha: str, project_id: str | None, message: str) -> DeploymentRecord:
        return DeploymentRecord(
            project_id=project_id or "",
            commit_sha=commit_sha,
            status=DeploymentStatus.PENDING,
            timestamp=datetime.now(timezone.utc),
            message=message,
        )


def find_matching_deployment(deployments: list[dict], commit_sha: str) -> dict | None:
    """Find the build for ``commit_sha``, tolerating truncated revisions."""
    prefix = commit_sha[:COMMIT_PREFIX_LENGTH]
    for deployment in deployments:
        recorded = (deployment.get("meta") or {}).get("githubCommitSha")
        if not recorded:
            continue
        if recorded == commit_sha or (prefix and recorded.startswith(prefix)):
            return deployment
    return None
