"""Unit tests for deployment tracking."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from sitepublisher.core.exceptions import AuthError, SitePublisherError
from sitepublisher.core.tracker import (
    DeploymentTracker,
    InMemoryDeploymentStore,
    cache_key,
    compute_signature,
    find_matching_deployment,
    normalize_status,
    verify_signature,
)
from sitepublisher.models.deployment import DeploymentEvent, DeploymentRecord, DeploymentStatus
from sitepublisher.services.vercel_client import VercelClient


def make_record(project_id: str = "p1", commit_sha: str = "abc", status: DeploymentStatus = DeploymentStatus.PENDING) -> DeploymentRecord:
    return DeploymentRecord(
        project_id=project_id,
        commit_sha=commit_sha,
        status=status,
        timestamp=datetime.now(timezone.utc),
    )


def webhook_body(**fields) -> bytes:
    payload = {
        "id": "dpl_123",
        "type": "deployment.succeeded",
        "projectId": "p1",
        "commitSha": "abc12345",
        "status": "READY",
        "url": "cap-central.vercel.app",
    }
    payload.update(fields)
    return json.dumps(payload).encode()


class TestNormalizeStatus:
    @pytest.mark.parametrize(
        ("state", "expected"),
        [
            ("BUILDING", DeploymentStatus.BUILDING),
            ("INITIALIZING", DeploymentStatus.BUILDING),
            ("READY", DeploymentStatus.READY),
            ("ERROR", DeploymentStatus.ERROR),
            ("CANCELED", DeploymentStatus.ERROR),
            ("ready", DeploymentStatus.READY),
            ("QUEUED", DeploymentStatus.PENDING),
            ("", DeploymentStatus.PENDING),
            (None, DeploymentStatus.PENDING),
        ],
    )
    def test_mapping(self, state, expected):
        assert normalize_status(state) is expected

    def test_terminal_states(self):
        assert DeploymentStatus.READY.is_terminal
        assert DeploymentStatus.ERROR.is_terminal
        assert not DeploymentStatus.BUILDING.is_terminal


class TestSignature:
    """Tests for webhook signature verification."""

    def test_valid_signature(self):
        body = b'{"a": 1}'
        verify_signature(body, compute_signature(body, "secret"), "secret")

    def test_sha256_signature(self):
        body = b'{"a": 1}'
        signature = compute_signature(body, "secret", "sha256")
        assert len(signature) == 64
        verify_signature(body, signature, "secret", "sha256")

    def test_signature_over_raw_bytes(self):
        """Test a re-serialized body with the same content does not verify."""
        body = b'{"a":1}'
        signature = compute_signature(body, "secret")
        with pytest.raises(AuthError, match="Invalid signature"):
            verify_signature(b'{"a": 1}', signature, "secret")

    def test_wrong_secret(self):
        body = b"{}"
        with pytest.raises(AuthError):
            verify_signature(body, compute_signature(body, "other"), "secret")

    def test_missing_signature(self):
        with pytest.raises(AuthError, match="Missing webhook signature"):
            verify_signature(b"{}", None, "secret")


class TestInMemoryDeploymentStore:
    """Tests for the bounded FIFO store."""

    def test_put_and_get(self):
        store = InMemoryDeploymentStore()
        record = make_record()
        store.put("p1-abc", record)
        assert store.get("p1-abc") == record
        assert store.get("p1-missing") is None

    def test_fifo_eviction_at_capacity(self):
        """Test 51 distinct writes leave 50 records with the first one gone."""
        store = InMemoryDeploymentStore(capacity=50)
        for i in range(51):
            store.put(f"p1-{i}", make_record(commit_sha=str(i)))
        assert len(store) == 50
        assert store.get("p1-0") is None
        assert store.get("p1-1") is not None
        assert store.get("p1-50") is not None

    def test_rewrite_replaces_and_moves_to_newest(self):
        store = InMemoryDeploymentStore(capacity=2)
        store.put("a", make_record(commit_sha="a"))
        store.put("b", make_record(commit_sha="b"))
        store.put("a", make_record(commit_sha="a", status=DeploymentStatus.READY))
        store.put("c", make_record(commit_sha="c"))
        assert store.keys() == ["a", "c"]
        assert store.get("a").status is DeploymentStatus.READY

    def test_reads_do_not_change_order(self):
        store = InMemoryDeploymentStore(capacity=2)
        store.put("a", make_record())
        store.put("b", make_record())
        store.get("a")
        store.put("c", make_record())
        assert store.keys() == ["b", "c"]

    def test_evict_and_clear(self):
        store = InMemoryDeploymentStore()
        store.put("a", make_record())
        assert store.evict("a") is True
        assert store.evict("a") is False
        store.put("b", make_record())
        store.clear()
        assert len(store) == 0

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            InMemoryDeploymentStore(capacity=0)


class TestDeploymentTracker:
    """Tests for DeploymentTracker."""

    def test_ingest_error_event(self, tracker: DeploymentTracker):
        """Test a signed ERROR webhook is stored as an error record."""
        body = webhook_body(status="ERROR")
        record = tracker.ingest(body, compute_signature(body, tracker.webhook_secret))

        assert record.status is DeploymentStatus.ERROR
        stored = tracker.store.get("p1-abc12345")
        assert stored == record
        assert stored.deployment_id == "dpl_123"

    def test_ingest_meta_shape(self, tracker: DeploymentTracker):
        body = json.dumps(
            {
                "id": "dpl_9",
                "projectId": "p2",
                "state": "BUILDING",
                "meta": {"githubCommitSha": "def67890", "githubCommitMessage": "feat: Update site title"},
            }
        ).encode()
        record = tracker.ingest(body, compute_signature(body, tracker.webhook_secret))
        assert record.status is DeploymentStatus.BUILDING
        assert record.commit_message == "feat: Update site title"
        assert tracker.get("p2", "def67890") == record

    def test_later_event_replaces_earlier(self, tracker: DeploymentTracker):
        for status in ("BUILDING", "READY"):
            body = webhook_body(status=status)
            tracker.ingest(body, compute_signature(body, tracker.webhook_secret))
        assert len(tracker.store) == 1
        assert tracker.get("p1", "abc12345").status is DeploymentStatus.READY

    def test_bad_signature_leaves_store_untouched(self, tracker: DeploymentTracker):
        with pytest.raises(AuthError):
            tracker.ingest(webhook_body(), "0" * 40)
        assert len(tracker.store) == 0

    def test_missing_signature_rejected(self, tracker: DeploymentTracker):
        with pytest.raises(AuthError):
            tracker.ingest(webhook_body(), None)

    def test_no_secret_accepts_unsigned(self):
        tracker = DeploymentTracker(InMemoryDeploymentStore())
        record = tracker.ingest(webhook_body())
        assert record.status is DeploymentStatus.READY

    def test_malformed_body(self, tracker: DeploymentTracker):
        body = b"not json"
        with pytest.raises(SitePublisherError, match="Failed to process webhook"):
            tracker.ingest(body, compute_signature(body, tracker.webhook_secret))

    def test_record_event_defaults_timestamp(self, tracker: DeploymentTracker):
        record = tracker.record_event(DeploymentEvent(project_id="p1", commit_sha="abc", status="READY"))
        assert record.timestamp.tzinfo is not None
        assert record.status is DeploymentStatus.READY

    def test_cache_key(self):
        assert cache_key("p1", "abc12345") == "p1-abc12345"


class TestCheckStatus:
    """Tests for the pull-based status check."""

    @staticmethod
    def client_for(deployments: list[dict], status_code: int = 200) -> VercelClient:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v6/deployments"
            return httpx.Response(status_code, json={"deployments": deployments})

        return VercelClient("token", transport=httpx.MockTransport(handler))

    @pytest.mark.asyncio
    async def test_cached_record_wins(self, tracker: DeploymentTracker):
        body = webhook_body()
        stored = tracker.ingest(body, compute_signature(body, tracker.webhook_secret))
        assert await tracker.check_status("abc12345", "p1") == stored

    @pytest.mark.asyncio
    async def test_pending_without_client(self, tracker: DeploymentTracker):
        record = await tracker.check_status("abc12345", "p1")
        assert record.status is DeploymentStatus.PENDING
        assert "Vercel dashboard" in record.message

    @pytest.mark.asyncio
    async def test_ready_from_api(self):
        deployments = [
            {
                "uid": "dpl_1",
                "state": "READY",
                "url": "cap-central-abc.vercel.app",
                "createdAt": 1700000000000,
                "meta": {"githubCommitSha": "abc12345ffff", "githubCommitMessage": "feat: x"},
            }
        ]
        tracker = DeploymentTracker(InMemoryDeploymentStore(), client=self.client_for(deployments))
        record = await tracker.check_status("abc12345ffff", "p1")
        assert record.status is DeploymentStatus.READY
        assert record.url == "https://cap-central-abc.vercel.app"
        assert record.deployment_id == "dpl_1"
        assert record.timestamp.year == 2023

    @pytest.mark.asyncio
    async def test_error_from_api_has_message(self):
        deployments = [{"uid": "dpl_2", "state": "ERROR", "url": "x.vercel.app", "meta": {"githubCommitSha": "abc12345"}}]
        tracker = DeploymentTracker(InMemoryDeploymentStore(), client=self.client_for(deployments))
        record = await tracker.check_status("abc12345", "p1")
        assert record.status is DeploymentStatus.ERROR
        assert record.url is None
        assert record.error

    @pytest.mark.asyncio
    async def test_not_listed_is_pending(self):
        tracker = DeploymentTracker(InMemoryDeploymentStore(), client=self.client_for([]))
        record = await tracker.check_status("abc12345", "p1")
        assert record.status is DeploymentStatus.PENDING
        assert record.message == "Deployment not found - may still be initializing"

    @pytest.mark.asyncio
    async def test_default_project_id(self):
        tracker = DeploymentTracker(
            InMemoryDeploymentStore(),
            client=self.client_for([{"uid": "d", "state": "BUILDING", "meta": {"githubCommitSha": "abc12345"}}]),
            default_project_id="p9",
        )
        record = await tracker.check_status("abc12345")
        assert record.project_id == "p9"
        assert record.status is DeploymentStatus.BUILDING


class TestFindMatchingDeployment:
    def test_prefix_match(self):
        deployments = [{"meta": {"githubCommitSha": "abc12345deadbeef"}}]
        assert find_matching_deployment(deployments, "abc12345") is deployments[0]

    def test_skips_without_sha(self):
        deployments = [{"meta": {}}, {"meta": {"githubCommitSha": "abc"}}]
        assert find_matching_deployment(deployments, "abc") is deployments[1]

    def test_no_match(self):
        assert find_matching_deployment([{"meta": {"githubCommitSha": "fff"}}], "abc12345") is None
