"""Pytest configuration and fixtures."""

import copy
import shutil
import subprocess
from pathlib import Path
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from sitepublisher.api.deps import get_detector, get_publisher, get_tracker
from sitepublisher.core.detection import ConfigDetector
from sitepublisher.core.publisher import RepositoryPublisher
from sitepublisher.core.tracker import DeploymentTracker, InMemoryDeploymentStore
from sitepublisher.main import app

WEBHOOK_SECRET = "test-webhook-secret"

SAMPLE_CONFIG: dict[str, Any] = {
    "site": {
        "title": "Cap Central",
        "description": "Caps for every head",
    },
    "theme": {
        "primaryColor": "#1E40AF",
        "secondaryColor": "#F59E0B",
    },
    "navigation": {
        "menu": [
            {"label": "Home", "href": "/"},
            {"label": "Shop", "href": "/shop"},
        ]
    },
    "products": [
        {"id": "cap-1", "name": "Classic Cap", "price": 24.99, "inStock": True},
    ],
}


def run_git(*args: str, cwd: Path) -> str:
    result = subprocess.run(
        ["git", "-c", "commit.gpgsign=false", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout


def make_remote(root: Path, *, with_config_dir: bool = True) -> Path:
    """Create a bare repository shaped like the website template."""
    bare = root / "remote.git"
    seed = root / "seed"
    run_git("init", "--bare", str(bare), cwd=root)
    run_git("init", str(seed), cwd=root)

    (seed / "package.json").write_text('{"name": "site-template"}\n')
    if with_config_dir:
        config_dir = seed / "src" / "config"
        config_dir.mkdir(parents=True)
        (config_dir / "siteConfig.ts").write_text("export default {};\n")

    run_git("add", "-A", cwd=seed)
    run_git(
        "-c", "user.name=Seed", "-c", "user.email=seed@example.com",
        "commit", "-m", "Initial template",
        cwd=seed,
    )
    run_git("push", str(bare), "HEAD:refs/heads/main", cwd=seed)
    run_git("symbolic-ref", "HEAD", "refs/heads/main", cwd=bare)
    return bare


class RemoteRepo:
    """A local bare repository standing in for the template repository."""

    def __init__(self, path: Path):
        self.path = path

    @property
    def url(self) -> str:
        return str(self.path)

    def file(self, path: str = "src/config/siteConfig.ts") -> str:
        return run_git("--git-dir", str(self.path), "show", f"main:{path}", cwd=self.path.parent)

    def commit_count(self) -> int:
        return int(self._git("rev-list", "--count", "main").strip())

    def last_commit_message(self) -> str:
        return self._git("log", "-1", "--pretty=%s", "main").strip()

    def head_sha(self) -> str:
        return self._git("rev-parse", "main").strip()

    def _git(self, *args: str) -> str:
        return run_git("--git-dir", str(self.path), *args, cwd=self.path.parent)


@pytest.fixture
def sample_config() -> dict[str, Any]:
    """A fresh copy of a valid configuration."""
    return copy.deepcopy(SAMPLE_CONFIG)


@pytest.fixture
def remote_repo(tmp_path: Path) -> RemoteRepo:
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    return RemoteRepo(make_remote(tmp_path))


@pytest.fixture
def flat_remote_repo(tmp_path: Path) -> RemoteRepo:
    """Template repository missing the src/config directory."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    root = tmp_path / "flat"
    root.mkdir()
    return RemoteRepo(make_remote(root, with_config_dir=False))


@pytest.fixture
def publisher(remote_repo: RemoteRepo, tmp_path: Path) -> RepositoryPublisher:
    return RepositoryPublisher(
        remote_repo.url,
        tmp_path / "workspace",
        website_url="https://caps.example.com/",
        timeout=60,
    )


@pytest.fixture
def tracker() -> DeploymentTracker:
    return DeploymentTracker(
        InMemoryDeploymentStore(),
        webhook_secret=WEBHOOK_SECRET,
        signature_algorithm="sha1",
    )


@pytest.fixture
def detector() -> ConfigDetector:
    return ConfigDetector()


@pytest.fixture
def broken_publisher(tmp_path: Path) -> RepositoryPublisher:
    """Publisher whose remote does not exist, so every clone fails."""
    return RepositoryPublisher(str(tmp_path / "missing.git"), tmp_path / "workspace")


@pytest.fixture
async def client(tracker: DeploymentTracker, detector: ConfigDetector, broken_publisher: RepositoryPublisher) -> AsyncClient:
    """Async test client with fresh tracker, detector and publisher."""
    app.dependency_overrides[get_tracker] = lambda: tracker
    app.dependency_overrides[get_detector] = lambda: detector
    app.dependency_overrides[get_publisher] = lambda: broken_publisher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
