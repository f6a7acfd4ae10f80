"""Repository publisher.

Clones the website template repository into a throwaway workspace, rewrites
the site configuration module, and commits and pushes it so the build
provider redeploys the site. The workspace never outlives a publish call.
"""

import asyncio
import copy
import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from urllib.parse import quote

from sitepublisher.config import DEFAULT_WEBSITE_URL, Settings
from sitepublisher.core.exceptions import (
    ConfigValidationError,
    SitePublisherError,
    StructureMismatchError,
    TransportError,
)
from sitepublisher.core.validation import missing_sections
from sitepublisher.generators.site_config import render_site_config_module
from sitepublisher.models.site_config import PublishResult, PublishState
from sitepublisher.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_COMMIT_MESSAGE = "Update site configuration from AI generator"

# One lock per resolved workspace path; a clone cannot be shared.
_workspace_locks: dict[str, asyncio.Lock] = {}


def _lock_for(workspace: Path) -> asyncio.Lock:
    key = str(workspace.resolve())
    lock = _workspace_locks.get(key)
    if lock is None:
        lock = _workspace_locks[key] = asyncio.Lock()
    return lock


def build_remote_url(host: str, owner: str, name: str, token: str | None = None) -> str:
    """HTTPS clone URL, with the token embedded as credentials when given."""
    auth = f"{quote(token, safe='')}@" if token else ""
    return f"https://{auth}{host}/{owner}/{name}.git"


class RepositoryPublisher:
    """Publishes site configurations to the template repository."""

    def __init__(
        self,
        remote_url: str,
        workspace_dir: str | Path,
        *,
        config_path: str = "src/config/siteConfig.ts",
        branch: str = "main",
        author_name: str = "siteomatic-bot",
        author_email: str = "siteomatic-bot@users.noreply.github.com",
        website_url: str = DEFAULT_WEBSITE_URL,
        timeout: float | None = None,
        secrets: tuple[str, ...] = (),
    ):
        self.remote_url = remote_url
        self.workspace = Path(workspace_dir)
        self.config_path = Path(config_path)
        self.branch = branch
        self.author_name = author_name
        self.author_email = author_email
        self.website_url = website_url or DEFAULT_WEBSITE_URL
        self.timeout = timeout
        self._secrets = tuple(s for s in secrets if s)
        self.state = PublishState.IDLE

    @classmethod
    def from_settings(cls, settings: Settings) -> "RepositoryPublisher":
        remote_url = settings.template_repo_url or build_remote_url(
            settings.github_host,
            settings.template_repo_owner,
            settings.template_repo_name,
            settings.github_token or None,
        )
        if not settings.github_token and not settings.template_repo_url:
            logger.warning("publisher.no_github_token", reason="push will likely be rejected")
        return cls(
            remote_url,
            settings.workspace_dir,
            config_path=settings.site_config_path,
            branch=settings.template_repo_branch,
            author_name=settings.git_author_name,
            author_email=settings.git_author_email,
            website_url=settings.website_url,
            timeout=settings.publish_timeout_seconds,
            secrets=(settings.github_token, quote(settings.github_token, safe="")),
        )

    async def publish(
        self,
        config: dict[str, Any],
        commit_message: str | None = None,
        *,
        timeout: float | None = None,
    ) -> PublishResult:
        """Clone, write, commit and push ``config``.

        Raises:
            ConfigValidationError: required sections are missing.
            StructureMismatchError: the repository lacks the config directory.
            TransportError: a git command failed or the publish timed out.
        """
        missing = missing_sections(config)
        if missing:
            raise ConfigValidationError(
                [f"Missing required property: {section}" for section in missing]
            )

        config = copy.deepcopy(config)
        message = commit_message.strip() if commit_message and commit_message.strip() else DEFAULT_COMMIT_MESSAGE
        timeout = timeout if timeout is not None else self.timeout

        async with _lock_for(self.workspace):
            self.state = PublishState.IDLE
            try:
                return await asyncio.wait_for(self._run(config, message), timeout)
            except asyncio.TimeoutError:
                self._transition(PublishState.ERROR)
                logger.error("publisher.timed_out", timeout=timeout)
                raise TransportError(f"Repository update timed out after {timeout} seconds") from None
            except SitePublisherError as e:
                self._transition(PublishState.ERROR)
                logger.error("publisher.failed", error=e.message, kind=e.kind.value)
                raise
            except OSError as e:
                self._transition(PublishState.ERROR)
                logger.error("publisher.failed", error=str(e))
                raise SitePublisherError(f"Repository update failed: {e}") from e
            finally:
                await self._cleanup()

    async def _run(self, config: dict[str, Any], commit_message: str) -> PublishResult:
        self._transition(PublishState.CLONING)
        if self.workspace.exists():
            logger.info("publisher.removing_stale_workspace", workspace=str(self.workspace))
            await asyncio.to_thread(shutil.rmtree, self.workspace)

        await self._git("clone", self.remote_url, str(self.workspace))
        logger.info("publisher.cloned", workspace=str(self.workspace))

        self._transition(PublishState.WRITING)
        target = self.workspace / self.config_path
        if not target.parent.is_dir():
            raise StructureMismatchError(str(self.config_path.parent))

        self._write_atomic(target, render_site_config_module(config))

        status = await self._git("status", "--porcelain", cwd=self.workspace)
        if not status.strip():
            logger.info("publisher.no_changes")
            self._transition(PublishState.DONE)
            return PublishResult(
                success=True,
                message="No changes to commit",
                no_changes=True,
                timestamp=_now_iso(),
                website_url=self.website_url,
            )

        self._transition(PublishState.COMMITTING)
        await self._git("config", "user.name", self.author_name, cwd=self.workspace)
        await self._git("config", "user.email", self.author_email, cwd=self.workspace)
        await self._git("add", "-A", cwd=self.workspace)
        await self._git("commit", "-m", commit_message, cwd=self.workspace)
        commit_sha = (await self._git("rev-parse", "HEAD", cwd=self.workspace)).strip()

        self._transition(PublishState.PUSHING)
        await self._git("push", "origin", f"HEAD:{self.branch}", cwd=self.workspace)

        self._transition(PublishState.DONE)
        logger.info(
            "publisher.pushed",
            branch=self.branch,
            commit=commit_sha[:8],
            commit_message=commit_message,
            website_url=self.website_url,
        )
        return PublishResult(
            success=True,
            message="Configuration updated successfully",
            commit_message=commit_message,
            commit_sha=commit_sha,
            no_changes=False,
            timestamp=_now_iso(),
            website_url=self.website_url,
        )

    async def _git(self, *args: str, cwd: Path | None = None) -> str:
        """Run a git command and return its stdout, raising TransportError on failure."""
        command = ["git", *args]
        display = self._mask(" ".join(command))
        env = os.environ.copy()
        env["GIT_TERMINAL_PROMPT"] = "0"

        logger.debug("publisher.git", command=display)
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(cwd) if cwd else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except OSError as e:
            raise TransportError(f"Could not run git: {e}", command=display) from e

        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            # Timed out or cancelled: do not leave git running in the workspace
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise

        stdout_text = stdout.decode(errors="replace") if stdout else ""
        stderr_text = self._mask(stderr.decode(errors="replace")) if stderr else ""

        if process.returncode != 0:
            preview = stderr_text.strip() or stdout_text.strip() or f"return code {process.returncode}"
            raise TransportError(
                f"git {args[0]} failed: {preview[:500]}",
                command=display,
                returncode=process.returncode,
                stderr=stderr_text[:1000],
            )
        return stdout_text

    async def _cleanup(self) -> None:
        if not self.workspace.exists():
            return
        try:
            await asyncio.to_thread(shutil.rmtree, self.workspace)
            logger.info("publisher.cleanup_completed", workspace=str(self.workspace))
        except OSError as e:
            logger.error("publisher.cleanup_failed", workspace=str(self.workspace), error=str(e))

    @staticmethod
    def _write_atomic(target: Path, content: str) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".siteConfig-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
                handle.write(content)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _transition(self, state: PublishState) -> None:
        logger.debug("publisher.state", previous=self.state.value, state=state.value)
        self.state = state

    def _mask(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, "***")
        return text


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
