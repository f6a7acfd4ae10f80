"""Vercel REST API client.

Only the deployment listing endpoint is needed: it backs the pull-based status
check used before any webhook has arrived.
"""

from typing import Any

import httpx

from sitepublisher.core.exceptions import TransportError
from sitepublisher.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_API_URL = "https://api.vercel.com"


class VercelClient:
    """Thin async wrapper around the Vercel deployments API."""

    def __init__(
        self,
        token: str,
        *,
        team_id: str | None = None,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token
        self.team_id = team_id
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.token)

    async def list_deployments(self, project_id: str, *, limit: int = 10) -> list[dict[str, Any]]:
        """Return the most recent deployments of a project, newest first."""
        params: dict[str, Any] = {"projectId": project_id, "limit": limit}
        if self.team_id:
            params["teamId"] = self.team_id

        headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(
                base_url=self.api_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.get("/v6/deployments", params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.error("vercel_client.request_failed", error=str(e))
            raise TransportError(f"Vercel API request failed: {e}") from e

        if response.status_code != 200:
            logger.error("vercel_client.api_error", status_code=response.status_code)
            raise TransportError(f"Vercel API error: {response.status_code}")

        deployments = response.json().get("deployments") or []
        logger.debug("vercel_client.deployments_listed", project_id=project_id, count=len(deployments))
        return deployments
