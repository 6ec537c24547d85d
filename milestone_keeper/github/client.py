"""
GitHub REST client for milestone operations.
Thin async wrapper over httpx; no retries, failures surface as GitHubAPIError.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from milestone_keeper.processing.models import RemoteMilestone
from milestone_keeper.utils.config import GitHubSettings, require_token

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 100
GITHUB_ACCEPT = "application/vnd.github+json"


class GitHubAPIError(Exception):
    """Raised when a GitHub call fails at the transport or HTTP level."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class GitHubClient:
    """Async GitHub client covering list/create/update of repository milestones."""

    def __init__(
        self,
        token: str,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the client.

        Args:
            token: GitHub token with issues write access
            api_url: REST API base URL (GitHub Enterprise uses its own)
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.api_url = api_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.api_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": GITHUB_ACCEPT,
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=timeout,
            transport=transport,
        )
        logger.info(f"GitHub client initialized for {self.api_url}")

    @classmethod
    def from_settings(cls, settings: GitHubSettings) -> "GitHubClient":
        return cls(
            token=require_token(settings),
            api_url=settings.api_url,
            timeout=settings.timeout,
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"GitHub request {method} {path} failed: {e}")
            raise GitHubAPIError(f"{method} {path} failed: {e}") from e

        if response.is_error:
            try:
                detail = response.json().get("message", response.text)
            except (ValueError, AttributeError):
                detail = response.text
            logger.error(f"GitHub {method} {path} returned {response.status_code}: {detail}")
            raise GitHubAPIError(
                f"{method} {path} returned {response.status_code}: {detail}",
                status_code=response.status_code,
            )

        return response.json() if response.content else None

    async def list_milestones_for_repo(
        self,
        owner: str,
        repo: str,
        page: int,
        per_page: int = DEFAULT_PER_PAGE,
        state: str = "open"
    ) -> List[RemoteMilestone]:
        """Fetch one page of milestones; GitHub only returns open ones by default."""
        data = await self._request(
            "GET",
            f"/repos/{owner}/{repo}/milestones",
            params={"state": state, "per_page": per_page, "page": page},
        )
        return [RemoteMilestone.model_validate(item) for item in data or []]

    async def update_milestone(
        self,
        owner: str,
        repo: str,
        number: int,
        state: str = "closed"
    ) -> None:
        await self._request(
            "PATCH",
            f"/repos/{owner}/{repo}/milestones/{number}",
            json={"state": state},
        )

    async def create_milestone(
        self,
        owner: str,
        repo: str,
        title: str,
        description: str,
        due_on: Optional[str] = None
    ) -> RemoteMilestone:
        payload: Dict[str, Any] = {"title": title, "description": description}
        if due_on:
            payload["due_on"] = due_on
        data = await self._request("POST", f"/repos/{owner}/{repo}/milestones", json=payload)
        return RemoteMilestone.model_validate(data)
