"""GitHub REST API client for repository creation and file writes."""

import base64
import logging
from typing import Any
from urllib.parse import quote

import httpx

from gitty.lib.exceptions import HostingError, RepositoryNameExistsError
from gitty.models.repository import RepositoryIdentity

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"


def parse_retry_after(response: httpx.Response) -> int | None:
    """Read a Retry-After header given in seconds."""
    value = response.headers.get("retry-after")
    if value is None:
        return None
    try:
        return max(int(value), 0)
    except ValueError:
        return None


class GitHubClient:
    """
    Minimal async GitHub client authenticated with a user access token.

    Attributes:
        base_url: GitHub API base URL (default: https://api.github.com)
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = GITHUB_API_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            access_token: GitHub OAuth or personal access token
            base_url: GitHub API base URL
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests inject httpx.MockTransport)
        """
        self._access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._access_token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    async def _request(
        self, method: str, path: str, json: dict[str, Any] | None = None
    ) -> httpx.Response:
        """
        Issue one API request.

        Raises:
            HostingError: On network failures (status_code None)
        """
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                return await client.request(method, url, headers=self._headers(), json=json)
        except httpx.HTTPError as e:
            logger.error(f"GitHub {method} {path} failed: {e}")
            raise HostingError(f"GitHub request failed: {e}", original_error=e) from e

    def _error(self, response: httpx.Response, action: str) -> HostingError:
        try:
            detail = response.json().get("message") or response.text
        except (ValueError, AttributeError):
            detail = response.text
        return HostingError(
            f"Failed to {action}: HTTP {response.status_code} {detail}".rstrip(),
            status_code=response.status_code,
            host_retry_after=parse_retry_after(response),
        )

    @staticmethod
    def _contents_path(repo: RepositoryIdentity, path: str) -> str:
        return f"/repos/{repo.owner}/{repo.name}/contents/{quote(path, safe='/')}"

    async def create_repository(
        self, name: str, description: str, private: bool = False
    ) -> RepositoryIdentity:
        """
        Create a repository with an initial commit.

        Raises:
            RepositoryNameExistsError: On HTTP 422 (name taken or invalid)
            HostingError: On any other failure
        """
        payload = {
            "name": name,
            "description": description,
            "private": private,
            "auto_init": True,
        }
        response = await self._request("POST", "/user/repos", json=payload)

        if response.status_code == 422:
            raise RepositoryNameExistsError(name)
        if response.status_code >= 400:
            raise self._error(response, f"create repository '{name}'")

        repo = RepositoryIdentity.from_api(response.json())
        logger.info(f"Created repository {repo.full_name}")
        return repo

    async def get_file_sha(self, repo: RepositoryIdentity, path: str) -> str | None:
        """Return the blob sha of ``path``, or None if the file does not exist."""
        response = await self._request("GET", self._contents_path(repo, path))
        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise self._error(response, f"read {path}")

        data = response.json()
        if isinstance(data, dict):
            return data.get("sha")
        return None

    async def write_file(
        self, repo: RepositoryIdentity, path: str, content: str, message: str | None = None
    ) -> str:
        """
        Create or update a file on the default branch.

        Existing files are updated in place using their current sha.

        Returns:
            Sha of the resulting commit
        """
        sha = await self.get_file_sha(repo, path)
        payload: dict[str, Any] = {
            "message": message or (f"Update {path}" if sha else f"Add {path}"),
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
        }
        if sha:
            payload["sha"] = sha

        response = await self._request("PUT", self._contents_path(repo, path), json=payload)
        if response.status_code >= 400:
            raise self._error(response, f"write {path}")

        data = response.json()
        return (data.get("commit") or {}).get("sha", "")

    async def update_description(self, repo: RepositoryIdentity, description: str) -> None:
        response = await self._request(
            "PATCH", f"/repos/{repo.owner}/{repo.name}", json={"description": description}
        )
        if response.status_code >= 400:
            raise self._error(response, "update repository description")
