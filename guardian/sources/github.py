"""
github.py - Workflow source and read-only client for the GitHub REST API

Only the handful of read-only endpoints guardian needs are wrapped here:
repository listing, repository details, branch protection and contents.
"""

import asyncio
import base64
import binascii
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from ..utils.version import __version__
from .base import WORKFLOWS_PATH, RetrievalError, WorkflowFile, WorkflowSource

DEFAULT_API_URL = "https://api.github.com"
PER_PAGE = 100


class GitHubAPIError(RetrievalError):
    """Raised when a GitHub API request fails"""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GitHubClient:
    """Minimal asynchronous GitHub REST client"""

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": f"repo-guardian/{__version__}",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise GitHubAPIError(f"Failed request to {path}: {e}") from e

        if response.status_code >= 400:
            detail = response.text[:400]
            raise GitHubAPIError(
                f"HTTP {response.status_code} for {path}: {detail}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise GitHubAPIError(
                f"Invalid JSON in response to {path}: {e}", status_code=response.status_code
            ) from e

    async def list_repositories(self, owner: str) -> List[Dict[str, Any]]:
        """
        List every repository of an organization, falling back to a user account

        Args:
            owner: Organization or user login

        Returns:
            Repository payloads in API order
        """
        scope = "orgs"
        try:
            first_page = await self._list_page(scope, owner, 1)
        except GitHubAPIError as e:
            # Personal accounts return 404 on /orgs/{owner}/repos.
            if e.status_code != 404:
                raise
            scope = "users"
            first_page = await self._list_page(scope, owner, 1)

        repositories = list(first_page)
        page = 1
        page_data = first_page
        while len(page_data) >= PER_PAGE:
            page += 1
            page_data = await self._list_page(scope, owner, page)
            repositories.extend(page_data)

        return repositories

    async def _list_page(self, scope: str, owner: str, page: int) -> List[Dict[str, Any]]:
        data = await self._get(
            f"/{scope}/{owner}/repos",
            params={"type": "all", "per_page": PER_PAGE, "page": page},
        )
        if not isinstance(data, list):
            raise GitHubAPIError("GitHub API returned invalid repos payload")
        return data

    async def get_repository(self, owner: str, repo: str) -> Dict[str, Any]:
        return await self._get(f"/repos/{owner}/{repo}")

    async def get_branch_protection(
        self, owner: str, repo: str, branch: str
    ) -> Optional[Dict[str, Any]]:
        """Return the protection of a branch, or None when it is not protected"""
        try:
            return await self._get(f"/repos/{owner}/{repo}/branches/{branch}/protection")
        except GitHubAPIError as e:
            if e.status_code == 404:
                return None
            raise

    async def get_contents(self, owner: str, repo: str, path: str) -> Any:
        return await self._get(f"/repos/{owner}/{repo}/contents/{path}")


def decode_content(payload: Any) -> bytes:
    """
    Decode the base64 body of a contents API file payload

    Raises:
        GitHubAPIError: If the payload carries no decodable file content, as
            for files above the API size limit (encoding "none")
    """
    if not isinstance(payload, dict) or "content" not in payload:
        raise GitHubAPIError("Contents payload has no file content")
    if payload.get("encoding", "base64") != "base64":
        raise GitHubAPIError(f"Unsupported content encoding: {payload.get('encoding')}")

    try:
        return base64.b64decode(payload["content"] or "")
    except (binascii.Error, ValueError) as e:
        raise GitHubAPIError(f"Invalid base64 content for {payload.get('path')}: {e}") from e


class GitHubWorkflowSource(WorkflowSource):
    """Reads workflows of repositories owned by one GitHub organization or user"""

    def __init__(self, client: GitHubClient, owner: str, concurrency: int = 4) -> None:
        if not owner:
            raise ValueError("GitHub workflow source requires an owner")
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        self.client = client
        self.owner = owner
        self.concurrency = concurrency

    async def fetch_workflows(self, repository_id: str) -> List[WorkflowFile]:
        try:
            listing = await self.client.get_contents(self.owner, repository_id, WORKFLOWS_PATH)
        except GitHubAPIError as e:
            if e.status_code == 404:
                raise RetrievalError("No workflows directory found or not a directory") from e
            raise

        if not isinstance(listing, list):
            raise RetrievalError("No workflows directory found or not a directory")
        if not all(isinstance(entry, dict) for entry in listing):
            raise RetrievalError("Unexpected entry in workflows directory listing")

        semaphore = asyncio.Semaphore(self.concurrency)

        async def _fetch(entry: Dict[str, Any]) -> WorkflowFile:
            name = entry.get("name", "")
            path = entry.get("path", f"{WORKFLOWS_PATH}/{name}")
            entry_type = entry.get("type", "file")

            listed = WorkflowFile(name=name, path=path, type=entry_type)
            if not listed.is_workflow:
                return listed

            async with semaphore:
                payload = await self.client.get_contents(self.owner, repository_id, path)

            try:
                content = decode_content(payload)
            except GitHubAPIError as e:
                return WorkflowFile(name=name, path=path, type=entry_type, error=str(e))

            return WorkflowFile(name=name, content=content, path=path, type=entry_type)

        tasks = [asyncio.ensure_future(_fetch(entry)) for entry in listing]
        try:
            # gather keeps the listing order regardless of completion order
            files = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        logger.debug("{} workflow entries fetched for {}/{}", len(files), self.owner, repository_id)
        return list(files)
