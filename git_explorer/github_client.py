"""HTTP client for GitHub's REST API."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from .config import GitHubSettings
from .models import Commit, CommitDetail, Repository
from .provider import (
    NotFoundError,
    RateLimitedError,
    RequestFailedError,
    TransportError,
)

LOGGER = logging.getLogger(__name__)

_REPOSITORIES = TypeAdapter(list[Repository])
_COMMITS = TypeAdapter(list[Commit])


class GitHubProvider:
    """Light-weight REST client implementing :class:`GitProvider`."""

    def __init__(self, settings: GitHubSettings | None = None, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings or GitHubSettings()
        self._base_url = self._settings.api_url.rstrip("/")
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "GitHubProvider":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        await self.close()

    async def close(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        # Created on first use so that a provider nobody calls holds no connections.
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    "Accept": "application/vnd.github+json",
                    "User-Agent": "git-explorer",
                },
                timeout=self._settings.request_timeout,
            )
        return self._client

    async def fetch_repositories(self, username: str, page: int = 1, per_page: int = 10) -> list[Repository]:
        payload = await self._get(
            f"/users/{username}/repos",
            {"page": page, "per_page": per_page, "sort": "updated"},
            not_found="User not found",
        )
        return _validate(_REPOSITORIES, payload)

    async def fetch_commits(self, username: str, repo: str, page: int = 1, per_page: int = 10) -> list[Commit]:
        payload = await self._get(
            f"/repos/{username}/{repo}/commits",
            {"page": page, "per_page": per_page},
            not_found="Repository not found",
        )
        return _validate(_COMMITS, payload)

    async def fetch_commit_detail(self, username: str, repo: str, sha: str) -> CommitDetail:
        payload = await self._get(f"/repos/{username}/{repo}/commits/{sha}", None, not_found="Resource not found")
        try:
            return CommitDetail.model_validate(payload)
        except ValidationError as exc:
            raise TransportError(f"Unexpected commit payload: {exc}") from exc

    async def _get(self, path: str, params: dict[str, Any] | None, *, not_found: str) -> Any:
        url = f"{self._base_url}{path}"
        LOGGER.debug("GET %s params=%s", url, params)
        try:
            response = await self._http().get(url, params=params)
        except httpx.RequestError as exc:
            LOGGER.warning("GitHub request error for %s: %s", path, exc)
            raise TransportError(str(exc)) from exc

        status = response.status_code
        if status == 404:
            raise NotFoundError(not_found)
        if status in {403, 429}:
            LOGGER.warning("GitHub rate limited on %s (HTTP %s)", path, status)
            raise RateLimitedError()
        if not response.is_success:
            LOGGER.warning("GitHub HTTP %s for %s", status, path)
            raise RequestFailedError(status)

        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(f"Invalid JSON from {path}") from exc


def _validate(adapter: TypeAdapter, payload: Any) -> Any:
    try:
        return adapter.validate_python(payload)
    except ValidationError as exc:
        raise TransportError(f"Unexpected payload: {exc}") from exc


def create_git_provider(settings: GitHubSettings | None = None) -> GitHubProvider:
    """Return the default provider. Callers should only rely on :class:`GitProvider`."""

    return GitHubProvider(settings)


__all__ = ["GitHubProvider", "create_git_provider"]
