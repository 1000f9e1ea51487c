"""The capability the store uses to reach a hosting API, and how it fails."""

from __future__ import annotations

from typing import Protocol

from .models import Commit, CommitDetail, Repository


RATE_LIMIT_MESSAGE = "API rate limit exceeded. Please try again later."


class GitProviderError(RuntimeError):
    """Base class for failures raised by a :class:`GitProvider`."""


class NotFoundError(GitProviderError):
    """The requested user, repository or commit does not exist."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message)


class RateLimitedError(GitProviderError):
    """The API refused the request because the quota is spent."""

    def __init__(self, message: str = RATE_LIMIT_MESSAGE) -> None:
        super().__init__(message)


class RequestFailedError(GitProviderError):
    """Any other non-success response."""

    def __init__(self, status_code: int, message: str | None = None) -> None:
        super().__init__(message or f"Request failed with status {status_code}")
        self.status_code = status_code


class TransportError(GitProviderError):
    """No usable response was received."""


class GitProvider(Protocol):
    """Fetch operations against a source-control hosting API."""

    async def fetch_repositories(self, username: str, page: int = 1, per_page: int = 10) -> list[Repository]:
        ...

    async def fetch_commits(self, username: str, repo: str, page: int = 1, per_page: int = 10) -> list[Commit]:
        ...

    async def fetch_commit_detail(self, username: str, repo: str, sha: str) -> CommitDetail:
        ...


__all__ = [
    "GitProvider",
    "GitProviderError",
    "NotFoundError",
    "RATE_LIMIT_MESSAGE",
    "RateLimitedError",
    "RequestFailedError",
    "TransportError",
]
