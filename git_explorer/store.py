"""In-memory state for repositories, commits and favorite commits."""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import TypeAdapter, ValidationError

from .models import Commit, CommitDetail, FavoriteCommit, Repository
from .provider import (
    GitProvider,
    NotFoundError,
    RateLimitedError,
    RequestFailedError,
    TransportError,
)
from .storage import Storage

LOGGER = logging.getLogger(__name__)

FAVORITES_STORAGE_KEY = "git_explorer_favorites"

SortOrder = Literal["newest", "oldest"]

_FAVORITES = TypeAdapter(list[FavoriteCommit])


class RepositoryStore:
    """Holds what the user is browsing and the favorites they pinned.

    Fetches go through ``provider``; failures are caught at each action
    and surface only through :attr:`error`. Favorites are written through
    to ``storage`` on every change.

    Every load is stamped with a generation number per collection. When a
    load of the same kind is started before an earlier one returns, the
    earlier response is dropped once it arrives. Resets advance the
    generation of the collections they clear, so nothing loaded before a
    reset can land after it.
    """

    def __init__(self, provider: GitProvider, storage: Storage, *, per_page: int = 10) -> None:
        self._provider = provider
        self._storage = storage
        self._generations = {"repositories": 0, "commits": 0, "detail": 0}
        self._in_flight = 0

        self.per_page = per_page
        self.repositories: list[Repository] = []
        self.commits: list[Commit] = []
        self.favorites: list[FavoriteCommit] = self._load_favorites()
        self.current_commit_detail: CommitDetail | None = None
        self.selected_repo: Repository | None = None
        self.current_username = ""
        self.error: str | None = None
        self.current_commit_page = 1
        self.current_repo_page = 1

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    # Fetching

    async def load_repositories(self, username: str, page: int = 1) -> None:
        generation = self._start("repositories")
        self.current_username = username
        self.current_repo_page = page
        try:
            repositories = await self._provider.fetch_repositories(username, page, self.per_page)
        except Exception as exc:
            if self._is_current("repositories", generation):
                self.repositories = []
                self._handle_error(exc, "Failed to load repositories")
        else:
            if self._is_current("repositories", generation):
                self.repositories = list(repositories)
        finally:
            self._in_flight -= 1

    async def load_commits(self, username: str, repo_name: str, page: int = 1) -> None:
        generation = self._start("commits")
        self.current_commit_page = page
        try:
            commits = await self._provider.fetch_commits(username, repo_name, page, self.per_page)
        except Exception as exc:
            if self._is_current("commits", generation):
                self.commits = []
                self._handle_error(exc, "Failed to load commits")
        else:
            if self._is_current("commits", generation):
                self.commits = list(commits)
        finally:
            self._in_flight -= 1

    async def load_commit_detail(self, username: str, repo_name: str, sha: str) -> None:
        generation = self._start("detail")
        try:
            detail = await self._provider.fetch_commit_detail(username, repo_name, sha)
        except Exception as exc:
            if self._is_current("detail", generation):
                self.current_commit_detail = None
                self._handle_error(exc, "Failed to load commit details")
        else:
            if self._is_current("detail", generation):
                self.current_commit_detail = detail
        finally:
            self._in_flight -= 1

    async def next_commit_page(self) -> None:
        if self.selected_repo is None or not self.has_more_commits:
            return
        await self.load_commits(self._commit_owner(), self.selected_repo.name, self.current_commit_page + 1)

    async def previous_commit_page(self) -> None:
        if self.selected_repo is None or self.current_commit_page <= 1:
            return
        await self.load_commits(self._commit_owner(), self.selected_repo.name, self.current_commit_page - 1)

    async def first_commit_page(self) -> None:
        if self.selected_repo is None or self.current_commit_page == 1:
            return
        await self.load_commits(self._commit_owner(), self.selected_repo.name, 1)

    async def next_repository_page(self) -> None:
        if not self.current_username or not self.has_more_repos:
            return
        await self.load_repositories(self.current_username, self.current_repo_page + 1)

    async def previous_repository_page(self) -> None:
        if not self.current_username or self.current_repo_page <= 1:
            return
        await self.load_repositories(self.current_username, self.current_repo_page - 1)

    async def select_repository(self, repo: Repository) -> None:
        """Switch to ``repo``, dropping every commit loaded for the previous one."""

        self.selected_repo = repo
        self.reset_commits()
        await self.load_commits(self._commit_owner(), repo.name, 1)

    # Favorites

    def add_to_favorites(self, commit: Commit, repo_name: str, username: str) -> None:
        if self.is_favorite(commit.sha):
            return
        self.favorites.insert(0, FavoriteCommit.capture(commit, repo_name, username))
        self.persist_favorites()

    def remove_from_favorites(self, sha: str) -> None:
        self.favorites = [favorite for favorite in self.favorites if favorite.sha != sha]
        self.persist_favorites()

    def toggle_favorite(self, commit: Commit, repo_name: str, username: str) -> None:
        if self.is_favorite(commit.sha):
            self.remove_from_favorites(commit.sha)
        else:
            self.add_to_favorites(commit, repo_name, username)

    def clear_all_favorites(self) -> None:
        self.favorites = []
        self.persist_favorites()

    def persist_favorites(self) -> None:
        self._storage.set(FAVORITES_STORAGE_KEY, self.favorites)

    # Derived views

    def sorted_commits(self, order: SortOrder = "newest") -> list[Commit]:
        """Return the loaded commits ordered by author date.

        The sort is stable, so commits sharing a timestamp keep the order
        the API returned them in.
        """

        if order not in ("newest", "oldest"):
            raise ValueError(f"Unknown sort order: {order!r}")
        return sorted(
            self.commits,
            key=lambda commit: commit.authored_at.timestamp(),
            reverse=order == "newest",
        )

    def is_favorite(self, sha: str) -> bool:
        return any(favorite.sha == sha for favorite in self.favorites)

    @property
    def favorites_by_repo(self) -> dict[str, list[FavoriteCommit]]:
        grouped: dict[str, list[FavoriteCommit]] = {}
        for favorite in self.favorites:
            grouped.setdefault(favorite.repo_name, []).append(favorite)
        return grouped

    @property
    def favorites_count(self) -> int:
        return len(self.favorites)

    @property
    def has_more_commits(self) -> bool:
        # A full page suggests another one; the API does not report totals.
        return len(self.commits) >= self.per_page

    @property
    def has_more_repos(self) -> bool:
        return len(self.repositories) >= self.per_page

    # Resets

    def reset_commits(self) -> None:
        self._invalidate("commits", "detail")
        self.commits = []
        self.current_commit_page = 1
        self.current_commit_detail = None

    def reset_repositories(self) -> None:
        self._invalidate("repositories")
        self.repositories = []
        self.current_repo_page = 1
        self.selected_repo = None

    def reset_all(self) -> None:
        self.reset_repositories()
        self.reset_commits()
        self.current_username = ""
        self.error = None

    def clear_error(self) -> None:
        self.error = None

    # Internals

    def _start(self, kind: str) -> int:
        self._generations[kind] += 1
        self._in_flight += 1
        self.error = None
        return self._generations[kind]

    def _invalidate(self, *kinds: str) -> None:
        # Loads already in flight for these collections will be dropped.
        for kind in kinds:
            self._generations[kind] += 1

    def _is_current(self, kind: str, generation: int) -> bool:
        if self._generations[kind] == generation:
            return True
        LOGGER.debug("Discarding superseded %s response (generation %s)", kind, generation)
        return False

    def _commit_owner(self) -> str:
        if self.current_username or self.selected_repo is None:
            return self.current_username
        return self.selected_repo.owner.login

    def _handle_error(self, exc: Exception, fallback: str) -> None:
        if isinstance(exc, (NotFoundError, RateLimitedError, RequestFailedError)):
            message = str(exc) or fallback
            LOGGER.warning("%s: %s", fallback, message)
        elif isinstance(exc, TransportError):
            message = fallback
            LOGGER.warning("%s: %s", fallback, exc)
        else:
            message = fallback
            LOGGER.error("%s: unexpected error", fallback, exc_info=exc)
        self.error = message

    def _load_favorites(self) -> list[FavoriteCommit]:
        stored = self._storage.get(FAVORITES_STORAGE_KEY)
        if stored is None:
            return []
        try:
            return _FAVORITES.validate_python(stored)
        except ValidationError as exc:
            LOGGER.warning("Ignoring malformed favorites record: %s", exc)
            return []


__all__ = ["FAVORITES_STORAGE_KEY", "RepositoryStore", "SortOrder"]
