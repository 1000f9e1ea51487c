"""Domain models shared by the provider and the store."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt


UTC = timezone.utc


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class Owner(_Frozen):
    login: str


class Repository(_Frozen):
    """A repository as listed by the hosting API."""

    id: int
    name: str
    description: str | None = None
    owner: Owner
    html_url: str = ""
    updated_at: datetime | None = None
    stargazers_count: NonNegativeInt = 0
    language: str | None = None


class CommitAuthor(_Frozen):
    name: str
    date: datetime


class CommitData(_Frozen):
    message: str
    author: CommitAuthor


class UserProfile(_Frozen):
    login: str
    avatar_url: str = ""


class Commit(_Frozen):
    """A commit as listed by the hosting API.

    ``author`` is the resolved user profile and is ``None`` when the
    commit email does not map to an account.
    """

    sha: str
    commit: CommitData
    author: UserProfile | None = None
    html_url: str = ""

    @property
    def authored_at(self) -> datetime:
        return self.commit.author.date


class CommitStats(_Frozen):
    total: NonNegativeInt = 0
    additions: NonNegativeInt = 0
    deletions: NonNegativeInt = 0


class FileChange(_Frozen):
    filename: str
    status: str
    additions: NonNegativeInt = 0
    deletions: NonNegativeInt = 0
    changes: NonNegativeInt = 0
    patch: str | None = None


class CommitDetail(Commit):
    """A commit together with its diff statistics."""

    stats: CommitStats | None = None
    files: list[FileChange] | None = None


class FavoriteCommit(_Frozen):
    """A commit pinned by the user, with where it came from.

    Field aliases keep the persisted record in camelCase.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    commit: Commit
    repo_name: str = Field(alias="repoName")
    username: str
    repo_url: str = Field(alias="repoUrl")
    commit_url: str = Field(alias="commitUrl")
    saved_at: datetime = Field(alias="savedAt")

    @property
    def sha(self) -> str:
        return self.commit.sha

    @classmethod
    def capture(
        cls,
        commit: Commit,
        repo_name: str,
        username: str,
        saved_at: datetime | None = None,
    ) -> "FavoriteCommit":
        """Snapshot ``commit`` as a favorite saved now.

        A :class:`CommitDetail` is narrowed to the plain commit fields.
        """

        snapshot = Commit.model_validate(commit.model_dump(include=set(Commit.model_fields)))
        return cls(
            commit=snapshot,
            repo_name=repo_name,
            username=username,
            repo_url=f"https://github.com/{username}/{repo_name}",
            commit_url=snapshot.html_url,
            saved_at=(saved_at or datetime.now(tz=UTC)).astimezone(UTC),
        )


__all__ = [
    "Commit",
    "CommitAuthor",
    "CommitData",
    "CommitDetail",
    "CommitStats",
    "FavoriteCommit",
    "FileChange",
    "Owner",
    "Repository",
    "UserProfile",
]
