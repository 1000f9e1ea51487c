"""Application configuration helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, PositiveInt


DEFAULT_API_URL = "https://api.github.com"
DEFAULT_DATA_DIR = Path.home() / ".git_explorer"


class GitHubSettings(BaseModel):
    """Configuration options for the GitHub REST API."""

    api_url: str = Field(default=DEFAULT_API_URL, description="Base URL of the REST API.")
    request_timeout: float = Field(default=30.0, ge=1.0, description="Timeout for a single HTTP request in seconds.")


class StorageSettings(BaseModel):
    """Where durable client state is written."""

    data_dir: Path = Field(default=DEFAULT_DATA_DIR, description="Directory holding one JSON file per key.")


class StoreSettings(BaseModel):
    """Tunable parameters for the repository store."""

    per_page: PositiveInt = Field(default=10, le=100, description="Number of items requested per page.")


class AppConfig(BaseModel):
    """Root configuration container."""

    github: GitHubSettings = Field(default_factory=GitHubSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None, overrides: dict[str, Any] | None = None) -> "AppConfig":
        """Construct a configuration object from environment variables."""

        env = env if env is not None else os.environ
        overrides = overrides or {}

        github = GitHubSettings(
            api_url=overrides.get("github_api_url") or env.get("GITHUB_API_URL") or DEFAULT_API_URL,
            request_timeout=float(overrides.get("github_request_timeout") or env.get("GITHUB_REQUEST_TIMEOUT", 30.0)),
        )

        storage = StorageSettings(
            data_dir=Path(overrides.get("data_dir") or env.get("GIT_EXPLORER_DATA_DIR") or DEFAULT_DATA_DIR),
        )

        store = StoreSettings(
            per_page=int(overrides.get("per_page") or env.get("GIT_EXPLORER_PER_PAGE") or 10),
        )

        return cls(github=github, storage=storage, store=store)


__all__ = [
    "AppConfig",
    "GitHubSettings",
    "StorageSettings",
    "StoreSettings",
    "DEFAULT_API_URL",
]
