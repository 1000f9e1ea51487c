"""Command line interface for browsing repositories and favorite commits."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Optional

import typer

from .config import AppConfig
from .github_client import create_git_provider
from .models import FavoriteCommit
from .store import RepositoryStore
from .storage import FileKeyValueStore, Storage

app = typer.Typer(add_completion=False)
favorites_app = typer.Typer(add_completion=False, help="Manage favorite commits.")
app.add_typer(favorites_app, name="favorites")


class CommitOrder(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _load_config(data_dir: Optional[Path], per_page: Optional[int] = None) -> AppConfig:
    overrides: dict[str, object] = {}
    if data_dir:
        overrides["data_dir"] = data_dir
    if per_page:
        overrides["per_page"] = per_page
    return AppConfig.from_env(overrides=overrides)


def _run_with_store(config: AppConfig, action: Callable[[RepositoryStore], Awaitable[None]]) -> RepositoryStore:
    storage = Storage(FileKeyValueStore(config.storage.data_dir))

    async def runner() -> RepositoryStore:
        async with create_git_provider(config.github) as provider:
            store = RepositoryStore(provider, storage, per_page=config.store.per_page)
            await action(store)
            return store

    store = asyncio.run(runner())
    if store.error:
        typer.echo(f"Error: {store.error}", err=True)
        raise typer.Exit(code=1)
    return store


def _offline_store(config: AppConfig) -> RepositoryStore:
    storage = Storage(FileKeyValueStore(config.storage.data_dir))
    return RepositoryStore(create_git_provider(config.github), storage, per_page=config.store.per_page)


@app.command("repos")
def repos(
    username: str = typer.Argument(..., help="Account whose repositories are listed"),
    page: int = typer.Option(1, min=1, help="Page number"),
    per_page: Optional[int] = typer.Option(None, min=1, max=100, help="Repositories per page"),
    data_dir: Optional[Path] = typer.Option(None, help="Directory for saved state"),
    log_level: str = typer.Option("WARNING", help="Logging level"),
) -> None:
    """List a user's repositories, most recently updated first."""

    configure_logging(log_level)
    config = _load_config(data_dir, per_page)
    store = _run_with_store(config, lambda store: store.load_repositories(username, page))

    for repo in store.repositories:
        language = repo.language or "-"
        typer.echo(f"{repo.name}\t{repo.stargazers_count}\t{language}\t{repo.description or ''}")
    if store.has_more_repos:
        typer.echo(f"More repositories may exist; try --page {page + 1}")


@app.command("commits")
def commits(
    username: str = typer.Argument(..., help="Repository owner"),
    repo: str = typer.Argument(..., help="Repository name"),
    page: int = typer.Option(1, min=1, help="Page number"),
    order: CommitOrder = typer.Option(CommitOrder.NEWEST, case_sensitive=False, help="Sort order"),
    per_page: Optional[int] = typer.Option(None, min=1, max=100, help="Commits per page"),
    data_dir: Optional[Path] = typer.Option(None, help="Directory for saved state"),
    log_level: str = typer.Option("WARNING", help="Logging level"),
) -> None:
    """List a page of commits for a repository."""

    configure_logging(log_level)
    config = _load_config(data_dir, per_page)
    store = _run_with_store(config, lambda store: store.load_commits(username, repo, page))

    for commit in store.sorted_commits("oldest" if order is CommitOrder.OLDEST else "newest"):
        marker = "*" if store.is_favorite(commit.sha) else " "
        summary = commit.commit.message.splitlines()[0] if commit.commit.message else ""
        typer.echo(f"{marker} {commit.sha[:7]}\t{commit.authored_at.isoformat()}\t{commit.commit.author.name}\t{summary}")
    if store.has_more_commits:
        typer.echo(f"More commits may exist; try --page {page + 1}")


@app.command("commit")
def commit(
    username: str = typer.Argument(..., help="Repository owner"),
    repo: str = typer.Argument(..., help="Repository name"),
    sha: str = typer.Argument(..., help="Commit SHA"),
    data_dir: Optional[Path] = typer.Option(None, help="Directory for saved state"),
    log_level: str = typer.Option("WARNING", help="Logging level"),
) -> None:
    """Show a single commit with its changed files."""

    configure_logging(log_level)
    config = _load_config(data_dir)
    store = _run_with_store(config, lambda store: store.load_commit_detail(username, repo, sha))

    detail = store.current_commit_detail
    if detail is None:
        raise typer.Exit(code=1)
    typer.echo(f"commit {detail.sha}")
    typer.echo(f"Author: {detail.commit.author.name}")
    typer.echo(f"Date:   {detail.authored_at.isoformat()}")
    typer.echo("")
    typer.echo(detail.commit.message)
    if detail.stats:
        typer.echo("")
        typer.echo(f"{detail.stats.total} changes: +{detail.stats.additions} -{detail.stats.deletions}")
    for change in detail.files or []:
        typer.echo(f"  {change.status:<10} {change.filename} (+{change.additions} -{change.deletions})")


@favorites_app.command("list")
def favorites_list(
    data_dir: Optional[Path] = typer.Option(None, help="Directory for saved state"),
) -> None:
    """Show saved commits grouped by repository."""

    store = _offline_store(_load_config(data_dir))
    if not store.favorites_count:
        typer.echo("No favorites saved.")
        return
    for repo_name, favorites in store.favorites_by_repo.items():
        typer.echo(repo_name)
        for favorite in favorites:
            typer.echo(f"  {_describe(favorite)}")


@favorites_app.command("add")
def favorites_add(
    username: str = typer.Argument(..., help="Repository owner"),
    repo: str = typer.Argument(..., help="Repository name"),
    sha: str = typer.Argument(..., help="Commit SHA"),
    data_dir: Optional[Path] = typer.Option(None, help="Directory for saved state"),
    log_level: str = typer.Option("WARNING", help="Logging level"),
) -> None:
    """Fetch a commit and save it as a favorite."""

    configure_logging(log_level)
    config = _load_config(data_dir)
    store = _run_with_store(config, lambda store: store.load_commit_detail(username, repo, sha))
    detail = store.current_commit_detail
    if detail is None:
        raise typer.Exit(code=1)
    if store.is_favorite(detail.sha):
        typer.echo(f"{detail.sha[:7]} is already a favorite")
        return
    store.add_to_favorites(detail, repo, username)
    typer.echo(f"Saved {detail.sha[:7]} from {username}/{repo}")


@favorites_app.command("remove")
def favorites_remove(
    sha: str = typer.Argument(..., help="Commit SHA"),
    data_dir: Optional[Path] = typer.Option(None, help="Directory for saved state"),
) -> None:
    """Forget a saved commit."""

    store = _offline_store(_load_config(data_dir))
    if not store.is_favorite(sha):
        typer.echo(f"{sha} is not a favorite", err=True)
        raise typer.Exit(code=1)
    store.remove_from_favorites(sha)
    typer.echo(f"Removed {sha}")


@favorites_app.command("clear")
def favorites_clear(
    data_dir: Optional[Path] = typer.Option(None, help="Directory for saved state"),
) -> None:
    """Remove every saved commit."""

    store = _offline_store(_load_config(data_dir))
    count = store.favorites_count
    store.clear_all_favorites()
    typer.echo(f"Removed {count} favorites")


def _describe(favorite: FavoriteCommit) -> str:
    message = favorite.commit.commit.message.splitlines()[0] if favorite.commit.commit.message else ""
    return f"{favorite.sha[:7]}\t{favorite.saved_at.isoformat()}\t{message}"


__all__ = ["app"]
