from __future__ import annotations

import json
from datetime import datetime, timezone

from git_explorer.models import Commit, FavoriteCommit
from git_explorer.storage import FileKeyValueStore, MemoryKeyValueStore, Storage
from git_explorer.store import FAVORITES_STORAGE_KEY, RepositoryStore


class UnusedProvider:
    """Favorites never reach the network."""

    async def fetch_repositories(self, *args, **kwargs):  # pragma: no cover - must not be called
        raise AssertionError("unexpected fetch")

    fetch_commits = fetch_repositories
    fetch_commit_detail = fetch_repositories


def make_commit(sha: str) -> Commit:
    return Commit.model_validate(
        {
            "sha": sha,
            "commit": {"message": f"Commit {sha}", "author": {"name": "Author", "date": "2024-01-01T00:00:00Z"}},
            "author": {"login": "testuser", "avatar_url": "https://github.com/testuser.png"},
            "html_url": f"https://github.com/testuser/test-repo/commit/{sha}",
        }
    )


def make_store(backend=None) -> tuple[RepositoryStore, Storage]:
    storage = Storage(backend if backend is not None else MemoryKeyValueStore())
    return RepositoryStore(UnusedProvider(), storage), storage


def test_add_to_favorites_builds_snapshot():
    store, _ = make_store()
    before = datetime.now(tz=timezone.utc)

    store.add_to_favorites(make_commit("abc123"), "test-repo", "testuser")

    favorite = store.favorites[0]
    assert favorite.commit.sha == "abc123"
    assert favorite.repo_name == "test-repo"
    assert favorite.username == "testuser"
    assert favorite.repo_url == "https://github.com/testuser/test-repo"
    assert favorite.commit_url == "https://github.com/testuser/test-repo/commit/abc123"
    assert favorite.saved_at >= before
    assert store.is_favorite("abc123") is True
    assert store.loading is False
    assert store.error is None


def test_add_is_deduplicated_by_sha_across_repositories():
    store, _ = make_store()
    commit = make_commit("abc123")

    store.add_to_favorites(commit, "test-repo", "testuser")
    store.add_to_favorites(commit, "test-repo", "testuser")
    store.add_to_favorites(commit, "fork", "someone-else")

    assert store.favorites_count == 1
    assert store.favorites[0].repo_name == "test-repo"


def test_newest_favorite_comes_first():
    store, _ = make_store()

    for sha in ("one", "two", "three"):
        store.add_to_favorites(make_commit(sha), "test-repo", "testuser")

    assert [favorite.sha for favorite in store.favorites] == ["three", "two", "one"]


def test_toggle_favorite_is_its_own_inverse():
    store, storage = make_store()
    commit = make_commit("abc123")

    store.toggle_favorite(commit, "test-repo", "testuser")
    assert store.is_favorite("abc123") is True

    store.toggle_favorite(commit, "test-repo", "testuser")
    assert store.is_favorite("abc123") is False
    assert storage.get(FAVORITES_STORAGE_KEY) == []


def test_add_then_remove_persists_empty_list():
    store, storage = make_store()

    store.add_to_favorites(make_commit("abc123"), "r", "u")
    assert store.is_favorite("abc123") is True

    store.remove_from_favorites("abc123")

    assert store.is_favorite("abc123") is False
    assert storage.get(FAVORITES_STORAGE_KEY) == []


def test_remove_unknown_sha_still_persists():
    backend = MemoryKeyValueStore()
    store, _ = make_store(backend)

    store.remove_from_favorites("missing")

    assert backend.read(FAVORITES_STORAGE_KEY) == "[]"


def test_persisted_record_uses_camel_case_keys():
    backend = MemoryKeyValueStore()
    store, _ = make_store(backend)

    store.add_to_favorites(make_commit("abc123"), "test-repo", "testuser")

    parsed = json.loads(backend.read(FAVORITES_STORAGE_KEY))
    assert len(parsed) == 1
    assert parsed[0]["commit"]["sha"] == "abc123"
    assert parsed[0]["repoName"] == "test-repo"
    assert parsed[0]["commitUrl"] == "https://github.com/testuser/test-repo/commit/abc123"
    assert "savedAt" in parsed[0]


def test_persisted_favorites_reload_equal_in_memory(tmp_path):
    store, _ = make_store(FileKeyValueStore(tmp_path))
    store.add_to_favorites(make_commit("a"), "repo1", "user")
    store.add_to_favorites(make_commit("b"), "repo2", "user")
    store.remove_from_favorites("a")
    store.add_to_favorites(make_commit("c"), "repo1", "user")

    reloaded, _ = make_store(FileKeyValueStore(tmp_path))

    assert reloaded.favorites == store.favorites
    assert [favorite.sha for favorite in reloaded.favorites] == ["c", "b"]


def test_clear_all_favorites():
    store, storage = make_store()
    store.add_to_favorites(make_commit("a"), "repo1", "user")
    store.add_to_favorites(make_commit("b"), "repo2", "user")

    store.clear_all_favorites()

    assert store.favorites == []
    assert store.favorites_count == 0
    assert storage.get(FAVORITES_STORAGE_KEY) == []


def test_favorites_by_repo_groups_in_list_order():
    store, _ = make_store()
    store.add_to_favorites(make_commit("abc1"), "repo1", "user")
    store.add_to_favorites(make_commit("abc2"), "repo2", "user")
    store.add_to_favorites(make_commit("abc3"), "repo1", "user")

    grouped = store.favorites_by_repo

    assert list(grouped) == ["repo1", "repo2"]
    assert [favorite.sha for favorite in grouped["repo1"]] == ["abc3", "abc1"]
    assert [favorite.sha for favorite in grouped["repo2"]] == ["abc2"]
    assert store.favorites_count == 3


def test_favorites_loaded_once_from_storage():
    favorite = FavoriteCommit.capture(make_commit("abc123"), "test-repo", "testuser")
    backend = MemoryKeyValueStore()
    Storage(backend).set(FAVORITES_STORAGE_KEY, [favorite])

    store, _ = make_store(backend)
    backend.write(FAVORITES_STORAGE_KEY, "[]")

    assert store.favorites == [favorite]


def test_unparsable_favorites_start_empty(caplog):
    backend = MemoryKeyValueStore({FAVORITES_STORAGE_KEY: "not json at all"})

    with caplog.at_level("WARNING"):
        store, _ = make_store(backend)

    assert store.favorites == []


def test_malformed_favorites_record_starts_empty(caplog):
    backend = MemoryKeyValueStore({FAVORITES_STORAGE_KEY: json.dumps([{"commit": {"sha": "x"}}])})

    with caplog.at_level("WARNING"):
        store, _ = make_store(backend)

    assert store.favorites == []
    assert "malformed favorites" in caplog.text


def test_favorites_file_with_invalid_encoding_starts_empty(tmp_path):
    (tmp_path / f"{FAVORITES_STORAGE_KEY}.json").write_bytes(b"\xff\xfe")

    store, _ = make_store(FileKeyValueStore(tmp_path))

    assert store.favorites == []
    store.add_to_favorites(make_commit("abc123"), "test-repo", "testuser")
    assert make_store(FileKeyValueStore(tmp_path))[0].favorites == store.favorites
