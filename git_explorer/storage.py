"""Durable key/value storage for client state."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol

from pydantic_core import from_json, to_json

LOGGER = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Raw text storage addressed by key."""

    def read(self, key: str) -> str | None:
        ...

    def write(self, key: str, text: str) -> None:
        ...


class MemoryKeyValueStore:
    """Process-local store, mainly useful in tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> str | None:
        return self._items.get(key)

    def write(self, key: str, text: str) -> None:
        self._items[key] = text


class FileKeyValueStore:
    """Stores each key as ``<directory>/<key>.json``."""

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def read(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def write(self, key: str, text: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        self.path_for(key).write_text(text, encoding="utf-8")


class Storage:
    """JSON adapter on top of a :class:`KeyValueStore`.

    Reads never raise: a missing key and a value that cannot be decoded
    both come back as ``None``. Writes replace the previous value.
    """

    def __init__(self, backend: KeyValueStore) -> None:
        self._backend = backend

    def get(self, key: str) -> Any | None:
        try:
            raw = self._backend.read(key)
            if raw is None:
                return None
            return from_json(raw)
        except (OSError, ValueError) as exc:
            LOGGER.warning("Ignoring unreadable value stored under %r: %s", key, exc)
            return None

    def set(self, key: str, value: Any) -> None:
        self._backend.write(key, to_json(value, by_alias=True).decode("utf-8"))


__all__ = ["FileKeyValueStore", "KeyValueStore", "MemoryKeyValueStore", "Storage"]
