"""Synchronous key/value storage that survives process restarts."""

import os
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

from ..config import resolve_client_store_dir


class ILocalStore(Protocol):
    """String-keyed, string-valued durable storage."""

    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""
        ...

    def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        ...

    def remove_item(self, key: str) -> None:
        """Delete a key if present."""
        ...


class MemoryLocalStore:
    """In-process store (tests, non-durable hosts)."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileLocalStore:
    """One file per key under a directory; writes are atomic."""

    def __init__(self, directory: str | Path | None = None):
        self._dir = Path(directory) if directory else resolve_client_store_dir()
        self._dir.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        return self._dir

    def _path(self, key: str) -> Path:
        # "tibera:app-events:v1" -> "tibera%3Aapp-events%3Av1.json"
        return self._dir / f"{quote(key, safe='')}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(value)
        os.replace(tmp_path, path)

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
