"""Key/value storage backends used to persist the session."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

LOG = logging.getLogger(__name__)

DEFAULT_STORAGE_NAME = "session.json"


class StorageError(RuntimeError):
    """Raised when a storage backend cannot read or write."""


@runtime_checkable
class Storage(Protocol):
    """String-to-string store in the spirit of a browser ``localStorage``."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage; nothing survives a restart."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._items)


class FileStorage:
    """Persist keys as a single JSON object on disk.

    Writes go to a temporary file in the same directory which then replaces
    the target, so a crash never leaves a half-written document behind.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    @classmethod
    def in_directory(cls, base_dir: Path, name: str = DEFAULT_STORAGE_NAME) -> "FileStorage":
        return cls(Path(base_dir).expanduser() / name)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            raise StorageError(f"Unable to read {self.path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise StorageError(f"Storage file {self.path} does not hold a JSON object")
        return {str(key): value for key, value in raw.items() if isinstance(value, str)}

    def _write(self, items: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".session-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(items, handle, indent=2, sort_keys=True)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageError(f"Unable to write {self.path}: {exc}") from exc

    def get_item(self, key: str) -> str | None:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read()
        items[key] = value
        self._write(items)

    def remove_item(self, key: str) -> None:
        if not self.path.exists():
            return
        try:
            items = self._read()
        except StorageError:
            LOG.warning("Discarding unreadable storage file %s", self.path)
            items = {}
        items.pop(key, None)
        self._write(items)


__all__ = ["FileStorage", "MemoryStorage", "Storage", "StorageError"]
