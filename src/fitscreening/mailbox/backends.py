"""Key-value backends shared by the evaluator process and its clients."""

from __future__ import annotations

import copy
import json
import threading
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from ..errors import StoreError
from ..store import atomic_write_json, safe_component


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal persistent key-value contract; values are JSON-compatible."""

    def get(self, key: str) -> Any | None:
        """Return the stored value or ``None`` when the key is absent."""

    def set(self, key: str, value: Any) -> None:
        """Replace the value under ``key``."""

    def delete(self, key: str) -> None:
        """Remove ``key``; missing keys are ignored."""


class FileKeyValueStore:
    """One JSON file per key in a directory visible to every process."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).expanduser()

    def _path(self, key: str) -> Path:
        return self._root / f"{safe_component(key)}.json"

    def get(self, key: str) -> Any | None:
        path = self._path(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StoreError(f"Failed to read mailbox key {key!r}: {exc}") from exc
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StoreError(f"Mailbox key {key!r} holds invalid JSON: {exc}") from exc

    def set(self, key: str, value: Any) -> None:
        try:
            atomic_write_json(self._path(key), value)
        except OSError as exc:
            raise StoreError(f"Failed to write mailbox key {key!r}: {exc}") from exc

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class MemoryKeyValueStore:
    """In-process store for tests and single-process use."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)
