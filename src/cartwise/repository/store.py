"""Key-value store contract shared with the browser side.

Mirrors ``chrome.storage.local``: ``get(key)``, ``set({key: value})``,
``remove(key)``. Values are plain JSON data. Concurrent writers are allowed;
the last write wins.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Protocol

from cartwise.errors import HostUnavailableError


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, items: dict[str, Any]) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemoryStore:
    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = copy.deepcopy(initial or {})
        self.available = True

    def _check(self) -> None:
        if not self.available:
            raise HostUnavailableError("storage bridge is not available")

    def get(self, key: str) -> Any:
        self._check()
        return copy.deepcopy(self._data.get(key))

    def set(self, items: dict[str, Any]) -> None:
        self._check()
        self._data.update(copy.deepcopy(items))

    def remove(self, key: str) -> None:
        self._check()
        self._data.pop(key, None)


class JsonFileStore:
    def __init__(self, path: str):
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except OSError as exc:
            raise HostUnavailableError(f"cannot read store file: {self.path}") from exc
        except json.JSONDecodeError:
            return {}
        return data if isinstance(data, dict) else {}

    def _dump(self, data: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            with tmp.open("w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False, indent=2)
            tmp.replace(self.path)
        except OSError as exc:
            raise HostUnavailableError(f"cannot write store file: {self.path}") from exc

    def get(self, key: str) -> Any:
        return self._load().get(key)

    def set(self, items: dict[str, Any]) -> None:
        data = self._load()
        data.update(items)
        self._dump(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._dump(data)
